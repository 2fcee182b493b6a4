"""Tests for the HTTP transport and its error classification."""

from __future__ import annotations

import json

import httpx
import pytest

from openrouter_keys._http import HTTPClient
from openrouter_keys.errors import (
    DecodingError,
    EncodingError,
    ForbiddenError,
    NotFoundError,
    RemoteError,
    TransportError,
)
from tests.fakes import BASE_URL, TOKEN


class TestHTTPClientConfig:
    def test_requires_access_token(self):
        """An empty credential is rejected at construction."""
        with pytest.raises(ValueError, match="access_token"):
            HTTPClient(base_url=BASE_URL, access_token="")

    def test_strips_trailing_slash(self):
        http = HTTPClient(base_url=BASE_URL + "/", access_token=TOKEN)
        assert http.base_url == BASE_URL
        assert http.timeout == 30.0

    def test_client_requires_context(self):
        """Requests outside 'async with' are a programming error."""
        http = HTTPClient(base_url=BASE_URL, access_token=TOKEN)
        with pytest.raises(RuntimeError, match="HTTPClient not initialized"):
            _ = http.client


class TestHTTPClientRequest:
    @pytest.mark.asyncio
    async def test_sends_bearer_and_json_headers(self, httpx_mock):
        """Every request carries the credential and JSON content type."""
        httpx_mock.add_response(
            method="POST",
            url=f"{BASE_URL}/keys",
            json={"ok": True},
        )

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            result = await http.post("/keys", body={"name": "t"})

        assert result == {"ok": True}
        request = httpx_mock.get_requests()[-1]
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content.decode("utf-8")) == {"name": "t"}

    @pytest.mark.asyncio
    async def test_empty_success_body_returns_none(self, httpx_mock):
        httpx_mock.add_response(method="GET", url=f"{BASE_URL}/key", status_code=200)

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            assert await http.get("/key") is None

    @pytest.mark.asyncio
    async def test_delete_ignores_body(self, httpx_mock):
        """DELETE does not decode whatever the server sends back."""
        httpx_mock.add_response(
            method="DELETE",
            url=f"{BASE_URL}/keys/abc",
            status_code=200,
            text="deleted",
        )

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            assert await http.delete("/keys/abc") is None

    @pytest.mark.asyncio
    async def test_error_message_from_envelope(self, httpx_mock):
        """The envelope's 'message' field becomes the error message."""
        httpx_mock.add_response(
            method="GET",
            url=f"{BASE_URL}/keys/missing",
            status_code=404,
            json={"message": "API key not found", "error": "not_found"},
        )

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            with pytest.raises(NotFoundError) as exc_info:
                await http.get("/keys/missing", operation="read", key_id="missing")

        err = exc_info.value
        assert err.status_code == 404
        assert err.message == "API key not found"
        assert str(err) == (
            "Unable to read API key missing: API error (status 404): API key not found"
        )

    @pytest.mark.asyncio
    async def test_non_json_error_uses_raw_body(self, httpx_mock):
        """Unparseable error bodies are surfaced verbatim."""
        httpx_mock.add_response(
            method="GET",
            url=f"{BASE_URL}/keys",
            status_code=502,
            text="<html>bad gateway</html>",
        )

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            with pytest.raises(RemoteError) as exc_info:
                await http.get("/keys", operation="list")

        err = exc_info.value
        assert type(err) is RemoteError
        assert err.status_code == 502
        assert err.message == "<html>bad gateway</html>"
        assert "Unable to list API keys" in str(err)

    @pytest.mark.asyncio
    async def test_status_maps_to_error_class(self, httpx_mock):
        httpx_mock.add_response(
            method="GET",
            url=f"{BASE_URL}/keys",
            status_code=403,
            text='{"error": "forbidden"}',
        )

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            with pytest.raises(ForbiddenError) as exc_info:
                await http.get("/keys")

        # No "message" in the envelope: the raw body is surfaced
        assert exc_info.value.message == '{"error": "forbidden"}'

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self, httpx_mock):
        """A single failed attempt is a failed call."""
        httpx_mock.add_response(
            method="GET",
            url=f"{BASE_URL}/keys/abc",
            status_code=503,
            json={"message": "warming up"},
        )

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            with pytest.raises(RemoteError) as exc_info:
                await http.get("/keys/abc")

        assert exc_info.value.status_code == 503
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_connection_failure_maps_to_transport_error(self, httpx_mock):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            with pytest.raises(TransportError) as exc_info:
                await http.get("/keys/abc", operation="read", key_id="abc")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.key_id == "abc"
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_timeout_maps_to_transport_error(self, httpx_mock):
        httpx_mock.add_exception(httpx.ReadTimeout("read timed out"))

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN, timeout=1.0) as http:
            with pytest.raises(TransportError, match="timed out"):
                await http.get("/keys")

    @pytest.mark.asyncio
    async def test_invalid_json_maps_to_decoding_error(self, httpx_mock):
        httpx_mock.add_response(
            method="GET",
            url=f"{BASE_URL}/key",
            status_code=200,
            text="{not json",
        )

        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            with pytest.raises(DecodingError):
                await http.get("/key")

    @pytest.mark.asyncio
    async def test_unserializable_body_maps_to_encoding_error(self, httpx_mock):
        """Serialization fails locally, before anything is sent."""
        async with HTTPClient(base_url=BASE_URL, access_token=TOKEN) as http:
            with pytest.raises(EncodingError):
                await http.post("/keys", body={"limit": float("nan")})

        assert httpx_mock.get_requests() == []
