"""
Tests unitaires pour le mecanisme de retry avec backoff exponentiel.

Ces tests verifient:
- RateLimitError capture le header Retry-After et reste une TransportError
- with_retry relance uniquement sur RateLimitError
- request_with_retry detecte les 429 et relance automatiquement
- Les autres erreurs remontent immediatement
"""

import httpx
import pytest
import respx

from reelrack.adapters.http.retry import RateLimitError, request_with_retry, with_retry
from reelrack.core.errors import TransportError

URL = "https://catalog.test/v1/data"


class TestRateLimitError:
    """Tests pour l'exception RateLimitError."""

    def test_stores_retry_after(self) -> None:
        error = RateLimitError(retry_after=60)
        assert error.retry_after == 60
        assert "60" in str(error)
        assert isinstance(error, TransportError)

    def test_without_retry_after(self) -> None:
        assert RateLimitError().retry_after is None


class TestWithRetryDecorator:
    """Tests pour le decorateur with_retry."""

    @pytest.mark.asyncio
    async def test_retries_on_rate_limit_error(self) -> None:
        call_count = 0

        @with_retry(max_attempts=3, max_wait=1)
        async def flaky() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise RateLimitError(retry_after=1)
            return "success"

        assert await flaky() == "success"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_does_not_retry_transport_errors(self) -> None:
        """Les echecs de transport ne sont jamais relances."""
        call_count = 0

        @with_retry(max_attempts=3, max_wait=1)
        async def broken() -> str:
            nonlocal call_count
            call_count += 1
            raise TransportError("reseau perdu")

        with pytest.raises(TransportError):
            await broken()
        assert call_count == 1


class TestRequestWithRetry:
    """Tests pour request_with_retry avec httpx."""

    @pytest.mark.asyncio
    async def test_raises_after_exhausting_attempts(self, respx_mock: respx.Router) -> None:
        route = respx_mock.get(URL).mock(
            return_value=httpx.Response(429, headers={"Retry-After": "30"})
        )

        async with httpx.AsyncClient() as client:
            with pytest.raises(RateLimitError) as exc_info:
                await request_with_retry(client, "GET", URL, max_attempts=2)

        assert exc_info.value.retry_after == 30
        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, respx_mock: respx.Router) -> None:
        route = respx_mock.get(URL).mock(
            side_effect=[
                httpx.Response(429),  # Sans Retry-After
                httpx.Response(200, json={"status": "ok"}),
            ]
        )

        async with httpx.AsyncClient() as client:
            response = await request_with_retry(client, "GET", URL, max_attempts=3)

        assert response.json() == {"status": "ok"}
        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self, respx_mock: respx.Router) -> None:
        route = respx_mock.get(URL).mock(return_value=httpx.Response(500))

        async with httpx.AsyncClient() as client:
            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await request_with_retry(client, "GET", URL)

        assert exc_info.value.response.status_code == 500
        assert route.call_count == 1  # Pas de retry sur 500

    @pytest.mark.asyncio
    async def test_invalid_retry_after_ignored(self, respx_mock: respx.Router) -> None:
        respx_mock.get(URL).mock(
            return_value=httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
        )

        async with httpx.AsyncClient() as client:
            with pytest.raises(RateLimitError) as exc_info:
                await request_with_retry(client, "GET", URL, max_attempts=1)

        assert exc_info.value.retry_after is None
