"""Async wrapper around the Binance REST API used by the relay."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from src.exchange.errors import TransportFailure, UpstreamRejected


class BinanceClient:
    """Issues single GET requests against Binance and classifies the outcome.

    One `httpx.AsyncClient` is shared by every in-flight request so the
    outbound call never blocks the event loop. No retries are attempted.
    """

    BASE_URL = "https://api.binance.com"
    TESTNET_URL = "https://testnet.binance.vision"
    API_KEY_HEADER = "X-MBX-APIKEY"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_seconds: float = 10.0,
        api_key_header: str = API_KEY_HEADER,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = str(base_url or self.BASE_URL).rstrip("/")
        self.timeout_seconds = float(timeout_seconds)
        self.api_key_header = api_key_header
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        query: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> Tuple[int, Any]:
        """Perform one GET and return `(status, decoded_json)`.

        Parameters
        ----------
        path:
            Upstream path, e.g. "/api/v3/ticker/price".
        params:
            Plain query parameters for unsigned calls.
        query:
            Pre-built query string, appended verbatim. Signed calls use this so
            the bytes on the wire are the bytes that were signed.
        api_key:
            Sent as the `X-MBX-APIKEY` header, never as a query parameter.
        """
        url = path
        if query:
            url = f"{path}?{query}"
        headers: Dict[str, str] = {}
        if api_key:
            headers[self.api_key_header] = api_key

        try:
            response = await self._client.get(url, params=dict(params) if params else None, headers=headers)
        except httpx.TimeoutException as exc:
            logging.error("Binance request to %s timed out after %ss", path, self.timeout_seconds)
            raise TransportFailure(f"Upstream request timed out: {exc}", timed_out=True) from exc
        except httpx.TransportError as exc:
            logging.error("Error fetching %s from Binance: %s", path, exc)
            raise TransportFailure(str(exc) or exc.__class__.__name__) from exc

        payload = self._decode(response)
        if not response.is_success:
            error = UpstreamRejected.from_payload(
                response.status_code,
                payload if payload is not None else response.text,
            )
            logging.warning("Binance rejected %s with %s: %s", path, response.status_code, error.message)
            raise error
        if payload is None:
            raise UpstreamRejected(upstream_status=502, message="Upstream returned a non-JSON body.")
        return response.status_code, payload

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
