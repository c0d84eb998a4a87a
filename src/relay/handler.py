"""Single parametrized request flow shared by every relayed route.

ValidateInput -> [BuildSignature] -> Dispatch -> MapResponse, with every
outcome (including failures) turned into a JSON `RelayResult`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from src.exchange.binance_client import BinanceClient
from src.exchange.errors import BadRequest, RelayError
from src.exchange.signing import build_signed_request, now_ms
from src.relay.endpoints import EndpointSpec

API_KEY_HEADER = "X-API-KEY"
API_SECRET_HEADER = "X-API-SECRET"

# Values are signed unencoded, so only characters httpx sends unchanged are forwarded.
_WIRE_SAFE = re.compile(r"[A-Za-z0-9._~:,-]+")


@dataclass(frozen=True)
class RelayResult:
    status_code: int
    body: Any


@dataclass(frozen=True)
class Credentials:
    api_key: str
    api_secret: str


class RelayHandler:
    """Runs one `EndpointSpec` against Binance for one inbound request."""

    def __init__(
        self,
        client: BinanceClient,
        *,
        recv_window: Optional[int] = None,
        api_key_header: str = API_KEY_HEADER,
        api_secret_header: str = API_SECRET_HEADER,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.client = client
        self.recv_window = recv_window
        self.api_key_header = api_key_header
        self.api_secret_header = api_secret_header
        self._clock = clock

    async def handle(
        self,
        spec: EndpointSpec,
        params: Mapping[str, Any],
        headers: Mapping[str, str],
    ) -> RelayResult:
        try:
            query = self._collect_params(spec, params)
            credentials = self._extract_credentials(headers) if spec.signed else None

            if credentials is not None:
                signed = build_signed_request(
                    credentials.api_secret,
                    query,
                    timestamp_ms=self._clock(),
                    recv_window=self.recv_window,
                )
                status, body = await self.client.get(
                    spec.upstream_path,
                    query=signed.query_string(),
                    api_key=credentials.api_key,
                )
            else:
                status, body = await self.client.get(spec.upstream_path, params=query)

            return RelayResult(status_code=200, body=spec.reshape(body, status))
        except RelayError as exc:
            # InvalidInput from signing lands here as a 500.
            return _error_result(exc)
        except Exception:
            logging.exception("Unexpected failure while relaying %s.", spec.name)
            return RelayResult(
                status_code=500,
                body={"error": "Internal error", "message": "Failed to fetch data from Binance"},
            )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _collect_params(spec: EndpointSpec, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Return forwarded params in descriptor order; raise `BadRequest` on missing or unsafe ones."""
        query: Dict[str, Any] = {}
        missing: List[str] = []
        for name in spec.required:
            value = _clean(params.get(name))
            if value is None:
                missing.append(name)
            else:
                query[name] = value
        if missing:
            raise BadRequest(missing=tuple(missing), message=spec.missing_message or None)
        for name in spec.optional:
            value = _clean(params.get(name))
            if value is not None:
                query[name] = value
        invalid = [name for name, value in query.items() if not _WIRE_SAFE.fullmatch(value)]
        if invalid:
            raise BadRequest(invalid=tuple(invalid))
        if "symbol" in query:
            query["symbol"] = str(query["symbol"]).upper()
        return query

    def _extract_credentials(self, headers: Mapping[str, str]) -> Credentials:
        lowered = {str(name).lower(): value for name, value in headers.items()}
        api_key = _clean(lowered.get(self.api_key_header.lower()))
        api_secret = _clean(lowered.get(self.api_secret_header.lower()))
        missing = [
            header
            for header, value in ((self.api_key_header, api_key), (self.api_secret_header, api_secret))
            if value is None
        ]
        if missing:
            raise BadRequest(
                missing=tuple(missing),
                message="Missing API credentials header(s): " + ", ".join(missing),
            )
        return Credentials(api_key=str(api_key), api_secret=str(api_secret))


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _error_result(exc: RelayError) -> RelayResult:
    return RelayResult(status_code=int(exc.status_code), body=exc.to_body())
