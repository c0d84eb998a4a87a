"""REST API routes relaying Binance endpoints."""

from __future__ import annotations

from typing import Any, Callable, Coroutine, Iterable

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from src.relay.endpoints import ENDPOINTS, EndpointSpec
from src.relay.handler import RelayHandler


def attach_api_routes(
    app: FastAPI,
    *,
    handler: RelayHandler,
    endpoints: Iterable[EndpointSpec] = ENDPOINTS,
) -> None:
    router = APIRouter()

    for spec in endpoints:
        relay = _make_relay_endpoint(handler, spec)
        for path in spec.paths:
            router.add_api_route(
                path,
                relay,
                methods=["GET"],
                summary=spec.summary or None,
                response_class=JSONResponse,
            )

    app.include_router(router)


def _make_relay_endpoint(
    handler: RelayHandler,
    spec: EndpointSpec,
) -> Callable[[Request], Coroutine[Any, Any, JSONResponse]]:
    async def relay(request: Request) -> JSONResponse:
        params = dict(request.query_params)
        # Path segments win over query-string duplicates.
        params.update(request.path_params)
        result = await handler.handle(spec, params, request.headers)
        return JSONResponse(result.body, status_code=result.status_code)

    relay.__name__ = f"relay_{spec.name}"
    return relay
