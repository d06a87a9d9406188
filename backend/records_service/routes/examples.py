"""
Records Service: Example Routes
=================================

Small endpoints kept for smoke tests and client demos:

    GET /                            → 200, empty body
    GET /time                        → current server time (text)
    GET /api/v1/example/helloworld   → "helloworld"
    GET /product/{product_id}        → {"productId": product_id}
    GET /debug/error                 → unhandled error, for checking Sentry
                                       (only mounted when DEBUG_ROUTES=true)
"""

import logging
from datetime import datetime

import sentry_sdk
from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Example"])

debug_router = APIRouter(prefix="/debug", tags=["Debug"], include_in_schema=False)


@router.get("/", summary="Root", response_class=Response)
async def root(request: Request) -> Response:
    """
    Always 200. Query parameters are not expected here; when present they are
    reported to Sentry as a message (no-op if Sentry is not configured).
    """
    if request.query_params:
        with sentry_sdk.new_scope() as scope:
            scope.set_extra("unwantedQuery", dict(request.query_params))
            sentry_sdk.capture_message(
                "User provided unwanted query string, but we recovered just fine"
            )
    return Response(status_code=200)


@router.get("/time", response_class=PlainTextResponse, summary="Current server time")
async def get_time() -> str:
    logger.info("Time requested")
    return f"{datetime.now().astimezone()}\n"


@router.get(
    "/api/v1/example/helloworld",
    response_model=str,
    summary="Hello world",
    description="Returns the JSON string \"helloworld\".",
)
async def helloworld() -> str:
    return "helloworld"


@router.get("/product/{product_id}", summary="Echo a product ID")
async def get_product(product_id: str) -> dict:
    return {"productId": product_id}


@debug_router.get("/error")
async def raise_error() -> None:
    raise RuntimeError("Deliberate failure for error-reporting checks")
