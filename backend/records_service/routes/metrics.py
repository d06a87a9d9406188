"""
Records Service: Metrics Route
================================

Serves the application's Prometheus registry in text exposition format.
Mounted at `settings.metrics_path` by the app factory.
"""

from fastapi import APIRouter, Request, Response


async def metrics(request: Request) -> Response:
    return request.app.state.metrics.render()


def build_router(path: str) -> APIRouter:
    """Router with the metrics endpoint at `path`."""
    router = APIRouter(tags=["Metrics"])
    router.add_api_route(
        path,
        metrics,
        methods=["GET"],
        include_in_schema=False,
        response_class=Response,
    )
    return router
