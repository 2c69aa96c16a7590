"""ASGI application hosting the search page.

Routes:
    GET /             search page (reads q, query, cat, lic and repeated field)
    GET /api/search   JSON search results
    GET /health       catalog loader health
    GET /metrics      Prometheus metrics

Usage:
    python -m ports_search.app
    PORTS_URL=https://example.org/ports.json python -m ports_search.app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

import httpx
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Route

from .config import FREE_TEXT_FIELD_CHOICES, Settings, select_free_text_fields
from .domain.search import NoQuery
from .errors import IndexLoadError
from .observability.logging import configure_logging
from .observability.metrics import get_metrics, get_metrics_content_type
from .observability.tracing import init_tracing, trace_request
from .presentation.page import render_search_page
from .presentation.results import ResultPresenter
from .runtime.health import build_health_endpoint
from .services.index_loader import CatalogSource, IndexLoader
from .services.query_engine import QueryEngine
from .services.url_state import query_from_params


logger = logging.getLogger(__name__)


def _requested_fields(request: Request, engine: QueryEngine) -> frozenset[str]:
    """Free-text fields ticked on the form; unknown names are ignored."""
    ticked = {value.strip().lower() for value in request.query_params.getlist("field")}
    return select_free_text_fields(ticked & set(FREE_TEXT_FIELD_CHOICES), engine.free_text_fields)


async def search_page(request: Request) -> HTMLResponse:
    state = request.app.state
    engine: QueryEngine = state.engine
    presenter: ResultPresenter = state.presenter
    raw = query_from_params(request.query_params)
    fields = _requested_fields(request, engine)

    status_code = 200
    try:
        outcome = await engine.search(raw, free_text_fields=fields)
        results_html = presenter.render(outcome)
    except IndexLoadError as exc:
        results_html = presenter.render_error(exc)
        status_code = 503

    catalog = getattr(state.loader, "catalog", None)
    page = render_search_page(
        query=raw,
        results_html=results_html,
        categories=catalog.categories() if catalog else (),
        licenses=catalog.licenses() if catalog else (),
        free_text_fields=fields,
    )
    return HTMLResponse(page, status_code=status_code)


async def search_api(request: Request) -> JSONResponse:
    engine: QueryEngine = request.app.state.engine
    raw = query_from_params(request.query_params)
    try:
        outcome = await engine.search(raw, free_text_fields=_requested_fields(request, engine))
    except IndexLoadError as exc:
        return JSONResponse({"status": "error", "query": raw, "error": exc.reason}, status_code=503)

    if isinstance(outcome, NoQuery):
        return JSONResponse({"status": "no_query", "query": ""})
    return JSONResponse({"status": "ok", **outcome.to_payload()})


async def metrics_endpoint(request: Request) -> Response:
    return Response(get_metrics(), media_type=get_metrics_content_type())


def create_app(settings: Settings | None = None, *, loader: CatalogSource | None = None) -> Starlette:
    """Create the ASGI application.

    Args:
        settings: Configuration (read from the environment when omitted)
        loader: Catalog source to use instead of fetching ``ports.json``
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: Starlette):
        client: httpx.AsyncClient | None = None
        active_loader = loader
        if active_loader is None:
            timeout = httpx.Timeout(float(settings.http_timeout), connect=10.0)
            client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
            active_loader = IndexLoader.from_settings(settings, client=client)

        app.state.loader = active_loader
        app.state.engine = QueryEngine.from_settings(settings, active_loader)
        app.state.presenter = ResultPresenter(settings.base_url)

        if settings.preload_index:
            try:
                await active_loader.get()
            except IndexLoadError:
                logger.warning("Starting without a catalog; searches will report the load failure")

        try:
            yield
        finally:
            if client is not None:
                await client.aclose()

    routes = [
        Route("/", endpoint=search_page, methods=["GET"]),
        Route("/api/search", endpoint=search_api, methods=["GET"]),
        Route("/health", endpoint=build_health_endpoint(lambda: getattr(app.state, "loader", None)), methods=["GET"]),
        Route("/metrics", endpoint=metrics_endpoint, methods=["GET"]),
    ]

    app = Starlette(
        debug=settings.log_level.lower() == "debug",
        routes=routes,
        middleware=[Middleware(BaseHTTPMiddleware, dispatch=trace_request)],
        lifespan=lifespan,
    )
    return app


def main() -> None:
    """Entry point: configure logging and tracing, then serve with uvicorn."""
    import uvicorn

    settings = Settings()
    configure_logging(
        settings.log_level,
        settings.log_json,
        logger_levels=settings.logger_levels,
        access_log=settings.access_log,
    )
    init_tracing()

    logger.info("Starting ports-search on %s:%d", settings.host, settings.port)
    logger.info("Catalog: %s", settings.resolve_ports_url())

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=settings.access_log,
        log_config=None,  # Don't let uvicorn override our logging config
    )


if __name__ == "__main__":
    main()
