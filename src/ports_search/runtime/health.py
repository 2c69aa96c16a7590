"""Health endpoint factory."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from ..services.index_loader import CatalogSource, LoaderState


if TYPE_CHECKING:
    from starlette.requests import Request


def build_health_endpoint(get_loader: Callable[[], CatalogSource | None]):
    """Return a coroutine function reporting catalog loader health.

    ``healthy`` once the catalog is loaded, ``starting`` while it has not been
    requested or is in flight, ``unhealthy`` (HTTP 503) after a failed load.
    """

    async def health_check(request: Request) -> JSONResponse:
        loader = get_loader()
        if loader is None:
            return JSONResponse({"status": "starting", "catalog": {"state": LoaderState.UNINITIALIZED.value}})

        state = loader.state
        catalog_info: dict[str, object] = {"state": state.value}
        if state is LoaderState.READY:
            catalog_info["size"] = len(await loader.get())
        error = getattr(loader, "error", None)
        if error is not None:
            catalog_info["error"] = error.reason

        if state is LoaderState.READY:
            status, code = "healthy", 200
        elif state is LoaderState.FAILED:
            status, code = "unhealthy", 503
        else:
            status, code = "starting", 200

        return JSONResponse({"status": status, "catalog": catalog_info}, status_code=code)

    return health_check
