"""FastAPI/Starlette integration.

Binds each request's query parameters so grids, paginations and sorts pick
up ``?layout=``, ``?page=``, ``?per-page=`` and ``?sort=`` without being
handed the parameters explicitly.

Usage:
    from fastapi import FastAPI
    from restgrid.web import QueryParamsMiddleware, grid_response

    app = FastAPI()
    app.add_middleware(QueryParamsMiddleware)

    @app.get("/products")
    def products():
        return grid_response(Grid(data_provider=make_provider()))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.datastructures import QueryParams

from .request import reset_query_params, set_query_params


if TYPE_CHECKING:
    from .grid import Grid


class QueryParamsMiddleware:
    """ASGI middleware binding the request query string for restgrid.

    Repeated parameters keep their last value.
    """

    def __init__(self, app: Any) -> None:
        """Initialize the middleware.

        Parameters
        ----------
        app : ASGI application
            The wrapped application.
        """
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Any,
        send: Any,
    ) -> None:
        """Handle ASGI request."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        params = QueryParams(scope.get("query_string", b""))
        token = set_query_params(dict(params.items()))
        try:
            await self.app(scope, receive, send)
        finally:
            reset_query_params(token)


def grid_response(grid: Grid, status_code: int = 200, **kwargs: Any) -> JSONResponse:
    """Run a grid and wrap its output in a JSON response.

    Dates, decimals and other values left untouched by the ``raw`` format
    are converted with FastAPI's ``jsonable_encoder``.

    Parameters
    ----------
    grid : Grid
        The grid to render.
    status_code : int
        HTTP status code of the response.
    **kwargs : Any
        Extra JSONResponse arguments (headers, media_type, ...).
    """
    return JSONResponse(content=jsonable_encoder(grid.run()), status_code=status_code, **kwargs)
