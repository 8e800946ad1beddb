"""Query parameters of the request currently being served.

Grids, paginations and sorts read their request parameters from here when
they are not given an explicit ``params`` mapping. The web integration
(see :mod:`restgrid.web`) binds the parameters per request; outside a
request the mapping is empty.
"""

from __future__ import annotations

import contextlib

from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


_query_params: ContextVar[dict[str, Any] | None] = ContextVar(
    "restgrid_query_params", default=None
)


def get_query_params() -> dict[str, Any]:
    """Return the query parameters bound to the current context.

    Returns
    -------
    dict[str, Any]
        A copy of the bound parameters, or an empty dict.
    """
    params = _query_params.get()
    return dict(params) if params is not None else {}


def set_query_params(params: Mapping[str, Any] | None) -> Token[dict[str, Any] | None]:
    """Bind query parameters to the current context.

    Parameters
    ----------
    params : Mapping[str, Any] or None
        The parameters to bind. None unbinds.

    Returns
    -------
    Token
        Pass to :func:`reset_query_params` to restore the previous binding.
    """
    return _query_params.set(dict(params) if params is not None else None)


def reset_query_params(token: Token[dict[str, Any] | None]) -> None:
    """Restore the binding that was active before :func:`set_query_params`."""
    _query_params.reset(token)


@contextlib.contextmanager
def query_params(params: Mapping[str, Any]) -> Iterator[dict[str, Any]]:
    """Bind ``params`` for the duration of a ``with`` block.

    Example:
        with query_params({"layout": "pager,items", "page": "2"}):
            result = grid.run()
    """
    token = set_query_params(params)
    try:
        yield get_query_params()
    finally:
        reset_query_params(token)
