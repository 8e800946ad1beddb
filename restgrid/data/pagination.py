"""Pagination: which slice of the rows the current request asks for."""

from __future__ import annotations

import math

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..config import get_settings
from ..request import get_query_params


def _settings_default(name: str) -> Any:
    return getattr(get_settings().pagination, name)


class Pagination(BaseModel):
    """Current page and page size, read from the request when not set.

    Pages are zero-based in Python and one-based in request parameters:
    ``?page=2`` is ``page == 1``.

    Example:
        pagination = Pagination(page_size=20, total_count=100, params={"page": "2"})
        pagination.page  # 1
        pagination.offset  # 20
        pagination.page_count  # 5
    """

    model_config = ConfigDict(validate_assignment=True)

    page_param: str = Field(default_factory=lambda: _settings_default("page_param"))
    page_size_param: str = Field(default_factory=lambda: _settings_default("page_size_param"))
    default_page_size: int = Field(default_factory=lambda: _settings_default("default_page_size"))
    # None disables reading the page size from the request
    page_size_limit: tuple[int, int] | None = Field(
        default_factory=lambda: (_settings_default("page_size_min"), _settings_default("page_size_max"))
    )
    validate_page: bool = True
    total_count: int = Field(default=0, ge=0)
    params: dict[str, Any] | None = None

    _page: int | None = PrivateAttr(default=None)
    _page_size: int | None = PrivateAttr(default=None)

    def __init__(self, *, page: int | None = None, page_size: int | None = None, **data: Any) -> None:
        super().__init__(**data)
        if page_size is not None:
            self.set_page_size(page_size)
        if page is not None:
            self.set_page(page)

    def _get_query_param(self, name: str, default: Any = None) -> Any:
        params = self.params if self.params is not None else get_query_params()
        value = params.get(name, default)
        return value if isinstance(value, (str, int)) else default

    @staticmethod
    def _to_int(value: Any, default: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    @property
    def page_count(self) -> int:
        """Number of pages needed for :attr:`total_count` rows."""
        page_size = self.page_size
        if page_size < 1:
            return 1 if self.total_count > 0 else 0
        return math.ceil(self.total_count / page_size)

    @property
    def page(self) -> int:
        """Zero-based current page."""
        if self._page is None:
            requested = self._to_int(self._get_query_param(self.page_param, 1), 1) - 1
            self.set_page(requested, validate=True)
        return self._page  # type: ignore[return-value]

    def set_page(self, value: int, validate: bool = False) -> None:
        """Set the zero-based current page.

        Parameters
        ----------
        value : int
            The page index.
        validate : bool
            Clamp the page into ``[0, page_count - 1]`` when
            :attr:`validate_page` is also enabled.
        """
        value = int(value)
        if validate and self.validate_page:
            value = min(value, self.page_count - 1)
        self._page = max(value, 0)

    @property
    def page_size(self) -> int:
        """Rows per page; below 1 means "all rows on one page"."""
        if self._page_size is None:
            if self.page_size_limit is None:
                self.set_page_size(self.default_page_size)
            else:
                requested = self._to_int(
                    self._get_query_param(self.page_size_param, self.default_page_size),
                    self.default_page_size,
                )
                self.set_page_size(requested, validate=True)
        return self._page_size  # type: ignore[return-value]

    def set_page_size(self, value: int, validate: bool = False) -> None:
        """Set rows per page, clamping into :attr:`page_size_limit` if asked."""
        value = int(value)
        if validate and self.page_size_limit is not None:
            low, high = self.page_size_limit
            value = min(max(value, low), high)
        self._page_size = value

    @property
    def offset(self) -> int:
        """Index of the first row of the current page."""
        page_size = self.page_size
        return 0 if page_size < 1 else self.page * page_size

    @property
    def limit(self) -> int:
        """Row count of a page, ``-1`` when there is no limit."""
        page_size = self.page_size
        return -1 if page_size < 1 else page_size
