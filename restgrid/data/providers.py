"""Data providers: a page of rows plus the information needed to page and sort.

Providers prepare lazily: rows are materialized on the first call to
:meth:`BaseDataProvider.get_models` and cached until ``prepare(force=True)``.

Usage:
    from restgrid.data import ArrayDataProvider

    provider = ArrayDataProvider(
        rows,
        key="id",
        pagination={"page_size": 20},
        sort={"attributes": ["name", "price"]},
    )
    provider.get_models()  # rows of the current page
    provider.get_total_count()  # all rows
"""

# pylint: disable=unnecessary-ellipsis

from __future__ import annotations

import contextlib

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..exceptions import InvalidConfigError
from ..helpers import get_value
from ..log import log_query
from .pagination import Pagination
from .sort import Sort, SortDirection


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


def _init_collaborator(value: Any, cls: type, name: str) -> Any:
    """Resolve a pagination/sort option: None builds a default, False disables."""
    if value is None:
        return cls()
    if value is False:
        return None
    if isinstance(value, dict):
        return cls(**value)
    if isinstance(value, cls):
        return value
    raise InvalidConfigError(
        f"The {name!r} option must be a {cls.__name__}, a configuration dict, None or False.",
        attribute=name,
    )


class BaseDataProvider(ABC):
    """Common paging, sorting and key handling for data providers."""

    def __init__(
        self,
        *,
        key: str | Callable[[Any], Any] | None = None,
        model_class: type | None = None,
        pagination: Pagination | dict[str, Any] | bool | None = None,
        sort: Sort | dict[str, Any] | bool | None = None,
    ) -> None:
        """Initialize the provider.

        Parameters
        ----------
        key : str or callable, optional
            Field name or ``callable(row)`` producing each row's key. When
            unset, keys are positions in the underlying collection.
        model_class : type, optional
            The record type of the rows. Used for column labels.
        pagination : Pagination or dict or bool, optional
            None for a default Pagination, False to disable paging.
        sort : Sort or dict or bool, optional
            None for a default Sort, False to disable sorting.
        """
        if pagination is True:
            pagination = None
        if sort is True:
            sort = None
        self.key = key
        self.model_class = model_class
        self._pagination: Pagination | None = _init_collaborator(pagination, Pagination, "pagination")
        self._sort: Sort | None = _init_collaborator(sort, Sort, "sort")
        self._models: list[Any] | None = None
        self._keys: list[Any] | None = None
        self._total_count: int | None = None

    # --- Hooks ---

    @abstractmethod
    def prepare_models(self) -> tuple[list[Any], list[Any]]:
        """Return the rows of the current page and their positional keys."""
        ...

    @abstractmethod
    def prepare_total_count(self) -> int:
        """Return the number of rows across all pages."""
        ...

    # --- Public API ---

    def prepare(self, force: bool = False) -> None:
        """Materialize the current page of rows and their keys."""
        if force or self._models is None:
            models, positions = self.prepare_models()
            self._models = models
            self._keys = self.prepare_keys(models, positions)

    def prepare_keys(self, models: list[Any], positions: list[Any]) -> list[Any]:
        """Derive row keys from :attr:`key`, else keep the positional keys."""
        if self.key is None:
            return positions
        if callable(self.key):
            return [self.key(model) for model in models]
        return [get_value(model, self.key) for model in models]

    def get_models(self) -> list[Any]:
        """Return the rows of the current page."""
        self.prepare()
        return list(self._models or [])

    def get_keys(self) -> list[Any]:
        """Return the keys of the current page, parallel to :meth:`get_models`."""
        self.prepare()
        return list(self._keys or [])

    def get_count(self) -> int:
        """Return the number of rows on the current page."""
        return len(self.get_models())

    def get_total_count(self) -> int:
        """Return the number of rows across all pages."""
        if self._pagination is None:
            return self.get_count()
        if self._total_count is None:
            self._total_count = self.prepare_total_count()
        return self._total_count

    def set_total_count(self, value: int | None) -> None:
        """Override the total row count (None recomputes it)."""
        self._total_count = value

    def get_pagination(self) -> Pagination | None:
        """Return the pagination, or None when paging is disabled."""
        return self._pagination

    def get_sort(self) -> Sort | None:
        """Return the sort, or None when sorting is disabled."""
        return self._sort

    def refresh(self) -> None:
        """Drop cached rows, keys and counts."""
        self._models = None
        self._keys = None
        self._total_count = None


class ArrayDataProvider(BaseDataProvider):
    """Serve rows from an in-memory collection.

    ``all_models`` may be a list of mappings or objects, or a DataFrame
    (anything with ``to_dict`` and ``columns``), which is converted to
    records.
    """

    def __init__(self, all_models: Any = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.all_models: list[Any] = self._normalize(all_models)

    @staticmethod
    def _normalize(data: Any) -> list[Any]:
        if data is None:
            return []
        # pandas DataFrame (duck typing)
        if hasattr(data, "to_dict") and hasattr(data, "columns"):
            # NaN and NaT become None so they render as empty cells
            records = data.to_dict(orient="records")
            missing = data.isna().to_dict(orient="records")
            return [
                {name: None if absent[name] else value for name, value in row.items()}
                for row, absent in zip(records, missing)
            ]
        return list(data)

    def _sort_models(
        self, models: list[tuple[int, Any]], orders: list[tuple[str, SortDirection]]
    ) -> list[tuple[int, Any]]:
        # Stable sort applied from the least significant column up;
        # None sorts after every value in ascending order.
        for column, direction in reversed(orders):
            models = sorted(
                models,
                key=lambda item, c=column: (
                    get_value(item[1], c) is None,
                    get_value(item[1], c),
                ),
                reverse=direction is SortDirection.DESC,
            )
        return models

    def prepare_models(self) -> tuple[list[Any], list[Any]]:
        indexed = list(enumerate(self.all_models))

        sort = self.get_sort()
        if sort is not None:
            orders = sort.get_orders()
            if orders:
                indexed = self._sort_models(indexed, orders)

        pagination = self.get_pagination()
        if pagination is not None:
            pagination.total_count = self.get_total_count()
            if pagination.page_size > 0:
                start = pagination.offset
                indexed = indexed[start : start + pagination.limit]

        return [model for _, model in indexed], [position for position, _ in indexed]

    def prepare_total_count(self) -> int:
        return len(self.all_models)


@dataclass
class SqlQuery:
    """A SQL statement and its parameters, bound to a DB-API connection.

    Handed to a grid as ``query``; the grid turns it into a
    :class:`SqlDataProvider`.
    """

    connection: Any
    sql: str
    params: Sequence[Any] | dict[str, Any] = field(default_factory=tuple)


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SqlDataProvider(BaseDataProvider):
    """Serve rows from a plain SQL statement over a DB-API connection.

    Sorting wraps the statement in a sub-select ordered by the requested
    columns; paging appends ``LIMIT``/``OFFSET``. Only attributes declared
    on the :class:`Sort` can reach the ``ORDER BY`` clause.
    """

    def __init__(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] | dict[str, Any] = (),
        *,
        total_count: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.connection = connection
        self.sql = sql.strip().rstrip(";")
        self.params = params
        self.set_total_count(total_count)

    @classmethod
    def from_query(cls, query: SqlQuery, **kwargs: Any) -> SqlDataProvider:
        """Build a provider for a :class:`SqlQuery`."""
        return cls(query.connection, query.sql, query.params, **kwargs)

    def _execute(self, sql: str) -> tuple[list[str], list[Any]]:
        log_query(type(self).__name__, sql, self.params)
        with contextlib.closing(self.connection.cursor()) as cursor:
            cursor.execute(sql, self.params)
            names = [column[0] for column in cursor.description or ()]
            return names, cursor.fetchall()

    def build_sql(self) -> str:
        """Return the statement with the current ordering and page applied."""
        sql = self.sql

        sort = self.get_sort()
        orders = sort.get_orders() if sort is not None else []
        if orders:
            order_by = ", ".join(
                f"{_quote_identifier(column)} {direction.value.upper()}"
                for column, direction in orders
            )
            sql = f"SELECT * FROM ({sql}) AS restgrid_sorted ORDER BY {order_by}"

        pagination = self.get_pagination()
        if pagination is not None:
            pagination.total_count = self.get_total_count()
            if pagination.limit >= 0:
                sql = f"{sql} LIMIT {int(pagination.limit)} OFFSET {int(pagination.offset)}"
        return sql

    def prepare_models(self) -> tuple[list[Any], list[Any]]:
        names, rows = self._execute(self.build_sql())
        models = [dict(zip(names, row)) for row in rows]
        return models, list(range(len(models)))

    def prepare_total_count(self) -> int:
        _, rows = self._execute(f"SELECT COUNT(*) FROM ({self.sql}) AS restgrid_count")
        return int(rows[0][0]) if rows else 0
