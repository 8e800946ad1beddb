"""The Grid: data provider + columns in, REST-ready table description out.

Usage:
    from restgrid import ArrayDataProvider, Grid

    grid = Grid(
        data_provider=ArrayDataProvider(rows, pagination={"page_size": 20}),
        columns=["id", "name:text", "price:decimal:Price (US$)"],
    )
    grid.run()
    # {"metadata": {...}, "pager": {...}, "columns": [...], "items": [...]}

The sections included in the output are chosen per request through the
``layout`` query parameter (``?layout=pager,items``).
"""

from __future__ import annotations

import hashlib
import itertools
import threading

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from .columns import DataColumn, build_column, parse_column_spec
from .config import LAYOUT_SECTIONS, FormatterSettings, get_settings
from .data.pagination import Pagination
from .data.providers import ArrayDataProvider, BaseDataProvider, SqlDataProvider, SqlQuery
from .exceptions import InvalidConfigError
from .formatter import Formatter, get_formatter
from .log import debug, warn
from .renderer import GridViewRenderer
from .request import get_query_params


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .renderer import DataRenderer


_SCALAR_TYPES = (str, bytes, int, float, bool, Decimal, date, datetime, time, Enum)
_NESTED_TYPES = (Mapping, list, tuple, set, frozenset, BaseModel)


class GridIdCounter:
    """Thread-safe, monotonically increasing counter for grid ids."""

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        """Return the next counter value."""
        with self._lock:
            return next(self._counter)


class _IdCounterHolder:
    """Holder for the process-wide id counter."""

    instance: GridIdCounter = GridIdCounter()


def get_id_counter() -> GridIdCounter:
    """Return the counter used by grids that are not given one."""
    return _IdCounterHolder.instance


def reset_id_counter(start: int = 0) -> GridIdCounter:
    """Replace the process-wide id counter and return the new one."""
    _IdCounterHolder.instance = GridIdCounter(start)
    return _IdCounterHolder.instance


def _is_guessable(value: Any) -> bool:
    """Whether a field value can be shown in a single cell."""
    if value is None or isinstance(value, _SCALAR_TYPES):
        return True
    if isinstance(value, _NESTED_TYPES):
        return False
    return type(value).__str__ is not object.__str__


class Grid:  # pylint: disable=too-many-instance-attributes
    """A table description built from a data provider and column definitions.

    The constructor calls :meth:`init`, so a grid is ready to
    :meth:`run` as soon as it exists.
    """

    def __init__(  # pylint: disable=too-many-arguments,too-many-locals
        self,
        *,
        data_provider: BaseDataProvider | None = None,
        data: Any = None,
        query: SqlQuery | None = None,
        batch_size: int | None = None,
        columns: Sequence[str | Mapping[str, Any] | DataColumn] | None = None,
        formatter: Formatter | FormatterSettings | dict[str, Any] | None = None,
        filter_model: Any = None,
        caption: str | None = None,
        description: str | None = None,
        options: dict[str, Any] | None = None,
        show_header: bool = True,
        show_filters: bool = True,
        show_footer: bool = False,
        empty_cell: Any = None,
        params: Mapping[str, Any] | None = None,
        layout_param: str | None = None,
        separator: str | None = None,
        default_layout: Sequence[str] | None = None,
        row_data_cell_render: Callable[[Grid, dict[str, Any]], dict[str, Any]] | None = None,
        renderer: DataRenderer | None = None,
        grid_id: str | None = None,
        id_counter: GridIdCounter | None = None,
    ) -> None:
        """Configure and initialize the grid.

        Parameters
        ----------
        data_provider : BaseDataProvider, optional
            The source of rows, keys, counts, pagination and sort.
        data : Any, optional
            Rows (list of records or a DataFrame) wrapped in an
            ArrayDataProvider when ``data_provider`` is not set.
        query : SqlQuery, optional
            Query wrapped in a SqlDataProvider when neither
            ``data_provider`` nor ``data`` is set.
        batch_size : int, optional
            Page size of the provider built from ``query``.
        columns : list, optional
            Column definitions: compact strings, dicts or DataColumn
            instances. Guessed from the first row when empty.
        formatter : Formatter or FormatterSettings or dict, optional
            Value formatter, or the configuration to build one. Defaults to
            the formatter built from the settings.
        filter_model : Any, optional
            Model holding the current filter values.
        caption, description : str, optional
            Texts describing the table.
        options : dict, optional
            Free-form options passed through to the metadata section.
        show_header, show_filters, show_footer : bool
            Display hints for the client.
        empty_cell : Any
            Cell value used when a row has no value for a column.
        params : Mapping, optional
            Request parameters to read the layout from. Defaults to the
            query parameters of the current request.
        layout_param : str, optional
            Name of the layout request parameter.
        separator : str, optional
            Separator between section names in the layout parameter.
        default_layout : list[str], optional
            Sections rendered when the request selects none.
        row_data_cell_render : callable, optional
            ``func(grid, cells) -> cells`` applied to each row's cells
            after every column.
        renderer : DataRenderer, optional
            Renderer producing the output. Defaults to GridViewRenderer.
        grid_id : str, optional
            Explicit grid id. Generated when not set.
        id_counter : GridIdCounter, optional
            Counter used to generate the id.
        """
        settings = get_settings()

        self.data_provider = data_provider
        self.data = data
        self.query = query
        self.batch_size = batch_size if batch_size is not None else settings.batch_size
        self.columns: list[Any] = list(columns or [])
        self.formatter: Any = formatter
        self.filter_model = filter_model
        self.caption = caption
        self.description = description
        self.options = dict(options or {})
        self.show_header = show_header
        self.show_filters = show_filters
        self.show_footer = show_footer
        self.empty_cell = empty_cell
        self.params = dict(params) if params is not None else None
        self.layout_param = layout_param or settings.layout.param
        self.separator = separator or settings.layout.separator
        self.default_layout = list(
            default_layout if default_layout is not None else settings.layout.default
        )
        self.row_data_cell_render = row_data_cell_render
        self.renderer = renderer

        self._id = grid_id
        self._id_counter = id_counter
        self._layout: list[str] | None = None

        self.init()

    # --- Identity ---

    def get_id(self) -> str:
        """Return the grid id, generating it on first access."""
        if not self._id:
            counter = self._id_counter or get_id_counter()
            cls = type(self)
            digest = hashlib.md5(f"{cls.__module__}.{cls.__qualname__}".encode()).hexdigest()
            self._id = f"{digest}_{counter.next()}"
        return self._id

    @property
    def id(self) -> str:
        """The grid id."""
        return self.get_id()

    # --- Lifecycle ---

    def init(self) -> None:
        """Resolve the data provider, formatter, renderer and columns.

        Raises
        ------
        InvalidConfigError
            If there is no data source, the formatter is neither a
            Formatter nor a configuration for one, or a column does not
            resolve to a DataColumn.
        """
        self._init_data_provider()
        self._init_formatter()

        if self.renderer is None:
            self.renderer = GridViewRenderer()

        self.init_columns()
        debug(
            f"Grid {self.get_id()} initialized with {len(self.columns)} column(s) "
            f"over {type(self.data_provider).__name__}"
        )

    def _init_data_provider(self) -> None:
        if self.data_provider is not None:
            if not isinstance(self.data_provider, BaseDataProvider):
                raise InvalidConfigError(
                    "The 'data_provider' property must be a BaseDataProvider.",
                    attribute="data_provider",
                )
            return

        if self.data is not None:
            self.data_provider = ArrayDataProvider(self.data)
        elif self.query is not None:
            if not isinstance(self.query, SqlQuery):
                raise InvalidConfigError(
                    "The 'query' property must be a SqlQuery.", attribute="query"
                )
            self.data_provider = SqlDataProvider.from_query(
                self.query, pagination=Pagination(page_size=self.batch_size)
            )
        else:
            raise InvalidConfigError(
                "One of 'data_provider', 'data' or 'query' must be set.",
                attribute="data_provider",
            )

    def _init_formatter(self) -> None:
        if self.formatter is None:
            self.formatter = get_formatter()
        elif isinstance(self.formatter, FormatterSettings):
            self.formatter = Formatter.from_settings(self.formatter)
        elif isinstance(self.formatter, dict):
            try:
                self.formatter = Formatter(**self.formatter)
            except ValidationError as exc:
                raise InvalidConfigError(
                    f"Invalid formatter configuration: {exc.errors()[0]['msg']}",
                    attribute="formatter",
                ) from exc

        if not isinstance(self.formatter, Formatter):
            raise InvalidConfigError(
                'The "formatter" property must be either a Formatter object or a configuration dict.',
                attribute="formatter",
            )

    def run(self) -> dict[str, Any]:
        """Render the grid.

        Returns
        -------
        dict[str, Any]
            Up to four sections (metadata, pager, columns, items), in the
            order of :meth:`get_layout_sections`.
        """
        return self.renderer.run("main", grid=self)

    # --- Layout ---

    def get_layout_sections(self, refresh: bool = False) -> list[str]:
        """Return the sections requested for rendering.

        Reads :attr:`layout_param` from :attr:`params` (or the current
        request), keeps the known section names in the requested order and
        falls back to :attr:`default_layout` when none remain. The result is
        cached until ``refresh`` is True.
        """
        if self._layout is None or refresh:
            params = self.params if self.params is not None else get_query_params()
            layout: list[str] = []

            value = params.get(self.layout_param)
            if value is not None:
                for section in self.parse_layout_param(value):
                    if section in LAYOUT_SECTIONS and section not in layout:
                        layout.append(section)

            if not layout:
                if value is not None:
                    debug(f"Layout {value!r} selects no known section, using the default")
                layout = list(self.default_layout)

            self._layout = layout

        return list(self._layout)

    def parse_layout_param(self, param: Any) -> list[str]:
        """Split the layout parameter into section names."""
        if not isinstance(param, (str, int, float)) or isinstance(param, bool):
            return []
        return [section.strip() for section in str(param).split(self.separator)]

    # --- Columns ---

    def init_columns(self) -> None:
        """Turn the configured column definitions into DataColumn objects.

        Guesses the columns when none are configured and drops invisible
        columns.
        """
        if not self.columns:
            self.columns = list(self.guess_columns())

        columns: list[DataColumn] = []
        for definition in self.columns:
            if isinstance(definition, str):
                column = self.create_data_column(definition)
            else:
                column = build_column(definition, self)

            if not isinstance(column, DataColumn):
                raise InvalidConfigError(
                    f"The column must be class type of {DataColumn.__name__}",
                    attribute="columns",
                )

            if not column.visible:
                debug(f"Dropping invisible column '{column.attribute}'")
                continue

            columns.append(column)

        self.columns = columns

    def create_data_column(self, text: str) -> DataColumn:
        """Create a DataColumn from ``"attribute[:format[:label]]"``."""
        return build_column(parse_column_spec(text), self)

    def guess_columns(self) -> list[str]:
        """Return column names guessed from the first row of the data provider.

        Fields holding None, scalars or values with their own string form
        become columns; nested structures are skipped.
        """
        models = self.data_provider.get_models()
        if not models:
            warn(f"Grid {self.get_id()} has no columns and no rows to guess them from")
            return []

        model = models[0]
        if isinstance(model, Mapping):
            items = list(model.items())
        elif isinstance(model, BaseModel):
            items = [(name, getattr(model, name)) for name in type(model).model_fields]
        elif hasattr(model, "__dict__"):
            items = [(name, value) for name, value in vars(model).items() if not name.startswith("_")]
        else:
            return []

        names = [str(name) for name, value in items if _is_guessable(value)]
        debug(f"Guessed columns: {names}")
        return names
