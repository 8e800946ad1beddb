"""restgrid - server-side data grids for REST APIs.

A Grid combines a data provider (rows, keys, counts, pagination and sort)
with column definitions and renders a JSON-serializable description of the
table: metadata, pager, column descriptors and formatted row cells.
"""

from .columns import (
    AttributeValue,
    CallableValue,
    DataColumn,
    LiteralValue,
    SerialColumn,
    build_column,
    parse_column_spec,
)
from .config import (
    FormatterSettings,
    GridSettings,
    LayoutSettings,
    LogSettings,
    PaginationSettings,
    SortSettings,
    get_settings,
    reload_settings,
)
from .data import (
    ArrayDataProvider,
    BaseDataProvider,
    Pagination,
    Sort,
    SortDirection,
    SqlDataProvider,
    SqlQuery,
)
from .exceptions import InvalidArgumentError, InvalidConfigError, RestGridException
from .formatter import Formatter, get_formatter
from .grid import Grid, GridIdCounter
from .models import AttributeLabelProvider, Model
from .renderer import NOT_SUPPORTED, DataRenderer, GridViewRenderer
from .request import get_query_params, query_params


__version__ = "0.1.0"

__all__ = [
    "NOT_SUPPORTED",
    "ArrayDataProvider",
    "AttributeLabelProvider",
    "AttributeValue",
    "BaseDataProvider",
    "CallableValue",
    "DataColumn",
    "DataRenderer",
    "Formatter",
    "FormatterSettings",
    "Grid",
    "GridIdCounter",
    "GridSettings",
    "GridViewRenderer",
    "InvalidArgumentError",
    "InvalidConfigError",
    "LayoutSettings",
    "LiteralValue",
    "LogSettings",
    "Model",
    "Pagination",
    "PaginationSettings",
    "RestGridException",
    "SerialColumn",
    "Sort",
    "SortDirection",
    "SortSettings",
    "SqlDataProvider",
    "SqlQuery",
    "build_column",
    "get_formatter",
    "get_query_params",
    "get_settings",
    "parse_column_spec",
    "query_params",
    "reload_settings",
]
