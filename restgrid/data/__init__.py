"""Data providers, pagination and sorting for grids."""

from .pagination import Pagination
from .providers import ArrayDataProvider, BaseDataProvider, SqlDataProvider, SqlQuery
from .sort import Sort, SortAttribute, SortDirection


__all__ = [
    "ArrayDataProvider",
    "BaseDataProvider",
    "Pagination",
    "Sort",
    "SortAttribute",
    "SortDirection",
    "SqlDataProvider",
    "SqlQuery",
]
