"""Sort: which attributes the current request orders the rows by."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from ..config import get_settings
from ..helpers import camel2words
from ..log import debug
from ..request import get_query_params


class SortDirection(str, Enum):
    """Sort direction of one attribute or column."""

    ASC = "asc"
    DESC = "desc"


class SortAttribute(BaseModel):
    """How one sortable attribute maps onto concrete columns.

    ``asc``/``desc`` list the columns (with their own directions) used when
    the attribute is sorted ascending/descending. A composite attribute
    such as ``name`` may sort by ``last_name`` then ``first_name``.
    """

    asc: dict[str, SortDirection]
    desc: dict[str, SortDirection]
    default: SortDirection = SortDirection.ASC
    label: str | None = None

    @classmethod
    def for_column(cls, name: str) -> SortAttribute:
        """Build the definition of an attribute that sorts by a single column."""
        return cls(
            asc={name: SortDirection.ASC},
            desc={name: SortDirection.DESC},
            label=camel2words(name),
        )


class Sort(BaseModel):
    """Sort configuration and the orders requested by the client.

    The request parameter holds attribute names separated by
    :attr:`separator`; a leading ``-`` requests descending order:
    ``?sort=-price,name``.

    Example:
        sort = Sort(attributes=["name", "price"], params={"sort": "-price"})
        sort.get_attribute_orders()  # {"price": SortDirection.DESC}
        sort.get_orders()  # [("price", SortDirection.DESC)]
    """

    model_config = ConfigDict(validate_assignment=True)

    attributes: dict[str, SortAttribute] = Field(default_factory=dict)
    sort_param: str = Field(default_factory=lambda: get_settings().sort.sort_param)
    separator: str = Field(default_factory=lambda: get_settings().sort.separator, min_length=1)
    enable_multi_sort: bool = Field(default_factory=lambda: get_settings().sort.enable_multi_sort)
    default_order: dict[str, SortDirection] | None = None
    params: dict[str, Any] | None = None

    _attribute_orders: dict[str, SortDirection] | None = PrivateAttr(default=None)

    @field_validator("attributes", mode="before")
    @classmethod
    def _normalize_attributes(cls, v: Any) -> Any:
        """Accept a list of names or a mapping of partial definitions."""
        if v is None:
            return {}
        if isinstance(v, (list, tuple)):
            return {name: SortAttribute.for_column(name) for name in v}
        if isinstance(v, dict):
            result: dict[str, Any] = {}
            for name, definition in v.items():
                if isinstance(definition, dict):
                    base = SortAttribute.for_column(name).model_dump()
                    definition = {**base, **definition}
                result[name] = definition
            return result
        return v

    def _get_sort_param(self) -> str | None:
        params = self.params if self.params is not None else get_query_params()
        value = params.get(self.sort_param)
        return value if isinstance(value, str) else None

    def parse_sort_param(self, param: str) -> list[str]:
        """Split the sort parameter into attribute tokens."""
        return [token.strip() for token in param.strip().split(self.separator) if token.strip()]

    def get_attribute_orders(self, refresh: bool = False) -> dict[str, SortDirection]:
        """Return the requested sort directions keyed by attribute.

        Attributes that are not in :attr:`attributes` are dropped. Only the
        first attribute is kept unless :attr:`enable_multi_sort` is set.
        Falls back to :attr:`default_order` when the request asks for
        nothing sortable.
        """
        if self._attribute_orders is None or refresh:
            orders: dict[str, SortDirection] = {}
            param = self._get_sort_param()
            if param:
                for token in self.parse_sort_param(param):
                    descending = token.startswith("-")
                    name = token[1:] if descending else token
                    if name not in self.attributes:
                        debug(f"Dropping unsortable attribute '{name}' from sort request")
                        continue
                    orders[name] = SortDirection.DESC if descending else SortDirection.ASC
                    if not self.enable_multi_sort:
                        break
            if not orders and self.default_order:
                orders = dict(self.default_order)
            self._attribute_orders = orders
        return dict(self._attribute_orders)

    def get_attribute_order(self, attribute: str) -> SortDirection | None:
        """Return the requested direction of one attribute, if any."""
        return self.get_attribute_orders().get(attribute)

    def get_orders(self, refresh: bool = False) -> list[tuple[str, SortDirection]]:
        """Expand the attribute orders into concrete ``(column, direction)`` pairs."""
        orders: dict[str, SortDirection] = {}
        for attribute, direction in self.get_attribute_orders(refresh).items():
            definition = self.attributes.get(attribute)
            if definition is None:
                # default_order may name a raw column
                orders[attribute] = direction
                continue
            columns = definition.asc if direction is SortDirection.ASC else definition.desc
            orders.update(columns)
        return list(orders.items())

    def has_attribute(self, name: str) -> bool:
        """Whether ``name`` is a sortable attribute."""
        return name in self.attributes
