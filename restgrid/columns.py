"""Grid columns: how to read, format and describe one field of a row.

Columns are typed pydantic models. They are usually built by a
:class:`~restgrid.grid.Grid` from one of three configuration forms:

- a compact string ``"attribute[:format[:label]]"``;
- a dict of column fields, with an optional ``"class"`` entry naming a
  :class:`DataColumn` subclass (or its dotted import path);
- a ready :class:`DataColumn` instance.

Usage:
    grid = Grid(
        data_provider=provider,
        columns=[
            {"class": SerialColumn},
            "name:text:Product",
            {"attribute": "price", "format": ["decimal", 2]},
            {"attribute": "total", "value": lambda model, key, index, column: model["qty"] * model["price"]},
        ],
    )
"""

from __future__ import annotations

import importlib
import re

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import InvalidConfigError
from .helpers import camel2words, get_value
from .models import AttributeLabelProvider


if TYPE_CHECKING:
    from .grid import Grid


#: ``attribute[:format[:label]]``; the label runs to the end of the string.
COLUMN_SPEC_PATTERN = re.compile(r"^([^:]+)(:(\w*))?(:(.*))?$", re.DOTALL)


# --- Value accessors ---


@dataclass(frozen=True)
class AttributeValue:
    """Read a (possibly dotted) field name from the row."""

    name: str

    def __call__(self, model: Any, key: Any, index: int, column: DataColumn) -> Any:
        return get_value(model, self.name)


@dataclass(frozen=True)
class CallableValue:
    """Compute the value with ``func(model, key, index, column)``."""

    func: Callable[[Any, Any, int, DataColumn], Any]

    def __call__(self, model: Any, key: Any, index: int, column: DataColumn) -> Any:
        return self.func(model, key, index, column)


@dataclass(frozen=True)
class LiteralValue:
    """Use the same value for every row."""

    value: Any

    def __call__(self, model: Any, key: Any, index: int, column: DataColumn) -> Any:
        return self.value


ValueAccessor = AttributeValue | CallableValue | LiteralValue


def to_value_accessor(value: Any) -> ValueAccessor | None:
    """Resolve a column ``value`` option into an accessor.

    Strings name a row field, callables compute the value, accessors are
    kept as they are and anything else is a literal.
    """
    if value is None or isinstance(value, (AttributeValue, CallableValue, LiteralValue)):
        return value
    if isinstance(value, str):
        return AttributeValue(value)
    if callable(value):
        return CallableValue(value)
    return LiteralValue(value)


# --- Columns ---


class DataColumn(BaseModel):
    """A column that shows one attribute (or computed value) of each row."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    grid: Any = Field(default=None, exclude=True, repr=False)

    attribute: str | None = None
    label: str | None = None
    description: str | None = None
    value: Any = None
    format: str | list[Any] = "raw"

    header: Any = None
    footer: Any = None
    filter: list[Any] | dict[str, Any] | None = None

    row_options: dict[str, Any] = Field(default_factory=dict)
    header_options: dict[str, Any] = Field(default_factory=dict)
    footer_options: dict[str, Any] = Field(default_factory=dict)

    visible: bool = True
    enable_sorting: bool = True
    enable_filtering: bool = False

    @field_validator("value", mode="after")
    @classmethod
    def _resolve_value(cls, v: Any) -> ValueAccessor | None:
        return to_value_accessor(v)

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, v: Any) -> Any:
        if isinstance(v, tuple):
            return list(v)
        return v

    # --- Labels ---

    def label_sources(self) -> list[AttributeLabelProvider]:
        """Return the objects asked for a label, in order of precedence.

        1. the record type the data provider is bound to;
        2. the grid's filter model;
        3. the first row of the current page.
        """
        sources: list[AttributeLabelProvider] = []
        provider = getattr(self.grid, "data_provider", None)

        model_class = getattr(provider, "model_class", None)
        if isinstance(model_class, AttributeLabelProvider):
            sources.append(model_class)

        filter_model = getattr(self.grid, "filter_model", None)
        if isinstance(filter_model, AttributeLabelProvider):
            sources.append(filter_model)

        if provider is not None:
            models = provider.get_models()
            if models and isinstance(models[0], AttributeLabelProvider):
                sources.append(models[0])

        return sources

    def render_label(self) -> str:
        """Return the header label, resolving it when not set explicitly."""
        if self.label is not None:
            return self.label

        attribute = self.attribute or ""
        for source in self.label_sources():
            label = source.get_attribute_label(attribute)
            if label is not None:
                return label
        return camel2words(attribute)

    def render_description(self) -> str | None:
        """Return the configured description."""
        return self.description

    # --- Cells ---

    def render_header_cell(self) -> dict[str, Any]:
        """Return the header cell content and options."""
        return {
            "value": self.header if self.header else [],
            "options": self.header_options or {},
        }

    def render_footer_cell(self) -> dict[str, Any]:
        """Return the footer cell content and options."""
        return {
            "value": self.footer if self.footer else [],
            "options": self.footer_options or {},
        }

    def render_filter_cell(self) -> dict[str, Any]:
        """Return the filter items and the value currently filtered by."""
        selected = None
        filter_model = getattr(self.grid, "filter_model", None)

        if filter_model is not None and self.attribute in _filter_attributes(filter_model):
            selected = get_value(filter_model, self.attribute)

        return {
            "selected": selected,
            "items": self.filter if self.filter else [],
            "options": {},
        }

    def render_data_cell(self, model: Any, key: Any, index: int) -> dict[str, Any]:
        """Render one cell as ``{attribute: formatted value}``.

        Parameters
        ----------
        model : Any
            The row being rendered.
        key : Any
            The key of the row in the data provider.
        index : int
            Zero-based position of the row on the current page.

        Returns
        -------
        dict[str, Any]
            A single-entry mapping. A missing value renders as the grid's
            ``empty_cell`` without going through the formatter.
        """
        value = self.get_data_cell_value(model, key, index)
        if value is None:
            value = self.grid.empty_cell
        else:
            value = self.grid.formatter.format(value, self.format)
        return {self.attribute: value}

    def get_data_cell_value(self, model: Any, key: Any, index: int) -> Any:
        """Return the raw value of this column for one row."""
        if self.value is not None:
            return self.value(model, key, index, self)
        if self.attribute is not None:
            return get_value(model, self.attribute)
        return None


class SerialColumn(DataColumn):
    """A column of 1-based row numbers that continue across pages."""

    attribute: str | None = "#"
    header: Any = ""
    enable_sorting: bool = False
    enable_filtering: bool = False
    filter: list[Any] | dict[str, Any] | None = None

    def get_data_cell_value(self, model: Any, key: Any, index: int) -> int:
        """Return the row number; ``value`` and ``attribute`` are ignored."""
        pagination = self.grid.data_provider.get_pagination()
        if pagination is not None:
            return pagination.offset + index + 1
        return index + 1


def _filter_attributes(filter_model: Any) -> list[str]:
    if isinstance(filter_model, Mapping):
        return list(filter_model)
    attributes = getattr(filter_model, "attributes", None)
    return list(attributes()) if callable(attributes) else []


# --- Factories ---


def parse_column_spec(text: str) -> dict[str, Any]:
    """Parse ``"attribute[:format[:label]]"`` into column options.

    Raises
    ------
    InvalidConfigError
        If the text does not match the pattern at all (e.g. it is empty or
        starts with ``:``).

    Example:
        parse_column_spec("price:decimal:Price (US$)")
        # {"attribute": "price", "format": "decimal", "label": "Price (US$)"}
    """
    match = COLUMN_SPEC_PATTERN.match(text)
    if match is None:
        raise InvalidConfigError(
            'The column must be specified in the format of "attribute", '
            '"attribute:format" or "attribute:format:label"',
            attribute="columns",
            spec=text,
        )
    return {
        "attribute": match.group(1),
        "format": match.group(3) or "raw",
        "label": match.group(5),
    }


def resolve_column_class(value: Any) -> type[DataColumn]:
    """Resolve a ``"class"`` option into a :class:`DataColumn` subclass."""
    column_class = value
    if isinstance(value, str):
        module_name, _, class_name = value.rpartition(".")
        try:
            column_class = getattr(importlib.import_module(module_name), class_name)
        except (ImportError, AttributeError, ValueError) as exc:
            raise InvalidConfigError(
                f"Cannot import column class {value!r}", attribute="class"
            ) from exc

    if not (isinstance(column_class, type) and issubclass(column_class, DataColumn)):
        raise InvalidConfigError(
            f"The column must be class type of {DataColumn.__name__}",
            attribute="class",
            value=value,
        )
    return column_class


def build_column(config: DataColumn | Mapping[str, Any], grid: Grid | None) -> DataColumn:
    """Build a column owned by ``grid`` from a column or a dict of options.

    Raises
    ------
    InvalidConfigError
        If the configuration does not describe a valid column.
    """
    if isinstance(config, DataColumn):
        # The caller's instance may already serve another grid
        return config.model_copy(update={"grid": grid})

    if not isinstance(config, Mapping):
        raise InvalidConfigError(
            f"The column must be class type of {DataColumn.__name__}",
            attribute="columns",
            value=config,
        )

    options = {"grid": grid, **config}
    column_class = resolve_column_class(options.pop("class", DataColumn))
    try:
        return column_class(**options)
    except ValidationError as exc:
        raise InvalidConfigError(
            f"Invalid {column_class.__name__} configuration: {exc.errors()[0]['msg']}",
            attribute=config.get("attribute"),
        ) from exc
