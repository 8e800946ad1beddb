"""Record and filter models that know their attribute labels."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, ValidationError

from .helpers import camel2words
from .log import debug


if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class AttributeLabelProvider(Protocol):
    """Anything that can name an attribute for a column header.

    Returning ``None`` means "no opinion", and the next label source is
    consulted.
    """

    def get_attribute_label(self, attribute: str) -> str | None:
        """Return the display label of ``attribute``."""
        ...


# Label-only instances returned by Model.instance(), keyed by class
_instances: dict[type, Model] = {}


class Model(BaseModel):
    """Base class for row records and filter models.

    Labels come from ``Field(title=...)`` or an overridden
    :meth:`attribute_labels`; anything else is humanized from the
    attribute name.

    Example:
        class Product(Model):
            id: int
            name: str = Field(title="Product name")
            created_at: datetime | None = None

        Product.get_attribute_label("name")  # "Product name"
        Product.get_attribute_label("created_at")  # "Created At"
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    @classmethod
    def attributes(cls) -> list[str]:
        """Return the names of the model's attributes in declaration order."""
        return list(cls.model_fields)

    @classmethod
    def attribute_labels(cls) -> dict[str, str]:
        """Return explicit labels keyed by attribute name."""
        return {name: info.title for name, info in cls.model_fields.items() if info.title}

    @classmethod
    def instance(cls) -> Model:
        """Return a shared instance of this class built without validation.

        Useful where an object (rather than the class) is expected, such as
        a filter model with no values loaded yet.
        """
        if cls not in _instances:
            _instances[cls] = cls.model_construct()
        return _instances[cls]

    @classmethod
    def get_attribute_label(cls, attribute: str) -> str:
        """Return the explicit label of ``attribute`` or its humanized name."""
        labels = cls.attribute_labels()
        if attribute in labels:
            return labels[attribute]
        return camel2words(attribute)

    def load(self, params: Mapping[str, Any]) -> bool:
        """Assign known attributes from request parameters.

        Unknown keys are ignored; values that fail validation leave the
        attribute unchanged.

        Returns
        -------
        bool
            True if at least one attribute was assigned.
        """
        loaded = False
        for name in self.attributes():
            if name not in params:
                continue
            try:
                setattr(self, name, params[name])
            except ValidationError as exc:
                debug(f"Filter value for '{name}' rejected: {exc.errors()[0]['msg']}")
                continue
            loaded = True
        return loaded
