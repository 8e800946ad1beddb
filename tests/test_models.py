"""Tests for label-aware models."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from restgrid.models import AttributeLabelProvider, Model


class Product(Model):
    """Row model used by the tests."""

    id: int
    name: str = Field(title="Product name")
    price: float = 0
    created_at: datetime | None = None


class ProductFilter(Model):
    """Filter model used by the tests."""

    name: str | None = None
    price: float | None = None


class TestLabels:
    """Tests for attribute labels."""

    def test_attributes_in_order(self):
        """attributes() lists fields in declaration order."""
        assert Product.attributes() == ["id", "name", "price", "created_at"]

    def test_title_label(self):
        """Field titles are labels."""
        assert Product.get_attribute_label("name") == "Product name"

    def test_humanized_label(self):
        """Fields without a title are humanized."""
        assert Product.get_attribute_label("created_at") == "Created At"

    def test_overridden_labels(self):
        """attribute_labels() can be overridden."""

        class Custom(Model):
            sku: str = ""

            @classmethod
            def attribute_labels(cls):
                return {"sku": "SKU"}

        assert Custom.get_attribute_label("sku") == "SKU"

    def test_is_label_provider(self):
        """Model classes and instances satisfy AttributeLabelProvider."""
        assert isinstance(Product, AttributeLabelProvider)
        assert isinstance(Product(id=1, name="x"), AttributeLabelProvider)
        assert not isinstance({"id": 1}, AttributeLabelProvider)

    def test_instance_is_shared(self):
        """instance() returns one unvalidated instance per class."""
        first = Product.instance()
        assert isinstance(first, Product)
        assert Product.instance() is first
        assert ProductFilter.instance() is not first


class TestLoad:
    """Tests for loading filter values."""

    def test_loads_known_attributes(self):
        """Known request params are assigned and coerced."""
        model = ProductFilter()
        assert model.load({"name": "Product 1", "price": "101", "page": "2"}) is True
        assert model.name == "Product 1"
        assert model.price == 101.0

    def test_nothing_to_load(self):
        """Unrelated params load nothing."""
        assert ProductFilter().load({"sort": "-id"}) is False

    def test_invalid_value_skipped(self):
        """Values failing validation leave the attribute unchanged."""
        model = ProductFilter(price=5)
        assert model.load({"price": "cheap", "name": "x"}) is True
        assert model.price == 5
        assert model.name == "x"
