"""Tests for Sort."""

from __future__ import annotations

from restgrid.data.sort import Sort, SortAttribute, SortDirection
from restgrid.request import query_params


ASC = SortDirection.ASC
DESC = SortDirection.DESC


class TestAttributes:
    """Tests for sortable attribute definitions."""

    def test_list_of_names(self):
        """A list of names becomes single-column attributes."""
        sort = Sort(attributes=["name", "price"])
        assert sort.attributes["price"].model_dump() == SortAttribute(
            asc={"price": ASC}, desc={"price": DESC}, label="Price"
        ).model_dump()

    def test_partial_definition(self):
        """A partial definition is completed from the attribute name."""
        sort = Sort(
            attributes={
                "name": {
                    "asc": {"last_name": "asc", "first_name": "asc"},
                    "desc": {"last_name": "desc", "first_name": "desc"},
                }
            }
        )
        assert sort.attributes["name"].label == "Name"
        assert sort.has_attribute("name")
        assert not sort.has_attribute("last_name")


class TestAttributeOrders:
    """Tests for parsing the sort request."""

    def test_ascending(self):
        """A bare name sorts ascending."""
        sort = Sort(attributes=["name"], params={"sort": "name"})
        assert sort.get_attribute_orders() == {"name": ASC}

    def test_descending(self):
        """A leading minus sorts descending."""
        sort = Sort(attributes=["price"], params={"sort": "-price"})
        assert sort.get_attribute_order("price") is DESC

    def test_unknown_attribute_dropped(self):
        """Attributes that are not sortable are ignored."""
        sort = Sort(attributes=["name"], params={"sort": "password,name"})
        assert sort.get_attribute_orders() == {"name": ASC}

    def test_single_sort_keeps_first(self):
        """Without multi-sort only the first attribute is used."""
        sort = Sort(attributes=["name", "price"], params={"sort": "-price,name"})
        assert sort.get_attribute_orders() == {"price": DESC}

    def test_multi_sort(self):
        """With multi-sort every attribute is used in order."""
        sort = Sort(
            attributes=["name", "price"],
            enable_multi_sort=True,
            params={"sort": "-price, name"},
        )
        assert list(sort.get_attribute_orders().items()) == [("price", DESC), ("name", ASC)]

    def test_default_order(self):
        """default_order applies when the request asks for nothing."""
        sort = Sort(attributes=["name"], default_order={"id": "desc"}, params={})
        assert sort.get_orders() == [("id", DESC)]

    def test_cached_until_refresh(self):
        """Orders are cached until refreshed."""
        sort = Sort(attributes=["name", "price"], params={"sort": "name"})
        assert sort.get_attribute_orders() == {"name": ASC}
        sort.params = {"sort": "price"}
        assert sort.get_attribute_orders() == {"name": ASC}
        assert sort.get_attribute_orders(refresh=True) == {"price": ASC}

    def test_reads_current_request(self):
        """Without params the bound request params are used."""
        with query_params({"sort": "-name"}):
            assert Sort(attributes=["name"]).get_attribute_orders() == {"name": DESC}


class TestOrders:
    """Tests for expanding attribute orders into columns."""

    def test_composite_attribute(self):
        """Composite attributes expand to their columns."""
        sort = Sort(
            attributes={
                "name": {
                    "asc": {"last_name": "asc", "first_name": "asc"},
                    "desc": {"last_name": "desc", "first_name": "desc"},
                }
            },
            params={"sort": "-name"},
        )
        assert sort.get_orders() == [("last_name", DESC), ("first_name", DESC)]
