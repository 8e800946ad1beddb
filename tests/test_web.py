"""Tests for the FastAPI integration.

Uses fastapi.testclient.TestClient, so requests go through the real
middleware stack.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from restgrid.data import ArrayDataProvider, Pagination, Sort
from restgrid.grid import Grid
from restgrid.request import get_query_params
from restgrid.web import QueryParamsMiddleware, grid_response


@pytest.fixture
def client(product_rows):
    """Client for an app serving the product rows as a grid."""
    app = FastAPI()
    app.add_middleware(QueryParamsMiddleware)

    @app.get("/products")
    def products():
        provider = ArrayDataProvider(
            product_rows,
            pagination=Pagination(),
            sort=Sort(attributes=["id", "price"]),
        )
        return grid_response(Grid(data_provider=provider, columns=["id", "name", "price"]))

    @app.get("/params")
    def params():
        return get_query_params()

    @app.get("/typed")
    def typed():
        rows = [{"day": date(2017, 12, 12), "amount": Decimal("1.50")}]
        return grid_response(Grid(data=rows, params={"layout": "items"}), status_code=201)

    with TestClient(app) as test_client:
        yield test_client


class TestQueryParamsMiddleware:
    """Tests for binding request params."""

    def test_binds_query_string(self, client):
        """The handler sees the request's query params."""
        response = client.get("/params", params={"layout": "pager", "page": "2"})
        assert response.json() == {"layout": "pager", "page": "2"}

    def test_last_value_wins(self, client):
        """Repeated params keep their last value."""
        assert client.get("/params?page=1&page=3").json() == {"page": "3"}

    def test_unbound_after_request(self, client):
        """The binding does not leak out of the request."""
        client.get("/params", params={"page": "2"})
        assert get_query_params() == {}


class TestGridResponse:
    """Tests for serving grids."""

    def test_full_grid(self, client):
        """Without params every section is served."""
        body = client.get("/products").json()
        assert list(body) == ["metadata", "pager", "columns", "items"]
        assert body["pager"]["results"]["total"] == 100
        assert body["items"][0] == {"id": 1, "name": "Product 1", "price": 101}

    def test_layout_page_and_sort(self, client):
        """layout, page, per-page and sort come from the query string."""
        body = client.get(
            "/products", params={"layout": "pager,items", "page": "2", "per-page": "10", "sort": "-price"}
        ).json()
        assert list(body) == ["pager", "items"]
        assert body["pager"]["pages"] == {"total": 10, "current": 2}
        assert [item["id"] for item in body["items"][:2]] == [90, 89]

    def test_values_json_encoded(self, client):
        """Dates and decimals are JSON encoded."""
        response = client.get("/typed")
        assert response.status_code == 201
        assert response.json() == {"items": [{"day": "2017-12-12", "amount": 1.5}]}

    def test_dataframe_missing_value(self):
        """A DataFrame with a missing value is served with empty cells."""
        pd = pytest.importorskip("pandas")
        app = FastAPI()
        app.add_middleware(QueryParamsMiddleware)

        @app.get("/prices")
        def prices():
            frame = pd.DataFrame({"id": [1, 2], "price": [1.5, None]})
            return grid_response(Grid(data=frame, empty_cell="-"))

        with TestClient(app) as test_client:
            response = test_client.get("/prices", params={"layout": "items"})
        assert response.status_code == 200
        assert response.json() == {"items": [{"id": 1, "price": 1.5}, {"id": 2, "price": "-"}]}
