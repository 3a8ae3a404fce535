"""Shared fixtures for diagram tests."""

from collections.abc import Callable

import pytest
from fakes import StaticLookup, foreign_key

from diagram import Position, create_surface
from diagram.surfaces import Canvas
from diagram.types import ForeignKeyRecord


@pytest.fixture(name="shop_lookup")
def create_shop_lookup() -> StaticLookup:
    """Three tables where orders reference customers and products."""
    return StaticLookup(
        columns={
            "customers": ["id", "name", "email"],
            "orders": ["id", "customer_id", "product_id", "quantity"],
            "products": ["id", "title"],
        },
        positions={
            "customers": Position(0, 0),
            "orders": Position(300, 40),
            "products": Position(600, 200),
        },
        keys={"customers": ["id"], "orders": ["id"], "products": ["id"]},
        foreign=[
            foreign_key("orders", "customers", ("customer_id", "id")),
            foreign_key("orders", "products", ("product_id", "id")),
        ],
    )


@pytest.fixture(name="svg_surface")
def create_svg_surface() -> Canvas:
    """Empty SVG drawing surface."""
    surface = create_surface("svg")
    assert isinstance(surface, Canvas)
    return surface


@pytest.fixture(name="make_lookup")
def create_make_lookup() -> type[StaticLookup]:
    """Factory for custom in-memory lookups."""
    return StaticLookup


@pytest.fixture(name="make_foreign_key")
def create_make_foreign_key() -> Callable[..., ForeignKeyRecord]:
    """Factory for foreign key records."""
    return foreign_key
