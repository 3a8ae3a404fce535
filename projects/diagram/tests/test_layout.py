"""Tests for table and relation geometry."""

from random import Random

import pytest
from fakes import StaticLookup

from diagram import (
    BoundingBox,
    DiagramOptions,
    MissingCoordinatesError,
    Position,
    RelationLayout,
    TableLayout,
)
from diagram.fonts import string_width
from diagram.layout import (
    DEFAULT_RELATION_COLOR,
    PRIMARY_KEY_FILL,
    RELATION_COLORS,
    TITLE_FILL,
    TITLE_STEP,
)
from diagram.surfaces import Canvas


def test_bounding_box_tracks_extrema() -> None:
    """Test that observing rectangles widens the box to their union."""
    box = BoundingBox()
    assert box.empty

    box.observe(TableLayout("a", x=10, y=20, width=50, cell_height=20, fields=("id",)))
    box.observe(TableLayout("b", x=-5, y=100, width=30, cell_height=20, fields=()))

    assert not box.empty
    assert (box.x_min, box.y_min) == (-5, 20)
    assert (box.x_max, box.y_max) == (60, 120)
    assert box.bordered(15) == (75, 135, -20, 5)


def test_bounding_box_first_observation_wins() -> None:
    """Test that the sentinels never leak into the extrema."""
    box = BoundingBox()
    box.observe(TableLayout("far", x=1e9, y=1e9, width=1, cell_height=1, fields=()))

    assert box.x_min == 1e9
    assert box.x_max == 1e9 + 1


def test_string_width_monospace() -> None:
    """Test that unknown fonts use the average character width."""
    assert string_width("abc", "Courier", 10) == 18
    assert string_width("", "Arial", 16) == 0


def test_string_width_proportional() -> None:
    """Test that narrow characters are narrower than wide ones."""
    assert string_width("iii", "Arial", 16) < string_width("WWW", "Arial", 16)


def test_table_layout_size(shop_lookup: StaticLookup) -> None:
    """Test header plus one cell per field and a width that fits every label."""
    layout = TableLayout.create(shop_lookup, "customers", DiagramOptions())

    assert layout.cell_height == 20
    assert layout.height == 4 * 20
    assert (layout.x, layout.y) == (0, 0)
    for name in layout.fields:
        assert layout.width >= string_width(name, "Arial", 16)
    assert layout.width >= string_width(layout.title, "Arial", 16)


def test_table_layout_grows_to_fit_title(make_lookup: type[StaticLookup]) -> None:
    """Test that the width grows in fixed steps until the title fits."""
    name = "a_rather_long_table_name"
    lookup = make_lookup(columns={name: ["id"]}, positions={name: Position(0, 0)})
    layout = TableLayout.create(lookup, name, DiagramOptions())

    title_width = string_width(name, "Arial", 16)
    assert layout.width >= title_width
    assert layout.width - TITLE_STEP < title_width


def test_table_layout_dimension_title(shop_lookup: StaticLookup) -> None:
    """Test that the table size prefixes the title when requested."""
    layout = TableLayout.create(
        shop_lookup,
        "products",
        DiagramOptions(table_dimension=True),
    )

    assert layout.title == f"{layout.width:.0f}x{layout.height:.0f} products"
    assert layout.width >= string_width(layout.title, "Arial", 16)


def test_table_layout_show_keys_only(shop_lookup: StaticLookup) -> None:
    """Test that only key fields are listed when keys are requested."""
    layout = TableLayout.create(shop_lookup, "orders", DiagramOptions(show_keys=True))

    assert layout.fields == ("id",)


def test_table_layout_missing_coordinates(make_lookup: type[StaticLookup]) -> None:
    """Test that a table without a stored position is rejected."""
    lookup = make_lookup(columns={"ghost": ["id"]}, positions={})

    with pytest.raises(MissingCoordinatesError, match="ghost"):
        TableLayout.create(lookup, "ghost", DiagramOptions())


def test_table_anchor_rows() -> None:
    """Test that fields anchor at the middle of their row."""
    layout = TableLayout("t", x=10, y=0, width=80, cell_height=20, fields=("a", "b"))

    assert layout.anchor("a") == (10, 90, 30)
    assert layout.anchor("b") == (10, 90, 50)
    # Hidden fields connect to the header
    assert layout.anchor("hidden").y == 10


def test_table_draw(svg_surface: Canvas) -> None:
    """Test that the header is drawn first and primary keys are highlighted."""
    layout = TableLayout(
        "users",
        x=0,
        y=0,
        width=80,
        cell_height=20,
        fields=("id", "name"),
        primary=frozenset({"id"}),
    )
    layout.draw(svg_surface, show_color=True)

    rects = [e for e in svg_surface.elements if e["tag"] == "rect"]
    texts = [e["text"] for e in svg_surface.elements if e["tag"] == "text"]

    assert [r["fill"] for r in rects] == [TITLE_FILL, PRIMARY_KEY_FILL, None]
    assert [r["y"] for r in rects] == [0, 20, 40]
    assert texts == ["users", "id", "name"]


def test_table_draw_without_color(svg_surface: Canvas) -> None:
    """Test that primary keys are not highlighted without colors."""
    layout = TableLayout(
        "users",
        x=0,
        y=0,
        width=80,
        cell_height=20,
        fields=("id",),
        primary=frozenset({"id"}),
    )
    layout.draw(svg_surface)

    fills = [e["fill"] for e in svg_surface.elements if e["tag"] == "rect"]
    assert fills == [TITLE_FILL, None]


def test_relation_connector_uses_closest_edges(shop_lookup: StaticLookup) -> None:
    """Test that a relation leaves and enters through the facing edges."""
    options = DiagramOptions()
    tables = {
        name: TableLayout.create(shop_lookup, name, options)
        for name in ("customers", "orders")
    }
    relation = RelationLayout("orders", "customer_id", "customers", "id")

    connector = relation.connector(tables)

    assert connector.src_dir == -1
    assert connector.x_src == 300
    assert connector.y_src == 40 + 2.5 * 20
    assert connector.dest_dir == 1
    assert connector.x_dest == tables["customers"].width
    assert connector.y_dest == 1.5 * 20


def test_relation_draw_default_color(svg_surface: Canvas) -> None:
    """Test that a relation is three connector lines and two arrow heads."""
    tables = {
        "a": TableLayout("a", x=0, y=0, width=50, cell_height=20, fields=("b_id",)),
        "b": TableLayout("b", x=200, y=0, width=50, cell_height=20, fields=("id",)),
    }
    RelationLayout("a", "b_id", "b", "id").draw(svg_surface, tables)

    lines = svg_surface.elements
    assert len(lines) == 7
    assert all(line["tag"] == "line" for line in lines)
    assert {line["stroke"] for line in lines} == {DEFAULT_RELATION_COLOR}


def test_relation_draw_colored(svg_surface: Canvas) -> None:
    """Test that a colored relation uses a single palette color."""
    tables = {
        "a": TableLayout("a", x=0, y=0, width=50, cell_height=20, fields=("b_id",)),
        "b": TableLayout("b", x=200, y=0, width=50, cell_height=20, fields=("id",)),
    }
    RelationLayout("a", "b_id", "b", "id").draw(
        svg_surface,
        tables,
        show_color=True,
        rng=Random(3),
    )

    strokes = {line["stroke"] for line in svg_surface.elements}
    assert len(strokes) == 1
    assert strokes <= set(RELATION_COLORS)


def test_relation_identity() -> None:
    """Test that relations are identified by both endpoints."""
    relation = RelationLayout("a", "x", "b", "y")

    assert relation.identity == ("a", "x", "b", "y")
    assert relation == RelationLayout("a", "x", "b", "y")
