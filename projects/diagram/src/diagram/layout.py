"""Geometry of tables and relations on a schema page."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from math import inf, sqrt
from random import Random
from typing import TYPE_CHECKING, NamedTuple

from diagram.fonts import string_width

if TYPE_CHECKING:
    from diagram.types import DiagramOptions, DrawingSurface, Rectangle, SchemaLookup

# Horizontal length of the connector stubs leaving a table
TICK = 10

# Width step used to fit the title into the table header
TITLE_STEP = 7

RELATION_COLORS = ("#c00", "#bbb", "#333", "#cb0", "#0b0", "#0bf", "#b0b")
DEFAULT_RELATION_COLOR = "#333"

TITLE_FILL = "#007"
PRIMARY_KEY_FILL = "#aea"


class MissingCoordinatesError(ValueError):
    """Raised when a table has no stored position on the schema page."""

    def __init__(self, table: str) -> None:
        super().__init__(f"No coordinates configured for table '{table}'")
        self.table = table


@dataclass
class BoundingBox:
    """Running extrema over every observed rectangle."""

    x_min: float = inf
    y_min: float = inf
    x_max: float = -inf
    y_max: float = -inf

    def observe(self, rect: Rectangle) -> None:
        """Widen the box so it contains the rectangle."""
        self.x_max = max(self.x_max, rect.x + rect.width)
        self.y_max = max(self.y_max, rect.y + rect.height)
        self.x_min = min(self.x_min, rect.x)
        self.y_min = min(self.y_min, rect.y)

    @property
    def empty(self) -> bool:
        """Whether nothing has been observed yet."""
        return self.x_min > self.x_max

    def bordered(self, border: float) -> tuple[float, float, float, float]:
        """Return (x_max, y_max, x_min, y_min) widened by a border."""
        if self.empty:
            return border, border, -border, -border
        return (
            self.x_max + border,
            self.y_max + border,
            self.x_min - border,
            self.y_min - border,
        )


class Anchor(NamedTuple):
    """Connection points of a field row: both table edges and the row middle."""

    left: float
    right: float
    y: float


@dataclass(frozen=True)
class TableLayout:
    """A table drawn as a header cell followed by one cell per field."""

    name: str
    x: float
    y: float
    width: float
    cell_height: float
    fields: tuple[str, ...]
    primary: frozenset[str] = field(default_factory=frozenset)
    font: str = "Arial"
    font_size: int = 16
    table_dimension: bool = False

    @classmethod
    def create(
        cls,
        lookup: SchemaLookup,
        name: str,
        options: DiagramOptions,
    ) -> TableLayout:
        """Size and position a table from its metadata."""
        position = lookup.position(name)
        if position is None:
            raise MissingCoordinatesError(name)

        fields = tuple(lookup.fields(name, keys_only=options.show_keys))
        width = max(
            (string_width(f, options.font, options.font_size) for f in fields),
            default=0,
        )
        width += string_width("  ", options.font, options.font_size)

        layout = cls(
            name=name,
            x=position.x,
            y=position.y,
            width=width,
            cell_height=options.font_size + 4,
            fields=fields,
            primary=frozenset(lookup.primary_key(name)),
            font=options.font,
            font_size=options.font_size,
            table_dimension=options.table_dimension,
        )
        return layout.fit_title()

    @property
    def height(self) -> float:
        """Header plus one row per field."""
        return (len(self.fields) + 1) * self.cell_height

    @property
    def title(self) -> str:
        """Header text, prefixed with the table size when requested."""
        if self.table_dimension:
            return f"{self.width:.0f}x{self.height:.0f} {self.name}"
        return self.name

    def fit_title(self) -> TableLayout:
        """Grow the table until the header text fits."""
        layout = self
        while layout.width < string_width(layout.title, self.font, self.font_size):
            layout = replace(layout, width=layout.width + TITLE_STEP)
        return layout

    def widened(self, width: float) -> TableLayout:
        """Return the same table drawn with a shared width."""
        return replace(self, width=width)

    def anchor(self, field_name: str) -> Anchor:
        """Return the connection points of a field; hidden fields use the header."""
        try:
            row = self.fields.index(field_name) + 1.5
        except ValueError:
            row = 0.5
        return Anchor(self.x, self.x + self.width, self.y + row * self.cell_height)

    def draw(self, surface: DrawingSurface, *, show_color: bool = False) -> None:
        """Draw the header and every field cell."""
        surface.draw_rect(self.x, self.y, self.width, self.cell_height, fill=TITLE_FILL)
        surface.draw_text(self.x + 5, self.y + 14, self.title, fill="#fff")

        for row, name in enumerate(self.fields, start=1):
            top = self.y + row * self.cell_height
            fill = PRIMARY_KEY_FILL if show_color and name in self.primary else None
            surface.draw_rect(self.x, top, self.width, self.cell_height, fill=fill)
            surface.draw_text(self.x + 5, top + 14, name)


class Connector(NamedTuple):
    """Resolved end points of a relation and the side each one leaves from."""

    x_src: float
    y_src: float
    src_dir: int
    x_dest: float
    y_dest: float
    dest_dir: int


@dataclass(frozen=True)
class RelationLayout:
    """A foreign key link from a field in one table to a field in another."""

    source_table: str
    source_field: str
    target_table: str
    target_field: str

    @property
    def identity(self) -> tuple[str, str, str, str]:
        """Key that identifies the same link discovered from either end."""
        return (
            self.source_table,
            self.source_field,
            self.target_table,
            self.target_field,
        )

    def connector(self, tables: Mapping[str, TableLayout]) -> Connector:
        """Pick the pair of table edges closest to each other."""
        src = tables[self.source_table].anchor(self.source_field)
        dest = tables[self.target_table].anchor(self.target_field)

        # (distance, x_src, src_dir, x_dest, dest_dir); first minimum wins
        candidates = [
            (abs((src.left - TICK) - (dest.left - TICK)), src.left, -1, dest.left, -1),
            (abs((src.right + TICK) - (dest.left - TICK)), src.right, 1, dest.left, -1),
            (abs((src.left - TICK) - (dest.right + TICK)), src.left, -1, dest.right, 1),
            (abs((src.right + TICK) - (dest.right + TICK)), src.right, 1, dest.right, 1),
        ]
        _, x_src, src_dir, x_dest, dest_dir = min(candidates, key=lambda c: c[0])
        return Connector(x_src, src.y, src_dir, x_dest, dest.y, dest_dir)

    def draw(
        self,
        surface: DrawingSurface,
        tables: Mapping[str, TableLayout],
        *,
        show_color: bool = False,
        rng: Random | None = None,
    ) -> None:
        """Draw the connector with an arrow head at each end."""
        if show_color:
            color = (rng or Random()).choice(RELATION_COLORS)
        else:
            color = DEFAULT_RELATION_COLOR

        c = self.connector(tables)
        src_tick = c.x_src + c.src_dir * TICK
        dest_tick = c.x_dest + c.dest_dir * TICK

        surface.draw_line(c.x_src, c.y_src, src_tick, c.y_src, stroke=color)
        surface.draw_line(dest_tick, c.y_dest, c.x_dest, c.y_dest, stroke=color)
        surface.draw_line(src_tick, c.y_src, dest_tick, c.y_dest, stroke=color)

        root2 = 2 * sqrt(2)
        spread = TICK / root2

        src_tip = c.x_src + c.src_dir * TICK * 0.75
        src_back = c.x_src + c.src_dir * (0.75 - 1 / root2) * TICK
        surface.draw_line(src_tip, c.y_src, src_back, c.y_src + spread, stroke=color)
        surface.draw_line(src_tip, c.y_src, src_back, c.y_src - spread, stroke=color)

        dest_tip = c.x_dest + c.dest_dir * TICK / 2
        dest_back = c.x_dest + c.dest_dir * (0.5 + 1 / root2) * TICK
        surface.draw_line(dest_tip, c.y_dest, dest_back, c.y_dest + spread, stroke=color)
        surface.draw_line(dest_tip, c.y_dest, dest_back, c.y_dest - spread, stroke=color)
