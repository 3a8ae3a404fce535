"""Type definitions for relation schema diagrams."""

from dataclasses import dataclass
from typing import Literal, NamedTuple, Protocol, TypedDict

type Direction = Literal["referencing", "referenced"]

type Format = Literal["svg", "eps"]


class ColumnMapping(TypedDict):
    """Schema for column mapping in foreign keys."""

    source_column: str  # Column in the referencing table
    target_column: str  # Column in the referenced table


class ForeignKeyRecord(TypedDict):
    """Schema for one foreign key constraint between two tables."""

    source_table: str
    target_table: str
    column_mappings: list[ColumnMapping]


class Position(NamedTuple):
    """Stored top-left coordinates of a table on a schema page."""

    x: float
    y: float


class Rectangle(Protocol):
    """Anything with a position and a size."""

    @property
    def x(self) -> float: ...

    @property
    def y(self) -> float: ...

    @property
    def width(self) -> float: ...

    @property
    def height(self) -> float: ...


class SchemaLookup(Protocol):
    """Source of table metadata, page positions and foreign keys."""

    def fields(self, table: str, *, keys_only: bool = False) -> list[str]:
        """Return the ordered field names of a table."""
        ...

    def primary_key(self, table: str) -> list[str]:
        """Return the primary key columns of a table."""
        ...

    def position(self, table: str) -> Position | None:
        """Return the stored page position of a table, if any."""
        ...

    def foreign_keys(self, table: str, direction: Direction) -> list[ForeignKeyRecord]:
        """Return foreign keys where the table is on the given side."""
        ...


class DrawingSurface(Protocol):
    """Output format capable of drawing a relation schema."""

    extension: str
    media_type: str

    def describe(self, title: str, author: str, font: str, font_size: int) -> None:
        """Set document metadata and the default font."""
        ...

    def start_document(
        self,
        x_max: float,
        y_max: float,
        x_min: float,
        y_min: float,
    ) -> None:
        """Open the document with its visible area."""
        ...

    def end_document(self) -> None:
        """Close the document."""
        ...

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: str | None = None,
        stroke: str = "black",
    ) -> None:
        """Draw a rectangle."""
        ...

    def draw_text(self, x: float, y: float, text: str, *, fill: str = "black") -> None:
        """Draw a line of text with its baseline at y."""
        ...

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        stroke: str = "black",
    ) -> None:
        """Draw a straight line."""
        ...

    def get_output(self) -> bytes:
        """Return the finished document."""
        ...


@dataclass(frozen=True)
class DiagramOptions:
    """Rendering switches for a relation schema diagram."""

    show_color: bool = False
    show_keys: bool = False
    table_dimension: bool = False
    all_tables_same_width: bool = False
    font: str = "Arial"
    font_size: int = 16
    border: float = 15
    page_number: int = 1
    color_seed: int | None = 0


@dataclass(frozen=True)
class DiagramOutput:
    """Rendered diagram ready to be written or downloaded."""

    filename: str
    content: bytes
    media_type: str
