"""Relation schema diagram generation package."""

from diagram.inspection import (
    InspectorLookup,
    grid_positions,
    load_coordinates,
    read_only_sqlite,
)
from diagram.layout import (
    BoundingBox,
    MissingCoordinatesError,
    RelationLayout,
    TableLayout,
)
from diagram.main import DiagramBuilder
from diagram.surfaces import create_surface
from diagram.types import DiagramOptions, DiagramOutput, Position

__all__ = [
    "BoundingBox",
    "DiagramBuilder",
    "DiagramOptions",
    "DiagramOutput",
    "InspectorLookup",
    "MissingCoordinatesError",
    "Position",
    "RelationLayout",
    "TableLayout",
    "create_surface",
    "grid_positions",
    "load_coordinates",
    "read_only_sqlite",
]
