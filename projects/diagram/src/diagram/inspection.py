"""Table metadata, positions and foreign keys read from a live database."""

from collections.abc import Iterable, Mapping
from pathlib import Path
from tomllib import load

from sqlalchemy import Engine, create_engine, inspect
from sqlalchemy.engine.interfaces import ReflectedForeignKeyConstraint

from diagram.types import Direction, ForeignKeyRecord, Position


def read_only_sqlite(sqlite_location: Path) -> Engine:
    """Create a read-only SQLAlchemy engine for SQLite database."""
    connection_string = f"sqlite:///{sqlite_location}?mode=ro"
    return create_engine(connection_string, connect_args={"uri": True})


def load_coordinates(path: Path) -> dict[str, Position]:
    """Load table positions from a TOML file of ``[tables.<name>]`` entries."""
    with path.open("rb") as f:
        tables = load(f).get("tables", {})
    return {
        name: Position(float(coords["x"]), float(coords["y"]))
        for name, coords in tables.items()
    }


def grid_positions(
    tables: Iterable[str],
    columns: int = 4,
    spacing: tuple[float, float] = (250, 300),
) -> dict[str, Position]:
    """Place tables left to right, top to bottom on a regular grid."""
    step_x, step_y = spacing
    return {
        name: Position((index % columns) * step_x, (index // columns) * step_y)
        for index, name in enumerate(tables)
    }


def _build_foreign_key(
    source_table: str,
    fk: ReflectedForeignKeyConstraint,
) -> ForeignKeyRecord:
    """Build a foreign key record from SQLAlchemy foreign key info."""
    return {
        "source_table": source_table,
        "target_table": fk["referred_table"],
        "column_mappings": [
            {
                "source_column": source_col,
                "target_column": target_col,
            }
            for source_col, target_col in zip(
                fk["constrained_columns"],
                fk["referred_columns"],
                strict=True,
            )
        ],
    }


class InspectorLookup:
    """Schema lookup backed by SQLAlchemy reflection."""

    def __init__(self, engine: Engine, positions: Mapping[str, Position]) -> None:
        self.inspector = inspect(engine)
        self.positions = dict(positions)

    def table_names(self) -> list[str]:
        """Return every table in the database."""
        return self.inspector.get_table_names()

    def primary_key(self, table: str) -> list[str]:
        """Return the primary key columns of a table."""
        return self.inspector.get_pk_constraint(table)["constrained_columns"]

    def fields(self, table: str, *, keys_only: bool = False) -> list[str]:
        """Return column names, optionally only those taking part in a key."""
        columns = [column["name"] for column in self.inspector.get_columns(table)]
        if not keys_only:
            return columns

        keys = set(self.primary_key(table))
        for index in self.inspector.get_indexes(table):
            keys.update(name for name in index["column_names"] if name)
        for unique in self.inspector.get_unique_constraints(table):
            keys.update(unique["column_names"])
        for fk in self.inspector.get_foreign_keys(table):
            keys.update(fk["constrained_columns"])

        return [name for name in columns if name in keys]

    def position(self, table: str) -> Position | None:
        """Return the stored page position of a table, if any."""
        return self.positions.get(table)

    def foreign_keys(self, table: str, direction: Direction) -> list[ForeignKeyRecord]:
        """Return foreign keys declared by the table or pointing at it."""
        if direction == "referencing":
            return [
                _build_foreign_key(table, fk)
                for fk in self.inspector.get_foreign_keys(table)
            ]
        return [
            _build_foreign_key(other, fk)
            for other in self.table_names()
            for fk in self.inspector.get_foreign_keys(other)
            if fk["referred_table"] == table
        ]
