"""Relation schema diagram generation."""

from collections.abc import Iterable
from importlib.metadata import PackageNotFoundError, version
from logging import getLogger
from random import Random

from diagram.layout import BoundingBox, RelationLayout, TableLayout
from diagram.types import (
    DiagramOptions,
    DiagramOutput,
    Direction,
    DrawingSurface,
    SchemaLookup,
)

logger = getLogger(__name__)

DIRECTIONS: tuple[Direction, ...] = ("referencing", "referenced")


def toolkit_version() -> str:
    """Return the installed toolkit version."""
    try:
        return version("dbadmin-toolkit")
    except PackageNotFoundError:
        return "dev"


class DiagramBuilder:
    """Lays out the requested tables with their relations and renders them.

    Rendering happens once, in the constructor; ``output`` only reads the
    finished document.
    """

    def __init__(
        self,
        database: str,
        tables: Iterable[str],
        lookup: SchemaLookup,
        surface: DrawingSurface,
        options: DiagramOptions | None = None,
    ) -> None:
        self.database = database
        self.options = options or DiagramOptions()
        self.surface = surface
        self.requested = list(dict.fromkeys(tables))

        self.tables = self._layout_tables(lookup)
        self.relations = self._discover_relations(lookup)

        self.bounding_box = BoundingBox()
        for table in self.tables.values():
            self.bounding_box.observe(table)

        self._render()

    def _layout_tables(self, lookup: SchemaLookup) -> dict[str, TableLayout]:
        """Create one layout per requested table."""
        tables = {
            name: TableLayout.create(lookup, name, self.options)
            for name in self.requested
        }

        if self.options.all_tables_same_width and tables:
            width = max(table.width for table in tables.values())
            tables = {
                name: table.widened(width) for name, table in tables.items()
            }

        return tables

    def _discover_relations(self, lookup: SchemaLookup) -> list[RelationLayout]:
        """Collect one relation per column pair of every foreign key on the page."""
        relations: dict[tuple[str, str, str, str], RelationLayout] = {}

        for name in self.requested:
            for direction in DIRECTIONS:
                for fk in lookup.foreign_keys(name, direction) or []:
                    if (
                        fk["source_table"] not in self.tables
                        or fk["target_table"] not in self.tables
                    ):
                        continue
                    for mapping in fk["column_mappings"]:
                        relation = RelationLayout(
                            source_table=fk["source_table"],
                            source_field=mapping["source_column"],
                            target_table=fk["target_table"],
                            target_field=mapping["target_column"],
                        )
                        relations.setdefault(relation.identity, relation)

        logger.debug(
            "Laid out %d tables and %d relations",
            len(self.tables),
            len(relations),
        )
        return list(relations.values())

    @property
    def title(self) -> str:
        """Document title."""
        return (
            f"Schema of the {self.database} database - "
            f"Page {self.options.page_number}"
        )

    def _render(self) -> None:
        """Draw relations underneath tables."""
        options = self.options
        self.surface.describe(
            self.title,
            f"dbadmin-toolkit {toolkit_version()}",
            options.font,
            options.font_size,
        )
        self.surface.start_document(*self.bounding_box.bordered(options.border))

        rng = Random(options.color_seed)
        for relation in self.relations:
            relation.draw(
                self.surface,
                self.tables,
                show_color=options.show_color,
                rng=rng,
            )

        for table in self.tables.values():
            table.draw(self.surface, show_color=options.show_color)

        self.surface.end_document()

    @property
    def filename(self) -> str:
        """Suggested download name."""
        return f"{self.database}-{self.options.page_number}{self.surface.extension}"

    def output(self) -> DiagramOutput:
        """Return the rendered document."""
        return DiagramOutput(
            filename=self.filename,
            content=self.surface.get_output(),
            media_type=self.surface.media_type,
        )
