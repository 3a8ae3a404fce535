"""Drawing surfaces that serialize schema diagrams to vector formats."""

from collections.abc import Callable
from dataclasses import dataclass, field
from math import ceil, floor
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from diagram.types import DrawingSurface, Format

TEMPLATE_DIR = Path(__file__).parent / "templates"

type Element = dict[str, Any]


def format_number(value: float) -> str:
    """Format a coordinate with at most three decimals and no trailing zeros."""
    text = f"{round(value, 3) + 0.0:.3f}"
    return text.rstrip("0").rstrip(".")


def hex_to_rgb(color: str) -> tuple[float, float, float]:
    """Convert #rgb or #rrggbb to color components between 0 and 1."""
    digits = color.lstrip("#")
    if len(digits) == 3:  # noqa: PLR2004
        digits = "".join(d * 2 for d in digits)
    red, green, blue = (int(digits[i : i + 2], 16) / 255 for i in (0, 2, 4))
    return red, green, blue


@dataclass
class Canvas:
    """Records drawing calls and hands them to a format renderer."""

    renderer: Callable[["Canvas"], bytes]
    extension: str
    media_type: str
    title: str = ""
    author: str = ""
    font: str = "Arial"
    font_size: int = 16
    bounds: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    elements: list[Element] = field(default_factory=list)
    finished: bool = False

    def describe(self, title: str, author: str, font: str, font_size: int) -> None:
        """Set document metadata and the default font."""
        self.title = title
        self.author = author
        self.font = font
        self.font_size = font_size

    def start_document(
        self,
        x_max: float,
        y_max: float,
        x_min: float,
        y_min: float,
    ) -> None:
        """Open the document with its visible area."""
        self.bounds = (x_max, y_max, x_min, y_min)
        self.elements = []
        self.finished = False

    def end_document(self) -> None:
        """Close the document."""
        self.finished = True

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
        self.elements.append(
            {
                "tag": "rect",
                "x": x,
                "y": y,
                "width": width,
                "height": height,
                "fill": fill,
                "stroke": stroke,
            },
        )

    def draw_text(self, x: float, y: float, text: str, *, fill: str = "black") -> None:
        """Draw a line of text with its baseline at y."""
        self.elements.append({"tag": "text", "x": x, "y": y, "text": text, "fill": fill})

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
        self.elements.append(
            {"tag": "line", "x1": x1, "y1": y1, "x2": x2, "y2": y2, "stroke": stroke},
        )

    def get_output(self) -> bytes:
        """Return the finished document."""
        if not self.finished:
            msg = "Document has not been ended"
            raise RuntimeError(msg)
        return self.renderer(self)


def render_svg(canvas: Canvas) -> bytes:
    """Serialize a canvas as an SVG document."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["svg"]),
        keep_trailing_newline=True,
    )
    env.filters["num"] = format_number
    template = env.get_template("diagram.svg")

    x_max, y_max, x_min, y_min = canvas.bounds
    return template.render(
        title=canvas.title,
        author=canvas.author,
        font=canvas.font,
        font_size=canvas.font_size,
        x_min=x_min,
        y_min=y_min,
        width=x_max - x_min,
        height=y_max - y_min,
        elements=canvas.elements,
    ).encode()


def escape_postscript(text: str) -> str:
    """Escape text for a PostScript string literal."""
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _setrgbcolor(color: str) -> str:
    """Return the PostScript command selecting a color."""
    color = {"black": "#000", "white": "#fff"}.get(color, color)
    return " ".join(format_number(c) for c in hex_to_rgb(color)) + " setrgbcolor"


def _postscript_commands(element: Element, flip: Callable[[float], str]) -> list[str]:
    """Translate one recorded element into PostScript commands."""
    num = format_number
    if element["tag"] == "rect":
        bottom = flip(element["y"] + element["height"])
        box = f"{num(element['x'])} {bottom} {num(element['width'])} {num(element['height'])}"
        commands = []
        if element["fill"]:
            commands += [_setrgbcolor(element["fill"]), f"{box} rectfill"]
        return [*commands, _setrgbcolor(element["stroke"]), f"{box} rectstroke"]
    if element["tag"] == "text":
        return [
            _setrgbcolor(element["fill"]),
            f"{num(element['x'])} {flip(element['y'])} moveto",
            f"({escape_postscript(element['text'])}) show",
        ]
    return [
        _setrgbcolor(element["stroke"]),
        f"newpath {num(element['x1'])} {flip(element['y1'])} moveto",
        f"{num(element['x2'])} {flip(element['y2'])} lineto stroke",
    ]


def render_eps(canvas: Canvas) -> bytes:
    """Serialize a canvas as Encapsulated PostScript, y axis pointing up."""
    x_max, y_max, x_min, y_min = canvas.bounds

    def flip(y: float) -> str:
        return format_number(y_max + y_min - y)

    font = canvas.font.replace(" ", "-")
    lines = [
        "%!PS-Adobe-3.0 EPSF-3.0",
        f"%%Title: {canvas.title}",
        f"%%Creator: {canvas.author}",
        f"%%BoundingBox: {floor(x_min)} {floor(y_min)} {ceil(x_max)} {ceil(y_max)}",
        "%%EndComments",
        f"/{font} findfont {canvas.font_size} scalefont setfont",
        "1 setlinewidth",
    ]
    for element in canvas.elements:
        lines.extend(_postscript_commands(element, flip))
    lines += ["showpage", "%%EOF", ""]
    return "\n".join(lines).encode("latin-1", errors="replace")


FORMATS: dict[Format, tuple[Callable[[Canvas], bytes], str, str]] = {
    "svg": (render_svg, ".svg", "image/svg+xml"),
    "eps": (render_eps, ".eps", "application/postscript"),
}


def create_surface(fmt: Format) -> DrawingSurface:
    """Create an empty drawing surface for an output format."""
    try:
        renderer, extension, media_type = FORMATS[fmt]
    except KeyError as err:
        msg = f"Unknown diagram format: {fmt}"
        raise ValueError(msg) from err
    return Canvas(renderer, extension, media_type)
