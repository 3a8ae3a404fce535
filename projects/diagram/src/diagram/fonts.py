"""Approximate string widths for the fonts used in schema diagrams."""

from math import ceil

# Average character width for anything not listed, in em
DEFAULT_WIDTH = 0.6

# Width classes in em, keyed by lowercased font family
CHAR_WIDTHS: dict[str, tuple[tuple[str, float], ...]] = {
    "arial": (
        ("ijl.,:;!|'", 0.23),
        ("fIt[]/\\- ", 0.28),
        ('r()"*', 0.34),
        ("Jcksvxyz", 0.5),
        ("abdeghnopqu0123456789_L?$#", 0.56),
        ("FTZ", 0.61),
        ("ABEKPSVXY&", 0.67),
        ("CDHNRUw", 0.73),
        ("GOQ", 0.78),
        ("Mm%", 0.84),
        ("W@", 0.95),
    ),
    "times": (
        ("ijlt.,:;!|' ", 0.28),
        ("fr()[]/\\-", 0.33),
        ("Iaces\"*", 0.44),
        ("bdghknopquvxyz0123456789_J", 0.5),
        ("FLPSTZ", 0.56),
        ("BCERV", 0.67),
        ("ADGHKNOQUXY", 0.72),
        ("wm", 0.78),
        ("M%", 0.89),
        ("W@", 0.94),
    ),
    # Monospaced: every character is the same width
    "courier": (),
}
CHAR_WIDTHS["helvetica"] = CHAR_WIDTHS["arial"]


def _char_width(char: str, classes: tuple[tuple[str, float], ...]) -> float:
    """Look up the width of a single character in em."""
    return next(
        (width for chars, width in classes if char in chars),
        DEFAULT_WIDTH,
    )


def string_width(text: str, font: str, font_size: float) -> int:
    """Return the rendered width of text, rounded up to whole units."""
    classes = CHAR_WIDTHS.get(font.lower(), ())
    em = sum(_char_width(char, classes) for char in text)
    return ceil(round(em * font_size, 6))
