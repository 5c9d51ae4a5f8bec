"""Color normalisation and the palette active during an update cycle."""
from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

from PyQt6.QtGui import QColor

from .config import DEFAULT_PALETTE

ColorLike = Union[str, QColor]

_active_palette: Optional[Tuple[str, ...]] = None


def color_name(color: ColorLike) -> str:
    """Return ``#rrggbb`` (or ``#aarrggbb`` when translucent) for any color Qt understands."""
    qcolor = color if isinstance(color, QColor) else QColor(color)
    if not qcolor.isValid():
        raise ValueError(f"Invalid color: {color!r}")
    if qcolor.alpha() < 255:
        return qcolor.name(QColor.NameFormat.HexArgb)
    return qcolor.name()


def use_palette(colors: Optional[Sequence[ColorLike]]) -> None:
    """Make ``colors`` the palette for default colors until :func:`clear_palette`."""
    global _active_palette
    _active_palette = tuple(color_name(c) for c in colors) if colors else None


def clear_palette() -> None:
    global _active_palette
    _active_palette = None


def default_color(index: int) -> str:
    palette = _active_palette or DEFAULT_PALETTE
    return palette[max(index, 0) % len(palette)]
