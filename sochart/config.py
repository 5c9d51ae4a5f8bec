"""Default values shared across the chart model."""
from __future__ import annotations

from typing import Final, Tuple

UNASSIGNED_SERIAL: Final = -1
PENDING_SERIAL: Final = -2
FIRST_DATA_SERIAL: Final = 1

# Extra relaxation rounds allowed on top of the node count before giving up.
SCHEDULE_ROUND_SLACK: Final = 2

DEFAULT_PALETTE: Tuple[str, ...] = (
    "#c23531",
    "#2f4554",
    "#61a0a8",
    "#d48265",
    "#91c7ae",
    "#749f83",
    "#ca8622",
    "#bda29a",
    "#6e7074",
    "#546570",
    "#c4ccd3",
)

BAND_COLOR_ODD = "#D9E1F2"
BAND_COLOR_EVEN = "#EEF0F3"
TODAY_COLOR = "#FF0000"
TASK_STROKE_COLOR = "black"
TASK_FILL_COLOR = "black"

DEFAULT_TASK_FONT_SIZE = 12
DEFAULT_GROUP_FONT_SIZE = 12
DEFAULT_EXTRA_FONT_SIZE = 9

DEFAULT_GROUP_NAME = "DEFAULT"
