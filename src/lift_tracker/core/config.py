"""
Configuration constants for lift-tracker.

Barbell, plate, and template defaults live here.  Users can override the
equipment and template values through settings.yaml (see settings.py);
the enumerated domains below are fixed.
"""

from pathlib import Path
from typing import Final

# =============================================================================
# EQUIPMENT
# =============================================================================

BAR_WEIGHT: Final[float] = 45  # Empty Olympic bar, lb
PLATES: Final[tuple[float, ...]] = (45, 25, 10, 5, 2.5)  # Available plates, largest first

# =============================================================================
# ENUMERATED LIFT SETTINGS
# =============================================================================

CYCLE_INCREMENTS: Final[tuple[int, ...]] = (5, 10)  # Max increase on cycle rollover
WEIGHT_ROUNDS: Final[tuple[float, ...]] = (1, 2.5, 5)  # Rounding granularity for prescribed weights

DEFAULT_INCREMENT: Final[int] = 5
DEFAULT_ROUND: Final[float] = 5

# =============================================================================
# ONE-REP-MAX ESTIMATE
# =============================================================================

ORM_REP_CAP: Final[int] = 12  # Linear estimate degrades above this many reps
ORM_DIVISOR: Final[float] = 30.0

# =============================================================================
# WORKOUT TEMPLATES
# (percent of training max, reps) per set, in order
# =============================================================================

DEFAULT_TEMPLATES: Final[dict[str, tuple[tuple[float, int], ...]]] = {
    "warmup": ((0.40, 5), (0.50, 5), (0.60, 3)),
    "5-5-5": ((0.65, 5), (0.75, 5), (0.85, 5)),
    "3-3-3": ((0.70, 3), (0.80, 3), (0.90, 3)),
    "5-3-1": ((0.75, 5), (0.85, 3), (0.95, 1)),
}

# =============================================================================
# STORAGE
# =============================================================================

LIFTS_TABLE: Final[str] = "lifts"
CYCLES_TABLE: Final[str] = "cycles"
LOGS_TABLE: Final[str] = "logs"

DATA_DIR_ENV: Final[str] = "LIFT_TRACKER_DIR"
DEFAULT_DATA_DIR: Final[Path] = Path.home() / ".lift-tracker"
SETTINGS_FILENAME: Final[str] = "settings.yaml"
