"""Version arithmetic for hierarchical survey versioning.

Versions are stored as plain numbers encoding ``major.minor``:

- major: positive integer
- minor: single digit 0-9 (stored as the first decimal place)

Examples:
    v1.0 (original) -> edit -> v1.1
    v1.9 -> edit -> v2.0 (minor overflow auto-promotes)
    v1.x -> edit marked as major -> v2.0
"""

import math
from decimal import Decimal

from backend.app.versioning.errors import InvalidVersionError

INITIAL_VERSION = 1.0
MAX_MINOR = 9

# Tolerance used when checking that a value sits on the one-decimal grid
_GRID_TOLERANCE = 1e-9


def _as_float(version: float | int | Decimal) -> float:
    if isinstance(version, bool) or not isinstance(version, (int, float, Decimal)):
        raise InvalidVersionError(f"Version must be a number, got {type(version).__name__}")

    value = float(version)
    if not math.isfinite(value):
        raise InvalidVersionError(f"Version must be finite, got {version}")
    if value < 0:
        raise InvalidVersionError(f"Version must not be negative, got {version}")
    return value


def parse_version(version: float | int | Decimal) -> tuple[int, int]:
    """Split a numeric version into (major, minor).

    Args:
        version: Numeric version, e.g. 1.2

    Returns:
        Tuple of (major, minor), e.g. (1, 2)

    Raises:
        InvalidVersionError: If the value is not a finite, non-negative number
    """
    value = _as_float(version)
    major = math.floor(value)
    # Half-up rounding absorbs float noise such as 1.2 -> 1.19999...
    minor = math.floor((value - major) * 10 + 0.5)
    return major, minor


def major_of(version: float | int | Decimal) -> int:
    """Major component of a version."""
    return parse_version(version)[0]


def calculate_next_version(current: float | int | Decimal, is_major: bool = False) -> float:
    """Calculate the version that follows `current`.

    Minor increments are the default. A major increment resets minor to 0, and a
    minor increment that would reach 10 is promoted to the next major.

    Args:
        current: Version being branched from
        is_major: Whether the caller explicitly requested a major bump

    Returns:
        Next version rounded to one decimal place
    """
    major, minor = parse_version(current)

    if is_major:
        return float(major + 1)

    next_minor = minor + 1
    if next_minor > MAX_MINOR:
        return float(major + 1)

    return round(major + next_minor / 10, 1)


def format_version(version: float | int | Decimal) -> str:
    """Render a version for display, e.g. 2.3 -> "v2.3", 1 -> "v1.0"."""
    major, minor = parse_version(version)
    if not 0 <= minor <= MAX_MINOR:
        raise InvalidVersionError(f"Version {version} has minor component {minor} outside 0-9")
    return f"v{major}.{minor}"


def is_valid_version(version: float | int | Decimal) -> bool:
    """Check that a value is a usable version.

    Valid versions are >= 1.0, have a minor component in 0-9 and sit on the
    one-decimal grid (1.99 and 1.25 are rejected).
    """
    try:
        value = _as_float(version)
    except InvalidVersionError:
        return False

    if value < INITIAL_VERSION:
        return False

    major, minor = parse_version(value)
    if not 0 <= minor <= MAX_MINOR:
        return False

    return abs(value - (major + minor / 10)) <= _GRID_TOLERANCE
