"""Log levels and the default label/colour tables."""

from enum import IntEnum


class Level(IntEnum):
    VERBOSE = 0
    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4


# Xcode-style RGB colour codes
DEFAULT_LEVEL_LABELS = {
    Level.VERBOSE: "VERBOSE",
    Level.DEBUG: "DEBUG",
    Level.INFO: "INFO",
    Level.WARNING: "WARNING",
    Level.ERROR: "ERROR",
}

DEFAULT_LEVEL_COLORS = {
    Level.VERBOSE: "fg200,200,200;",  # silver
    Level.DEBUG: "fg0,0,255;",        # blue
    Level.INFO: "fg0,255,0;",         # green
    Level.WARNING: "fg255,255,0;",    # yellow
    Level.ERROR: "fg255,0,0;",        # red
}


def parse_level(name) -> Level | None:
    """Return the Level for a name like 'info' or an int rank, or None if unknown."""
    if isinstance(name, Level):
        return name
    if isinstance(name, int):
        try:
            return Level(name)
        except ValueError:
            return None
    normalized = str(name).strip().upper()
    return Level.__members__.get(normalized)
