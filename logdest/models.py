"""Log record passed from the caller to the formatter."""

from dataclasses import dataclass

from logdest.levels import Level


@dataclass(frozen=True)
class LogRecord:
    level: Level
    message: str
    thread: str      # "" or "main" suppress the thread segment
    path: str        # source file path of the call site
    function: str
    line: int
