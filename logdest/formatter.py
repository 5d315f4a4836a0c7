"""Message formatting — date, optionally coloured level tag, call-site detail."""

import re
from datetime import datetime
from typing import Callable

from logdest.config import FormatConfig
from logdest.levels import Level
from logdest.models import LogRecord

# XcodeColors escape sequences
ESCAPE = "\033["
RESET = "\033[;"

DateFormatter = Callable[[str, datetime], str]

_MILLIS_DIRECTIVE = re.compile(r"%[%L]")


def format_date(pattern: str, instant: datetime) -> str:
    """Render instant with a strftime pattern. An empty pattern gives "".

    On top of the strftime directives, %L renders zero-padded milliseconds.
    """
    if not pattern:
        return ""
    millis = f"{instant.microsecond // 1000:03d}"
    pattern = _MILLIS_DIRECTIVE.sub(
        lambda m: millis if m.group() == "%L" else "%%", pattern
    )
    return instant.strftime(pattern)


def _lookup(table, level, default: str = "") -> str:
    value = table.get(level)
    if value is None:
        value = table.get(Level.VERBOSE, default)
    return value


def format_level(level: Level, config: FormatConfig) -> str:
    """Return the level label, wrapped in colour codes when config.colored is set.

    Levels missing from the config tables use the VERBOSE entry.
    """
    label = _lookup(config.level_labels, level)
    if not config.colored:
        return label
    color = _lookup(config.level_colors, level)
    return ESCAPE + color + label + RESET


def base_filename(path: str) -> str:
    """File name without directory or extension: '/a/b/Foo.swift' -> 'Foo'."""
    return path.rsplit("/", 1)[-1].split(".", 1)[0]


def format_message(date_str: str, level_str: str, record: LogRecord,
                   detail_output: bool) -> str:
    text = ""
    if date_str:
        text += f"[{date_str}] "

    if detail_output:
        if record.thread and record.thread != "main":
            text += f"|{record.thread}| "
        file = base_filename(record.path)
        text += f"{file}.{record.function}:{record.line} {level_str}: {record.message}"
    else:
        text += f"{level_str}: {record.message}"
    return text


def format_record(record: LogRecord, config: FormatConfig,
                  instant: datetime | None = None,
                  date_formatter: DateFormatter = format_date) -> str:
    """Render a record with the given config snapshot."""
    if instant is None:
        instant = datetime.now()
    date_str = date_formatter(config.date_format, instant)
    level_str = format_level(record.level, config)
    return format_message(date_str, level_str, record, config.detail_output)
