"""Level filtering — global minimum level plus path/function-scoped overrides."""

import logging
import threading
from dataclasses import dataclass

from logdest.levels import Level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterRule:
    min_level: Level
    path: str = ""       # substring of the caller's path, "" matches any
    function: str = ""   # substring of the caller's function, "" matches any

    def matches(self, level: Level, path: str, function: str) -> bool:
        if self.min_level > level:
            return False
        if not _scope_matches(self.path, path):
            return False
        return _scope_matches(self.function, function)


def _scope_matches(pattern: str, value: str) -> bool:
    return pattern == "" or pattern == value or pattern in value


class FilterRegistry:
    """Append-only rule list consulted when the global minimum level rejects a record.

    Rules are kept in an immutable tuple that is swapped on every append, so a
    concurrent lookup sees either the list before or after an append.
    """

    def __init__(self, min_level: Level = Level.VERBOSE):
        self._min_level = min_level
        self._rules: tuple[FilterRule, ...] = ()
        self._lock = threading.Lock()

    @property
    def min_level(self) -> Level:
        return self._min_level

    @min_level.setter
    def min_level(self, level: Level):
        self._min_level = level

    @property
    def rules(self) -> tuple[FilterRule, ...]:
        return self._rules

    def add_rule(self, min_level: Level, path: str, function: str = "") -> FilterRule:
        """Append a rule. Duplicate and contradictory rules are all kept."""
        rule = FilterRule(min_level=min_level, path=path, function=function)
        with self._lock:
            self._rules = self._rules + (rule,)
        logger.debug("Added filter rule %s (path=%r, function=%r)",
                     min_level.name, path, function)
        return rule

    def should_log(self, level: Level, path: str, function: str) -> bool:
        """Return True if level passes the global minimum or any rule matches."""
        if self._min_level <= level:
            return True

        # first match wins, later rules never veto an earlier match
        for rule in self._rules:
            if rule.matches(level, path, function):
                return True
        return False
