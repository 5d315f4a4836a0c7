"""BaseDestination — filter, format and serially hand off records to a sink."""

import dataclasses
import logging
import queue
import threading
import uuid
from datetime import datetime

from logdest.config import DestinationConfig, FormatConfig
from logdest.filter import FilterRegistry, FilterRule
from logdest.formatter import DateFormatter, format_date, format_record
from logdest.levels import Level
from logdest.models import LogRecord

logger = logging.getLogger(__name__)

_STOP = object()


class _SerialWorker(threading.Thread):
    """Consumer thread that emits one queued record at a time."""

    def __init__(self, destination: "BaseDestination", q: queue.Queue):
        super().__init__(name=f"logdest-{destination.destination_id}", daemon=True)
        self._destination = destination
        self._queue = q

    def run(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                record, instant = item
                self._destination.emit(record, instant)
            except Exception:
                logger.exception("Destination %s failed to write record",
                                 self._destination.destination_id)
            finally:
                self._queue.task_done()


class BaseDestination:
    """Base class for log sinks.

    Subclasses override write() to persist or display the formatted line.
    Each instance gets its own worker thread so dispatched records from many
    callers never interleave mid-message.
    """

    def __init__(self, config: FormatConfig | None = None,
                 min_level: Level = Level.VERBOSE,
                 date_formatter: DateFormatter = format_date):
        self.destination_id = uuid.uuid4().hex
        self._config = config or FormatConfig()
        self._config_lock = threading.Lock()
        self._registry = FilterRegistry(min_level)
        self._date_formatter = date_formatter
        self._queue: queue.Queue = queue.Queue()
        self._worker: _SerialWorker | None = None
        self._worker_lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_config(cls, config: DestinationConfig, **kwargs):
        """Build a destination and register the rules from a loaded config."""
        destination = cls(config=config.format, min_level=config.min_level, **kwargs)
        for rule in config.rules:
            destination.add_min_level_filter(rule.min_level, rule.path, rule.function)
        return destination

    def __eq__(self, other):
        if not isinstance(other, BaseDestination):
            return NotImplemented
        return self.destination_id == other.destination_id

    def __hash__(self):
        return hash(self.destination_id)

    def __repr__(self):
        return f"{type(self).__name__}(id={self.destination_id[:8]})"

    # --- configuration ---

    @property
    def config(self) -> FormatConfig:
        return self._config

    def configure(self, **changes) -> FormatConfig:
        """Swap in a new FormatConfig snapshot with the given fields changed."""
        with self._config_lock:
            self._config = dataclasses.replace(self._config, **changes)
            return self._config

    @property
    def min_level(self) -> Level:
        return self._registry.min_level

    @min_level.setter
    def min_level(self, level: Level):
        self._registry.min_level = level

    @property
    def filters(self) -> tuple[FilterRule, ...]:
        return self._registry.rules

    def add_min_level_filter(self, min_level: Level, path: str, function: str = "") -> FilterRule:
        """Overrule the destination's min_level for a given path and optional function."""
        return self._registry.add_rule(min_level, path, function)

    def should_level_be_logged(self, level: Level, path: str, function: str) -> bool:
        return self._registry.should_log(level, path, function)

    # --- output ---

    def send(self, level: Level, msg: str, thread: str, path: str, function: str,
             line: int, instant: datetime | None = None) -> str:
        """Format the record, hand it to write() and return the formatted line."""
        record = LogRecord(level=level, message=msg, thread=thread,
                           path=path, function=function, line=line)
        return self.emit(record, instant)

    def emit(self, record: LogRecord, instant: datetime | None = None) -> str:
        text = format_record(record, self._config, instant, self._date_formatter)
        self.write(text)
        return text

    def write(self, line: str):
        """Persist or display a formatted line. No-op in the base destination."""

    def dispatch(self, level: Level, msg: str, thread: str, path: str,
                 function: str, line: int) -> bool:
        """Queue a record on this destination's worker if it passes the filters.

        Returns True if the record was queued.
        """
        if not self.should_level_be_logged(level, path, function):
            return False

        record = LogRecord(level=level, message=msg, thread=thread,
                           path=path, function=function, line=line)
        # the closed check and the put must not interleave with close()
        with self._worker_lock:
            if self._closed:
                logger.warning("Dropping record for closed destination %s", self.destination_id)
                return False
            if self._worker is None:
                self._worker = _SerialWorker(self, self._queue)
                self._worker.start()
                logger.debug("Started worker for %r", self)
            self._queue.put((record, datetime.now()))
        return True

    def flush(self):
        """Block until every dispatched record has been written.

        Buffering subclasses extend this to push their buffers to the final sink.
        """
        if self._worker is not None:
            self._queue.join()

    def close(self):
        """Drain queued records and stop the worker thread."""
        with self._worker_lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker
            if worker is not None:
                self._queue.put(_STOP)
        if worker is not None:
            worker.join(timeout=5)
        logger.debug("Closed %r", self)
