"""Tests for BaseDestination and ConsoleDestination."""

import io
import threading
from datetime import datetime

import pytest
from logdest.config import DestinationConfig, FormatConfig
from logdest.console import ConsoleDestination
from logdest.destination import BaseDestination
from logdest.filter import FilterRule
from logdest.formatter import ESCAPE, RESET
from logdest.levels import Level

INSTANT = datetime(2024, 1, 1, 0, 0, 0)
PLAIN = FormatConfig(colored=False, date_format="")


class CollectingDestination(BaseDestination):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lines = []

    def write(self, line: str):
        self.lines.append(line)


class FailingDestination(CollectingDestination):
    def write(self, line: str):
        if "boom" in line:
            raise OSError("sink unavailable")
        super().write(line)


@pytest.fixture
def destination():
    dest = CollectingDestination(config=PLAIN)
    yield dest
    dest.close()


class TestIdentity:
    def test_ids_are_unique(self):
        a, b = BaseDestination(), BaseDestination()
        assert a.destination_id != b.destination_id
        assert a != b

    def test_equal_to_itself(self):
        dest = BaseDestination()
        assert dest == dest
        assert len({dest, dest}) == 1

    def test_same_config_not_equal(self):
        assert BaseDestination(config=PLAIN) != BaseDestination(config=PLAIN)

    def test_not_equal_to_other_types(self):
        assert BaseDestination() != "destination"


class TestSend:
    def test_returns_and_writes_formatted_line(self, destination):
        text = destination.send(Level.INFO, "started", "main", "/src/App.swift", "run", 42)
        assert text == "App.run:42 INFO: started"
        assert destination.lines == [text]

    def test_date_and_color(self):
        dest = CollectingDestination(config=FormatConfig(date_format="%Y-%m-%d %H:%M:%S.000"))
        text = dest.send(Level.ERROR, "down", "worker1", "/src/Net.swift", "fetch", 7,
                         instant=INSTANT)
        assert text == (
            "[2024-01-01 00:00:00.000] |worker1| Net.fetch:7 "
            + ESCAPE + "fg255,0,0;ERROR" + RESET + ": down"
        )

    def test_base_write_is_noop(self):
        dest = BaseDestination(config=PLAIN)
        assert dest.send(Level.DEBUG, "hi", "", "a.py", "f", 1) == "a.f:1 DEBUG: hi"

    def test_custom_date_formatter(self):
        dest = CollectingDestination(
            config=FormatConfig(colored=False, detail_output=False, date_format="x"),
            date_formatter=lambda pattern, instant: "STAMP",
        )
        assert dest.send(Level.INFO, "hi", "main", "a.py", "f", 1) == "[STAMP] INFO: hi"


class TestConfigure:
    def test_replaces_snapshot(self, destination):
        before = destination.config
        after = destination.configure(detail_output=False)
        assert before.detail_output is True
        assert after.detail_output is False
        assert destination.config is after
        assert destination.send(Level.INFO, "hi", "main", "a.py", "f", 1) == "INFO: hi"

    def test_unknown_field_rejected(self, destination):
        with pytest.raises(TypeError):
            destination.configure(nope=True)

    def test_snapshot_tables_cannot_be_edited(self, destination):
        destination.configure(level_labels={**destination.config.level_labels, Level.INFO: "I"})
        with pytest.raises(TypeError):
            destination.config.level_labels[Level.INFO] = "X"
        assert destination.send(Level.INFO, "hi", "main", "a.py", "f", 1) == "a.f:1 I: hi"

    def test_partial_tables_still_written(self, destination):
        destination.configure(level_labels={Level.ERROR: "E"})
        destination.dispatch(Level.ERROR, "down", "main", "a.py", "f", 1)
        destination.dispatch(Level.INFO, "up", "main", "a.py", "f", 2)
        destination.flush()
        assert destination.lines == ["a.f:1 E: down", "a.f:2 : up"]


class TestFiltering:
    def test_min_level_property(self, destination):
        destination.min_level = Level.WARNING
        assert destination.min_level is Level.WARNING
        assert destination.should_level_be_logged(Level.INFO, "a.py", "f") is False

    def test_add_min_level_filter(self, destination):
        destination.min_level = Level.ERROR
        rule = destination.add_min_level_filter(Level.VERBOSE, "Networking")
        assert destination.filters == (rule,)
        assert destination.should_level_be_logged(Level.DEBUG, "App/Networking/Client", "fetch")
        assert not destination.should_level_be_logged(Level.DEBUG, "App/Storage", "fetch")

    def test_from_config(self):
        cfg = DestinationConfig(
            min_level=Level.ERROR,
            format=PLAIN,
            rules=(FilterRule(Level.DEBUG, "Networking", "fetch"),),
        )
        dest = CollectingDestination.from_config(cfg)
        assert dest.min_level is Level.ERROR
        assert dest.config is PLAIN
        assert dest.filters == (FilterRule(Level.DEBUG, "Networking", "fetch"),)
        assert isinstance(dest, CollectingDestination)


class TestDispatch:
    def test_filtered_record_not_queued(self, destination):
        destination.min_level = Level.INFO
        assert destination.dispatch(Level.DEBUG, "hi", "main", "a.py", "f", 1) is False
        destination.flush()
        assert destination.lines == []

    def test_queued_record_written(self, destination):
        assert destination.dispatch(Level.INFO, "hi", "main", "a.py", "f", 1) is True
        destination.flush()
        assert destination.lines == ["a.f:1 INFO: hi"]

    def test_preserves_order_from_one_caller(self, destination):
        for i in range(50):
            destination.dispatch(Level.INFO, f"m{i}", "main", "a.py", "f", i)
        destination.flush()
        assert destination.lines == [f"a.f:{i} INFO: m{i}" for i in range(50)]

    def test_concurrent_callers(self, destination):
        def worker(n):
            for i in range(100):
                destination.dispatch(Level.INFO, f"{n}-{i}", f"t{n}", "a.py", "f", i)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        destination.flush()

        assert len(destination.lines) == 400
        for n in range(4):
            mine = [l for l in destination.lines if l.startswith(f"|t{n}| ")]
            assert mine == [f"|t{n}| a.f:{i} INFO: {n}-{i}" for i in range(100)]

    def test_sink_failure_does_not_stop_worker(self):
        dest = FailingDestination(config=PLAIN)
        try:
            dest.dispatch(Level.INFO, "boom", "main", "a.py", "f", 1)
            dest.dispatch(Level.INFO, "ok", "main", "a.py", "f", 2)
            dest.flush()
            assert dest.lines == ["a.f:2 INFO: ok"]
        finally:
            dest.close()

    def test_close_drains_queue(self):
        dest = CollectingDestination(config=PLAIN)
        for i in range(20):
            dest.dispatch(Level.INFO, "m", "main", "a.py", "f", i)
        dest.close()
        assert len(dest.lines) == 20

    def test_dispatch_after_close_dropped(self):
        dest = CollectingDestination(config=PLAIN)
        dest.close()
        assert dest.dispatch(Level.ERROR, "late", "main", "a.py", "f", 1) is False
        assert dest.lines == []

    def test_close_during_dispatch_drops_record(self):
        class ClosingDestination(CollectingDestination):
            close_on_filter = False

            def should_level_be_logged(self, level, path, function):
                if self.close_on_filter:
                    # close from another thread after the filter check
                    closer = threading.Thread(target=self.close)
                    closer.start()
                    closer.join()
                return True

        dest = ClosingDestination(config=PLAIN)
        assert dest.dispatch(Level.INFO, "first", "main", "a.py", "f", 1) is True
        dest.flush()
        assert dest.lines == ["a.f:1 INFO: first"]

        dest.close_on_filter = True
        assert dest.dispatch(Level.INFO, "late", "main", "a.py", "f", 2) is False

        flusher = threading.Thread(target=dest.flush, daemon=True)
        flusher.start()
        flusher.join(timeout=2)
        assert not flusher.is_alive()
        assert dest.lines == ["a.f:1 INFO: first"]

    def test_flush_without_worker(self, destination):
        destination.flush()
        assert destination.lines == []


class TestConsoleDestination:
    def test_writes_lines_to_stream(self):
        stream = io.StringIO()
        dest = ConsoleDestination(config=PLAIN, stream=stream)
        dest.send(Level.WARNING, "disk low", "main", "/srv/Disk.py", "check", 3)
        assert stream.getvalue() == "Disk.check:3 WARNING: disk low\n"

    def test_dispatch_reaches_stream(self):
        stream = io.StringIO()
        dest = ConsoleDestination(config=PLAIN, min_level=Level.INFO, stream=stream)
        dest.dispatch(Level.DEBUG, "skip", "main", "a.py", "f", 1)
        dest.dispatch(Level.ERROR, "keep", "main", "a.py", "f", 2)
        dest.close()
        assert stream.getvalue() == "a.f:2 ERROR: keep\n"
