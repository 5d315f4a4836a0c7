"""Console destination — writes formatted lines to a text stream."""

import sys
import threading

from logdest.destination import BaseDestination


class ConsoleDestination(BaseDestination):
    def __init__(self, *args, stream=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def write(self, line: str):
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()
