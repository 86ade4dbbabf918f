from __future__ import annotations

import json
import os
import threading
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Protocol, TextIO

from loguru import logger as log

from paperbot.core.types import Fill


def _expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))


class FillSink(Protocol):
    def record(self, fill: Fill) -> None:
        ...


class FillHistory:
    """In-memory ring of the most recent fills, for inspection endpoints."""

    def __init__(self, capacity: int = 2048) -> None:
        self._lock = threading.Lock()
        self._fills: Deque[Fill] = deque(maxlen=max(1, int(capacity)))

    def __len__(self) -> int:
        with self._lock:
            return len(self._fills)

    def record(self, fill: Fill) -> None:
        with self._lock:
            self._fills.append(fill)

    def snapshot(self) -> List[Fill]:
        with self._lock:
            return list(self._fills)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self.snapshot()]

    def reset(self) -> None:
        with self._lock:
            self._fills.clear()


class JsonlFillRecorder:
    """Appends one JSON object per fill to a newline-delimited file.

    Recording is best-effort: the first write error disables the recorder.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(_expand(path))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._file: Optional[TextIO] = open(self.path, "a", encoding="utf-8")

    @property
    def enabled(self) -> bool:
        return self._file is not None

    def record(self, fill: Fill) -> None:
        with self._lock:
            if self._file is None:
                return
            try:
                self._file.write(json.dumps(fill.to_dict()) + "\n")
                self._file.flush()
            except (OSError, ValueError) as e:
                log.warning(f"Fill recorder disabled after write error on {self.path}: {e}")
                self._close_quietly()

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def _close_quietly(self) -> None:
        f, self._file = self._file, None
        if f is not None:
            try:
                f.close()
            except OSError:
                pass


def open_recorder(path: Optional[str]) -> Optional[JsonlFillRecorder]:
    if not path:
        return None
    try:
        return JsonlFillRecorder(path)
    except OSError as e:
        log.warning(f"Paper fill recorder disabled: {e}")
        return None
