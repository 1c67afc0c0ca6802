"""
Parameter store - Shared, remotely writable tuning values.

The tuner reads every key once per cycle. Remote operators write through the
web API (POST /api/tables/<name>). Values are plain numbers; booleans are
published by the tuner for dashboards and never read back.
"""

from __future__ import annotations

import json
import logging
import math
import threading
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class ParameterStore(ABC):
    """Key -> number table shared between the tuner and remote operators."""

    @abstractmethod
    def get_number(self, key: str, default: float) -> float:
        """
        Read a numeric value.

        Returns:
            The stored value, or ``default`` when the key is absent or
            does not hold a finite number.
        """
        ...

    @abstractmethod
    def set_default(self, key: str, value: float) -> None:
        """Store ``value`` only if ``key`` has no value yet."""
        ...

    @abstractmethod
    def set_boolean(self, key: str, value: bool) -> None:
        """Publish a boolean flag (overwrites)."""
        ...

    @abstractmethod
    def to_dict(self) -> dict:
        """Copy of every key and value."""
        ...


class TuningTable(ParameterStore):
    """
    In-process tuning table.

    Thread-safe: the web server writes from the event loop thread while
    the tuner thread reads.

    Usage:
        table = TuningTable("Camera0")
        table.set_default("hsvHMin", 50)
        table.update(hsvHMin=60)
        table.get_number("hsvHMin", 0)   # 60.0
    """

    def __init__(self, name: str, values: dict | None = None):
        self.name = name
        self._lock = threading.Lock()
        self._values: dict[str, float | bool] = dict(values or {})

    def get_number(self, key: str, default: float) -> float:
        with self._lock:
            value = self._values.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            number = float(value)
        except (TypeError, ValueError):
            return default
        if not math.isfinite(number):
            return default
        return number

    def set_default(self, key: str, value: float) -> None:
        with self._lock:
            self._values.setdefault(key, value)

    def set_boolean(self, key: str, value: bool) -> None:
        with self._lock:
            self._values[key] = bool(value)

    def to_dict(self) -> dict:
        with self._lock:
            return dict(self._values)

    def update(self, **values):
        """Update values from dict (e.g., from web API)."""
        accepted = {}
        for key, value in values.items():
            if isinstance(value, bool):
                accepted[key] = value
                continue
            try:
                accepted[key] = float(value)
            except (TypeError, ValueError):
                logger.warning(f"Invalid value for {self.name}/{key}: {value!r}")
        with self._lock:
            self._values.update(accepted)

    def save(self, path: Path):
        """Persist to JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, sort_keys=True)
        logger.info(f"Table {self.name} saved to {path}")

    @classmethod
    def load(cls, name: str, path: Path) -> TuningTable:
        """Load from JSON file, or return an empty table."""
        path = Path(path)
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                table = cls(name)
                table.update(**data)
                logger.info(f"Table {name} loaded from {path}")
                return table
            except Exception as e:
                logger.warning(f"Failed to load {path}: {e}, starting empty")
        return cls(name)
