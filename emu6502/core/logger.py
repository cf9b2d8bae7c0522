"""
Logging infrastructure for the 6502 core.

The CPU logs through the small level-filtered ILogger interface so that
embedders can silence it entirely (NullLogger, the default), print to the
console, or route messages into the standard ``logging`` hierarchy.

Levels: 1 = problems, 2 = control-flow events (reset, interrupts),
3 = per-instruction trace.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO


class ILogger(ABC):
    """Logging interface with level-based filtering."""

    @property
    @abstractmethod
    def level(self) -> int: ...

    @level.setter
    @abstractmethod
    def level(self, value: int): ...

    @abstractmethod
    def log(self, level: int, message: str): ...


class NullLogger(ILogger):
    """No-op logger implementation."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._level = 0
        return cls._instance

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        pass


class ConsoleLogger(ILogger):
    """Logger that prints to a text stream (stdout unless given)."""

    def __init__(self, level: int = 0, stream: Optional[TextIO] = None):
        self._level = level
        self._stream = stream

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        if level <= self._level:
            print(f"[EMU6502:{level}] {message}", file=self._stream or sys.stdout)


class StdlibLogger(ILogger):
    """Forwards core messages to a :mod:`logging` logger.

    Core level 1 maps to WARNING, 2 to INFO and anything higher to DEBUG.
    """

    _LEVEL_MAP = {1: logging.WARNING, 2: logging.INFO}

    def __init__(self, level: int = 2, name: str = "emu6502"):
        self._level = level
        self._logger = logging.getLogger(name)

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        if level <= self._level:
            self._logger.log(self._LEVEL_MAP.get(level, logging.DEBUG), message)


# Default logger instance
DEFAULT_LOGGER: ILogger = NullLogger()
