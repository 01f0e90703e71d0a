from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, tzinfo


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...

    @property
    @abstractmethod
    def tz(self) -> tzinfo: ...


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self) -> str: ...
