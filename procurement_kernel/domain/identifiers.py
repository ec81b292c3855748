"""
Identifier generation -- injectable source of opaque ids.

Line items, recycle queue entries, and saved requisitions all need ids that
are unique within a session.  Production code uses random UUIDs; tests use
a sequential generator so assertions can name ids up front.
"""

from abc import ABC, abstractmethod
from itertools import count
from uuid import uuid4


class IdGenerator(ABC):
    """Supplies unique string ids.

    Contract: every call to ``new_id()`` returns a value never returned
    before by the same instance.
    """

    @abstractmethod
    def new_id(self) -> str:
        ...


class UUIDIdGenerator(IdGenerator):
    """Random UUID4 ids rendered as strings."""

    def new_id(self) -> str:
        return str(uuid4())


class SequentialIdGenerator(IdGenerator):
    """Deterministic ids: ``<prefix>-1``, ``<prefix>-2``, ..."""

    def __init__(self, prefix: str = "id", start: int = 1):
        self._prefix = prefix
        self._counter = count(start)

    def new_id(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"
