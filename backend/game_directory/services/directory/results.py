"""Explicit outcomes for directory operations.

Missing entities and rejected input are normal outcomes, so they come back
as values rather than exceptions.
"""
import enum
from dataclasses import dataclass
from typing import Any, Optional


class Outcome(enum.Enum):
    OK = 'ok'
    NOT_FOUND = 'not_found'
    INVALID = 'invalid'
    CONFLICT = 'conflict'


@dataclass(frozen=True)
class Result:
    outcome: Outcome
    value: Any = None
    message: Optional[str] = None
    created: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def found(cls, value, created=False):
        return cls(Outcome.OK, value=value, created=created)

    @classmethod
    def not_found(cls, message='Not found'):
        return cls(Outcome.NOT_FOUND, message=message)

    @classmethod
    def invalid(cls, message):
        return cls(Outcome.INVALID, message=message)

    @classmethod
    def conflict(cls, message):
        return cls(Outcome.CONFLICT, message=message)
