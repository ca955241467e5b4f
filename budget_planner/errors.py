"""Exception types raised by the budget planner."""

from __future__ import annotations


class BudgetError(Exception):
    """Base class for all budget planner errors."""


class ParseError(BudgetError):
    """A clipboard cell or typed expression could not be understood.

    Caught inside the value parsers; callers receive 0 and a warning message.
    """


class ValidationError(BudgetError, ValueError):
    """Input rejected before any mutation (bad month, missing fields)."""


class NotFoundError(BudgetError, LookupError):
    """An operation referenced a component that does not exist."""


class PersistenceError(BudgetError):
    """Buffered edits could not be written to the store."""

    def __init__(self, message: str, entity_id: int | None = None, year: int | None = None):
        super().__init__(message)
        self.entity_id = entity_id
        self.year = year
