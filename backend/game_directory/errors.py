"""Failure types shared by the stores, the cache and the directory services.

"Not found" and invalid input are ordinary results (see
``services/directory/results.py``); only the failures below are raised.
"""


class DirectoryError(Exception):
    """Base for failures that are surfaced to the caller and logged."""

    def __init__(self, message, entity_id=None, operation=None):
        super().__init__(message)
        self.entity_id = entity_id
        self.operation = operation

    def context(self):
        return {'entity_id': self.entity_id, 'operation': self.operation}


class StorageError(DirectoryError):
    """A store write was rejected."""


class DuplicateRecordError(StorageError):
    """A unique constraint was violated."""


class DependencyUnavailable(DirectoryError):
    """The store or an external service could not be reached."""


class ConsistencyError(DirectoryError):
    """A multi-step write could not be completed as a unit."""


class CacheFault(Exception):
    """Cache backend failure. Never fatal to the surrounding operation."""
