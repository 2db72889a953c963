"""
Exceptions raised by the entity storage and its collaborators.
"""
from __future__ import annotations


class ManagedContentError(Exception):
    """
    Base exception for managed content.
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return str(self.message)

    def __repr__(self):
        return f"{self.__class__.__name__}({str(self)})"


class StorageFailure(ManagedContentError):
    """
    A storage write failed while committing a host submission.

    This is fatal: the surrounding transaction is rolled back.
    """


class MissingEntity(ManagedContentError):
    """
    An entity (or revision) identifier did not resolve to anything.
    """


class UnsupportedFieldAssignment(ManagedContentError):
    """
    A field does not exist on the bundle or its data type rejects the value.
    """

    def __init__(self, field_name: str, message: str = ""):
        super().__init__(message or f"Cannot assign a value to field '{field_name}'.")
        self.field_name = field_name
