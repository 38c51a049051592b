"""
Domain exceptions shared by the services and the HTTP layer.

Storage failures never crash a request: reads degrade to empty lists and
failed saves leave the finished session visible. Routes translate the
remaining errors into HTTP status codes.
"""


class StorageError(Exception):
    """Base class for failures talking to the question or result store."""


class DataFetchError(StorageError):
    """Question or result retrieval failed."""


class PersistenceError(StorageError):
    """Writing a result (or an admin question edit) failed."""


class InvalidSessionState(Exception):
    """An operation was attempted in a session state that does not allow it."""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while session is {state}")
