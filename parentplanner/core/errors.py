from __future__ import annotations


class NotFoundError(LookupError):
    """A record addressed by id, email or code does not exist."""

    def __init__(self, collection: str, key: str, value: str) -> None:
        self.collection = collection
        self.key = key
        self.value = value
        super().__init__(f"{collection} record not found with {key} {value}")


class InvalidTransitionError(ValueError):
    """A state change that is not allowed from the record's current state.

    The message is a short code (e.g. ``creator_cannot_leave``) so the HTTP
    layer can map it to a status with ``value_error``.
    """

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(code)


class ConflictError(ValueError):
    """A conditional write found the record in a different state than expected."""

    def __init__(self, collection: str, doc_id: str, field: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        self.field = field
        super().__init__(f"{collection} record {doc_id} changed: {field} does not match")
