"""Exceptions raised by rabbitry."""


class RabbitryError(ValueError):
    """Base class for all rabbitry errors."""


class StorageError(RabbitryError):
    """A storage backend could not read or write a key."""


class RecordNotFoundError(RabbitryError):
    """No record with the requested id exists in a collection."""

    def __init__(self, collection: str, record_id: int) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No record with id {record_id} in {collection}")


class AuthenticationError(RabbitryError):
    """Credentials did not match an active user."""


class DataExchangeError(RabbitryError):
    """An import or merge was rejected. No collection was written."""


class UnreadableFileError(DataExchangeError):
    """The import file could not be read."""


class MalformedDocumentError(DataExchangeError):
    """The import file is not a JSON object."""


class NoValidDataError(DataExchangeError):
    """The document holds no recognized collection with a list value."""


class RecordValidationError(DataExchangeError):
    """A record in the document does not match its collection's schema."""

    def __init__(self, collection: str, index: int, detail: str) -> None:
        self.collection = collection
        self.index = index
        self.detail = detail
        super().__init__(f"Invalid record at {collection}[{index}]: {detail}")


class PermissionDeniedError(AuthenticationError):
    """The acting user's role does not allow the operation."""
