"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class DocumentStoreError(Exception):
    """Raised when a read or write against the document store fails.

    Wraps whatever the concrete store adapter raised so that services and
    endpoints only ever deal with one failure type.
    """

    def __init__(self, operation: str, collection: str, message: str):
        self.operation = operation
        self.collection = collection
        self.message = message
        super().__init__(f"{operation} on '{collection}' failed: {message}")


class BatchCommitError(DocumentStoreError):
    """Raised when a batched multi-document write could not be committed.

    Nothing in the batch has been applied when this is raised.
    """

    def __init__(self, collection: str, size: int, message: str):
        self.size = size
        super().__init__("batch_commit", collection, f"{size} operation(s): {message}")


class MediaUploadError(Exception):
    """Raised when the media hosting API rejects or fails an upload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        prefix = f"{status_code}: " if status_code is not None else ""
        super().__init__(f"Upload failed: {prefix}{message}")


class AuthenticationError(Exception):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Not signed in"):
        self.message = message
        super().__init__(message)
