from .document_store import (
    CollectionQuery,
    DocumentStore,
    ErrorCallback,
    SnapshotCallback,
    Unsubscribe,
    WriteBatch,
)
from .event_publisher import EventPublisher
from .local_storage import LocalStorage
from .media_uploader import MediaUploader, ProgressCallback
from .native_notifier import (
    PERMISSION_DEFAULT,
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    NativeNotifier,
)

__all__ = [
    "CollectionQuery",
    "DocumentStore",
    "ErrorCallback",
    "SnapshotCallback",
    "Unsubscribe",
    "WriteBatch",
    "EventPublisher",
    "LocalStorage",
    "MediaUploader",
    "ProgressCallback",
    "PERMISSION_DEFAULT",
    "PERMISSION_DENIED",
    "PERMISSION_GRANTED",
    "NativeNotifier",
]
