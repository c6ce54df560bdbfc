from .document_store import SQLAlchemyDocumentStore, SQLAlchemyWriteBatch

__all__ = [
    "SQLAlchemyDocumentStore",
    "SQLAlchemyWriteBatch",
]
