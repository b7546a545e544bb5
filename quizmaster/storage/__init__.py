from quizmaster.storage.documents import DocumentStore

__all__ = ["DocumentStore"]
