from functools import lru_cache

from quizmaster.core.config import settings
from quizmaster.gateway.gateway import QuizGateway, build_quiz_gateway
from quizmaster.storage.documents import DocumentStore


@lru_cache
def get_quiz_gateway() -> QuizGateway:
    # One instance per process: the key rotation counter must be shared
    return build_quiz_gateway(settings)


@lru_cache
def get_document_store() -> DocumentStore:
    return DocumentStore(settings.upload_path)
