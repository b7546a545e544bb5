"""Quiz API endpoints: upload + topics, quiz generation, weak-area analysis."""

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile

from quizmaster.core.config import settings
from quizmaster.core.dependencies import get_document_store, get_quiz_gateway
from quizmaster.core.exceptions import CallerInputError, ProcessingFailed, UpstreamFailure
from quizmaster.core.rate_limit import limiter
from quizmaster.gateway.gateway import QuizGateway
from quizmaster.gateway.prompts import coerce_question_count
from quizmaster.schemas.quiz import (
    AnalysisResponse,
    AnalyzeWeakAreasRequest,
    ErrorResponse,
    GenerateQuizRequest,
    QuizResponse,
    TopicsResponse,
)
from quizmaster.storage.documents import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quiz"])

_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@router.post("/upload-and-analyze", response_model=TopicsResponse, responses=_ERRORS)
@limiter.limit(settings.upload_rate_limit)
async def upload_and_analyze(
    request: Request,
    pdf: UploadFile | None = File(None),
    gateway: QuizGateway = Depends(get_quiz_gateway),
    store: DocumentStore = Depends(get_document_store),
):
    """Store the uploaded PDF and extract its topics. The handle is returned for the quiz step."""
    if pdf is None:
        raise CallerInputError("File is empty.")
    limit = settings.max_upload_bytes
    # Never buffer more than one byte past the limit
    data = b"" if (pdf.size or 0) > limit else await pdf.read(limit + 1)
    if len(data) > limit or (pdf.size or 0) > limit:
        raise CallerInputError("File is too large.", details=f"limit is {limit} bytes")
    if not data:
        raise CallerInputError("File is empty.")

    handle = store.save(pdf.filename, data)
    try:
        topics = await gateway.extract_topics(data)
    except UpstreamFailure as e:
        store.delete(handle)
        logger.error("Topic extraction failed for %s: %s", handle, e)
        raise ProcessingFailed("Failed to process PDF with AI.", details=str(e)) from e
    except Exception:
        store.delete(handle)
        raise

    return TopicsResponse(topics=topics, uploadedFileName=handle)


@router.post(
    "/generate-quiz",
    response_model=QuizResponse,
    responses={**_ERRORS, 404: {"model": ErrorResponse}},
)
async def generate_quiz(
    body: GenerateQuizRequest,
    gateway: QuizGateway = Depends(get_quiz_gateway),
    store: DocumentStore = Depends(get_document_store),
):
    """Generate a quiz on one topic of a previously uploaded document, then drop the document."""
    has_topic = isinstance(body.topic, str) and body.topic.strip()
    if not has_topic or body.questionCount is None or not body.uploadedFileName:
        raise CallerInputError("Missing required parameters.")
    count = coerce_question_count(body.questionCount)
    document = store.read(body.uploadedFileName)

    try:
        quiz = await gateway.generate_quiz(document, body.topic, count)
    except UpstreamFailure as e:
        logger.error("Quiz generation failed for %s: %s", body.uploadedFileName, e)
        raise ProcessingFailed("Failed to generate quiz from AI.", details=str(e)) from e
    finally:
        store.delete(body.uploadedFileName)

    return QuizResponse(quiz=quiz)


@router.post("/analyze-weak-areas", response_model=AnalysisResponse, responses=_ERRORS)
async def analyze_weak_areas(
    body: AnalyzeWeakAreasRequest,
    gateway: QuizGateway = Depends(get_quiz_gateway),
):
    """Summarize the student's weak areas from the questions they got wrong."""
    try:
        analysis = await gateway.analyze_weak_areas(body.wrongAnswers or [])
    except UpstreamFailure as e:
        logger.error("Weak-area analysis failed: %s", e)
        raise ProcessingFailed("Failed to get analysis from AI.", details=str(e)) from e

    return AnalysisResponse(analysis=analysis)
