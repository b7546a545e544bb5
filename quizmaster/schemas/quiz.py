"""Pydantic models for topics, quizzes and the quiz API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Provider-produced content (extra fields pass through unmodified)
# ---------------------------------------------------------------------------


class Topic(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str
    description: str


class QuizQuestion(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    question: str
    options: list[str] = Field(min_length=4, max_length=4)
    correctAnswerIndex: int = Field(ge=0, le=3)
    explanation: str


class Quiz(BaseModel):
    questions: list[QuizQuestion]


# ---------------------------------------------------------------------------
# Request bodies. Loosely typed on purpose: the routes validate them so
# caller mistakes come back as 400 with the usual error body.
# ---------------------------------------------------------------------------


class GenerateQuizRequest(BaseModel):
    topic: Any = None
    questionCount: Any = None
    uploadedFileName: str | None = None


class AnalyzeWeakAreasRequest(BaseModel):
    # Records are free-form; they are forwarded to the model as-is
    wrongAnswers: list[Any] | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class TopicsResponse(BaseModel):
    success: bool = True
    topics: list[Topic]
    uploadedFileName: str


class QuizResponse(BaseModel):
    success: bool = True
    quiz: Quiz


class AnalysisResponse(BaseModel):
    analysis: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: str | None = None
