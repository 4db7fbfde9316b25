from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class QuizQuestion(BaseModel):
    id: str = Field(..., min_length=1, description="Stable within a quiz (q1..qN)")
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class GeneratedQuiz(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Time-derived quiz identifier")
    title: str
    questions: list[QuizQuestion] = Field(..., min_length=1, max_length=10)
    source_file: str = Field(..., alias="sourceFile")
    created_at: datetime = Field(..., alias="createdAt")


class QuestRecord(BaseModel):
    """Payload handed to the external quest store."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    quiz: GeneratedQuiz
    completed_questions: int = Field(0, alias="completedQuestions", ge=0)
    source_file_name: str = Field(..., alias="sourceFileName", min_length=1)
    source_file_b64: str = Field(..., alias="sourceFileB64", description="Base64 of the uploaded file")


class QuizGenerateResponse(BaseModel):
    quiz: GeneratedQuiz
    quest: Optional[QuestRecord] = None


class AnswerCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: Optional[str] = None
    answer: str = Field(..., min_length=1)
    user_answer: str = Field(..., alias="userAnswer")


class AnswerCheckResponse(BaseModel):
    correct: bool
