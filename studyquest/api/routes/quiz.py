import io
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from studyquest.clients.inference_client import InferenceClient
from studyquest.core.config import Settings, get_settings
from studyquest.core.security import require_api_key
from studyquest.schemas.quiz_schema import (
    AnswerCheckRequest,
    AnswerCheckResponse,
    GeneratedQuiz,
    QuestRecord,
    QuizGenerateResponse,
)
from studyquest.services.answer_checker import check_answer
from studyquest.services.document_extractor import (
    DocumentTextExtractor,
    ExtractionFailed,
    UnsupportedFormat,
)
from studyquest.services.quiz_generator_service import (
    InsufficientContent,
    QuizGeneratorService,
    build_quest_record,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ai/quiz",
    tags=["quiz"],
    dependencies=[Depends(require_api_key)],
)

settings = get_settings()
quiz_service = QuizGeneratorService(
    extractor=DocumentTextExtractor(max_slides=settings.slide_deck_max_slides),
    llm_client=InferenceClient(
        url=settings.inference_url,
        api_key=settings.hf_api_key,
        timeout_seconds=settings.inference_timeout_seconds,
    ),
)


def get_quiz_service() -> QuizGeneratorService:
    return quiz_service


def _run(generate, file_name: str) -> GeneratedQuiz:
    try:
        return generate()
    except UnsupportedFormat as exc:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc)) from exc
    except ExtractionFailed as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except InsufficientContent as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("quiz generation failed for %s", file_name)
        raise HTTPException(status_code=500, detail="quiz generation failed") from exc


@router.post(
    "/generate",
    response_model=QuizGenerateResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate a quiz from an uploaded document",
)
def generate_quiz(
    file: UploadFile = File(...),
    user_id: Optional[str] = Form(None),
    service: QuizGeneratorService = Depends(get_quiz_service),
    settings: Settings = Depends(get_settings),
) -> QuizGenerateResponse:
    data = file.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"file exceeds {settings.max_upload_bytes} bytes",
        )

    file_name = file.filename or ""
    quiz = _run(lambda: service.generate_from_file(io.BytesIO(data), file_name), file_name)
    quest = build_quest_record(quiz, data, user_id) if user_id else None
    return QuizGenerateResponse(quiz=quiz, quest=quest)


@router.post(
    "/regenerate",
    response_model=GeneratedQuiz,
    status_code=status.HTTP_200_OK,
    summary="Generate a fresh quiz from a quest's retained source file",
)
def regenerate_quiz(
    record: QuestRecord,
    service: QuizGeneratorService = Depends(get_quiz_service),
) -> GeneratedQuiz:
    return _run(lambda: service.regenerate(record), record.source_file_name)


@router.post(
    "/check-answer",
    response_model=AnswerCheckResponse,
    summary="Check a typed answer against the expected one",
)
def check_quiz_answer(body: AnswerCheckRequest) -> AnswerCheckResponse:
    return AnswerCheckResponse(correct=check_answer(body.answer, body.user_answer))
