import base64
import binascii
import io
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Optional

from studyquest.clients.inference_client import InferenceClient
from studyquest.schemas.quiz_schema import GeneratedQuiz, QuestRecord, QuizQuestion
from studyquest.services.document_extractor import (
    DocumentTextExtractor,
    ExtractionFailed,
    PipelineError,
)
from studyquest.services.fallback_quiz import synthesize_fallback_quiz
from studyquest.services.quiz_factory import new_quiz

MAX_PROMPT_CHARS = 2000
MAX_AI_QUESTIONS = 10
MIN_CONTENT_LENGTH = 50

_FENCE_PATTERN = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
# Greedy first-"{" to last-"}" span; misfires on prose with stray braces before the payload.
_JSON_SPAN_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


class InsufficientContent(PipelineError):
    """Raised when a document yields too little text to quiz on."""


class QuizGenerationError(Exception):
    """Raised when an AI response cannot be turned into questions."""


def truncate_text(text: str, limit: int = MAX_PROMPT_CHARS) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def build_prompt(content: str) -> str:
    return (
        "Based on the following educational content, generate exactly 10 quiz questions with answers.\n"
        "\n"
        "Content:\n"
        f"{content}\n"
        "\n"
        "You must respond ONLY with valid JSON in this exact format (no additional text):\n"
        "{\n"
        '  "questions": [\n'
        '    {"question": "Question 1 text here?", "answer": "Answer 1 here"},\n'
        '    {"question": "Question 2 text here?", "answer": "Answer 2 here"}\n'
        "  ]\n"
        "}\n"
        "\n"
        "Generate diverse questions covering key concepts. "
        "Make sure all questions are clear and answers are concise."
    )


def extract_json(text: str) -> dict | None:
    """
    Pull the first {...} span out of generated text and parse it.
    """
    cleaned = _FENCE_PATTERN.sub("", text)
    match = _JSON_SPAN_PATTERN.search(cleaned)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def normalize_questions(items: list[Any]) -> list[QuizQuestion]:
    """
    Keep the first 10 entries, fill defaults, number them q1..q10 and drop
    entries left with an empty question or answer.

    Ids are assigned before filtering, so dropped entries leave gaps.
    """
    questions: list[QuizQuestion] = []
    for index, item in enumerate(items[:MAX_AI_QUESTIONS], start=1):
        if not isinstance(item, dict):
            continue
        question = str(item.get("question") or "").strip() or f"Question {index}"
        answer = str(item.get("answer") or "").strip()
        if question and answer:
            questions.append(QuizQuestion(id=f"q{index}", question=question, answer=answer))
    return questions


def parse_ai_response(response_text: str) -> list[QuizQuestion]:
    data = extract_json(response_text)
    if data is None:
        raise QuizGenerationError("AI response does not contain a JSON object")

    items = data.get("questions")
    if not isinstance(items, list):
        raise QuizGenerationError("AI response has no 'questions' array")

    return normalize_questions(items)


def build_quest_record(quiz: GeneratedQuiz, data: bytes, user_id: Optional[str] = None) -> QuestRecord:
    """Payload for the quest store: the quiz, a zeroed progress counter and the source bytes."""
    return QuestRecord(
        user_id=user_id,
        quiz=quiz,
        completed_questions=0,
        source_file_name=quiz.source_file,
        source_file_b64=base64.b64encode(data).decode("ascii"),
    )


@dataclass
class QuizGeneratorService:
    """
    Turns uploaded documents into quizzes.

    One inference attempt per quiz; anything unusable from the AI path falls
    back to the sentence-blanking quiz.
    """

    extractor: DocumentTextExtractor = field(default_factory=DocumentTextExtractor)
    llm_client: Optional[InferenceClient] = None
    logger: logging.Logger = logging.getLogger(__name__)

    def generate_from_file(self, fileobj: BinaryIO, file_name: str) -> GeneratedQuiz:
        text = self.extractor.extract(fileobj, file_name)
        if not text or len(text.strip()) < MIN_CONTENT_LENGTH:
            raise InsufficientContent("File appears to be empty or could not extract sufficient text")
        return self.generate_with_ai(text, file_name)

    def regenerate(self, record: QuestRecord) -> GeneratedQuiz:
        try:
            data = base64.b64decode(record.source_file_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ExtractionFailed("Retained source file is not valid base64") from exc
        return self.generate_from_file(io.BytesIO(data), record.source_file_name)

    def generate_with_ai(self, text: str, file_name: str) -> GeneratedQuiz:
        if self.llm_client:
            prompt = build_prompt(truncate_text(text))
            raw = None
            try:
                raw = self.llm_client.generate(prompt)
                questions = parse_ai_response(raw)
                if questions:
                    self._log_outcome("success", file_name, len(questions))
                    return new_quiz(questions, file_name)
                self.logger.warning("AI response had no usable questions, falling back")
            except QuizGenerationError as exc:
                self.logger.warning("AI response parse failed, falling back: %s | raw=%r", exc, (raw or "")[:200])
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("AI generation failed, falling back: %s", exc)
        else:
            self.logger.info("No inference client configured, using fallback quiz")

        quiz = synthesize_fallback_quiz(text, file_name)
        self._log_outcome("fallback", file_name, len(quiz.questions))
        return quiz

    def _log_outcome(self, outcome: str, file_name: str, count: int) -> None:
        self.logger.info(
            "quiz generated",
            extra={"outcome": outcome, "questions": count, "source_file": file_name},
        )
