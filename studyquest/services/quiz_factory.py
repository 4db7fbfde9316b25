import re
import time
import uuid
from datetime import datetime, timezone
from typing import Iterable, Sequence

from studyquest.schemas.quiz_schema import GeneratedQuiz, QuizQuestion

_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")


def new_quiz_id() -> str:
    # millisecond timestamp keeps ids roughly sortable; the suffix avoids collisions
    return f"quiz_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def title_from_file_name(file_name: str) -> str:
    return _EXTENSION_PATTERN.sub("", file_name)


def number_questions(pairs: Iterable[tuple[str, str]]) -> list[QuizQuestion]:
    return [
        QuizQuestion(id=f"q{index}", question=question, answer=answer)
        for index, (question, answer) in enumerate(pairs, start=1)
    ]


def new_quiz(questions: Sequence[QuizQuestion], file_name: str) -> GeneratedQuiz:
    """Wrap questions in a quiz with a fresh id and timestamp."""
    return GeneratedQuiz(
        id=new_quiz_id(),
        title=title_from_file_name(file_name),
        questions=list(questions),
        source_file=file_name,
        created_at=datetime.now(timezone.utc),
    )
