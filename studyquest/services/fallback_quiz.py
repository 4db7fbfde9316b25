"""
Heuristic quiz used when the inference service gives nothing usable.

Questions are built by blanking the middle word of every other sentence, then
padded with generic review prompts.
"""

import logging
import re

from studyquest.schemas.quiz_schema import GeneratedQuiz
from studyquest.services.quiz_factory import new_quiz, number_questions

logger = logging.getLogger(__name__)

MAX_QUESTIONS = 10
MIN_QUESTIONS = 5
MIN_SENTENCE_LENGTH = 20
MIN_WORDS_EXCLUSIVE = 5
BLANK = "_____"

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Sentences of at least MIN_SENTENCE_LENGTH characters, in document order."""
    candidates = (s.strip() for s in _SENTENCE_BOUNDARY.split(text or ""))
    return [s for s in candidates if len(s) >= MIN_SENTENCE_LENGTH]


def blank_middle_word(sentence: str) -> tuple[str, str] | None:
    """Return (question, answer) or None when the sentence has 5 words or fewer."""
    words = sentence.split()
    if len(words) <= MIN_WORDS_EXCLUSIVE:
        return None
    middle = len(words) // 2
    answer = words[middle]
    words[middle] = BLANK
    return " ".join(words), answer


def synthesize_fallback_quiz(text: str, file_name: str) -> GeneratedQuiz:
    sentences = split_sentences(text)
    num_questions = min(MAX_QUESTIONS, len(sentences) // 2)

    pairs: list[tuple[str, str]] = []
    for i in range(num_questions):
        # Short sentences are skipped, not replaced.
        pair = blank_middle_word(sentences[2 * i])
        if pair is not None:
            pairs.append(pair)

    while len(pairs) < MIN_QUESTIONS:
        n = len(pairs) + 1
        pairs.append((f"Question {n} about the content", "Please review the material"))

    logger.info(
        "fallback quiz synthesized",
        extra={"sentences": len(sentences), "questions": len(pairs), "source_file": file_name},
    )
    return new_quiz(number_questions(pairs), file_name)
