import io
import json
import re

import pytest

from studyquest.clients.inference_client import InferenceClientError
from studyquest.services.document_extractor import ExtractionFailed, UnsupportedFormat
from studyquest.services.fallback_quiz import synthesize_fallback_quiz
from studyquest.services.quiz_factory import new_quiz_id
from studyquest.services.quiz_generator_service import (
    MAX_PROMPT_CHARS,
    InsufficientContent,
    QuizGeneratorService,
    build_quest_record,
    extract_json,
    normalize_questions,
    truncate_text,
)

STUDY_TEXT = (
    "Photosynthesis converts light energy into chemical energy. "
    "Mitochondria produce most of the chemical energy in cells. "
    "The nucleus stores genetic information inside eukaryotic cells. "
    "Ribosomes assemble proteins from amino acids in sequence."
)


def _content(quiz):
    return [(q.question, q.answer) for q in quiz.questions]


def _payload(n: int) -> str:
    return json.dumps({"questions": [{"question": f"What is {i}?", "answer": f"A{i}"} for i in range(1, n + 1)]})


def test_truncate_text_appends_ellipsis():
    assert truncate_text("x" * 10) == "x" * 10
    assert truncate_text("x" * (MAX_PROMPT_CHARS + 5)) == "x" * MAX_PROMPT_CHARS + "..."


def test_extract_json_handles_prose_and_code_fences():
    text = 'Sure! Here is your quiz:\n```json\n{"questions": [{"question": "Q?", "answer": "A"}]}\n```'
    assert extract_json(text) == {"questions": [{"question": "Q?", "answer": "A"}]}


def test_extract_json_returns_none_for_garbage():
    assert extract_json("no braces here") is None
    assert extract_json("{not: json}") is None
    assert extract_json("[1, 2]") is None


def test_normalize_defaults_and_drops_empty_entries():
    items = [
        {"question": "What is ATP?", "answer": "Energy currency"},
        {"question": "Unanswered?", "answer": ""},
        {"answer": "Nucleus"},
        "not a dict",
        {"question": "Count?", "answer": 42},
    ]

    questions = normalize_questions(items)

    assert [(q.id, q.question, q.answer) for q in questions] == [
        ("q1", "What is ATP?", "Energy currency"),
        ("q3", "Question 3", "Nucleus"),
        ("q5", "Count?", "42"),
    ]


def test_normalize_blank_question_gets_default_label():
    items = [
        {"question": "What is ATP?", "answer": "Energy currency"},
        {"question": "   ", "answer": "Mitochondria"},
    ]

    questions = normalize_questions(items)

    assert [(q.id, q.question) for q in questions] == [("q1", "What is ATP?"), ("q2", "Question 2")]


def test_normalize_caps_at_ten():
    items = json.loads(_payload(15))["questions"]
    questions = normalize_questions(items)
    assert len(questions) == 10
    assert questions[-1].id == "q10"


def test_ai_success_builds_quiz(fake_client_factory):
    client = fake_client_factory(response="Here you go: " + _payload(12))
    service = QuizGeneratorService(llm_client=client)

    quiz = service.generate_with_ai(STUDY_TEXT, "cells.pdf")

    assert len(quiz.questions) == 10
    assert quiz.questions[0].question == "What is 1?"
    assert quiz.title == "cells"
    assert quiz.source_file == "cells.pdf"
    assert len(client.prompts) == 1
    assert STUDY_TEXT in client.prompts[0]
    assert "exactly 10 quiz questions" in client.prompts[0]


def test_prompt_uses_truncated_text(fake_client_factory):
    client = fake_client_factory(response=_payload(3))
    service = QuizGeneratorService(llm_client=client)
    text = "a" * MAX_PROMPT_CHARS + "TAIL"

    service.generate_with_ai(text, "long.docx")

    assert "a" * MAX_PROMPT_CHARS + "..." in client.prompts[0]
    assert "TAIL" not in client.prompts[0]


@pytest.mark.parametrize(
    "client_kwargs",
    [
        {"exc": InferenceClientError("Inference API error status=503")},
        {"exc": ConnectionError("boom")},
        {"response": "I cannot help with that."},
        {"response": '{"questions": "nope"}'},
        {"response": '{"questions": [{"question": "Q?", "answer": ""}]}'},
    ],
)
def test_ai_failures_fall_back(fake_client_factory, client_kwargs):
    service = QuizGeneratorService(llm_client=fake_client_factory(**client_kwargs))

    quiz = service.generate_with_ai(STUDY_TEXT, "cells.pdf")

    assert _content(quiz) == _content(synthesize_fallback_quiz(STUDY_TEXT, "cells.pdf"))


def test_no_client_uses_fallback():
    quiz = QuizGeneratorService().generate_with_ai(STUDY_TEXT, "cells.pdf")
    assert len(quiz.questions) >= 5


def test_generate_from_file_rejects_short_text(make_docx, fake_client_factory):
    client = fake_client_factory(response=_payload(3))
    service = QuizGeneratorService(llm_client=client)
    data = make_docx(["   too short   "])

    with pytest.raises(InsufficientContent):
        service.generate_from_file(io.BytesIO(data), "short.docx")

    assert client.prompts == []


def test_generate_from_file_repeated_characters(make_docx, fake_client_factory):
    service = QuizGeneratorService(llm_client=fake_client_factory(exc=InferenceClientError("down")))
    data = make_docx(["a" * 60])

    quiz = service.generate_from_file(io.BytesIO(data), "notes.docx")

    assert quiz.title == "notes"
    assert quiz.source_file == "notes.docx"
    assert 1 <= len(quiz.questions) <= 10


def test_generate_from_file_unsupported_before_network(fake_client_factory):
    client = fake_client_factory(response=_payload(3))
    service = QuizGeneratorService(llm_client=client)

    with pytest.raises(UnsupportedFormat):
        service.generate_from_file(io.BytesIO(b"whatever"), "deck.xyz")

    assert client.prompts == []


def test_generate_from_file_propagates_extraction_failure(fake_client_factory):
    service = QuizGeneratorService(llm_client=fake_client_factory(response=_payload(3)))

    with pytest.raises(ExtractionFailed):
        service.generate_from_file(io.BytesIO(b"garbage"), "broken.pptx")


def test_generate_from_file_ai_path(make_pdf, fake_client_factory):
    service = QuizGeneratorService(llm_client=fake_client_factory(response=_payload(4)))
    data = make_pdf(["Enzymes lower the activation energy", "of chemical reactions in living cells."])

    quiz = service.generate_from_file(io.BytesIO(data), "enzymes.pdf")

    assert [q.id for q in quiz.questions] == ["q1", "q2", "q3", "q4"]


def test_quest_record_and_regenerate(make_docx, fake_client_factory):
    service = QuizGeneratorService(llm_client=fake_client_factory(response=_payload(2)))
    data = make_docx([STUDY_TEXT])
    quiz = service.generate_from_file(io.BytesIO(data), "cells.docx")

    record = build_quest_record(quiz, data, user_id="user-1")
    assert record.completed_questions == 0
    assert record.source_file_name == "cells.docx"

    dumped = record.model_dump(by_alias=True, mode="json")
    assert dumped["userId"] == "user-1"
    assert dumped["quiz"]["sourceFile"] == "cells.docx"

    regenerated = service.regenerate(record)
    assert regenerated.source_file == "cells.docx"
    assert _content(regenerated) == _content(quiz)


def test_regenerate_rejects_invalid_base64():
    service = QuizGeneratorService()
    quiz = synthesize_fallback_quiz("", "cells.docx")
    record = build_quest_record(quiz, b"", user_id=None).model_copy(update={"source_file_b64": "***"})

    with pytest.raises(ExtractionFailed):
        service.regenerate(record)


def test_quiz_ids_are_time_derived_and_distinct():
    ids = {new_quiz_id() for _ in range(50)}

    assert len(ids) == 50
    for quiz_id in ids:
        assert re.fullmatch(r"quiz_\d{13}_[0-9a-f]{6}", quiz_id)
