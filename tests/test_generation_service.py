from __future__ import annotations

import json

import pytest

from fixtures import FakeOpenAI, sample_reply
from pic2quiz.generation import service
from pic2quiz.generation.prompts import QuizOptions, ReviewerOptions
from pic2quiz.playback.engine import Question


def test_generate_quiz_parses_questions(fake_openai: FakeOpenAI) -> None:
    fake_openai.queue_response(sample_reply(2))

    quiz = service.generate_quiz("Cell biology notes", client=fake_openai, count=5)

    assert len(quiz) == 2
    assert all(isinstance(q, Question) for q in quiz)
    assert quiz[0].correct_option_index == 1
    call = fake_openai.calls[0]
    assert call["model"] == service.DEFAULT_MODEL
    assert call["max_tokens"] == 2048
    assert call["messages"][0]["role"] == "system"
    assert "Cell biology notes" in call["messages"][1]["content"]


def test_generate_quiz_handles_fenced_reply_and_truncates(
    fake_openai: FakeOpenAI,
) -> None:
    fake_openai.queue_response("```json\n" + sample_reply(4) + "\n```")
    quiz = service.generate_quiz("notes", client=fake_openai, count=3)
    assert len(quiz) == 3


def test_generate_quiz_skips_invalid_records(fake_openai: FakeOpenAI, records) -> None:
    broken = [
        records[0],
        {"question": "", "options": ["a"], "correctAnswer": 0},
        {"question": "Q", "options": ["a", "b"], "correctAnswer": 5},
        records[1],
    ]
    fake_openai.queue_response(json.dumps(broken))
    quiz = service.generate_quiz("notes", client=fake_openai)
    assert [q.prompt for q in quiz] == [records[0]["question"], records[1]["question"]]


@pytest.mark.parametrize(
    "reply", ["", "I could not find questions.", json.dumps({"question": "Q"}), "[]"]
)
def test_generate_quiz_non_array_reply_is_empty(reply: str) -> None:
    client = FakeOpenAI([reply])
    assert service.generate_quiz("notes", client=client) == ()


def test_generate_quiz_client_error_raises() -> None:
    client = FakeOpenAI(error=ConnectionError("offline"))
    with pytest.raises(service.GenerationFailed):
        service.generate_quiz("notes", client=client)


def test_generate_quiz_malformed_response_raises() -> None:
    class NoChoices:
        class chat:
            class completions:
                @staticmethod
                def create(**_kwargs):
                    return object()

    with pytest.raises(service.GenerationFailed):
        service.generate_quiz("notes", client=NoChoices())


def test_generate_requires_content(fake_openai: FakeOpenAI) -> None:
    with pytest.raises(ValueError):
        service.generate_quiz("   ", client=fake_openai)
    with pytest.raises(ValueError):
        service.generate_quiz_text("", QuizOptions(), client=fake_openai)
    with pytest.raises(ValueError):
        service.generate_reviewer("", ReviewerOptions(), client=fake_openai)
    with pytest.raises(ValueError):
        service.generate_quiz("notes", client=fake_openai, count=0)
    assert fake_openai.calls == []


def test_gpt5_models_use_completion_token_param(fake_openai: FakeOpenAI) -> None:
    fake_openai.queue_response("1. Q?\n\nAnswers: 1. A")
    service.generate_quiz_text(
        "notes", QuizOptions(), client=fake_openai, model="gpt-5-mini", max_tokens=900
    )
    call = fake_openai.calls[0]
    assert call["max_completion_tokens"] == 900
    assert "max_tokens" not in call


def test_generate_quiz_text_sends_system_prompt(fake_openai: FakeOpenAI) -> None:
    fake_openai.queue_response("  1. What is ATP?\n\nAnswers: ...  ")
    options = QuizOptions(number_of_questions=3, question_type="essay")

    result = service.generate_quiz_text("Energy notes", options, client=fake_openai)

    assert result == "1. What is ATP?\n\nAnswers: ..."
    system = fake_openai.last_messages[0]["content"]
    assert "Using essay questions" in system
    assert fake_openai.last_messages[1]["content"] == "Energy notes"


def test_generate_quiz_text_empty_reply_fails(fake_openai: FakeOpenAI) -> None:
    fake_openai.queue_response(None)
    with pytest.raises(service.GenerationFailed):
        service.generate_quiz_text("notes", QuizOptions(), client=fake_openai)


def test_generate_reviewer_returns_markdown(fake_openai: FakeOpenAI) -> None:
    fake_openai.queue_response("# Overview\n- Point")
    result = service.generate_reviewer(
        "notes", ReviewerOptions(format="flashcards"), client=fake_openai
    )
    assert result.startswith("# Overview")
    assert "question/answer pairs" in fake_openai.last_messages[0]["content"]
    assert fake_openai.calls[0]["max_tokens"] == 4096


def test_generate_reviewer_empty_reply_fails(fake_openai: FakeOpenAI) -> None:
    fake_openai.queue_response("")
    with pytest.raises(service.GenerationFailed):
        service.generate_reviewer("notes", ReviewerOptions(), client=fake_openai)
