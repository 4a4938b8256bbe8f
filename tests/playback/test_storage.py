from __future__ import annotations

import json

import pytest

from pic2quiz.playback import storage
from pic2quiz.playback.engine import InvalidQuestion, make_quiz


def test_save_and_load_quiz_preserves_order(tmp_path, records) -> None:
    quiz = make_quiz(records)
    target = storage.save_quiz(tmp_path / "quizzes" / "bio.json", quiz)

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert [item["question"] for item in payload] == [
        item["question"] for item in records
    ]
    assert payload[1]["correctAnswer"] == 2
    assert storage.load_quiz(target) == quiz


def test_load_quiz_rejects_invalid_json(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidQuestion):
        storage.load_quiz(path)


def test_load_quiz_rejects_non_array(tmp_path) -> None:
    path = tmp_path / "object.json"
    path.write_text(json.dumps({"question": "Q"}), encoding="utf-8")
    with pytest.raises(InvalidQuestion):
        storage.load_quiz(path)


def test_quiz_from_records_rejects_bad_record(records) -> None:
    records[0]["correctAnswer"] = 9
    with pytest.raises(InvalidQuestion):
        storage.quiz_from_records(records)


def test_empty_array_is_an_empty_quiz(tmp_path) -> None:
    path = tmp_path / "empty.json"
    path.write_text("[]", encoding="utf-8")
    assert storage.load_quiz(path) == ()
