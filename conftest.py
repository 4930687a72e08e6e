"""Shared fixtures: in-memory store, controllable clock, question builders."""
from datetime import datetime, timedelta, timezone

import pytest

from quiz.errors import LoadError, WriteError
from quiz.models import AnswerRecord, Question
from quiz.store import WriteOutcome


def make_question(qid, correct, n_options=4, explanation=None):
    return Question(
        id=qid,
        question=f"Question {qid}?",
        options=tuple(f"Option {qid}-{i}" for i in range(n_options)),
        correct_answers=frozenset(correct),
        explanation=explanation,
    )


def make_questions(count, correct=(0,)):
    return [make_question(i + 1, correct) for i in range(count)]


class FakeClock:
    def __init__(self, start=datetime(2026, 1, 1, 9, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeStore:
    """Same async surface as QuestionStore, backed by lists."""

    def __init__(self, questions=None, fail_load=False, fail_answer_ids=(), fail_result=False, fail_review=False):
        self.questions = list(questions or [])
        self.fail_load = fail_load
        self.fail_answer_ids = set(fail_answer_ids)
        self.fail_result = fail_result
        self.fail_review = fail_review
        self.answers = []
        self.results = []
        self.calls = []
        self.load_calls = 0
        self.visible = True

    async def list_questions(self):
        self.load_calls += 1
        self.calls.append("list_questions")
        if self.fail_load:
            raise LoadError("connection refused")
        return list(self.questions)

    async def record_answer(self, session_id, question_id, selected, is_correct):
        self.calls.append(("answer", question_id))
        row = {
            "session_id": session_id,
            "question_id": question_id,
            "selected_answers": list(selected),
            "is_correct": is_correct,
        }
        if question_id in self.fail_answer_ids:
            return WriteOutcome(WriteError("insert failed", "answers", row))
        self.answers.append(row)
        return WriteOutcome()

    async def record_result(self, session_id, score, total_questions, elapsed_seconds):
        self.calls.append("result")
        row = {
            "session_id": session_id,
            "score": score,
            "total_questions": total_questions,
            "elapsed_seconds": elapsed_seconds,
        }
        if self.fail_result:
            return WriteOutcome(WriteError("insert failed", "results", row))
        self.results.append(row)
        return WriteOutcome()

    async def list_answers_for_session(self, session_id):
        if self.fail_review:
            raise LoadError("read timed out")
        if not self.visible:
            return []
        by_id = {q.id: q for q in self.questions}
        return [
            (AnswerRecord.from_row(row), by_id[row["question_id"]])
            for row in self.answers
            if row["session_id"] == session_id
        ]


@pytest.fixture
def clock():
    return FakeClock()
