"""
Value types shared by the engine, the store and the UI.
Rows coming from Supabase are converted here so the rest of the code never touches raw dicts.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

QuestionId = Union[int, str]


class SessionState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    REVIEWING = "reviewing"
    COMPLETED = "completed"


def _index_list(value: Any, label: str) -> List[int]:
    """Option indices from an INT[] column. NULL columns count as empty, NULL elements are rejected."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{label} is not a list: {value!r}")
    if any(isinstance(i, bool) or not isinstance(i, int) for i in value):
        raise ValueError(f"{label} has a non-integer entry: {value!r}")
    return list(value)


@dataclass(frozen=True)
class Question:
    """A single bank question. `correct_answers` holds option indices."""

    id: QuestionId
    question: str
    options: Tuple[str, ...]
    correct_answers: FrozenSet[int]
    explanation: Optional[str] = None

    @property
    def is_multi_select(self) -> bool:
        return len(self.correct_answers) > 1

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Question":
        """
        Build a Question from a `preguntas_examen` row.

        Raises:
            ValueError: if the row has no options or no correct answer.
        """
        qid = row.get("id")
        raw_options = row.get("options") or []
        if not isinstance(raw_options, list):
            raise ValueError(f"Question {qid} options is not a list")
        options = tuple(str(o) for o in raw_options)
        correct = frozenset(_index_list(row.get("correct_answers"), f"Question {qid} correct_answers"))
        if not options:
            raise ValueError(f"Question {row.get('id')} has no options")
        if not correct:
            raise ValueError(f"Question {row.get('id')} has no correct answers")
        if any(i < 0 or i >= len(options) for i in correct):
            raise ValueError(f"Question {row.get('id')} has a correct answer outside its options")
        return cls(
            id=row["id"],
            question=row.get("question") or "",
            options=options,
            correct_answers=correct,
            explanation=row.get("explanation") or None,
        )

    def option_texts(self, indices) -> List[str]:
        return [self.options[i] for i in sorted(indices) if 0 <= i < len(self.options)]


@dataclass(frozen=True)
class AnswerRecord:
    session_id: str
    question_id: QuestionId
    selected_answers: Tuple[int, ...]
    is_correct: bool

    def to_row(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "question_id": self.question_id,
            "selected_answers": list(self.selected_answers),
            "is_correct": self.is_correct,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AnswerRecord":
        return cls(
            session_id=row["session_id"],
            question_id=row["question_id"],
            selected_answers=tuple(sorted(_index_list(row.get("selected_answers"), "selected_answers"))),
            is_correct=bool(row.get("is_correct")),
        )


@dataclass(frozen=True)
class ResultRecord:
    session_id: str
    score: int
    total_questions: int
    elapsed_seconds: int

    @property
    def percentage(self) -> float:
        return round(self.score / self.total_questions * 100, 1) if self.total_questions else 0.0

    def to_row(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "score": self.score,
            "total_questions": self.total_questions,
            "elapsed_seconds": self.elapsed_seconds,
        }


@dataclass
class SessionSnapshot:
    """Serializable view of an ExamSession at one instant."""

    session_id: str
    state: SessionState
    page: int
    answers: Dict[int, List[int]] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    ticks: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "page": self.page,
            "answers": {str(k): v for k, v in self.answers.items()},
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "ticks": self.ticks,
        }
