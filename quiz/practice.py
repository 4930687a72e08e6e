"""
Practice mode: one question at a time with immediate feedback.
Checking a question clears the selection and moves on, wrapping back to the first question.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence

from quiz.grading import grade, toggle_selection
from quiz.models import Question, QuestionId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PracticeFeedback:
    question_id: QuestionId
    is_correct: bool
    correct_answers: List[int]
    explanation: Optional[str] = None


class PracticeRound:
    """Cycles through questions; nothing is persisted."""

    def __init__(self, questions: Sequence[Question]):
        if not questions:
            raise ValueError("PracticeRound needs at least one question")
        self.questions = list(questions)
        self.index = 0
        self.selected: FrozenSet[int] = frozenset()
        self.attempted = 0
        self.correct = 0

    @property
    def current(self) -> Question:
        return self.questions[self.index]

    def select_option(self, option_index: int) -> FrozenSet[int]:
        if not 0 <= option_index < len(self.current.options):
            logger.warning(f"Option {option_index} not found on question {self.current.id}")
            return self.selected
        self.selected = toggle_selection(self.current, self.selected, option_index)
        return self.selected

    def check(self) -> PracticeFeedback:
        """Grade the current selection, then clear it and advance."""
        question = self.current
        is_correct = grade(question.correct_answers, self.selected)
        self.attempted += 1
        if is_correct:
            self.correct += 1
        feedback = PracticeFeedback(
            question_id=question.id,
            is_correct=is_correct,
            correct_answers=sorted(question.correct_answers),
            explanation=question.explanation,
        )
        self.selected = frozenset()
        self.index = (self.index + 1) % len(self.questions)
        return feedback
