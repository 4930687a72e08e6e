"""Pure grading logic: exact set match per question, selection rules, totals. No I/O."""
from typing import AbstractSet, Dict, FrozenSet, Iterable, Sequence

from quiz.models import Question


def grade(correct: Iterable[int], selected: Iterable[int]) -> bool:
    """
    True iff the selection equals the correct answers as sets.

    A subset or superset of the correct answers is wrong, and an empty
    selection is always wrong since every question has at least one answer.
    """
    return set(correct) == set(selected)


def toggle_selection(question: Question, current: AbstractSet[int], option_index: int) -> FrozenSet[int]:
    """
    Apply one option click to a selection and return the new selection.

    Single-answer questions behave like radio buttons that can be cleared:
    clicking the selected option empties the set, clicking another option
    replaces it. Multi-answer questions toggle membership.
    """
    if question.is_multi_select:
        if option_index in current:
            return frozenset(current) - {option_index}
        return frozenset(current) | {option_index}
    if option_index in current:
        return frozenset()
    return frozenset({option_index})


def score(questions: Sequence[Question], answers: Dict[int, AbstractSet[int]]) -> int:
    """Number of questions whose selection (keyed by position) is exactly right."""
    return sum(1 for i, q in enumerate(questions) if grade(q.correct_answers, answers.get(i, ())))
