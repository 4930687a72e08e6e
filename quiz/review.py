"""Review screen assembly from persisted answers joined with their questions."""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from quiz.models import AnswerRecord, Question, QuestionId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewItem:
    question_id: QuestionId
    question: str
    selected: List[str]
    correct: List[str]
    is_correct: bool
    explanation: Optional[str] = None


def assemble_review(
    pairs: Sequence[Tuple[AnswerRecord, Question]],
    order: Optional[Sequence[QuestionId]] = None,
) -> List[ReviewItem]:
    """
    Build review rows. The explanation is only kept for incorrect answers.

    Args:
        pairs: (answer, question) tuples as returned by the store.
        order: Question ids in exam order; rows are sorted by it when given,
            ids not in it go last.
    """
    items = [
        ReviewItem(
            question_id=question.id,
            question=question.question,
            selected=question.option_texts(answer.selected_answers),
            correct=question.option_texts(question.correct_answers),
            is_correct=answer.is_correct,
            explanation=None if answer.is_correct else question.explanation,
        )
        for answer, question in pairs
    ]
    if order is not None:
        position = {qid: i for i, qid in enumerate(order)}
        items.sort(key=lambda item: position.get(item.question_id, len(position)))
    return items


async def poll_review(session, attempts: int = 5, delay: float = 0.5) -> Optional[List[ReviewItem]]:
    """
    Call `session.load_review()` until it returns rows or attempts run out.

    Freshly inserted answers are not always readable right away; None after
    the last attempt still means "loading", not failure.
    """
    for attempt in range(1, attempts + 1):
        items = await session.load_review()
        if items:
            return items
        logger.info(f"Review not ready yet (attempt {attempt}/{attempts})")
        if attempt < attempts:
            await asyncio.sleep(delay)
    return None
