"""
Exam Engine: session state machine, pagination, answer selection, submission and grading.
States: LOADING -> ACTIVE -> REVIEWING -> COMPLETED. A restart builds a new session.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple
from uuid import uuid4

from quiz.errors import LoadError, QuizError, ValidationError, WriteError
from quiz.grading import grade, toggle_selection
from quiz.models import Question, ResultRecord, SessionSnapshot, SessionState
from quiz.review import ReviewItem, assemble_review
from quiz.timer import ExamTimer

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SubmitOutcome:
    """
    What a submit() call produced.

    Either `error` is set (nothing happened, the session is still ACTIVE) or
    `result` is set (the session is COMPLETED). `write_errors` lists inserts
    that failed; they never stop the submission.
    """

    error: Optional[ValidationError] = None
    result: Optional[ResultRecord] = None
    write_errors: List[WriteError] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.result is not None

    @property
    def unanswered(self) -> List[int]:
        return self.error.unanswered if self.error else []


class ExamSession:
    """Manages a single exam session, from question loading to the graded result."""

    PAGE_SIZE = 10
    TICK_INTERVAL_SECONDS = 1.0

    def __init__(
        self,
        store,
        page_size: int = PAGE_SIZE,
        tick_interval: Optional[float] = TICK_INTERVAL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            store: A QuestionStore (or anything with the same async methods).
            page_size: Questions shown per page.
            tick_interval: Seconds between display timer ticks; None for manual ticks.
            clock: Returns the current instant; used for start/end timestamps.
        """
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._session_id = str(uuid4())
        self.store = store
        self.page_size = page_size
        self.tick_interval = tick_interval
        self.clock = clock or _utcnow

        self.state = SessionState.LOADING
        self.questions: List[Question] = []
        self.answers: Dict[int, FrozenSet[int]] = {}
        self.page = 0

        self.started_at = self.clock()
        self.ended_at: Optional[datetime] = None
        self.result: Optional[ResultRecord] = None

        # LoadError and WriteError instances, oldest first
        self.errors: List[QuizError] = []

        self.timer = ExamTimer(interval=tick_interval, gate=self._timer_running)
        self._load_attempted = False

    @property
    def session_id(self) -> str:
        return self._session_id

    def _timer_running(self) -> bool:
        return self.state in (SessionState.ACTIVE, SessionState.REVIEWING)

    # ============= Loading =============

    async def start(self) -> None:
        """
        Start the display timer and fetch the question bank.

        A failed fetch or an empty bank leaves the session in LOADING; there is
        no retry, a new session has to be created instead, and the timer is
        stopped so it does not outlive the stuck session.
        """
        if self._load_attempted:
            logger.warning(f"Session {self.session_id}: questions already requested")
            return
        self._load_attempted = True
        self.timer.start()

        try:
            questions = await self.store.list_questions()
        except LoadError as e:
            logger.error(f"Session {self.session_id}: question load failed: {e}")
            self.errors.append(e)
            self.timer.cancel()
            return

        if not questions:
            logger.warning(f"Session {self.session_id}: question bank is empty")
            self.timer.cancel()
            return

        self.questions = list(questions)
        self.state = SessionState.ACTIVE
        logger.info(f"Session {self.session_id}: loaded {len(self.questions)} questions")

    # ============= Answering =============

    def select_option(self, question_index: int, option_index: int) -> FrozenSet[int]:
        """
        Apply one option click and return the question's resulting selection.

        Ignored outside ACTIVE and for indices that do not exist.
        """
        if self.state is not SessionState.ACTIVE:
            logger.warning(f"Session {self.session_id}: selection ignored in state {self.state.value}")
            return self.answers.get(question_index, frozenset())
        if not 0 <= question_index < len(self.questions):
            logger.warning(f"Question {question_index} not found in session")
            return frozenset()
        question = self.questions[question_index]
        if not 0 <= option_index < len(question.options):
            logger.warning(f"Option {option_index} not found on question {question.id}")
            return self.answers.get(question_index, frozenset())

        selection = toggle_selection(question, self.answers.get(question_index, frozenset()), option_index)
        if selection:
            self.answers[question_index] = selection
        else:
            self.answers.pop(question_index, None)
        return selection

    def selection(self, question_index: int) -> FrozenSet[int]:
        return self.answers.get(question_index, frozenset())

    def is_answered(self, question_index: int) -> bool:
        return bool(self.answers.get(question_index))

    def unanswered(self) -> List[int]:
        return [i for i in range(len(self.questions)) if not self.is_answered(i)]

    # ============= Pagination =============

    @property
    def page_count(self) -> int:
        return max(1, -(-len(self.questions) // self.page_size))

    def page_questions(self) -> List[Tuple[int, Question]]:
        """(position, question) pairs shown on the current page."""
        first = self.page * self.page_size
        return list(enumerate(self.questions))[first:first + self.page_size]

    def paginate(self, direction: int) -> int:
        """Move one page forward (direction > 0) or back (direction < 0). Returns the page."""
        step = 1 if direction > 0 else -1 if direction < 0 else 0
        return self.jump_to_page(self.page + step)

    def jump_to_page(self, index: int) -> int:
        if self.state is not SessionState.ACTIVE:
            logger.warning(f"Session {self.session_id}: page change ignored in state {self.state.value}")
            return self.page
        self.page = max(0, min(index, self.page_count - 1))
        return self.page

    # ============= Submission =============

    async def submit(self) -> Optional[SubmitOutcome]:
        """
        Grade and persist the session.

        If any question is unanswered nothing is written and the outcome
        carries a ValidationError listing them. Otherwise every answer is
        inserted in question order, then the result, and the session ends in
        COMPLETED. Returns None when called outside ACTIVE.
        """
        if self.state is not SessionState.ACTIVE:
            logger.warning(f"Session {self.session_id}: submit ignored in state {self.state.value}")
            return None

        missing = self.unanswered()
        if missing:
            logger.info(f"Session {self.session_id}: submit rejected, {len(missing)} unanswered")
            return SubmitOutcome(error=ValidationError(missing))

        submitted_at = self.clock()
        self.state = SessionState.REVIEWING
        write_errors: List[WriteError] = []

        correct_count = 0
        for i, question in enumerate(self.questions):
            selected = self.answers[i]
            is_correct = grade(question.correct_answers, selected)
            if is_correct:
                correct_count += 1
            outcome = await self.store.record_answer(self.session_id, question.id, sorted(selected), is_correct)
            if not outcome.ok:
                write_errors.append(outcome.error)

        # Wall-clock difference, never the tick counter
        elapsed_seconds = int((submitted_at - self.started_at).total_seconds())
        result = ResultRecord(self.session_id, correct_count, len(self.questions), elapsed_seconds)
        outcome = await self.store.record_result(
            result.session_id, result.score, result.total_questions, result.elapsed_seconds
        )
        if not outcome.ok:
            write_errors.append(outcome.error)

        if write_errors:
            logger.error(f"Session {self.session_id}: {len(write_errors)} writes failed, results may be incomplete")
            self.errors.extend(write_errors)

        self.result = result
        self.ended_at = submitted_at
        self.state = SessionState.COMPLETED
        self.timer.cancel()
        logger.info(
            f"Session {self.session_id} completed: Score={result.score}/{result.total_questions}, "
            f"Elapsed={result.elapsed_seconds}s"
        )
        return SubmitOutcome(result=result, write_errors=write_errors)

    # ============= Review =============

    async def load_review(self) -> Optional[List[ReviewItem]]:
        """
        Read back this session's answers joined with their questions.

        Returns None while nothing is visible yet (or the read failed), so the
        caller can keep showing a loading state.
        """
        if self.state is not SessionState.COMPLETED:
            logger.warning(f"Session {self.session_id}: review requested in state {self.state.value}")
            return None
        try:
            pairs = await self.store.list_answers_for_session(self.session_id)
        except LoadError as e:
            logger.error(f"Session {self.session_id}: review load failed: {e}")
            self.errors.append(e)
            return None
        if not pairs:
            return None
        return assemble_review(pairs, order=[q.id for q in self.questions])

    # ============= Restart =============

    async def restart(self) -> "ExamSession":
        """Discard this session and return a freshly started one with the same settings."""
        self.timer.cancel()
        fresh = ExamSession(
            self.store,
            page_size=self.page_size,
            tick_interval=self.tick_interval,
            clock=self.clock,
        )
        logger.info(f"Session {self.session_id} restarted as {fresh.session_id}")
        await fresh.start()
        return fresh

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            state=self.state,
            page=self.page,
            answers={i: sorted(s) for i, s in sorted(self.answers.items())},
            started_at=self.started_at,
            ended_at=self.ended_at,
            ticks=self.timer.ticks,
        )
