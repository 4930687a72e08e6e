"""
Supabase-backed question bank and answer/result sink.
The supabase-py query builder is blocking, so every call runs in a worker thread via asyncio.to_thread.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from supabase import Client

from quiz.errors import LoadError, WriteError
from quiz.models import AnswerRecord, Question, QuestionId, ResultRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteOutcome:
    """Result of a single insert. `error` is set when the insert failed."""

    error: Optional[WriteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class QuestionStore:
    """Wrapper around a Supabase client with the quiz's four operations."""

    QUESTIONS_TABLE = "preguntas_examen"
    ANSWERS_TABLE = "respuestas_examen"
    RESULTS_TABLE = "resultados_examen"

    def __init__(
        self,
        client: Client,
        questions_table: str = QUESTIONS_TABLE,
        answers_table: str = ANSWERS_TABLE,
        results_table: str = RESULTS_TABLE,
    ):
        self.client = client
        self.questions_table = questions_table
        self.answers_table = answers_table
        self.results_table = results_table

    # ============= Questions =============

    async def list_questions(self) -> List[Question]:
        """
        Fetch the whole question bank, in table order.

        Rows that cannot be turned into a Question are skipped with a warning.

        Raises:
            LoadError: if the query fails.
        """
        try:
            query = self.client.table(self.questions_table).select("*")
            response = await asyncio.to_thread(query.execute)
        except Exception as e:
            logger.error(f"Error fetching questions: {e}")
            raise LoadError(f"Could not load questions from {self.questions_table}: {e}") from e
        return _parse_questions(response.data or [])

    # ============= Writes =============

    async def record_answer(
        self,
        session_id: str,
        question_id: QuestionId,
        selected: Iterable[int],
        is_correct: bool,
    ) -> WriteOutcome:
        record = AnswerRecord(session_id, question_id, tuple(sorted(selected)), is_correct)
        return await self._insert(self.answers_table, record.to_row())

    async def record_result(
        self,
        session_id: str,
        score: int,
        total_questions: int,
        elapsed_seconds: int,
    ) -> WriteOutcome:
        record = ResultRecord(session_id, score, total_questions, elapsed_seconds)
        return await self._insert(self.results_table, record.to_row())

    async def _insert(self, table: str, row: Dict) -> WriteOutcome:
        try:
            query = self.client.table(table).insert(row)
            await asyncio.to_thread(query.execute)
        except Exception as e:
            logger.error(f"Error inserting into {table}: {e}")
            return WriteOutcome(WriteError(f"Insert into {table} failed: {e}", table, row))
        return WriteOutcome()

    # ============= Review =============

    async def list_answers_for_session(self, session_id: str) -> List[Tuple[AnswerRecord, Question]]:
        """
        Answers of one session joined with their questions.

        Uses a PostgREST embedded select, so the answers table needs a foreign
        key on question_id. Rows whose question did not come back are dropped.

        Raises:
            LoadError: if the query fails.
        """
        try:
            query = (
                self.client.table(self.answers_table)
                .select(f"*, {self.questions_table}(*)")
                .eq("session_id", session_id)
            )
            response = await asyncio.to_thread(query.execute)
        except Exception as e:
            logger.error(f"Error fetching answers for session {session_id}: {e}")
            raise LoadError(f"Could not load answers for session {session_id}: {e}") from e

        pairs = []
        for row in response.data or []:
            question_row = row.get(self.questions_table)
            if not question_row:
                logger.warning(f"Answer for question {row.get('question_id')} has no joined question")
                continue
            try:
                pairs.append((AnswerRecord.from_row(row), Question.from_row(question_row)))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed answer row: {e}")
        return pairs


def _parse_questions(rows: List[Dict]) -> List[Question]:
    questions = []
    for row in rows:
        try:
            questions.append(Question.from_row(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed question row: {e}")
    return questions
