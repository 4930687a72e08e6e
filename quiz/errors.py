"""Error kinds raised or reported by the quiz engine and store."""
from typing import Dict, List, Optional


class QuizError(Exception):
    """Base class for quiz errors."""


class LoadError(QuizError):
    """Question bank or review read failed."""


class WriteError(QuizError):
    """An answer or result insert failed."""

    def __init__(self, message: str, table: str, row: Optional[Dict] = None):
        super().__init__(message)
        self.table = table
        self.row = row or {}


class ValidationError(QuizError):
    """Submission attempted while some questions are unanswered."""

    def __init__(self, unanswered: List[int]):
        self.unanswered = list(unanswered)
        positions = ", ".join(str(i + 1) for i in self.unanswered)
        super().__init__(f"Unanswered questions: {positions}")
