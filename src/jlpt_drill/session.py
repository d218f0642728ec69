"""Single practice session: cursor, answer locking, scoring and mistake logging."""
import logging
from typing import Callable, Optional

from jlpt_drill.models import AnswerRecord, Choice, DailyFilter, PoolFilter, PoolQuestion
from jlpt_drill.pool import build_pool

logger = logging.getLogger(__name__)

# Session states
LOADING = "loading"
EMPTY = "empty"
READY = "ready"
COMPLETED = "completed"

# submit() outcomes
SUBMITTED = "submitted"
ALREADY_ANSWERED = "already_answered"
NEEDS_SELECTION = "needs_selection"
NO_QUESTION = "no_question"

MistakeLog = Callable[[str, int, int], None]


class QuizSession:
    """Drives one practice attempt over a fixed pool of questions.

    Each index moves from unanswered to answered exactly once. Incorrect
    submissions are reported to ``mistake_log(group_key, item_number,
    picked_position)``; a failing mistake log never undoes the answer.
    """

    def __init__(self, mistake_log: Optional[MistakeLog] = None):
        self.mistake_log = mistake_log
        self.loading = False
        self.init([])

    def init(self, pool, mode: str = "exam", meta: Optional[PoolFilter] = None) -> None:
        self.pool = tuple(pool)
        self.mode = mode
        self.meta = meta
        self.cursor = 0
        self.answers: dict[int, AnswerRecord] = {}
        self._pending: dict[int, Choice] = {}
        self.score = 0
        self.total_answered = 0
        self.loading = False

    def load(self, store, pool_filter: PoolFilter) -> bool:
        """Build a pool for the filter and start over with it. False if it came back empty."""
        self.loading = True
        mode = "daily" if isinstance(pool_filter, DailyFilter) else "exam"
        try:
            pool = build_pool(store, pool_filter)
        finally:
            self.loading = False
        self.init(pool, mode=mode, meta=pool_filter)
        logger.debug("Session loaded %d questions (%s)", len(self.pool), mode)
        return bool(self.pool)

    @property
    def is_empty(self) -> bool:
        return not self.pool

    @property
    def total_available(self) -> int:
        return len(self.pool)

    @property
    def current(self) -> Optional[PoolQuestion]:
        if self.is_empty:
            return None
        return self.pool[self.cursor]

    @property
    def selected(self) -> Optional[Choice]:
        record = self.answers.get(self.cursor)
        if record is not None:
            return record.picked
        return self._pending.get(self.cursor)

    @property
    def answered(self) -> bool:
        return self.cursor in self.answers

    @property
    def last_correct(self) -> Optional[bool]:
        record = self.answers.get(self.cursor)
        return record.correct if record else None

    @property
    def is_last(self) -> bool:
        return not self.is_empty and self.cursor >= len(self.pool) - 1

    @property
    def state(self) -> str:
        if self.loading:
            return LOADING
        if self.is_empty:
            return EMPTY
        if self.is_last and self.answered:
            return COMPLETED
        return READY

    def answer_at(self, index: int) -> Optional[AnswerRecord]:
        return self.answers.get(index)

    def pick(self, choice: Choice) -> bool:
        if self.is_empty or self.answered:
            return False
        self._pending[self.cursor] = choice
        return True

    def submit(self) -> str:
        question = self.current
        if question is None:
            return NO_QUESTION
        if self.answered:
            return ALREADY_ANSWERED
        picked = self._pending.get(self.cursor)
        if picked is None:
            return NEEDS_SELECTION

        correct_choice = question.correct_choice
        correct = correct_choice is not None and picked.position == correct_choice.position
        if not correct and self.mistake_log is not None:
            try:
                self.mistake_log(question.group_key, question.item_number, picked.position)
            except Exception:
                logger.exception("Failed to log mistake for %s #%s",
                                 question.group_key, question.item_number)

        self.answers[self.cursor] = AnswerRecord(picked=picked, correct=correct)
        self._pending.pop(self.cursor, None)
        self.total_answered += 1
        if correct:
            self.score += 1
        return SUBMITTED

    def jump_to(self, index: int) -> None:
        if self.is_empty:
            return
        self.cursor = max(0, min(len(self.pool) - 1, index))

    def next(self) -> None:
        self.jump_to(self.cursor + 1)

    def prev(self) -> None:
        self.jump_to(self.cursor - 1)

    def summary(self) -> dict:
        total = len(self.pool)
        return {
            "score": self.score,
            "answered": self.total_answered,
            "total": total,
            "percent": round(self.score / total * 100, 1) if total else 0.0,
        }
