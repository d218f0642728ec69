"""Data classes for the drill domain model."""
from dataclasses import dataclass, field
from typing import Optional, Union

LEVELS = ("N1", "N2", "N3", "N4", "N5")
CATEGORIES = ("grammar", "vocab")
SECTIONS = ("vocab", "grammar", "reading", "listening")
KINDS = ("language", "reading", "listening")
LEVEL_CHOICES = LEVELS + ("random-pair", "all")
MONTHS = ("07", "12")
# "7" is how some source files label the July session.
MONTH_ENCODINGS = MONTHS + ("7",)
SESSION_MONTHS = {"July": "07", "December": "12"}

MAX_WEEK = 10
DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class Choice:
    position: int
    content: str
    is_correct: bool = False
    explanation: Optional[str] = None


@dataclass(frozen=True)
class PoolQuestion:
    group_key: str
    item_number: int
    section: str
    stem: str
    passage: Optional[str] = None
    choices: tuple = ()

    @property
    def identity(self) -> tuple[str, int]:
        return (self.group_key, self.item_number)

    @property
    def correct_choice(self) -> Optional[Choice]:
        for choice in self.choices:
            if choice.is_correct:
                return choice
        return None


@dataclass(frozen=True)
class ExamFilter:
    """Mock-exam selection: which levels, sections and paper to draw from."""
    level: str = "random-pair"
    kind: str = "language"
    year: Optional[int] = None
    month: Optional[str] = None
    session: Optional[str] = None
    whole_paper: bool = False

    def __post_init__(self):
        if self.level not in LEVEL_CHOICES:
            raise ValueError(f"Unknown level: {self.level!r}")
        if self.kind not in KINDS:
            raise ValueError(f"Unknown kind: {self.kind!r}")
        if self.month is not None and self.month not in MONTH_ENCODINGS:
            raise ValueError(f"Unknown month: {self.month!r}")
        if self.session is not None and self.session not in SESSION_MONTHS:
            raise ValueError(f"Unknown session: {self.session!r}")

    @property
    def effective_month(self) -> Optional[str]:
        if self.month is not None:
            return self.month
        if self.session is not None:
            return SESSION_MONTHS[self.session]
        return None


@dataclass(frozen=True)
class DailyRef:
    level: str
    category: str
    week: int
    day: int


@dataclass(frozen=True)
class DailyFilter:
    """One day's practice set, by reference or by pre-computed daily key."""
    ref: Optional[DailyRef] = None
    daily_key: Optional[str] = None

    def __post_init__(self):
        if self.ref is None and self.daily_key is None:
            raise ValueError("DailyFilter needs a ref or a daily_key")


PoolFilter = Union[ExamFilter, DailyFilter]


@dataclass(frozen=True)
class AnswerRecord:
    picked: Choice
    correct: bool


@dataclass
class MistakeRecord:
    id: int
    created_at: int
    group_key: str
    item_number: int
    picked_position: int
    detail: Optional[PoolQuestion] = field(default=None, compare=False)
