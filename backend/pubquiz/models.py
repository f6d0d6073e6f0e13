from typing import Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .utils import new_question_id

QuestionType = Literal["text", "multiple-choice", "number", "music", "video", "image"]
QUESTION_TYPES = ("text", "multiple-choice", "number", "music", "video", "image")

Phase = Literal["lobby", "category-voting", "playing", "finished"]

DIFFICULTY_NAMES = {"easy": 1, "medium": 2, "hard": 3}
DEFAULT_DIFFICULTY = {"multiple-choice": 1, "number": 3}


class Question(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_question_id)
    type: QuestionType = "text"
    question: str = ""
    answer: str = ""
    options: Optional[List[str]] = None
    tolerance: float = 0
    # media
    song: Optional[str] = None
    artist: Optional[str] = None
    clip_title: Optional[str] = None
    clip_source: Optional[str] = None
    image_url: Optional[str] = None
    image_credit: Optional[str] = None
    youtube_id: Optional[str] = None
    play_seconds: int = 10
    difficulty: Optional[int] = None
    accepted_answers: Optional[List[str]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None or value == "":
            return new_question_id()
        return str(value)

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> str:
        if isinstance(value, str) and value.lower() in QUESTION_TYPES:
            return value.lower()
        return "text"

    @field_validator("question", "answer", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tolerance", mode="before")
    @classmethod
    def _default_tolerance(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("play_seconds", mode="before")
    @classmethod
    def _default_play_seconds(cls, value: Any) -> Any:
        return 10 if value is None else value

    @field_validator("difficulty", mode="before")
    @classmethod
    def _parse_difficulty(cls, value: Any) -> Optional[int]:
        if isinstance(value, str):
            value = DIFFICULTY_NAMES.get(value.strip().lower(), value)
        try:
            rank = int(value)
        except (TypeError, ValueError):
            return None
        return rank if 1 <= rank <= 3 else None

    @property
    def difficulty_rank(self) -> int:
        if self.difficulty is not None:
            return self.difficulty
        return DEFAULT_DIFFICULTY.get(self.type, 2)


class Player(BaseModel):
    name: str
    answers: Dict[str, str] = Field(default_factory=dict)  # question id -> answer
    score: int = 0
    bets: Set[str] = Field(default_factory=set)  # question ids


class SuggestedCategory(BaseModel):
    suggesters: Set[str] = Field(default_factory=set)
    questions: List[Question] = Field(default_factory=list)


class SelectedCategory(BaseModel):
    name: str
    questions: List[Question]
    suggesters: List[str]


# Phases: lobby -> category-voting -> playing -> finished
class Session(BaseModel):
    phase: Phase = "lobby"
    suggested_categories: Dict[str, SuggestedCategory] = Field(default_factory=dict)
    selected_categories: List[SelectedCategory] = Field(default_factory=list)
    current_category_index: int = 0
    current_question_index: int = -1
    show_answer: bool = False
    players: Dict[str, Player] = Field(default_factory=dict)
    skip_votes: Set[str] = Field(default_factory=set)
    correct_players: Set[str] = Field(default_factory=set)
    scored_questions: Set[str] = Field(default_factory=set)
    quiz_started: bool = False

    def current_category(self) -> Optional[SelectedCategory]:
        if 0 <= self.current_category_index < len(self.selected_categories):
            return self.selected_categories[self.current_category_index]
        return None

    def current_question(self) -> Optional[Question]:
        category = self.current_category()
        if category is None or self.phase != "playing":
            return None
        if 0 <= self.current_question_index < len(category.questions):
            return category.questions[self.current_question_index]
        return None

    def next_question(self) -> Optional[Question]:
        """The question that follows the active one, crossing into the next category."""
        if self.current_question() is None:
            return None
        category = self.current_category()
        if self.current_question_index + 1 < len(category.questions):
            return category.questions[self.current_question_index + 1]
        for later in self.selected_categories[self.current_category_index + 1:]:
            if later.questions:
                return later.questions[0]
        return None
