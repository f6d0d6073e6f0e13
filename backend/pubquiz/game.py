from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from . import projector
from .db import QuestionBank, find_questions_for_category
from .events import Hub, Message
from .models import Player, Question, SelectedCategory, Session
from .schemas import (
    AddQuestionIn,
    PlayerActionIn,
    PlayerJoinIn,
    PointsIn,
    SubmitAnswerIn,
    SuggestCategoryIn,
    UpdateScoreIn,
)
from .scoring import award_points, deduct_bet_points, score_reveal, set_score
from .utils import capitalize_name
from .voting import add_suggestion, find_suggestion_key, is_approved, skip_vote_status

logger = logging.getLogger(__name__)

NO_APPROVED_CATEGORIES = "No categories with 3+ votes!"
NO_QUESTIONS = "No categories with questions!"

# action name -> (controller method, payload schema or None when the payload is ignored)
HANDLERS: Dict[str, Tuple[str, Optional[Type[BaseModel]]]] = {
    "playerJoin": ("player_join", PlayerJoinIn),
    "suggestCategory": ("suggest_category", SuggestCategoryIn),
    "addQuestion": ("add_question", AddQuestionIn),
    "startCategoryVoting": ("start_category_voting", None),
    "startQuiz": ("start_quiz", None),
    "submitAnswer": ("submit_answer", SubmitAnswerIn),
    "placeBet": ("place_bet", PlayerActionIn),
    "voteSkipCategory": ("vote_skip_category", PlayerActionIn),
    "removeSkipVote": ("remove_skip_vote", PlayerActionIn),
    "nextQuestion": ("next_question", None),
    "prevQuestion": ("prev_question", None),
    "nextCategory": ("next_category", None),
    "toggleAnswer": ("toggle_answer", None),
    "updateScore": ("update_score", UpdateScoreIn),
    "awardPoints": ("award_points", PointsIn),
    "deductBetPoints": ("deduct_bet_points", PointsIn),
    "resetQuiz": ("reset_quiz", None),
    "refreshQuestions": ("refresh_questions", None),
    "disconnect": ("disconnect", PlayerActionIn),
}


class GameController:
    """Owns the single quiz session and applies client actions to it one at a time."""

    def __init__(self, hub: Optional[Hub] = None, question_bank: Optional[QuestionBank] = None):
        self.session = Session()
        self.hub = hub or Hub()
        self.question_bank = question_bank or QuestionBank()
        self.lock = asyncio.Lock()

    async def dispatch(self, action: str, payload: Any = None, origin: Optional[str] = None) -> List[Message]:
        """Run one inbound action, deliver what it produced and return the messages."""
        entry = HANDLERS.get(action)
        if entry is None:
            logger.warning("Ignoring unknown action %r", action)
            return []

        method_name, schema = entry
        data = None
        if schema is not None:
            try:
                data = schema.model_validate(payload if payload is not None else {})
            except ValidationError as exc:
                logger.debug("Ignoring %s with malformed payload: %s", action, exc)
                return []

        async with self.lock:
            handler = getattr(self, method_name)
            messages = await handler(data) if schema is not None else await handler()
            await self.hub.publish(messages, origin)
        return messages

    # --- broadcasts ---

    def _game_state(self) -> Message:
        return Message(event="gameState", data=projector.public_game_state(self.session))

    def _player_update(self) -> Message:
        return Message(event="playerUpdate", data=projector.players_with_scores(self.session))

    def bank_counts(self) -> Dict[str, int]:
        return {c["name"].lower(): len(c["questions"]) for c in self.question_bank.categories}

    def _category_votes(self) -> Message:
        return Message(event="categoryVotesUpdate", data=projector.category_votes(self.session, self.bank_counts()))

    def _skip_votes(self) -> Message:
        return Message(event="skipVoteUpdate", data=projector.skip_votes(self.session))

    def snapshot(self) -> List[Message]:
        """Full current state, pushed to a subscriber when it (re)connects."""
        return [self._game_state(), self._player_update(), self._category_votes(), self._skip_votes()]

    def _player(self, name: str) -> Optional[Player]:
        return self.session.players.get(capitalize_name(name))

    # --- lobby & voting ---

    async def player_join(self, data: PlayerJoinIn) -> List[Message]:
        s = self.session
        name = capitalize_name(data.name)
        if not name:
            return []

        if name not in s.players:
            s.players[name] = Player(name=name)
            logger.info("Player joined: %s", name)

        return [
            Message(event="nameUpdated", data={"name": name}, unicast=True),
            self._player_update(),
            self._skip_votes(),
        ]

    async def suggest_category(self, data: SuggestCategoryIn) -> List[Message]:
        s = self.session
        player_name = capitalize_name(data.player_name)
        if s.phase != "category-voting" or not player_name or not data.category_name.strip():
            return []

        approved = add_suggestion(s, player_name, data.category_name)
        messages = [self._category_votes(), self._game_state()]
        if approved is not None:
            messages.append(Message(event="categoryApproved", data={"categoryName": approved}))
        return messages

    async def add_question(self, data: AddQuestionIn) -> List[Message]:
        s = self.session
        wanted = data.category_name.strip().lower()

        target = next((c for c in s.selected_categories if c.name.lower() == wanted), None)
        if target is None:
            key = find_suggestion_key(s, data.category_name)
            target = s.suggested_categories[key] if key is not None else None
        if target is None:
            return []

        question = Question(**data.model_dump(exclude={"category_name", "id"}))
        target.questions.append(question)
        logger.info("Added question to %s: %s", data.category_name, question.question)
        return [self._category_votes(), self._game_state()]

    async def start_category_voting(self) -> List[Message]:
        s = self.session
        s.phase = "category-voting"
        s.suggested_categories = {}
        s.selected_categories = []
        s.current_category_index = 0
        s.current_question_index = -1
        s.show_answer = False
        s.skip_votes.clear()
        s.correct_players.clear()
        s.quiz_started = False
        logger.info("Category voting started")
        return [self._game_state(), self._category_votes(), self._skip_votes(), self._player_update()]

    async def start_quiz(self) -> List[Message]:
        s = self.session
        qualified = [(name, c) for name, c in s.suggested_categories.items() if is_approved(c)]
        if not qualified:
            return [Message(event="error", data={"message": NO_APPROVED_CATEGORIES}, unicast=True)]

        bank: list = []
        if any(not c.questions for _, c in qualified):
            bank = await asyncio.to_thread(self.question_bank.reload)

        selected: List[SelectedCategory] = []
        for name, category in qualified:
            questions = [q.model_copy(deep=True) for q in category.questions]
            if not questions:
                questions = find_questions_for_category(name, bank)
            if not questions:
                continue
            selected.append(
                SelectedCategory(
                    name=name,
                    questions=sorted(questions, key=lambda q: q.difficulty_rank),
                    suggesters=sorted(category.suggesters),
                )
            )

        if not selected:
            return [Message(event="error", data={"message": NO_QUESTIONS}, unicast=True)]

        s.selected_categories = sorted(selected, key=lambda c: -len(c.suggesters))
        s.phase = "playing"
        s.quiz_started = True
        s.current_category_index = 0
        s.current_question_index = 0
        s.show_answer = False
        s.skip_votes.clear()
        s.correct_players.clear()
        logger.info("Quiz started with %d categories", len(s.selected_categories))
        return [self._game_state(), self._skip_votes(), self._player_update()]

    async def refresh_questions(self) -> List[Message]:
        await asyncio.to_thread(self.question_bank.reload)
        return [self._category_votes()]

    # --- playing ---

    async def submit_answer(self, data: SubmitAnswerIn) -> List[Message]:
        s = self.session
        player = self._player(data.player_name)
        question = s.current_question()
        if player is None or question is None or s.show_answer or question.id != data.question_id:
            return []

        player.answers[question.id] = data.answer or ""
        logger.info("%s answered Q%s: %s", player.name, question.id, player.answers[question.id])
        return [
            Message(event="answerSubmitted", data={"playerName": player.name, "questionId": question.id}),
            self._player_update(),
        ]

    async def place_bet(self, data: PlayerActionIn) -> List[Message]:
        s = self.session
        player = self._player(data.player_name)
        upcoming = s.next_question()
        if player is None or upcoming is None or upcoming.id in s.scored_questions:
            return []

        player.bets.add(upcoming.id)
        logger.info("%s placed a bet on Q%s", player.name, upcoming.id)
        return [
            self._player_update(),
            Message(event="betPlaced", data={"questionId": upcoming.id}, unicast=True),
        ]

    async def vote_skip_category(self, data: PlayerActionIn) -> List[Message]:
        s = self.session
        player = self._player(data.player_name)
        if player is None or s.phase != "playing":
            return []

        s.skip_votes.add(player.name)
        logger.info("%s voted to skip category", player.name)
        messages = [self._skip_votes(), self._player_update()]
        if skip_vote_status(s)["shouldSkip"]:
            messages.extend(self._skip_to_next_category())
        return messages

    async def remove_skip_vote(self, data: PlayerActionIn) -> List[Message]:
        player = self._player(data.player_name)
        if player is None:
            return []

        self.session.skip_votes.discard(player.name)
        return [self._skip_votes(), self._player_update()]

    async def next_question(self) -> List[Message]:
        s = self.session
        category = s.current_category()
        if s.phase != "playing" or category is None:
            return []

        if s.current_question_index < len(category.questions) - 1:
            s.current_question_index += 1
            self._hide_answer()
            messages = [self._game_state(), self._player_update(), self._skip_votes()]
            if skip_vote_status(s)["shouldSkip"]:
                messages.extend(self._skip_to_next_category())
            return messages
        return self._skip_to_next_category()

    async def prev_question(self) -> List[Message]:
        s = self.session
        if s.phase != "playing" or s.current_question_index <= 0:
            return []

        s.current_question_index -= 1
        self._hide_answer()
        return [self._game_state(), self._player_update(), self._skip_votes()]

    async def next_category(self) -> List[Message]:
        if self.session.phase != "playing":
            return []
        return self._skip_to_next_category()

    async def toggle_answer(self) -> List[Message]:
        s = self.session
        question = s.current_question()
        if question is None:
            return []

        if s.show_answer:
            self._hide_answer()
        else:
            s.show_answer = True
            score_reveal(s, question)
        return [self._game_state(), self._player_update()]

    def _hide_answer(self) -> None:
        self.session.show_answer = False
        self.session.correct_players.clear()

    def _skip_to_next_category(self) -> List[Message]:
        s = self.session
        s.skip_votes.clear()
        self._hide_answer()

        if s.current_category_index < len(s.selected_categories) - 1:
            s.current_category_index += 1
            s.current_question_index = 0
            logger.info("Moved to category %s", s.selected_categories[s.current_category_index].name)
        else:
            s.phase = "finished"
            s.current_question_index = -1
            logger.info("Quiz finished")
        return [self._game_state(), self._skip_votes(), self._player_update()]

    # --- admin corrections ---

    async def update_score(self, data: UpdateScoreIn) -> List[Message]:
        player = self._player(data.player_name)
        if player is None:
            return []
        set_score(player, data.score)
        return [self._player_update()]

    async def award_points(self, data: PointsIn) -> List[Message]:
        player = self._player(data.player_name)
        if player is None:
            return []
        award_points(player, data.points, data.question_id)
        return [self._player_update()]

    async def deduct_bet_points(self, data: PointsIn) -> List[Message]:
        player = self._player(data.player_name)
        if player is None or not deduct_bet_points(player, data.points, data.question_id):
            return []
        return [self._player_update()]

    async def reset_quiz(self) -> List[Message]:
        self.session = Session()
        self.hub.reset()
        logger.info("Quiz reset")
        return [self._game_state(), self._player_update(), self._skip_votes(), self._category_votes()]

    async def disconnect(self, data: PlayerActionIn) -> List[Message]:
        player = self._player(data.player_name)
        if player is None:
            return []
        self.session.skip_votes.discard(player.name)
        return [self._skip_votes(), self._player_update()]
