from __future__ import annotations

import logging
from typing import Dict

from .matching import check_answer
from .models import Player, Question, Session

logger = logging.getLogger(__name__)

CORRECT_POINTS = 1
BET_MULTIPLIER = 2
BET_PENALTY = 1


def score_reveal(session: Session, question: Question) -> Dict[str, int]:
    """Mark correct players for ``question`` and, the first time it is revealed, apply points.

    Returns the score change per player name (empty on a repeated reveal).
    """
    award = question.id not in session.scored_questions
    awards: Dict[str, int] = {}

    for name, player in session.players.items():
        answer = player.answers.get(question.id)
        if not answer or not answer.strip():
            continue

        has_bet = question.id in player.bets
        if check_answer(answer, question):
            session.correct_players.add(name)
            awards[name] = CORRECT_POINTS * BET_MULTIPLIER if has_bet else CORRECT_POINTS
        elif has_bet:
            awards[name] = -BET_PENALTY

    if not award:
        return {}

    session.scored_questions.add(question.id)
    for name, delta in awards.items():
        session.players[name].score += delta
    logger.info("Scored question %s: %s", question.id, awards)
    return awards


def set_score(player: Player, score: int) -> None:
    player.score = score


def award_points(player: Player, points: int, question_id: str) -> int:
    actual = points * BET_MULTIPLIER if question_id in player.bets else points
    player.score += actual
    return actual


def deduct_bet_points(player: Player, points: int, question_id: str) -> bool:
    if question_id not in player.bets:
        return False
    player.score -= points
    return True
