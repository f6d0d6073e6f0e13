from __future__ import annotations

import logging
from typing import Optional

from .models import Session, SuggestedCategory

logger = logging.getLogger(__name__)

VOTES_NEEDED_FOR_CATEGORY = 3
MAX_MANDATORY_QUESTIONS = 5


def find_suggestion_key(session: Session, name: str) -> Optional[str]:
    wanted = name.strip().lower()
    for key in session.suggested_categories:
        if key.lower() == wanted:
            return key
    return None


def add_suggestion(session: Session, player_name: str, category_name: str) -> Optional[str]:
    """Register a player's suggestion.

    Returns the canonical category name when this suggestion is the one that
    brings the category to the approval threshold, otherwise ``None``.
    """
    name = (category_name or "").strip()
    if session.phase != "category-voting" or not name or not player_name:
        return None

    key = find_suggestion_key(session, name)
    if key is None:
        key = name
        session.suggested_categories[key] = SuggestedCategory()
        logger.info("%s suggested: %s", player_name, key)
    else:
        logger.info("%s also wants: %s", player_name, key)

    category = session.suggested_categories[key]
    before = len(category.suggesters)
    category.suggesters.add(player_name)

    if before < VOTES_NEEDED_FOR_CATEGORY <= len(category.suggesters):
        logger.info('Category "%s" reached %d people', key, VOTES_NEEDED_FOR_CATEGORY)
        return key
    return None


def is_approved(category: SuggestedCategory) -> bool:
    return len(category.suggesters) >= VOTES_NEEDED_FOR_CATEGORY


def votes_needed(player_count: int) -> int:
    return player_count // 2 + 1


def mandatory_questions(suggester_count: int) -> int:
    """3 suggesters -> 1 question before skipping is allowed, capped at 5."""
    return max(1, min(suggester_count - 2, MAX_MANDATORY_QUESTIONS))


def skip_vote_status(session: Session) -> dict:
    total_players = len(session.players)
    vote_count = len(session.skip_votes)
    needed = votes_needed(total_players)

    category = session.current_category()
    mandatory = mandatory_questions(len(category.suggesters) if category else 0)
    answered = session.current_question_index + 1 if session.phase == "playing" else 0
    can_skip_yet = answered >= mandatory

    return {
        "skipVoteCount": vote_count,
        "totalPlayers": total_players,
        "votesNeeded": needed,
        "mandatoryQuestions": mandatory,
        "questionsAnswered": answered,
        "canSkipYet": can_skip_yet,
        "shouldSkip": total_players > 0 and vote_count >= needed and can_skip_yet,
        "voters": sorted(session.skip_votes),
    }
