"""Client-safe views of the session, shared by broadcasts and HTTP reads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .models import Question, Session
from .utils import sort_leaderboard
from .voting import VOTES_NEEDED_FOR_CATEGORY, is_approved, skip_vote_status

# fields that give the answer away for media questions
_REVEAL_ONLY = {
    "music": ("song", "artist"),
    "video": ("clipTitle", "clipSource"),
}
_PUBLIC = {
    "multiple-choice": ("options",),
    "music": ("youtubeId", "playSeconds"),
    "video": ("youtubeId", "playSeconds"),
    "image": ("imageUrl", "imageCredit"),
}


def public_question(question: Question, show_answer: bool) -> Dict[str, Any]:
    data = question.model_dump(by_alias=True)
    view: Dict[str, Any] = {
        "id": question.id,
        "type": question.type,
        "question": question.question,
        "difficulty": question.difficulty_rank,
        "answer": question.answer if show_answer else None,
    }
    for field in _PUBLIC.get(question.type, ()):
        view[field] = data[field]
    for field in _REVEAL_ONLY.get(question.type, ()):
        view[field] = data[field] if show_answer else None
    if show_answer:
        view["acceptedAnswers"] = question.accepted_answers or []
        if question.type == "number":
            view["tolerance"] = question.tolerance
    return view


def public_game_state(session: Session) -> Dict[str, Any]:
    category = session.current_category()
    question = session.current_question()
    next_question = session.next_question()

    return {
        "phase": session.phase,
        "currentCategoryIndex": session.current_category_index,
        "currentCategory": {
            "name": category.name,
            "questionCount": len(category.questions),
            "suggesters": category.suggesters,
        } if category else None,
        "currentQuestionIndex": session.current_question_index,
        "currentQuestion": public_question(question, session.show_answer) if question else None,
        "nextQuestionId": next_question.id if next_question else None,
        "showAnswer": session.show_answer,
        "correctPlayers": sorted(session.correct_players) if session.show_answer else [],
        "totalCategories": len(session.selected_categories),
        "quizStarted": session.quiz_started,
        "isFinished": session.phase == "finished",
        "votesNeededForCategory": VOTES_NEEDED_FOR_CATEGORY,
        "approvedCategoryCount": sum(
            1 for c in session.suggested_categories.values() if is_approved(c)
        ),
    }


def players_with_scores(session: Session) -> List[Dict[str, Any]]:
    current: Optional[Question] = session.current_question()
    upcoming: Optional[Question] = session.next_question()

    players = [
        {
            "name": name,
            "score": player.score,
            "answeredCount": len(player.answers),
            "currentAnswer": player.answers.get(current.id) if current else None,
            "hasBetOnCurrent": bool(current and current.id in player.bets),
            "hasBetOnNext": bool(upcoming and upcoming.id in player.bets),
            "hasVotedSkip": name in session.skip_votes,
            "isCorrect": session.show_answer and name in session.correct_players,
        }
        for name, player in session.players.items()
    ]
    return sort_leaderboard(players)


def category_votes(session: Session, bank_counts: Optional[Dict[str, int]] = None) -> List[Dict[str, Any]]:
    """Suggested categories, most suggesters first.

    ``bank_counts`` maps lowercased category names to the number of questions
    the question bank holds for them; it is used when no questions were
    entered by hand.
    """
    bank_counts = bank_counts or {}
    votes = [
        {
            "name": name,
            "suggesterCount": len(data.suggesters),
            "suggesters": sorted(data.suggesters),
            "isApproved": is_approved(data),
            "questionCount": len(data.questions) or bank_counts.get(name.lower(), 0),
        }
        for name, data in session.suggested_categories.items()
    ]
    return sorted(votes, key=lambda v: -v["suggesterCount"])


def skip_votes(session: Session) -> Dict[str, Any]:
    return skip_vote_status(session)
