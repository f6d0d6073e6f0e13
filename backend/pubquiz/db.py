from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Question

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    QUESTIONS_FILE: str = "questions.json"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    CORS_ORIGIN_REGEX: Optional[str] = None
    MAX_EVENTS: int = 200
    LOG_LEVEL: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


BankCategory = Dict[str, Any]  # {"name": str, "questions": List[Question]}


def parse_categories(raw: Any) -> List[BankCategory]:
    """Turn decoded JSON into bank categories, skipping malformed records."""
    if isinstance(raw, dict):
        raw = raw.get("categories", [])
    if not isinstance(raw, list):
        raise ValueError("question bank must be a list of categories")

    categories: List[BankCategory] = []
    for entry in raw:
        if not isinstance(entry, dict) or not str(entry.get("name") or "").strip():
            logger.warning("Skipping category without a name: %r", entry)
            continue

        records = entry.get("questions") or []
        if not isinstance(records, list):
            logger.warning("Skipping category %s: questions is not a list", entry["name"])
            continue

        questions: List[Question] = []
        for record in records:
            if not isinstance(record, dict):
                continue
            try:
                questions.append(Question.model_validate(record))
            except ValidationError as exc:
                logger.warning("Skipping malformed question in %s: %s", entry["name"], exc)

        categories.append({"name": str(entry["name"]).strip(), "questions": questions})
    return categories


def load_categories(path: str | Path) -> List[BankCategory]:
    """Read the question bank; any failure yields an empty bank."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return parse_categories(json.load(fh))
    except (OSError, ValueError) as exc:
        logger.warning("Could not load question bank %s: %s", path, exc)
        return []


def find_questions_for_category(name: str, all_categories: List[BankCategory]) -> List[Question]:
    wanted = (name or "").strip().lower()
    for category in all_categories:
        if category["name"].lower() == wanted:
            return [q.model_copy(deep=True) for q in category["questions"]]
    return []


class QuestionBank:
    """Cached view of the on-disk question bank."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.QUESTIONS_FILE)
        self._categories: Optional[List[BankCategory]] = None

    @property
    def categories(self) -> List[BankCategory]:
        if self._categories is None:
            return self.reload()
        return self._categories

    def reload(self) -> List[BankCategory]:
        self._categories = load_categories(self.path)
        logger.info("Loaded %d categories from %s", len(self._categories), self.path)
        return self._categories

    def find(self, name: str) -> List[Question]:
        return find_questions_for_category(name, self.categories)
