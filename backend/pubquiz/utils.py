import random
import re
import time
from typing import Any

_SEGMENT_START = re.compile(r"(^|[\s-])(\w)")


def now_ts() -> float:
    return time.time()


def capitalize_name(name: Any) -> str:
    """'maRTIJN' -> 'Martijn', 'jan-willem' -> 'Jan-Willem'."""
    if not isinstance(name, str):
        return ""
    lowered = " ".join(name.split()).lower()
    return _SEGMENT_START.sub(lambda m: m.group(1) + m.group(2).upper(), lowered)


def new_question_id() -> str:
    # unique within one session only
    return f"{int(now_ts() * 1000)}-{random.randint(0, 0xFFFFFF):06x}"


def sort_leaderboard(players: list[dict]) -> list[dict]:
    # sorted() is stable so ties keep join order
    return sorted(players, key=lambda p: -p.get("score", 0))
