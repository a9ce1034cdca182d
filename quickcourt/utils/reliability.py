from typing import Optional
from config.config import Config

RELIABILITY_MIN = 0
RELIABILITY_MAX = 100

# Score change per booking outcome
RELIABILITY_DELTAS = {
    'completed': 2,
    'cancelled': -10,
}


def init_reliability() -> int:
    """Score assigned to new users"""
    return Config.DEFAULT_RELIABILITY_SCORE


def adjust_reliability(current: Optional[float], event: str) -> float:
    """
    Nudge a user's reliability score for a booking outcome.
    Unknown events leave the score unchanged; result is clamped to [0, 100].
    """
    score = Config.DEFAULT_RELIABILITY_SCORE if current is None else current
    score += RELIABILITY_DELTAS.get(event, 0)
    return max(RELIABILITY_MIN, min(RELIABILITY_MAX, score))
