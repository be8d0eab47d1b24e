"""
Reviewer availability scoring.

A pure function of the reviewer's status, workload and recency. It never
touches the database and is safe to call from anywhere.
"""
import math

STATUS_PENALTIES = {
    'available': 0,
    'limited': 30,
    'unavailable': 70,
}

MIN_SCORE = 0
MAX_SCORE = 100


def load_percentage(current_load, max_load):
    """Workload as a percentage of capacity. No capacity counts as full."""
    if max_load is None or max_load <= 0:
        return 100.0
    return current_load / max_load * 100


def load_penalty(current_load, max_load):
    pct = load_percentage(current_load, max_load)
    if pct >= 100:
        return 50
    if pct >= 80:
        return 30
    if pct >= 60:
        return 15
    return 0


def recency_adjustment(last_review_date, now):
    if last_review_date is None:
        return -5
    days_since = math.floor((now - last_review_date).total_seconds() / 86400)
    if days_since <= 30:
        return 10
    if days_since >= 180:
        return -10
    return 0


def availability_score(status, current_load, max_load, last_review_date, now) -> int:
    """
    Score a reviewer's availability on a 0-100 scale.

    Args:
        status: 'available', 'limited' or 'unavailable'
        current_load: active review assignments
        max_load: maximum concurrent reviews
        last_review_date: datetime of the last completed review, or None
        now: reference time

    Returns:
        int: score clamped to [0, 100]
    """
    score = MAX_SCORE
    score -= STATUS_PENALTIES.get(status, 0)
    score -= load_penalty(current_load or 0, max_load)
    score += recency_adjustment(last_review_date, now)
    return max(MIN_SCORE, min(MAX_SCORE, int(score)))


def score_reviewer(reviewer, now) -> int:
    """availability_score for a ReviewerProfile."""
    return availability_score(
        reviewer.availability_status,
        reviewer.current_load,
        reviewer.max_load,
        reviewer.last_review_date,
        now,
    )
