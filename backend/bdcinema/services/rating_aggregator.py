"""
rating_aggregator.py

Meter rating statistics for a single title, recomputed from review rows on
every read. Nothing here touches the database.

The Meter scale is ordered worst to best:
    disaster < timepass < go_for_it < perfection
"""
from collections import Counter
from enum import Enum
from typing import Dict, Iterable, Optional, Union

from bdcinema.exceptions import ValidationError


class MeterRating(str, Enum):
    DISASTER = "disaster"
    TIMEPASS = "timepass"
    GO_FOR_IT = "go_for_it"
    PERFECTION = "perfection"

    @property
    def rank(self) -> int:
        return METER_ORDER.index(self)

    @classmethod
    def parse(cls, value) -> "MeterRating":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid rating: {value!r}")


METER_ORDER = (
    MeterRating.DISASTER,
    MeterRating.TIMEPASS,
    MeterRating.GO_FOR_IT,
    MeterRating.PERFECTION,
)

RatingLike = Union[str, MeterRating]


def _rating_of(item) -> Optional[MeterRating]:
    """Accept a Review-like object (with .rating) or a bare rating value."""
    raw = getattr(item, "rating", item)
    try:
        return MeterRating(raw)
    except ValueError:
        return None


def parse_ratings(joined: Optional[str]):
    """Split the comma-joined ratings column of a title listing; unknown tokens are dropped."""
    if not joined:
        return []
    out = []
    for token in joined.split(","):
        rating = _rating_of(token.strip())
        if rating is not None:
            out.append(rating)
    return out


def compute_counts(reviews: Iterable) -> Dict[str, int]:
    """Tally reviews per rating. All four keys are always present."""
    counts = {r.value: 0 for r in METER_ORDER}
    for item in reviews:
        rating = _rating_of(item)
        if rating is not None:
            counts[rating.value] += 1
    return counts


def compute_mode_rating(rating_values: Union[None, str, Iterable]) -> Optional[MeterRating]:
    """
    Most frequent rating, or None when there are no reviews.

    Ties go to the worse rating, so a title split evenly between
    perfection and disaster reads as disaster.
    """
    if rating_values is None:
        return None
    if isinstance(rating_values, str):
        ratings = parse_ratings(rating_values)
    else:
        ratings = [r for r in (_rating_of(v) for v in rating_values) if r is not None]
    if not ratings:
        return None

    tally = Counter(ratings)
    best = max(tally.values())
    for rating in METER_ORDER:
        if tally.get(rating, 0) == best:
            return rating
    return None


def summarize(reviews: Iterable) -> Dict:
    """Counts, whole-number percentage shares and mode for the title detail view."""
    items = list(reviews)
    counts = compute_counts(items)
    total = sum(counts.values())
    if total:
        percentages = {k: round(v * 100 / total) for k, v in counts.items()}
    else:
        percentages = {k: 0 for k in counts}
    mode = compute_mode_rating(items)
    return {
        "total": total,
        "counts": counts,
        "percentages": percentages,
        "mode": mode.value if mode else None,
    }
