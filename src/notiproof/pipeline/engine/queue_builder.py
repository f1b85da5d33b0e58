from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping, Sequence, TypeVar

from notiproof.pipeline.engine.eligibility import WeightConfig, weight_of

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_QUEUE_SIZE = 15


@dataclass
class QueueCursors:
    """Read position into each type's candidate list. Local to one build."""

    positions: dict[str, int] = field(default_factory=dict)

    def position(self, event_type: str) -> int:
        return self.positions.get(event_type, 0)

    def advance(self, event_type: str) -> None:
        self.positions[event_type] = self.position(event_type) + 1


def available_types(
    grouped: Mapping[str, Sequence[T]],
    weights: Mapping[str, WeightConfig],
    cursors: QueueCursors,
) -> list[str]:
    # types with a non-positive weight are switched off for the build
    return [
        t
        for t, pool in grouped.items()
        if cursors.position(t) < len(pool) and weight_of(t, weights) > 0
    ]


def pick_weighted_type(
    available: Sequence[str],
    weights: Mapping[str, WeightConfig],
    rng: random.Random,
) -> str:
    """Standard weighted lottery over the available types."""
    total_weight = sum(weight_of(t, weights) for t in available)
    r = rng.random() * total_weight
    for t in available:
        r -= weight_of(t, weights)
        if r <= 0:
            return t
    # float residue; r started below total_weight so this is the last type
    return available[-1]


def build_weighted_queue(
    grouped: Mapping[str, Sequence[T]],
    weights: Mapping[str, WeightConfig],
    target_size: int = DEFAULT_QUEUE_SIZE,
    *,
    rng: random.Random | None = None,
) -> list[tuple[str, T]]:
    """
    Weighted round-robin without replacement.

    Each pick draws a type proportionally to its weight among the types that
    still have unread candidates, then takes that type's next candidate
    (lists are most-recent-first). Stops at target_size or when every pool is
    exhausted; a short queue is a normal outcome.

    Returns (event_type, item) pairs in display order.
    """
    rng = rng or random.Random()
    cursors = QueueCursors()
    queue: list[tuple[str, T]] = []

    while len(queue) < max(target_size, 0):
        available = available_types(grouped, weights, cursors)
        if not available:
            logger.debug("No more candidates, queue size: %d", len(queue))
            break

        selected = pick_weighted_type(available, weights, rng)
        queue.append((selected, grouped[selected][cursors.position(selected)]))
        cursors.advance(selected)

    return queue


def queue_distribution(queue: Sequence[tuple[str, object]]) -> dict[str, int]:
    return dict(Counter(t for t, _ in queue))
