"""Practice session composition."""

import math
import random
from collections.abc import Sequence

from lingo_engine.models.content import Exercise, ExerciseType

MIN_PRACTICE_EXERCISES = 5
MAX_PRACTICE_EXERCISES = 7
PRACTICE_SHARE = 0.6
MAX_MISSED_IN_PRACTICE = 3


def practice_size(full_count: int) -> int:
    """Target practice length for a full lesson of `full_count` exercises."""
    share = math.floor(PRACTICE_SHARE * full_count)
    return min(MAX_PRACTICE_EXERCISES, max(MIN_PRACTICE_EXERCISES, share))


def compose_practice_exercises(
    full_exercises: Sequence[Exercise],
    missed_exercises: Sequence[Exercise],
    rng: random.Random,
) -> list[Exercise]:
    """Pick and shuffle exercises for a practice session.

    Up to three missed exercises go in first. Remaining slots favour kinds
    not yet represented, then take whatever is left. Returns fewer than the
    target when the pool runs out. Inputs are never mutated.

    Args:
        full_exercises: Exercises of the full lesson.
        missed_exercises: Previously missed exercises, most recent first.
        rng: Random source for candidate order and final shuffle.

    Returns:
        A new list in randomized order.
    """
    target = practice_size(len(full_exercises))
    selected: list[Exercise] = []
    seen_ids: set[str] = set()

    for exercise in missed_exercises:
        if len(selected) >= min(MAX_MISSED_IN_PRACTICE, target):
            break
        if exercise.id in seen_ids:
            continue
        selected.append(exercise)
        seen_ids.add(exercise.id)

    candidates = [ex for ex in full_exercises if ex.id not in seen_ids]
    candidates = rng.sample(candidates, len(candidates))
    kinds: set[ExerciseType] = {ex.type for ex in selected}

    remaining = []
    for exercise in candidates:
        if len(selected) >= target:
            break
        if exercise.type not in kinds:
            selected.append(exercise)
            seen_ids.add(exercise.id)
            kinds.add(exercise.type)
        else:
            remaining.append(exercise)

    for exercise in remaining:
        if len(selected) >= target:
            break
        selected.append(exercise)
        seen_ids.add(exercise.id)

    return rng.sample(selected, len(selected))
