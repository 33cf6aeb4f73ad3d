from typing import NamedTuple, Optional

from .spawn_table import TargetType

RAMPAGE_COMBO = 5

# Base points for a clean hit, before the rampage/data-leak multiplier.
HIT_POINTS = {
    TargetType.NORMAL: 1,
    TargetType.BONUS: 5,
    TargetType.BOSS: 30,
}
# Flat penalties, never multiplied.
HIT_PENALTIES = {
    TargetType.DECOY: 3,
    TargetType.IMPOSTOR: 5,
}
BONUS_TIME_SEC = 5
BOSS_MISS_PENALTY = 30


class Outcome(NamedTuple):
    score_delta: int
    combo_after: int
    time_delta: int = 0


def multiplier(combo_before: int, data_leak: bool) -> int:
    """Rampage and data-leak multipliers stack, up to 4x."""
    return (2 if combo_before >= RAMPAGE_COMBO else 1) * (2 if data_leak else 1)


def resolve(target_type: TargetType, combo_before: int, data_leak: bool) -> Outcome:
    """Resolve a hit on the active target.

    +1 / +5 (+5s) / +30 for normal, bonus and boss, times the multiplier,
    combo +1. Decoy -3 and impostor -5 flat, combo back to 0.
    """
    target_type = TargetType(target_type)
    if target_type in HIT_PENALTIES:
        return Outcome(-HIT_PENALTIES[target_type], 0)
    points = HIT_POINTS[target_type] * multiplier(combo_before, data_leak)
    time_delta = BONUS_TIME_SEC if target_type == TargetType.BONUS else 0
    return Outcome(points, combo_before + 1, time_delta)


def resolve_miss(target_type: TargetType, combo_before: int) -> Outcome:
    """Resolve a target that left the board without being struck.

    A missed boss costs 30 points but keeps the combo; a missed decoy is
    the right call and costs nothing. Anything else just breaks the combo.
    """
    target_type = TargetType(target_type)
    if target_type == TargetType.BOSS:
        return Outcome(-BOSS_MISS_PENALTY, combo_before)
    if target_type == TargetType.DECOY:
        return Outcome(0, combo_before)
    return Outcome(0, 0)


def apply_outcome(session, outcome: Outcome, time_cap: Optional[int] = None):
    """Return a copy of `session` with the outcome applied, clamped at 0."""
    time_left = max(0, session.time_left + outcome.time_delta)
    if time_cap is not None:
        time_left = min(time_left, time_cap)
    return session.replace(
        score=max(0, session.score + outcome.score_delta),
        combo=max(0, outcome.combo_after),
        time_left=time_left,
    )
