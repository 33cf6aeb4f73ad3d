from enum import Enum
from typing import Dict, Tuple


class TargetType(str, Enum):
    NORMAL = 'normal'
    DECOY = 'decoy'
    BONUS = 'bonus'
    IMPOSTOR = 'impostor'
    BOSS = 'boss'


SpawnRow = Tuple[Tuple[TargetType, float], ...]

# Keyed by (level, is_data_leak_window). Column order is fixed and is the
# order cumulative thresholds are walked in when sampling.
SPAWN_TABLES: Dict[Tuple[int, bool], SpawnRow] = {
    (1, False): (
        (TargetType.NORMAL, 0.60),
        (TargetType.DECOY, 0.21),
        (TargetType.BONUS, 0.19),
    ),
    (1, True): (
        (TargetType.NORMAL, 0.50),
        (TargetType.DECOY, 0.21),
        (TargetType.BONUS, 0.29),
    ),
    (2, False): (
        (TargetType.NORMAL, 0.38),
        (TargetType.DECOY, 0.10),
        (TargetType.BONUS, 0.25),
        (TargetType.IMPOSTOR, 0.27),
    ),
    (2, True): (
        (TargetType.NORMAL, 0.28),
        (TargetType.DECOY, 0.10),
        (TargetType.BONUS, 0.35),
        (TargetType.IMPOSTOR, 0.27),
    ),
    (3, False): (
        (TargetType.NORMAL, 0.40),
        (TargetType.DECOY, 0.15),
        (TargetType.BONUS, 0.20),
        (TargetType.IMPOSTOR, 0.15),
        (TargetType.BOSS, 0.10),
    ),
    (3, True): (
        (TargetType.NORMAL, 0.30),
        (TargetType.DECOY, 0.15),
        (TargetType.BONUS, 0.30),
        (TargetType.IMPOSTOR, 0.15),
        (TargetType.BOSS, 0.10),
    ),
}


def spawn_row(level: int, data_leak: bool) -> SpawnRow:
    try:
        return SPAWN_TABLES[(int(level), bool(data_leak))]
    except KeyError:
        raise ValueError(f'no spawn table for level {level}')


def pick_type(row: SpawnRow, chance: float) -> TargetType:
    """Map a single uniform draw in [0, 1) onto a row.

    Walks the cumulative weights in column order. A draw that lands past
    the last threshold (float rounding) falls into the last column.
    """
    cumulative = 0.0
    for target_type, weight in row:
        cumulative += weight
        if chance < cumulative:
            return target_type
    return row[-1][0]
