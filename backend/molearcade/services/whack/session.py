import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .spawn_table import TargetType

BOARD_SIZE = 9


class Phase(str, Enum):
    IDLE = 'idle'
    PLAYING = 'playing'
    PAUSED = 'paused'
    LEVEL_COMPLETE = 'level_complete'
    TUTORIAL_GATE = 'tutorial_gate'
    GAME_OVER = 'game_over'
    VICTORY = 'victory'


TERMINAL_PHASES = frozenset({Phase.GAME_OVER, Phase.VICTORY})
# Phases during which the host still considers a run in progress.
ACTIVE_PHASES = frozenset({Phase.PLAYING, Phase.PAUSED, Phase.LEVEL_COMPLETE, Phase.TUTORIAL_GATE})


@dataclass(frozen=True)
class Session:
    """Everything that changes during one play of the board.

    Immutable: every transition produces a new value through `replace`, so
    the controller can compare before/after and tests can hold on to
    snapshots.
    """

    score: int = 0
    time_left: int = 30
    level: int = 1
    combo: int = 0
    active_cell: Optional[int] = None
    active_type: TargetType = TargetType.NORMAL
    phase: Phase = Phase.IDLE
    pending_resolution: bool = False

    def replace(self, **changes) -> 'Session':
        return dataclasses.replace(self, **changes)

    @property
    def is_playing(self) -> bool:
        return self.phase in ACTIVE_PHASES

    @property
    def is_paused(self) -> bool:
        return self.phase == Phase.PAUSED

    @property
    def is_finished(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def in_data_leak(self, window_sec: int = 10) -> bool:
        return self.time_left < window_sec

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'time_left': self.time_left,
            'level': self.level,
            'combo': self.combo,
            'active_cell': self.active_cell,
            'active_type': self.active_type.value if self.active_cell is not None else None,
            'phase': self.phase.value,
            'pending_resolution': self.pending_resolution,
        }
