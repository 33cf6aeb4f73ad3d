from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True)
class WhackSettings:
    """Tunable timing constants for one controller.

    Built from the Flask config (`WHACK_*` keys) by the host; the engine
    itself never looks at app config.
    """

    session_seconds: int = 30
    time_cap_seconds: int = 99
    data_leak_seconds: int = 10
    level_complete_seconds: int = 3
    clock_tick_ms: int = 1000
    nightmare_multiplier: float = 0.8

    _CONFIG_KEYS = {
        'session_seconds': 'WHACK_SESSION_SECONDS',
        'time_cap_seconds': 'WHACK_TIME_CAP_SECONDS',
        'data_leak_seconds': 'WHACK_DATA_LEAK_SECONDS',
        'level_complete_seconds': 'WHACK_LEVEL_COMPLETE_SECONDS',
        'clock_tick_ms': 'WHACK_CLOCK_TICK_MS',
        'nightmare_multiplier': 'WHACK_NIGHTMARE_MULTIPLIER',
    }

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'WhackSettings':
        values = {}
        for f in fields(cls):
            key = cls._CONFIG_KEYS[f.name]
            if config.get(key) is not None:
                values[f.name] = float(config[key]) if f.type in (float, 'float') else int(config[key])
        return cls(**values)
