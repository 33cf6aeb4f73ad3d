import pytest

from molearcade.services.whack.levels import LEVELS, LevelController, level_config
from molearcade.services.whack.session import Phase, Session
from molearcade.services.whack.spawn_table import TargetType


@pytest.fixture()
def levels():
    return LevelController()


def test_thresholds_are_cumulative(levels):
    assert [LEVELS[n].threshold for n in (1, 2, 3)] == [30, 70, 120]
    assert levels.after_score_change(Session(level=1, score=29, phase=Phase.PLAYING)) is None
    assert levels.after_score_change(Session(level=1, score=30, phase=Phase.PLAYING)) == Phase.LEVEL_COMPLETE
    # 40 points into level 2 is not enough: the bar is 70 total
    assert levels.after_score_change(Session(level=2, score=69, phase=Phase.PLAYING)) is None
    assert levels.after_score_change(Session(level=2, score=75, phase=Phase.PLAYING)) == Phase.LEVEL_COMPLETE


def test_final_level_goes_straight_to_victory(levels):
    assert levels.after_score_change(Session(level=3, score=119, phase=Phase.PLAYING)) is None
    assert levels.after_score_change(Session(level=3, score=120, phase=Phase.PLAYING)) == Phase.VICTORY


def test_only_fires_while_playing(levels):
    for phase in (Phase.LEVEL_COMPLETE, Phase.TUTORIAL_GATE, Phase.PAUSED, Phase.GAME_OVER, Phase.IDLE):
        assert levels.after_score_change(Session(level=1, score=50, phase=phase)) is None


def test_tutorials_before_levels_two_and_three(levels):
    assert levels.next_tutorial(Session(level=1)) == 'phishing_attack'
    assert levels.next_tutorial(Session(level=2)) == 'jackpot_raid'
    assert levels.next_tutorial(Session(level=3)) is None
    assert level_config(1).tutorial is None


def test_dismiss_gate_starts_next_level(levels):
    gated = Session(level=1, score=31, time_left=4, combo=7, active_cell=5,
                    active_type=TargetType.BONUS, pending_resolution=True, phase=Phase.TUTORIAL_GATE)
    session = levels.dismiss_gate(gated, 30)
    assert session.level == 2
    assert session.time_left == 30
    assert session.phase == Phase.PLAYING
    assert session.active_cell is None
    assert not session.pending_resolution
    assert session.score == 31
    assert session.combo == 7


def test_unknown_level():
    with pytest.raises(ValueError):
        level_config(0)


def test_hands_scheduler_the_level_table(levels):
    row = levels.spawn_row(3, True)
    assert dict(row)[TargetType.BOSS] == pytest.approx(0.10)
    assert TargetType.BOSS not in dict(levels.spawn_row(2, False))
    with pytest.raises(ValueError):
        levels.spawn_row(4, False)
