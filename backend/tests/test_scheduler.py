from molearcade.services.whack.scheduler import (
    GameClock,
    SpawnScheduler,
    TimerTask,
    spawn_interval_ms,
)
from molearcade.services.whack.session import Phase, Session
from molearcade.services.whack.spawn_table import TargetType

from conftest import ScriptedRng


def test_interval_decays_with_score_down_to_floor():
    assert spawn_interval_ms(1, 0, TargetType.NORMAL) == 1200
    assert spawn_interval_ms(1, 50, TargetType.NORMAL) == 800
    assert spawn_interval_ms(1, 100, TargetType.NORMAL) == 700
    assert spawn_interval_ms(2, 10, TargetType.BONUS) == 1030
    assert spawn_interval_ms(2, 200, TargetType.NORMAL) == 650
    assert spawn_interval_ms(3, 80, TargetType.NORMAL) == 550
    assert spawn_interval_ms(3, 100, TargetType.IMPOSTOR) == 550


def test_boss_interval_decays_more_slowly():
    assert spawn_interval_ms(3, 0, TargetType.BOSS) == 1100
    assert spawn_interval_ms(3, 100, TargetType.BOSS) == 700
    assert spawn_interval_ms(3, 100, TargetType.BOSS) > spawn_interval_ms(3, 100, TargetType.NORMAL)


def test_difficulty_multiplier_speeds_up():
    assert spawn_interval_ms(1, 0, TargetType.NORMAL, 0.8) == 960
    assert spawn_interval_ms(3, 100, TargetType.NORMAL, 0.8) == 440


def test_timer_task_suspend_keeps_remaining_time():
    task = TimerTask('t')
    task.arm(1500)
    task.suspend(1000)
    assert not task.armed
    assert not task.is_due(10_000)
    task.resume(5000)
    assert task.next_at == 5500
    assert task.is_due(5500)
    task.cancel()
    task.resume(6000)
    assert not task.armed


def test_clock_counts_down_only_while_playing():
    clock = GameClock()
    assert clock.tick(Session(time_left=5, phase=Phase.PLAYING)).time_left == 4
    assert clock.tick(Session(time_left=0, phase=Phase.PLAYING)).time_left == 0
    assert clock.tick(Session(time_left=5, phase=Phase.PAUSED)).time_left == 5


def test_spawn_marks_new_target_pending():
    scheduler = SpawnScheduler(rng=ScriptedRng(cell=7, chances=[0.7]))
    session, missed = scheduler.spawn(Session(level=1, phase=Phase.PLAYING))
    assert missed is None
    assert session.active_cell == 7
    assert session.active_type == TargetType.DECOY
    assert session.pending_resolution


def test_unstruck_target_settles_as_miss_first():
    scheduler = SpawnScheduler(rng=ScriptedRng(cell=1))
    before = Session(level=1, combo=4, score=10, active_cell=3, active_type=TargetType.NORMAL,
                     pending_resolution=True, phase=Phase.PLAYING)
    session, missed = scheduler.spawn(before)
    assert missed.combo_after == 0
    assert session.combo == 0
    assert session.score == 10
    assert session.active_cell == 1


def test_missed_boss_costs_thirty_and_keeps_combo():
    scheduler = SpawnScheduler(rng=ScriptedRng(cell=0))
    before = Session(level=3, combo=6, score=12, active_cell=2, active_type=TargetType.BOSS,
                     pending_resolution=True, phase=Phase.PLAYING)
    session, missed = scheduler.spawn(before)
    assert missed.score_delta == -30
    assert session.score == 0
    assert session.combo == 6


def test_struck_target_is_not_a_miss():
    scheduler = SpawnScheduler(rng=ScriptedRng(cell=0))
    before = Session(level=1, combo=3, score=3, active_cell=None, pending_resolution=False,
                     phase=Phase.PLAYING)
    session, missed = scheduler.spawn(before)
    assert missed is None
    assert session.combo == 3


def test_data_leak_uses_leak_row():
    # 0.55 is normal outside the window but decoy inside it
    scheduler = SpawnScheduler(rng=ScriptedRng(chances=[0.55]))
    assert scheduler.draw(Session(level=1, time_left=10))[1] == TargetType.NORMAL
    assert scheduler.draw(Session(level=1, time_left=9))[1] == TargetType.DECOY
