from chip8 import Chip8CPU


def test_delay_timer_floors_at_zero(cpu):
    cpu.state.delay_timer = 2
    for _ in range(5):
        cpu.tick_timers()
    assert cpu.state.delay_timer == 0


def test_sound_timer_beeps_once_on_expiry():
    beeps = []
    cpu = Chip8CPU(sound_callback=lambda: beeps.append(1))
    cpu.state.sound_timer = 3

    results = [cpu.tick_timers() for _ in range(6)]

    assert results == [False, False, True, False, False, False]
    assert beeps == [1]
    assert cpu.state.sound_timer == 0


def test_idle_sound_timer_never_beeps(cpu):
    assert not any(cpu.tick_timers() for _ in range(3))


def test_timers_are_independent(cpu):
    cpu.state.delay_timer = 5
    cpu.state.sound_timer = 1
    assert cpu.tick_timers()
    assert cpu.state.delay_timer == 4


def test_ticks_do_not_touch_timers(run):
    cpu = run(0x6110, 0xF115, 0x1204, ticks=10)
    assert cpu.state.delay_timer == 0x10
