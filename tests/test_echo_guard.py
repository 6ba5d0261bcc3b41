# MovieSync test scripts
from __future__ import annotations

import pytest

from ms_platform.sync import EchoGuard


def test_one_arm_absorbs_exactly_one_event(clock) -> None:
    g = EchoGuard(ttl=2.0, clock=clock)
    g.arm("ratechange")

    assert g.absorb("ratechange") is True
    assert g.absorb("ratechange") is False
    assert g.absorbed == 1


def test_arms_are_per_event(clock) -> None:
    g = EchoGuard(ttl=2.0, clock=clock)
    g.arm("seek")
    assert g.absorb("play") is False
    assert g.pending("seek") == 1


def test_stale_arm_expires(clock) -> None:
    g = EchoGuard(ttl=2.0, clock=clock)
    g.arm("seek")
    clock.now += 2.5
    assert g.absorb("seek") is False
    assert g.pending("seek") == 0


def test_disarm_rolls_back_last_arm(clock) -> None:
    g = EchoGuard(ttl=2.0, clock=clock)
    g.arm("play")
    g.arm("play")
    g.disarm("play")
    assert g.pending("play") == 1
    g.disarm("play")
    g.disarm("play")
    assert g.pending("play") == 0


def test_suppressed_disarms_when_mutation_raises(clock) -> None:
    g = EchoGuard(ttl=2.0, clock=clock)
    with pytest.raises(RuntimeError):
        with g.suppressed("pause"):
            raise RuntimeError("engine gone")
    assert g.pending("pause") == 0

    with g.suppressed("pause"):
        pass
    assert g.pending("pause") == 1
    g.clear()
    assert g.pending("pause") == 0
