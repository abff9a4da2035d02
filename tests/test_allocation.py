import random

import pytest

from mls_cap.models.season_rules import get_season_rules
from mls_cap.modules.allocation import (
    allocation_summary,
    auto_allocate,
    buydown_order,
    reset_to_auto,
    set_manual_allocation,
)
from mls_cap.modules.rule_types import (
    AllocationMode,
    DPPlayer,
    InputInvariantViolation,
    PoolKind,
    SeniorPlayer,
)


RULES = get_season_rules(2026)


def _senior(pid, comp):
    return SeniorPlayer(id=pid, guaranteed_compensation=comp, age_at_acquisition=27)


def _assert_conserved(state):
    for pool in (state.tam, state.gam):
        assert round(pool.available + pool.used, 2) == pool.starting_balance
        assert pool.available >= 0


def test_scenario_tam_covers_small_buydown():
    state = auto_allocate([_senior("s1", 900_000)], RULES)
    assert state.tam_for("s1") == 96_875
    assert state.gam_for("s1") == 0
    assert state.tam.available == 2_028_125
    _assert_conserved(state)


def test_charge_above_tam_window_uses_gam():
    state = auto_allocate([_senior("s1", 2_000_000)], RULES)
    assert state.tam_for("s1") == 0
    assert state.gam_for("s1") == 1_196_875


def test_largest_charge_first_and_tam_spills_to_gam():
    players = [_senior("b", 900_000), _senior("a", 1_000_000)]
    state = auto_allocate(players, RULES, tam_available=100_000)
    assert state.tam_for("a") == 100_000
    assert state.gam_for("a") == 96_875
    assert state.tam_for("b") == 0
    assert state.gam_for("b") == 96_875
    _assert_conserved(state)


def test_ties_break_by_player_id():
    players = [_senior("b", 900_000), _senior("a", 900_000)]
    assert [p.id for p, _, _ in buydown_order(players, RULES)] == ["a", "b"]
    state = auto_allocate(players, RULES, tam_available=100_000)
    assert state.tam_for("a") == 96_875
    assert state.tam_for("b") == 3_125
    assert state.gam_for("b") == 93_750


def test_auto_allocation_is_deterministic():
    players = [_senior(f"s{i}", 850_000 + i * 60_000) for i in range(8)]
    first = auto_allocate(players, RULES)
    shuffled = list(players)
    random.Random(7).shuffle(shuffled)
    assert auto_allocate(players, RULES) == first
    assert auto_allocate(shuffled, RULES) == first
    assert reset_to_auto(players, RULES) == first


def test_pools_never_go_negative_when_exhausted():
    players = [_senior(f"s{i}", 3_000_000) for i in range(4)]
    state = auto_allocate(players, RULES, tam_available=0, gam_available=1_000_000)
    assert state.gam.available == 0
    _assert_conserved(state)
    summary = allocation_summary(state, players, RULES)
    assert summary["buydown"]["needed"] == 4 * 2_196_875
    assert summary["buydown"]["shortfall"] == 4 * 2_196_875 - 1_000_000


def test_fractional_pool_balance_is_held_in_cents():
    state = auto_allocate([_senior("s1", 900_000)], RULES, tam_available=0.375, gam_available=10.004)
    assert state.tam.starting_balance == 0.38
    assert state.tam_for("s1") == 0.38
    assert state.gam_for("s1") == 10.0
    assert state.tam.available == 0
    assert state.gam.available == 0
    _assert_conserved(state)


def test_manual_gam_edit_clears_tam_for_player():
    players = [_senior("s1", 900_000)]
    state = auto_allocate(players, RULES)
    result = set_manual_allocation(state, players, RULES, "s1", PoolKind.GAM, 50_000)
    assert result.applied == 50_000
    assert result.clamped is False
    assert result.state.mode == AllocationMode.MANUAL
    assert result.state.tam_for("s1") == 0
    assert result.state.gam_for("s1") == 50_000
    assert result.state.tam.available == 2_125_000
    _assert_conserved(result.state)


def test_manual_edit_clamps_to_buydown_needed():
    players = [_senior("s1", 900_000)]
    result = set_manual_allocation(auto_allocate(players, RULES), players, RULES, "s1", "TAM", 200_000)
    assert result.applied == 96_875
    assert result.clamped is True
    assert "buydown needed $96,875" in result.reason


def test_manual_edit_clamps_to_pool_available():
    players = [_senior("s1", 900_000)]
    state = auto_allocate(players, RULES, tam_available=50_000)
    assert state.gam_for("s1") == 46_875
    result = set_manual_allocation(state, players, RULES, "s1", PoolKind.TAM, 96_875)
    assert result.applied == 50_000
    assert result.clamped is True
    assert "TAM available $50,000" in result.reason
    assert result.state.gam_for("s1") == 0
    _assert_conserved(result.state)


def test_manual_negative_amount_clamps_to_zero():
    players = [_senior("s1", 900_000)]
    result = set_manual_allocation(auto_allocate(players, RULES), players, RULES, "s1", PoolKind.TAM, -10)
    assert result.applied == 0
    assert result.clamped is True
    assert result.state.tam_for("s1") == 0


def test_manual_tam_on_dp_is_rejected():
    players = [DPPlayer(id="dp", guaranteed_compensation=5_000_000, age_at_acquisition=28)]
    state = auto_allocate(players, RULES)
    result = set_manual_allocation(state, players, RULES, "dp", PoolKind.TAM, 100_000)
    assert result.rejected is True
    assert result.applied == 0
    assert result.state.tam == state.tam
    assert "not TAM eligible" in result.reason


def test_manual_edit_unknown_player_raises():
    players = [_senior("s1", 900_000)]
    with pytest.raises(InputInvariantViolation):
        set_manual_allocation(auto_allocate(players, RULES), players, RULES, "ghost", PoolKind.GAM, 1)


def test_manual_edits_leave_original_state_untouched():
    players = [_senior("s1", 900_000)]
    state = auto_allocate(players, RULES)
    set_manual_allocation(state, players, RULES, "s1", PoolKind.GAM, 10_000)
    assert state.tam_for("s1") == 96_875
    assert state.gam_for("s1") == 0
    assert state.mode == AllocationMode.AUTO
