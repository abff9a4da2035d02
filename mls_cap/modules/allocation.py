"""
TAM/GAM allocation engine.

Automatic mode buys down every senior-tier player above the maximum budget
charge, largest raw charge first (ties by player id), spending TAM before
GAM. Manual mode applies one user edit at a time under the same rules and
returns a new state; pool balances never go negative.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from mls_cap.models.season_rules import SeasonRules
from mls_cap.modules.budget_charge import charge_of, is_tam_eligible
from mls_cap.modules.roster_compliance import compute_charges
from mls_cap.modules.rule_types import (
    AllocationMode,
    AllocationState,
    InputInvariantViolation,
    ManualEditResult,
    Player,
    PoolKind,
    PoolState,
    RosterTier,
)


def new_pool(kind: PoolKind, balance: float) -> PoolState:
    if balance < 0:
        raise InputInvariantViolation(f"{kind.value} balance must be non-negative")
    balance = round(float(balance), 2)
    return PoolState(kind=kind, starting_balance=balance, available=balance)


def empty_state(
    rules: SeasonRules,
    tam_available: Optional[float] = None,
    gam_available: Optional[float] = None,
) -> AllocationState:
    tam = rules.tam_annual if tam_available is None else tam_available
    gam = rules.gam_annual if gam_available is None else gam_available
    return AllocationState(
        mode=AllocationMode.AUTO,
        tam=new_pool(PoolKind.TAM, tam),
        gam=new_pool(PoolKind.GAM, gam),
    )


def _set_amount(pool: PoolState, player_id: str, amount: float) -> PoolState:
    used = dict(pool.used_by)
    current = used.pop(player_id, 0.0)
    delta = round(amount - current, 2)
    if delta > pool.available + 1e-9:
        raise InputInvariantViolation(f"{pool.kind.value} pool cannot cover {delta:,.2f}")
    if amount > 0:
        used[player_id] = round(amount, 2)
    return replace(
        pool,
        available=round(pool.available - delta, 2),
        used_by=tuple(sorted(used.items())),
    )


def buydown_order(players: Sequence[Player], rules: SeasonRules) -> List[Tuple[Player, float, bool]]:
    """(player, buydown needed, TAM eligible) for every player needing a buydown, in priority order."""
    charges = compute_charges(players, rules)
    candidates = [
        p for p in players
        if charges[p.id].roster_tier == RosterTier.SENIOR and charges[p.id].needs_buydown
    ]
    candidates.sort(key=lambda p: (-charges[p.id].raw_charge, str(p.id)))
    return [
        (p, charges[p.id].buydown_needed, is_tam_eligible(p, rules, charges[p.id]))
        for p in candidates
    ]


def fund_buydown(state: AllocationState, player_id: str, needed: float, tam_ok: bool) -> AllocationState:
    """Cover up to ``needed`` for one player, TAM first when eligible, the residual from GAM."""
    tam, gam = state.tam, state.gam
    residual = needed
    if tam_ok and tam.available > 0:
        amount = round(min(residual, tam.available), 2)
        tam = _set_amount(tam, player_id, amount)
        residual = round(residual - amount, 2)
    if residual > 0 and gam.available > 0:
        amount = round(min(residual, gam.available), 2)
        gam = _set_amount(gam, player_id, amount)
    return replace(state, tam=tam, gam=gam)


def auto_allocate(
    players: Sequence[Player],
    rules: SeasonRules,
    tam_available: Optional[float] = None,
    gam_available: Optional[float] = None,
) -> AllocationState:
    state = empty_state(rules, tam_available, gam_available)
    for player, needed, tam_ok in buydown_order(players, rules):
        state = fund_buydown(state, player.id, needed, tam_ok)
    return state


def reset_to_auto(
    players: Sequence[Player],
    rules: SeasonRules,
    tam_available: Optional[float] = None,
    gam_available: Optional[float] = None,
) -> AllocationState:
    """Discard manual edits and rerun the automatic pass from full balances."""
    return auto_allocate(players, rules, tam_available, gam_available)


def start_manual(state: AllocationState) -> AllocationState:
    return replace(state, mode=AllocationMode.MANUAL)


def _find_player(players: Sequence[Player], player_id: str) -> Player:
    for player in players:
        if player.id == player_id:
            return player
    raise InputInvariantViolation(f"unknown player id: {player_id}")


def set_manual_allocation(
    state: AllocationState,
    players: Sequence[Player],
    rules: SeasonRules,
    player_id: str,
    kind: PoolKind,
    amount: float,
) -> ManualEditResult:
    kind = PoolKind(kind)
    player = _find_player(players, player_id)
    charge = charge_of(player, rules)
    requested = float(amount)
    target = state.pool(kind)
    other = state.gam if kind == PoolKind.TAM else state.tam
    current = target.amount_for(player_id)

    if kind == PoolKind.TAM and not is_tam_eligible(player, rules, charge):
        return ManualEditResult(
            state=start_manual(state),
            player_id=player_id,
            kind=kind,
            requested=requested,
            applied=current,
            clamped=requested != current,
            rejected=True,
            reason=f"{player.name or player.id} is not TAM eligible",
        )

    upper = max(0.0, min(charge.buydown_needed, target.available + current))
    applied = round(min(max(requested, 0.0), upper), 2)
    clamped = applied != round(requested, 2)
    reason = ""
    if clamped:
        if requested < 0:
            reason = "amount cannot be negative"
        elif charge.buydown_needed <= target.available + current:
            reason = f"capped at buydown needed ${charge.buydown_needed:,.0f}"
        else:
            reason = f"capped at {kind.value} available ${target.available + current:,.0f}"

    target = _set_amount(target, player_id, applied)
    if applied > 0 and other.amount_for(player_id) > 0:
        other = _set_amount(other, player_id, 0.0)

    if kind == PoolKind.TAM:
        new_state = AllocationState(mode=AllocationMode.MANUAL, tam=target, gam=other)
    else:
        new_state = AllocationState(mode=AllocationMode.MANUAL, tam=other, gam=target)

    return ManualEditResult(
        state=new_state,
        player_id=player_id,
        kind=kind,
        requested=requested,
        applied=applied,
        clamped=clamped,
        reason=reason,
    )


def allocation_summary(state: AllocationState, players: Sequence[Player], rules: SeasonRules) -> Dict[str, Dict[str, float]]:
    needed = sum(needed for _, needed, _ in buydown_order(players, rules))
    applied = state.tam.used + state.gam.used
    return {
        "tam": {
            "total": state.tam.starting_balance,
            "used": round(state.tam.used, 2),
            "remaining": state.tam.available,
        },
        "gam": {
            "total": state.gam.starting_balance,
            "used": round(state.gam.used, 2),
            "remaining": state.gam.available,
        },
        "buydown": {
            "needed": round(needed, 2),
            "applied": round(applied, 2),
            "shortfall": round(max(0.0, needed - applied), 2),
        },
    }
