"""
Roster compliance checker.

Aggregates every player's budget charge and designation against the season
limits: senior/supplemental roster size, DP, U22 and international slots,
salary budget, and the per-player maximum charge after buydowns.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from mls_cap.models.season_rules import SeasonRules
from mls_cap.modules.budget_charge import charge_after_buydown, charge_of
from mls_cap.modules.rule_types import (
    AllocationState,
    ChargeResult,
    ComplianceReport,
    Designation,
    InputInvariantViolation,
    Player,
    RosterTier,
    SlotUsage,
)


def _check_unique_ids(players: Sequence[Player]) -> None:
    seen = set()
    for player in players:
        if player.id in seen:
            raise InputInvariantViolation(f"duplicate player id: {player.id}")
        seen.add(player.id)


def compute_charges(players: Sequence[Player], rules: SeasonRules) -> Dict[str, ChargeResult]:
    _check_unique_ids(players)
    return {player.id: charge_of(player, rules) for player in players}


def _slot_issue(label: str, usage: SlotUsage) -> Optional[str]:
    if usage.within_limit:
        return None
    return f"Too many {label}: {usage.used}/{usage.max} ({usage.used - usage.max} over)"


def evaluate_roster(
    players: Sequence[Player],
    rules: SeasonRules,
    allocation: Optional[AllocationState] = None,
) -> ComplianceReport:
    charges = compute_charges(players, rules)

    senior = [p for p in players if charges[p.id].roster_tier == RosterTier.SENIOR]
    supplemental = [p for p in players if charges[p.id].roster_tier == RosterTier.SUPPLEMENTAL]
    dps = [p for p in senior if charges[p.id].applied_designation == Designation.DP]
    u22s = [p for p in senior if charges[p.id].applied_designation == Designation.U22]
    internationals = [p for p in players if p.is_international]

    senior_usage = SlotUsage(len(senior), rules.max_senior_roster_size)
    supplemental_usage = SlotUsage(len(supplemental), rules.max_supplemental_roster_size)
    dp_usage = SlotUsage(len(dps), rules.max_dp_slots)
    u22_usage = SlotUsage(len(u22s), rules.max_u22_slots)
    intl_usage = SlotUsage(len(internationals), rules.max_international_slots)

    issues: List[str] = []
    for label, usage in (
        ("senior roster players", senior_usage),
        ("supplemental roster players", supplemental_usage),
        ("Designated Players", dp_usage),
        ("U22 Initiative players", u22_usage),
        ("international players", intl_usage),
    ):
        issue = _slot_issue(label, usage)
        if issue:
            issues.append(issue)

    total_charge = 0.0
    total_applied = 0.0
    shortfall = 0.0
    for player in senior:
        charge = charges[player.id]
        applied = allocation.applied_to(player.id) if allocation else 0.0
        total_applied += applied
        post = charge_after_buydown(charge, applied)
        total_charge += post
        if post > rules.max_individual_charge:
            gap = max(0.0, round(charge.buydown_needed - applied, 2))
            shortfall += gap
            label = player.name or player.id
            issues.append(
                f"{label} charge ${post:,.0f} exceeds max budget charge "
                f"${rules.max_individual_charge:,.0f} (needs ${gap:,.0f} more TAM/GAM)"
            )

    total_charge = round(total_charge, 2)
    cap_space = round(rules.salary_budget - total_charge, 2)
    if cap_space < 0:
        issues.append(f"Over salary budget by ${-cap_space:,.0f}")

    slots_ok = all(u.within_limit for u in (senior_usage, supplemental_usage, dp_usage, u22_usage, intl_usage))
    shortfall = round(shortfall, 2)

    savings = {
        "dp": round(sum(p.guaranteed_compensation - charges[p.id].effective_charge for p in dps), 2),
        "u22": round(sum(p.guaranteed_compensation - charges[p.id].effective_charge for p in u22s), 2),
        "supplemental": round(sum(p.guaranteed_compensation for p in supplemental), 2),
        "buydowns": round(total_applied, 2),
    }

    return ComplianceReport(
        total_budget_charge=total_charge,
        cap_space_remaining=cap_space,
        senior_roster=senior_usage,
        supplemental_roster=supplemental_usage,
        dp=dp_usage,
        u22=u22_usage,
        international=intl_usage,
        is_compliant=slots_ok and cap_space >= 0 and shortfall == 0,
        buydown_shortfall=shortfall,
        season=rules.year,
        total_guaranteed_compensation=round(sum(p.guaranteed_compensation for p in players), 2),
        total_buydown_applied=round(total_applied, 2),
        savings=savings,
        charges=charges,
        issues=issues,
    )
