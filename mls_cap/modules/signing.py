"""
Signing feasibility evaluator.

Picks the cheapest legal designation for a hypothetical signing, in the
league's preference order:

1. U22 Initiative (fixed charge, transfer fee exempt)
2. Senior at or under the maximum budget charge
3. Young Designated Player
4. Designated Player
5. Senior bought down to the maximum charge with TAM then GAM

and reports every issue that blocks the signing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from mls_cap.models.season_rules import SeasonRules
from mls_cap.modules.allocation import auto_allocate, fund_buydown
from mls_cap.modules.budget_charge import is_u22_eligible
from mls_cap.modules.roster_compliance import evaluate_roster
from mls_cap.modules.rule_types import (
    AllocationState,
    ComplianceReport,
    DesignationOption,
    InputInvariantViolation,
    Player,
    SigningCandidate,
    SigningDesignation,
    SigningVerdict,
)


@dataclass(frozen=True)
class RosterState:
    players: Sequence[Player]
    allocation: AllocationState
    compliance: ComplianceReport


def build_roster_state(
    players: Sequence[Player],
    rules: SeasonRules,
    allocation: Optional[AllocationState] = None,
) -> RosterState:
    allocation = allocation or auto_allocate(players, rules)
    return RosterState(
        players=tuple(players),
        allocation=allocation,
        compliance=evaluate_roster(players, rules, allocation),
    )


def candidate_raw_charge(candidate: SigningCandidate) -> tuple:
    if candidate.salary < 0 or candidate.transfer_fee < 0 or candidate.gam_transfer_fee < 0:
        raise InputInvariantViolation("candidate salary and fees must be non-negative")
    if candidate.age is None or candidate.age < 0:
        raise InputInvariantViolation("candidate age must be non-negative")
    amortized = 0.0
    if candidate.transfer_fee > 0:
        years = candidate.contract_years
        if years is not None and years <= 0:
            raise InputInvariantViolation("contract_years must be positive when a transfer fee is set")
        amortized = round(candidate.transfer_fee / (years or 1), 2)
    return round(candidate.salary + amortized, 2), amortized


_CANDIDATE_ID = "<candidate>"


def _split_buydown(needed: float, tam_ok: bool, allocation: AllocationState) -> tuple:
    funded = fund_buydown(allocation, _CANDIDATE_ID, needed, tam_ok)
    return funded.tam_for(_CANDIDATE_ID), funded.gam_for(_CANDIDATE_ID)


def _designation_options(
    candidate: SigningCandidate,
    raw: float,
    rules: SeasonRules,
    compliance: ComplianceReport,
    fundable: float,
) -> List[DesignationOption]:
    max_charge = rules.max_individual_charge
    dp_free = compliance.dp.available > 0
    u22_free = compliance.u22.available > 0
    options = []

    if candidate.age > rules.u22_max_age_at_signing:
        reason = f"Player too old ({candidate.age}) for U22"
    elif candidate.salary > rules.u22_max_salary:
        reason = f"Salary exceeds U22 max (${rules.u22_max_salary:,.0f})"
    elif not u22_free:
        reason = "No U22 slots available"
    else:
        reason = f"U22 eligible. Fixed charge: ${rules.u22_charge:,.0f} (transfer fee exempt)"
    options.append(DesignationOption(
        SigningDesignation.U22, rules.u22_charge,
        is_u22_eligible(candidate.age, candidate.salary, rules) and u22_free, reason,
    ))

    senior_ok = raw <= max_charge
    options.append(DesignationOption(
        SigningDesignation.SENIOR, raw, senior_ok,
        "Fits under max budget charge as senior roster player" if senior_ok
        else "Exceeds max charge - needs DP, U22, or TAM buydown",
    ))

    young = candidate.age <= rules.young_dp_max_age
    if not young:
        reason = f"Player too old ({candidate.age}) for Young DP"
    elif not dp_free:
        reason = "No DP slots available"
    else:
        reason = f"Young DP eligible (age {candidate.age}). Reduced charge: ${rules.young_dp_charge:,.0f}"
    options.append(DesignationOption(SigningDesignation.YOUNG_DP, rules.young_dp_charge, young and dp_free, reason))

    options.append(DesignationOption(
        SigningDesignation.DP, rules.dp_charge, dp_free,
        f"DP slot available. Charge: ${rules.dp_charge:,.0f} regardless of salary/fee" if dp_free
        else "No DP slots available",
    ))

    needed = max(0.0, round(raw - max_charge, 2))
    if needed == 0:
        options.append(DesignationOption(SigningDesignation.TAM, raw, True, "Under max charge - no TAM needed"))
    else:
        funded = fundable >= needed
        options.append(DesignationOption(
            SigningDesignation.TAM, max_charge, funded,
            f"Need ${needed:,.0f} TAM/GAM to buy down" if funded
            else f"Insufficient TAM/GAM for buydown (need ${needed:,.0f}, have ${fundable:,.0f})",
        ))
    return options


def evaluate_signing(candidate: SigningCandidate, roster_state: RosterState, rules: SeasonRules) -> SigningVerdict:
    raw, amortized = candidate_raw_charge(candidate)
    compliance = roster_state.compliance
    allocation = roster_state.allocation
    max_charge = rules.max_individual_charge
    needed = max(0.0, round(raw - max_charge, 2))
    tam_split, gam_split = _split_buydown(needed, rules.in_tam_range(raw), allocation)
    fundable = round(tam_split + gam_split, 2)

    issues: List[str] = []
    notes: List[str] = []
    can_sign = True

    if candidate.is_international and compliance.international.available <= 0:
        issues.append(
            f"No international slots available ({compliance.international.used}/{compliance.international.max})"
        )
        notes.append("Trade for international slot or target domestic player")
        can_sign = False

    senior_free = compliance.senior_roster.available
    supplemental_free = compliance.supplemental_roster.available
    if senior_free <= 0 and supplemental_free <= 0:
        issues.append("No roster spots available (senior and supplemental rosters full)")
        can_sign = False
    elif senior_free <= 0:
        notes.append("Senior roster full - only a supplemental roster spot is open")

    optimal: Optional[SigningDesignation] = None
    final_charge = 0.0
    tam_required = 0.0
    gam_required = 0.0

    if is_u22_eligible(candidate.age, candidate.salary, rules) and compliance.u22.available > 0:
        optimal = SigningDesignation.U22
        final_charge = rules.u22_charge
        notes.append(f"U22 designation - ${rules.u22_charge:,.0f} cap hit and transfer fee exempt")
    elif raw <= max_charge:
        optimal = SigningDesignation.SENIOR
        final_charge = raw
        notes.append("Fits as senior roster player under max charge")
    elif candidate.age <= rules.young_dp_max_age and compliance.dp.available > 0:
        optimal = SigningDesignation.YOUNG_DP
        final_charge = rules.young_dp_charge
        notes.append(f"Young DP available - ${rules.young_dp_charge:,.0f} cap hit")
    elif compliance.dp.available > 0:
        optimal = SigningDesignation.DP
        final_charge = rules.dp_charge
        notes.append(f"DP slot available - ${rules.dp_charge:,.0f} cap hit")
    elif fundable >= needed:
        optimal = SigningDesignation.TAM
        final_charge = max_charge
        tam_required, gam_required = tam_split, gam_split
        notes.append(
            f"TAM/GAM buydown required: ${needed:,.0f} (TAM ${tam_required:,.0f}, GAM ${gam_required:,.0f})"
        )
    else:
        issues.append(
            f"Cannot fit player — no DP slot and insufficient TAM/GAM "
            f"(need ${needed:,.0f}, have ${fundable:,.0f})"
        )
        can_sign = False

    cap_space_after = round(rules.salary_budget - (compliance.total_budget_charge + final_charge), 2)
    if cap_space_after < 0:
        issues.append(f"Would exceed salary budget by ${-cap_space_after:,.0f}")
        can_sign = False

    options = _designation_options(candidate, raw, rules, compliance, fundable)
    proposed = SigningDesignation(candidate.proposed_designation)
    proposed_feasible = any(o.designation == proposed and o.feasible for o in options)
    if optimal is not None and proposed != optimal:
        if proposed_feasible:
            notes.append(f"Proposed {proposed.value} is feasible but {optimal.value} is cheaper")
        else:
            notes.append(f"Proposed {proposed.value} is not available; recommending {optimal.value}")

    return SigningVerdict(
        can_sign=can_sign,
        optimal_designation=optimal,
        final_charge=final_charge,
        cap_space_after=cap_space_after,
        raw_charge=raw,
        amortized_fee=amortized,
        proposed_designation=proposed,
        proposed_feasible=proposed_feasible,
        tam_required=tam_required,
        gam_required=gam_required,
        issues=issues,
        notes=notes,
        designation_options=options,
    )
