"""
Outgoing transfer fee -> GAM conversion.

Net revenue (gross minus league and agent fees) is converted tier by tier:
first $1M at 50%, $1M-$3M at 40%, above $3M at 25%. Homegrown (+15%) and
under-23 (+10%) bonuses are added on the base amount, then the total is
capped per sale. Math runs on Decimal; only display values are rounded.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from mls_cap.config import (
    AGENT_FEE_RATE,
    GAM_CONVERSION_TIERS,
    HOMEGROWN_BONUS_RATE,
    LEAGUE_FEE_RATE,
    MAX_GAM_PER_SALE,
    MIN_FEE_FOR_CONVERSION,
    YOUNG_PLAYER_AGE_THRESHOLD,
    YOUNG_PLAYER_BONUS_RATE,
)
from mls_cap.models.season_rules import SeasonRules
from mls_cap.modules.rule_types import Designation, InputInvariantViolation, SaleGAMResult


Tier = Tuple[Optional[float], float]


def _d(value) -> Decimal:
    return Decimal(str(value))


def _usd(amount: Decimal) -> str:
    return f"${float(amount):,.0f}"


def _pct(rate: Decimal) -> str:
    return f"{float(rate) * 100:g}%"


def _validate_tiers(tiers: Sequence[Tier]) -> None:
    if not tiers:
        raise InputInvariantViolation("at least one conversion tier is required")
    previous = Decimal(0)
    for i, (upper, rate) in enumerate(tiers):
        if not 0 <= float(rate) <= 1:
            raise InputInvariantViolation(f"tier {i + 1} rate must be between 0 and 1")
        if upper is None:
            if i != len(tiers) - 1:
                raise InputInvariantViolation("only the last tier may be open-ended")
            continue
        if _d(upper) <= previous:
            raise InputInvariantViolation("tier bounds must be increasing")
        previous = _d(upper)


def _tier_label(lower: Decimal, upper: Optional[Decimal]) -> str:
    if upper is None:
        return f"${float(lower) / 1e6:g}M+"
    return f"${float(lower) / 1e6:g}M-${float(upper) / 1e6:g}M"


def convert_tiers(revenue: Decimal, tiers: Sequence[Tier]) -> Tuple[Decimal, List[str]]:
    """Base GAM for ``revenue``; each tier converts only its own slice."""
    base = Decimal(0)
    lines = []
    lower = Decimal(0)
    for i, (upper, rate) in enumerate(tiers, start=1):
        if revenue <= lower:
            break
        upper_d = None if upper is None else _d(upper)
        top = revenue if upper_d is None else min(revenue, upper_d)
        slice_amount = top - lower
        rate_d = _d(rate)
        converted = slice_amount * rate_d
        base += converted
        lines.append(
            f"Tier {i} ({_tier_label(lower, upper_d)}): {_usd(slice_amount)} x {_pct(rate_d)} = {_usd(converted)}"
        )
        if upper_d is None:
            break
        lower = upper_d
    return base, lines


def _apply_bonuses_and_cap(
    base: Decimal,
    is_homegrown: bool,
    player_age: int,
    cap: Decimal,
    lines: List[str],
    warnings: List[str],
) -> Tuple[Decimal, Decimal, Decimal, Decimal, bool]:
    homegrown_bonus = base * _d(HOMEGROWN_BONUS_RATE) if is_homegrown else Decimal(0)
    young_bonus = base * _d(YOUNG_PLAYER_BONUS_RATE) if player_age < YOUNG_PLAYER_AGE_THRESHOLD else Decimal(0)
    if is_homegrown:
        lines.append(f"+ Homegrown bonus ({_pct(_d(HOMEGROWN_BONUS_RATE))}): +{_usd(homegrown_bonus)}")
    if player_age < YOUNG_PLAYER_AGE_THRESHOLD:
        lines.append(
            f"+ Young player bonus (U{YOUNG_PLAYER_AGE_THRESHOLD}, {_pct(_d(YOUNG_PLAYER_BONUS_RATE))}): +{_usd(young_bonus)}"
        )

    uncapped = base + homegrown_bonus + young_bonus
    capped = uncapped > cap
    total = min(uncapped, cap)
    if capped:
        warnings.append(f"GAM capped at {_usd(cap)} (was {_usd(uncapped)})")
        lines.append(f"Capped at {_usd(cap)} (would have been {_usd(uncapped)})")
    lines.append(f"= Total GAM: {_usd(total)}")
    return homegrown_bonus, young_bonus, uncapped, total, capped


def gam_from_sale(
    gross_fee: float,
    is_homegrown: bool = False,
    player_age: int = 25,
    fee_rates: Optional[Tuple[float, float]] = None,
    tiers: Optional[Sequence[Tier]] = None,
    cap: float = MAX_GAM_PER_SALE,
) -> SaleGAMResult:
    """
    Convert a gross outgoing transfer fee into GAM.

    ``fee_rates`` is ``(league_fee_rate, agent_fee_rate)``; defaults 5% and 10%.
    ``tiers`` is a sequence of ``(upper_bound, rate)`` with ``None`` for the
    open-ended top tier.
    """
    league_rate, agent_rate = fee_rates or (LEAGUE_FEE_RATE, AGENT_FEE_RATE)
    tiers = tiers or GAM_CONVERSION_TIERS
    if gross_fee < 0:
        raise InputInvariantViolation("gross fee must be non-negative")
    if cap < 0:
        raise InputInvariantViolation("GAM cap must be non-negative")
    if league_rate < 0 or agent_rate < 0 or league_rate + agent_rate > 1:
        raise InputInvariantViolation("fee rates must be non-negative and sum to at most 1")
    _validate_tiers(tiers)

    gross = _d(gross_fee)
    league_fee = gross * _d(league_rate)
    agent_fee = gross * _d(agent_rate)
    net = gross - league_fee - agent_fee

    lines = [
        f"Gross fee: {_usd(gross)}",
        f"- League fee ({_pct(_d(league_rate))}): -{_usd(league_fee)}",
        f"- Agent fee ({_pct(_d(agent_rate))}): -{_usd(agent_fee)}",
        f"= Net revenue: {_usd(net)}",
    ]
    warnings: List[str] = []

    base, tier_lines = convert_tiers(net, tiers)
    lines.extend(tier_lines)
    lines.append(f"= Base GAM: {_usd(base)}")

    homegrown_bonus, young_bonus, uncapped, total, capped = _apply_bonuses_and_cap(
        base, is_homegrown, player_age, _d(cap), lines, warnings
    )

    return SaleGAMResult(
        gross_fee=float(gross),
        net_revenue=float(net),
        base_gam=float(base),
        homegrown_bonus=float(homegrown_bonus),
        young_player_bonus=float(young_bonus),
        uncapped_total=float(uncapped),
        gam_generated=float(total),
        capped=capped,
        cap=float(cap),
        breakdown=lines,
        warnings=warnings,
        explanation=f"{_usd(total)} GAM from {_usd(gross)} sale",
    )


def _zero_result(sale_fee: Decimal, net_profit: Decimal, explanation: str, lines: List[str], warnings: List[str]) -> SaleGAMResult:
    return SaleGAMResult(
        gross_fee=float(sale_fee),
        net_revenue=0.0,
        base_gam=0.0,
        homegrown_bonus=0.0,
        young_player_bonus=0.0,
        uncapped_total=0.0,
        gam_generated=0.0,
        capped=False,
        cap=float(MAX_GAM_PER_SALE),
        breakdown=lines,
        warnings=warnings,
        explanation=explanation,
        net_profit=float(net_profit),
    )


def gam_from_transfer(
    sale_fee: float,
    acquisition_cost: float,
    designation: Designation,
    player_salary: float,
    player_age: int,
    is_homegrown: bool,
    rules: SeasonRules,
) -> SaleGAMResult:
    """
    Sale conversion with the league's eligibility gates.

    - fees under the minimum generate nothing
    - a DP whose salary exceeded the TAM ceiling could not be bought down and
      generates nothing
    - acquisition cost is recouped first; league and agent fees come out of
      the profit
    """
    if sale_fee < 0 or acquisition_cost < 0 or player_salary < 0:
        raise InputInvariantViolation("sale fee, acquisition cost and salary must be non-negative")
    designation = Designation(designation)
    fee = _d(sale_fee)
    profit = fee - _d(acquisition_cost)
    tam_ceiling = _d(rules.tam_eligible_charge_range[1])
    lines: List[str] = []

    if fee < _d(MIN_FEE_FOR_CONVERSION):
        return _zero_result(
            fee, profit,
            f"Sale fee below minimum threshold ({_usd(_d(MIN_FEE_FOR_CONVERSION))})",
            [f"Sale: {_usd(fee)} < Min: {_usd(_d(MIN_FEE_FOR_CONVERSION))}"],
            ["Fee too low for GAM conversion"],
        )

    if designation == Designation.DP:
        if _d(player_salary) > tam_ceiling:
            return _zero_result(
                fee, profit,
                "DP not eligible for TAM buydown - cannot convert transfer fee to GAM",
                [
                    f"Player salary: {_usd(_d(player_salary))}",
                    f"TAM ceiling: {_usd(tam_ceiling)}",
                    "Salary exceeds TAM ceiling -> not buydown-eligible -> no GAM from sale",
                ],
                ["DPs not eligible for buydown cannot convert transfer proceeds to GAM"],
            )
        lines.append(f"DP was buydown-eligible (salary {_usd(_d(player_salary))} <= TAM ceiling {_usd(tam_ceiling)})")

    lines.extend([
        f"Sale fee: {_usd(fee)}",
        f"Acquisition cost: {_usd(_d(acquisition_cost))}",
        f"Net profit: {_usd(profit)}",
    ])
    if profit <= 0:
        reason = "Break-even sale" if profit == 0 else "Sold at a loss"
        warning = "No profit = no GAM generated" if profit == 0 else f"Loss of {_usd(-profit)} - no GAM impact"
        return _zero_result(
            fee, profit,
            f"{reason} - acquisition costs must be recouped before GAM conversion",
            lines, [warning],
        )

    league_fee = fee * _d(LEAGUE_FEE_RATE)
    agent_fee = fee * _d(AGENT_FEE_RATE)
    eligible = max(Decimal(0), profit - league_fee - agent_fee)
    lines.extend([
        f"Less league fee ({_pct(_d(LEAGUE_FEE_RATE))}): -{_usd(league_fee)}",
        f"Less agent fee ({_pct(_d(AGENT_FEE_RATE))}): -{_usd(agent_fee)}",
        f"Eligible revenue: {_usd(eligible)}",
    ])
    if eligible <= 0:
        return _zero_result(fee, profit, "Fees exceeded profit - no GAM generated", lines, ["League and agent fees consumed all profit"])

    warnings: List[str] = []
    base, tier_lines = convert_tiers(eligible, GAM_CONVERSION_TIERS)
    lines.extend(tier_lines)
    lines.append(f"= Base GAM: {_usd(base)}")
    homegrown = is_homegrown or designation == Designation.HOMEGROWN
    homegrown_bonus, young_bonus, uncapped, total, capped = _apply_bonuses_and_cap(
        base, homegrown, player_age, _d(MAX_GAM_PER_SALE), lines, warnings
    )

    explanation = f"{_usd(total)} GAM from {_usd(fee)} sale"
    if homegrown:
        explanation += " (includes Homegrown bonus)"
    if player_age < YOUNG_PLAYER_AGE_THRESHOLD:
        explanation += f" (includes U{YOUNG_PLAYER_AGE_THRESHOLD} bonus)"

    return SaleGAMResult(
        gross_fee=float(fee),
        net_revenue=float(eligible),
        base_gam=float(base),
        homegrown_bonus=float(homegrown_bonus),
        young_player_bonus=float(young_bonus),
        uncapped_total=float(uncapped),
        gam_generated=float(total),
        capped=capped,
        cap=float(MAX_GAM_PER_SALE),
        breakdown=lines,
        warnings=warnings,
        explanation=explanation,
        net_profit=float(profit),
    )
