"""
Budget charge calculator.

Scope:
- Player record validation and construction from flat records
- Cash transfer fee amortization
- Per-designation budget charge (DP, Young DP, U22, senior tier, supplemental)
- TAM eligibility gate
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from mls_cap.config import GAM_FEE_COUNTS_TOWARD_CHARGE
from mls_cap.models.season_rules import SeasonRules
from mls_cap.modules.rule_types import (
    ChargeResult,
    Designation,
    DPPlayer,
    InputInvariantViolation,
    Player,
    RosterTier,
    SeniorPlayer,
    SENIOR_TIER_DESIGNATIONS,
    SupplementalPlayer,
    SUPPLEMENTAL_DESIGNATIONS,
    TAM_DESIGNATIONS,
    U22Player,
)


_DESIGNATION_ALIASES = {
    "senior": Designation.SENIOR,
    "sr": Designation.SENIOR,
    "tam": Designation.SENIOR,
    "dp": Designation.DP,
    "designatedplayer": Designation.DP,
    "u22": Designation.U22,
    "supplemental": Designation.SUPPLEMENTAL,
    "sup": Designation.SUPPLEMENTAL,
    "homegrown": Designation.HOMEGROWN,
    "hg": Designation.HOMEGROWN,
    "generationadidas": Designation.GENERATION_ADIDAS,
    "ga": Designation.GENERATION_ADIDAS,
}


def parse_designation(value: Any) -> Designation:
    if isinstance(value, Designation):
        return value
    if value is None or not str(value).strip():
        raise InputInvariantViolation("player has no designation")
    key = "".join(c for c in str(value).lower() if c.isalnum())
    try:
        return _DESIGNATION_ALIASES[key]
    except KeyError:
        raise InputInvariantViolation(f"unknown designation: {value!r}") from None


def parse_roster_tier(value: Any, designation: Designation) -> RosterTier:
    if isinstance(value, RosterTier):
        return value
    if value is None or not str(value).strip():
        return RosterTier.SUPPLEMENTAL if designation == Designation.SUPPLEMENTAL else RosterTier.SENIOR
    key = str(value).strip().lower()
    if key == "senior":
        return RosterTier.SENIOR
    if key == "supplemental":
        return RosterTier.SUPPLEMENTAL
    raise InputInvariantViolation(f"unknown roster tier: {value!r}")


def _money(record: Mapping[str, Any], key: str) -> float:
    value = record.get(key)
    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InputInvariantViolation(f"{key} is not a number: {value!r}") from None
    if amount != amount:  # NaN from empty CSV cells
        return 0.0
    return amount


def _whole_number(record: Mapping[str, Any], key: str) -> Optional[int]:
    value = record.get(key)
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputInvariantViolation(f"{key} is not a number: {value!r}") from None
    if number != number:
        return None
    if not number.is_integer():
        raise InputInvariantViolation(f"{key} must be a whole number: {value!r}")
    return int(number)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value) and value == value


def validate_player(player: Player) -> Player:
    """Reject records that would divide by zero or carry an undefined designation."""
    if not str(player.id).strip():
        raise InputInvariantViolation("player id is required")
    if player.guaranteed_compensation < 0:
        raise InputInvariantViolation(f"player {player.id}: guaranteed_compensation must be non-negative")
    if player.age_at_acquisition is None or player.age_at_acquisition < 0:
        raise InputInvariantViolation(f"player {player.id}: age_at_acquisition must be non-negative")

    if isinstance(player, SeniorPlayer) and player.designation not in SENIOR_TIER_DESIGNATIONS:
        raise InputInvariantViolation(f"player {player.id}: {player.designation.value} is not a senior-tier designation")
    if isinstance(player, SupplementalPlayer) and player.designation not in SUPPLEMENTAL_DESIGNATIONS:
        raise InputInvariantViolation(f"player {player.id}: {player.designation.value} cannot sit on the supplemental roster")

    if isinstance(player, (SeniorPlayer, U22Player)):
        if player.cash_transfer_fee < 0 or player.gam_transfer_fee < 0:
            raise InputInvariantViolation(f"player {player.id}: transfer fees must be non-negative")
        years = player.contract_years_guaranteed
        if player.cash_transfer_fee > 0 and years is not None and years <= 0:
            raise InputInvariantViolation(
                f"player {player.id}: contract_years_guaranteed must be positive when a cash transfer fee is set"
            )
    return player


def player_from_record(record: Mapping[str, Any]) -> Player:
    """Build the player variant matching a flat record's designation and roster tier."""
    designation = parse_designation(record.get("designation"))
    tier = parse_roster_tier(record.get("roster_tier"), designation)
    if record.get("guaranteed_compensation") in (None, ""):
        raise InputInvariantViolation(f"player {record.get('id')!r}: guaranteed_compensation is required")
    age = _whole_number(record, "age_at_acquisition")
    if age is None:
        raise InputInvariantViolation(f"player {record.get('id')!r}: age_at_acquisition is required")

    common: Dict[str, Any] = {
        "id": str(record.get("id", "")).strip(),
        "name": str(record.get("name") or ""),
        "guaranteed_compensation": _money(record, "guaranteed_compensation"),
        "age_at_acquisition": age,
        "is_international": _as_bool(record.get("is_international", False)),
    }
    fees = {
        "cash_transfer_fee": _money(record, "cash_transfer_fee"),
        "gam_transfer_fee": _money(record, "gam_transfer_fee"),
        "contract_years_guaranteed": _whole_number(record, "contract_years_guaranteed"),
    }

    if tier == RosterTier.SUPPLEMENTAL:
        if designation not in SUPPLEMENTAL_DESIGNATIONS:
            raise InputInvariantViolation(
                f"player {common['id']}: {designation.value} cannot sit on the supplemental roster"
            )
        player: Player = SupplementalPlayer(designation=designation, **common)
    elif designation == Designation.DP:
        player = DPPlayer(**common)
    elif designation == Designation.U22:
        player = U22Player(**common, **fees)
    elif designation == Designation.SUPPLEMENTAL:
        raise InputInvariantViolation(f"player {common['id']}: Supplemental designation requires the supplemental tier")
    else:
        player = SeniorPlayer(designation=designation, **common, **fees)
    return validate_player(player)


def amortized_cash_fee(player: Player) -> float:
    fee = float(getattr(player, "cash_transfer_fee", 0.0) or 0.0)
    years = getattr(player, "contract_years_guaranteed", None)
    if fee <= 0 or not years:
        return 0.0
    if years <= 0:
        raise InputInvariantViolation(f"player {player.id}: cannot amortize a fee over {years} years")
    return round(fee / years, 2)


def raw_charge(player: Player) -> float:
    charge = float(player.guaranteed_compensation) + amortized_cash_fee(player)
    if GAM_FEE_COUNTS_TOWARD_CHARGE:
        charge += float(getattr(player, "gam_transfer_fee", 0.0) or 0.0)
    return round(charge, 2)


def is_u22_eligible(age: int, salary: float, rules: SeasonRules) -> bool:
    return age <= rules.u22_max_age_at_signing and salary <= rules.u22_max_salary


def _senior_charge(player: Player, rules: SeasonRules, designation: Designation, downgraded: bool = False, note: str = "") -> ChargeResult:
    raw = raw_charge(player)
    buydown = max(0.0, round(raw - rules.max_individual_charge, 2))
    return ChargeResult(
        player_id=player.id,
        raw_charge=raw,
        effective_charge=raw,
        needs_buydown=raw > rules.max_individual_charge,
        buydown_needed=buydown,
        applied_designation=designation,
        roster_tier=RosterTier.SENIOR,
        downgraded=downgraded,
        note=note,
    )


def charge_of(player: Player, rules: SeasonRules) -> ChargeResult:
    validate_player(player)

    if isinstance(player, SupplementalPlayer):
        return ChargeResult(
            player_id=player.id,
            raw_charge=raw_charge(player),
            effective_charge=0.0,
            needs_buydown=False,
            buydown_needed=0.0,
            applied_designation=player.designation,
            roster_tier=RosterTier.SUPPLEMENTAL,
        )

    if isinstance(player, DPPlayer):
        young = player.age_at_acquisition <= rules.young_dp_max_age
        return ChargeResult(
            player_id=player.id,
            raw_charge=raw_charge(player),
            effective_charge=rules.young_dp_charge if young else rules.dp_charge,
            needs_buydown=False,
            buydown_needed=0.0,
            applied_designation=Designation.DP,
            roster_tier=RosterTier.SENIOR,
            note="young DP charge" if young else "",
        )

    if isinstance(player, U22Player):
        if is_u22_eligible(player.age_at_acquisition, player.guaranteed_compensation, rules):
            return ChargeResult(
                player_id=player.id,
                raw_charge=raw_charge(player),
                effective_charge=rules.u22_charge,
                needs_buydown=False,
                buydown_needed=0.0,
                applied_designation=Designation.U22,
                roster_tier=RosterTier.SENIOR,
            )
        if player.age_at_acquisition > rules.u22_max_age_at_signing:
            reason = f"age {player.age_at_acquisition} exceeds U22 maximum {rules.u22_max_age_at_signing}"
        else:
            reason = f"salary ${player.guaranteed_compensation:,.0f} exceeds U22 maximum ${rules.u22_max_salary:,.0f}"
        return _senior_charge(player, rules, Designation.SENIOR, downgraded=True, note=f"not U22 eligible ({reason}); charged as Senior")

    return _senior_charge(player, rules, player.designation)


def is_tam_eligible(player: Player, rules: SeasonRules, charge: Optional[ChargeResult] = None) -> bool:
    """Senior-tier, non-DP, non-U22 players whose raw charge sits in the TAM window."""
    charge = charge or charge_of(player, rules)
    if charge.roster_tier != RosterTier.SENIOR:
        return False
    if charge.applied_designation not in TAM_DESIGNATIONS:
        return False
    return rules.in_tam_range(charge.raw_charge)


def charge_after_buydown(charge: ChargeResult, buydown_applied: float) -> float:
    if charge.applied_designation in TAM_DESIGNATIONS and charge.roster_tier == RosterTier.SENIOR:
        return max(0.0, round(charge.raw_charge - max(0.0, buydown_applied), 2))
    return charge.effective_charge
