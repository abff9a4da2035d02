"""
Season rule table loader and validator.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from mls_cap.config import MODEL_B_EXTRA_GAM, SEASON_RULES_PATH


SEASON_KEYS = {
    "salary_budget",
    "max_individual_charge",
    "dp_charge",
    "young_dp_charge",
    "young_dp_max_age",
    "u22_charge",
    "u22_max_age_at_signing",
    "u22_max_salary",
    "senior_min_charge",
    "reserve_min_charge",
    "tam_annual",
    "gam_annual",
    "tam_eligible_charge_range",
    "max_senior_roster_size",
    "max_supplemental_roster_size",
    "max_international_slots",
    "max_dp_slots",
    "max_u22_slots",
}

MONEY_KEYS = {
    "salary_budget",
    "max_individual_charge",
    "dp_charge",
    "young_dp_charge",
    "u22_charge",
    "u22_max_salary",
    "senior_min_charge",
    "reserve_min_charge",
    "tam_annual",
    "gam_annual",
}


class SeasonRulesError(ValueError):
    pass


@dataclass(frozen=True)
class SeasonRules:
    year: int
    salary_budget: float
    max_individual_charge: float
    dp_charge: float
    young_dp_charge: float
    young_dp_max_age: int
    u22_charge: float
    u22_max_age_at_signing: int
    u22_max_salary: float
    senior_min_charge: float
    reserve_min_charge: float
    tam_annual: float
    gam_annual: float
    tam_eligible_charge_range: Tuple[float, float]
    max_senior_roster_size: int
    max_supplemental_roster_size: int
    max_international_slots: int
    max_dp_slots: int
    max_u22_slots: int
    construction_model: str = "A"
    config_hash: str = ""

    def in_tam_range(self, charge: float) -> bool:
        low, high = self.tam_eligible_charge_range
        return low < charge <= high


def _require_keys(obj: Dict[str, Any], keys: set, prefix: str) -> None:
    missing = sorted(k for k in keys if k not in obj)
    extra = sorted(str(k) for k in obj.keys() if k not in keys)
    if missing:
        raise SeasonRulesError(f"{prefix} missing keys: {missing}")
    if extra:
        raise SeasonRulesError(f"{prefix} unknown keys: {extra}")


def _validate_season(year: Any, season: Dict[str, Any]) -> None:
    prefix = f"seasons.{year}"
    if not isinstance(season, dict):
        raise SeasonRulesError(f"{prefix} must be a mapping")
    _require_keys(season, SEASON_KEYS, prefix)

    for key in sorted(MONEY_KEYS):
        if float(season[key]) < 0:
            raise SeasonRulesError(f"{prefix}.{key} must be non-negative")

    tam_range = season["tam_eligible_charge_range"]
    _require_keys(tam_range, {"min", "max"}, f"{prefix}.tam_eligible_charge_range")
    if float(tam_range["min"]) < 0 or float(tam_range["max"]) < float(tam_range["min"]):
        raise SeasonRulesError(f"{prefix}.tam_eligible_charge_range must satisfy 0 <= min <= max")

    for key in ("max_senior_roster_size", "max_supplemental_roster_size", "max_international_slots", "max_dp_slots", "max_u22_slots"):
        if int(season[key]) < 0:
            raise SeasonRulesError(f"{prefix}.{key} must be non-negative")


def _validate_table(table: Dict[str, Any]) -> None:
    _require_keys(table, {"name", "seasons"}, "root")
    seasons = table["seasons"]
    if not isinstance(seasons, dict) or not seasons:
        raise SeasonRulesError("seasons must be a non-empty mapping keyed by year")
    for year, season in seasons.items():
        try:
            int(year)
        except (TypeError, ValueError):
            raise SeasonRulesError(f"season key is not a year: {year!r}") from None
        _validate_season(year, season)


def _hash_table(table: Dict[str, Any]) -> str:
    content = yaml.safe_dump(table, sort_keys=True).encode("utf-8")
    return hashlib.sha256(content).hexdigest()[:12]


def _build_rules(year: int, season: Dict[str, Any], config_hash: str) -> SeasonRules:
    tam_range = season["tam_eligible_charge_range"]
    return SeasonRules(
        year=year,
        salary_budget=float(season["salary_budget"]),
        max_individual_charge=float(season["max_individual_charge"]),
        dp_charge=float(season["dp_charge"]),
        young_dp_charge=float(season["young_dp_charge"]),
        young_dp_max_age=int(season["young_dp_max_age"]),
        u22_charge=float(season["u22_charge"]),
        u22_max_age_at_signing=int(season["u22_max_age_at_signing"]),
        u22_max_salary=float(season["u22_max_salary"]),
        senior_min_charge=float(season["senior_min_charge"]),
        reserve_min_charge=float(season["reserve_min_charge"]),
        tam_annual=float(season["tam_annual"]),
        gam_annual=float(season["gam_annual"]),
        tam_eligible_charge_range=(float(tam_range["min"]), float(tam_range["max"])),
        max_senior_roster_size=int(season["max_senior_roster_size"]),
        max_supplemental_roster_size=int(season["max_supplemental_roster_size"]),
        max_international_slots=int(season["max_international_slots"]),
        max_dp_slots=int(season["max_dp_slots"]),
        max_u22_slots=int(season["max_u22_slots"]),
        config_hash=config_hash,
    )


@lru_cache(maxsize=8)
def load_season_table(path: str = str(SEASON_RULES_PATH)) -> Dict[int, SeasonRules]:
    table_path = Path(path)
    if not table_path.exists():
        raise SeasonRulesError(f"season table not found: {table_path}")

    with table_path.open("r", encoding="utf-8") as f:
        table = yaml.safe_load(f) or {}

    _validate_table(table)
    config_hash = _hash_table(table)
    return {
        int(year): _build_rules(int(year), season, config_hash)
        for year, season in table["seasons"].items()
    }


def available_seasons(path: str = str(SEASON_RULES_PATH)) -> List[int]:
    return sorted(load_season_table(path))


def latest_season(path: str = str(SEASON_RULES_PATH)) -> int:
    return available_seasons(path)[-1]


def get_season_rules(year: Optional[int] = None, path: str = str(SEASON_RULES_PATH)) -> SeasonRules:
    """Rules for ``year``; the latest season in the table when ``year`` is None."""
    table = load_season_table(path)
    if year is None:
        year = max(table)
    try:
        return table[int(year)]
    except (KeyError, TypeError, ValueError):
        raise SeasonRulesError(f"no rules for season {year!r}; known seasons: {sorted(table)}") from None


def with_construction_model(rules: SeasonRules, model: str) -> SeasonRules:
    """
    Apply the club's roster construction model.

    Model A is the season as declared in the rule table. Model B trades one
    DP slot for one extra U22 slot plus extra GAM.
    """
    model = str(model or "A").upper()
    if model not in ("A", "B"):
        raise SeasonRulesError(f"unknown roster construction model: {model!r}")

    base = rules
    if rules.construction_model == "B":
        base = replace(
            rules,
            max_dp_slots=rules.max_dp_slots + 1,
            max_u22_slots=rules.max_u22_slots - 1,
            gam_annual=rules.gam_annual - MODEL_B_EXTRA_GAM,
            construction_model="A",
        )
    if model == "A":
        return base
    if base.max_dp_slots < 1:
        raise SeasonRulesError(f"season {base.year} has no DP slot to trade for Model B")
    return replace(
        base,
        max_dp_slots=base.max_dp_slots - 1,
        max_u22_slots=base.max_u22_slots + 1,
        gam_annual=base.gam_annual + MODEL_B_EXTRA_GAM,
        construction_model="B",
    )
