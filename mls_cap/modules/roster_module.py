"""
Roster Charge Module
====================
Tabular view of a club roster snapshot: budget charges, buydown needs and
allocation money per player, plus a designation summary and a text report.

Features:
• CSV roster snapshot loading into player records
• Budget charge columns per player
• Allocation (TAM/GAM) columns from an allocation state
• Designation-level summary
"""

from typing import List, Optional

import numpy as np
import pandas as pd

from mls_cap.models.season_rules import SeasonRules
from mls_cap.modules.budget_charge import charge_after_buydown, charge_of, is_tam_eligible, player_from_record
from mls_cap.modules.rule_types import AllocationState, Player


ROSTER_COLUMNS = [
    "id",
    "name",
    "designation",
    "roster_tier",
    "guaranteed_compensation",
    "age_at_acquisition",
    "is_international",
    "cash_transfer_fee",
    "gam_transfer_fee",
    "contract_years_guaranteed",
]

REQUIRED_COLUMNS = {"id", "designation", "guaranteed_compensation", "age_at_acquisition"}


def read_roster_frame(path: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype={"id": str})
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"roster file {path} missing columns: {sorted(missing)}")
    return df


def players_from_frame(df: pd.DataFrame) -> List[Player]:
    records = df.astype(object).where(pd.notna(df), None).to_dict("records")
    return [player_from_record(r) for r in records]


def _label(row: pd.Series) -> str:
    name = row.get("name")
    return str(name) if pd.notna(name) and str(name).strip() else str(row["id"])


def load_roster(path: str) -> List[Player]:
    """Load a CSV roster snapshot into validated player records."""
    return players_from_frame(read_roster_frame(path))


class RosterChargeModule:
    """Budget charge analysis for a roster DataFrame."""

    def __init__(self, rules: SeasonRules):
        self.rules = rules

    def analyze(self, df: pd.DataFrame, allocation: Optional[AllocationState] = None) -> pd.DataFrame:
        """
        Main entry point.

        Input columns: see ROSTER_COLUMNS (id, designation, guaranteed_compensation
        and age_at_acquisition required).
        Added columns: RAW_CHARGE, BUDGET_CHARGE, APPLIED_DESIGNATION, ROSTER_TIER,
        NEEDS_BUYDOWN, BUYDOWN_NEEDED, TAM_ELIGIBLE, TAM_APPLIED, GAM_APPLIED,
        POST_BUYDOWN_CHARGE, CAP_PCT, DOWNGRADED
        """
        df = df.copy()
        players = players_from_frame(df)
        rules = self.rules

        rows = []
        for player in players:
            charge = charge_of(player, rules)
            tam = allocation.tam_for(player.id) if allocation else 0.0
            gam = allocation.gam_for(player.id) if allocation else 0.0
            rows.append({
                "RAW_CHARGE": charge.raw_charge,
                "BUDGET_CHARGE": charge.effective_charge,
                "APPLIED_DESIGNATION": charge.applied_designation.value,
                "ROSTER_TIER": charge.roster_tier.value,
                "NEEDS_BUYDOWN": charge.needs_buydown,
                "BUYDOWN_NEEDED": charge.buydown_needed,
                "TAM_ELIGIBLE": is_tam_eligible(player, rules, charge),
                "TAM_APPLIED": tam,
                "GAM_APPLIED": gam,
                "POST_BUYDOWN_CHARGE": charge_after_buydown(charge, tam + gam),
                "DOWNGRADED": charge.downgraded,
            })

        added = pd.DataFrame(rows, index=df.index)
        df = pd.concat([df, added], axis=1)

        # Share of the salary budget
        df["CAP_PCT"] = np.where(
            rules.salary_budget > 0,
            (df["POST_BUYDOWN_CHARGE"] / rules.salary_budget * 100).round(2),
            np.nan,
        )
        return df

    def get_designation_summary(self, df: pd.DataFrame) -> pd.DataFrame:
        """Per-designation totals from an analyzed roster."""
        if "APPLIED_DESIGNATION" not in df.columns:
            return pd.DataFrame()

        summary = df.groupby("APPLIED_DESIGNATION").agg(
            NUM_PLAYERS=("id", "count"),
            TOTAL_COMPENSATION=("guaranteed_compensation", "sum"),
            TOTAL_CHARGE=("POST_BUYDOWN_CHARGE", "sum"),
            TAM_APPLIED=("TAM_APPLIED", "sum"),
            GAM_APPLIED=("GAM_APPLIED", "sum"),
        ).round(2)
        summary["SAVINGS"] = (summary["TOTAL_COMPENSATION"] - summary["TOTAL_CHARGE"]).round(2)
        return summary.sort_values("TOTAL_CHARGE", ascending=False)

    def report(self, df: pd.DataFrame) -> str:
        """Text report of an analyzed roster."""
        lines = []
        lines.append("=" * 70)
        lines.append(f"MLS Budget Charge Report ({self.rules.year})")
        lines.append("=" * 70)

        lines.append("\n▸ Designation breakdown:")
        counts = df["APPLIED_DESIGNATION"].value_counts()
        for designation, count in counts.items():
            lines.append(f"  {designation:18s}: {count:3d} players")

        lines.append("\n▸ Highest budget charges:")
        top = df.nlargest(10, "POST_BUYDOWN_CHARGE")
        for _, row in top.iterrows():
            name = _label(row)
            lines.append(
                f"  {str(name):25s} "
                f"pay=${row['guaranteed_compensation']:>11,.0f}  "
                f"charge=${row['POST_BUYDOWN_CHARGE']:>9,.0f}  "
                f"{row['APPLIED_DESIGNATION']}"
            )

        needing = df[df["NEEDS_BUYDOWN"]]
        if len(needing) > 0:
            lines.append("\n▸ Buydowns:")
            for _, row in needing.iterrows():
                name = _label(row)
                lines.append(
                    f"  {str(name):25s} "
                    f"needed=${row['BUYDOWN_NEEDED']:>9,.0f}  "
                    f"TAM=${row['TAM_APPLIED']:>9,.0f}  "
                    f"GAM=${row['GAM_APPLIED']:>9,.0f}"
                )

        return "\n".join(lines)
