from pathlib import Path

import pandas as pd
import pytest

from mls_cap.models.season_rules import get_season_rules
from mls_cap.modules.allocation import auto_allocate
from mls_cap.modules.roster_compliance import evaluate_roster
from mls_cap.modules.roster_module import RosterChargeModule, load_roster, read_roster_frame
from mls_cap.modules.rule_types import DPPlayer, InputInvariantViolation, SupplementalPlayer, U22Player


FIXTURE = Path(__file__).parent / "fixtures" / "sample_roster.csv"
RULES = get_season_rules(2026)


def test_load_roster_builds_typed_players():
    players = {p.id: p for p in load_roster(str(FIXTURE))}
    assert len(players) == 7
    assert isinstance(players["p1"], DPPlayer)
    assert isinstance(players["p5"], U22Player)
    assert isinstance(players["p6"], SupplementalPlayer)
    assert players["p1"].is_international is True
    assert players["p4"].cash_transfer_fee == 400_000
    assert players["p4"].contract_years_guaranteed == 2
    assert players["p3"].contract_years_guaranteed is None


def test_fixture_roster_is_compliant_after_auto_allocation():
    players = load_roster(str(FIXTURE))
    allocation = auto_allocate(players, RULES)
    report = evaluate_roster(players, RULES, allocation)
    assert allocation.tam_for("p3") == 96_875
    assert allocation.gam_for("p7") == 1_196_875
    assert report.total_budget_charge == 3_509_375
    assert report.cap_space_remaining == 2_915_625
    assert report.is_compliant is True


def test_missing_required_column_raises(tmp_path):
    path = tmp_path / "roster.csv"
    pd.DataFrame([{"id": "a", "designation": "Senior"}]).to_csv(path, index=False)
    with pytest.raises(ValueError, match="missing columns"):
        read_roster_frame(str(path))


def test_bad_designation_in_file_raises(tmp_path):
    path = tmp_path / "roster.csv"
    pd.DataFrame(
        [{"id": "a", "designation": "Franchise", "guaranteed_compensation": 1, "age_at_acquisition": 20}]
    ).to_csv(path, index=False)
    with pytest.raises(InputInvariantViolation):
        load_roster(str(path))


def test_analyze_adds_charge_columns():
    df = read_roster_frame(str(FIXTURE))
    players = load_roster(str(FIXTURE))
    result = RosterChargeModule(RULES).analyze(df, auto_allocate(players, RULES))

    for col in ["RAW_CHARGE", "BUDGET_CHARGE", "APPLIED_DESIGNATION", "TAM_APPLIED", "GAM_APPLIED",
                "POST_BUYDOWN_CHARGE", "CAP_PCT", "DOWNGRADED"]:
        assert col in result.columns

    rows = result.set_index("id")
    assert rows.loc["p2", "BUDGET_CHARGE"] == 200_000
    assert rows.loc["p3", "TAM_APPLIED"] == 96_875
    assert rows.loc["p3", "POST_BUYDOWN_CHARGE"] == 803_125
    assert rows.loc["p3", "CAP_PCT"] == 12.5
    assert rows.loc["p4", "RAW_CHARGE"] == 700_000
    assert rows.loc["p6", "BUDGET_CHARGE"] == 0
    assert bool(rows.loc["p7", "TAM_ELIGIBLE"]) is False


def test_designation_summary_and_report():
    module = RosterChargeModule(RULES)
    df = module.analyze(read_roster_frame(str(FIXTURE)))
    summary = module.get_designation_summary(df)
    assert summary.loc["DP", "NUM_PLAYERS"] == 2
    assert summary.loc["DP", "TOTAL_CHARGE"] == 1_003_125

    text = module.report(df)
    assert "MLS Budget Charge Report (2026)" in text
    assert "Backup Striker" in text
    assert "Buydowns" in text
