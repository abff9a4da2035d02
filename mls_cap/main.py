"""
Roster cap report runner.

Steps:
1. Load roster snapshot
2. Resolve season rules and construction model
3. Automatic TAM/GAM allocation
4. Compliance check and report
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, Optional

from mls_cap.config import DEFAULT_ROSTER_PATH, DEFAULT_TEAM
from mls_cap.models.season_rules import get_season_rules, with_construction_model
from mls_cap.modules.allocation import allocation_summary, auto_allocate
from mls_cap.modules.roster_compliance import evaluate_roster
from mls_cap.modules.roster_module import RosterChargeModule, players_from_frame, read_roster_frame
from mls_cap.tools.formatting import build_markdown_report, format_salary


def _log(msg: str) -> None:
    print(f"[cap] {msg}")


def run_report(
    roster_path: str = str(DEFAULT_ROSTER_PATH),
    year: Optional[int] = None,
    model: str = "A",
    team: str = DEFAULT_TEAM,
    output_dir: Optional[str] = None,
) -> Dict[str, object]:
    """
    Evaluate one roster snapshot end to end.

    Returns the compliance report, allocation state and summary, plus the
    paths of any files written to ``output_dir``.
    """
    _log(f"[1/4] loading roster: {roster_path}")
    df = read_roster_frame(roster_path)
    players = players_from_frame(df)
    _log(f"  {len(players)} players")

    _log("[2/4] resolving season rules")
    rules = with_construction_model(get_season_rules(year), model)
    _log(f"  season={rules.year} model={rules.construction_model} config_hash={rules.config_hash}")

    _log("[3/4] allocating TAM/GAM")
    allocation = auto_allocate(players, rules)
    summary = allocation_summary(allocation, players, rules)
    _log(
        f"  TAM used {format_salary(summary['tam']['used'])} of {format_salary(summary['tam']['total'])}, "
        f"GAM used {format_salary(summary['gam']['used'])} of {format_salary(summary['gam']['total'])}"
    )

    _log("[4/4] checking compliance")
    report = evaluate_roster(players, rules, allocation)
    module = RosterChargeModule(rules)
    analyzed = module.analyze(df, allocation)
    print("\n" + module.report(analyzed))
    print("\n" + build_markdown_report(team, report))

    result: Dict[str, object] = {
        "report": report,
        "allocation": allocation,
        "summary": summary,
        "frame": analyzed,
    }

    if output_dir:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        charges_csv = out / f"budget_charges_{rules.year}.csv"
        report_md = out / f"compliance_{rules.year}.md"
        analyzed.to_csv(charges_csv, index=False)
        report_md.write_text(build_markdown_report(team, report), encoding="utf-8")
        _log(f"charges written: {charges_csv}")
        _log(f"report written: {report_md}")
        result["charges_csv"] = str(charges_csv)
        result["report_md"] = str(report_md)

    _log("compliant" if report.is_compliant else f"not compliant ({len(report.issues)} issues)")
    return result


def main() -> int:
    parser = argparse.ArgumentParser(description="Run an MLS salary budget compliance report for a roster snapshot")
    parser.add_argument("--roster", type=str, default=str(DEFAULT_ROSTER_PATH), help="Roster snapshot CSV")
    parser.add_argument("--year", type=int, default=None, help="Season year, e.g. 2026 (default: latest)")
    parser.add_argument("--model", type=str, default="A", choices=["A", "B"], help="Roster construction model")
    parser.add_argument("--team", type=str, default=DEFAULT_TEAM, help="Club name for the report header")
    parser.add_argument("--output-dir", type=str, default=None, help="Write charge CSV and markdown report here")
    args = parser.parse_args()

    try:
        run_report(
            roster_path=args.roster,
            year=args.year,
            model=args.model,
            team=args.team,
            output_dir=args.output_dir,
        )
        return 0
    except (ValueError, OSError) as exc:
        _log(f"ERROR: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
