"""
Command-line access to the cap-rule tools.

    python -m mls_cap.cli get_dp_rules --year 2025
    python -m mls_cap.cli can_sign_player --salary 900000 --age 27 --isInternational true
    python -m mls_cap.cli calculate_sale_gam --grossFee 5000000 --isHomegrown true
"""

from __future__ import annotations

import argparse
from typing import Dict, List, Optional

from mls_cap.config import DEFAULT_ROSTER_PATH, DEFAULT_TEAM
from mls_cap.models.season_rules import get_season_rules, with_construction_model
from mls_cap.modules.roster_module import load_roster
from mls_cap.tools.commands import TOOL_SCHEMAS, CapTools, ToolArgumentError


def _log(msg: str) -> None:
    print(f"[cap] {msg}")


def _pairs(extra: List[str]) -> Dict[str, str]:
    """``['--salary', '900000', '--age', '27']`` -> ``{'salary': '900000', 'age': '27'}``."""
    args: Dict[str, str] = {}
    i = 0
    while i < len(extra):
        token = extra[i]
        if not token.startswith("--"):
            raise ToolArgumentError(f"unexpected argument: {token}")
        key = token[2:]
        if "=" in key:
            key, value = key.split("=", 1)
            i += 1
        elif i + 1 < len(extra) and not extra[i + 1].startswith("--"):
            value = extra[i + 1]
            i += 2
        else:
            # bare flag
            value = "true"
            i += 1
        args[key] = value
    return args


def build_tools(roster: str, year: Optional[int], model: str, team: str) -> CapTools:
    rules = with_construction_model(get_season_rules(year), model)
    return CapTools(players=load_roster(roster), rules=rules, team=team)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Query MLS roster rule tools", allow_abbrev=False)
    parser.add_argument("tool", choices=sorted(TOOL_SCHEMAS), help="Tool name")
    parser.add_argument("--roster", type=str, default=str(DEFAULT_ROSTER_PATH), help="Club roster snapshot CSV")
    parser.add_argument("--season", type=int, default=None, help="Season the club roster is evaluated in")
    parser.add_argument("--model", type=str, default="A", choices=["A", "B"], help="Roster construction model")
    parser.add_argument("--club", type=str, default=DEFAULT_TEAM, help="Club the roster belongs to")
    args, extra = parser.parse_known_args(argv)

    try:
        tools = build_tools(args.roster, args.season, args.model, args.club)
        print(tools.run(args.tool, _pairs(extra)))
        return 0
    except (ValueError, OSError) as exc:
        _log(f"ERROR: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
