"""
Named cap-rule tools.

Each tool takes flat key/value arguments (field names, defaults and enum
sets are a fixed protocol shared with existing callers) and returns
human-readable text.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from mls_cap.config import DEFAULT_CANDIDATE_AGE, DEFAULT_TEAM
from mls_cap.models.season_rules import SeasonRules, SeasonRulesError, get_season_rules
from mls_cap.modules.allocation import auto_allocate
from mls_cap.modules.roster_compliance import evaluate_roster
from mls_cap.modules.rule_types import AllocationState, Player, SigningCandidate, SigningDesignation
from mls_cap.modules.sale_gam import gam_from_sale
from mls_cap.modules.signing import RosterState, evaluate_signing
from mls_cap.tools import formatting


class ToolArgumentError(ValueError):
    pass


TOOL_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "get_salary_cap_rules": {
        "description": "Get MLS salary cap rules and limits",
        "properties": {"year": {"type": "number"}},
    },
    "get_dp_rules": {
        "description": "Get Designated Player rules and mechanisms",
        "properties": {"year": {"type": "number"}},
    },
    "get_allocation_money_rules": {
        "description": "Get TAM and GAM rules and usage",
        "properties": {
            "type": {"type": "string", "enum": ["TAM", "GAM", "both"], "default": "both"},
            "year": {"type": "number"},
        },
    },
    "get_u22_initiative_rules": {
        "description": "Get U22 Initiative rules for young player development",
        "properties": {"year": {"type": "number"}},
    },
    "get_homegrown_rules": {
        "description": "Get Homegrown Player rules and benefits",
        "properties": {"year": {"type": "number"}},
    },
    "get_international_slot_rules": {
        "description": "Get international roster slot rules",
        "properties": {"year": {"type": "number"}},
    },
    "check_roster_compliance": {
        "description": "Check the club's current roster compliance status",
        "properties": {"team": {"type": "string", "default": DEFAULT_TEAM}},
    },
    "can_sign_player": {
        "description": "Check if a player can be signed given current roster constraints",
        "properties": {
            "salary": {"type": "number"},
            "isInternational": {"type": "boolean", "default": False},
            "age": {"type": "number", "default": DEFAULT_CANDIDATE_AGE},
            "proposedDesignation": {"type": "string", "enum": ["DP", "TAM", "U22", "Senior"], "default": "Senior"},
            "transferFee": {"type": "number", "default": 0},
            "contractYears": {"type": "number", "default": 1},
            "year": {"type": "number"},
        },
        "required": ["salary"],
    },
    "calculate_sale_gam": {
        "description": "Calculate GAM generated by selling a player abroad",
        "properties": {
            "grossFee": {"type": "number"},
            "isHomegrown": {"type": "boolean", "default": False},
            "playerAge": {"type": "number", "default": DEFAULT_CANDIDATE_AGE},
            "agentFeePercent": {"type": "number", "default": 0.10},
            "mlsFeePercent": {"type": "number", "default": 0.05},
        },
        "required": ["grossFee"],
    },
}


def _coerce(name: str, value: Any, prop: Mapping[str, Any]) -> Any:
    kind = prop.get("type")
    if kind == "number":
        if isinstance(value, bool):
            raise ToolArgumentError(f"{name} must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ToolArgumentError(f"{name} must be a number, got {value!r}") from None
        return int(number) if number.is_integer() else number
    if kind == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0", "yes", "no"):
            return value.strip().lower() in ("true", "1", "yes")
        raise ToolArgumentError(f"{name} must be a boolean, got {value!r}")
    value = str(value)
    if "enum" in prop and value not in prop["enum"]:
        raise ToolArgumentError(f"{name} must be one of {prop['enum']}, got {value!r}")
    return value


def parse_arguments(tool: str, args: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if tool not in TOOL_SCHEMAS:
        raise ToolArgumentError(f"unknown tool: {tool}")
    schema = TOOL_SCHEMAS[tool]
    props = schema["properties"]
    args = dict(args or {})

    unknown = sorted(k for k in args if k not in props)
    if unknown:
        raise ToolArgumentError(f"{tool} unknown arguments: {unknown}")
    missing = [k for k in schema.get("required", []) if args.get(k) is None]
    if missing:
        raise ToolArgumentError(f"{tool} missing required arguments: {missing}")

    parsed = {}
    for key, prop in props.items():
        if args.get(key) is not None:
            parsed[key] = _coerce(key, args[key], prop)
        else:
            parsed[key] = prop.get("default")
    return parsed


class CapTools:
    """Tool surface bound to one club's roster snapshot."""

    def __init__(
        self,
        players: Optional[Sequence[Player]] = None,
        rules: Optional[SeasonRules] = None,
        team: str = DEFAULT_TEAM,
        allocation: Optional[AllocationState] = None,
    ):
        self.players = list(players or [])
        self.rules = rules
        self.team = team
        self.allocation = allocation

    def _rules(self, year: Optional[int] = None) -> SeasonRules:
        if year is None and self.rules is not None:
            return self.rules
        if self.rules is not None and year == self.rules.year:
            return self.rules
        try:
            return get_season_rules(year)
        except SeasonRulesError as exc:
            raise ToolArgumentError(str(exc)) from None

    def _roster_state(self, rules: SeasonRules) -> RosterState:
        allocation = self.allocation
        if allocation is None or rules is not self.rules:
            allocation = auto_allocate(self.players, rules)
        return RosterState(
            players=tuple(self.players),
            allocation=allocation,
            compliance=evaluate_roster(self.players, rules, allocation),
        )

    def get_salary_cap_rules(self, year=None) -> str:
        return formatting.render_cap_rules(self._rules(year))

    def get_dp_rules(self, year=None) -> str:
        return formatting.render_dp_rules(self._rules(year))

    def get_allocation_money_rules(self, type="both", year=None) -> str:
        return formatting.render_allocation_rules(self._rules(year), type)

    def get_u22_initiative_rules(self, year=None) -> str:
        return formatting.render_u22_rules(self._rules(year))

    def get_homegrown_rules(self, year=None) -> str:
        return formatting.render_homegrown_rules(self._rules(year))

    def get_international_slot_rules(self, year=None) -> str:
        return formatting.render_international_rules(self._rules(year))

    def check_roster_compliance(self, team=DEFAULT_TEAM) -> str:
        if not team.strip():
            raise ToolArgumentError("team must name a club")
        if team.strip().lower() not in self.team.lower():
            return f"Currently only {self.team} compliance data is available."
        rules = self._rules()
        state = self._roster_state(rules)
        return formatting.render_compliance(
            self.team, state.compliance, state.allocation.tam.available, state.allocation.gam.available
        )

    def can_sign_player(
        self,
        salary,
        isInternational=False,
        age=DEFAULT_CANDIDATE_AGE,
        proposedDesignation="Senior",
        transferFee=0,
        contractYears=1,
        year=None,
    ) -> str:
        rules = self._rules(year)
        candidate = SigningCandidate(
            salary=float(salary),
            age=int(age),
            is_international=bool(isInternational),
            transfer_fee=float(transferFee or 0),
            contract_years=None if contractYears is None else int(contractYears),
            proposed_designation=SigningDesignation(proposedDesignation),
        )
        verdict = evaluate_signing(candidate, self._roster_state(rules), rules)
        return formatting.render_signing(verdict, candidate.salary, candidate.age, candidate.is_international)

    def calculate_sale_gam(
        self,
        grossFee,
        isHomegrown=False,
        playerAge=DEFAULT_CANDIDATE_AGE,
        agentFeePercent=0.10,
        mlsFeePercent=0.05,
    ) -> str:
        result = gam_from_sale(
            float(grossFee),
            is_homegrown=bool(isHomegrown),
            player_age=int(playerAge),
            fee_rates=(float(mlsFeePercent), float(agentFeePercent)),
        )
        return formatting.render_sale_gam(result)

    def run(self, tool: str, args: Optional[Mapping[str, Any]] = None) -> str:
        parsed = parse_arguments(tool, args)
        handler: Callable[..., str] = getattr(self, tool)
        return handler(**parsed)
