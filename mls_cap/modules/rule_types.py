"""
Types for the MLS salary budget rule engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


RULE_VERSION = "mls_cap_v1"


class InputInvariantViolation(ValueError):
    """Roster input that cannot be evaluated (bad designation, zero contract years, ...)."""


class Designation(str, Enum):
    SENIOR = "Senior"
    DP = "DP"
    U22 = "U22"
    SUPPLEMENTAL = "Supplemental"
    HOMEGROWN = "Homegrown"
    GENERATION_ADIDAS = "GenerationAdidas"


class RosterTier(str, Enum):
    SENIOR = "Senior"
    SUPPLEMENTAL = "Supplemental"


class PoolKind(str, Enum):
    TAM = "TAM"
    GAM = "GAM"


class AllocationMode(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class SigningDesignation(str, Enum):
    U22 = "U22"
    SENIOR = "Senior"
    YOUNG_DP = "YoungDP"
    DP = "DP"
    TAM = "TAM"


SENIOR_TIER_DESIGNATIONS = (Designation.SENIOR, Designation.HOMEGROWN, Designation.GENERATION_ADIDAS)
SUPPLEMENTAL_DESIGNATIONS = (Designation.SUPPLEMENTAL, Designation.HOMEGROWN, Designation.GENERATION_ADIDAS)
TAM_DESIGNATIONS = SENIOR_TIER_DESIGNATIONS


# Player variants. Each carries only the fields its charge rule reads.

@dataclass(frozen=True)
class SeniorPlayer:
    id: str
    guaranteed_compensation: float
    age_at_acquisition: int
    designation: Designation = Designation.SENIOR
    name: str = ""
    is_international: bool = False
    cash_transfer_fee: float = 0.0
    gam_transfer_fee: float = 0.0
    contract_years_guaranteed: Optional[int] = None

    roster_tier = RosterTier.SENIOR


@dataclass(frozen=True)
class DPPlayer:
    id: str
    guaranteed_compensation: float
    age_at_acquisition: int
    name: str = ""
    is_international: bool = False

    designation = Designation.DP
    roster_tier = RosterTier.SENIOR


@dataclass(frozen=True)
class U22Player:
    id: str
    guaranteed_compensation: float
    age_at_acquisition: int
    name: str = ""
    is_international: bool = False
    cash_transfer_fee: float = 0.0
    gam_transfer_fee: float = 0.0
    contract_years_guaranteed: Optional[int] = None

    designation = Designation.U22
    roster_tier = RosterTier.SENIOR


@dataclass(frozen=True)
class SupplementalPlayer:
    id: str
    guaranteed_compensation: float
    age_at_acquisition: int
    designation: Designation = Designation.SUPPLEMENTAL
    name: str = ""
    is_international: bool = False

    roster_tier = RosterTier.SUPPLEMENTAL


Player = Union[SeniorPlayer, DPPlayer, U22Player, SupplementalPlayer]


@dataclass(frozen=True)
class ChargeResult:
    player_id: str
    raw_charge: float
    effective_charge: float
    needs_buydown: bool
    buydown_needed: float
    applied_designation: Designation
    roster_tier: RosterTier
    downgraded: bool = False
    note: str = ""


@dataclass(frozen=True)
class SlotUsage:
    used: int
    max: int

    @property
    def available(self) -> int:
        return self.max - self.used

    @property
    def within_limit(self) -> bool:
        return self.used <= self.max


@dataclass
class ComplianceReport:
    total_budget_charge: float
    cap_space_remaining: float
    senior_roster: SlotUsage
    supplemental_roster: SlotUsage
    dp: SlotUsage
    u22: SlotUsage
    international: SlotUsage
    is_compliant: bool
    buydown_shortfall: float
    rule_version: str = RULE_VERSION
    season: int = 0
    total_guaranteed_compensation: float = 0.0
    total_buydown_applied: float = 0.0
    savings: Dict[str, float] = field(default_factory=dict)
    charges: Dict[str, ChargeResult] = field(default_factory=dict)
    issues: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PoolState:
    kind: PoolKind
    starting_balance: float
    available: float
    used_by: Tuple[Tuple[str, float], ...] = ()

    def amount_for(self, player_id: str) -> float:
        return dict(self.used_by).get(player_id, 0.0)

    @property
    def used(self) -> float:
        return sum(amount for _, amount in self.used_by)

    def as_dict(self) -> Dict[str, float]:
        return dict(self.used_by)


@dataclass(frozen=True)
class AllocationState:
    mode: AllocationMode
    tam: PoolState
    gam: PoolState

    def tam_for(self, player_id: str) -> float:
        return self.tam.amount_for(player_id)

    def gam_for(self, player_id: str) -> float:
        return self.gam.amount_for(player_id)

    def applied_to(self, player_id: str) -> float:
        return self.tam_for(player_id) + self.gam_for(player_id)

    def pool(self, kind: PoolKind) -> PoolState:
        return self.tam if kind == PoolKind.TAM else self.gam


@dataclass(frozen=True)
class ManualEditResult:
    state: AllocationState
    player_id: str
    kind: PoolKind
    requested: float
    applied: float
    clamped: bool = False
    rejected: bool = False
    reason: str = ""


@dataclass(frozen=True)
class SigningCandidate:
    salary: float
    age: int
    is_international: bool = False
    transfer_fee: float = 0.0
    gam_transfer_fee: float = 0.0
    contract_years: Optional[int] = None
    proposed_designation: SigningDesignation = SigningDesignation.SENIOR
    name: str = "Candidate"


@dataclass
class DesignationOption:
    designation: SigningDesignation
    budget_charge: float
    feasible: bool
    reason: str


@dataclass
class SigningVerdict:
    can_sign: bool
    optimal_designation: Optional[SigningDesignation]
    final_charge: float
    cap_space_after: float
    raw_charge: float
    amortized_fee: float
    proposed_designation: SigningDesignation
    proposed_feasible: bool
    tam_required: float = 0.0
    gam_required: float = 0.0
    issues: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    designation_options: List[DesignationOption] = field(default_factory=list)
    rule_version: str = RULE_VERSION


@dataclass
class SaleGAMResult:
    gross_fee: float
    net_revenue: float
    base_gam: float
    homegrown_bonus: float
    young_player_bonus: float
    uncapped_total: float
    gam_generated: float
    capped: bool
    cap: float
    breakdown: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    explanation: str = ""
    net_profit: Optional[float] = None

    @property
    def gam_generated_display(self) -> int:
        return int(Decimal(str(self.gam_generated)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
