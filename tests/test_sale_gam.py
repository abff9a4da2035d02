import pytest

from mls_cap.models.season_rules import get_season_rules
from mls_cap.modules.rule_types import Designation, InputInvariantViolation, SaleGAMResult
from mls_cap.modules.sale_gam import gam_from_sale, gam_from_transfer


RULES = get_season_rules(2026)


def test_scenario_homegrown_young_sale():
    result = gam_from_sale(5_000_000, is_homegrown=True, player_age=21)
    assert result.net_revenue == 4_250_000
    assert result.base_gam == 1_612_500
    assert result.homegrown_bonus == 241_875
    assert result.young_player_bonus == 161_250
    assert result.gam_generated == 2_015_625
    assert result.capped is False
    assert "Tier 3 ($3M+): $1,250,000 x 25% = $312,500" in result.breakdown


def test_large_sale_is_capped():
    result = gam_from_sale(20_000_000)
    assert result.uncapped_total == 4_800_000
    assert result.gam_generated == 3_000_000
    assert result.capped is True
    assert result.warnings == ["GAM capped at $3,000,000 (was $4,800,000)"]


@pytest.mark.parametrize("gross", [0, 250_000, 1_000_000, 3_500_000, 9_000_000, 50_000_000])
def test_gam_never_exceeds_cap(gross):
    result = gam_from_sale(gross, is_homegrown=True, player_age=18)
    assert 0 <= result.gam_generated <= result.cap


def test_custom_fee_rates():
    result = gam_from_sale(1_000_000, fee_rates=(0.0, 0.0))
    assert result.net_revenue == 1_000_000
    assert result.gam_generated == 500_000


@pytest.mark.parametrize("age,bonus", [(22, 42_500), (23, 0)])
def test_young_bonus_is_strictly_under_23(age, bonus):
    assert gam_from_sale(1_000_000, player_age=age).young_player_bonus == bonus


@pytest.mark.parametrize(
    "kwargs",
    [
        {"gross_fee": -1},
        {"gross_fee": 1_000_000, "fee_rates": (0.6, 0.5)},
        {"gross_fee": 1_000_000, "tiers": [(None, 0.5), (1_000_000, 0.4)]},
        {"gross_fee": 1_000_000, "tiers": [(1_000_000, 1.5), (None, 0.4)]},
    ],
)
def test_invalid_sale_inputs_raise(kwargs):
    with pytest.raises(InputInvariantViolation):
        gam_from_sale(**kwargs)


def test_display_rounds_half_up():
    result = SaleGAMResult(
        gross_fee=0, net_revenue=0, base_gam=0, homegrown_bonus=0,
        young_player_bonus=0, uncapped_total=2.5, gam_generated=2.5, capped=False, cap=3_000_000,
    )
    assert result.gam_generated_display == 3


def test_transfer_below_minimum_fee_generates_nothing():
    result = gam_from_transfer(50_000, 0, Designation.SENIOR, 300_000, 25, False, RULES)
    assert result.gam_generated == 0
    assert result.warnings == ["Fee too low for GAM conversion"]


def test_dp_above_tam_ceiling_generates_nothing():
    result = gam_from_transfer(10_000_000, 0, Designation.DP, 2_000_000, 27, False, RULES)
    assert result.gam_generated == 0
    assert "not eligible for TAM buydown" in result.explanation


def test_dp_within_tam_ceiling_converts():
    result = gam_from_transfer(1_000_000, 0, Designation.DP, 1_500_000, 27, False, RULES)
    assert result.net_revenue == 850_000
    assert result.gam_generated == 425_000


def test_transfer_at_loss_generates_nothing():
    result = gam_from_transfer(500_000, 600_000, Designation.SENIOR, 300_000, 25, False, RULES)
    assert result.gam_generated == 0
    assert result.net_profit == -100_000
    assert result.warnings == ["Loss of $100,000 - no GAM impact"]


def test_transfer_recoups_acquisition_cost_first():
    result = gam_from_transfer(2_000_000, 500_000, Designation.SENIOR, 400_000, 25, False, RULES)
    assert result.net_profit == 1_500_000
    assert result.net_revenue == 1_200_000
    assert result.gam_generated == 580_000


def test_homegrown_designation_earns_bonus_on_transfer():
    result = gam_from_transfer(2_000_000, 0, Designation.HOMEGROWN, 200_000, 21, False, RULES)
    assert result.base_gam == 780_000
    assert result.gam_generated == 975_000
    assert "Homegrown bonus" in result.explanation
