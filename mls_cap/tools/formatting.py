"""
Text rendering for engine results.
"""

from __future__ import annotations

from typing import Dict, List

from mls_cap.models.season_rules import SeasonRules
from mls_cap.modules.rule_types import ComplianceReport, SaleGAMResult, SigningVerdict, SlotUsage


def format_salary(amount: float) -> str:
    prefix = "-" if amount < 0 else ""
    value = abs(amount)
    if value >= 1_000_000:
        return f"{prefix}${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{prefix}${round(value / 1_000):.0f}K"
    return f"{prefix}${value:,.0f}"


def format_usd(amount: float) -> str:
    prefix = "-" if amount < 0 else ""
    return f"{prefix}${abs(amount):,.0f}"


def _slot_line(label: str, usage: SlotUsage) -> str:
    return f"• {label}: {usage.used}/{usage.max} ({usage.available} available)"


def build_metric_pills(report: ComplianceReport) -> Dict[str, str]:
    return {
        "compliance_status": "PASS" if report.is_compliant else "FAIL",
        "budget_charge": format_salary(report.total_budget_charge),
        "cap_space": format_salary(report.cap_space_remaining),
        "buydown_shortfall": format_salary(report.buydown_shortfall),
        "dp_slots": f"{report.dp.used}/{report.dp.max}",
        "u22_slots": f"{report.u22.used}/{report.u22.max}",
    }


def build_explain_bullets(verdict: SigningVerdict) -> List[str]:
    bullets = []
    if verdict.optimal_designation is None:
        bullets.append("No legal designation fits this player.")
    else:
        bullets.append(
            f"Cheapest legal designation is {verdict.optimal_designation.value} "
            f"at {format_usd(verdict.final_charge)} budget charge."
        )
    if verdict.amortized_fee > 0:
        bullets.append(f"Cash transfer fee adds {format_usd(verdict.amortized_fee)} per year before designation.")
    if verdict.tam_required or verdict.gam_required:
        bullets.append(
            f"Buydown uses {format_usd(verdict.tam_required)} TAM and {format_usd(verdict.gam_required)} GAM."
        )
    bullets.append(f"Cap space after signing: {format_usd(verdict.cap_space_after)}.")
    bullets.extend(f"Blocked: {issue}" for issue in verdict.issues)
    return bullets


def render_cap_rules(rules: SeasonRules) -> str:
    return "\n".join([
        f"MLS {rules.year} SALARY CAP RULES",
        "",
        f"Salary Budget: {format_salary(rules.salary_budget)}",
        "",
        "ROSTER LIMITS:",
        f"• Senior Roster: {rules.max_senior_roster_size} players max",
        f"• Supplemental Roster: {rules.max_supplemental_roster_size} players max",
        f"• Total Roster: {rules.max_senior_roster_size + rules.max_supplemental_roster_size} players max",
        "",
        "BUDGET CHARGES:",
        f"• Senior Minimum: {format_usd(rules.senior_min_charge)}",
        f"• Reserve Minimum: {format_usd(rules.reserve_min_charge)}",
        f"• Maximum: {format_usd(rules.max_individual_charge)}",
        "",
        "Players earning above max budget charge must be signed as:",
        "• Designated Player (DP)",
        "• Bought down with TAM/GAM to max charge or below",
        "• U22 Initiative player (if eligible)",
    ])


def render_dp_rules(rules: SeasonRules) -> str:
    return "\n".join([
        f"DESIGNATED PLAYER (DP) RULES ({rules.year})",
        "",
        f"SLOTS: {rules.max_dp_slots} per team (construction model {rules.construction_model})",
        "",
        "CAP IMPACT:",
        f"• Budget Charge: {format_usd(rules.dp_charge)} (regardless of actual salary or transfer fee)",
        "",
        "YOUNG DP RULES:",
        f"• Age Requirement: {rules.young_dp_max_age} or younger when signed",
        f"• Reduced Charge: {format_usd(rules.young_dp_charge)}",
    ])


def render_allocation_rules(rules: SeasonRules, kind: str = "both") -> str:
    low, high = rules.tam_eligible_charge_range
    lines = [f"ALLOCATION MONEY RULES ({rules.year})", ""]
    if kind in ("TAM", "both"):
        lines.extend([
            "TAM (Targeted Allocation Money)",
            f"• Annual Amount: {format_salary(rules.tam_annual)}",
            f"• Eligible Charges: above {format_usd(low)} up to {format_usd(high)}",
            "• Senior, Homegrown and Generation adidas players only (never DP or U22)",
            "• Use-it-or-lose-it; not tradeable",
            "",
        ])
    if kind in ("GAM", "both"):
        lines.extend([
            "GAM (General Allocation Money)",
            f"• Annual Amount: {format_salary(rules.gam_annual)}",
            "• Tradeable; any senior roster buydown",
            "",
        ])
    lines.extend([
        "USAGE PRIORITY:",
        "1. TAM first (eligible players)",
        "2. GAM for remaining buydown",
        "3. TAM and GAM are never combined on one player in manual edits",
    ])
    return "\n".join(lines)


def render_u22_rules(rules: SeasonRules) -> str:
    return "\n".join([
        f"U22 INITIATIVE RULES ({rules.year})",
        "",
        "LIMITS:",
        f"• Max Slots: {rules.max_u22_slots} per team",
        f"• Budget Charge: {format_usd(rules.u22_charge)}",
        f"• Max Salary: {format_usd(rules.u22_max_salary)}",
        f"• Age Requirement: {rules.u22_max_age_at_signing} or younger at signing",
        "",
        "NOTES:",
        "• Transfer fees never add to a U22 charge",
        "• International slot still required for foreign U22s",
    ])


def render_homegrown_rules(rules: SeasonRules) -> str:
    return "\n".join([
        f"HOMEGROWN PLAYER RULES ({rules.year})",
        "",
        "ROSTER STATUS:",
        "• Budget Exempt: No (senior roster charge applies)",
        "• May occupy supplemental slots 21-24",
        f"• Minimum Salary: {format_usd(rules.senior_min_charge)}",
        "",
        "BENEFITS:",
        "• TAM eligible when charge is in the TAM window",
        "• +15% GAM bonus when sold abroad",
    ])


def render_international_rules(rules: SeasonRules) -> str:
    return "\n".join([
        f"INTERNATIONAL SLOT RULES ({rules.year})",
        "",
        f"• Default Slots: {rules.max_international_slots} per team",
        "• Tradeable: Yes",
        "",
        "EXEMPT FROM SLOTS:",
        "• US Citizens",
        "• Green Card holders",
        "• Homegrown International Rule qualifiers",
    ])


def render_compliance(team: str, report: ComplianceReport, tam_available: float, gam_available: float) -> str:
    lines = [
        f"{team.upper()} ROSTER COMPLIANCE STATUS ({report.season})",
        "",
        "ROSTER SPOTS:",
        _slot_line("Senior Roster", report.senior_roster),
        _slot_line("Supplemental", report.supplemental_roster),
        "",
        "SPECIAL DESIGNATIONS:",
        _slot_line("DP Slots", report.dp),
        _slot_line("U22 Slots", report.u22),
        _slot_line("International", report.international),
        "",
        "SALARY CAP STATUS:",
        f"• Budget Charge: {format_salary(report.total_budget_charge)}",
        f"• Cap Space: {format_salary(report.cap_space_remaining)}",
        f"• TAM Available: {format_salary(tam_available)}",
        f"• GAM Available: {format_salary(gam_available)}",
        f"• Buydown Shortfall: {format_usd(report.buydown_shortfall)}",
        "",
        f"Result: {'COMPLIANT' if report.is_compliant else 'NOT COMPLIANT'}",
    ]
    if report.issues:
        lines.append("")
        lines.append("Issues:")
        lines.extend(f"• {issue}" for issue in report.issues)
    return "\n".join(lines)


def render_signing(verdict: SigningVerdict, salary: float, age: int, is_international: bool) -> str:
    lines = [
        "SIGNING ANALYSIS",
        "",
        "Player Details:",
        f"• Salary: {format_salary(salary)}",
        f"• International: {'Yes' if is_international else 'No'}",
        f"• Age: {age}",
        f"• Proposed: {verdict.proposed_designation.value}",
        "",
        f"Result: {'CAN SIGN' if verdict.can_sign else 'CANNOT SIGN'}",
        f"Optimal Designation: {verdict.optimal_designation.value if verdict.optimal_designation else 'None'}",
        f"Budget Charge: {format_usd(verdict.final_charge)}",
        f"Cap Space After: {format_usd(verdict.cap_space_after)}",
    ]
    if verdict.issues:
        lines.extend(["", "Issues:"])
        lines.extend(f"• {issue}" for issue in verdict.issues)
    if verdict.notes:
        lines.extend(["", "Notes:"])
        lines.extend(f"• {note}" for note in verdict.notes)
    return "\n".join(lines)


def render_sale_gam(result: SaleGAMResult) -> str:
    lines = ["SALE GAM CALCULATION", ""]
    lines.extend(result.breakdown)
    if result.warnings:
        lines.extend(["", "Warnings:"])
        lines.extend(f"• {w}" for w in result.warnings)
    lines.extend(["", f"GAM Generated: {format_usd(result.gam_generated_display)}"])
    return "\n".join(lines)


def build_markdown_report(team: str, report: ComplianceReport) -> str:
    pills = build_metric_pills(report)
    return "\n".join(
        [
            f"# {team} Cap Compliance Report",
            f"Season: {report.season}",
            "",
            f"- Status: {pills['compliance_status']}",
            f"- Budget Charge: {pills['budget_charge']}",
            f"- Cap Space: {pills['cap_space']}",
            f"- Buydown Shortfall: {pills['buydown_shortfall']}",
            f"- DP Slots: {pills['dp_slots']}",
            f"- U22 Slots: {pills['u22_slots']}",
            f"- Rule Version: {report.rule_version}",
            "",
            "## Issues",
            *([f"- {issue}" for issue in report.issues] or ["- None"]),
        ]
    )
