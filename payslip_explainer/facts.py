#!/usr/bin/env python3

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from payslip_explainer.diff import (
    ChangeCategory,
    ChangeDirection,
    ChangeRecord,
    ComparisonResult,
    Importance,
)
from payslip_explainer.normalize import month_name

CURRENCY = "ZAR"
NO_CHANGE_TAKEAWAY = "No significant changes this month."


class FactType(str, Enum):
    NET_PAY_CHANGE = "net_pay_change"
    EARNING_CHANGE = "earning_change"
    DEDUCTION_CHANGE = "deduction_change"
    EARNING_ADDED = "earning_added"
    EARNING_REMOVED = "earning_removed"
    DEDUCTION_ADDED = "deduction_added"
    DEDUCTION_REMOVED = "deduction_removed"
    TAX_IMPACT = "tax_impact"  # PAYE / UIF
    CAUSAL = "causal"
    SUMMARY = "summary"
    NO_CHANGE = "no_change"


FACT_TYPE_PRIORITY: dict[FactType, int] = {
    FactType.NET_PAY_CHANGE: 0,
    FactType.SUMMARY: 1,
    FactType.CAUSAL: 2,
    FactType.TAX_IMPACT: 3,
    FactType.EARNING_CHANGE: 4,
    FactType.EARNING_ADDED: 5,
    FactType.EARNING_REMOVED: 6,
    FactType.DEDUCTION_CHANGE: 7,
    FactType.DEDUCTION_ADDED: 8,
    FactType.DEDUCTION_REMOVED: 9,
    FactType.NO_CHANGE: 10,
}

# What moves what in SA payroll: earnings feed the gross and taxable totals,
# taxable earnings drive PAYE, and deductions come off net pay.
CAUSAL_RULES: dict[str, tuple[str, ...]] = {
    "SALARY": ("grossEarnings", "totalTaxableEarnings"),
    "OTIME1_5": ("grossEarnings", "totalTaxableEarnings"),
    "OTIME2_0": ("grossEarnings", "totalTaxableEarnings"),
    "COMM": ("grossEarnings", "totalTaxableEarnings"),
    "TRAVEL": ("grossEarnings", "totalTaxableEarnings"),
    "grossEarnings": ("netPay",),
    "totalTaxableEarnings": ("PAYE",),
    "totalDeductions": ("netPay",),
    "PAYE": ("netPay",),
    "UIF": ("netPay",),
    "ADVANCE": ("netPay",),
}


@dataclass(frozen=True)
class FactValues:
    amount: Decimal | None = None
    delta: Decimal | None = None
    percent_change: Decimal | None = None


@dataclass(frozen=True)
class Fact:
    id: str
    type: FactType
    importance: Importance
    sentence: str
    related_change_ids: list[str] | None = None
    values: FactValues | None = None


@dataclass(frozen=True)
class FactsResult:
    period_description: str
    employee_name: str
    facts: list[Fact] = field(default_factory=list)
    key_takeaway: str = NO_CHANGE_TAKEAWAY


def format_currency(amount: Decimal) -> str:
    return f"{CURRENCY} {abs(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,.2f}"


def format_percent(percent: Decimal) -> str:
    return f"{abs(percent).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP):.1f}%"


def get_affected_by(code: str) -> tuple[str, ...]:
    return CAUSAL_RULES.get(code, ())


def could_have_caused(cause_code: str, effect_code: str) -> bool:
    return effect_code in get_affected_by(cause_code)


def _percent_suffix(change: ChangeRecord) -> str:
    if change.percent_change is None:
        return ""
    return f" ({format_percent(change.percent_change)})"


def _moved(direction: ChangeDirection) -> str:
    if direction in (ChangeDirection.INCREASE, ChangeDirection.ADDED):
        return "increased"
    return "decreased"


# Sentence templates


def net_pay_sentence(change: ChangeRecord) -> str:
    delta = format_currency(change.delta)
    if change.direction == ChangeDirection.INCREASE:
        return f"Your net pay increased by {delta} this month."
    if change.direction == ChangeDirection.DECREASE:
        return f"Your net pay decreased by {delta} this month."
    return "Your net pay remained the same this month."


def earning_sentence(change: ChangeRecord) -> str:
    delta = format_currency(change.delta)
    percent = _percent_suffix(change)

    if change.direction == ChangeDirection.INCREASE:
        return f"{change.label} increased by {delta}{percent}."
    if change.direction == ChangeDirection.DECREASE:
        return f"{change.label} decreased by {delta}{percent}."
    if change.direction == ChangeDirection.ADDED:
        return f"You received {change.label} of {format_currency(change.new_value)} this month."
    if change.direction == ChangeDirection.REMOVED:
        return f"{change.label} was not paid this month (previously {format_currency(change.old_value)})."
    return f"{change.label} remained unchanged at {format_currency(change.new_value)}."


def deduction_sentence(change: ChangeRecord) -> str:
    delta = format_currency(change.delta)
    percent = _percent_suffix(change)

    if change.direction == ChangeDirection.INCREASE:
        return f"{change.label} increased by {delta}{percent}."
    if change.direction == ChangeDirection.DECREASE:
        return f"{change.label} decreased by {delta}{percent}."
    if change.direction == ChangeDirection.ADDED:
        return f"A new deduction for {change.label} of {format_currency(change.new_value)} was applied."
    if change.direction == ChangeDirection.REMOVED:
        return f"{change.label} deduction was removed (previously {format_currency(change.old_value)})."
    return f"{change.label} remained unchanged at {format_currency(change.new_value)}."


def tax_impact_sentence(change: ChangeRecord) -> str:
    delta = format_currency(change.delta)

    if change.code == "PAYE":
        if change.direction == ChangeDirection.INCREASE:
            return f"Your PAYE tax increased by {delta} due to higher taxable earnings."
        if change.direction == ChangeDirection.DECREASE:
            return f"Your PAYE tax decreased by {delta} due to lower taxable earnings."

    if change.code == "UIF":
        if change.direction == ChangeDirection.INCREASE:
            return f"Your UIF contribution increased by {delta}."
        if change.direction == ChangeDirection.DECREASE:
            return f"Your UIF contribution decreased by {delta}."

    return deduction_sentence(change)


def summary_sentence(change: ChangeRecord) -> str:
    return (
        f"{change.label} changed from {format_currency(change.old_value)} "
        f"to {format_currency(change.new_value)}."
    )


def causal_sentence(cause: ChangeRecord, effect: ChangeRecord) -> str:
    cause_moved = _moved(cause.direction)
    effect_moved = _moved(effect.direction)

    if cause.code == "SALARY" and effect.code == "PAYE":
        return f"Because your Basic Salary {cause_moved}, your PAYE tax also {effect_moved}."

    if cause.category == ChangeCategory.EARNING and effect.code == "grossEarnings":
        return f"Your {cause.label} change contributed to the overall change in gross earnings."

    if cause.code == "totalTaxableEarnings" and effect.code == "PAYE":
        return f"Your PAYE tax {effect_moved} because your taxable earnings {cause_moved}."

    if cause.code == "PAYE" and effect.code == "netPay":
        paye_amount = format_currency(cause.delta)
        if cause_moved == "increased":
            return f"The increase in PAYE ({paye_amount}) reduced your net pay."
        return f"The decrease in PAYE ({paye_amount}) increased your net pay."

    if cause.code == "ADVANCE" and effect.code == "netPay":
        if cause.direction == ChangeDirection.REMOVED:
            return (
                f"The advance deduction of {format_currency(cause.old_value)} no longer applies, "
                "which affected your net pay."
            )
        return f"An advance deduction of {format_currency(cause.new_value)} significantly impacted your net pay."

    return f"The change in {cause.label} affected your {effect.label}."


# Fact generation


def change_to_fact_type(change: ChangeRecord) -> FactType:
    if change.code == "netPay":
        return FactType.NET_PAY_CHANGE

    if change.code in ("PAYE", "UIF"):
        return FactType.TAX_IMPACT

    if change.category == ChangeCategory.EARNING:
        if change.direction == ChangeDirection.ADDED:
            return FactType.EARNING_ADDED
        if change.direction == ChangeDirection.REMOVED:
            return FactType.EARNING_REMOVED
        return FactType.EARNING_CHANGE

    if change.category == ChangeCategory.DEDUCTION:
        if change.direction == ChangeDirection.ADDED:
            return FactType.DEDUCTION_ADDED
        if change.direction == ChangeDirection.REMOVED:
            return FactType.DEDUCTION_REMOVED
        return FactType.DEDUCTION_CHANGE

    return FactType.SUMMARY


def render_sentence(fact_type: FactType, change: ChangeRecord) -> str:
    if fact_type == FactType.NET_PAY_CHANGE:
        return net_pay_sentence(change)
    if fact_type == FactType.TAX_IMPACT:
        return tax_impact_sentence(change)
    if fact_type in (FactType.EARNING_CHANGE, FactType.EARNING_ADDED, FactType.EARNING_REMOVED):
        return earning_sentence(change)
    if fact_type in (FactType.DEDUCTION_CHANGE, FactType.DEDUCTION_ADDED, FactType.DEDUCTION_REMOVED):
        return deduction_sentence(change)
    return summary_sentence(change)


def fact_from_change(change: ChangeRecord) -> Fact:
    fact_type = change_to_fact_type(change)
    return Fact(
        id=f"fact:{change.id}",
        type=fact_type,
        importance=change.importance,
        sentence=render_sentence(fact_type, change),
        values=FactValues(
            amount=change.new_value,
            delta=change.delta,
            percent_change=change.percent_change,
        ),
    )


def generate_causal_facts(changes: list[ChangeRecord]) -> list[Fact]:
    """One causal fact per (cause, effect) rule where both sides actually moved."""
    causal_facts: list[Fact] = []
    changes_by_code: dict[str, ChangeRecord] = {}
    for change in changes:
        changes_by_code[change.code] = change

    for cause in changes:
        if cause.direction == ChangeDirection.UNCHANGED:
            continue
        for effect_code in get_affected_by(cause.code):
            effect = changes_by_code.get(effect_code)
            if effect is None or effect.direction == ChangeDirection.UNCHANGED:
                continue
            causal_facts.append(
                Fact(
                    id=f"causal:{cause.code}->{effect.code}",
                    type=FactType.CAUSAL,
                    importance=Importance.MEDIUM,
                    sentence=causal_sentence(cause, effect),
                    related_change_ids=[cause.id, effect.id],
                )
            )

    return causal_facts


def fact_sort_key(fact: Fact) -> tuple[int, int]:
    return (fact.importance.rank, FACT_TYPE_PRIORITY[fact.type])


def describe_period(comparison: ComparisonResult) -> str:
    previous = month_name(comparison.previous_period.month)
    current = month_name(comparison.current_period.month)
    return f"Changes from {previous} to {current} {comparison.current_period.year}"


def generate_facts(comparison: ComparisonResult) -> FactsResult:
    """Turn a comparison into ranked natural-language facts plus a key takeaway."""
    # Aggregates other than net pay only restate their line items.
    facts = [
        fact_from_change(change)
        for change in comparison.changes
        if change.category != ChangeCategory.AGGREGATE or change.code == "netPay"
    ]
    facts.extend(generate_causal_facts(comparison.changes))
    facts.sort(key=fact_sort_key)

    net_pay_fact = next((f for f in facts if f.type == FactType.NET_PAY_CHANGE), None)

    return FactsResult(
        period_description=describe_period(comparison),
        employee_name=comparison.display_name,
        facts=facts,
        key_takeaway=net_pay_fact.sentence if net_pay_fact is not None else NO_CHANGE_TAKEAWAY,
    )


def get_key_facts(result: FactsResult, limit: int = 5) -> list[Fact]:
    return result.facts[:limit]


def get_facts_by_type(result: FactsResult, fact_type: FactType) -> list[Fact]:
    return [f for f in result.facts if f.type == fact_type]


def get_causal_facts(result: FactsResult) -> list[Fact]:
    return get_facts_by_type(result, FactType.CAUSAL)


def get_all_sentences(result: FactsResult) -> list[str]:
    return [f.sentence for f in result.facts]
