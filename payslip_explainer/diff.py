#!/usr/bin/env python3

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, NamedTuple

from payslip_explainer.normalize import ZERO, NormalizedLine, NormalizedPayslip


class ChangeDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


class ChangeCategory(str, Enum):
    EARNING = "earning"
    DEDUCTION = "deduction"
    FRINGE_BENEFIT = "fringe_benefit"
    COMPANY_CONTRIBUTION = "company_contribution"
    AGGREGATE = "aggregate"  # grossEarnings, netPay, ...
    KEY_AMOUNT = "key_amount"  # basicSalary, paye, ...

    @property
    def is_line_item(self) -> bool:
        return self in LINE_ITEM_CATEGORIES


LINE_ITEM_CATEGORIES = frozenset(
    {
        ChangeCategory.EARNING,
        ChangeCategory.DEDUCTION,
        ChangeCategory.FRINGE_BENEFIT,
        ChangeCategory.COMPANY_CONTRIBUTION,
    }
)


class Importance(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return IMPORTANCE_RANK[self]


IMPORTANCE_RANK = {Importance.HIGH: 0, Importance.MEDIUM: 1, Importance.LOW: 2}

ALWAYS_HIGH_CODES = frozenset({"netPay", "PAYE", "paye", "SALARY", "basicSalary"})
LOW_DELTA_THRESHOLD = Decimal("100")

# Key amounts already reported through their line item.
KEY_AMOUNTS_COVERED_BY_LINES = frozenset({"basicSalary", "paye", "uif", "travel", "commission"})


@dataclass(frozen=True)
class ChangeRecord:
    id: str
    label: str
    category: ChangeCategory
    code: str
    old_value: Decimal
    new_value: Decimal
    delta: Decimal
    percent_change: Decimal | None
    direction: ChangeDirection
    importance: Importance


class PeriodStamp(NamedTuple):
    year: int
    month: int


@dataclass(frozen=True)
class ComparisonSummary:
    total_changes: int
    increases: int
    decreases: int
    added: int
    removed: int
    net_pay_delta: Decimal


@dataclass(frozen=True)
class ComparisonResult:
    previous_period: PeriodStamp
    current_period: PeriodStamp
    employee_code: str
    display_name: str
    changes: list[ChangeRecord]
    summary: ComparisonSummary


def get_change_direction(
    old_value: Decimal,
    new_value: Decimal,
    is_added: bool,
    is_removed: bool,
) -> ChangeDirection:
    if is_added:
        return ChangeDirection.ADDED
    if is_removed:
        return ChangeDirection.REMOVED
    if new_value > old_value:
        return ChangeDirection.INCREASE
    if new_value < old_value:
        return ChangeDirection.DECREASE
    return ChangeDirection.UNCHANGED


def calculate_percent_change(old_value: Decimal, new_value: Decimal) -> Decimal | None:
    if old_value == 0:
        return None
    return (new_value - old_value) / abs(old_value) * 100


def determine_importance(
    category: ChangeCategory,
    code: str,
    delta: Decimal,
    direction: ChangeDirection,
) -> Importance:
    """
    Importance policy, evaluated in order:
    1. net pay, PAYE and basic salary are always HIGH
    2. added/removed items are MEDIUM
    3. aggregate totals are MEDIUM
    4. anything moving by less than 100 is LOW
    5. everything else is MEDIUM
    """
    if code in ALWAYS_HIGH_CODES:
        return Importance.HIGH
    if direction in (ChangeDirection.ADDED, ChangeDirection.REMOVED):
        return Importance.MEDIUM
    if category == ChangeCategory.AGGREGATE:
        return Importance.MEDIUM
    if abs(delta) < LOW_DELTA_THRESHOLD:
        return Importance.LOW
    return Importance.MEDIUM


def compare_line_maps(
    category: ChangeCategory,
    old_map: dict[str, NormalizedLine],
    new_map: dict[str, NormalizedLine],
) -> list[ChangeRecord]:
    changes: list[ChangeRecord] = []
    # Union in first-seen order so output does not depend on set hashing.
    all_codes = list(dict.fromkeys([*old_map.keys(), *new_map.keys()]))

    for code in all_codes:
        old_line = old_map.get(code)
        new_line = new_map.get(code)

        old_value = old_line.amount if old_line is not None else ZERO
        new_value = new_line.amount if new_line is not None else ZERO
        is_added = old_line is None and new_line is not None
        is_removed = old_line is not None and new_line is None

        if old_value == 0 and new_value == 0 and not is_added and not is_removed:
            continue

        delta = new_value - old_value
        if delta == 0 and not is_added and not is_removed:
            continue

        direction = get_change_direction(old_value, new_value, is_added, is_removed)
        if new_line is not None and new_line.description:
            label = new_line.description
        elif old_line is not None and old_line.description:
            label = old_line.description
        else:
            label = code

        changes.append(
            ChangeRecord(
                id=f"{category.value}:{code}:amount",
                label=label,
                category=category,
                code=code,
                old_value=old_value,
                new_value=new_value,
                delta=delta,
                percent_change=calculate_percent_change(old_value, new_value),
                direction=direction,
                importance=determine_importance(category, code, delta, direction),
            )
        )

    return changes


class AggregateField(NamedTuple):
    code: str
    label: str
    get_value: Callable[[NormalizedPayslip], Decimal]


AGGREGATE_FIELDS: tuple[AggregateField, ...] = (
    AggregateField("grossEarnings", "Gross Earnings", lambda ps: ps.totals.gross_earnings),
    AggregateField("totalTaxableEarnings", "Taxable Earnings", lambda ps: ps.totals.total_taxable_earnings),
    AggregateField("totalDeductions", "Total Deductions", lambda ps: ps.totals.total_deductions),
    AggregateField("netPay", "Net Pay", lambda ps: ps.totals.net_pay),
    AggregateField("totalFringeBenefits", "Fringe Benefits", lambda ps: ps.totals.total_fringe_benefits),
    AggregateField(
        "totalCompanyContributions", "Company Contributions", lambda ps: ps.totals.total_company_contributions
    ),
)

KEY_AMOUNT_FIELDS: tuple[AggregateField, ...] = (
    AggregateField("basicSalary", "Basic Salary", lambda ps: ps.key_amounts.basic_salary),
    AggregateField("paye", "PAYE Tax", lambda ps: ps.key_amounts.paye),
    AggregateField("uif", "UIF", lambda ps: ps.key_amounts.uif),
    AggregateField("overtime", "Overtime", lambda ps: ps.key_amounts.overtime),
    AggregateField("travel", "Travel Allowance", lambda ps: ps.key_amounts.travel),
    AggregateField("commission", "Commission", lambda ps: ps.key_amounts.commission),
)


def compare_aggregates(
    category: ChangeCategory,
    fields: tuple[AggregateField, ...],
    previous: NormalizedPayslip,
    current: NormalizedPayslip,
) -> list[ChangeRecord]:
    changes: list[ChangeRecord] = []

    for agg in fields:
        old_value = agg.get_value(previous)
        new_value = agg.get_value(current)
        delta = new_value - old_value

        if delta == 0:
            continue
        if old_value == 0 and new_value == 0:
            continue

        direction = get_change_direction(old_value, new_value, False, False)
        changes.append(
            ChangeRecord(
                id=f"{category.value}:{agg.code}",
                label=agg.label,
                category=category,
                code=agg.code,
                old_value=old_value,
                new_value=new_value,
                delta=delta,
                percent_change=calculate_percent_change(old_value, new_value),
                direction=direction,
                importance=determine_importance(category, agg.code, delta, direction),
            )
        )

    return changes


def change_sort_key(change: ChangeRecord) -> tuple[int, Decimal]:
    return (change.importance.rank, -abs(change.delta))


def compare_payslips(previous: NormalizedPayslip, current: NormalizedPayslip) -> ComparisonResult:
    """Compare two normalized payslips and produce every change record, most important first."""
    changes: list[ChangeRecord] = []

    changes.extend(compare_line_maps(ChangeCategory.EARNING, previous.earnings, current.earnings))
    changes.extend(compare_line_maps(ChangeCategory.DEDUCTION, previous.deductions, current.deductions))
    changes.extend(
        compare_line_maps(ChangeCategory.FRINGE_BENEFIT, previous.fringe_benefits, current.fringe_benefits)
    )
    changes.extend(
        compare_line_maps(
            ChangeCategory.COMPANY_CONTRIBUTION,
            previous.company_contributions,
            current.company_contributions,
        )
    )

    changes.extend(compare_aggregates(ChangeCategory.AGGREGATE, AGGREGATE_FIELDS, previous, current))

    # Only key amounts with no line item of their own (combined overtime) survive.
    for change in compare_aggregates(ChangeCategory.KEY_AMOUNT, KEY_AMOUNT_FIELDS, previous, current):
        if change.code not in KEY_AMOUNTS_COVERED_BY_LINES:
            changes.append(change)

    changes.sort(key=change_sort_key)

    summary = ComparisonSummary(
        total_changes=len(changes),
        increases=sum(1 for c in changes if c.direction == ChangeDirection.INCREASE),
        decreases=sum(1 for c in changes if c.direction == ChangeDirection.DECREASE),
        added=sum(1 for c in changes if c.direction == ChangeDirection.ADDED),
        removed=sum(1 for c in changes if c.direction == ChangeDirection.REMOVED),
        net_pay_delta=current.totals.net_pay - previous.totals.net_pay,
    )

    return ComparisonResult(
        previous_period=PeriodStamp(previous.period.year, previous.period.month),
        current_period=PeriodStamp(current.period.year, current.period.month),
        employee_code=current.employee_code,
        display_name=current.display_name,
        changes=changes,
        summary=summary,
    )


def get_high_importance_changes(result: ComparisonResult) -> list[ChangeRecord]:
    return [c for c in result.changes if c.importance == Importance.HIGH]


def get_changes_by_category(result: ComparisonResult, category: ChangeCategory) -> list[ChangeRecord]:
    return [c for c in result.changes if c.category == category]


def get_line_item_changes(result: ComparisonResult) -> list[ChangeRecord]:
    return [c for c in result.changes if c.category.is_line_item]


def get_aggregate_changes(result: ComparisonResult) -> list[ChangeRecord]:
    return get_changes_by_category(result, ChangeCategory.AGGREGATE)
