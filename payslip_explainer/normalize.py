#!/usr/bin/env python3

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from payslip_explainer.records import PayslipHeader

ZERO = Decimal("0.00")

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

SALARY_CODE = "SALARY"
PAYE_CODE = "PAYE"
UIF_CODE = "UIF"
OVERTIME_CODES = ("OTIME1_5", "OTIME2_0")
TRAVEL_CODE = "TRAVEL"
COMMISSION_CODE = "COMM"


@dataclass(frozen=True)
class NormalizedLine:
    code: str
    description: str
    amount: Decimal
    taxable_amount: Decimal
    tax_deductible_amount: Decimal


@dataclass(frozen=True)
class Period:
    year: int
    month: int
    start_date: str
    end_date: str


@dataclass(frozen=True)
class PayslipTotals:
    gross_earnings: Decimal
    total_taxable_earnings: Decimal
    total_deductions: Decimal
    total_tax_deductible: Decimal
    total_fringe_benefits: Decimal
    total_company_contributions: Decimal
    net_pay: Decimal


@dataclass(frozen=True)
class KeyAmounts:
    basic_salary: Decimal
    paye: Decimal
    uif: Decimal
    overtime: Decimal  # OTIME1_5 + OTIME2_0
    travel: Decimal
    commission: Decimal


@dataclass(frozen=True)
class NormalizedPayslip:
    payslip_id: int
    employee_code: str
    display_name: str
    period: Period
    tax_year: int
    earnings: dict[str, NormalizedLine]
    deductions: dict[str, NormalizedLine]
    fringe_benefits: dict[str, NormalizedLine]
    company_contributions: dict[str, NormalizedLine]
    totals: PayslipTotals
    key_amounts: KeyAmounts


def period_key(period: Period) -> str:
    return f"{period.year}-{period.month:02d}"


def compare_periods(a: Period, b: Period) -> int:
    if a.year != b.year:
        return a.year - b.year
    return a.month - b.month


def is_consecutive_month(a: Period, b: Period) -> bool:
    """True when `b` is the calendar month right after `a`."""
    if a.month == 12:
        return b.year == a.year + 1 and b.month == 1
    return b.year == a.year and b.month == a.month + 1


def month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return f"Month {month}"


def _line_amount(lines: dict[str, NormalizedLine], code: str) -> Decimal:
    line = lines.get(code)
    return line.amount if line is not None else ZERO


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def normalize_payslip(payslip: PayslipHeader) -> NormalizedPayslip:
    """
    Convert a validated payroll record into its comparison-ready shape.

    Line items are keyed by line code (a repeated code keeps the last entry).
    Aggregates are summed over the raw lists; net pay is copied as reported.
    """
    earnings = {
        line.line_code: NormalizedLine(
            code=line.line_code,
            description=line.line_description,
            amount=line.total,
            taxable_amount=line.taxable_amount,
            tax_deductible_amount=ZERO,
        )
        for line in payslip.earnings
    }
    deductions = {
        line.line_code: NormalizedLine(
            code=line.line_code,
            description=line.line_description,
            amount=line.total,
            taxable_amount=ZERO,
            tax_deductible_amount=line.tax_deductible_amount,
        )
        for line in payslip.deductions
    }
    fringe_benefits = {
        line.line_code: NormalizedLine(
            code=line.line_code,
            description=line.line_description,
            amount=line.total,
            taxable_amount=line.taxable_amount,
            tax_deductible_amount=ZERO,
        )
        for line in payslip.fringe_benefits
    }
    company_contributions = {
        line.line_code: NormalizedLine(
            code=line.line_code,
            description=line.line_description,
            amount=line.total,
            taxable_amount=ZERO,
            tax_deductible_amount=line.tax_deductible_amount,
        )
        for line in payslip.company_contributions
    }

    totals = PayslipTotals(
        gross_earnings=_sum(line.total for line in payslip.earnings),
        total_taxable_earnings=_sum(line.taxable_amount for line in payslip.earnings),
        total_deductions=_sum(line.total for line in payslip.deductions),
        total_tax_deductible=_sum(line.tax_deductible_amount for line in payslip.deductions),
        total_fringe_benefits=_sum(line.total for line in payslip.fringe_benefits),
        total_company_contributions=_sum(line.total for line in payslip.company_contributions),
        net_pay=payslip.net_pay,
    )

    key_amounts = KeyAmounts(
        basic_salary=_line_amount(earnings, SALARY_CODE),
        paye=_line_amount(deductions, PAYE_CODE),
        uif=_line_amount(deductions, UIF_CODE),
        overtime=_sum(_line_amount(earnings, code) for code in OVERTIME_CODES),
        travel=_line_amount(earnings, TRAVEL_CODE),
        commission=_line_amount(earnings, COMMISSION_CODE),
    )

    return NormalizedPayslip(
        payslip_id=payslip.payslip_id,
        employee_code=payslip.employee_code,
        display_name=payslip.display_name,
        period=Period(
            year=payslip.calendar_year,
            month=payslip.calendar_month,
            start_date=payslip.period_start_date,
            end_date=payslip.period_end_date,
        ),
        tax_year=payslip.statutory_tax_year,
        earnings=earnings,
        deductions=deductions,
        fringe_benefits=fringe_benefits,
        company_contributions=company_contributions,
        totals=totals,
        key_amounts=key_amounts,
    )


# Primary payslips: a period can carry supplementary runs (bonus, adjustments)
# next to the regular one. Only the regular run has basic salary.


def is_primary_payslip(payslip: PayslipHeader) -> bool:
    for line in payslip.earnings:
        if line.line_code == SALARY_CODE:
            return line.total > 0
    return False


def filter_primary_payslips(payslips: list[PayslipHeader]) -> list[PayslipHeader]:
    return [payslip for payslip in payslips if is_primary_payslip(payslip)]


def sort_payslips_by_period(payslips: list[PayslipHeader]) -> list[PayslipHeader]:
    return sorted(payslips, key=lambda p: (p.calendar_year, p.calendar_month))


def get_primary_payslip_for_period(payslips: list[PayslipHeader], year: int, month: int) -> PayslipHeader | None:
    for payslip in payslips:
        if payslip.calendar_year == year and payslip.calendar_month == month and is_primary_payslip(payslip):
            return payslip
    return None


def get_normalized_primary_payslips(payslips: list[PayslipHeader]) -> list[NormalizedPayslip]:
    """Primary payslips, normalized, oldest period first."""
    return [normalize_payslip(p) for p in sort_payslips_by_period(filter_primary_payslips(payslips))]


def get_payslip_pair_for_comparison(
    payslips: list[PayslipHeader],
    period: tuple[int, int] | None = None,
) -> tuple[NormalizedPayslip, NormalizedPayslip] | None:
    """
    Select (previous, current) for comparison.

    Without `period`, the two most recent primary payslips. With
    `period=(year, month)`, that primary payslip and the primary one before it.
    Returns None when no such pair exists.
    """
    normalized = get_normalized_primary_payslips(payslips)
    if len(normalized) < 2:
        return None

    if period is None:
        return normalized[-2], normalized[-1]

    year, month = period
    for index, candidate in enumerate(normalized):
        if candidate.period.year == year and candidate.period.month == month:
            if index == 0:
                return None
            return normalized[index - 1], candidate
    return None
