#!/usr/bin/env python3

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

from payslip_explainer.utils.contracts import validate_output


class PayslipRecordError(ValueError):
    """Raised when a raw payslip dict is missing a required key."""


@dataclass(frozen=True)
class LineItem:
    payslip_id: int
    line_code: str
    line_description: str
    tax_type: str
    tax_percentage: Decimal
    tax_code: str
    total: Decimal
    mtd_total: Decimal
    ytd_total: Decimal


@dataclass(frozen=True)
class EarningLine(LineItem):
    taxable_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class DeductionLine(LineItem):
    tax_deductible_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class FringeBenefitLine(LineItem):
    taxable_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class CompanyContributionLine(LineItem):
    tax_deductible_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class PayslipHeader:
    payslip_id: int
    display_name: str
    employee_code: str
    period_start_date: str
    period_end_date: str
    calendar_month: int
    calendar_year: int
    statutory_tax_year: int
    net_pay: Decimal
    earnings: list[EarningLine] = field(default_factory=list)
    deductions: list[DeductionLine] = field(default_factory=list)
    fringe_benefits: list[FringeBenefitLine] = field(default_factory=list)
    company_contributions: list[CompanyContributionLine] = field(default_factory=list)
    birth_date: str = ""
    tax_start_date: str = ""
    tax_end_date: str | None = None
    short_description: str = ""


@dataclass(frozen=True)
class EmployeeInfo:
    employee_id: int
    employee_code: str
    company_name: str = ""
    job_title: str = ""
    department: str = ""
    employee_status: str = ""
    date_joined_group: str = ""
    termination_date: str | None = None


@dataclass(frozen=True)
class PayslipResponse:
    success: bool
    employee_info: EmployeeInfo | None
    payslip_headers: list[PayslipHeader]
    payslip_count: int


def as_decimal(val: Any) -> Decimal:
    if val is None:
        return Decimal("0.00")
    return Decimal(str(val))


def _require(data: dict[str, Any], key: str, context: str) -> Any:
    if key not in data:
        raise PayslipRecordError(f"{context} is missing required key `{key}`.")
    return data[key]


def _line_kwargs(data: dict[str, Any], payslip_id: int, context: str) -> dict[str, Any]:
    return {
        "payslip_id": int(data.get("payslipID", payslip_id)),
        "line_code": str(_require(data, "lineCode", context)),
        "line_description": str(data.get("lineDescription", "")),
        "tax_type": str(data.get("taxType", "Normal")),
        "tax_percentage": as_decimal(data.get("taxPercentage")),
        "tax_code": str(data.get("taxCode", "")),
        "total": as_decimal(_require(data, "total", context)),
        "mtd_total": as_decimal(data.get("mtdTotal")),
        "ytd_total": as_decimal(data.get("ytdTotal")),
    }


def payslip_from_dict(data: dict[str, Any]) -> PayslipHeader:
    """Build a PayslipHeader from a camelCase payroll API record."""
    payslip_id = int(_require(data, "payslipID", "Payslip"))
    context = f"Payslip {payslip_id}"

    earnings = [
        EarningLine(
            **_line_kwargs(line, payslip_id, f"{context} earning"),
            taxable_amount=as_decimal(line.get("taxableAmount")),
        )
        for line in data.get("earnings", [])
    ]
    deductions = [
        DeductionLine(
            **_line_kwargs(line, payslip_id, f"{context} deduction"),
            tax_deductible_amount=as_decimal(line.get("taxDeductibleAmount")),
        )
        for line in data.get("deductions", [])
    ]
    fringe_benefits = [
        FringeBenefitLine(
            **_line_kwargs(line, payslip_id, f"{context} fringe benefit"),
            taxable_amount=as_decimal(line.get("taxableAmount")),
        )
        for line in data.get("fringeBenefits", [])
    ]
    company_contributions = [
        CompanyContributionLine(
            **_line_kwargs(line, payslip_id, f"{context} company contribution"),
            tax_deductible_amount=as_decimal(line.get("taxDeductibleAmount")),
        )
        for line in data.get("companyContributions", [])
    ]

    return PayslipHeader(
        payslip_id=payslip_id,
        display_name=str(_require(data, "displayName", context)),
        employee_code=str(_require(data, "employeeCode", context)),
        period_start_date=str(data.get("periodStartDate", "")),
        period_end_date=str(data.get("periodEndDate", "")),
        calendar_month=int(_require(data, "calendarMonth", context)),
        calendar_year=int(_require(data, "calendarYear", context)),
        statutory_tax_year=int(data.get("statutoryTaxYear", data["calendarYear"])),
        net_pay=as_decimal(_require(data, "netPay", context)),
        earnings=earnings,
        deductions=deductions,
        fringe_benefits=fringe_benefits,
        company_contributions=company_contributions,
        birth_date=str(data.get("birthDate", "")),
        tax_start_date=str(data.get("taxStartDate", "")),
        tax_end_date=data.get("taxEndDate"),
        short_description=str(data.get("shortDescription", "")),
    )


def employee_info_from_dict(data: dict[str, Any]) -> EmployeeInfo:
    return EmployeeInfo(
        employee_id=int(data.get("employeeID", 0)),
        employee_code=str(data.get("employeeCode", "")),
        company_name=str(data.get("companyName", "")),
        job_title=str(data.get("jobTitle", "")),
        department=str(data.get("department", "")),
        employee_status=str(data.get("employeeStatus", "")),
        date_joined_group=str(data.get("dateJoinedGroup", "")),
        termination_date=data.get("terminationDate"),
    )


def payslip_response_from_dict(data: dict[str, Any]) -> PayslipResponse:
    headers = [payslip_from_dict(item) for item in data.get("payslipHeaders", [])]
    info = data.get("employeeInfo")
    return PayslipResponse(
        success=bool(data.get("success", True)),
        employee_info=employee_info_from_dict(info) if info else None,
        payslip_headers=headers,
        payslip_count=int(data.get("payslipCount", len(headers))),
    )


def load_payslip_response(path: Path, mode: str = "STRICT") -> PayslipResponse:
    """
    Read a payroll API JSON document and build its record model.

    The document is checked against the `payslip_response` contract first;
    in STRICT mode a violation raises ContractError.
    """
    with path.open("r", encoding="utf-8") as handle:
        data: dict[str, Any] = json.load(handle)
    validate_output(data, "payslip_response", mode=mode)
    return payslip_response_from_dict(data)
