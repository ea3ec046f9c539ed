#!/usr/bin/env python3
"""
Generates synthetic payroll API documents (payslipHeaders) for tests and demos.
"""

import calendar
import json
import sys
from pathlib import Path
from typing import Any

from payslip_explainer.records import PayslipHeader, payslip_from_dict

DEFAULT_NAME = "Thandi Mokoena"
DEFAULT_EMPLOYEE_CODE = "EMP001"


def make_line(
    code: str,
    total: float,
    description: str | None = None,
    tax_type: str = "Normal",
    taxable_amount: float | None = None,
    tax_deductible_amount: float | None = None,
) -> dict[str, Any]:
    line: dict[str, Any] = {
        "lineCode": code,
        "lineDescription": description if description is not None else code.title(),
        "taxType": tax_type,
        "taxPercentage": 0,
        "taxCode": "",
        "total": total,
        "mtdTotal": total,
        "ytdTotal": total,
    }
    if taxable_amount is not None:
        line["taxableAmount"] = taxable_amount
    if tax_deductible_amount is not None:
        line["taxDeductibleAmount"] = tax_deductible_amount
    return line


def make_payslip_dict(
    payslip_id: int,
    year: int,
    month: int,
    net_pay: float,
    earnings: list[dict[str, Any]] | None = None,
    deductions: list[dict[str, Any]] | None = None,
    fringe_benefits: list[dict[str, Any]] | None = None,
    company_contributions: list[dict[str, Any]] | None = None,
    display_name: str = DEFAULT_NAME,
    employee_code: str = DEFAULT_EMPLOYEE_CODE,
) -> dict[str, Any]:
    last_day = calendar.monthrange(year, month)[1]
    return {
        "payslipID": payslip_id,
        "displayName": display_name,
        "employeeCode": employee_code,
        "birthDate": "1990-04-12",
        "taxStartDate": "2020-02-01",
        "taxEndDate": None,
        "shortDescription": f"{calendar.month_abbr[month]} {year}",
        "periodStartDate": f"{year}-{month:02d}-01",
        "periodEndDate": f"{year}-{month:02d}-{last_day:02d}",
        "calendarMonth": month,
        "calendarYear": year,
        "statutoryTaxYear": year + 1 if month >= 3 else year,
        "netPay": net_pay,
        "earnings": earnings or [],
        "deductions": deductions or [],
        "fringeBenefits": fringe_benefits or [],
        "companyContributions": company_contributions or [],
    }


def make_payslip(*args: Any, **kwargs: Any) -> PayslipHeader:
    return payslip_from_dict(make_payslip_dict(*args, **kwargs))


def make_response_dict(payslips: list[dict[str, Any]], employee_code: str = DEFAULT_EMPLOYEE_CODE) -> dict[str, Any]:
    return {
        "success": True,
        "employeeInfo": {
            "employeeID": 1001,
            "employeeCode": employee_code,
            "companyName": "Acme Holdings (Pty) Ltd",
            "jobTitle": "Analyst",
            "department": "Finance",
            "employeeStatus": "Active",
            "dateJoinedGroup": "2020-02-01",
            "terminationDate": None,
        },
        "payslipHeaders": payslips,
        "payslipCount": len(payslips),
    }


def regular_payslip_dict(
    payslip_id: int,
    year: int,
    month: int,
    paye: float = 5000,
    extra_earnings: list[dict[str, Any]] | None = None,
    extra_deductions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Regular monthly run: SALARY 25000, TRAVEL 1500, PAYE deducted; net pay follows the lines."""
    earnings = [
        make_line("SALARY", 25000, "Basic Salary", taxable_amount=25000),
        make_line("TRAVEL", 1500, "Travel Allowance", tax_type="Periodic", taxable_amount=1200),
        *(extra_earnings or []),
    ]
    deductions = [
        make_line("PAYE", paye, "PAYE Tax"),
        *(extra_deductions or []),
    ]
    gross = sum(line["total"] for line in earnings)
    total_deductions = sum(line["total"] for line in deductions)
    return make_payslip_dict(
        payslip_id,
        year,
        month,
        net_pay=gross - total_deductions,
        earnings=earnings,
        deductions=deductions,
    )


def advance_scenario_dicts() -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Previous: SALARY 25000, TRAVEL 1500, PAYE 5000, net 21500.
    Current: PAYE rises to 5200 and a 500 salary advance is deducted, net 20800.
    """
    previous = regular_payslip_dict(101, 2024, 2)
    current = regular_payslip_dict(
        102,
        2024,
        3,
        paye=5200,
        extra_deductions=[make_line("ADVANCE", 500, "Salary Advance", tax_type="Never")],
    )
    return previous, current


def bonus_payslip_dict(payslip_id: int, year: int, month: int, amount: float = 10000) -> dict[str, Any]:
    """Supplementary run in the same period as a regular payslip; carries no SALARY line."""
    return make_payslip_dict(
        payslip_id,
        year,
        month,
        net_pay=amount * 0.6,
        earnings=[make_line("BONUS", amount, "Annual Bonus", tax_type="Periodic", taxable_amount=amount)],
        deductions=[make_line("PAYE", amount * 0.4, "PAYE Tax")],
    )


def sample_response_dict() -> dict[str, Any]:
    """Four regular months (Jan-Apr 2024) plus a March bonus run, unordered."""
    payslips = [
        regular_payslip_dict(104, 2024, 4, paye=5200),
        regular_payslip_dict(101, 2024, 1),
        bonus_payslip_dict(190, 2024, 3),
        regular_payslip_dict(
            103,
            2024,
            3,
            paye=5350,
            extra_earnings=[make_line("OTIME1_5", 1800, "Overtime 1.5x", taxable_amount=1800)],
        ),
        regular_payslip_dict(102, 2024, 2),
    ]
    return make_response_dict(payslips)


def main_gen(output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)

    previous, current = advance_scenario_dicts()
    pair_path = output_dir / "payslips_advance.json"
    pair_path.write_text(json.dumps(make_response_dict([previous, current]), indent=2), encoding="utf-8")
    print(f"Generated payslips: {pair_path}")

    sample_path = output_dir / "payslips_sample.json"
    sample_path.write_text(json.dumps(sample_response_dict(), indent=2), encoding="utf-8")
    print(f"Generated payslips: {sample_path}")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        out = Path(sys.argv[1])
    else:
        out = Path("payslip_fixtures")
    main_gen(out)
