"""
CLI Entry Point: payslip-explain

Explains what changed between two successive payslips of one employee.
Reads a payroll API JSON document (employeeInfo + payslipHeaders).
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any

from payslip_explainer.narrator import SUPPORTED_LANGUAGES, NarratorConfig
from payslip_explainer.normalize import filter_primary_payslips, month_name, sort_payslips_by_period
from payslip_explainer.pipeline import PipelineOptions, PipelineResult, run_pipeline
from payslip_explainer.records import PayslipHeader, PayslipRecordError, load_payslip_response
from payslip_explainer.report import as_float, pipeline_result_to_json, result_to_markdown
from payslip_explainer.utils.console import (
    print_error,
    print_markdown,
    print_step,
    print_success,
    print_table,
    print_warning,
)
from payslip_explainer.utils.contracts import ContractError, validate_output

PERIOD_RE = re.compile(r"^(\d{4})-(\d{1,2})$")

EXIT_OK = 0
EXIT_PIPELINE_FAILED = 1
EXIT_BAD_INPUT = 2


def parse_period(value: str) -> tuple[int, int]:
    match = PERIOD_RE.match(value.strip())
    if match is None:
        raise argparse.ArgumentTypeError(f"Period must look like YYYY-MM, got `{value}`.")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"Month must be between 1 and 12, got {month}.")
    return year, month


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def write_markdown(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def list_periods(payslips: list[PayslipHeader]) -> None:
    primaries = sort_payslips_by_period(filter_primary_payslips(payslips))
    rows = [
        [
            f"{p.calendar_year}-{p.calendar_month:02d}",
            month_name(p.calendar_month),
            str(p.payslip_id),
            f"{as_float(p.net_pay):,.2f}",
            "yes" if index > 0 else "no",
        ]
        for index, p in enumerate(primaries)
    ]
    print_table("Primary Payslip Periods", ["Period", "Month", "Payslip", "Net Pay", "Has Previous"], rows)


def output_human(result: PipelineResult) -> None:
    comparison = result.comparison
    facts = result.facts
    if comparison is None or facts is None:
        print_warning("No comparison to show.")
        return

    print_step(facts.period_description)
    rows = [
        [
            change.label,
            change.direction.value,
            f"{as_float(change.old_value):,.2f}",
            f"{as_float(change.new_value):,.2f}",
            f"{as_float(change.delta):+,.2f}",
            change.importance.value,
        ]
        for change in comparison.changes
    ]
    print_table("Detected Changes", ["Item", "Direction", "Previous", "Current", "Delta", "Importance"], rows)

    print_step("Explanation")
    print_markdown(result.explanation or "")

    if result.narration_error:
        print_warning(f"LLM narration unavailable, showing simple summary: {result.narration_error}")
    if result.usage is not None:
        print_success(f"Narrated by {result.narrated_by} ({result.usage.total_tokens} tokens).")


def main() -> None:
    parser = argparse.ArgumentParser(description="Explain changes between two successive payslips.")
    parser.add_argument("payslips_json", type=Path, help="Payroll API JSON document with payslipHeaders.")
    parser.add_argument("--period", type=parse_period, default=None, help="Month to explain (YYYY-MM).")
    parser.add_argument("--list-periods", action="store_true", help="List primary payslip periods and exit.")
    parser.add_argument("--json", action="store_true", help="Output machine-readable JSON.")
    parser.add_argument("--json-out", type=Path, default=None, help="Also write the JSON payload to this path.")
    parser.add_argument("--markdown-out", type=Path, default=None, help="Write a Markdown report to this path.")
    parser.add_argument("--llm", action="store_true", help="Narrate with an LLM (requires OPENAI_API_KEY).")
    parser.add_argument("--model", default=NarratorConfig.model, help="LLM model for narration.")
    parser.add_argument("--language", choices=SUPPORTED_LANGUAGES, default="en", help="Narration language.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.payslips_json.exists():
        print_error(f"File not found: {args.payslips_json}", exit_code=EXIT_BAD_INPUT)

    try:
        response = load_payslip_response(args.payslips_json)
    except (ContractError, PayslipRecordError, OSError, json.JSONDecodeError) as e:
        print_error(f"Could not read payslips: {e}", exit_code=EXIT_BAD_INPUT)

    if args.list_periods:
        list_periods(response.payslip_headers)
        sys.exit(EXIT_OK)

    options = PipelineOptions(
        use_llm=args.llm,
        narrator_config=NarratorConfig(model=args.model, language=args.language),
        period=args.period,
    )
    result = run_pipeline(response.payslip_headers, options)

    payload = pipeline_result_to_json(result)
    validate_output(payload, "explanation_output")

    if args.json_out:
        write_json(args.json_out, payload)
    if args.markdown_out:
        write_markdown(args.markdown_out, result_to_markdown(result))

    if args.json:
        print(json.dumps(payload, indent=2))
    elif result.success:
        output_human(result)

    if not result.success:
        if not args.json:
            print_error(result.error or "Unknown error")
        sys.exit(EXIT_PIPELINE_FAILED)


if __name__ == "__main__":
    main()
