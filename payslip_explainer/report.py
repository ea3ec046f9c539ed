from __future__ import annotations

from decimal import Decimal
from typing import Any

from payslip_explainer.diff import ChangeRecord, ComparisonResult
from payslip_explainer.facts import Fact, FactsResult, format_currency
from payslip_explainer.narrator import NarrationUsage
from payslip_explainer.normalize import month_name
from payslip_explainer.pipeline import PipelineResult

SCHEMA_VERSION = "1.0.0"

DIRECTION_ARROWS = {
    "increase": "↑",
    "decrease": "↓",
    "added": "+",
    "removed": "-",
    "unchanged": "•",
}


def as_float(value: Decimal | None) -> float | None:
    if value is None:
        return None
    return float(value.quantize(Decimal("0.01")))


def change_to_json(change: ChangeRecord) -> dict[str, Any]:
    return {
        "id": change.id,
        "label": change.label,
        "category": change.category.value,
        "code": change.code,
        "oldValue": as_float(change.old_value),
        "newValue": as_float(change.new_value),
        "delta": as_float(change.delta),
        "percentChange": as_float(change.percent_change),
        "direction": change.direction.value,
        "importance": change.importance.value,
    }


def comparison_to_json(comparison: ComparisonResult) -> dict[str, Any]:
    summary = comparison.summary
    return {
        "previousPeriod": {"year": comparison.previous_period.year, "month": comparison.previous_period.month},
        "currentPeriod": {"year": comparison.current_period.year, "month": comparison.current_period.month},
        "employeeCode": comparison.employee_code,
        "displayName": comparison.display_name,
        "changes": [change_to_json(change) for change in comparison.changes],
        "summary": {
            "totalChanges": summary.total_changes,
            "increases": summary.increases,
            "decreases": summary.decreases,
            "added": summary.added,
            "removed": summary.removed,
            "netPayDelta": as_float(summary.net_pay_delta),
        },
    }


def fact_to_json(fact: Fact) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": fact.id,
        "type": fact.type.value,
        "importance": fact.importance.value,
        "sentence": fact.sentence,
    }
    if fact.related_change_ids is not None:
        payload["relatedChangeIds"] = list(fact.related_change_ids)
    if fact.values is not None:
        values: dict[str, Any] = {"percentChange": as_float(fact.values.percent_change)}
        if fact.values.amount is not None:
            values["amount"] = as_float(fact.values.amount)
        if fact.values.delta is not None:
            values["delta"] = as_float(fact.values.delta)
        payload["values"] = values
    return payload


def facts_to_json(facts: FactsResult) -> dict[str, Any]:
    return {
        "periodDescription": facts.period_description,
        "employeeName": facts.employee_name,
        "facts": [fact_to_json(fact) for fact in facts.facts],
        "keyTakeaway": facts.key_takeaway,
    }


def usage_to_json(usage: NarrationUsage | None) -> dict[str, int] | None:
    if usage is None:
        return None
    return {
        "promptTokens": usage.prompt_tokens,
        "completionTokens": usage.completion_tokens,
        "totalTokens": usage.total_tokens,
    }


def pipeline_result_to_json(result: PipelineResult) -> dict[str, Any]:
    if not result.success:
        return {"schema_version": SCHEMA_VERSION, "success": False, "error": result.error}

    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "success": True,
        "explanation": result.explanation or "",
        "narratedBy": result.narrated_by or "simple",
        "narrationError": result.narration_error,
        "usage": usage_to_json(result.usage),
    }
    if result.comparison is not None:
        payload["comparison"] = comparison_to_json(result.comparison)
    if result.facts is not None:
        payload["facts"] = facts_to_json(result.facts)
    return payload


def format_signed(value: Decimal) -> str:
    sign = "+" if value >= 0 else "-"
    return f"{sign}{format_currency(value)}"


def result_to_markdown(result: PipelineResult) -> str:
    if not result.success or result.comparison is None or result.facts is None:
        return f"# Payslip Comparison\n\nComparison failed: {result.error}\n"

    comparison = result.comparison
    facts = result.facts
    previous = comparison.previous_period
    current = comparison.current_period

    lines: list[str] = []
    lines.append(f"# Payslip Comparison: {facts.employee_name}")
    lines.append("")
    lines.append(f"- Employee Code: {comparison.employee_code}")
    lines.append(f"- Previous Period: {month_name(previous.month)} {previous.year}")
    lines.append(f"- Current Period: {month_name(current.month)} {current.year}")
    lines.append(f"- Net Pay Change: {format_signed(comparison.summary.net_pay_delta)}")
    lines.append("")

    lines.append("## Key Takeaway")
    lines.append(facts.key_takeaway)
    lines.append("")

    lines.append("## Changes")
    if comparison.changes:
        lines.append("| Item | Category | Previous | Current | Change | Importance |")
        lines.append("| :--- | :--- | ---: | ---: | ---: | :--- |")
        for change in comparison.changes:
            arrow = DIRECTION_ARROWS.get(change.direction.value, "")
            lines.append(
                f"| {change.label} | {change.category.value} | {format_currency(change.old_value)} "
                f"| {format_currency(change.new_value)} | {arrow} {format_signed(change.delta)} "
                f"| {change.importance.value} |"
            )
    else:
        lines.append("No changes detected.")
    lines.append("")

    lines.append("## Facts")
    for fact in facts.facts:
        lines.append(f"- [{fact.importance.value}] {fact.sentence}")
    lines.append("")

    lines.append("## Explanation")
    lines.append(result.explanation or "")
    lines.append("")

    return "\n".join(lines)
