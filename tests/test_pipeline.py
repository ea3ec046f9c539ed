import unittest
from decimal import Decimal
from unittest.mock import patch

import pytest

from payslip_explainer.diff import ChangeDirection, Importance
from payslip_explainer.facts import FactType
from payslip_explainer.narrator import NarrationError, NarrationResult, NarrationUsage
from payslip_explainer.normalize import normalize_payslip
from payslip_explainer.pipeline import (
    NOT_ENOUGH_PAYSLIPS,
    PipelineOptions,
    compare_specific_payslips,
    run_pipeline,
)
from payslip_explainer.testing.fixtures import make_line, make_payslip, regular_payslip_dict
from payslip_explainer.records import payslip_from_dict


def _scenario():
    previous = make_payslip(
        201,
        2024,
        6,
        net_pay=19000,
        earnings=[make_line("SALARY", 25000, "Basic Salary"), make_line("TRAVEL", 1500, "Travel Allowance")],
        deductions=[make_line("PAYE", 5000, "PAYE Tax")],
    )
    current = make_payslip(
        202,
        2024,
        7,
        net_pay=18300,
        earnings=[make_line("SALARY", 25000, "Basic Salary"), make_line("TRAVEL", 1500, "Travel Allowance")],
        deductions=[make_line("PAYE", 5200, "PAYE Tax"), make_line("ADVANCE", 500, "Salary Advance")],
    )
    return previous, current


@pytest.mark.integration
class PipelineScenarioTests(unittest.TestCase):
    def test_end_to_end_advance_scenario(self) -> None:
        result = run_pipeline(list(_scenario()))

        self.assertTrue(result.success)
        self.assertIsNone(result.error)
        changes = {c.id: c for c in result.comparison.changes}

        self.assertEqual(result.comparison.changes[0].id, "aggregate:netPay")
        self.assertEqual(changes["aggregate:netPay"].delta, Decimal("-700"))
        self.assertEqual(changes["aggregate:netPay"].importance, Importance.HIGH)
        self.assertEqual(changes["deduction:PAYE:amount"].direction, ChangeDirection.INCREASE)
        self.assertEqual(changes["deduction:PAYE:amount"].delta, Decimal("200"))
        self.assertEqual(changes["deduction:PAYE:amount"].importance, Importance.HIGH)
        self.assertEqual(changes["deduction:ADVANCE:amount"].direction, ChangeDirection.ADDED)
        self.assertEqual(changes["deduction:ADVANCE:amount"].importance, Importance.MEDIUM)

        causal = [f for f in result.facts.facts if f.type == FactType.CAUSAL]
        self.assertIn(
            ["deduction:PAYE:amount", "aggregate:netPay"],
            [f.related_change_ids for f in causal],
        )
        self.assertIn("decreased by ZAR 700.00", result.facts.key_takeaway)

        self.assertEqual(result.narrated_by, "simple")
        self.assertIsNone(result.usage)
        self.assertIsNone(result.narration_error)
        self.assertTrue(result.explanation.startswith("**Payslip Summary for Thandi Mokoena**"))
        self.assertEqual([p.payslip_id for p in result.payslips], [201, 202])

    def test_direct_pair_accepts_normalized_payslips(self) -> None:
        previous, current = _scenario()
        result = compare_specific_payslips(normalize_payslip(previous), current)

        self.assertTrue(result.success)
        self.assertEqual(result.comparison.summary.net_pay_delta, Decimal("-700"))

    def test_direct_pair_skips_primary_filter(self) -> None:
        previous = make_payslip(1, 2024, 3, net_pay=6000, earnings=[make_line("BONUS", 10000)])
        current = make_payslip(2, 2024, 4, net_pay=0)

        result = compare_specific_payslips(previous, current)

        self.assertTrue(result.success)
        self.assertEqual(result.comparison.changes[0].code, "netPay")


@pytest.mark.integration
def test_insufficient_payslips_fails_cleanly():
    previous, _ = _scenario()

    result = run_pipeline([previous])

    assert result.success is False
    assert result.error == NOT_ENOUGH_PAYSLIPS
    assert result.comparison is None
    assert result.facts is None
    assert result.explanation is None


@pytest.mark.integration
def test_period_option_selects_pair(sample_payslips):
    result = run_pipeline(sample_payslips, PipelineOptions(period=(2024, 2)))

    assert result.success
    assert (result.comparison.previous_period.month, result.comparison.current_period.month) == (1, 2)
    assert result.comparison.changes == []
    assert result.facts.key_takeaway == "No significant changes this month."


@pytest.mark.integration
def test_period_without_predecessor_reports_period(sample_payslips):
    result = run_pipeline(sample_payslips, PipelineOptions(period=(2024, 1)))

    assert result.success is False
    assert result.error == "No primary payslip pair found ending at 2024-01"


@pytest.mark.integration
def test_non_consecutive_periods_are_logged(caplog):
    payslips = [
        payslip_from_dict(regular_payslip_dict(1, 2024, 1)),
        payslip_from_dict(regular_payslip_dict(2, 2024, 4, paye=5100)),
    ]

    with caplog.at_level("WARNING", logger="payslip_explainer.pipeline"):
        result = run_pipeline(payslips)

    assert result.success
    assert "non-consecutive periods 2024-01 and 2024-04" in caplog.text


@pytest.mark.integration
def test_unexpected_error_becomes_failure_result():
    with patch("payslip_explainer.pipeline.compare_payslips", side_effect=RuntimeError("diff exploded")):
        result = run_pipeline(list(_scenario()))

    assert result.success is False
    assert result.error == "diff exploded"


@pytest.mark.integration
def test_llm_narration_used_when_available():
    calls = []

    def narrator(facts, config):
        calls.append((facts.employee_name, config.language))
        return NarrationResult(
            model="stub-model",
            explanation="  Your take-home pay dropped by ZAR 700.00.  ",
            usage=NarrationUsage(prompt_tokens=1, completion_tokens=2, total_tokens=3),
        )

    result = run_pipeline(list(_scenario()), PipelineOptions(use_llm=True, narrator=narrator))

    assert result.success
    assert calls == [("Thandi Mokoena", "en")]
    assert result.explanation == "Your take-home pay dropped by ZAR 700.00."
    assert result.narrated_by == "stub-model"
    assert result.usage.total_tokens == 3


@pytest.mark.integration
@pytest.mark.parametrize(
    "behaviour",
    [
        NarrationError("service unavailable"),
        ConnectionError("socket closed"),
        NarrationResult(model="stub-model", error="rate limited"),
        NarrationResult(model="stub-model", explanation=""),
        None,
        "plain text instead of a result",
    ],
)
def test_llm_failure_falls_back_to_simple_narration(behaviour):
    def narrator(facts, config):
        if isinstance(behaviour, Exception):
            raise behaviour
        return behaviour

    result = run_pipeline(list(_scenario()), PipelineOptions(use_llm=True, narrator=narrator))

    assert result.success
    assert result.narrated_by == "simple"
    assert result.narration_error
    assert result.usage is None
    assert result.explanation.startswith("**Payslip Summary for Thandi Mokoena**")


@pytest.mark.integration
def test_llm_without_api_key_falls_back(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    result = run_pipeline(list(_scenario()), PipelineOptions(use_llm=True))

    assert result.success
    assert result.narrated_by == "simple"
    assert "OPENAI_API_KEY" in result.narration_error
