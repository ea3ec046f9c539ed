"""
Comparison pipeline: pair selection -> normalize -> diff -> facts -> narration.

`run_pipeline` never raises. Every failure comes back as a PipelineResult with
`success=False` and a message; a failing narration collaborator only switches
the explanation to the simple digest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

from payslip_explainer.diff import ComparisonResult, compare_payslips
from payslip_explainer.facts import FactsResult, generate_facts
from payslip_explainer.llm import OpenAINarrator
from payslip_explainer.narrator import (
    NarrationError,
    NarrationResult,
    NarrationUsage,
    Narrator,
    NarratorConfig,
    narrate_simple,
)
from payslip_explainer.normalize import (
    NormalizedPayslip,
    get_payslip_pair_for_comparison,
    is_consecutive_month,
    normalize_payslip,
    period_key,
)
from payslip_explainer.records import PayslipHeader

logger = logging.getLogger(__name__)

SIMPLE_NARRATOR = "simple"
NOT_ENOUGH_PAYSLIPS = "Not enough primary payslips to compare (need at least 2)"

PayslipLike = Union[PayslipHeader, NormalizedPayslip]
PipelineInput = Union[Sequence[PayslipHeader], tuple[PayslipLike, PayslipLike]]


@dataclass(frozen=True)
class PipelineOptions:
    use_llm: bool = False
    narrator_config: NarratorConfig | None = None
    narrator: Narrator | None = None
    period: tuple[int, int] | None = None  # (year, month) to explain; latest when None


@dataclass(frozen=True)
class PipelineResult:
    success: bool
    error: str | None = None
    payslips: tuple[NormalizedPayslip, NormalizedPayslip] | None = None
    comparison: ComparisonResult | None = None
    facts: FactsResult | None = None
    explanation: str | None = None
    usage: NarrationUsage | None = None
    narrated_by: str | None = None
    narration_error: str | None = None


def _as_normalized(payslip: PayslipLike) -> NormalizedPayslip:
    if isinstance(payslip, NormalizedPayslip):
        return payslip
    return normalize_payslip(payslip)


def _select_pair(
    payslips: PipelineInput,
    period: tuple[int, int] | None,
) -> tuple[NormalizedPayslip, NormalizedPayslip] | None:
    if isinstance(payslips, tuple) and len(payslips) == 2:
        previous, current = payslips
        return _as_normalized(previous), _as_normalized(current)
    return get_payslip_pair_for_comparison(list(payslips), period=period)


def narrate(facts: FactsResult, options: PipelineOptions) -> tuple[str, NarrationUsage | None, str, str | None]:
    """
    Produce the explanation text for `facts`.

    Returns (explanation, usage, narrated_by, narration_error). The simple
    digest is used unless LLM narration is requested and succeeds.
    """
    if not options.use_llm:
        return narrate_simple(facts), None, SIMPLE_NARRATOR, None

    config = options.narrator_config or NarratorConfig()
    narrator = options.narrator or OpenAINarrator()
    try:
        result = narrator(facts, config)
    except NarrationError as e:
        error = str(e)
    except Exception as e:  # any collaborator failure falls back
        logger.exception("Narration collaborator raised unexpectedly")
        error = str(e) or type(e).__name__
    else:
        if not isinstance(result, NarrationResult):
            error = f"Narration collaborator returned {type(result).__name__}, not a NarrationResult."
        elif result.ok and result.explanation:
            return result.explanation.strip(), result.usage, result.model, None
        else:
            error = result.error or "Narration collaborator returned no text."

    logger.warning("LLM narration failed, using simple narration instead: %s", error)
    return narrate_simple(facts), None, SIMPLE_NARRATOR, error


def run_pipeline(payslips: PipelineInput, options: PipelineOptions | None = None) -> PipelineResult:
    """
    Run the full comparison pipeline.

    `payslips` is either a list of raw payroll records (the two most recent
    primary payslips are compared, or `options.period` and its predecessor) or
    a (previous, current) tuple of raw or already normalized payslips.
    """
    options = options or PipelineOptions()

    try:
        pair = _select_pair(payslips, options.period)
        if pair is None:
            if options.period is not None:
                year, month = options.period
                return PipelineResult(
                    success=False,
                    error=f"No primary payslip pair found ending at {year}-{month:02d}",
                )
            return PipelineResult(success=False, error=NOT_ENOUGH_PAYSLIPS)

        previous, current = pair
        logger.debug(
            "Comparing payslip %s (%s) with %s (%s)",
            previous.payslip_id,
            period_key(previous.period),
            current.payslip_id,
            period_key(current.period),
        )
        if not is_consecutive_month(previous.period, current.period):
            logger.warning(
                "Comparing non-consecutive periods %s and %s",
                period_key(previous.period),
                period_key(current.period),
            )

        comparison = compare_payslips(previous, current)
        facts = generate_facts(comparison)
        explanation, usage, narrated_by, narration_error = narrate(facts, options)

        return PipelineResult(
            success=True,
            payslips=(previous, current),
            comparison=comparison,
            facts=facts,
            explanation=explanation,
            usage=usage,
            narrated_by=narrated_by,
            narration_error=narration_error,
        )
    except Exception as e:
        logger.exception("Payslip comparison pipeline failed")
        return PipelineResult(success=False, error=str(e) or "Unknown error")


def compare_specific_payslips(
    previous: PayslipLike,
    current: PayslipLike,
    options: PipelineOptions | None = None,
) -> PipelineResult:
    """Compare two given payslips directly, skipping pair selection."""
    return run_pipeline((previous, current), options)
