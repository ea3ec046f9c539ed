from payslip_explainer.records import (
    PayslipHeader,
    PayslipRecordError,
    PayslipResponse,
    load_payslip_response,
    payslip_from_dict,
)
from payslip_explainer.normalize import (
    NormalizedPayslip,
    get_payslip_pair_for_comparison,
    is_primary_payslip,
    normalize_payslip,
)
from payslip_explainer.diff import (
    ChangeCategory,
    ChangeDirection,
    ChangeRecord,
    ComparisonResult,
    Importance,
    compare_payslips,
)
from payslip_explainer.facts import Fact, FactsResult, FactType, generate_facts
from payslip_explainer.narrator import NarrationError, NarratorConfig, narrate_simple
from payslip_explainer.llm import OpenAINarrator
from payslip_explainer.pipeline import (
    PipelineOptions,
    PipelineResult,
    compare_specific_payslips,
    run_pipeline,
)
from payslip_explainer.report import pipeline_result_to_json, result_to_markdown

__all__ = [
    "ChangeCategory",
    "ChangeDirection",
    "ChangeRecord",
    "ComparisonResult",
    "Fact",
    "FactType",
    "FactsResult",
    "Importance",
    "NarrationError",
    "NarratorConfig",
    "NormalizedPayslip",
    "OpenAINarrator",
    "PayslipHeader",
    "PayslipRecordError",
    "PayslipResponse",
    "PipelineOptions",
    "PipelineResult",
    "compare_payslips",
    "compare_specific_payslips",
    "generate_facts",
    "get_payslip_pair_for_comparison",
    "is_primary_payslip",
    "load_payslip_response",
    "narrate_simple",
    "normalize_payslip",
    "payslip_from_dict",
    "pipeline_result_to_json",
    "result_to_markdown",
    "run_pipeline",
]
