import logging

import pytest

from payslip_explainer.testing.fixtures import make_line, make_payslip_dict, make_response_dict, regular_payslip_dict
from payslip_explainer.utils.contracts import ContractError, collect_violations, load_schema, validate_output

VALID_FAILURE_OUTPUT = {
    "schema_version": "1.0.0",
    "success": False,
    "error": "Not enough primary payslips to compare (need at least 2)",
}


def test_validate_payslip_response_valid():
    """Should pass for a generated payroll document."""
    validate_output(make_response_dict([regular_payslip_dict(1, 2024, 1)]), "payslip_response")


def test_validate_payslip_response_bad_month():
    """Should fail and point at the offending field."""
    data = make_response_dict([make_payslip_dict(1, 2024, 13, net_pay=100)])

    with pytest.raises(ContractError) as excinfo:
        validate_output(data, "payslip_response")

    assert "Data Contract Violation (payslip_response)" in str(excinfo.value)
    assert "payslipHeaders/0/calendarMonth" in str(excinfo.value)


def test_validate_payslip_response_collects_every_violation():
    line = make_line("SALARY", 100)
    del line["lineDescription"]
    payslip = make_payslip_dict(1, 2024, 1, net_pay=100, earnings=[line])
    del payslip["displayName"]

    violations = collect_violations(make_response_dict([payslip]), "payslip_response")

    assert len(violations) == 2
    assert any("displayName" in v for v in violations)
    assert any(v.startswith("payslipHeaders/0/earnings/0") for v in violations)


def test_validate_payslip_response_unknown_tax_type():
    data = make_response_dict([regular_payslip_dict(1, 2024, 1)])
    data["payslipHeaders"][0]["earnings"][0]["taxType"] = "Sometimes"

    with pytest.raises(ContractError) as excinfo:
        validate_output(data, "payslip_response")
    assert excinfo.value.violations


def test_validate_explanation_output_failure_shape():
    validate_output(VALID_FAILURE_OUTPUT, "explanation_output")


def test_validate_explanation_output_missing_field():
    """Should fail if required field is missing."""
    invalid = dict(VALID_FAILURE_OUTPUT)
    del invalid["schema_version"]

    with pytest.raises(ContractError):
        validate_output(invalid, "explanation_output")


def test_review_mode_logs_instead_of_raising(caplog):
    invalid = dict(VALID_FAILURE_OUTPUT, success="no")

    with caplog.at_level(logging.WARNING, logger="payslip_explainer.utils.contracts"):
        validate_output(invalid, "explanation_output", mode="REVIEW")

    assert "Data Contract Violation" in caplog.text


def test_unknown_schema():
    with pytest.raises(ContractError, match="Schema not found"):
        validate_output({}, "no_such_schema")
    with pytest.raises(FileNotFoundError):
        load_schema("no_such_schema")
