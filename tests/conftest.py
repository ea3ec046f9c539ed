import json
from pathlib import Path
from typing import Any

import pytest

from payslip_explainer.normalize import NormalizedPayslip, normalize_payslip
from payslip_explainer.records import PayslipHeader, payslip_from_dict
from payslip_explainer.testing.fixtures import (
    advance_scenario_dicts,
    make_response_dict,
    sample_response_dict,
)


@pytest.fixture
def advance_pair_dicts() -> tuple[dict[str, Any], dict[str, Any]]:
    """Previous/current payroll records where PAYE rises and a salary advance appears."""
    return advance_scenario_dicts()


@pytest.fixture
def advance_pair(advance_pair_dicts) -> tuple[PayslipHeader, PayslipHeader]:
    previous, current = advance_pair_dicts
    return payslip_from_dict(previous), payslip_from_dict(current)


@pytest.fixture
def normalized_advance_pair(advance_pair) -> tuple[NormalizedPayslip, NormalizedPayslip]:
    previous, current = advance_pair
    return normalize_payslip(previous), normalize_payslip(current)


@pytest.fixture
def sample_response() -> dict[str, Any]:
    """Four regular months plus one bonus run, in no particular order."""
    return sample_response_dict()


@pytest.fixture
def sample_payslips(sample_response) -> list[PayslipHeader]:
    return [payslip_from_dict(item) for item in sample_response["payslipHeaders"]]


@pytest.fixture
def advance_json_file(tmp_path, advance_pair_dicts) -> Path:
    path = tmp_path / "payslips.json"
    path.write_text(json.dumps(make_response_dict(list(advance_pair_dicts))), encoding="utf-8")
    return path
