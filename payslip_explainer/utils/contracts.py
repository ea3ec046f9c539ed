import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import jsonschema
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent.parent / "schemas"
STRICT = "STRICT"
REVIEW = "REVIEW"


class ContractError(Exception):
    """Raised when a document violates its data contract."""

    def __init__(self, message: str, violations: List[str] | None = None):
        super().__init__(message)
        self.violations = violations or []


@lru_cache(maxsize=None)
def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a JSON schema shipped in payslip_explainer/schemas."""
    schema_path = SCHEMA_DIR / f"{schema_name}.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name}")

    with open(schema_path, "r", encoding="utf-8") as f:
        return dict(json.load(f))


def describe_violation(error: ValidationError) -> str:
    location = "/".join(str(part) for part in error.absolute_path) or "<root>"
    return f"{location}: {error.message}"


def collect_violations(data: Dict[str, Any], schema_name: str) -> List[str]:
    """Every violation of `schema_name` in `data`, ordered by location."""
    schema = load_schema(schema_name)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator = validator_cls(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    return [describe_violation(e) for e in errors]


def validate_output(data: Dict[str, Any], schema_name: str, mode: str = STRICT) -> None:
    """
    Validate data against a JSON schema.

    Args:
        data: The dictionary to validate.
        schema_name: Name of the schema file (without .json extension).
        mode: 'STRICT' (raises error) or 'REVIEW' (logs warning).

    Raises:
        ContractError: If validation fails and mode is STRICT.
    """
    try:
        violations = collect_violations(data, schema_name)
    except FileNotFoundError as e:
        violations = [str(e)]

    if not violations:
        return

    shown = "; ".join(violations[:5])
    more = f" (+{len(violations) - 5} more)" if len(violations) > 5 else ""
    msg = f"Data Contract Violation ({schema_name}): {shown}{more}"
    if mode == STRICT:
        raise ContractError(msg, violations)
    logger.warning(msg)
