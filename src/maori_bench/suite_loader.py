"""
Suite Loader

Loads and validates the JSON test suite (a non-empty array of test definitions).
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from maori_bench.domain.constants import EVAL_TYPES
from maori_bench.domain.entities import TestDefinition


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation problem (path into the JSON document + message)"""
    path: tuple
    message: str

    def format(self) -> str:
        location = ".".join(str(p) for p in self.path) or "<root>"
        return f"{location}: {self.message}"


class SuiteValidationError(ValueError):
    """Raised when a suite fails validation"""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__(f"Suite validation failed with {len(issues)} error(s)")


def _validate_test(index: int, item: Any) -> list[ValidationIssue]:
    """Validate one test definition entry"""
    if not isinstance(item, dict):
        return [ValidationIssue((index,), "Expected object")]

    issues = []
    for key in ("id", "task", "prompt"):
        value = item.get(key)
        if not isinstance(value, str):
            issues.append(ValidationIssue((index, key), "Required string"))
        elif not value:
            issues.append(ValidationIssue((index, key), "String must contain at least 1 character(s)"))

    eval_spec = item.get("eval")
    if not isinstance(eval_spec, dict):
        issues.append(ValidationIssue((index, "eval"), "Required object"))
    elif eval_spec.get("type") not in EVAL_TYPES:
        issues.append(ValidationIssue(
            (index, "eval", "type"),
            f"Invalid type, expected one of {list(EVAL_TYPES)}",
        ))

    if "metadata" in item and item["metadata"] is not None and not isinstance(item["metadata"], dict):
        issues.append(ValidationIssue((index, "metadata"), "Expected object"))

    return issues


def validate_suite(data: Any) -> list[ValidationIssue]:
    """
    Validate parsed suite JSON

    Args:
        data: Parsed JSON document

    Returns:
        list[ValidationIssue]: Empty when the suite is valid
    """
    if not isinstance(data, list):
        return [ValidationIssue((), "Expected array")]
    if not data:
        return [ValidationIssue((), "Array must contain at least 1 element(s)")]

    issues = []
    for index, item in enumerate(data):
        issues.extend(_validate_test(index, item))
    return issues


def _parse_test_data(data: dict) -> TestDefinition:
    """Create a TestDefinition from a validated dictionary"""
    return TestDefinition(
        id=data["id"],
        task=data["task"],
        prompt=data["prompt"],
        eval=dict(data["eval"]),
        expected=data.get("expected"),
        metadata=data.get("metadata"),
    )


def parse_suite(data: Any) -> list[TestDefinition]:
    """
    Validate and parse suite JSON

    Raises:
        SuiteValidationError: If the suite is invalid
    """
    issues = validate_suite(data)
    if issues:
        raise SuiteValidationError(issues)
    return [_parse_test_data(item) for item in data]


def validate_suite_file(file_path: str | Path) -> list[ValidationIssue]:
    """
    Validate a suite file

    Args:
        file_path: Path to the suite JSON file

    Returns:
        list[ValidationIssue]: Empty when the suite is valid

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return validate_suite(data)


def load_suite(file_path: str | Path) -> list[TestDefinition]:
    """
    Load a suite file

    Args:
        file_path: Path to the suite JSON file

    Returns:
        list[TestDefinition]: Tests in file order

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        SuiteValidationError: If the suite is invalid
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return parse_suite(data)
