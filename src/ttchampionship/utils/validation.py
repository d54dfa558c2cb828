"""Validation utilities for Table Tennis Championship.

This module provides the result containers shared by every validator, plus
reusable field validators with consistent error handling.
"""

# Table Tennis Championship
# Copyright (C) 2025  Table Tennis Championship developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ttchampionship.exceptions import NameValidationException

_NAME_PATTERN = re.compile(r"^[a-zA-Z\u00c0-\u00d6\u00d8-\u00f6\u00f8-\u00ff '-]+$")


class ValidationResult:
    """Result of a single validation check.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
        sanitized_value: Cleaned/normalized value if valid
    """

    def __init__(
        self,
        is_valid: bool,
        error_message: Optional[str] = None,
        sanitized_value: Optional[str] = None,
    ):
        self.is_valid = is_valid
        self.error_message = error_message
        self.sanitized_value = sanitized_value

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(VALID, {self.sanitized_value!r})"
        return f"ValidationResult(INVALID, {self.error_message!r})"


@dataclass
class ValidationReport:
    """Aggregated outcome of a multi-rule validation.

    Errors block progression, warnings are recommendations only.

    Attributes
    ----------
    errors : list of str
        Blocking problems.
    warnings : list of str
        Non-blocking recommendations.
    """

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def merge(self, other: "ValidationReport", prefix: str = "") -> None:
        """Fold another report into this one, prefixing its messages."""
        self.errors.extend(f"{prefix}{e}" for e in other.errors)
        self.warnings.extend(f"{prefix}{w}" for w in other.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


# ========== Name Validation ==========


def validate_name(name: Optional[str], required: bool = True) -> ValidationResult:
    """Validate an athlete's name.

    Latin letters (accented included), spaces, hyphens and apostrophes
    are accepted, between 2 and 100 characters.

    Args:
        name: Name to validate
        required: Whether name is required

    Returns:
        ValidationResult with validation status
    """
    if not name or not name.strip():
        if required:
            return ValidationResult(
                is_valid=False,
                error_message="Name is required",
            )
        return ValidationResult(is_valid=True, sanitized_value=None)

    name = re.sub(r"\s+", " ", name.strip())

    if len(name) < 2:
        return ValidationResult(
            is_valid=False,
            error_message="Name must be at least 2 characters",
        )

    if len(name) > 100:
        return ValidationResult(
            is_valid=False,
            error_message="Name must be at most 100 characters",
        )

    if not _NAME_PATTERN.match(name):
        return ValidationResult(
            is_valid=False,
            error_message="Name contains invalid characters",
        )

    return ValidationResult(is_valid=True, sanitized_value=name)


def validate_name_strict(name: str) -> str:
    """Validate a name and return it sanitized or raise exception.

    Raises:
        NameValidationException: If name is invalid
    """
    result = validate_name(name, required=True)
    if not result.is_valid:
        raise NameValidationException(result.error_message)
    return result.sanitized_value or ""


# ========== Generic Validation ==========


def validate_non_empty(
    value: Optional[str], field_name: str = "Field"
) -> ValidationResult:
    """Validate that a field is not empty.

    Args:
        value: Value to validate
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with validation status
    """
    if not value or not str(value).strip():
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} cannot be empty",
        )
    return ValidationResult(is_valid=True, sanitized_value=str(value).strip())


def validate_positive_integer(
    value: Optional[int], field_name: str = "Value"
) -> ValidationResult:
    """Validate that a value is a positive integer.

    Args:
        value: Value to validate
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with validation status
    """
    if value is None:
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} is required",
        )

    try:
        int_value = int(value)
    except (ValueError, TypeError):
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be a number",
        )
    if int_value <= 0:
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be positive",
        )
    return ValidationResult(is_valid=True, sanitized_value=str(int_value))
