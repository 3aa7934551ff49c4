"""Custom exceptions for configuration management."""

from typing import List, Optional

from pydantic import ValidationError


class ConfigurationError(Exception):
    """
    Exception raised when configuration validation fails.

    This exception can store multiple validation errors and format them
    in a human-readable way with helpful suggestions.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Primary error message
            errors: List of specific validation errors
            suggestions: List of helpful suggestions to fix the errors
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    @classmethod
    def from_validation_error(
        cls,
        message: str,
        error: ValidationError,
        suggestions: Optional[List[str]] = None,
    ) -> "ConfigurationError":
        """Build a ConfigurationError from a pydantic ValidationError.

        Args:
            message: Primary error message
            error: The pydantic validation error to translate
            suggestions: Optional suggestions to attach

        Returns:
            ConfigurationError listing one readable line per field error
        """
        return cls(
            message,
            errors=format_validation_errors(error),
            suggestions=suggestions,
        )

    def _format_message(self) -> str:
        """Format the error message with all errors and suggestions."""
        parts = [self.message]

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)

    def add_error(self, error: str) -> None:
        """Add a validation error to the list."""
        self.errors.append(error)

    def add_suggestion(self, suggestion: str) -> None:
        """Add a helpful suggestion to the list."""
        self.suggestions.append(suggestion)


def format_validation_errors(error: ValidationError) -> List[str]:
    """Convert pydantic validation errors into user-friendly messages.

    Args:
        error: Pydantic ValidationError

    Returns:
        List of messages, one per failing field
    """
    messages = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"]) or "<root>"
        error_msg = item["msg"]
        error_type = item["type"]

        if error_type == "missing":
            messages.append(f"Missing required field: {field_path}")
        elif error_type in ["string_type", "int_type", "bool_type", "list_type"]:
            expected_type = error_type.replace("_type", "")
            messages.append(
                f"Invalid type for '{field_path}': expected {expected_type}, got {item.get('input')}"
            )
        elif error_type == "union_tag_invalid":
            messages.append(f"Unknown transport type for '{field_path}': {error_msg}")
        elif error_type == "union_tag_not_found":
            messages.append(f"Missing transport type for '{field_path}': {error_msg}")
        elif "enum" in error_type or error_type == "literal_error":
            messages.append(f"Invalid value for '{field_path}': {error_msg}")
        else:
            messages.append(f"{field_path}: {error_msg}")

    return messages
