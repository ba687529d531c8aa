"""Protocol for validation adapters."""

from typing import Any, Protocol, runtime_checkable

from safe_route.core.types import ValidationResult


@runtime_checkable
class ValidationAdapter(Protocol):
    """Protocol for pluggable validation backends.

    The pipelines never inspect a schema; they only hand it to the adapter.
    """

    async def validate(self, schema: Any, value: Any) -> ValidationResult[Any]:
        """Validate ``value`` against ``schema``.

        Args:
            schema: A backend-specific schema object.
            value: The decoded input.

        Returns:
            ``ValidationSuccess`` with the (possibly transformed) output, or
            ``ValidationFailure`` with the ordered issues.
        """
        ...
