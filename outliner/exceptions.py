"""Custom exceptions for Outliner.

This module provides exception classes used throughout the package.

Every failure while applying a fact is raised as a FactError subclass.
None of them are recoverable for the fact being applied: a host replaying
a log should stop at the first one.
"""


class OutlinerError(Exception):
    """Base exception for all Outliner errors."""

    def __init__(self, message: str, details: dict | None = None):
        """Initialize exception with message and optional details.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details


class FactError(OutlinerError):
    """Exception raised when a single fact cannot be applied."""

    pass


class PreconditionViolation(FactError):
    """Exception raised when a fact is invalid given the current state.

    The log is either corrupt or its facts are out of order.
    """

    pass


class ItemNotFound(PreconditionViolation):
    """Exception raised when a fact references an item that does not exist.

    Attributes:
        item_id: Id of the missing item
    """

    item_id: str

    def __init__(self, item_id: str, message: str | None = None):
        super().__init__(
            message or f"Item not found: {item_id!r}",
            details={"item_id": item_id},
        )
        self.item_id = item_id


class ItemAlreadyExists(PreconditionViolation):
    """Exception raised when creating an item whose id is already live.

    Attributes:
        item_id: Id of the existing item
    """

    item_id: str

    def __init__(self, item_id: str, message: str | None = None):
        super().__init__(
            message or f"Item already exists: {item_id!r}",
            details={"item_id": item_id},
        )
        self.item_id = item_id


class PostconditionViolation(FactError):
    """Exception raised when a handler's effect is not observed after mutation.

    The store is rolled back before this propagates.
    """

    pass


class MalformedEncoding(FactError):
    """Exception raised when a title or note payload is not valid encoded text."""

    pass


class InvalidPosition(FactError):
    """Exception raised for a non-canonical or out-of-range position token."""

    pass


class NoMatchingPattern(FactError):
    """Exception raised when a fact line matches none of the parser's patterns.

    Attributes:
        line: The unrecognized fact line
    """

    line: str

    def __init__(self, line: str):
        super().__init__(
            f"No fact pattern matches line: {line!r}",
            details={"line": line},
        )
        self.line = line


class UnknownFactKind(FactError):
    """Exception raised when no handler is registered for a fact kind."""

    pass


class DuplicateHandler(OutlinerError):
    """Exception raised when a second handler is defined for the same fact kind."""

    pass


class ReplayError(OutlinerError):
    """Exception raised when replaying a fact log stops on a failing fact.

    The original FactError is chained as ``__cause__``.

    Attributes:
        line_number: 1-based line number of the failing fact
        line: Text of the failing fact
    """

    line_number: int
    line: str

    def __init__(self, message: str, line_number: int, line: str):
        super().__init__(
            message,
            details={"line_number": line_number, "line": line},
        )
        self.line_number = line_number
        self.line = line


class ConsistencyError(OutlinerError):
    """Exception raised when an invariant audit finds a broken tree.

    Attributes:
        violations: List of violation dicts (invariant, item_id, issue)
    """

    violations: list[dict]

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, details)
        self.violations = details.get("violations", []) if details else []


class ConfigurationError(OutlinerError):
    """Exception raised when settings hold an unknown profile or policy."""

    pass
