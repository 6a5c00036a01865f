"""Exception hierarchy for SQL formatting and parsing."""

ERR_MSG_UNKNOWN_CLAUSE = "Unknown SQL clause"
ERR_MSG_UNKNOWN_OPERATOR = "Unknown SQL operator"
ERR_MSG_SUSPICIOUS_ENTITY = "Suspicious character found in entity"
ERR_MSG_MISSING_PARAMETER = "Missing parameter value for"
ERR_MSG_DANGEROUS_STATEMENT = "without a non-empty WHERE clause is dangerous"
ERR_MSG_EMPTY_IN = "IN () empty collection is illegal"


class SqlDataError(Exception):
    """Base exception for clause-map formatting and SQL parsing errors.

    Provides dual messaging: a user-facing message naming the offending
    construct and internal details for logging.
    """

    def __init__(
        self,
        user_message: str,
        internal_details: str = "",
        wrapped: Exception | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details or user_message
        self.wrapped = wrapped

    def internal(self) -> str:
        return self.internal_details


class UnknownClauseError(SqlDataError):
    """Raised when a clause map carries a key with no registered formatter."""


class UnknownOperatorError(SqlDataError):
    """Raised when an operation array names an operator nobody registered."""


class InvalidIdentifierError(SqlDataError):
    """Raised when an identifier is malformed or contains suspicious characters."""


class IllegalShapeError(SqlDataError):
    """Raised when an expression or clause value has the wrong shape or arity."""


class MissingParameterError(SqlDataError):
    """Raised when a named parameter has no value in the params map."""


class DangerousStatementError(SqlDataError):
    """Raised when UPDATE/DELETE lacks a WHERE clause under checking."""


class RegistrationError(SqlDataError):
    """Raised when an operator, syntax or clause cannot be registered."""


class MaxDepthExceededError(SqlDataError):
    """Raised when expression nesting exceeds the formatting depth limit."""


class SqlParseError(SqlDataError):
    """Raised when SQL text cannot be parsed into a clause map."""

    def __init__(
        self,
        user_message: str,
        internal_details: str = "",
        wrapped: Exception | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(user_message, internal_details, wrapped)
        self.line = line
        self.column = column
