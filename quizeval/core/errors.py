"""
Engine exceptions.

Defines the error taxonomy shared by the scoring core and the grading
service, plus a standardized error payload for the calling workflow.
"""

from typing import Any, Dict, Optional


class QuizEvalError(Exception):
    """Base exception for scoring errors"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Create standardized error payload"""
        return {
            "error": {
                "type": self.__class__.__name__,
                "message": self.message,
                "details": self.details,
            }
        }


class InvalidGradeError(QuizEvalError):
    """Raised when a manual grade falls outside the allowed range"""

    def __init__(self, message: str, **details: Any):
        super().__init__(message=message, details=details)


class UnparsableExpressionError(QuizEvalError):
    """Raised when the algebra back end cannot parse an expression"""

    def __init__(self, expression: str, reason: str):
        super().__init__(
            message=f"Could not parse expression '{expression}': {reason}",
            details={"expression": expression, "reason": reason}
        )


class BackendUnavailableError(QuizEvalError):
    """Raised when the algebra back end cannot be initialized"""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Symbolic back end unavailable: {reason}",
            details={"reason": reason}
        )


class QuizValidationError(QuizEvalError):
    """Raised for malformed question or answer input"""

    def __init__(self, message: str, errors: Optional[list] = None):
        details = {"errors": errors} if errors else {}
        super().__init__(message=message, details=details)


class QuestionSetNotFoundError(QuizEvalError):
    """Raised when a quiz's question set is not found"""

    def __init__(self, quiz_id: int):
        super().__init__(
            message=f"Question set for quiz '{quiz_id}' not found",
            details={"quiz_id": quiz_id}
        )


class AttemptNotFoundError(QuizEvalError):
    """Raised when a stored attempt is not found"""

    def __init__(self, attempt_id: int):
        super().__init__(
            message=f"Attempt '{attempt_id}' not found",
            details={"attempt_id": attempt_id}
        )
