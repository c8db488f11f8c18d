"""Exception hierarchy for TrialQuote."""


class TrialQuoteError(Exception):
    """Base exception for all TrialQuote errors."""


class InvalidStateTransition(TrialQuoteError):
    """Raised when an underwriting case is asked to make a disallowed status change."""

    def __init__(self, case_id: str, status: str, action: str) -> None:
        self.case_id = case_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} case {case_id} while it is {status}")


class ConcurrentModification(TrialQuoteError):
    """Raised when a case was saved by someone else since it was loaded.

    Callers are expected to reload the case and retry the operation.
    """

    def __init__(self, case_id: str, expected_version: int, actual_version: int) -> None:
        self.case_id = case_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Case {case_id} is at version {actual_version}, expected {expected_version}; "
            "reload and retry"
        )


class CaseNotFound(TrialQuoteError):
    """Raised when an underwriting case does not exist in the store."""


class LLMExtractionError(TrialQuoteError):
    """Raised when the LLM returns a response that cannot be used for extraction."""
