"""Utility modules for TrialQuote."""

from trialquote.utils.storage import CaseStore
from trialquote.utils.validation import validate_extraction_payload

__all__ = ["CaseStore", "validate_extraction_payload"]
