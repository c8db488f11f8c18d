"""FastAPI dependencies for TrialQuote."""

from typing import Annotated

from fastapi import Depends, HTTPException, Path, status

from trialquote.config import Settings, get_settings
from trialquote.exceptions import CaseNotFound
from trialquote.models.underwriting import UnderwritingCase
from trialquote.utils.storage import CaseStore


def get_store(settings: Annotated[Settings, Depends(get_settings)]) -> CaseStore:
    """Get case store instance."""
    return CaseStore(settings.storage_path)


def load_case(
    case_id: Annotated[str, Path(description="Case ID")],
    store: Annotated[CaseStore, Depends(get_store)],
) -> UnderwritingCase:
    """Load a case, 404 if it does not exist."""
    try:
        return store.load(case_id)
    except CaseNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Case {case_id} not found",
        ) from None


# Type aliases for dependency injection
StoreDep = Annotated[CaseStore, Depends(get_store)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
CaseDep = Annotated[UnderwritingCase, Depends(load_case)]
