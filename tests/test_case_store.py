"""Tests for the file-backed case store."""

import pytest

from trialquote.exceptions import CaseNotFound, ConcurrentModification
from trialquote.models.intake import TrialIntake
from trialquote.models.underwriting import CaseStatus
from trialquote.pipeline.underwriting import approve, generate_quote, open_case, reject
from trialquote.utils.storage import CaseStore


def test_create_and_load(temp_store: CaseStore, oncology_intake: TrialIntake) -> None:
    """Test storing a new case."""
    stored = temp_store.create(open_case(oncology_intake, case_id="case-1"))

    assert stored.version == 1
    assert temp_store.case_exists("case-1")

    loaded = temp_store.load("case-1")
    assert loaded == stored
    assert loaded.intake.risk_factors == ["涉及肿瘤患者", "需多次给药"]


def test_create_duplicate_rejected(temp_store: CaseStore) -> None:
    """Test that a case id can only be created once."""
    temp_store.create(open_case(TrialIntake(), case_id="dup"))
    with pytest.raises(ValueError):
        temp_store.create(open_case(TrialIntake(), case_id="dup"))


def test_load_missing_case(temp_store: CaseStore) -> None:
    """Test loading a case that does not exist."""
    with pytest.raises(CaseNotFound):
        temp_store.load("nope")


@pytest.mark.parametrize("case_id", ["../escape", "a/b", ""])
def test_invalid_case_ids(temp_store: CaseStore, case_id: str) -> None:
    """Test that path-like case ids are refused."""
    assert not temp_store.case_exists(case_id)
    with pytest.raises(CaseNotFound):
        temp_store.load(case_id)


def test_save_increments_version(temp_store: CaseStore, oncology_intake: TrialIntake) -> None:
    """Test saving a transition."""
    case = temp_store.create(open_case(oncology_intake, case_id="case-2"))

    saved = temp_store.save(generate_quote(case))

    assert saved.version == 2
    assert temp_store.load("case-2").status == CaseStatus.QUOTED


def test_concurrent_approve_only_one_wins(
    temp_store: CaseStore, oncology_intake: TrialIntake
) -> None:
    """Test that two sessions acting on the same version cannot both save."""
    case = temp_store.create(open_case(oncology_intake, case_id="case-3"))
    quoted = temp_store.save(generate_quote(case))

    # Both underwriters loaded version 2
    first = temp_store.load("case-3")
    second = temp_store.load("case-3")

    temp_store.save(approve(first))
    with pytest.raises(ConcurrentModification) as exc_info:
        temp_store.save(reject(second, reason="过期"))

    assert exc_info.value.expected_version == quoted.version
    assert exc_info.value.actual_version == quoted.version + 1
    stored = temp_store.load("case-3")
    assert stored.status == CaseStatus.APPROVED
    assert stored.final_premium == 256_000


def test_save_with_explicit_expected_version(temp_store: CaseStore) -> None:
    """Test that a stale expected version is refused."""
    case = temp_store.create(open_case(TrialIntake(), case_id="case-4"))
    temp_store.save(generate_quote(case))

    with pytest.raises(ConcurrentModification):
        temp_store.save(generate_quote(case), expected_version=1)


def test_list_and_delete(temp_store: CaseStore) -> None:
    """Test listing and deleting cases."""
    temp_store.create(open_case(TrialIntake(), case_id="a"))
    temp_store.create(open_case(TrialIntake(), case_id="b"))

    assert [case.case_id for case in temp_store.list_cases()] == ["a", "b"]
    assert temp_store.delete("a") is True
    assert temp_store.delete("a") is False
    assert [case.case_id for case in temp_store.list_cases()] == ["b"]
