"""File-backed storage for underwriting cases."""

import json
import logging
from pathlib import Path
from threading import Lock

from trialquote.exceptions import CaseNotFound, ConcurrentModification
from trialquote.models.underwriting import UnderwritingCase

logger = logging.getLogger(__name__)


class CaseStore:
    """Stores underwriting cases as JSON documents, one file per case.

    Saves are optimistic: the caller passes the version it loaded and the
    save fails with ConcurrentModification if someone else saved first.
    """

    # Shared by all instances so check-and-write is atomic within the process
    _lock = Lock()

    def __init__(self, base_path: Path) -> None:
        """Initialize storage with base path."""
        self.base_path = Path(base_path)
        self._cases_path.mkdir(parents=True, exist_ok=True)

    @property
    def _cases_path(self) -> Path:
        return self.base_path / "cases"

    def _case_file(self, case_id: str) -> Path:
        """Get the file for a case."""
        # Sanitize case_id to prevent path traversal
        safe_id = Path(case_id).name
        if not case_id or safe_id != case_id or ".." in case_id:
            raise ValueError(f"Invalid case_id: {case_id}")
        return self._cases_path / f"{safe_id}.json"

    def case_exists(self, case_id: str) -> bool:
        """Check if a case exists."""
        try:
            return self._case_file(case_id).exists()
        except ValueError:
            return False

    def load(self, case_id: str) -> UnderwritingCase:
        """Load a case, raising CaseNotFound if it does not exist."""
        try:
            path = self._case_file(case_id)
        except ValueError as e:
            raise CaseNotFound(str(e)) from e
        if not path.exists():
            raise CaseNotFound(f"Case {case_id} not found")
        return UnderwritingCase.model_validate_json(path.read_text(encoding="utf-8"))

    def create(self, case: UnderwritingCase) -> UnderwritingCase:
        """Store a new case at version 1."""
        with self._lock:
            path = self._case_file(case.case_id)
            if path.exists():
                raise ValueError(f"Case {case.case_id} already exists")
            stored = case.model_copy(update={"version": 1})
            self._write(path, stored)
        logger.info(f"Created case {case.case_id}")
        return stored

    def save(self, case: UnderwritingCase, expected_version: int | None = None) -> UnderwritingCase:
        """
        Save a case if nobody saved it since it was loaded.

        Args:
            case: Case to store
            expected_version: Version the caller loaded (defaults to case.version)

        Returns:
            The stored case with its version incremented
        """
        expected = case.version if expected_version is None else expected_version
        with self._lock:
            current = self.load(case.case_id)
            if current.version != expected:
                logger.warning(
                    f"Conflicting save on case {case.case_id}: "
                    f"expected version {expected}, found {current.version}"
                )
                raise ConcurrentModification(case.case_id, expected, current.version)
            stored = case.model_copy(update={"version": current.version + 1})
            self._write(self._case_file(case.case_id), stored)
        return stored

    def list_cases(self) -> list[UnderwritingCase]:
        """List all stored cases, oldest first."""
        cases = [
            UnderwritingCase.model_validate_json(path.read_text(encoding="utf-8"))
            for path in self._cases_path.glob("*.json")
        ]
        return sorted(cases, key=lambda c: (c.created_at, c.case_id))

    def delete(self, case_id: str) -> bool:
        """Delete a case."""
        with self._lock:
            path = self._case_file(case_id)
            if path.exists():
                path.unlink()
                return True
            return False

    def _write(self, path: Path, case: UnderwritingCase) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        content = json.dumps(case.model_dump(mode="json"), indent=2, ensure_ascii=False)
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(path)
