"""Pytest configuration and fixtures."""

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from trialquote.config import get_settings
from trialquote.main import create_app
from trialquote.models.intake import TrialIntake
from trialquote.utils.storage import CaseStore


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[TestClient]:
    """Create a test client backed by a temporary case store and no LLM key."""
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "data"))
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("PHASE_MATCHING", "table")
    get_settings.cache_clear()

    with TestClient(create_app()) as test_client:
        yield test_client

    get_settings.cache_clear()


@pytest.fixture
def temp_store() -> Iterator[CaseStore]:
    """Create a temporary case store for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield CaseStore(Path(tmpdir))


@pytest.fixture
def sample_protocol_text() -> str:
    """Short protocol summary as pasted by a broker."""
    return (
        "II期非小细胞肺癌的靶向药物临床试验，计划入组200例受试者，"
        "在8个研究中心开展，预计持续24个月。该试验涉及肿瘤患者，需多次给药。"
    )


@pytest.fixture
def sample_protocol_document() -> str:
    """Protocol synopsis with labelled header fields."""
    return """
临床试验方案摘要

方案编号：ABC-2024-001
方案名称：评价XYZ注射液治疗晚期实体瘤的安全性和有效性的开放性研究
申办方：某某生物医药有限公司
适应症：晚期实体瘤

试验分期：I期
本研究为首次人体试验，计划入组36例受试者，在3家研究中心开展，
预计持续18个月。受试者需多次给药，采用静脉注射。
"""


@pytest.fixture
def oncology_intake() -> TrialIntake:
    """Phase II oncology intake with 200 subjects and two risk tags."""
    return TrialIntake(
        protocol_number="ABC-001",
        protocol_name="非小细胞肺癌研究",
        trial_drug="靶向药物",
        trial_phase="II期",
        sponsor="某某生物医药有限公司",
        subject_count=200,
        indication="非小细胞肺癌",
        duration_months=24,
        site_count=8,
        risk_factors=["涉及肿瘤患者", "需多次给药"],
    )
