"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest

from models.reconciliation import RuleSet, RunConfiguration
from tests.factories import SourceRowFactory


# ===================
# RUN CONFIGURATIONS
# ===================

@pytest.fixture
def cosmetics_config() -> RunConfiguration:
    """RULESET_A run: two default stores, one cosmetics store, WEB + clearance unlisted."""
    return RunConfiguration(
        active_rule_set=RuleSet.RULESET_A,
        location_source_names=("Store A", "Store B", "Cosmetics Store"),
        unlisted_source_names=("WEB Unlisted", "Clearance Unlisted"),
    )


@pytest.fixture
def ogf_config() -> RunConfiguration:
    """RULESET_B run: reference store, OGF store, OGF + general unlisted."""
    return RunConfiguration(
        active_rule_set=RuleSet.RULESET_B,
        location_source_names=("Main Store", "OGF Store"),
        unlisted_source_names=("OGF Unlisted", "General Unlisted"),
    )


@pytest.fixture
def two_store_config() -> RunConfiguration:
    """Two default locations, no unlisted sheets."""
    return RunConfiguration(
        active_rule_set=RuleSet.RULESET_A,
        location_source_names=("LocA", "LocB"),
    )


@pytest.fixture(autouse=True)
def reset_factory_counters():
    """Keep generated SKUs stable per test."""
    SourceRowFactory.reset()
    yield


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
