"""Shared test fixtures for harvey."""

from pathlib import Path

import pytest

from harvey import resources
from harvey.sources.registry import SourceRegistry

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def registry():
    return SourceRegistry()


@pytest.fixture
def resource_paths(monkeypatch):
    """Start each test with no resource override directories."""
    monkeypatch.setattr(resources, "_paths", [])
    return resources
