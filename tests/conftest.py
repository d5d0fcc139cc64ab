"""Shared pytest fixtures and configuration."""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock

import pytest

# Set test environment variables before settings are loaded
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from propabridge.config import get_settings  # noqa: E402
from propabridge.matching import Gazetteer, MatchScorer  # noqa: E402
from propabridge.models import Listing  # noqa: E402

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_listing():
    """Factory for listings; created_at is given as days before NOW."""
    counter = {"id": 0}

    def _make(days_old=2, **overrides):
        counter["id"] += 1
        data = {
            "id": counter["id"],
            "type": "3 Bed Flat",
            "location": "Wuse 2, Abuja",
            "price": 2_500_000,
            "bedrooms": 3,
            "bathrooms": 3,
            "amenities": ["parking", "power", "security", "pool"],
            "verified": True,
            "status": "active",
            "created_at": NOW - timedelta(days=days_old) if days_old is not None else None,
        }
        data.update(overrides)
        return Listing(**data)

    return _make


@pytest.fixture
def scorer():
    """Scorer with the default gazetteer and a fixed clock."""
    return MatchScorer(gazetteer=Gazetteer.default(), responsiveness=80, clock=lambda: NOW)


@pytest.fixture
def mock_query():
    """Chainable Supabase query builder mock."""
    query = MagicMock()
    for method in (
        "select", "eq", "ilike", "gte", "lte", "order", "limit",
        "insert", "update", "delete",
    ):
        getattr(query, method).return_value = query
    query.execute.return_value = Mock(data=[])
    return query


@pytest.fixture
def mock_supabase_client(mock_query):
    """Mock Supabase client whose tables all share one query builder."""
    client = Mock()
    client.table = Mock(return_value=mock_query)
    return client
