"""Tests for the Supabase repositories (client mocked)."""

from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
from pydantic import ValidationError

from propabridge.database import ConversationRepository, ListingRepository, SupabaseClient
from propabridge.database.supabase_client import get_supabase_client
from propabridge.errors import ConfigurationError, RepositoryError
from propabridge.matching import MatchingEngine
from propabridge.models import ConversationExchange, ListingCreate, ListingStatus, SearchCriteria


def listing_row(**overrides):
    row = {
        "id": 1,
        "type": "3 Bed Flat",
        "location": "Wuse 2, Abuja",
        "price": 2500000,
        "bedrooms": 3,
        "bathrooms": 3,
        "amenities": '["parking", "power"]',
        "verified": True,
        "status": "active",
        "created_at": "2025-02-27T10:00:00",
        "property_images": [
            {"image_url": "https://img/1.jpg", "is_primary": False},
            {"image_url": "https://img/2.jpg", "is_primary": True},
        ],
    }
    row.update(overrides)
    return row


@pytest.fixture
def listings(mock_supabase_client):
    return ListingRepository(client=SupabaseClient(mock_supabase_client))


@pytest.fixture
def conversations(mock_supabase_client):
    return ConversationRepository(client=SupabaseClient(mock_supabase_client))


@pytest.mark.unit
class TestFindByCoarseFilters:
    """Tests for the verified-listing query."""

    def test_applies_all_filters(self, listings, mock_supabase_client, mock_query):
        mock_query.execute.return_value = Mock(data=[listing_row()])

        result = listings.find_by_coarse_filters(
            location="Wuse 2",
            property_type="flat",
            min_price=1_000_000,
            max_price=3_000_000,
            bedrooms=3,
            limit=5,
        )

        mock_supabase_client.table.assert_called_with("properties")
        mock_query.select.assert_called_once_with(ListingRepository.SELECT_WITH_IMAGES)
        mock_query.eq.assert_any_call("verified", True)
        mock_query.eq.assert_any_call("bedrooms", 3)
        mock_query.ilike.assert_any_call("location", "%Wuse 2%")
        mock_query.ilike.assert_any_call("type", "%flat%")
        mock_query.gte.assert_called_once_with("price", 1_000_000)
        mock_query.lte.assert_called_once_with("price", 3_000_000)
        mock_query.order.assert_called_once_with("created_at", desc=True)
        mock_query.limit.assert_called_once_with(5)

        assert len(result) == 1
        listing = result[0]
        assert listing.amenities == ["parking", "power"]
        assert listing.primary_image == "https://img/2.jpg"
        assert listing.created_at.tzinfo is not None

    def test_empty_filters_are_skipped(self, listings, mock_query):
        listings.find_by_coarse_filters(location="", min_price=0, max_price=None, bedrooms=0)

        mock_query.eq.assert_called_once_with("verified", True)
        mock_query.ilike.assert_not_called()
        mock_query.gte.assert_not_called()
        mock_query.lte.assert_not_called()
        mock_query.limit.assert_called_once_with(10)

    def test_client_errors_become_repository_errors(self, listings, mock_query):
        mock_query.execute.side_effect = ConnectionError("network down")

        with pytest.raises(RepositoryError) as exc_info:
            listings.find_by_coarse_filters(location="Lekki")

        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_no_rows(self, listings, mock_query):
        mock_query.execute.return_value = Mock(data=None)
        assert listings.find_by_coarse_filters(location="Lekki") == []

    def test_null_status_and_verified_use_defaults(self, listings, mock_query):
        mock_query.execute.return_value = Mock(
            data=[listing_row(status=None, verified=None, type=None, bedrooms=None)]
        )

        result = listings.find_by_coarse_filters(location="Wuse 2")

        assert len(result) == 1
        assert result[0].status == ListingStatus.PENDING
        assert result[0].verified is False
        assert result[0].type == ""
        assert result[0].bedrooms == 0

    def test_malformed_rows_are_skipped(self, listings, mock_query):
        mock_query.execute.return_value = Mock(
            data=[
                listing_row(id=1),
                listing_row(id=2, bedrooms=-1),
                listing_row(id=3, status="archived"),
                listing_row(id=4, location="Maitama, Abuja"),
            ]
        )

        result = listings.find_by_coarse_filters(location="Abuja")

        assert [listing.id for listing in result] == [1, 4]

    def test_search_survives_malformed_rows(self, listings, mock_query, scorer):
        mock_query.execute.return_value = Mock(
            data=[listing_row(id=1, created_at=None), listing_row(id=2, price="negotiable")]
        )
        engine = MatchingEngine(repository=listings, scorer=scorer)

        matches = engine.find_matches(SearchCriteria(location="Wuse 2", max_price=3_000_000))

        assert [m.listing.id for m in matches] == [1]


@pytest.mark.unit
class TestListingLifecycle:
    """Tests for create, moderation and removal."""

    def test_create_inserts_pending_listing(self, listings, mock_query):
        mock_query.execute.return_value = Mock(
            data=[listing_row(id=7, verified=False, status="pending", property_images=None)]
        )
        new = ListingCreate(type="3 Bed Flat", location="Wuse 2, Abuja", price=2_500_000, bedrooms=3)

        created = listings.create(new)

        inserted = mock_query.insert.call_args.args[0]
        assert inserted["status"] == "pending"
        assert inserted["verified"] is False
        assert inserted["bathrooms"] == 3
        assert created.id == 7
        assert created.status == ListingStatus.PENDING

    def test_create_without_returned_row(self, listings, mock_query):
        new = ListingCreate(type="Flat", location="Yaba", price=1_000_000, bedrooms=1)
        with pytest.raises(RepositoryError):
            listings.create(new)

    def test_get_by_id(self, listings, mock_query):
        mock_query.execute.return_value = Mock(data=[listing_row(id=3)])

        listing = listings.get_by_id(3)

        mock_query.eq.assert_called_once_with("id", 3)
        assert listing.id == 3

    def test_get_by_id_missing(self, listings):
        assert listings.get_by_id(99) is None

    def test_get_by_id_malformed_row(self, listings, mock_query):
        mock_query.execute.return_value = Mock(data=[listing_row(id=3, bedrooms="many")])

        with pytest.raises(RepositoryError) as exc_info:
            listings.get_by_id(3)

        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_get_pending_skips_malformed_rows(self, listings, mock_query):
        mock_query.execute.return_value = Mock(
            data=[
                listing_row(id=1, verified=False, status="pending"),
                {"type": "Flat", "status": "pending"},
            ]
        )

        assert [listing.id for listing in listings.get_pending()] == [1]

    def test_approve(self, listings, mock_query):
        mock_query.execute.return_value = Mock(data=[listing_row()])

        listing = listings.approve(1, admin_notes="looks good")

        fields = mock_query.update.call_args.args[0]
        assert fields["verified"] is True
        assert fields["status"] == "active"
        assert fields["admin_notes"] == "looks good"
        assert "verified_at" in fields
        assert "updated_at" in fields
        assert listing is not None

    def test_reject(self, listings, mock_query):
        listings.reject(1, reason="duplicate")

        fields = mock_query.update.call_args.args[0]
        assert fields["status"] == "rejected"
        assert fields["rejection_reason"] == "duplicate"

    def test_deactivate(self, listings, mock_query):
        listings.deactivate(1)

        fields = mock_query.update.call_args.args[0]
        assert fields["status"] == "inactive"
        assert fields["verified"] is False

    def test_delete(self, listings, mock_query):
        assert listings.delete(1) is False
        mock_query.execute.return_value = Mock(data=[{"id": 1}])
        assert listings.delete(1) is True

    def test_get_pending(self, listings, mock_query):
        mock_query.execute.return_value = Mock(
            data=[listing_row(verified=False, status="pending")]
        )

        pending = listings.get_pending(limit=20)

        mock_query.eq.assert_any_call("verified", False)
        mock_query.eq.assert_any_call("status", "pending")
        mock_query.limit.assert_called_once_with(20)
        assert pending[0].status == ListingStatus.PENDING

    def test_add_image(self, listings, mock_supabase_client, mock_query):
        mock_query.execute.return_value = Mock(data=[{"id": 5, "image_url": "https://img/5.jpg"}])

        image = listings.add_image(1, "https://img/5.jpg", is_primary=True)

        mock_supabase_client.table.assert_called_with("property_images")
        assert mock_query.insert.call_args.args[0] == {
            "property_id": 1,
            "image_url": "https://img/5.jpg",
            "is_primary": True,
        }
        assert image["id"] == 5

    def test_get_stats(self, listings, mock_query):
        now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        mock_query.execute.return_value = Mock(
            data=[
                {"price": 2000000, "verified": True, "status": "active", "created_at": "2025-02-28T10:00:00Z"},
                {"price": 4000000, "verified": False, "status": "pending", "created_at": "2025-02-27T10:00:00"},
                {"price": None, "verified": False, "status": "rejected", "created_at": "2025-01-01T10:00:00+00:00"},
                {"price": 3000000, "verified": True, "status": "active", "created_at": None},
            ]
        )

        stats = listings.get_stats(now=now)

        assert stats == {
            "total": 4,
            "verified": 2,
            "pending": 1,
            "rejected": 1,
            "avg_price": 3000000.0,
            "new_this_week": 2,
        }

    def test_get_stats_empty(self, listings):
        assert listings.get_stats()["avg_price"] == 0.0


@pytest.mark.unit
class TestConversationRepository:
    """Tests for chat history persistence."""

    def test_create(self, conversations, mock_supabase_client, mock_query):
        exchange = ConversationExchange(message="hi", intent="greeting", response="Hello!")

        conversations.create("+2348000000001", exchange)

        mock_supabase_client.table.assert_called_with("conversations")
        row = mock_query.insert.call_args.args[0]
        assert row["phone"] == "+2348000000001"
        assert row["intent"] == "greeting"
        assert row["response"] == "Hello!"

    def test_get_by_phone(self, conversations, mock_query):
        mock_query.execute.return_value = Mock(data=[{"message": "hi"}])

        history = conversations.get_by_phone("+2348000000001", limit=3)

        mock_query.eq.assert_called_once_with("phone", "+2348000000001")
        mock_query.order.assert_called_once_with("created_at", desc=True)
        assert history == [{"message": "hi"}]


@pytest.mark.unit
class TestSupabaseClient:
    """Tests for client construction."""

    def setup_method(self):
        get_supabase_client.cache_clear()

    def teardown_method(self):
        get_supabase_client.cache_clear()

    def test_prefers_service_key(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")

        with patch("propabridge.database.supabase_client.create_client") as create:
            client = get_supabase_client()

        create.assert_called_once_with("https://test.supabase.co", "service-key")
        assert client.role == "service"
        client.table("properties")
        create.return_value.table.assert_called_once_with("properties")

    def test_falls_back_to_anon_key(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "")

        with patch("propabridge.database.supabase_client.create_client") as create:
            client = get_supabase_client()

        create.assert_called_once_with("https://test.supabase.co", "test-key")
        assert client.role == "anon"

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "")

        with pytest.raises(ConfigurationError):
            get_supabase_client()
