"""Tests for the chat assistant, conversation context and chat formatting."""

from unittest.mock import AsyncMock, Mock

import pytest

from propabridge.analysis import CriteriaExtractor
from propabridge.chat import (
    ChatAssistant,
    ConversationContext,
    format_listing_for_chat,
    format_price,
    format_suggestions,
)
from propabridge.chat.assistant import CANNED_REPLIES, ERROR_REPLY, SEARCH_ERROR_REPLY
from propabridge.database import ConversationRepository
from propabridge.errors import ExtractionError, RepositoryError
from propabridge.matching import (
    MatchingEngine,
    RelaxedSuggestion,
    ScoreBreakdown,
    ScoredListing,
    SearchOutcome,
    Suggestions,
)
from propabridge.models import ConversationExchange, Intent, SearchCriteria


def scored(listing, score=97):
    breakdown = ScoreBreakdown(
        location=100, price=95, amenities=100, condition=100, responsiveness=80, freshness=100
    )
    return ScoredListing(listing=listing, match_score=score, breakdown=breakdown)


@pytest.fixture
def engine():
    engine = Mock(spec=MatchingEngine)
    engine.search.side_effect = lambda criteria: SearchOutcome(
        criteria=criteria, matches=[], suggestions=Suggestions()
    )
    return engine


@pytest.fixture
def assistant(engine):
    return ChatAssistant(engine=engine)


@pytest.fixture
def context():
    return ConversationContext(maxlen=5)


@pytest.mark.unit
class TestConversationContext:
    """Tests for the bounded conversation history."""

    def test_evicts_oldest(self):
        context = ConversationContext(maxlen=3)
        for i in range(5):
            context.add(ConversationExchange(message=f"m{i}"))

        assert len(context) == 3
        assert [e.message for e in context] == ["m2", "m3", "m4"]

    def test_default_window_from_settings(self, monkeypatch):
        monkeypatch.setenv("CONVERSATION_WINDOW", "4")
        assert ConversationContext().maxlen == 4

    def test_last_criteria_skips_exchanges_without_criteria(self):
        context = ConversationContext()
        context.add(ConversationExchange(message="a", criteria=SearchCriteria(location="Yaba")))
        context.add(ConversationExchange(message="b", criteria=SearchCriteria(location="Lekki")))
        context.add(ConversationExchange(message="thanks"))

        assert context.last_criteria().location == "Lekki"

    def test_clear(self):
        context = ConversationContext()
        context.add(ConversationExchange(message="hi"))
        context.clear()
        assert len(context) == 0
        assert context.last_criteria() is None


@pytest.mark.unit
class TestFormatting:
    """Tests for chat message formatting."""

    def test_format_price(self):
        assert format_price(2_500_000) == "₦2,500,000"
        assert format_price(None) == "₦-"

    def test_listing_card(self, make_listing):
        listing = make_listing(
            id=12, area=180.0, features="24/7 power, parking, gated community, swimming pool"
        )

        card = format_listing_for_chat(scored(listing), 1)

        assert card == (
            "*1. 3 Bed Flat* ✅ Verified (97% match)\n"
            "📍 Wuse 2, Abuja\n"
            "💰 ₦2,500,000/year\n"
            "🛏️ 3 bed | 🚿 3 bath | 📐 180m²\n"
            "✨ 24/7 power, parking, gated community\n"
            "🆔 Property ID: 12\n"
        )

    def test_unverified_listing_without_score(self, make_listing):
        card = format_listing_for_chat(make_listing(id=3, verified=False), 2)

        assert card.startswith("*2. 3 Bed Flat*\n")
        assert "✨" not in card
        assert "📐" not in card

    def test_suggestions_nearby_first(self, make_listing):
        suggestions = Suggestions(
            nearby_areas=[make_listing(location="Jabi, Abuja")],
            cheaper_options=[make_listing()],
        )

        text = format_suggestions(suggestions)

        assert text.startswith("😔 No exact matches found for your criteria.\n\n🔍 *Nearby Areas:*\n")
        assert "Jabi, Abuja" in text
        assert "More Affordable" not in text

    def test_suggestions_relaxed(self, make_listing):
        suggestions = Suggestions(
            relaxed_criteria=RelaxedSuggestion(bedrooms=2, listings=[make_listing(bedrooms=2)])
        )
        assert "🛏️ *With 2 Bedrooms:*" in format_suggestions(suggestions)

    def test_no_suggestions(self):
        text = format_suggestions(Suggestions())
        assert "Try:\n• Different location" in text
        assert format_suggestions(None) == text


@pytest.mark.unit
class TestProcessMessage:
    """Tests for message handling with the keyword parser."""

    async def test_greeting(self, assistant, engine, context):
        reply = await assistant.process_message("hi", context)

        assert reply.intent == "greeting"
        assert reply.text == CANNED_REPLIES[Intent.GREETING]
        assert reply.kind == "text"
        engine.search.assert_not_called()
        assert len(context) == 1

    async def test_search_with_results(self, assistant, engine, context, make_listing):
        listing = make_listing(id=12)
        engine.search.side_effect = lambda criteria: SearchOutcome(
            criteria=criteria, matches=[scored(listing)]
        )

        reply = await assistant.process_message("3 bedroom flat in Wuse under 3M", context)

        criteria = engine.search.call_args.args[0]
        assert criteria.location == "Wuse 2"
        assert criteria.max_price == 3_000_000
        assert reply.intent == "search"
        assert reply.kind == "property_results"
        assert reply.summary == "Found 1 property matching your search!"
        assert reply.text.startswith("Found 1 property matching your search!\n\n*1. 3 Bed Flat*")
        assert "₦2,500,000/year" in reply.text
        assert context.last_criteria() == criteria

    async def test_plural_summary(self, assistant, engine, context, make_listing):
        engine.search.side_effect = lambda criteria: SearchOutcome(
            criteria=criteria, matches=[scored(make_listing()), scored(make_listing(), 90)]
        )

        reply = await assistant.process_message("flat in Lekki", context)

        assert reply.summary == "Found 2 properties matching your search!"

    async def test_no_results_shows_suggestions(self, assistant, engine, context, make_listing):
        engine.search.side_effect = lambda criteria: SearchOutcome(
            criteria=criteria,
            matches=[],
            suggestions=Suggestions(cheaper_options=[make_listing(price=1_800_000)]),
        )

        reply = await assistant.process_message("flat in Wuse under 2M", context)

        assert reply.kind == "text"
        assert "💡 *More Affordable Options:*" in reply.text
        assert reply.suggestions.cheaper_options

    async def test_no_results_no_suggestions(self, assistant, context):
        reply = await assistant.process_message("duplex in Ikoyi under 1M", context)
        assert "Try:\n• Different location" in reply.text

    async def test_store_failure(self, assistant, engine, context):
        engine.search.side_effect = RepositoryError("timeout")

        reply = await assistant.process_message("flat in Lekki", context)

        assert reply.intent == "search"
        assert reply.text == SEARCH_ERROR_REPLY
        assert len(context) == 1

    async def test_unexpected_error(self, assistant, engine, context):
        engine.search.side_effect = RuntimeError("boom")

        reply = await assistant.process_message("flat in Lekki", context)

        assert reply.intent == "error"
        assert reply.text == ERROR_REPLY
        assert len(context) == 0

    async def test_show_more_reuses_last_criteria(self, assistant, engine, context):
        await assistant.process_message("3 bedroom flat in Lekki under 3M", context)
        await assistant.process_message("show me more", context)

        criteria = engine.search.call_args_list[1].args[0]
        assert criteria.location == "Lekki"
        assert criteria.bedrooms == 3
        assert criteria.max_price == 3_000_000

    async def test_show_more_overrides_with_new_criteria(self, assistant, engine, context):
        await assistant.process_message("3 bedroom flat in Lekki under 3M", context)
        await assistant.process_message("show me more under 4M", context)

        criteria = engine.search.call_args_list[1].args[0]
        assert criteria.location == "Lekki"
        assert criteria.max_price == 4_000_000

    async def test_canned_intents(self, assistant, context):
        reply = await assistant.process_message("I want to list my property", context)
        assert reply.intent == "list_property"
        assert reply.text == CANNED_REPLIES[Intent.LIST_PROPERTY]


@pytest.mark.unit
class TestExtractorFallback:
    """Tests for the LLM path and its keyword fallback."""

    async def test_uses_llm_when_available(self, engine, context):
        extractor = Mock(spec=CriteriaExtractor)
        extractor.determine_intent = AsyncMock(return_value=Intent.SEARCH)
        extractor.extract = AsyncMock(return_value=SearchCriteria(location="Ikoyi"))
        assistant = ChatAssistant(engine=engine, extractor=extractor)

        await assistant.process_message("something in the island", context)

        assert engine.search.call_args.args[0] == SearchCriteria(location="Ikoyi")

    async def test_falls_back_to_keywords(self, engine, context):
        extractor = Mock(spec=CriteriaExtractor)
        extractor.determine_intent = AsyncMock(side_effect=ExtractionError("quota"))
        extractor.extract = AsyncMock(side_effect=ExtractionError("quota"))
        assistant = ChatAssistant(engine=engine, extractor=extractor)

        reply = await assistant.process_message("2 bedroom flat in Yaba", context)

        assert reply.intent == "search"
        criteria = engine.search.call_args.args[0]
        assert criteria.location == "Yaba"
        assert criteria.bedrooms == 2


@pytest.mark.unit
class TestPersistence:
    """Tests for saving exchanges to the conversations table."""

    async def test_saves_when_phone_given(self, engine, context):
        conversations = Mock(spec=ConversationRepository)
        assistant = ChatAssistant(engine=engine, conversations=conversations)

        await assistant.process_message("hi", context, phone="+2348000000001")

        phone, exchange = conversations.create.call_args.args
        assert phone == "+2348000000001"
        assert exchange.intent == "greeting"
        assert exchange.response == CANNED_REPLIES[Intent.GREETING]

    async def test_skips_without_phone(self, engine, context):
        conversations = Mock(spec=ConversationRepository)
        assistant = ChatAssistant(engine=engine, conversations=conversations)

        await assistant.process_message("hi", context)

        conversations.create.assert_not_called()

    async def test_store_failure_does_not_break_reply(self, engine, context):
        conversations = Mock(spec=ConversationRepository)
        conversations.create.side_effect = RepositoryError("down")
        assistant = ChatAssistant(engine=engine, conversations=conversations)

        reply = await assistant.process_message("hi", context, phone="+2348000000001")

        assert reply.intent == "greeting"
        assert len(context) == 1
