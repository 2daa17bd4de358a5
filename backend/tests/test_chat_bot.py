"""
Tests for ChatBot actions with mocked search services
"""
from unittest.mock import AsyncMock, Mock, patch

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from schemas.search import IntentAnalysis, SemanticSearchResponse
from services.chat.chat_bot import (
    ASSESSMENT_PAGE,
    DEFAULT_CANNED_REPLY,
    LISTING_OPTIONS,
    NAVIGATION_DELAY_MS,
    PROGRAMS_PAGE,
    ROUTING_MESSAGE_DELAY_MS,
    ChatBot,
    canned_reply,
    lookup_search_term,
)
from services.chat.session import ChatSession
from services.programs.search_service import SearchResult


@pytest.fixture
def program_search():
    service = Mock()
    service.search = AsyncMock(return_value=SearchResult())
    service.search_by_name = AsyncMock(return_value=SearchResult())
    return service


@pytest.fixture
def semantic_search():
    service = Mock()
    service.search = AsyncMock()
    return service


@pytest.fixture
def bot(program_search, semantic_search):
    """ChatBot without an LLM, answering general messages with canned replies."""
    with patch("services.chat.chat_bot.llm_available", return_value=False):
        yield ChatBot(program_search=program_search, semantic_search=semantic_search)


class TestHelpers:
    def test_canned_reply_matches_keywords_in_order(self):
        assert canned_reply("Tell me about diabetes and cost").startswith(
            "I can help you learn about diabetes prevention."
        )
        assert canned_reply("hi") == DEFAULT_CANNED_REPLY

    def test_lookup_search_term(self):
        assert lookup_search_term("Tell me about LCI") == "community health center"
        assert lookup_search_term("tell me about the YMCA program") == "the ymca"


class TestRouting:
    """Test actions that send the user to another page"""

    @pytest.mark.asyncio
    async def test_assessment_navigates(self, bot):
        session = ChatSession()

        response = await bot.handle(session, "I want to take the assessment")

        assert response.intent == "assessment"
        assert response.navigate_to == ASSESSMENT_PAGE
        assert response.navigate_delay_ms == NAVIGATION_DELAY_MS
        assert [m.delay_ms for m in response.messages] == [0, ROUTING_MESSAGE_DELAY_MS]
        assert "personalized evaluation" in response.messages[0].content
        # greeting, user message and both assistant messages
        assert len(session.messages) == 4

    @pytest.mark.asyncio
    async def test_programs_page(self, bot):
        session = ChatSession()
        session.context.user_name = "Sarah"

        reply = await bot._route_to_programs(session, "lifestyle programs", None)

        assert reply.navigate_to == PROGRAMS_PAGE
        assert reply.messages[0].content.startswith("Great idea, Sarah!")

    @pytest.mark.asyncio
    async def test_assessment_for_someone_else(self, bot):
        session = ChatSession()

        await bot.handle(session, "My name is Sarah and Linda is my mom")
        response = await bot.handle(session, "Can I take the assessment for my mom?")

        assert response.intent == "assessment_for_other"
        assert response.messages[0].content.startswith(
            "That's wonderful that you're looking out for Linda, Sarah!"
        )


class TestProgramSearch:
    """Test program search replies"""

    @pytest.mark.asyncio
    async def test_delivery_mode_listing(self, bot, program_search, program_rows):
        program_search.search.return_value = SearchResult(programs=program_rows)

        response = await bot.handle(ChatSession(), "Show me virtual programs")

        assert response.intent == "program_search"
        message = response.messages[0]
        assert message.content.startswith("I found 2 virtual-live programs for you:")
        assert "**Peachtree Lifestyle Program**" in message.content
        assert message.quick_options == LISTING_OPTIONS
        program_filter = program_search.search.await_args.args[0]
        assert program_filter.delivery_mode == "virtual-live"

    @pytest.mark.asyncio
    async def test_semantic_results(self, bot, semantic_search, program_rows):
        semantic_search.search.return_value = SemanticSearchResponse(
            query="Help me find a diabetes class",
            intent_analysis=IntentAnalysis(
                questions_to_ask=["Which area works best for you?"]
            ),
            results=program_rows,
            count=2,
            pgvector=True,
        )

        response = await bot.handle(ChatSession(), "Help me find a diabetes class")

        message = response.messages[0]
        assert message.content.startswith("I found some great programs")
        assert "🏥 Format: virtual-live" in message.content
        assert message.content.endswith(
            "To help me find the perfect program for you: Which area works best for you?"
        )
        assert message.quick_options == [
            "Tell me more about these programs",
            "Help me choose",
            "Compare in-person vs virtual-live",
            "Filter by location",
        ]
        semantic_search.search.assert_awaited_once_with(
            "Help me find a diabetes class", limit=5, conversation_history=[]
        )

    @pytest.mark.asyncio
    async def test_search_failure_apologizes(self, bot, semantic_search):
        semantic_search.search.side_effect = RuntimeError("vector store down")

        response = await bot.handle(ChatSession(), "Help me find a diabetes class")

        message = response.messages[0]
        assert message.content.startswith("I'm having trouble finding programs")
        assert message.quick_options[:3] == [
            "in-person programs",
            "virtual programs",
            "hybrid programs",
        ]

    @pytest.mark.asyncio
    async def test_organization_lookup(self, bot, program_search, program_rows):
        program_search.search_by_name.return_value = SearchResult(
            programs=program_rows
        )

        response = await bot.handle(ChatSession(), "Tell me about LCI")

        assert response.intent == "organization_lookup"
        program_search.search_by_name.assert_awaited_once_with(
            "community health center"
        )
        assert response.messages[0].content.startswith(
            "Here's information about Peachtree Lifestyle Program"
        )
        assert response.messages[1].delay_ms > 0

    @pytest.mark.asyncio
    async def test_organization_not_found(self, bot):
        response = await bot.handle(ChatSession(), "Tell me about the Pine clinic")

        assert response.intent == "organization_lookup"
        assert 'matching "the pine"' in response.messages[0].content


class TestConversation:
    """Test multi-turn behaviour"""

    @pytest.mark.asyncio
    async def test_yes_after_risk_guidance(self, bot):
        session = ChatSession()

        first = await bot.handle(session, "Am I at risk?")
        second = await bot.handle(session, "Yes")

        assert first.intent == "risk_inquiry"
        assert second.intent == "question_response"
        assert second.messages[0].content.startswith(
            "Great! I'll help you get started with the risk assessment."
        )
        assert len(session.contextual_cues) == 1
        assert session.message_count == 2

    @pytest.mark.asyncio
    async def test_format_answer_lists_programs(self, bot, program_search, program_rows):
        session = ChatSession()
        session.add_message("user", "hi")
        session.add_message("assistant", "Which program format do you prefer?")
        program_search.search.return_value = SearchResult(programs=program_rows[:1])

        response = await bot.handle(session, "online please")

        assert response.intent == "question_response"
        assert response.messages[0].content.startswith(
            "Perfect! I found 1 virtual-live program for you:"
        )
        assert session.format_preference_set is True

    @pytest.mark.asyncio
    async def test_general_reply_uses_llm(self, program_search, semantic_search):
        llm = FakeListChatModel(responses=["  Walking daily is a great start.  "])
        bot = ChatBot(
            program_search=program_search, semantic_search=semantic_search, llm=llm
        )
        session = ChatSession()

        response = await bot.handle(session, "Hello there")

        assert response.intent == "general"
        assert response.messages[0].content == "Walking daily is a great start."
        assert session.messages[-1].content == "Walking daily is a great start."

    @pytest.mark.asyncio
    async def test_general_reply_without_llm(self, bot):
        response = await bot.handle(ChatSession(), "Hello there")

        assert response.messages[0].content == DEFAULT_CANNED_REPLY
