"""
Tests for chat context extraction, sessions and intent routing
"""
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from services.chat.context import (
    SpecificAnswer,
    UserContext,
    detect_delivery_mode_request,
    detect_question_response,
    detect_specific_answer,
    extract_goals,
    extract_question_context,
    extract_recommendations,
    extract_topics,
    extract_user_context,
)
from services.chat.intent_router import Intent, classify
from services.chat.session import (
    GREETING,
    MAX_CONTEXTUAL_CUES,
    ChatSession,
    SessionRegistry,
)


class TestUserContext:
    """Test name and care recipient extraction"""

    def test_user_name(self):
        context = extract_user_context("my name is sarah")

        assert context.user_name == "Sarah"
        assert context.care_recipient_name is None

    def test_care_recipient(self):
        context = extract_user_context("My name is Sarah and Linda is my mom")

        assert context.user_name == "Sarah"
        assert context.care_recipient_name == "Linda"
        assert context.assessment_type == "caregiver"

    def test_caring_for(self):
        context = extract_user_context("Caring for Robert these days")

        assert context.care_recipient_name == "Robert"

    def test_assessment_type_self(self):
        assert extract_user_context("I want to check my risk").assessment_type == "self"

    def test_keeps_existing_context(self):
        current = UserContext(user_name="Ana", assessment_type="curious")

        context = extract_user_context("hello", current)

        assert context.user_name == "Ana"
        assert context.assessment_type == "curious"


class TestExtraction:
    def test_topics(self):
        assert extract_topics("My blood sugar and my weight") == ["diabetes", "weight"]

    def test_goals(self):
        goals = extract_goals("I want to lose weight. I need to walk more")

        assert goals == ["lose weight", "walk more"]

    def test_recommendations(self):
        text = (
            "I recommend walking every day. The sky is blue today. "
            "You should consider a program! Another one. Try this instead?"
        )

        assert extract_recommendations(text) == [
            "I recommend walking every day",
            "You should consider a program",
            "Try this instead",
        ]

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("hybrid or in person", "hybrid"),
            ("in person classes", "in-person"),
            ("something over zoom", "virtual-live"),
            ("hello", None),
        ],
    )
    def test_delivery_mode_request(self, message, expected):
        assert detect_delivery_mode_request(message) == expected

    @pytest.mark.parametrize(
        "question, expected",
        [
            ("Would you like to take the risk assessment?", "assessment"),
            ("Want to see more classes?", "programs"),
            ("Is cost a concern?", "cost"),
            ("Do you prefer online sessions?", "delivery_mode"),
            ("Anything else?", "general"),
        ],
    )
    def test_question_context(self, question, expected):
        assert extract_question_context(question) == expected


class TestQuestionResponse:
    """Test detection of answers to the assistant's last question"""

    QUESTION = "Would you like to take the risk assessment?"

    def test_needs_prior_exchange(self):
        assert detect_question_response("yes", self.QUESTION, 1) is None

    def test_needs_a_question(self):
        assert detect_question_response("yes", "Thanks for visiting.", 3) is None

    def test_yes_and_no(self):
        yes = detect_question_response("Yes please", self.QUESTION, 3)
        no = detect_question_response(" nope ", self.QUESTION, 3)

        assert (yes.kind, yes.answer, yes.question_context) == (
            "yes_no",
            "yes",
            "assessment",
        )
        assert no.answer == "no"
        assert no.original_question == self.QUESTION

    def test_specific_answer(self):
        response = detect_question_response(
            "online please", "Which program format do you prefer?", 4
        )

        assert response.kind == "specific"
        assert response.answer == SpecificAnswer("delivery_mode", "virtual-live")

    def test_unrelated_message(self):
        assert detect_question_response("tell me a joke", self.QUESTION, 3) is None


class TestSpecificAnswer:
    def test_city_and_state(self):
        answer = detect_specific_answer("Atlanta, GA", "What city or area works?")

        assert answer == SpecificAnswer("location", {"city": "Atlanta", "state": "GA"})

    def test_city_only(self):
        answer = detect_specific_answer("savannah", "Which area works best?")

        assert answer == SpecificAnswer("location", {"city": "savannah"})

    def test_cost_amount(self):
        answer = detect_specific_answer("about $50", "What budget works?")

        assert answer == SpecificAnswer("cost", 50)

    def test_free(self):
        answer = detect_specific_answer("free would be best", "Can you afford it?")

        assert answer == SpecificAnswer("cost", 0)


class TestChatSession:
    """Test session memory"""

    def test_starts_with_greeting(self):
        session = ChatSession()

        assert len(session.messages) == 1
        assert session.last_bot_message() == GREETING

    def test_record_user_input(self):
        session = ChatSession()

        session.record_user_input("I prefer online diabetes classes", UserContext())

        assert session.preferred_program_type == "virtual"
        assert "diabetes" in session.topics_of_interest
        assert session.message_count == 1
        assert session.conversation_context == ["I prefer online diabetes classes"]

    def test_contextual_cues_are_capped(self):
        session = ChatSession()
        for i in range(MAX_CONTEXTUAL_CUES + 3):
            session.remember(f"message {i}", "reply", UserContext())

        assert len(session.contextual_cues) == MAX_CONTEXTUAL_CUES
        assert session.contextual_cues[0]["user_input"] == "message 3"

    def test_summary_and_personal_context(self):
        session = ChatSession(context=UserContext(user_name="Sarah"))
        session.remember(
            "I want to lose weight", "You should try walking daily.", UserContext()
        )

        assert session.summary().startswith("User: Sarah.")
        assert "User goals: lose weight" in session.personal_context()

    def test_transcript_is_bounded(self):
        session = ChatSession()
        with patch("services.chat.session.settings") as mock_settings:
            mock_settings.CHAT_MAX_MESSAGES = 3
            for i in range(5):
                session.add_message("user", f"message {i}")

        assert [m.content for m in session.messages] == [
            "message 2",
            "message 3",
            "message 4",
        ]

    def test_recent_conversation_truncates(self):
        session = ChatSession()
        session.add_message("user", "x" * 150)

        recent = session.recent_conversation()

        assert recent.startswith("assistant: Hello!")
        assert recent.endswith("user: " + "x" * 100 + "...")


class TestSessionRegistry:
    """Test session lifecycle, idle expiry and the size cap"""

    def test_lifecycle(self):
        registry = SessionRegistry()

        session = registry.get_or_create()
        same = registry.get_or_create(session.session_id)

        assert same is session
        assert len(registry) == 1
        assert registry.end(session.session_id) is True
        assert registry.end(session.session_id) is False
        assert registry.get(session.session_id) is None

    def test_unknown_id_gets_server_id(self):
        registry = SessionRegistry()

        session = registry.get_or_create("client-chosen-id")

        assert session.session_id != "client-chosen-id"
        assert registry.get("client-chosen-id") is None
        assert registry.get(session.session_id) is session

    def test_idle_sessions_expire(self):
        registry = SessionRegistry(ttl_seconds=60)
        idle = registry.get_or_create()
        active = registry.get_or_create()
        idle.last_activity = datetime.now() - timedelta(seconds=120)

        assert registry.get(idle.session_id) is None
        assert registry.get(active.session_id) is active
        assert len(registry) == 1

    def test_expired_id_starts_new_session(self):
        registry = SessionRegistry(ttl_seconds=60)
        old = registry.get_or_create()
        old.last_activity = datetime.now() - timedelta(minutes=5)

        session = registry.get_or_create(old.session_id)

        assert session is not old
        assert len(registry) == 1

    def test_size_is_capped(self):
        registry = SessionRegistry(max_sessions=50)

        for i in range(200):
            registry.get_or_create(f"client-chosen-{i}")

        assert len(registry) == 50

    def test_least_recently_active_is_evicted(self):
        registry = SessionRegistry(max_sessions=2)
        oldest = registry.get_or_create()
        newer = registry.get_or_create()
        oldest.last_activity = datetime.now() - timedelta(seconds=30)

        registry.get_or_create()

        assert registry.get(oldest.session_id) is None
        assert registry.get(newer.session_id) is newer



class TestIntentRouter:
    """Test the ordered rules on a fresh session"""

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Can I take the assessment for my dad?", Intent.ASSESSMENT_FOR_OTHER),
            ("I want to take the assessment", Intent.ASSESSMENT),
            ("Am I at risk for diabetes?", Intent.PROGRAM_SEARCH),
            ("find programs near me", Intent.PROGRAM_SEARCH),
            ("Tell me about LCI", Intent.ORGANIZATION_LOOKUP),
            ("Am I at risk?", Intent.RISK_INQUIRY),
            ("Hello there", Intent.GENERAL),
        ],
    )
    def test_first_matching_rule_wins(self, message, expected):
        assert classify(ChatSession(), message).intent == expected

    def test_question_response_comes_first(self):
        session = ChatSession()
        session.add_message("user", "hi")
        session.add_message("assistant", "Would you like to find a program?")

        classification = classify(session, "yes")

        assert classification.intent == Intent.QUESTION_RESPONSE
        assert classification.detail.question_context == "programs"
