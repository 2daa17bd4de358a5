"""ChatBot service that answers one user message within a chat session.

The bot classifies the message with the ordered rules in
`services.chat.intent_router` and runs the matching action. Program actions
use the program and semantic search services. Everything else is answered
by the LLM with a system prompt built from the session, or by a canned
keyword reply when the LLM is unavailable.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from config.config import settings
from core.config_helper import get_prompt
from core.logging import logger
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_groq import ChatGroq
from schemas.chat import ChatResponse, Message
from services.chat.context import (
    QuestionResponse,
    SpecificAnswer,
    detect_delivery_mode_request,
    extract_user_context,
)
from services.chat.formatting import program_details, program_list
from services.chat.intent_router import Intent, classify
from services.chat.session import ChatSession
from services.llm import build_llm, llm_available
from services.programs.search_service import ProgramFilter, ProgramSearchService
from services.search.semantic import SemanticSearchService

ROUTING_MESSAGE_DELAY_MS = 2000
NAVIGATION_DELAY_MS = 3000
FOLLOW_UP_MESSAGE_DELAY_MS = 1000
MAX_LISTED_PROGRAMS = 3

ASSESSMENT_PAGE = "risk-assessment"
PROGRAMS_PAGE = "lifestyle-programs"

LISTING_OPTIONS = [
    "Tell me more about these programs",
    "Find programs in my area",
    "Compare with other formats",
]

# question context -> (reply, quick options)
YES_REPLIES = {
    "assessment": (
        "Great! I'll help you get started with the risk assessment. This will give "
        "you personalized insights about your health risks and prevention strategies.",
        ["Take assessment now", "Tell me more about it first"],
    ),
    "programs": (
        "Excellent! I'd be happy to help you find the right prevention program. "
        "Let me search for options that match your needs.",
        ["Find programs near me", "virtual programs", "Show me all options"],
    ),
    "cost": (
        "I understand cost is important to you. Let me focus on affordable and "
        "free program options.",
        [],
    ),
    "location": (
        "Perfect! Location is definitely important for in-person programs. "
        "What area would work best for you?",
        ["Atlanta area", "Savannah area", "I'm flexible with location"],
    ),
}
DEFAULT_YES_REPLY = (
    "Great! I'm here to help you with whatever you need regarding chronic "
    "disease prevention.",
    [
        "Find prevention programs",
        "Take risk assessment",
        "Learn about healthy lifestyle",
    ],
)

NO_REPLIES = {
    "assessment": (
        "No problem! Is there something specific about chronic disease prevention "
        "you'd like to learn about instead?",
        [
            "Tell me about diabetes prevention",
            "Find prevention programs",
            "Learn about healthy eating",
        ],
    ),
    "programs": (
        "That's okay! Maybe I can help you with information about prevention "
        "strategies or answer any questions you have.",
        ["Learn prevention tips", "Ask a question", "Take risk assessment"],
    ),
    "cost": (
        "I understand. Let me show you all available options regardless of cost.",
        [],
    ),
}
DEFAULT_NO_REPLY = (
    "No worries! What would you like to know about chronic disease prevention?",
    ["Prevention tips", "Risk factors", "Healthy lifestyle advice"],
)

# (keywords, reply) checked in order when the LLM cannot answer
CANNED_REPLIES = [
    (
        ("diabetes",),
        "I can help you learn about diabetes prevention. Key steps include "
        "maintaining a healthy weight, eating a balanced diet, and staying "
        "physically active. Would you like to take our risk assessment to get "
        "personalized recommendations?",
    ),
    (
        ("heart",),
        "Heart disease is preventable through lifestyle changes like regular "
        "exercise, healthy eating, not smoking, and managing stress. Are you "
        "interested in learning about specific prevention strategies or finding "
        "a program to help?",
    ),
    (
        ("risk", "assessment"),
        "Our risk assessment can help identify your personal risk factors for "
        "chronic diseases. It takes just a few minutes and provides personalized "
        "recommendations. Would you like to get started with the assessment?",
    ),
    (
        ("hybrid", "in-person", "virtual", "online"),
        "I understand you're interested in programs. Let me help you find the "
        "right format. What type of program would work best for you - in-person, "
        "virtual, or hybrid?",
    ),
    (
        ("program", "classes"),
        "We have CDC-recognized diabetes prevention programs available in various "
        "formats: in-person, virtual live sessions, and hybrid options. Would you "
        "like me to help you find programs in your area, or do you have questions "
        "about what these programs include?",
    ),
    (
        ("cost", "afford", "expensive"),
        "I understand cost is an important consideration. We have programs at "
        "various price points, including free options. Are you looking for "
        "low-cost or free programs specifically?",
    ),
    (
        ("location", "near me", "area"),
        "Location is definitely important for finding the right program. What "
        "area are you located in, or would you prefer virtual programs that you "
        "can access from anywhere?",
    ),
]
DEFAULT_CANNED_REPLY = (
    "I'm here to help with chronic disease prevention information. You can ask "
    "me about diabetes, heart disease, stroke and obesity prevention strategies, "
    "or help you find prevention programs."
)

LOOKUP_PHRASES = re.compile(
    r"tell me about|more about|information about|details about|what is|describe|explain"
)
LOOKUP_ENTITY_WORDS = re.compile(r"program|center|clinic|hospital|organization")


def canned_reply(user_input: str) -> str:
    """Keyword-based reply used when the LLM is unavailable."""
    text = user_input.lower()
    for keywords, reply in CANNED_REPLIES:
        if any(keyword in text for keyword in keywords):
            return reply
    return DEFAULT_CANNED_REPLY


def lookup_search_term(user_input: str) -> str:
    """Strip lookup phrases and entity words from an organization question."""
    text = user_input.lower()
    if "lci" in text:
        return "community health center"
    text = LOOKUP_PHRASES.sub("", text)
    return LOOKUP_ENTITY_WORDS.sub("", text).strip()


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


@dataclass
class Reply:
    messages: List[Message] = field(default_factory=list)
    navigate_to: Optional[str] = None
    navigate_delay_ms: Optional[int] = None

    def say(self, content: str, quick_options=None, delay_ms: int = 0) -> "Reply":
        self.messages.append(
            Message(
                content=content,
                delay_ms=delay_ms,
                quick_options=quick_options or None,
            )
        )
        return self


class ChatBot:
    """Runs one chat turn against a session.

    Attributes:
        program_search: Filtered program search with database fallback.
        semantic_search: Semantic program search for free-text requests.
        llm: Chat model for general replies, or None when not configured.
    """

    def __init__(
        self,
        program_search: Optional[ProgramSearchService] = None,
        semantic_search: Optional[SemanticSearchService] = None,
        llm: Optional[ChatGroq] = None,
    ) -> None:
        self.program_search = program_search or ProgramSearchService()
        self.semantic_search = semantic_search or SemanticSearchService(
            program_search=self.program_search
        )
        self.llm = llm
        if self.llm is None and llm_available():
            self.llm = build_llm()

        self._actions = {
            Intent.QUESTION_RESPONSE: self._answer_question_response,
            Intent.ASSESSMENT_FOR_OTHER: self._assessment_for_others,
            Intent.ASSESSMENT: self._route_to_assessment,
            Intent.PROGRAM_SEARCH: self._search_programs,
            Intent.ORGANIZATION_LOOKUP: self._lookup_organization,
            Intent.PROGRAMS_PAGE: self._route_to_programs,
            Intent.RISK_INQUIRY: self._risk_guidance,
            Intent.GENERAL: self._general_reply,
        }

    async def handle(self, session: ChatSession, user_input: str) -> ChatResponse:
        """Classify `user_input`, run its action and record the turn.

        Args:
            session: The conversation the message belongs to.
            user_input: The user's message.

        Returns:
            The assistant messages and an optional navigation instruction.
        """
        context = extract_user_context(user_input, session.context)
        classification = classify(session, user_input)
        logger.info(
            "Chat session {} message classified as {}",
            session.session_id,
            classification.intent.value,
        )

        session.record_user_input(user_input, context)
        session.add_message("user", user_input)

        action = self._actions[classification.intent]
        reply = await action(session, user_input, classification.detail)

        for message in reply.messages:
            session.add_message("assistant", message.content)
        if classification.intent in (Intent.QUESTION_RESPONSE, Intent.GENERAL):
            bot_text = " ".join(message.content for message in reply.messages)
            session.remember(user_input, bot_text, context)

        return ChatResponse(
            session_id=session.session_id,
            intent=classification.intent.value,
            messages=reply.messages,
            navigate_to=reply.navigate_to,
            navigate_delay_ms=reply.navigate_delay_ms,
        )

    async def _programs_by_delivery_mode(self, delivery_mode: str) -> List[dict]:
        result = await self.program_search.search(
            ProgramFilter(delivery_mode=delivery_mode)
        )
        return result.programs

    async def _delivery_mode_listing(self, delivery_mode: str) -> Optional[Reply]:
        """List up to three programs of `delivery_mode`, or None if there are none."""
        try:
            programs = await self._programs_by_delivery_mode(delivery_mode)
        except Exception:
            logger.exception("Delivery mode search failed for {}", delivery_mode)
            return None
        if not programs:
            return None

        text = (
            f"I found {len(programs)} {delivery_mode} program{_plural(len(programs))} "
            f"for you:\n\n{program_list(programs[:MAX_LISTED_PROGRAMS])}\n"
            "Would you like more details about any of these programs?"
        )
        return Reply().say(text, LISTING_OPTIONS)

    async def _answer_question_response(
        self, session: ChatSession, user_input: str, response: QuestionResponse
    ) -> Reply:
        if response.kind == "yes_no":
            if response.answer == "yes":
                text, options = YES_REPLIES.get(
                    response.question_context, DEFAULT_YES_REPLY
                )
                if response.question_context == "cost":
                    session.update_preferences("cost is important")
            else:
                text, options = NO_REPLIES.get(
                    response.question_context, DEFAULT_NO_REPLY
                )
            return Reply().say(text, options)

        return await self._answer_specific(session, response.answer)

    async def _answer_specific(
        self, session: ChatSession, answer: SpecificAnswer
    ) -> Reply:
        if answer.kind == "delivery_mode":
            session.mark_format_preference(answer.value)
            try:
                programs = await self._programs_by_delivery_mode(answer.value)
            except Exception:
                logger.exception("Delivery mode search failed for {}", answer.value)
                return Reply().say(
                    f"Perfect! I'll focus on {answer.value} programs for you. Let me "
                    "search for options that match your preference.",
                    [
                        "Find programs now",
                        "Tell me more about this format",
                        "I want to compare options",
                    ],
                )
            if programs:
                text = (
                    f"Perfect! I found {len(programs)} {answer.value} "
                    f"program{_plural(len(programs))} for you:\n\n"
                    f"{program_list(programs[:MAX_LISTED_PROGRAMS])}\n"
                    "Would you like more details about any of these programs?"
                )
                return Reply().say(text, LISTING_OPTIONS)
            return Reply().say(
                f"I understand you prefer {answer.value} programs. Let me search more "
                "broadly for programs that might work for you.",
                [
                    "Search all programs",
                    "Tell me about other formats",
                    "Help me find alternatives",
                ],
            )

        if answer.kind == "location":
            place = answer.value["city"]
            if answer.value.get("state"):
                place += f", {answer.value['state']}"
            return Reply().say(
                f"Great! I'll look for programs in {place}. Let me search for options "
                "in your area.",
                [
                    "Search programs now",
                    "I'm flexible with nearby areas",
                    "Show me virtual options too",
                ],
            )

        if answer.value == 0:
            text = (
                "Perfect! I'll focus on free programs for you. There are several "
                "no-cost options available."
            )
        elif answer.value == "low":
            text = (
                "I understand you're looking for affordable options. I'll show you "
                "low-cost and sliding-scale programs."
            )
        else:
            text = f"Got it! I'll look for programs within your ${answer.value} budget."
        return Reply().say(
            text,
            [
                "Find affordable programs",
                "Tell me about free options",
                "Show me all programs",
            ],
        )

    async def _assessment_for_others(
        self, session: ChatSession, user_input: str, _
    ) -> Reply:
        context = session.context
        recipient = context.care_recipient_name or "someone you care about"
        name = f", {context.user_name}" if context.user_name else ""
        return Reply().say(
            f"That's wonderful that you're looking out for {recipient}{name}! Taking "
            "an assessment on behalf of a family member or loved one shows how much "
            "you care about their health.",
            [
                "Take assessment for them",
                "Learn about caregiver resources",
                "Tell me more about their health",
            ],
        )

    async def _route_to_assessment(
        self, session: ChatSession, user_input: str, _
    ) -> Reply:
        context = session.context
        recipient = context.care_recipient_name
        for_others = context.assessment_type == "caregiver" or bool(recipient)
        greeting = f" {context.user_name}, " if context.user_name else " "
        evaluation = (
            f"personalized evaluation for {recipient or 'your loved one'}"
            if for_others
            else "personalized evaluation"
        )

        if for_others:
            whose = f"{recipient}'s" if recipient else "their"
            follow_up = (
                "Taking you there now... The assessment will help us understand "
                f"{whose} specific situation and provide tailored recommendations "
                "for their care."
            )
        else:
            follow_up = (
                "Taking you there now... The assessment will help us understand "
                "your specific situation and provide tailored recommendations."
            )

        reply = Reply(
            navigate_to=ASSESSMENT_PAGE, navigate_delay_ms=NAVIGATION_DELAY_MS
        )
        reply.say(
            f"Excellent!{greeting}I'll take you to our risk assessment page where you "
            f"can get a {evaluation}."
        )
        return reply.say(follow_up, delay_ms=ROUTING_MESSAGE_DELAY_MS)

    async def _search_programs(
        self, session: ChatSession, user_input: str, _
    ) -> Reply:
        delivery_mode = detect_delivery_mode_request(user_input)
        if delivery_mode:
            reply = await self._delivery_mode_listing(delivery_mode)
            if reply:
                return reply

        try:
            reply = await self._semantic_reply(session, user_input, delivery_mode)
        except Exception:
            logger.exception(
                "Program search failed in chat session {}", session.session_id
            )
            reply = None
            if delivery_mode:
                reply = await self._delivery_mode_listing(delivery_mode)

        return reply or self._search_apology(session)

    async def _semantic_reply(
        self, session: ChatSession, user_input: str, delivery_mode: Optional[str]
    ) -> Optional[Reply]:
        result = await self.semantic_search.search(
            user_input, limit=5, conversation_history=session.conversation_context[:-1]
        )
        programs = [program.model_dump() for program in result.results]

        if not programs:
            if not delivery_mode:
                return None
            matching = await self._programs_by_delivery_mode(delivery_mode)
            if not matching:
                return None
            return Reply().say(
                f"I found {len(matching)} {delivery_mode} "
                f"program{_plural(len(matching))} for you. Let me ask a few "
                "questions to find the best match:\n\n"
                "What's most important to you in a prevention program?",
                [
                    "Cost is important",
                    "Convenient location",
                    "Flexible schedule",
                    "Small class size",
                ],
            )

        text = (
            "I found some great programs that match what you're looking for:\n\n"
            f"{program_list(programs[:MAX_LISTED_PROGRAMS], show_format=True)}\n"
        )
        questions = result.intent_analysis.questions_to_ask
        if questions:
            text += f"To help me find the perfect program for you: {questions[0]}"
        else:
            text += (
                "Would you like more details about any of these programs, or shall I "
                "help you narrow down the options?"
            )

        options = ["Tell me more about these programs", "Help me choose"]
        delivery_modes = list(
            dict.fromkeys(
                p["delivery_mode"] for p in programs if p.get("delivery_mode")
            )
        )
        if len(delivery_modes) > 1:
            options.append(f"Compare {' vs '.join(delivery_modes)}")
        cities = {p["city"] for p in programs if p.get("city")}
        if len(cities) > 1:
            options.append("Filter by location")
        options.append("Take risk assessment")
        return Reply().say(text, options[:4])

    def _search_apology(self, session: ChatSession) -> Reply:
        if session.format_preference_set:
            return Reply().say(
                "I'm having trouble finding programs right now, but I'd love to help! "
                "Can you tell me more about what you're looking for?",
                [
                    "Search all programs",
                    "Tell me about programs",
                    "Take risk assessment",
                    "I'm not sure",
                ],
            )
        return Reply().say(
            "I'm having trouble finding programs right now, but I'd love to help! Can "
            "you tell me more about what you're looking for? For example, do you "
            "prefer in-person, virtual, or hybrid programs?",
            [
                "in-person programs",
                "virtual programs",
                "hybrid programs",
                "I'm not sure",
            ],
        )

    async def _lookup_organization(
        self, session: ChatSession, user_input: str, _
    ) -> Reply:
        search_term = lookup_search_term(user_input)
        try:
            result = await self.program_search.search_by_name(search_term)
        except Exception:
            logger.exception("Organization lookup failed for '{}'", search_term)
            return Reply().say(
                "I'm having trouble accessing the program database right now. Let me "
                "take you to our programs page where you can search directly."
            )

        programs = result.programs
        if not programs:
            return Reply().say(
                f'I couldn\'t find any programs matching "{search_term}". Would you '
                "like me to help you search for programs in your area instead? I can "
                "help you find CDC-recognized diabetes prevention programs."
            )

        program = programs[0]
        reply = Reply().say(
            f"Here's information about {program['organization_name']}:\n\n"
            f"{program_details(program)}"
        )
        if len(programs) > 1:
            reply.say(
                f"I found {len(programs)} programs matching your search. Would you "
                "like information about the other programs, or would you like to "
                "search for programs in a specific location?",
                delay_ms=FOLLOW_UP_MESSAGE_DELAY_MS,
            )
        return reply

    async def _route_to_programs(
        self, session: ChatSession, user_input: str, _
    ) -> Reply:
        name = f", {session.context.user_name}" if session.context.user_name else ""
        reply = Reply(
            navigate_to=PROGRAMS_PAGE, navigate_delay_ms=NAVIGATION_DELAY_MS
        )
        reply.say(
            f"Great idea{name}! I'll take you to our lifestyle change programs page "
            "where you can find CDC-recognized programs in your area."
        )
        return reply.say(
            "Taking you there now... You'll be able to search for programs by location "
            "and choose between in-person, virtual, or on-demand options.",
            delay_ms=ROUTING_MESSAGE_DELAY_MS,
        )

    async def _risk_guidance(
        self, session: ChatSession, user_input: str, _
    ) -> Reply:
        name = f", {session.context.user_name}" if session.context.user_name else ""
        return Reply().say(
            f"That's a great question{name}! Understanding your personal risk factors "
            "is important. I'd recommend taking our risk assessment to get "
            "personalized insights. Would you like to get started?",
            [
                "Answer some questions",
                "Learn more about diabetes",
                "Tell me about prevention",
            ],
        )

    async def _general_reply(
        self, session: ChatSession, user_input: str, _
    ) -> Reply:
        if self.llm is None:
            logger.debug("LLM not configured, using canned reply")
            return Reply().say(canned_reply(user_input))

        try:
            system_prompt = get_prompt(
                settings.PROMPT_TEMPLATE_PATH_CHAT,
                personal_context=session.personal_context(),
                recent_conversation=session.recent_conversation(),
                summary=session.summary(),
            )
            template = ChatPromptTemplate(
                [
                    ("system", "{system_prompt}"),
                    ("human", "{user_input}"),
                ]
            )
            chain = template | self.llm | StrOutputParser()
            answer = await chain.ainvoke(
                {"system_prompt": system_prompt, "user_input": user_input}
            )
            logger.debug("Generated LLM reply for chat session {}", session.session_id)
            return Reply().say(answer.strip())
        except Exception:
            logger.exception("LLM reply failed, using canned reply")
            return Reply().say(canned_reply(user_input))
