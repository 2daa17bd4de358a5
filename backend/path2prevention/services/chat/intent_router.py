"""Ordered keyword rules that decide what the assistant does with a message.

`RULES` is evaluated top to bottom and the first predicate that returns a
truthy value wins. A predicate may return extra detail (the detected
question response) which is handed to the action with the intent.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Tuple

from services.chat.context import detect_question_response
from services.chat.session import ChatSession


class Intent(str, Enum):
    QUESTION_RESPONSE = "question_response"
    ASSESSMENT_FOR_OTHER = "assessment_for_other"
    ASSESSMENT = "assessment"
    PROGRAM_SEARCH = "program_search"
    ORGANIZATION_LOOKUP = "organization_lookup"
    PROGRAMS_PAGE = "programs_page"
    RISK_INQUIRY = "risk_inquiry"
    GENERAL = "general"


FOR_OTHERS_KEYWORDS = (
    "assessment for",
    "take it for",
    "for my",
    "for someone",
    "for a family member",
    "for my mom",
    "for my dad",
    "for my husband",
    "for my wife",
    "for my parent",
    "for my child",
    "for my partner",
    "on behalf of",
    "help someone else",
    "someone i care about",
    "family member",
    "loved one",
)

ASSESSMENT_KEYWORDS = (
    "take assessment",
    "take the assessment",
    "take the risk assessment",
    "start assessment",
    "start the assessment",
    "i want to take",
    "begin assessment",
    "do the assessment",
    "answer questions",
    "answer some questions",
    "take test",
    "start test",
    "quiz",
    "take quiz",
    "test",
)

PROGRAM_KEYWORDS = (
    "program",
    "class",
    "course",
    "prevention",
    "diabetes",
    "hybrid",
    "virtual",
    "in-person",
    "online",
    "help me find",
    "looking for",
    "need",
    "want",
    "find",
    "search",
    "show me",
)

FORMAT_QUICK_OPTIONS = (
    "virtual programs",
    "in-person programs",
    "hybrid programs",
    "online programs",
)

LOOKUP_KEYWORDS = (
    "tell me about",
    "more about",
    "information about",
    "details about",
    "what is",
    "describe",
    "explain",
    "lci",
    "community health center",
    "health center",
    "medical center",
    "clinic",
    "hospital",
)

LOOKUP_ENTITIES = ("program", "center", "lci", "clinic", "hospital", "organization")

PROGRAMS_PAGE_KEYWORDS = (
    "find prevention programs",
    "find programs",
    "lifestyle programs",
    "prevention programs",
    "local programs",
    "find a program",
    "program near me",
    "diabetes prevention program",
    "lifestyle change program",
)

RISK_KEYWORDS = (
    "am i at risk",
    "my risk",
    "risk for",
    "check my risk",
    "evaluate my risk",
)


def _contains_any(message: str, keywords) -> bool:
    text = message.lower()
    return any(keyword in text for keyword in keywords)


def is_question_response(session: ChatSession, message: str):
    return detect_question_response(
        message, session.last_bot_message(), len(session.messages)
    )


def is_assessment_for_others(session: ChatSession, message: str) -> bool:
    return _contains_any(message, FOR_OTHERS_KEYWORDS)


def is_assessment_request(session: ChatSession, message: str) -> bool:
    return _contains_any(message, ASSESSMENT_KEYWORDS)


def is_program_search(session: ChatSession, message: str) -> bool:
    return _contains_any(message, PROGRAM_KEYWORDS) or _contains_any(
        message, FORMAT_QUICK_OPTIONS
    )


def is_organization_lookup(session: ChatSession, message: str) -> bool:
    return _contains_any(message, LOOKUP_KEYWORDS) and _contains_any(
        message, LOOKUP_ENTITIES
    )


def is_programs_page_request(session: ChatSession, message: str) -> bool:
    return _contains_any(message, PROGRAMS_PAGE_KEYWORDS)


def is_risk_inquiry(session: ChatSession, message: str) -> bool:
    return _contains_any(message, RISK_KEYWORDS) and not is_assessment_request(
        session, message
    )


def always(session: ChatSession, message: str) -> bool:
    return True


Predicate = Callable[[ChatSession, str], Any]

RULES: List[Tuple[Intent, Predicate]] = [
    (Intent.QUESTION_RESPONSE, is_question_response),
    (Intent.ASSESSMENT_FOR_OTHER, is_assessment_for_others),
    (Intent.ASSESSMENT, is_assessment_request),
    (Intent.PROGRAM_SEARCH, is_program_search),
    (Intent.ORGANIZATION_LOOKUP, is_organization_lookup),
    (Intent.PROGRAMS_PAGE, is_programs_page_request),
    (Intent.RISK_INQUIRY, is_risk_inquiry),
    (Intent.GENERAL, always),
]


@dataclass
class Classification:
    intent: Intent
    detail: Any = None


def classify(session: ChatSession, message: str) -> Classification:
    """Return the first intent whose predicate matches `message`.

    Must be called before `message` is appended to the session transcript.
    """
    for intent, predicate in RULES:
        detail = predicate(session, message)
        if detail:
            return Classification(intent=intent, detail=detail)
    return Classification(intent=Intent.GENERAL)
