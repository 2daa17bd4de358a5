"""Keyword and regex helpers that pull context out of chat messages.

Everything here is a pure function of its inputs so the chat router and its
tests can use them without a session or any I/O.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Union

TOPIC_KEYWORDS = {
    "diabetes": ["diabetes", "diabetic", "blood sugar", "glucose", "insulin"],
    "heart-disease": [
        "heart",
        "cardiac",
        "cardiovascular",
        "blood pressure",
        "cholesterol",
    ],
    "nutrition": ["diet", "food", "eating", "nutrition", "meal", "calories"],
    "exercise": ["exercise", "physical activity", "workout", "fitness", "walking"],
    "weight": ["weight", "obesity", "bmi", "overweight", "lose weight"],
    "smoking": ["smoking", "tobacco", "cigarette", "quit smoking"],
    "stress": ["stress", "anxiety", "mental health", "depression"],
    "programs": ["program", "class", "course", "prevention program"],
    "assessment": ["assessment", "risk", "evaluation", "test", "quiz"],
}

RECOMMENDATION_KEYWORDS = (
    "recommend",
    "suggest",
    "try",
    "consider",
    "should",
    "might want to",
    "assessment",
    "program",
    "exercise",
    "diet",
    "lifestyle change",
)

GOAL_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"want to (.*?)(?:\.|$)",
        r"need to (.*?)(?:\.|$)",
        r"trying to (.*?)(?:\.|$)",
        r"looking for (.*?)(?:\.|$)",
        r"help me (.*?)(?:\.|$)",
        r"i'd like to (.*?)(?:\.|$)",
    )
]

NAME_PATTERNS = [
    re.compile(r"my name is (\w+)", re.IGNORECASE),
    re.compile(r"i'm (\w+)", re.IGNORECASE),
    re.compile(r"call me (\w+)", re.IGNORECASE),
    re.compile(r"i am (\w+)", re.IGNORECASE),
]

# (pattern, index of the group holding the care recipient's name)
CARE_PATTERNS = [
    (re.compile(r"my (\w+) (\w+)", re.IGNORECASE), 2),
    (re.compile(r"(\w+) is my (\w+)", re.IGNORECASE), 1),
    (re.compile(r"caring for (\w+)", re.IGNORECASE), 1),
    (re.compile(r"worried about (\w+)", re.IGNORECASE), 1),
    (re.compile(r"(\w+)'s health", re.IGNORECASE), 1),
]

# Words that follow "my" without naming a relative ("my name is ...").
NON_RELATION_WORDS = ("name", "risk", "health")

QUESTION_MARKERS = (
    "?",
    "would you like",
    "do you",
    "are you",
    "can you",
    "should i",
    "which",
    "what",
    "how",
    "when",
    "where",
)

YES_ANSWERS = {
    "yes",
    "yeah",
    "yep",
    "sure",
    "okay",
    "ok",
    "y",
    "yes please",
    "yes i would",
    "yes i do",
    "yes i am",
    "that would be great",
    "sounds good",
    "i would like that",
    "absolutely",
    "definitely",
    "of course",
}

NO_ANSWERS = {
    "no",
    "nope",
    "nah",
    "n",
    "no thanks",
    "no thank you",
    "not really",
    "not interested",
    "i don't think so",
    "maybe later",
    "not now",
    "not right now",
}

FORMAT_QUESTION_WORDS = ("format", "delivery", "virtual", "in-person", "program")
VIRTUAL_WORDS = ("virtual", "online", "remote", "zoom", "video")
IN_PERSON_WORDS = (
    "in-person",
    "in person",
    "face to face",
    "face-to-face",
    "person",
    "location",
)

CITY_STATE_PATTERN = re.compile(r"([a-zA-Z\s]+),?\s*([A-Z]{2})")
CITY_PATTERN = re.compile(r"[a-zA-Z\s]+")
COST_PATTERN = re.compile(r"\$?(\d+)")


@dataclass
class UserContext:
    """Who the user is and who they are asking for."""

    user_name: Optional[str] = None
    care_recipient_name: Optional[str] = None
    assessment_type: Optional[str] = None


@dataclass
class SpecificAnswer:
    """A non yes/no answer: a delivery mode, a location or a cost."""

    kind: str
    value: Union[str, int, dict]


@dataclass
class QuestionResponse:
    """The user's reply to the assistant's previous question."""

    kind: str  # "yes_no" or "specific"
    answer: Union[str, SpecificAnswer]
    original_question: str
    question_context: str


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def extract_user_context(
    user_input: str, current: Optional[UserContext] = None
) -> UserContext:
    """Update `current` with names and the assessment type found in `user_input`."""
    current = current or UserContext()
    user_name = current.user_name
    care_recipient = current.care_recipient_name
    assessment_type = current.assessment_type

    for pattern in NAME_PATTERNS:
        match = pattern.search(user_input)
        if match:
            user_name = _capitalize(match.group(1))
            break

    for pattern, group in CARE_PATTERNS:
        match = pattern.search(user_input)
        if not match:
            continue
        if group == 2 and match.group(1).lower() in NON_RELATION_WORDS:
            continue
        care_recipient = _capitalize(match.group(group))
        assessment_type = "caregiver"
        break

    text = user_input.lower()
    if "myself" in text or "my health" in text or "my risk" in text:
        assessment_type = "self"
    elif (
        "just curious" in text
        or "general information" in text
        or "learning about" in text
    ):
        assessment_type = "curious"

    return UserContext(
        user_name=user_name,
        care_recipient_name=care_recipient,
        assessment_type=assessment_type,
    )


def extract_topics(text: str) -> List[str]:
    lower = text.lower()
    return [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in lower for keyword in keywords)
    ]


def extract_goals(text: str) -> List[str]:
    goals = []
    for pattern in GOAL_PATTERNS:
        for match in pattern.finditer(text):
            goal = (match.group(1) or "").strip()
            if len(goal) > 3:
                goals.append(goal)
    return goals


def extract_recommendations(text: str) -> List[str]:
    """Return up to three sentences of `text` that read like recommendations."""
    sentences = [s for s in re.split(r"[.!?]+", text) if len(s.strip()) > 10]
    recommendations = [
        sentence.strip()
        for sentence in sentences
        if any(keyword in sentence.lower() for keyword in RECOMMENDATION_KEYWORDS)
    ]
    return recommendations[:3]


def detect_program_type(user_input: str) -> Optional[str]:
    """Return the program format the user says they prefer, if any."""
    text = user_input.lower()
    if "virtual" in text or "online" in text:
        return "virtual"
    if "in-person" in text or "face to face" in text:
        return "in-person"
    if "hybrid" in text or "combination" in text:
        return "hybrid"
    return None


def detect_delivery_mode_request(user_input: str) -> Optional[str]:
    """Map a request for a program format to a stored delivery mode.

    Hybrid wins over in-person, and in-person over virtual.
    """
    text = user_input.lower()
    if any(word in text for word in ("hybrid", "combination", "mixed", "both")):
        return "hybrid"
    if any(word in text for word in IN_PERSON_WORDS):
        return "in-person"
    if any(word in text for word in VIRTUAL_WORDS):
        return "virtual-live"
    return None


def has_question(text: str) -> bool:
    lower = text.lower()
    return any(marker in lower for marker in QUESTION_MARKERS)


def extract_question_context(question_text: str) -> str:
    """Classify what the assistant's question was about."""
    text = question_text.lower()
    if "assessment" in text or "risk" in text:
        return "assessment"
    if "program" in text or "class" in text:
        return "programs"
    if "cost" in text or "budget" in text or "afford" in text:
        return "cost"
    if "location" in text or "area" in text or "city" in text:
        return "location"
    if "schedule" in text or "time" in text or "when" in text:
        return "schedule"
    if "virtual" in text or "online" in text or "in-person" in text:
        return "delivery_mode"
    if "insurance" in text or "medicare" in text or "medicaid" in text:
        return "insurance"
    return "general"


def detect_specific_answer(
    user_input: str, question_text: str
) -> Optional[SpecificAnswer]:
    """Detect a delivery mode, location or cost answer to `question_text`."""
    text = user_input.lower().strip()
    question = question_text.lower()

    if any(word in question for word in FORMAT_QUESTION_WORDS):
        if any(word in text for word in VIRTUAL_WORDS):
            return SpecificAnswer("delivery_mode", "virtual-live")
        if any(
            word in text
            for word in ("in-person", "face to face", "physical", "person", "location")
        ):
            return SpecificAnswer("delivery_mode", "in-person")
        if any(word in text for word in ("hybrid", "both", "combination", "mixed")):
            return SpecificAnswer("delivery_mode", "hybrid")

    if any(word in question for word in ("location", "area", "city")):
        match = CITY_STATE_PATTERN.search(user_input.strip())
        if match:
            return SpecificAnswer(
                "location", {"city": match.group(1).strip(), "state": match.group(2)}
            )
        if CITY_PATTERN.fullmatch(text) and len(text) > 2:
            return SpecificAnswer("location", {"city": text.strip()})

    if any(word in question for word in ("cost", "budget", "afford")):
        match = COST_PATTERN.search(text)
        if match:
            return SpecificAnswer("cost", int(match.group(1)))
        if "free" in text or "no cost" in text:
            return SpecificAnswer("cost", 0)
        if "low cost" in text or "cheap" in text or "affordable" in text:
            return SpecificAnswer("cost", "low")

    return None


def detect_question_response(
    user_input: str, last_bot_message: Optional[str], transcript_length: int
) -> Optional[QuestionResponse]:
    """Return how `user_input` answers the assistant's last question, if it does.

    Args:
        user_input: The new user message.
        last_bot_message: Text of the assistant's most recent message.
        transcript_length: Number of messages before `user_input`.
    """
    if transcript_length < 2 or not last_bot_message:
        return None
    if not has_question(last_bot_message):
        return None

    text = user_input.lower().strip()
    context = extract_question_context(last_bot_message)

    if text in YES_ANSWERS or text in NO_ANSWERS:
        return QuestionResponse(
            kind="yes_no",
            answer="yes" if text in YES_ANSWERS else "no",
            original_question=last_bot_message,
            question_context=context,
        )

    specific = detect_specific_answer(user_input, last_bot_message)
    if specific:
        return QuestionResponse(
            kind="specific",
            answer=specific,
            original_question=last_bot_message,
            question_context=context,
        )
    return None
