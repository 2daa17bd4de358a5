"""Query intent analysis, follow-up questions and the text-overlap fallback.

`analyze_user_intent` asks the LLM for a JSON intent analysis and falls back
to `simple_intent_analysis` (keyword rules) when no API key is configured or
the call or parsing fails.
"""

import json
from typing import List

from config.config import settings
from core.config_helper import get_prompt
from core.logging import logger
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError
from schemas.search import IntentAnalysis, IntentPreferences
from services.llm import build_llm, llm_available
from services.search.vector_store import create_search_text

COST_WORDS = ("cost", "price", "afford", "cheap", "free")
LOCATION_WORDS = ("near", "close", "location", "area", "city", "local")
SCHEDULE_WORDS = ("schedule", "time", "flexible", "evening", "weekend")

DEFAULT_QUESTIONS = [
    "What type of program format would work best for you?",
    "Do you have any location preferences?",
    "Are there any specific requirements that are important to you?",
]


def simple_intent_analysis(query: str) -> IntentAnalysis:
    """Rule-based intent analysis used when the LLM is unavailable."""
    q = query.lower()
    preferences = IntentPreferences()
    questions: List[str] = []

    if "virtual" in q or "online" in q or "remote" in q:
        preferences.delivery_mode = "virtual"
    elif "in-person" in q or "face to face" in q:
        preferences.delivery_mode = "in-person"
    elif "hybrid" in q or "combination" in q:
        preferences.delivery_mode = "hybrid"

    if any(word in q for word in COST_WORDS):
        preferences.cost_sensitive = True
        questions.append("What budget range works best for you?")

    if any(word in q for word in LOCATION_WORDS):
        questions.append("What area or city would be most convenient for you?")

    if any(word in q for word in SCHEDULE_WORDS):
        preferences.schedule_flexible = True
        questions.append("What days and times work best for your schedule?")

    return IntentAnalysis(
        intent="search_programs",
        preferences=preferences,
        questions_to_ask=questions or list(DEFAULT_QUESTIONS),
        confidence=0.7,
    )


async def analyze_user_intent(
    query: str, conversation_history: List[str] | None = None
) -> IntentAnalysis:
    """Return the intent analysis of `query` given recent conversation turns."""
    if not llm_available():
        logger.debug("Using simple intent analysis (LLM not configured)")
        return simple_intent_analysis(query)

    try:
        system_prompt = get_prompt(
            settings.PROMPT_TEMPLATE_PATH_INTENT,
            conversation_history=(conversation_history or [])[-3:],
        )
        template = ChatPromptTemplate(
            [
                ("system", "{system_prompt}"),
                ("human", 'Current query: "{query}"'),
            ]
        )
        llm = build_llm(temperature=0.3, max_tokens=300)
        chain = template | llm | StrOutputParser()
        raw = await chain.ainvoke({"system_prompt": system_prompt, "query": query})
        return IntentAnalysis.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError):
        logger.warning("LLM intent analysis was not valid JSON, using simple analysis")
        return simple_intent_analysis(query)
    except Exception:
        logger.exception("Error analyzing user intent, using simple analysis")
        return simple_intent_analysis(query)


def _format_amount(value: float) -> str:
    return f"{value:g}"


def generate_follow_up_questions(
    results: List[dict], preferences: IntentPreferences
) -> List[str]:
    """Suggest questions that would narrow down a diverse result set."""
    questions = []

    delivery_modes = list(dict.fromkeys(p.get("delivery_mode") for p in results))
    if len(delivery_modes) > 1 and not preferences.delivery_mode:
        questions.append(
            "I found programs in different formats: "
            f"{', '.join(str(mode) for mode in delivery_modes)}. "
            "Which format appeals to you most?"
        )

    costs = [float(p["cost"]) for p in results if p.get("cost")]
    if len(costs) > 1 and not preferences.cost_sensitive:
        questions.append(
            f"Program costs range from ${_format_amount(min(costs))} to "
            f"${_format_amount(max(costs))}. Is cost a major factor in your decision?"
        )

    locations = list(
        dict.fromkeys(f"{p.get('city')}, {p.get('state')}" for p in results)
    )
    if len(locations) > 1 and not preferences.location:
        more = " and other locations" if len(locations) > 2 else ""
        questions.append(
            f"I found programs in {' and '.join(locations[:2])}{more}. "
            "Which area works best for you?"
        )

    durations = list(
        dict.fromkeys(p["duration_weeks"] for p in results if p.get("duration_weeks"))
    )
    if len(durations) > 1:
        questions.append(
            f"Programs vary in length from {min(durations)} to {max(durations)} weeks. "
            "Do you prefer a shorter or longer program?"
        )

    return questions


def simple_text_search(query: str, programs: List[dict], limit: int = 5) -> List[dict]:
    """Rank programs by word overlap with the query.

    Each query word longer than two characters scores 1 when it appears in the
    program's search text, plus 2 for the organization name, 1 for the
    description and 3 for the delivery mode. The total is divided by the
    number of query words.
    """
    words = [word for word in query.lower().split(" ") if len(word) > 2]
    if not words:
        return []

    scored = []
    for program in programs:
        search_text = create_search_text(program).lower()
        name = (program.get("organization_name") or "").lower()
        description = (program.get("description") or "").lower()
        delivery_mode = (program.get("delivery_mode") or "").lower()

        score = 0
        for word in words:
            if word not in search_text:
                continue
            score += 1
            if word in name:
                score += 2
            if word in description:
                score += 1
            if word in delivery_mode:
                score += 3

        if score > 0:
            scored.append({**program, "similarity": score / len(words)})

    scored.sort(key=lambda program: program["similarity"], reverse=True)
    return scored[:limit]
