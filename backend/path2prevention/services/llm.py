"""Factory for the Groq chat model shared by the chat and search services."""

from config.config import settings
from langchain_groq import ChatGroq


def llm_available() -> bool:
    """Return True when an LLM API key is configured."""
    return bool(settings.GROQ_API_KEY)


def build_llm(
    temperature: float | None = None, max_tokens: int | None = None
) -> ChatGroq:
    return ChatGroq(
        groq_api_key=settings.GROQ_API_KEY,
        model_name=settings.LLM_MODEL_NAME,
        temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
        max_tokens=max_tokens or settings.LLM_MAX_TOKENS,
    )
