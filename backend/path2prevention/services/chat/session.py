"""Chat sessions and the in-process registry that owns them.

A `ChatSession` is created by the `SessionRegistry` on the first message of a
conversation, updated by the chat bot on every turn and discarded when the
client ends the conversation.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from config.config import settings
from core.logging import logger
from services.chat.context import (
    UserContext,
    detect_program_type,
    extract_goals,
    extract_recommendations,
    extract_topics,
)

GREETING = (
    "Hello! I'm here to help you learn about chronic disease prevention. "
    "How can I help you today?"
)
MAX_CONTEXTUAL_CUES = 10


def _merge_unique(existing: List[str], new: List[str]) -> List[str]:
    return list(dict.fromkeys([*existing, *new]))


@dataclass
class ChatMessage:
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ChatSession:
    """Everything the assistant remembers about one conversation.

    Attributes:
        session_id: Identifier handed to the client.
        messages: Transcript, starting with the assistant's greeting.
        context: User name, care recipient and assessment type.
        preferred_program_type: Program format the user has asked for.
        topics_of_interest: Topics mentioned by the user.
        key_topics: Topics mentioned by either side.
        user_goals: Goals stated by the user ("I want to ...").
        previous_recommendations: Recommendation sentences already given.
        contextual_cues: Recent turns with the context extracted from them.
        questions_asked: Questions the assistant should not repeat.
        format_preference_set: Whether the user already picked a format.
        conversation_context: Raw user inputs, passed to semantic search.
        message_count: Number of user messages.
        topics_discussed: Topics of the user messages this session.
    """

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    messages: List[ChatMessage] = field(
        default_factory=lambda: [ChatMessage("assistant", GREETING)]
    )
    context: UserContext = field(default_factory=UserContext)

    preferred_program_type: Optional[str] = None
    topics_of_interest: List[str] = field(default_factory=list)

    key_topics: List[str] = field(default_factory=list)
    user_goals: List[str] = field(default_factory=list)
    previous_recommendations: List[str] = field(default_factory=list)
    contextual_cues: List[dict] = field(default_factory=list)
    questions_asked: List[str] = field(default_factory=list)
    format_preference_set: bool = False

    conversation_context: List[str] = field(default_factory=list)
    message_count: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)
    topics_discussed: List[str] = field(default_factory=list)

    def add_message(self, role: str, content: str) -> None:
        self.messages.append(ChatMessage(role, content))
        self.messages = self.messages[-settings.CHAT_MAX_MESSAGES :]

    def last_bot_message(self) -> Optional[str]:
        for message in reversed(self.messages):
            if message.role == "assistant":
                return message.content
        return None

    def update_preferences(self, user_input: str) -> None:
        """Update the format preference, topics and activity metadata."""
        program_type = detect_program_type(user_input)
        if program_type:
            self.preferred_program_type = program_type

        topics = extract_topics(user_input)
        self.topics_of_interest = _merge_unique(self.topics_of_interest, topics)
        self.topics_discussed = _merge_unique(self.topics_discussed, topics)
        self.message_count += 1
        self.last_activity = datetime.now()

    def record_user_input(self, user_input: str, context: UserContext) -> None:
        """Apply a new user message to preferences, context and history."""
        self.update_preferences(user_input)
        self.context = context
        self.conversation_context.append(user_input)

    def remember(
        self, user_input: str, bot_response: str, context: UserContext
    ) -> None:
        """Fold a completed turn into the conversation memory."""
        topics = extract_topics(f"{user_input} {bot_response}")
        recommendations = extract_recommendations(bot_response)

        self.key_topics = _merge_unique(self.key_topics, topics)
        self.user_goals = _merge_unique(self.user_goals, extract_goals(user_input))
        self.previous_recommendations = _merge_unique(
            self.previous_recommendations, recommendations
        )
        self.contextual_cues.append(
            {
                "timestamp": datetime.now().isoformat(),
                "user_input": user_input,
                "bot_response": bot_response,
                "context": context,
                "topics": topics,
                "recommendations": recommendations,
            }
        )
        self.contextual_cues = self.contextual_cues[-MAX_CONTEXTUAL_CUES:]

    def mark_format_preference(self, delivery_mode: str) -> None:
        self.format_preference_set = True
        self.questions_asked.append("format_preference")
        self.update_preferences(f"{delivery_mode} programs preferred")

    def summary(self) -> str:
        """One-paragraph summary of the conversation for the LLM prompt."""
        parts = []
        if self.context.user_name:
            parts.append(f"User: {self.context.user_name}.")
        if self.context.care_recipient_name:
            parts.append(f"Caring for: {self.context.care_recipient_name}.")
        if self.key_topics:
            parts.append(f"Topics discussed: {', '.join(self.key_topics[:5])}.")
        if self.user_goals:
            parts.append(f"User goals: {'; '.join(self.user_goals[:3])}.")
        if self.preferred_program_type:
            parts.append(f"Prefers {self.preferred_program_type} programs.")
        if self.previous_recommendations:
            parts.append(
                "Previous recommendations: "
                f"{'; '.join(self.previous_recommendations[-3:])}."
            )
        return " ".join(parts)

    def personal_context(self) -> List[str]:
        """Facts about the user for the system prompt."""
        facts = []
        if self.context.user_name:
            facts.append(f"User's name: {self.context.user_name}")
        if self.context.care_recipient_name:
            facts.append(f"Care recipient: {self.context.care_recipient_name}")
        if self.context.assessment_type:
            facts.append(f"Assessment context: {self.context.assessment_type}")
        if self.key_topics:
            facts.append(f"Previous topics: {', '.join(self.key_topics[:5])}")
        if self.user_goals:
            facts.append(f"User goals: {'; '.join(self.user_goals[:3])}")
        if self.preferred_program_type:
            facts.append(f"Program preference: {self.preferred_program_type}")
        if self.previous_recommendations:
            facts.append(
                "Previous recommendations: "
                f"{'; '.join(self.previous_recommendations[-2:])}"
            )
        return facts

    def recent_conversation(self, count: int = 6) -> str:
        """The last `count` messages, each cut to 100 characters."""
        lines = []
        for message in self.messages[-count:]:
            content = message.content
            if len(content) > 100:
                content = content[:100] + "..."
            lines.append(f"{message.role}: {content}")
        return " | ".join(lines)


class SessionRegistry:
    """Keeps the live chat sessions of this process, keyed by session id.

    Session ids are minted here. Sessions idle for longer than the TTL are
    evicted, and when the registry is full the least recently active session
    makes room for a new one.
    """

    def __init__(
        self, ttl_seconds: Optional[int] = None, max_sessions: Optional[int] = None
    ) -> None:
        if ttl_seconds is None:
            ttl_seconds = settings.CHAT_SESSION_TTL_SECONDS
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_sessions = max_sessions or settings.CHAT_MAX_SESSIONS
        self._sessions: Dict[str, ChatSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def evict_expired(self, now: Optional[datetime] = None) -> int:
        """Drop sessions idle for longer than the TTL and return how many."""
        now = now or datetime.now()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if now - session.last_activity > self.ttl
        ]
        for session_id in expired:
            del self._sessions[session_id]
            logger.info("Expired idle chat session {}", session_id)
        return len(expired)

    def get(self, session_id: str) -> Optional[ChatSession]:
        self.evict_expired()
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: Optional[str] = None) -> ChatSession:
        """Return the live session for `session_id`, or start a new one.

        Unknown or expired ids are not reused: the new session gets a fresh
        server-side id that the client must send from then on.
        """
        session = self.get(session_id) if session_id else None
        if session is not None:
            return session
        if session_id:
            logger.info("Unknown chat session {}, starting a new one", session_id)

        if len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions.values(), key=lambda s: s.last_activity)
            self.end(oldest.session_id)

        session = ChatSession()
        self._sessions[session.session_id] = session
        logger.info("Started chat session {}", session.session_id)
        return session

    def end(self, session_id: str) -> bool:
        """Discard a session. Returns False when it did not exist."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info(
            "Ended chat session {} after {} messages",
            session_id,
            session.message_count,
        )
        return True



session_registry = SessionRegistry()
