from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


class EmotionalState(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    URGENT = "urgent"


class Urgency(StrEnum):
    NORMAL = "normal"
    MEDIUM = "medium"
    HIGH = "high"


class InboundMessage(BaseModel):
    """A message record as delivered by the message bus."""

    id: str = ""
    from_number: str
    to: str = ""
    body: str
    timestamp: datetime = Field(default_factory=utcnow)
    type: str = "text"
    is_group: bool = False
    group_id: str | None = None
    sender_name: str | None = None
    quoted_message: str | None = None

    @property
    def conversation_key(self) -> str:
        """Phone number (or group id, for group messages) the conversation is keyed by."""
        if self.is_group and self.group_id:
            return self.group_id
        return self.from_number


class AssistantReply(BaseModel):
    text: str
    confidence: float | None = None
    suggested_actions: list[str] = Field(default_factory=list)
    send_audio: bool = False


class ClientPreferences(BaseModel):
    preferred_colors: list[str] = Field(default_factory=list)


class ContextWindowEntry(BaseModel):
    message: str
    timestamp: datetime
    importance: int


class FlowEntry(BaseModel):
    timestamp: datetime
    intent: str
    confidence: float
    response: str = ""
    entities: dict[str, list[str]] = Field(default_factory=dict)


class ConversationContext(BaseModel):
    client_name: str | None = None
    business_type: str | None = None
    preferences: ClientPreferences = Field(default_factory=ClientPreferences)

    current_topic: str = ""
    topic_start_time: datetime = Field(default_factory=utcnow)
    topic_messages: list[str] = Field(default_factory=list)

    emotional_state: EmotionalState = EmotionalState.NEUTRAL
    urgency: Urgency = Urgency.NORMAL
    last_intent: str = ""

    conversation_flow: list[FlowEntry] = Field(default_factory=list)
    context_window: list[ContextWindowEntry] = Field(default_factory=list)
    conversation_history: list[str] = Field(default_factory=list)


class Conversation(BaseModel):
    id: str
    phone_number: str
    is_group: bool = False
    group_id: str | None = None
    group_name: str | None = None
    messages: list[InboundMessage] = Field(default_factory=list)
    last_activity: datetime = Field(default_factory=utcnow)
    context: ConversationContext = Field(default_factory=ConversationContext)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
