from __future__ import annotations

from dataclasses import dataclass

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_path: str = "data/conversations.db"

    # Bounded retention
    conversation_max_messages: int = 50
    context_window_max: int = 20
    conversation_history_max: int = 20
    conversation_flow_max: int = 10

    # Topic segmentation
    topic_timeout_minutes: int = 30

    # Context flow
    default_flow_confidence: float = 0.8
    assistant_name: str = "Heitor"

    # Summarizer
    summary_min_importance: int = 7
    summary_window_items: int = 5
    summary_flow_items: int = 3

    # Ollama (completion collaborator)
    ollama_base_url: str = "http://ollama:11434"
    ollama_model: str = "qwen3:8b"

    # Responder
    audio_reply_probability: float = 0.2
    random_seed: int | None = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = True
    log_file: str = "data/context_engine.log"

    @field_validator(
        "conversation_max_messages",
        "context_window_max",
        "conversation_history_max",
        "conversation_flow_max",
        "topic_timeout_minutes",
    )
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("audio_reply_probability")
    @classmethod
    def must_be_probability(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("must be between 0 and 1")
        return v

    model_config = {"env_file": ".env"}


@dataclass(frozen=True)
class EngineLimits:
    """Bounds and thresholds the core components run with."""

    max_messages: int = 50
    context_window_max: int = 20
    history_max: int = 20
    flow_max: int = 10
    topic_timeout_minutes: int = 30
    default_flow_confidence: float = 0.8
    assistant_name: str = "Heitor"

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineLimits:
        return cls(
            max_messages=settings.conversation_max_messages,
            context_window_max=settings.context_window_max,
            history_max=settings.conversation_history_max,
            flow_max=settings.conversation_flow_max,
            topic_timeout_minutes=settings.topic_timeout_minutes,
            default_flow_confidence=settings.default_flow_confidence,
            assistant_name=settings.assistant_name,
        )
