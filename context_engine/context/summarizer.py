"""Render a conversation's derived context as a compact briefing for the LLM prompt.

Pure formatting: no store access and no mutation. Sections with nothing to say
are left out entirely.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from context_engine.models import Conversation, FlowEntry

RESPONSE_PREVIEW_CHARS = 50


def _format_flow(entry: FlowEntry) -> str:
    preview = entry.response[:RESPONSE_PREVIEW_CHARS]
    if len(entry.response) > RESPONSE_PREVIEW_CHARS:
        preview += "..."
    return f"{entry.intent} ({entry.confidence:.2f}) -> {preview}"


def summarize(
    conversation: Conversation,
    min_importance: int = 7,
    window_items: int = 5,
    flow_items: int = 3,
) -> str:
    context = conversation.context
    lines: list[str] = []

    if context.client_name:
        lines.append(f"Cliente: {context.client_name}")
    if context.business_type:
        lines.append(f"Tipo de negócio: {context.business_type}")

    if context.current_topic:
        lines.append(f"Tópico atual: {context.current_topic}")
        lines.append(f"Mensagens no tópico: {len(context.topic_messages)}")

    lines.append(f"Estado emocional: {context.emotional_state}")
    lines.append(f"Urgência: {context.urgency}")

    if context.last_intent:
        lines.append(f"Última intenção: {context.last_intent}")

    if context.preferences.preferred_colors:
        lines.append(f"Cores preferidas: {', '.join(context.preferences.preferred_colors)}")

    important = [e for e in context.context_window if e.importance >= min_importance]
    if important:
        recent = sorted(important, key=lambda e: e.timestamp)[-window_items:]
        lines.append("")
        lines.append("Contexto recente:")
        lines.extend(f"- {e.message}" for e in recent)

    if context.conversation_flow:
        lines.append("")
        lines.append("Fluxo da conversa:")
        lines.extend(_format_flow(f) for f in context.conversation_flow[-flow_items:])

    return "\n".join(lines)
