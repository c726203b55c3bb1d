from datetime import timedelta

from context_engine.context.summarizer import summarize
from context_engine.models import (
    ClientPreferences,
    ContextWindowEntry,
    Conversation,
    ConversationContext,
    EmotionalState,
    FlowEntry,
    Urgency,
)
from tests.conftest import START


def _conversation(**context_fields) -> Conversation:
    return Conversation(
        id="conv_1",
        phone_number="5511999990000",
        context=ConversationContext(topic_start_time=START, **context_fields),
    )


def test_minimal_summary_has_only_state_lines():
    summary = summarize(_conversation())
    assert summary == "Estado emocional: neutral\nUrgência: normal"


def test_full_summary():
    ctx = dict(
        client_name="Carla",
        business_type="restaurante",
        current_topic="Solicitação de Arte",
        topic_messages=["Quero um banner", "vermelho"],
        emotional_state=EmotionalState.URGENT,
        urgency=Urgency.HIGH,
        last_intent="art_request",
        preferences=ClientPreferences(preferred_colors=["vermelho", "azul"]),
        context_window=[
            ContextWindowEntry(message="Quero um banner", timestamp=START, importance=8),
            ContextWindowEntry(message="ok", timestamp=START + timedelta(minutes=1), importance=5),
        ],
        conversation_flow=[
            FlowEntry(timestamp=START, intent="art_request", confidence=0.9, response="Bora!"),
        ],
    )
    summary = summarize(_conversation(**ctx))

    assert summary.splitlines() == [
        "Cliente: Carla",
        "Tipo de negócio: restaurante",
        "Tópico atual: Solicitação de Arte",
        "Mensagens no tópico: 2",
        "Estado emocional: urgent",
        "Urgência: high",
        "Última intenção: art_request",
        "Cores preferidas: vermelho, azul",
        "",
        "Contexto recente:",
        "- Quero um banner",
        "",
        "Fluxo da conversa:",
        "art_request (0.90) -> Bora!",
    ]


def test_low_importance_window_section_omitted():
    window = [ContextWindowEntry(message="ok", timestamp=START, importance=6)]
    summary = summarize(_conversation(context_window=window))
    assert "Contexto recente" not in summary


def test_recent_context_takes_five_most_recent_important_entries():
    window = [
        ContextWindowEntry(
            message=f"m{i}", timestamp=START + timedelta(minutes=i), importance=10 - (i % 3)
        )
        for i in range(8)
    ]
    # store order is by importance, not time
    window.sort(key=lambda e: (e.importance, e.timestamp), reverse=True)
    summary = summarize(_conversation(context_window=window))

    lines = summary.split("Contexto recente:\n")[1].splitlines()
    assert lines == ["- m3", "- m4", "- m5", "- m6", "- m7"]


def test_flow_shows_last_three_with_truncated_response():
    long_response = "x" * 80
    flow = [
        FlowEntry(timestamp=START, intent=f"i{i}", confidence=0.8, response=long_response)
        for i in range(5)
    ]
    flow[-1] = FlowEntry(timestamp=START, intent="i4", confidence=0.876, response="curta")
    summary = summarize(_conversation(conversation_flow=flow))

    lines = summary.split("Fluxo da conversa:\n")[1].splitlines()
    assert lines == [
        f"i2 (0.80) -> {'x' * 50}...",
        f"i3 (0.80) -> {'x' * 50}...",
        "i4 (0.88) -> curta",
    ]


def test_summary_is_deterministic():
    conversation = _conversation(client_name="Ana", last_intent="greeting")
    assert summarize(conversation) == summarize(conversation)
