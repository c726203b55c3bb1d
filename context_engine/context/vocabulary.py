"""Keyword tables driving classification, scoring and topic segmentation.

Tables are immutable. A deployment that needs different wording builds its own
Vocabulary (e.g. with dataclasses.replace) and hands it to the Classifier and
TopicSegmenter instead of mutating shared state.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# (intent label, keywords) evaluated top to bottom; the first rule with any
# keyword present in the lowercased message wins.
IntentRule = tuple[str, tuple[str, ...]]

_INTENT_RULES: tuple[IntentRule, ...] = (
    ("greeting", ("bom dia", "boa tarde", "boa noite")),
    ("art_request", ("arte", "design", "layout", "banner")),
    ("promotion_request", ("promoção", "campanha", "marketing")),
    ("complaint", ("problema", "erro", "não funcionou")),
    ("thank_you", ("obrigado", "valeu", "thanks")),
    ("goodbye", ("tchau", "até", "bye")),
    ("question", ("?", "como", "quando", "onde")),
)

_POSITIVE_MARKERS = (
    "😊", "😄", "😃", "😁", "😆", "😍", "🥰", "😘", "👍", "❤️", "💕", "💖",
    "ótimo", "excelente", "maravilhoso", "perfeito", "adorei", "gostei", "show",
)
_NEGATIVE_MARKERS = (
    "😞", "😔", "😟", "😕", "😣", "😖", "😫", "😩", "😤", "😠", "😡", "💔",
    "ruim", "péssimo", "horrível", "não gostei", "problema", "erro", "frustrado",
)
_URGENT_MARKERS = (
    "😰", "😨", "😱", "😳", "😵", "🤯", "💥", "🚨", "⚡",
    "urgente", "agora", "hoje", "preciso", "necessito", "importante",
)

# Emoji blocks counted by the importance scorer
EMOJI_PATTERN = re.compile(
    "[\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF]"
)

_DATE_PATTERN = re.compile(
    r"(\d{1,2}/\d{1,2}|\d{1,2}-\d{1,2}|hoje|amanhã|próxima semana)", re.IGNORECASE
)
_SIZE_PATTERN = re.compile(r"(\d+x\d+|\d+\s*cm|\d+\s*px)", re.IGNORECASE)

# Self-introductions. Each pattern has exactly one capture group for the name.
# "sou X" / "I am X" only accept a capitalized word so "sou dono de..." is ignored.
_NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bme\s+chamo\s+(\w+)", re.IGNORECASE),
    re.compile(r"\bmeu\s+nome\s+(?:é\s+)?(\w+)", re.IGNORECASE),
    re.compile(r"\bmy\s+name\s+is\s+(\w+)", re.IGNORECASE),
    re.compile(r"\b[Ss]ou\s+(?:o\s+|a\s+)?([A-ZÀ-Ý]\w+)"),
    re.compile(r"\bI(?:\s+am|'m)\s+([A-Z]\w+)"),
)

_INCOMPATIBLE_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "greeting": ("art_request", "promotion_request", "complaint"),
    "art_request": ("greeting", "promotion_request", "complaint"),
    "promotion_request": ("greeting", "art_request", "complaint"),
    "complaint": ("greeting", "art_request", "promotion_request"),
}

_TOPIC_LABELS: dict[str, str] = {
    "greeting": "Saudação",
    "art_request": "Solicitação de Arte",
    "promotion_request": "Solicitação de Promoção",
    "complaint": "Reclamação",
    "question": "Pergunta",
    "thank_you": "Agradecimento",
    "goodbye": "Despedida",
}


def _freeze_transitions(table: Mapping[str, tuple[str, ...]]) -> Mapping[str, frozenset[str]]:
    return MappingProxyType({source: frozenset(targets) for source, targets in table.items()})


@dataclass(frozen=True)
class Vocabulary:
    intent_rules: tuple[IntentRule, ...] = _INTENT_RULES
    default_intent: str = "general"

    positive_markers: tuple[str, ...] = _POSITIVE_MARKERS
    negative_markers: tuple[str, ...] = _NEGATIVE_MARKERS
    urgent_markers: tuple[str, ...] = _URGENT_MARKERS

    high_urgency_keywords: tuple[str, ...] = ("urgente", "agora", "hoje")
    medium_urgency_keywords: tuple[str, ...] = ("amanhã", "próxima semana")

    importance_keywords: tuple[str, ...] = (
        "urgente", "hoje", "agora", "importante", "preciso", "necessito",
    )
    important_intents: frozenset[str] = frozenset(
        {"art_request", "promotion_request", "urgent_request"}
    )

    colors: tuple[str, ...] = (
        "azul", "vermelho", "verde", "amarelo", "rosa", "roxo", "laranja", "preto", "branco",
    )
    products: tuple[str, ...] = (
        "logo", "banner", "post", "flyer", "cartão", "site", "landing page",
    )
    business_types: tuple[str, ...] = (
        "restaurante", "loja", "consultório", "empresa", "startup", "freelancer",
    )
    date_pattern: re.Pattern[str] = _DATE_PATTERN
    size_pattern: re.Pattern[str] = _SIZE_PATTERN
    name_patterns: tuple[re.Pattern[str], ...] = _NAME_PATTERNS

    topic_change_phrases: tuple[str, ...] = (
        "outra coisa", "mudando de assunto", "agora sobre", "falando nisso", "por falar nisso",
    )
    incompatible_transitions: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: _freeze_transitions(_INCOMPATIBLE_TRANSITIONS)
    )
    topic_labels: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(_TOPIC_LABELS))
    )
    default_topic_label: str = "Conversa Geral"


DEFAULT_VOCABULARY = Vocabulary()
