"""Deterministic, keyword-driven classification of inbound message bodies.

No LLM calls and no state: every result is a function of the message text and
the Vocabulary the Classifier was built with.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from context_engine.context.vocabulary import DEFAULT_VOCABULARY, Vocabulary
from context_engine.models import EmotionalState, Urgency


@dataclass(frozen=True)
class Classification:
    intent: str
    emotional_state: EmotionalState
    urgency: Urgency
    entities: dict[str, list[str]] = field(default_factory=dict)
    client_name_hint: str | None = None
    business_type_hint: str | None = None
    intent_changed: bool = False
    """True when a prior intent was given and differs from this message's intent."""

    @property
    def colors(self) -> list[str]:
        return self.entities.get("colors", [])


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


class Classifier:
    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY):
        self._vocab = vocabulary

    @property
    def vocabulary(self) -> Vocabulary:
        return self._vocab

    def classify(self, message_body: str, prior_intent: str | None = None) -> Classification:
        intent = self.detect_intent(message_body)
        return Classification(
            intent=intent,
            emotional_state=self.analyze_emotional_state(message_body),
            urgency=self.detect_urgency(message_body),
            entities=self.extract_entities(message_body),
            client_name_hint=self.extract_name_hint(message_body),
            business_type_hint=self.extract_business_type_hint(message_body),
            intent_changed=bool(prior_intent) and prior_intent != intent,
        )

    def detect_intent(self, message_body: str) -> str:
        lower = message_body.lower()
        for label, keywords in self._vocab.intent_rules:
            if _contains_any(lower, keywords):
                return label
        return self._vocab.default_intent

    def analyze_emotional_state(self, message_body: str) -> EmotionalState:
        lower = message_body.lower()
        # urgent > positive > negative > neutral
        if _contains_any(lower, self._vocab.urgent_markers):
            return EmotionalState.URGENT
        if _contains_any(lower, self._vocab.positive_markers):
            return EmotionalState.POSITIVE
        if _contains_any(lower, self._vocab.negative_markers):
            return EmotionalState.NEGATIVE
        return EmotionalState.NEUTRAL

    def detect_urgency(self, message_body: str) -> Urgency:
        lower = message_body.lower()
        if _contains_any(lower, self._vocab.high_urgency_keywords):
            return Urgency.HIGH
        if _contains_any(lower, self._vocab.medium_urgency_keywords):
            return Urgency.MEDIUM
        return Urgency.NORMAL

    def extract_entities(self, message_body: str) -> dict[str, list[str]]:
        """Extract colors, dates, sizes and products. Empty categories are left out."""
        lower = message_body.lower()
        entities: dict[str, list[str]] = {}

        colors = [color for color in self._vocab.colors if color in lower]
        if colors:
            entities["colors"] = colors

        dates = self._vocab.date_pattern.findall(message_body)
        if dates:
            entities["dates"] = dates

        sizes = self._vocab.size_pattern.findall(message_body)
        if sizes:
            entities["sizes"] = sizes

        products = [product for product in self._vocab.products if product in lower]
        if products:
            entities["products"] = products

        return entities

    def extract_name_hint(self, message_body: str) -> str | None:
        for pattern in self._vocab.name_patterns:
            match = pattern.search(message_body)
            if match:
                return match.group(1).strip()
        return None

    def extract_business_type_hint(self, message_body: str) -> str | None:
        lower = message_body.lower()
        for business_type in self._vocab.business_types:
            if business_type in lower:
                return business_type
        return None
