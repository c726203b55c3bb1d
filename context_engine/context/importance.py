from __future__ import annotations

from typing import TYPE_CHECKING

from context_engine.context.vocabulary import DEFAULT_VOCABULARY, EMOJI_PATTERN, Vocabulary

if TYPE_CHECKING:
    from context_engine.models import ConversationContext

BASE_IMPORTANCE = 5
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 10
LONG_MESSAGE_CHARS = 100
MAX_EMOJI_BONUS = 2


def count_emojis(message: str) -> int:
    return len(EMOJI_PATTERN.findall(message))


def score_importance(
    message: str,
    intent: str,
    context: ConversationContext | None = None,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
) -> int:
    """Score how worth remembering a message is, from 1 to 10.

    Starts at 5 and adds +3 for request intents, +2 for urgency keywords,
    +1 for a question mark, +1 for messages over 100 characters and +1 per
    emoji up to 2.
    """
    importance = BASE_IMPORTANCE

    if intent in vocabulary.important_intents:
        importance += 3

    lower = message.lower()
    if any(keyword in lower for keyword in vocabulary.importance_keywords):
        importance += 2

    if "?" in message:
        importance += 1

    if len(message) > LONG_MESSAGE_CHARS:
        importance += 1

    importance += min(count_emojis(message), MAX_EMOJI_BONUS)

    return max(MIN_IMPORTANCE, min(importance, MAX_IMPORTANCE))
