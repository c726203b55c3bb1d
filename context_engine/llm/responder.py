from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable

import httpx

from context_engine.models import AssistantReply

logger = logging.getLogger(__name__)

CompletionFn = Callable[[str], Awaitable[str]]

PERSONA_PROMPT = (
    "Você é {assistant_name}, um assistente de marketing carismático e humano. "
    "Use linguagem natural, emojis quando apropriado e lembre detalhes da conversa. "
    "Se for pedido de arte ou campanha, peça detalhes específicos. "
    "Se for grupo, mantenha o engajamento com perguntas."
)

FALLBACK_REPLIES = (
    "Ops, tive um pequeno problema técnico aqui! 😅 Pode repetir?",
    "Desculpa, não entendi bem. Pode explicar de outra forma?",
    "Hmm, deixa eu processar isso melhor... Pode reformular?",
    "Putz, travou aqui! 😂 Pode tentar de novo?",
)
FALLBACK_CONFIDENCE = 0.3

# (action, keywords found in the generated reply)
_ACTION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("create_content", ("criar", "fazer")),
    ("set_reminder", ("lembrar", "lembrete")),
    ("ask_question", ("perguntar", "questionar")),
)


def build_prompt(
    message: str,
    briefing: str,
    is_group: bool = False,
    assistant_name: str = "Heitor",
) -> str:
    """Embed the context briefing and the new message into the completion prompt."""
    lines = [PERSONA_PROMPT.format(assistant_name=assistant_name)]
    if briefing:
        lines.append(f"\nCONTEXTO DA CONVERSA:\n{briefing}")
    lines.append(f'\nMENSAGEM RECEBIDA: "{message}"')
    lines.append(f"TIPO DE CONVERSA: {'GRUPO' if is_group else 'PRIVADA'}")
    lines.append(f"\nRESPOSTA DO {assistant_name.upper()}:")
    return "\n".join(lines)


def extract_suggested_actions(text: str) -> list[str]:
    lower = text.lower()
    return [
        action
        for action, keywords in _ACTION_KEYWORDS
        if any(keyword in lower for keyword in keywords)
    ]


class Responder:
    """Turns a briefing plus an inbound message into an AssistantReply.

    All sampling (audio replies, fallback wording) goes through the injected
    ``rng`` so a seeded random.Random gives reproducible replies.
    """

    def __init__(
        self,
        generate_completion: CompletionFn,
        rng: random.Random | None = None,
        audio_probability: float = 0.2,
        assistant_name: str = "Heitor",
        confidence: float = 0.9,
    ):
        self._generate = generate_completion
        self._rng = rng or random.Random()
        self._audio_probability = audio_probability
        self._assistant_name = assistant_name
        self._confidence = confidence

    async def respond(self, message: str, briefing: str, is_group: bool = False) -> AssistantReply:
        prompt = build_prompt(message, briefing, is_group, self._assistant_name)
        try:
            text = await self._generate(prompt)
        except (httpx.HTTPError, KeyError, ValueError):
            logger.exception("Completion failed, using fallback reply")
            return self.fallback_reply()

        if not text.strip():
            logger.warning("Completion returned empty text, using fallback reply")
            return self.fallback_reply()

        return AssistantReply(
            text=text.strip(),
            confidence=self._confidence,
            suggested_actions=extract_suggested_actions(text),
            send_audio=self.should_send_audio(),
        )

    def should_send_audio(self) -> bool:
        return self._rng.random() < self._audio_probability

    def fallback_reply(self) -> AssistantReply:
        return AssistantReply(
            text=self._rng.choice(FALLBACK_REPLIES),
            confidence=FALLBACK_CONFIDENCE,
        )
