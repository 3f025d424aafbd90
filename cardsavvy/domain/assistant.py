"""Conversational assistant - classify each chat turn, then reply using the user's cards"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from cardsavvy.domain.exceptions import LLMServiceError, ValidationError
from cardsavvy.domain.llm_parsing import Fallback, parse_json_reply
from cardsavvy.domain.models import CHAT_CONTEXTS, ChatEntities, ChatMessage, ContextAnalysis, CreditCard
from cardsavvy.domain.ports import LLMClient
from cardsavvy.infrastructure.observability.logging import log_chat_turn, log_llm_fallback
from cardsavvy.infrastructure.observability.metrics import chat_messages_counter, record_llm_fallback
from cardsavvy.infrastructure.storage.base import Storage

ASSISTANT_NAME = "CardConcierge"
REPLY_HISTORY_WINDOW = 20
MAX_MESSAGE_LENGTH = 4000

REPLY_FALLBACK = (
    "I'm sorry, I'm having trouble connecting to my knowledge base. Let me help you with your "
    "travel or shopping needs based on what I know about credit card benefits."
)
EMPTY_REPLY_FALLBACK = "I'm sorry, I couldn't generate a response. Please try again."

logger = logging.getLogger(__name__)

CLASSIFICATION_PROMPT = """
Analyze the following user message in the context of a travel and credit card benefits assistant:

"{message}"

{history_block}

Identify the primary context of the message (flight, hotel, shopping, or general),
the user's intent, how confident you are (0 to 1), a single clarification question if the
request is too ambiguous to act on, and extract any relevant entities like locations, dates,
number of travelers, card preferences, budget constraints, shopping categories, or other
secondary intents.

Respond with JSON in this exact format:
{{
  "context": "flight|hotel|shopping|general",
  "intent": "describe the user's intent here",
  "confidence": 0.0,
  "clarificationQuestion": "question to ask, or null",
  "entities": {{
    "location": "extracted location if any",
    "dates": {{"start": "extracted start date if any", "end": "extracted end date if any"}},
    "travelers": "number of travelers if specified",
    "cardPreference": "any mentioned card preference",
    "budget": "any budget constraints mentioned",
    "category": "shopping category if relevant",
    "secondaryIntents": ["other requests in the same message"]
  }}
}}
"""


def default_analysis(intent: str = "Unknown intent due to error") -> ContextAnalysis:
    return ContextAnalysis(context="general", intent=intent, confidence=0.0)


def _optional_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _optional_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def analysis_from_dict(data: Dict[str, Any]) -> ContextAnalysis:
    """Normalise a classifier reply; unknown contexts become ``general``"""
    context = str(data.get("context", "general")).lower()
    if context not in CHAT_CONTEXTS:
        context = "general"

    try:
        confidence = float(data.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    confidence = max(0.0, min(1.0, confidence))

    raw_entities = data.get("entities") if isinstance(data.get("entities"), dict) else {}
    raw_dates = raw_entities.get("dates") if isinstance(raw_entities.get("dates"), dict) else {}
    dates = {k: _optional_str(raw_dates.get(k)) for k in ("start", "end") if _optional_str(raw_dates.get(k))}
    secondary = raw_entities.get("secondaryIntents") or []

    entities = ChatEntities(
        location=_optional_str(raw_entities.get("location")),
        dates=dates,
        travelers=_optional_int(raw_entities.get("travelers")),
        card_preference=_optional_str(raw_entities.get("cardPreference")),
        budget=_optional_str(raw_entities.get("budget")),
        category=_optional_str(raw_entities.get("category")),
        secondary_intents=[str(s) for s in secondary] if isinstance(secondary, list) else [],
    )

    return ContextAnalysis(
        context=context,
        intent=_optional_str(data.get("intent")) or "General inquiry",
        confidence=confidence,
        clarification_question=_optional_str(data.get("clarificationQuestion")),
        entities=entities,
    )


def welcome_message_text(name: Optional[str]) -> str:
    first_name = name.split()[0] if name and name.strip() else None
    greeting = f"Hello {first_name}!" if first_name else "Hello!"
    return (
        f"{greeting} I'm your {ASSISTANT_NAME}. How can I help you plan your travel or shopping today? "
        "I can help you maximize your credit card benefits."
    )


@dataclass
class ChatTurn:
    user_message: ChatMessage
    ai_message: ChatMessage
    context_analysis: ContextAnalysis


class ConversationalAssistant:
    """Two model calls per turn: intent classification, then a card-aware reply"""

    def __init__(self, llm: LLMClient, storage: Storage, history_window: int = 8):
        self.llm = llm
        self.storage = storage
        self.history_window = history_window

    async def classify_intent(self, message: str, history: List[ChatMessage]) -> ContextAnalysis:
        """Classify ``message`` given the last few turns; never raises on API errors"""
        recent = history[-self.history_window:] if self.history_window > 0 else []
        history_block = ""
        if recent:
            lines = "\n".join(f"{m.role}: {m.content}" for m in recent)
            history_block = f"Recent conversation context:\n{lines}"

        prompt = CLASSIFICATION_PROMPT.format(message=message, history_block=history_block)
        try:
            content = await self.llm.complete(
                [{"role": "user", "content": prompt}],
                temperature=0.3,
                json_mode=True,
            )
        except LLMServiceError as e:
            record_llm_fallback("classification")
            log_llm_fallback("classification", str(e))
            return default_analysis()

        result = parse_json_reply(content, default=None)
        if isinstance(result, Fallback):
            record_llm_fallback("classification")
            log_llm_fallback("classification", result.error, result.raw)
            return default_analysis()
        return analysis_from_dict(result.value)

    def build_system_prompt(self, analysis: ContextAnalysis, cards: List[CreditCard]) -> str:
        if cards:
            card_lines = "\n".join(
                f"- {c.issuer} {c.card_name} ({c.card_type}, {c.points_balance:,} points)" for c in cards
            )
            cards_block = f"The user holds these credit cards:\n{card_lines}\nRefer to these specific cards by name when relevant."
        else:
            cards_block = "The user has not added any credit cards yet; suggest adding one when it would help."

        return (
            f"You are {ASSISTANT_NAME}, an AI-powered travel and shopping assistant that helps users "
            "maximize their credit card benefits.\n"
            "Craft responses as a helpful concierge, focusing on providing personalized travel and shopping recommendations.\n"
            f"Context: {analysis.context}\n"
            f"Intent: {analysis.intent}\n"
            f"{cards_block}\n"
            "Keep responses concise (under 150 words) and focused on the user's request."
        )

    async def generate_reply(
        self,
        analysis: ContextAnalysis,
        history: List[ChatMessage],
        cards: List[CreditCard],
    ) -> str:
        """Conversational reply conditioned on context and cards; fixed text on failure"""
        messages = [{"role": "system", "content": self.build_system_prompt(analysis, cards)}]
        messages.extend({"role": m.role, "content": m.content} for m in history[-REPLY_HISTORY_WINDOW:])

        try:
            content = await self.llm.complete(messages, temperature=0.7, max_tokens=300)
        except LLMServiceError as e:
            record_llm_fallback("reply")
            log_llm_fallback("reply", str(e))
            return REPLY_FALLBACK
        return content.strip() or EMPTY_REPLY_FALLBACK

    def get_history(self, user_id: str) -> List[ChatMessage]:
        return self.storage.get_chat_messages(user_id)

    async def send_message(self, user_id: str, text: str) -> ChatTurn:
        """Persist the user's message, classify it, reply, and persist the reply"""
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Invalid message data", {"message": "Message must not be empty"})
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError("Invalid message data", {"message": f"Message exceeds {MAX_MESSAGE_LENGTH} characters"})

        previous = self.storage.get_chat_messages(user_id)
        user_message = self.storage.create_chat_message(
            ChatMessage(id="", user_id=user_id, role="user", content=text.strip(), timestamp=datetime.utcnow())
        )

        analysis = await self.classify_intent(user_message.content, previous)
        cards = self.storage.get_credit_cards(user_id)
        reply = await self.generate_reply(analysis, previous + [user_message], cards)

        ai_message = self.storage.create_chat_message(
            ChatMessage(id="", user_id=user_id, role="assistant", content=reply, timestamp=datetime.utcnow())
        )

        chat_messages_counter.labels(context=analysis.context).inc()
        log_chat_turn(user_id, analysis.context, analysis.confidence)
        return ChatTurn(user_message=user_message, ai_message=ai_message, context_analysis=analysis)

    def clear_chat(self, user_id: str) -> ChatMessage:
        """Delete every message for ``user_id`` and seed a single welcome message"""
        removed = self.storage.clear_chat_messages(user_id)
        user = self.storage.get_user(user_id)
        welcome = self.storage.create_chat_message(
            ChatMessage(
                id="",
                user_id=user_id,
                role="assistant",
                content=welcome_message_text(user.name if user else None),
                timestamp=datetime.utcnow(),
            )
        )
        logger.info("Chat cleared", extra={"user_id": user_id, "removed_messages": removed})
        return welcome
