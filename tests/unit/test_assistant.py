"""Unit tests for the conversational assistant"""

from datetime import datetime

import pytest

from cardsavvy.domain.assistant import (
    EMPTY_REPLY_FALLBACK,
    REPLY_FALLBACK,
    ConversationalAssistant,
    analysis_from_dict,
    welcome_message_text,
)
from cardsavvy.domain.exceptions import ValidationError
from cardsavvy.domain.models import ChatMessage


@pytest.fixture
def assistant(fake_llm, storage) -> ConversationalAssistant:
    return ConversationalAssistant(fake_llm, storage)


def _message(role: str, content: str) -> ChatMessage:
    return ChatMessage(id="", user_id="1", role=role, content=content, timestamp=datetime.utcnow())


async def test_classify_parses_model_reply(assistant, fake_llm):
    analysis = await assistant.classify_intent("Flights to Dubai for two in May", [])

    assert analysis.context == "flight"
    assert analysis.confidence == 0.9
    assert analysis.entities.location == "Dubai"
    assert analysis.entities.travelers == 2
    assert analysis.entities.dates == {"start": "2025-05-01"}
    assert fake_llm.completions[0]["json_mode"] is True
    assert fake_llm.completions[0]["temperature"] == 0.3


async def test_classify_includes_recent_history_only(fake_llm, storage):
    assistant = ConversationalAssistant(fake_llm, storage, history_window=2)
    history = [_message("user", f"message {i}") for i in range(5)]

    await assistant.classify_intent("and hotels?", history)

    prompt = fake_llm.completions[0]["messages"][0]["content"]
    assert "message 3" in prompt and "message 4" in prompt
    assert "message 2" not in prompt


async def test_classify_defaults_to_general_when_model_unavailable(assistant, fake_llm):
    fake_llm.fail_complete = True

    analysis = await assistant.classify_intent("Hi", [])

    assert analysis.context == "general"
    assert analysis.intent == "Unknown intent due to error"
    assert analysis.confidence == 0.0


async def test_classify_defaults_to_general_on_unparseable_reply(assistant, fake_llm):
    fake_llm.reply = lambda messages: "I think this is about flights"

    analysis = await assistant.classify_intent("Hi", [])

    assert analysis.context == "general"
    assert analysis.intent == "Unknown intent due to error"


def test_analysis_from_dict_normalises_unknown_context_and_confidence():
    analysis = analysis_from_dict({"context": "Restaurants", "intent": "Book dinner", "confidence": 3})

    assert analysis.context == "general"
    assert analysis.intent == "Book dinner"
    assert analysis.confidence == 1.0


def test_analysis_from_dict_tolerates_malformed_entities():
    analysis = analysis_from_dict(
        {"context": "HOTEL", "entities": {"travelers": "two", "dates": "next week", "secondaryIntents": "x"}}
    )

    assert analysis.context == "hotel"
    assert analysis.intent == "General inquiry"
    assert analysis.entities.travelers is None
    assert analysis.entities.dates == {}
    assert analysis.entities.secondary_intents == []


def test_reply_prompt_names_the_users_cards(assistant, storage):
    cards = storage.get_credit_cards("1")

    prompt = assistant.build_system_prompt(analysis_from_dict({"context": "flight"}), cards)

    assert "- HDFC Bank Infinia (Signature, 78,450 points)" in prompt
    assert "Emeralde" in prompt
    assert "Elite" in prompt
    assert "Context: flight" in prompt


def test_reply_prompt_without_cards_suggests_adding_one(assistant):
    prompt = assistant.build_system_prompt(analysis_from_dict({}), [])

    assert "not added any credit cards" in prompt


async def test_generate_reply_sends_history_with_system_prompt(assistant, fake_llm):
    history = [_message("user", f"turn {i}") for i in range(25)]

    reply = await assistant.generate_reply(analysis_from_dict({}), history, [])

    call = fake_llm.completions[0]
    assert reply.startswith("Book the Vistara flight")
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 300
    assert call["messages"][0]["role"] == "system"
    assert len(call["messages"]) == 21
    assert call["messages"][-1]["content"] == "turn 24"


async def test_generate_reply_apologises_when_model_unavailable(assistant, fake_llm):
    fake_llm.fail_complete = True

    reply = await assistant.generate_reply(analysis_from_dict({}), [], [])

    assert reply == REPLY_FALLBACK


async def test_generate_reply_empty_content_uses_placeholder(assistant, fake_llm):
    fake_llm.reply = lambda messages: "   "

    reply = await assistant.generate_reply(analysis_from_dict({}), [], [])

    assert reply == EMPTY_REPLY_FALLBACK


async def test_send_message_persists_user_and_assistant_messages(assistant, storage):
    before = len(storage.get_chat_messages("1"))

    turn = await assistant.send_message("1", "  Find me a flight to Dubai  ")

    history = storage.get_chat_messages("1")
    assert len(history) == before + 2
    assert history[-2].role == "user"
    assert history[-2].content == "Find me a flight to Dubai"
    assert history[-1].role == "assistant"
    assert history[-1].content == turn.ai_message.content
    assert turn.context_analysis.context == "flight"


async def test_send_message_still_replies_when_model_unavailable(assistant, fake_llm, storage):
    fake_llm.fail_complete = True

    turn = await assistant.send_message("1", "Hello")

    assert turn.ai_message.content == REPLY_FALLBACK
    assert turn.context_analysis.context == "general"
    assert storage.get_chat_messages("1")[-1].content == REPLY_FALLBACK


@pytest.mark.parametrize("text", ["", "   ", "x" * 4001])
async def test_send_message_rejects_empty_or_oversized_text(assistant, storage, text):
    before = len(storage.get_chat_messages("1"))

    with pytest.raises(ValidationError):
        await assistant.send_message("1", text)

    assert len(storage.get_chat_messages("1")) == before


async def test_clear_chat_leaves_single_personalised_welcome(assistant, storage):
    await assistant.send_message("1", "Hotels in Dubai")

    welcome = assistant.clear_chat("1")

    history = storage.get_chat_messages("1")
    assert len(history) == 1
    assert history[0].id == welcome.id
    assert history[0].role == "assistant"
    assert history[0].content.startswith("Hello James!")


def test_clear_chat_for_unknown_user_uses_generic_greeting(assistant, storage):
    welcome = assistant.clear_chat("999")

    assert welcome.content.startswith("Hello! I'm your CardConcierge.")
    assert len(storage.get_chat_messages("999")) == 1


def test_welcome_message_uses_first_name():
    assert welcome_message_text("Priya Sharma").startswith("Hello Priya!")


@pytest.mark.parametrize("travelers", ['"Infinity"', "1e999", '"NaN"'])
async def test_send_message_survives_non_finite_traveler_count(assistant, fake_llm, travelers):
    original = fake_llm.reply
    fake_llm.reply = lambda messages: original(messages).replace('"travelers": 2', f'"travelers": {travelers}')

    turn = await assistant.send_message("1", "Flights to Dubai for a crowd")

    assert turn.context_analysis.context == "flight"
    assert turn.context_analysis.entities.travelers is None
    assert turn.ai_message.content.startswith("Book the Vistara flight")
