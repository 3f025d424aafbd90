"""Conversational assistant endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from cardsavvy.api.dependencies import get_assistant, optional_user_id
from cardsavvy.api.routes.schemas import ChatMessageResponse, ChatRequest, ChatTurnResponse, ClearChatResponse
from cardsavvy.domain.assistant import ConversationalAssistant

router = APIRouter()


@router.get("/chat", response_model=List[ChatMessageResponse])
def get_chat_history(
    user_id: str = Depends(optional_user_id),
    assistant: ConversationalAssistant = Depends(get_assistant),
):
    return [ChatMessageResponse.from_domain(m) for m in assistant.get_history(user_id)]


@router.post("/chat", response_model=ChatTurnResponse)
async def send_chat_message(
    body: ChatRequest,
    user_id: str = Depends(optional_user_id),
    assistant: ConversationalAssistant = Depends(get_assistant),
):
    """
    Store the user's message and the assistant's reply.

    Model failures produce a fixed reply rather than an error response.
    """
    turn = await assistant.send_message(user_id, body.message)
    return ChatTurnResponse(
        user_message=ChatMessageResponse.from_domain(turn.user_message),
        ai_message=ChatMessageResponse.from_domain(turn.ai_message),
        context_analysis=turn.context_analysis.to_dict(),
    )


@router.delete("/chat", response_model=ClearChatResponse)
def clear_chat(
    user_id: str = Depends(optional_user_id),
    assistant: ConversationalAssistant = Depends(get_assistant),
):
    welcome = assistant.clear_chat(user_id)
    return ClearChatResponse(welcome_message=ChatMessageResponse.from_domain(welcome))
