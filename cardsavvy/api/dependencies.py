"""Dependency injection for FastAPI endpoints, including the session/auth gate"""

import logging
from typing import Optional

from fastapi import Depends, Request

from cardsavvy.config import Settings
from cardsavvy.domain.assistant import ConversationalAssistant
from cardsavvy.domain.exceptions import AuthenticationError
from cardsavvy.domain.ports import LLMClient, VectorStore
from cardsavvy.domain.profile import ProfileService
from cardsavvy.domain.recommendations import RecommendationPipeline
from cardsavvy.infrastructure.storage.base import Storage

SESSION_USER_KEY = "userId"
SESSION_AUTH0_KEY = "auth0Id"
USER_HEADER = "X-Auth-User-ID"


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    """Storage backend chosen at startup"""
    return request.app.state.storage


def get_llm_client(request: Request) -> LLMClient:
    return request.app.state.llm


def get_vector_store(request: Request) -> VectorStore:
    return request.app.state.vector_store


def get_profile_service(storage: Storage = Depends(get_storage)) -> ProfileService:
    return ProfileService(storage)


def get_recommendation_pipeline(
    settings: Settings = Depends(get_settings),
    llm: LLMClient = Depends(get_llm_client),
    vector_store: VectorStore = Depends(get_vector_store),
) -> RecommendationPipeline:
    return RecommendationPipeline(
        llm,
        vector_store,
        retrieval_mode=settings.retrieval_mode,
        retrieval_top_k=settings.retrieval_top_k,
        similarity_min_top_k=settings.similarity_min_top_k,
        mitc_excerpt_chars=settings.mitc_excerpt_chars,
        embedding_dimension=settings.embedding_dimension,
    )


def get_assistant(
    settings: Settings = Depends(get_settings),
    llm: LLMClient = Depends(get_llm_client),
    storage: Storage = Depends(get_storage),
) -> ConversationalAssistant:
    return ConversationalAssistant(llm, storage, history_window=settings.chat_history_window)


def _resolve_principal(request: Request, storage: Storage, settings: Settings) -> Optional[str]:
    """
    Session user id, else the trusted user header promoted into the session.

    The header is not verified: any caller able to set it can act as any user.
    It is honoured only while ``trust_user_header`` is enabled.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id:
        return str(user_id)

    if not settings.trust_user_header:
        return None

    header_value = request.headers.get(USER_HEADER)
    if not header_value:
        return None

    user = storage.get_user(header_value) or storage.get_user_by_auth0_id(header_value)
    if user is None:
        return None

    request.session[SESSION_USER_KEY] = user.id
    if user.auth0_id:
        request.session[SESSION_AUTH0_KEY] = user.auth0_id
    logging.warning(
        "Promoted unverified user header into session",
        extra={"user_id": user.id, "request_id": get_request_id(request)},
    )
    return user.id


def require_user_id(
    request: Request,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> str:
    """Authenticated principal or 401"""
    user_id = _resolve_principal(request, storage, settings)
    if user_id is None:
        raise AuthenticationError()
    return user_id


def optional_user_id(
    request: Request,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> str:
    """Authenticated principal, else the configured demo user"""
    return _resolve_principal(request, storage, settings) or settings.demo_user_id
