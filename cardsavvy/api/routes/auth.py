"""Session lifecycle: register, login, logout, current user, external identity sync"""

import logging
import re
import secrets
from datetime import datetime

from fastapi import APIRouter, Depends, Request, status

from cardsavvy.api.dependencies import (
    SESSION_AUTH0_KEY,
    SESSION_USER_KEY,
    get_storage,
    optional_user_id,
    require_user_id,
)
from cardsavvy.api.routes.schemas import LoginRequest, RegisterRequest, SyncRequest, UserResponse
from cardsavvy.domain.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from cardsavvy.domain.models import User
from cardsavvy.domain.passwords import hash_password, verify_password
from cardsavvy.infrastructure.storage.base import Storage

LOGIN_FAILED = "Invalid username or password"

router = APIRouter()


def _start_session(request: Request, user: User) -> None:
    request.session[SESSION_USER_KEY] = user.id
    if user.auth0_id:
        request.session[SESSION_AUTH0_KEY] = user.auth0_id


def _username_from_email(storage: Storage, email: str) -> str:
    """Local part of the email, suffixed with a number until unique"""
    base = re.sub(r"[^a-zA-Z0-9._-]", "", email.split("@")[0]) or "user"
    candidate, suffix = base, 1
    while storage.get_user_by_username(candidate) is not None:
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


@router.post("/auth/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, request: Request, storage: Storage = Depends(get_storage)):
    """Create a local account and log it in"""
    if storage.get_user_by_username(body.username):
        raise ConflictError("Username already exists")
    if storage.get_user_by_email(body.email):
        raise ConflictError("Email already exists")

    user = storage.create_user(
        User(
            id="",
            username=body.username,
            email=body.email,
            name=body.name,
            password=hash_password(body.password),
            picture_url=body.picture_url,
            last_login=datetime.utcnow(),
        )
    )
    _start_session(request, user)
    logging.info("User registered", extra={"user_id": user.id})
    return UserResponse.from_domain(user)


@router.post("/auth/login", response_model=UserResponse)
def login(body: LoginRequest, request: Request, storage: Storage = Depends(get_storage)):
    user = storage.get_user_by_username(body.username)
    if user is None or not verify_password(body.password, user.password):
        raise AuthenticationError(LOGIN_FAILED)

    user.last_login = datetime.utcnow()
    user = storage.update_user(user) or user
    _start_session(request, user)
    return UserResponse.from_domain(user)


@router.post("/auth/logout")
def logout(request: Request):
    request.session.clear()
    return {"message": "Logged out successfully"}


@router.get("/auth/me", response_model=UserResponse)
def me(user_id: str = Depends(require_user_id), storage: Storage = Depends(get_storage)):
    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.from_domain(user)


@router.post("/auth/sync", response_model=UserResponse)
def sync_external_user(body: SyncRequest, request: Request, storage: Storage = Depends(get_storage)):
    """
    Upsert a user from an identity already authenticated by the external provider.

    Matches by provider subject, then by email; otherwise creates the user with
    an unusable random password. The provider token is not verified here.
    """
    auth0_id = body.auth0_id or body.sub
    if not auth0_id:
        raise ValidationError("Invalid user data", {"auth0Id": "auth0Id or sub is required"})

    now = datetime.utcnow()
    user = storage.get_user_by_auth0_id(auth0_id) or storage.get_user_by_email(body.email)
    if user is not None:
        user.auth0_id = auth0_id
        user.name = body.name or user.name
        user.picture_url = body.picture or user.picture_url
        user.last_login = now
        user = storage.update_user(user) or user
    else:
        user = storage.create_user(
            User(
                id="",
                username=_username_from_email(storage, body.email),
                email=body.email,
                name=body.name or body.email.split("@")[0],
                password=hash_password(secrets.token_hex(32)),
                auth0_id=auth0_id,
                picture_url=body.picture,
                last_login=now,
            )
        )
        logging.info("User created from external identity", extra={"user_id": user.id})

    _start_session(request, user)
    return UserResponse.from_domain(user)


@router.get("/user", response_model=UserResponse)
def current_user(user_id: str = Depends(optional_user_id), storage: Storage = Depends(get_storage)):
    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.from_domain(user)
