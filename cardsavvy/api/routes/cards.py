"""Credit card CRUD, scoped to the caller (or the demo user)"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from cardsavvy.api.dependencies import get_storage, optional_user_id
from cardsavvy.api.routes.schemas import CardCreateRequest, CardResponse
from cardsavvy.domain.exceptions import NotFoundError
from cardsavvy.domain.models import CreditCard
from cardsavvy.infrastructure.storage.base import Storage

router = APIRouter()


def _owned_card(storage: Storage, card_id: str, user_id: str) -> CreditCard:
    card = storage.get_credit_card(card_id)
    if card is None or card.user_id != user_id:
        raise NotFoundError("Card not found")
    return card


@router.get("/cards", response_model=List[CardResponse])
def list_cards(user_id: str = Depends(optional_user_id), storage: Storage = Depends(get_storage)):
    return [CardResponse.from_domain(c) for c in storage.get_credit_cards(user_id)]


@router.get("/cards/{card_id}", response_model=CardResponse)
def get_card(card_id: str, user_id: str = Depends(optional_user_id), storage: Storage = Depends(get_storage)):
    return CardResponse.from_domain(_owned_card(storage, card_id, user_id))


@router.post("/cards", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
def add_card(
    body: CardCreateRequest,
    user_id: str = Depends(optional_user_id),
    storage: Storage = Depends(get_storage),
):
    card = storage.create_credit_card(CreditCard(id="", user_id=user_id, **body.model_dump()))
    logging.info("Credit card added", extra={"user_id": user_id, "card_id": card.id})
    return CardResponse.from_domain(card)


@router.delete("/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_card(card_id: str, user_id: str = Depends(optional_user_id), storage: Storage = Depends(get_storage)):
    _owned_card(storage, card_id, user_id)
    if not storage.delete_credit_card(card_id):
        raise NotFoundError("Card not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
