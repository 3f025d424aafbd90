"""In-memory storage backend for demos and tests"""

import copy
from datetime import datetime
from itertools import count
from typing import Dict, List, Optional

from cardsavvy.domain.models import (
    CardRecommendation,
    ChatMessage,
    CreditCard,
    FinancialProfile,
    Flight,
    Hotel,
    ShoppingOffer,
    User,
)
from cardsavvy.infrastructure.storage.base import Storage
from cardsavvy.infrastructure.storage.seed import seed_demo_data


class MemStorage(Storage):
    """
    Dict-backed storage with per-entity integer id counters.

    Entities are copied on the way in and out so callers never mutate stored state.
    No method awaits, so request handlers cannot interleave inside an operation.
    """

    def __init__(self, seed: bool = True):
        self.users: Dict[str, User] = {}
        self.credit_cards: Dict[str, CreditCard] = {}
        self.flights: Dict[str, Flight] = {}
        self.hotels: Dict[str, Hotel] = {}
        self.shopping_offers: Dict[str, ShoppingOffer] = {}
        self.chat_messages: Dict[str, ChatMessage] = {}
        self.profiles: Dict[str, FinancialProfile] = {}
        self.recommendations: Dict[str, CardRecommendation] = {}
        self._ids = {
            name: count(1)
            for name in ("user", "card", "flight", "hotel", "offer", "message", "recommendation")
        }
        if seed:
            seed_demo_data(self)

    def _next_id(self, kind: str) -> str:
        return str(next(self._ids[kind]))

    @staticmethod
    def _copy(entity):
        return copy.deepcopy(entity) if entity is not None else None

    # Users

    def get_user(self, user_id: str) -> Optional[User]:
        return self._copy(self.users.get(str(user_id)))

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self._copy(next((u for u in self.users.values() if u.username == username), None))

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._copy(next((u for u in self.users.values() if u.email == email), None))

    def get_user_by_auth0_id(self, auth0_id: str) -> Optional[User]:
        return self._copy(next((u for u in self.users.values() if u.auth0_id == auth0_id), None))

    def create_user(self, user: User) -> User:
        stored = copy.deepcopy(user)
        stored.id = self._next_id("user")
        self.users[stored.id] = stored
        return self._copy(stored)

    def update_user(self, user: User) -> Optional[User]:
        if user.id not in self.users:
            return None
        self.users[user.id] = copy.deepcopy(user)
        return self._copy(user)

    # Credit cards

    def get_credit_cards(self, user_id: str) -> List[CreditCard]:
        return [self._copy(c) for c in self.credit_cards.values() if c.user_id == str(user_id)]

    def get_credit_card(self, card_id: str) -> Optional[CreditCard]:
        return self._copy(self.credit_cards.get(str(card_id)))

    def create_credit_card(self, card: CreditCard) -> CreditCard:
        stored = copy.deepcopy(card)
        stored.id = self._next_id("card")
        stored.color = stored.color or "primary"
        self.credit_cards[stored.id] = stored
        return self._copy(stored)

    def delete_credit_card(self, card_id: str) -> bool:
        return self.credit_cards.pop(str(card_id), None) is not None

    # Catalog

    def get_flights(self) -> List[Flight]:
        return [self._copy(f) for f in self.flights.values()]

    def get_flight(self, flight_id: str) -> Optional[Flight]:
        return self._copy(self.flights.get(str(flight_id)))

    def create_flight(self, flight: Flight) -> Flight:
        stored = copy.deepcopy(flight)
        stored.id = self._next_id("flight")
        self.flights[stored.id] = stored
        return self._copy(stored)

    def get_hotels(self) -> List[Hotel]:
        return [self._copy(h) for h in self.hotels.values()]

    def get_hotel(self, hotel_id: str) -> Optional[Hotel]:
        return self._copy(self.hotels.get(str(hotel_id)))

    def create_hotel(self, hotel: Hotel) -> Hotel:
        stored = copy.deepcopy(hotel)
        stored.id = self._next_id("hotel")
        self.hotels[stored.id] = stored
        return self._copy(stored)

    def get_shopping_offers(self) -> List[ShoppingOffer]:
        return [self._copy(o) for o in self.shopping_offers.values()]

    def get_shopping_offers_by_category(self, category: str) -> List[ShoppingOffer]:
        return [self._copy(o) for o in self.shopping_offers.values() if o.category == category]

    def get_shopping_offer(self, offer_id: str) -> Optional[ShoppingOffer]:
        return self._copy(self.shopping_offers.get(str(offer_id)))

    def create_shopping_offer(self, offer: ShoppingOffer) -> ShoppingOffer:
        stored = copy.deepcopy(offer)
        stored.id = self._next_id("offer")
        self.shopping_offers[stored.id] = stored
        return self._copy(stored)

    # Chat

    def get_chat_messages(self, user_id: str) -> List[ChatMessage]:
        messages = [m for m in self.chat_messages.values() if m.user_id == str(user_id)]
        return [self._copy(m) for m in sorted(messages, key=lambda m: m.timestamp)]

    def create_chat_message(self, message: ChatMessage) -> ChatMessage:
        stored = copy.deepcopy(message)
        stored.id = self._next_id("message")
        self.chat_messages[stored.id] = stored
        return self._copy(stored)

    def clear_chat_messages(self, user_id: str) -> int:
        doomed = [mid for mid, m in self.chat_messages.items() if m.user_id == str(user_id)]
        for message_id in doomed:
            del self.chat_messages[message_id]
        return len(doomed)

    # Financial profiles

    def get_financial_profile(self, user_id: str) -> Optional[FinancialProfile]:
        return self._copy(self.profiles.get(str(user_id)))

    def upsert_financial_profile(self, profile: FinancialProfile) -> FinancialProfile:
        self.profiles[str(profile.user_id)] = copy.deepcopy(profile)
        return self._copy(profile)

    # Recommendations

    def get_card_recommendations(self, user_id: str) -> List[CardRecommendation]:
        stored = [r for r in self.recommendations.values() if r.user_id == str(user_id)]
        return [self._copy(r) for r in sorted(stored, key=lambda r: r.match_score, reverse=True)]

    def create_card_recommendations(
        self, user_id: str, recommendations: List[CardRecommendation]
    ) -> List[CardRecommendation]:
        created = []
        now = datetime.utcnow()
        for recommendation in recommendations:
            stored = copy.deepcopy(recommendation)
            stored.id = self._next_id("recommendation")
            stored.user_id = str(user_id)
            stored.created_at = now
            self.recommendations[stored.id] = stored
            created.append(self._copy(stored))
        return created

    def delete_card_recommendations(self, user_id: str) -> int:
        doomed = [rid for rid, r in self.recommendations.items() if r.user_id == str(user_id)]
        for recommendation_id in doomed:
            del self.recommendations[recommendation_id]
        return len(doomed)
