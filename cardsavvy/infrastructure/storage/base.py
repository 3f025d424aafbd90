"""Storage contract shared by the memory, relational and document backends"""

from abc import ABC, abstractmethod
from typing import List, Optional

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


class Storage(ABC):
    """
    CRUD over every persisted entity.

    Lookups return ``None`` (or an empty list) for ordinary absence; only
    backend failures raise. Entity ids are strings on every backend.
    Create methods ignore any ``id`` on the argument and return the stored entity.
    """

    # Users
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_auth0_id(self, auth0_id: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, user: User) -> User: ...

    @abstractmethod
    def update_user(self, user: User) -> Optional[User]: ...

    # Credit cards
    @abstractmethod
    def get_credit_cards(self, user_id: str) -> List[CreditCard]: ...

    @abstractmethod
    def get_credit_card(self, card_id: str) -> Optional[CreditCard]: ...

    @abstractmethod
    def create_credit_card(self, card: CreditCard) -> CreditCard: ...

    @abstractmethod
    def delete_credit_card(self, card_id: str) -> bool: ...

    # Catalog
    @abstractmethod
    def get_flights(self) -> List[Flight]: ...

    @abstractmethod
    def get_flight(self, flight_id: str) -> Optional[Flight]: ...

    @abstractmethod
    def create_flight(self, flight: Flight) -> Flight: ...

    @abstractmethod
    def get_hotels(self) -> List[Hotel]: ...

    @abstractmethod
    def get_hotel(self, hotel_id: str) -> Optional[Hotel]: ...

    @abstractmethod
    def create_hotel(self, hotel: Hotel) -> Hotel: ...

    @abstractmethod
    def get_shopping_offers(self) -> List[ShoppingOffer]: ...

    @abstractmethod
    def get_shopping_offers_by_category(self, category: str) -> List[ShoppingOffer]: ...

    @abstractmethod
    def get_shopping_offer(self, offer_id: str) -> Optional[ShoppingOffer]: ...

    @abstractmethod
    def create_shopping_offer(self, offer: ShoppingOffer) -> ShoppingOffer: ...

    # Chat
    @abstractmethod
    def get_chat_messages(self, user_id: str) -> List[ChatMessage]:
        """Messages for ``user_id`` ordered by timestamp ascending"""

    @abstractmethod
    def create_chat_message(self, message: ChatMessage) -> ChatMessage: ...

    @abstractmethod
    def clear_chat_messages(self, user_id: str) -> int: ...

    # Financial profiles
    @abstractmethod
    def get_financial_profile(self, user_id: str) -> Optional[FinancialProfile]: ...

    @abstractmethod
    def upsert_financial_profile(self, profile: FinancialProfile) -> FinancialProfile: ...

    # Recommendations
    @abstractmethod
    def get_card_recommendations(self, user_id: str) -> List[CardRecommendation]:
        """Stored recommendations ordered by match score descending"""

    @abstractmethod
    def create_card_recommendations(
        self, user_id: str, recommendations: List[CardRecommendation]
    ) -> List[CardRecommendation]: ...

    @abstractmethod
    def delete_card_recommendations(self, user_id: str) -> int: ...
