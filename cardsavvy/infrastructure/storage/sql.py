"""Relational storage backend (SQLAlchemy ORM)"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cardsavvy.domain.exceptions import StorageError
from cardsavvy.domain.models import (
    CardRecommendation,
    ChatMessage,
    CreditCard,
    FinancialProfile,
    Flight,
    Hotel,
    ShoppingHabits,
    ShoppingOffer,
    User,
)
from cardsavvy.infrastructure.database.models import (
    Base,
    CardRecommendationRow,
    ChatMessageRow,
    CreditCardRow,
    FinancialProfileRow,
    FlightRow,
    HotelRow,
    ShoppingOfferRow,
    UserRow,
)
from cardsavvy.infrastructure.database.session import create_db_engine, create_session_factory
from cardsavvy.infrastructure.storage.base import Storage


def _int_id(value: str) -> Optional[int]:
    """Row ids are integers; anything else cannot match a row"""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _user(row: UserRow) -> User:
    return User(
        id=str(row.id),
        username=row.username,
        email=row.email,
        name=row.name,
        password=row.password,
        membership_level=row.membership_level,
        auth0_id=row.auth0_id,
        picture_url=row.picture_url,
        created_at=row.created_at,
        last_login=row.last_login,
    )


def _card(row: CreditCardRow) -> CreditCard:
    return CreditCard(
        id=str(row.id),
        user_id=str(row.user_id),
        card_name=row.card_name,
        issuer=row.issuer,
        card_number=row.card_number,
        points_balance=row.points_balance,
        expire_date=row.expire_date,
        card_type=row.card_type,
        color=row.color,
    )


def _flight(row: FlightRow) -> Flight:
    return Flight(
        id=str(row.id),
        airline=row.airline,
        departure_time=row.departure_time,
        departure_airport=row.departure_airport,
        arrival_time=row.arrival_time,
        arrival_airport=row.arrival_airport,
        duration=row.duration,
        is_nonstop=row.is_nonstop,
        points_required=row.points_required,
        cash_price=row.cash_price,
        rating=row.rating,
        card_benefits=list(row.card_benefits or []),
    )


def _hotel(row: HotelRow) -> Hotel:
    return Hotel(
        id=str(row.id),
        name=row.name,
        location=row.location,
        area=row.area,
        rating=row.rating,
        review_count=row.review_count,
        price_per_night=row.price_per_night,
        total_price=row.total_price,
        points_earned=row.points_earned,
        description=row.description,
        image_url=row.image_url,
        benefits=list(row.benefits or []),
        card_exclusive_offer=row.card_exclusive_offer,
    )


def _offer(row: ShoppingOfferRow) -> ShoppingOffer:
    return ShoppingOffer(
        id=str(row.id),
        store_name=row.store_name,
        location=row.location,
        distance_from_hotel=row.distance_from_hotel,
        offer_type=row.offer_type,
        offer_value=row.offer_value,
        description=row.description,
        image_url=row.image_url,
        valid_through=row.valid_through,
        category=row.category,
        benefits=list(row.benefits or []),
    )


def _message(row: ChatMessageRow) -> ChatMessage:
    return ChatMessage(
        id=str(row.id),
        user_id=str(row.user_id),
        role=row.role,
        content=row.content,
        timestamp=row.timestamp,
    )


def _profile(row: FinancialProfileRow) -> FinancialProfile:
    return FinancialProfile(
        user_id=str(row.user_id),
        annual_income=row.annual_income,
        credit_score=row.credit_score,
        monthly_spending=dict(row.monthly_spending or {}),
        primary_spending_categories=list(row.primary_spending_categories or []),
        travel_frequency=row.travel_frequency,
        dining_frequency=row.dining_frequency,
        preferred_benefits=list(row.preferred_benefits or []),
        preferred_airlines=list(row.preferred_airlines or []),
        existing_cards=list(row.existing_cards or []),
        shopping_habits=ShoppingHabits(online=row.shopping_online, in_store=row.shopping_in_store),
        updated_at=row.updated_at,
    )


def _recommendation(row: CardRecommendationRow) -> CardRecommendation:
    return CardRecommendation(
        id=str(row.id),
        user_id=str(row.user_id),
        card_name=row.card_name,
        issuer=row.issuer,
        card_type=row.card_type,
        annual_fee=row.annual_fee,
        rewards_rate=dict(row.rewards_rate or {}),
        signup_bonus=row.signup_bonus,
        benefits_summary=list(row.benefits_summary or []),
        primary_benefits=list(row.primary_benefits or []),
        match_score=row.match_score,
        match_reason=row.match_reason,
        created_at=row.created_at,
    )


class SqlStorage(Storage):
    """Storage over any SQLAlchemy-supported database; never seeds data"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str, create_tables: bool = True) -> "SqlStorage":
        engine = create_db_engine(database_url)
        if create_tables:
            Base.metadata.create_all(bind=engine)
        return cls(create_session_factory(engine))

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Unit of work: commit on success, rollback and raise StorageError on failure"""
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logging.error(f"Database error: {e}", extra={"step": "storage"})
            raise StorageError(str(e)) from e
        finally:
            db.close()

    # Users

    def get_user(self, user_id: str) -> Optional[User]:
        row_id = _int_id(user_id)
        if row_id is None:
            return None
        with self._session() as db:
            row = db.get(UserRow, row_id)
            return _user(row) if row else None

    def _find_user(self, **criteria) -> Optional[User]:
        with self._session() as db:
            row = db.query(UserRow).filter_by(**criteria).first()
            return _user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self._find_user(username=username)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._find_user(email=email)

    def get_user_by_auth0_id(self, auth0_id: str) -> Optional[User]:
        return self._find_user(auth0_id=auth0_id)

    def create_user(self, user: User) -> User:
        with self._session() as db:
            row = UserRow(
                username=user.username,
                email=user.email,
                password=user.password,
                name=user.name,
                membership_level=user.membership_level,
                auth0_id=user.auth0_id,
                picture_url=user.picture_url,
                created_at=user.created_at or datetime.utcnow(),
                last_login=user.last_login,
            )
            db.add(row)
            db.flush()  # Get ID without committing
            return _user(row)

    def update_user(self, user: User) -> Optional[User]:
        row_id = _int_id(user.id)
        if row_id is None:
            return None
        with self._session() as db:
            row = db.get(UserRow, row_id)
            if row is None:
                return None
            row.username = user.username
            row.email = user.email
            row.password = user.password
            row.name = user.name
            row.membership_level = user.membership_level
            row.auth0_id = user.auth0_id
            row.picture_url = user.picture_url
            row.last_login = user.last_login
            db.flush()
            return _user(row)

    # Credit cards

    def get_credit_cards(self, user_id: str) -> List[CreditCard]:
        row_id = _int_id(user_id)
        if row_id is None:
            return []
        with self._session() as db:
            rows = db.query(CreditCardRow).filter(CreditCardRow.user_id == row_id).order_by(CreditCardRow.id).all()
            return [_card(r) for r in rows]

    def get_credit_card(self, card_id: str) -> Optional[CreditCard]:
        row_id = _int_id(card_id)
        if row_id is None:
            return None
        with self._session() as db:
            row = db.get(CreditCardRow, row_id)
            return _card(row) if row else None

    def create_credit_card(self, card: CreditCard) -> CreditCard:
        with self._session() as db:
            row = CreditCardRow(
                user_id=int(card.user_id),
                card_name=card.card_name,
                issuer=card.issuer,
                card_number=card.card_number,
                points_balance=card.points_balance,
                expire_date=card.expire_date,
                card_type=card.card_type,
                color=card.color or "primary",
            )
            db.add(row)
            db.flush()
            return _card(row)

    def delete_credit_card(self, card_id: str) -> bool:
        row_id = _int_id(card_id)
        if row_id is None:
            return False
        with self._session() as db:
            return db.query(CreditCardRow).filter(CreditCardRow.id == row_id).delete() > 0

    # Catalog

    def get_flights(self) -> List[Flight]:
        with self._session() as db:
            return [_flight(r) for r in db.query(FlightRow).order_by(FlightRow.id).all()]

    def get_flight(self, flight_id: str) -> Optional[Flight]:
        row_id = _int_id(flight_id)
        if row_id is None:
            return None
        with self._session() as db:
            row = db.get(FlightRow, row_id)
            return _flight(row) if row else None

    def create_flight(self, flight: Flight) -> Flight:
        with self._session() as db:
            row = FlightRow(
                airline=flight.airline,
                departure_time=flight.departure_time,
                departure_airport=flight.departure_airport,
                arrival_time=flight.arrival_time,
                arrival_airport=flight.arrival_airport,
                duration=flight.duration,
                is_nonstop=flight.is_nonstop,
                points_required=flight.points_required,
                cash_price=flight.cash_price,
                rating=flight.rating,
                card_benefits=list(flight.card_benefits),
            )
            db.add(row)
            db.flush()
            return _flight(row)

    def get_hotels(self) -> List[Hotel]:
        with self._session() as db:
            return [_hotel(r) for r in db.query(HotelRow).order_by(HotelRow.id).all()]

    def get_hotel(self, hotel_id: str) -> Optional[Hotel]:
        row_id = _int_id(hotel_id)
        if row_id is None:
            return None
        with self._session() as db:
            row = db.get(HotelRow, row_id)
            return _hotel(row) if row else None

    def create_hotel(self, hotel: Hotel) -> Hotel:
        with self._session() as db:
            row = HotelRow(
                name=hotel.name,
                location=hotel.location,
                area=hotel.area,
                rating=hotel.rating,
                review_count=hotel.review_count,
                price_per_night=hotel.price_per_night,
                total_price=hotel.total_price,
                points_earned=hotel.points_earned,
                description=hotel.description,
                image_url=hotel.image_url,
                benefits=list(hotel.benefits),
                card_exclusive_offer=hotel.card_exclusive_offer,
            )
            db.add(row)
            db.flush()
            return _hotel(row)

    def get_shopping_offers(self) -> List[ShoppingOffer]:
        with self._session() as db:
            return [_offer(r) for r in db.query(ShoppingOfferRow).order_by(ShoppingOfferRow.id).all()]

    def get_shopping_offers_by_category(self, category: str) -> List[ShoppingOffer]:
        with self._session() as db:
            rows = (
                db.query(ShoppingOfferRow)
                .filter(ShoppingOfferRow.category == category)
                .order_by(ShoppingOfferRow.id)
                .all()
            )
            return [_offer(r) for r in rows]

    def get_shopping_offer(self, offer_id: str) -> Optional[ShoppingOffer]:
        row_id = _int_id(offer_id)
        if row_id is None:
            return None
        with self._session() as db:
            row = db.get(ShoppingOfferRow, row_id)
            return _offer(row) if row else None

    def create_shopping_offer(self, offer: ShoppingOffer) -> ShoppingOffer:
        with self._session() as db:
            row = ShoppingOfferRow(
                store_name=offer.store_name,
                location=offer.location,
                distance_from_hotel=offer.distance_from_hotel,
                offer_type=offer.offer_type,
                offer_value=offer.offer_value,
                description=offer.description,
                image_url=offer.image_url,
                benefits=list(offer.benefits),
                valid_through=offer.valid_through,
                category=offer.category,
            )
            db.add(row)
            db.flush()
            return _offer(row)

    # Chat

    def get_chat_messages(self, user_id: str) -> List[ChatMessage]:
        row_id = _int_id(user_id)
        if row_id is None:
            return []
        with self._session() as db:
            rows = (
                db.query(ChatMessageRow)
                .filter(ChatMessageRow.user_id == row_id)
                .order_by(ChatMessageRow.timestamp, ChatMessageRow.id)
                .all()
            )
            return [_message(r) for r in rows]

    def create_chat_message(self, message: ChatMessage) -> ChatMessage:
        with self._session() as db:
            row = ChatMessageRow(
                user_id=int(message.user_id),
                role=message.role,
                content=message.content,
                timestamp=message.timestamp,
            )
            db.add(row)
            db.flush()
            return _message(row)

    def clear_chat_messages(self, user_id: str) -> int:
        row_id = _int_id(user_id)
        if row_id is None:
            return 0
        with self._session() as db:
            return db.query(ChatMessageRow).filter(ChatMessageRow.user_id == row_id).delete()

    # Financial profiles

    def get_financial_profile(self, user_id: str) -> Optional[FinancialProfile]:
        row_id = _int_id(user_id)
        if row_id is None:
            return None
        with self._session() as db:
            row = db.get(FinancialProfileRow, row_id)
            return _profile(row) if row else None

    def upsert_financial_profile(self, profile: FinancialProfile) -> FinancialProfile:
        with self._session() as db:
            row = db.get(FinancialProfileRow, int(profile.user_id))
            if row is None:
                row = FinancialProfileRow(user_id=int(profile.user_id))
                db.add(row)
            row.annual_income = profile.annual_income
            row.credit_score = profile.credit_score
            row.monthly_spending = dict(profile.monthly_spending)
            row.primary_spending_categories = list(profile.primary_spending_categories)
            row.travel_frequency = profile.travel_frequency
            row.dining_frequency = profile.dining_frequency
            row.preferred_benefits = list(profile.preferred_benefits)
            row.preferred_airlines = list(profile.preferred_airlines)
            row.existing_cards = list(profile.existing_cards)
            row.shopping_online = profile.shopping_habits.online
            row.shopping_in_store = profile.shopping_habits.in_store
            row.updated_at = profile.updated_at
            db.flush()
            return _profile(row)

    # Recommendations

    def get_card_recommendations(self, user_id: str) -> List[CardRecommendation]:
        row_id = _int_id(user_id)
        if row_id is None:
            return []
        with self._session() as db:
            rows = (
                db.query(CardRecommendationRow)
                .filter(CardRecommendationRow.user_id == row_id)
                .order_by(CardRecommendationRow.match_score.desc(), CardRecommendationRow.id)
                .all()
            )
            return [_recommendation(r) for r in rows]

    def create_card_recommendations(
        self, user_id: str, recommendations: List[CardRecommendation]
    ) -> List[CardRecommendation]:
        now = datetime.utcnow()
        with self._session() as db:
            rows = [
                CardRecommendationRow(
                    user_id=int(user_id),
                    card_name=r.card_name,
                    issuer=r.issuer,
                    card_type=r.card_type,
                    annual_fee=r.annual_fee,
                    rewards_rate=dict(r.rewards_rate),
                    signup_bonus=r.signup_bonus,
                    benefits_summary=list(r.benefits_summary),
                    primary_benefits=list(r.primary_benefits),
                    match_score=r.match_score,
                    match_reason=r.match_reason,
                    created_at=now,
                )
                for r in recommendations
            ]
            db.add_all(rows)
            db.flush()
            return [_recommendation(r) for r in rows]

    def delete_card_recommendations(self, user_id: str) -> int:
        row_id = _int_id(user_id)
        if row_id is None:
            return 0
        with self._session() as db:
            return (
                db.query(CardRecommendationRow)
                .filter(CardRecommendationRow.user_id == row_id)
                .delete()
            )
