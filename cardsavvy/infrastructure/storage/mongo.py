"""Document storage backend (pymongo).

A user document embeds the financial profile and the user's credit cards;
catalog entities, chat messages and recommendations live in their own
collections keyed by the user's id string.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

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
from cardsavvy.infrastructure.storage.base import Storage


def _object_id(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if value and ObjectId.is_valid(value) else None


def get_database(client: MongoClient, db_name: Optional[str] = None) -> Database:
    if db_name:
        return client[db_name]
    database = client.get_default_database()
    if database is None:
        raise RuntimeError("Database name must be provided via connection string or MONGODB_DB")
    return database


def ensure_indexes(database: Database) -> None:
    users = database["users"]
    users.create_index([("username", ASCENDING)], unique=True)
    users.create_index([("email", ASCENDING)], unique=True)
    users.create_index([("auth0Id", ASCENDING)], unique=True, sparse=True)
    users.create_index([("creditCards._id", ASCENDING)])

    database["chat_messages"].create_index([("userId", ASCENDING), ("timestamp", ASCENDING)])
    database["card_recommendations"].create_index([("userId", ASCENDING), ("matchScore", DESCENDING)])
    database["shopping_offers"].create_index([("category", ASCENDING)])


def _user(doc: Dict[str, Any]) -> User:
    return User(
        id=str(doc["_id"]),
        username=doc["username"],
        email=doc["email"],
        name=doc.get("name", ""),
        password=doc.get("password", ""),
        membership_level=doc.get("membershipLevel", "Premium"),
        auth0_id=doc.get("auth0Id"),
        picture_url=doc.get("pictureUrl"),
        created_at=doc.get("createdAt") or datetime.utcnow(),
        last_login=doc.get("lastLogin"),
    )


def _card(doc: Dict[str, Any], user_id: str) -> CreditCard:
    return CreditCard(
        id=str(doc["_id"]),
        user_id=user_id,
        card_name=doc["cardName"],
        issuer=doc["issuer"],
        card_number=doc["cardNumber"],
        points_balance=doc["pointsBalance"],
        expire_date=doc["expireDate"],
        card_type=doc["cardType"],
        color=doc.get("color") or "primary",
    )


def _profile(doc: Dict[str, Any], user_id: str) -> FinancialProfile:
    habits = doc.get("shoppingHabits") or {}
    return FinancialProfile(
        user_id=user_id,
        annual_income=doc["annualIncome"],
        credit_score=doc["creditScore"],
        monthly_spending=dict(doc.get("monthlySpending") or {}),
        primary_spending_categories=list(doc.get("primarySpendingCategories") or []),
        travel_frequency=doc["travelFrequency"],
        dining_frequency=doc["diningFrequency"],
        preferred_benefits=list(doc.get("preferredBenefits") or []),
        preferred_airlines=list(doc.get("preferredAirlines") or []),
        existing_cards=list(doc.get("existingCards") or []),
        shopping_habits=ShoppingHabits(online=habits.get("online", 50), in_store=habits.get("inStore", 50)),
        updated_at=doc.get("updatedAt") or datetime.utcnow(),
    )


def _flight(doc: Dict[str, Any]) -> Flight:
    return Flight(
        id=str(doc["_id"]),
        airline=doc["airline"],
        departure_time=doc["departureTime"],
        departure_airport=doc["departureAirport"],
        arrival_time=doc["arrivalTime"],
        arrival_airport=doc["arrivalAirport"],
        duration=doc["duration"],
        is_nonstop=doc["isNonstop"],
        points_required=doc["pointsRequired"],
        cash_price=doc["cashPrice"],
        rating=doc["rating"],
        card_benefits=list(doc.get("cardBenefits") or []),
    )


def _hotel(doc: Dict[str, Any]) -> Hotel:
    return Hotel(
        id=str(doc["_id"]),
        name=doc["name"],
        location=doc["location"],
        area=doc["area"],
        rating=doc["rating"],
        review_count=doc["reviewCount"],
        price_per_night=doc["pricePerNight"],
        total_price=doc["totalPrice"],
        points_earned=doc["pointsEarned"],
        description=doc["description"],
        image_url=doc["imageUrl"],
        benefits=list(doc.get("benefits") or []),
        card_exclusive_offer=doc.get("cardExclusiveOffer", ""),
    )


def _offer(doc: Dict[str, Any]) -> ShoppingOffer:
    return ShoppingOffer(
        id=str(doc["_id"]),
        store_name=doc["storeName"],
        location=doc["location"],
        distance_from_hotel=doc["distanceFromHotel"],
        offer_type=doc["offerType"],
        offer_value=doc["offerValue"],
        description=doc["description"],
        image_url=doc["imageUrl"],
        valid_through=doc["validThrough"],
        category=doc["category"],
        benefits=list(doc.get("benefits") or []),
    )


def _message(doc: Dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=str(doc["_id"]),
        user_id=doc["userId"],
        role=doc["role"],
        content=doc["content"],
        timestamp=doc["timestamp"],
    )


def _recommendation(doc: Dict[str, Any]) -> CardRecommendation:
    return CardRecommendation(
        id=str(doc["_id"]),
        user_id=doc["userId"],
        card_name=doc["cardName"],
        issuer=doc["issuer"],
        card_type=doc["cardType"],
        annual_fee=doc.get("annualFee", 0),
        rewards_rate=dict(doc.get("rewardsRate") or {}),
        signup_bonus=doc.get("signupBonus", ""),
        benefits_summary=list(doc.get("benefitsSummary") or []),
        primary_benefits=list(doc.get("primaryBenefits") or []),
        match_score=doc["matchScore"],
        match_reason=doc["matchReason"],
        created_at=doc.get("createdAt"),
    )


class MongoStorage(Storage):
    """Storage over a MongoDB database; never seeds data"""

    def __init__(self, database: Database):
        self.db = database
        self.users = database["users"]
        self.flights = database["flights"]
        self.hotels = database["hotels"]
        self.shopping_offers = database["shopping_offers"]
        self.chat_messages = database["chat_messages"]
        self.recommendations = database["card_recommendations"]

    @classmethod
    def from_uri(cls, uri: str, db_name: Optional[str] = None) -> "MongoStorage":
        database = get_database(MongoClient(uri), db_name)
        ensure_indexes(database)
        return cls(database)

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except PyMongoError as e:
            logging.error(f"MongoDB error: {e}", extra={"step": "storage"})
            raise StorageError(str(e)) from e

    # Users

    def get_user(self, user_id: str) -> Optional[User]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        with self._guard():
            doc = self.users.find_one({"_id": oid})
        return _user(doc) if doc else None

    def _find_user(self, query: Dict[str, Any]) -> Optional[User]:
        with self._guard():
            doc = self.users.find_one(query)
        return _user(doc) if doc else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self._find_user({"username": username})

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._find_user({"email": email})

    def get_user_by_auth0_id(self, auth0_id: str) -> Optional[User]:
        return self._find_user({"auth0Id": auth0_id})

    def create_user(self, user: User) -> User:
        doc = {
            "username": user.username,
            "email": user.email,
            "password": user.password,
            "name": user.name,
            "membershipLevel": user.membership_level,
            "pictureUrl": user.picture_url,
            "createdAt": user.created_at or datetime.utcnow(),
            "lastLogin": user.last_login,
            "creditCards": [],
        }
        if user.auth0_id:
            doc["auth0Id"] = user.auth0_id
        with self._guard():
            result = self.users.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _user(doc)

    def update_user(self, user: User) -> Optional[User]:
        oid = _object_id(user.id)
        if oid is None:
            return None
        updates = {
            "username": user.username,
            "email": user.email,
            "password": user.password,
            "name": user.name,
            "membershipLevel": user.membership_level,
            "pictureUrl": user.picture_url,
            "lastLogin": user.last_login,
        }
        if user.auth0_id:
            updates["auth0Id"] = user.auth0_id
        with self._guard():
            result = self.users.update_one({"_id": oid}, {"$set": updates})
        if result.matched_count == 0:
            return None
        return self.get_user(user.id)

    # Credit cards

    def get_credit_cards(self, user_id: str) -> List[CreditCard]:
        oid = _object_id(user_id)
        if oid is None:
            return []
        with self._guard():
            doc = self.users.find_one({"_id": oid}, {"creditCards": 1})
        if not doc:
            return []
        return [_card(c, user_id) for c in doc.get("creditCards") or []]

    def get_credit_card(self, card_id: str) -> Optional[CreditCard]:
        oid = _object_id(card_id)
        if oid is None:
            return None
        with self._guard():
            doc = self.users.find_one({"creditCards._id": oid}, {"creditCards": 1})
        if not doc:
            return None
        card = next((c for c in doc["creditCards"] if c["_id"] == oid), None)
        return _card(card, str(doc["_id"])) if card else None

    def create_credit_card(self, card: CreditCard) -> CreditCard:
        """
        Append a card to the owner's document.

        Raises:
            StorageError: If the owning user does not exist
        """
        owner = _object_id(card.user_id)
        embedded = {
            "_id": ObjectId(),
            "cardName": card.card_name,
            "issuer": card.issuer,
            "cardNumber": card.card_number,
            "pointsBalance": card.points_balance,
            "expireDate": card.expire_date,
            "cardType": card.card_type,
            "color": card.color or "primary",
        }
        with self._guard():
            result = self.users.update_one({"_id": owner}, {"$push": {"creditCards": embedded}})
        if owner is None or result.matched_count == 0:
            raise StorageError(f"User with ID {card.user_id} not found")
        return _card(embedded, card.user_id)

    def delete_credit_card(self, card_id: str) -> bool:
        oid = _object_id(card_id)
        if oid is None:
            return False
        with self._guard():
            result = self.users.update_one(
                {"creditCards._id": oid},
                {"$pull": {"creditCards": {"_id": oid}}},
            )
        return result.modified_count > 0

    # Catalog

    def _insert(self, collection, doc: Dict[str, Any]) -> Dict[str, Any]:
        with self._guard():
            result = collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def _find_by_id(self, collection, entity_id: str) -> Optional[Dict[str, Any]]:
        oid = _object_id(entity_id)
        if oid is None:
            return None
        with self._guard():
            return collection.find_one({"_id": oid})

    def get_flights(self) -> List[Flight]:
        with self._guard():
            return [_flight(d) for d in self.flights.find().sort("_id", ASCENDING)]

    def get_flight(self, flight_id: str) -> Optional[Flight]:
        doc = self._find_by_id(self.flights, flight_id)
        return _flight(doc) if doc else None

    def create_flight(self, flight: Flight) -> Flight:
        return _flight(self._insert(self.flights, {
            "airline": flight.airline,
            "departureTime": flight.departure_time,
            "departureAirport": flight.departure_airport,
            "arrivalTime": flight.arrival_time,
            "arrivalAirport": flight.arrival_airport,
            "duration": flight.duration,
            "isNonstop": flight.is_nonstop,
            "pointsRequired": flight.points_required,
            "cashPrice": flight.cash_price,
            "rating": flight.rating,
            "cardBenefits": list(flight.card_benefits),
        }))

    def get_hotels(self) -> List[Hotel]:
        with self._guard():
            return [_hotel(d) for d in self.hotels.find().sort("_id", ASCENDING)]

    def get_hotel(self, hotel_id: str) -> Optional[Hotel]:
        doc = self._find_by_id(self.hotels, hotel_id)
        return _hotel(doc) if doc else None

    def create_hotel(self, hotel: Hotel) -> Hotel:
        return _hotel(self._insert(self.hotels, {
            "name": hotel.name,
            "location": hotel.location,
            "area": hotel.area,
            "rating": hotel.rating,
            "reviewCount": hotel.review_count,
            "pricePerNight": hotel.price_per_night,
            "totalPrice": hotel.total_price,
            "pointsEarned": hotel.points_earned,
            "description": hotel.description,
            "imageUrl": hotel.image_url,
            "benefits": list(hotel.benefits),
            "cardExclusiveOffer": hotel.card_exclusive_offer,
        }))

    def get_shopping_offers(self) -> List[ShoppingOffer]:
        with self._guard():
            return [_offer(d) for d in self.shopping_offers.find().sort("_id", ASCENDING)]

    def get_shopping_offers_by_category(self, category: str) -> List[ShoppingOffer]:
        with self._guard():
            docs = self.shopping_offers.find({"category": category}).sort("_id", ASCENDING)
            return [_offer(d) for d in docs]

    def get_shopping_offer(self, offer_id: str) -> Optional[ShoppingOffer]:
        doc = self._find_by_id(self.shopping_offers, offer_id)
        return _offer(doc) if doc else None

    def create_shopping_offer(self, offer: ShoppingOffer) -> ShoppingOffer:
        return _offer(self._insert(self.shopping_offers, {
            "storeName": offer.store_name,
            "location": offer.location,
            "distanceFromHotel": offer.distance_from_hotel,
            "offerType": offer.offer_type,
            "offerValue": offer.offer_value,
            "description": offer.description,
            "imageUrl": offer.image_url,
            "benefits": list(offer.benefits),
            "validThrough": offer.valid_through,
            "category": offer.category,
        }))

    # Chat

    def get_chat_messages(self, user_id: str) -> List[ChatMessage]:
        with self._guard():
            docs = self.chat_messages.find({"userId": str(user_id)}).sort(
                [("timestamp", ASCENDING), ("_id", ASCENDING)]
            )
            return [_message(d) for d in docs]

    def create_chat_message(self, message: ChatMessage) -> ChatMessage:
        return _message(self._insert(self.chat_messages, {
            "userId": str(message.user_id),
            "role": message.role,
            "content": message.content,
            "timestamp": message.timestamp,
        }))

    def clear_chat_messages(self, user_id: str) -> int:
        with self._guard():
            return self.chat_messages.delete_many({"userId": str(user_id)}).deleted_count

    # Financial profiles

    def get_financial_profile(self, user_id: str) -> Optional[FinancialProfile]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        with self._guard():
            doc = self.users.find_one({"_id": oid}, {"financialProfile": 1})
        if not doc or not doc.get("financialProfile"):
            return None
        return _profile(doc["financialProfile"], user_id)

    def upsert_financial_profile(self, profile: FinancialProfile) -> FinancialProfile:
        """
        Replace the profile embedded in the user's document.

        Raises:
            StorageError: If the owning user does not exist
        """
        oid = _object_id(profile.user_id)
        embedded = {
            "annualIncome": profile.annual_income,
            "creditScore": profile.credit_score,
            "monthlySpending": dict(profile.monthly_spending),
            "primarySpendingCategories": list(profile.primary_spending_categories),
            "travelFrequency": profile.travel_frequency,
            "diningFrequency": profile.dining_frequency,
            "preferredBenefits": list(profile.preferred_benefits),
            "preferredAirlines": list(profile.preferred_airlines),
            "existingCards": list(profile.existing_cards),
            "shoppingHabits": {"online": profile.shopping_habits.online, "inStore": profile.shopping_habits.in_store},
            "updatedAt": profile.updated_at,
        }
        with self._guard():
            result = self.users.update_one({"_id": oid}, {"$set": {"financialProfile": embedded}})
        if oid is None or result.matched_count == 0:
            raise StorageError(f"User with ID {profile.user_id} not found")
        return _profile(embedded, profile.user_id)

    # Recommendations

    def get_card_recommendations(self, user_id: str) -> List[CardRecommendation]:
        with self._guard():
            docs = self.recommendations.find({"userId": str(user_id)}).sort(
                [("matchScore", DESCENDING), ("_id", ASCENDING)]
            )
            return [_recommendation(d) for d in docs]

    def create_card_recommendations(
        self, user_id: str, recommendations: List[CardRecommendation]
    ) -> List[CardRecommendation]:
        if not recommendations:
            return []
        now = datetime.utcnow()
        docs = [
            {
                "userId": str(user_id),
                "cardName": r.card_name,
                "issuer": r.issuer,
                "cardType": r.card_type,
                "annualFee": r.annual_fee,
                "rewardsRate": dict(r.rewards_rate),
                "signupBonus": r.signup_bonus,
                "benefitsSummary": list(r.benefits_summary),
                "primaryBenefits": list(r.primary_benefits),
                "matchScore": r.match_score,
                "matchReason": r.match_reason,
                "createdAt": now,
            }
            for r in recommendations
        ]
        with self._guard():
            self.recommendations.insert_many(docs)
        return [_recommendation(d) for d in docs]

    def delete_card_recommendations(self, user_id: str) -> int:
        with self._guard():
            return self.recommendations.delete_many({"userId": str(user_id)}).deleted_count
