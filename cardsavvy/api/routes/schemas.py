"""Pydantic schemas for API request/response validation (camelCase on the wire)"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, serialises camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_domain(cls, entity: Any):
        values = asdict(entity)
        return cls(**{name: values[name] for name in cls.model_fields if name in values})


# Auth

class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    name: str = Field(..., min_length=1)
    picture_url: Optional[str] = None


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SyncRequest(CamelModel):
    """Identity asserted by the external provider after its own login flow"""

    auth0_id: Optional[str] = None
    sub: Optional[str] = None
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    picture: Optional[str] = None


class UserResponse(CamelModel):
    """User without credentials"""

    id: str
    username: str
    email: str
    name: str
    membership_level: str
    auth0_id: Optional[str] = None
    picture_url: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


# Cards

class CardCreateRequest(CamelModel):
    card_name: str = Field(..., min_length=1)
    issuer: str = Field(..., min_length=1)
    card_number: str = Field(..., min_length=1)
    points_balance: int = Field(0, ge=0)
    expire_date: str = Field(..., min_length=1)
    card_type: str = Field(..., min_length=1)
    color: str = "primary"


class CardResponse(CamelModel):
    id: str
    user_id: str
    card_name: str
    issuer: str
    card_number: str
    points_balance: int
    expire_date: str
    card_type: str
    color: str


# Catalog

class FlightResponse(CamelModel):
    id: str
    airline: str
    departure_time: str
    departure_airport: str
    arrival_time: str
    arrival_airport: str
    duration: str
    is_nonstop: bool
    points_required: int
    cash_price: int
    rating: float
    card_benefits: List[str]


class HotelResponse(CamelModel):
    id: str
    name: str
    location: str
    area: str
    rating: float
    review_count: int
    price_per_night: int
    total_price: int
    points_earned: int
    description: str
    image_url: str
    benefits: List[str]
    card_exclusive_offer: str


class ShoppingOfferResponse(CamelModel):
    id: str
    store_name: str
    location: str
    distance_from_hotel: str
    offer_type: str
    offer_value: str
    description: str
    image_url: str
    benefits: List[str]
    valid_through: str
    category: str


# Financial profile

class ShoppingHabitsSchema(CamelModel):
    online: int
    in_store: int


class FinancialProfileResponse(CamelModel):
    user_id: str
    annual_income: float
    credit_score: int
    monthly_spending: Dict[str, float]
    primary_spending_categories: List[str]
    travel_frequency: str
    dining_frequency: str
    preferred_benefits: List[str]
    preferred_airlines: List[str]
    existing_cards: List[str]
    shopping_habits: ShoppingHabitsSchema
    updated_at: datetime


# Recommendations

class CardRecommendationResponse(CamelModel):
    id: Optional[str] = None
    card_name: str
    issuer: str
    card_type: str
    annual_fee: float
    rewards_rate: Dict[str, str]
    signup_bonus: str
    benefits_summary: List[str]
    primary_benefits: List[str]
    match_score: int = Field(..., ge=0, le=100)
    match_reason: str
    created_at: Optional[datetime] = None


# Chat

class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)


class ChatMessageResponse(CamelModel):
    id: str
    user_id: str
    role: str
    content: str
    timestamp: datetime


class ChatTurnResponse(CamelModel):
    user_message: ChatMessageResponse
    ai_message: ChatMessageResponse
    context_analysis: Dict[str, Any]


class ClearChatResponse(CamelModel):
    success: bool = True
    welcome_message: ChatMessageResponse


# Vector index

class VectorIndexStatus(CamelModel):
    success: bool
    message: str
    stats: Optional[Dict[str, Any]] = None
