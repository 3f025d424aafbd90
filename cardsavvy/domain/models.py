"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

FREQUENCIES = ("rarely", "occasionally", "frequently")
CHAT_CONTEXTS = ("flight", "hotel", "shopping", "general")


@dataclass
class ShoppingHabits:
    """Online vs in-store split, in percent (sums to 100)"""

    online: int = 50
    in_store: int = 50


@dataclass
class FinancialProfile:
    """Self-reported income/spending record, one per user"""

    user_id: str
    annual_income: float
    credit_score: int
    monthly_spending: Dict[str, float]
    primary_spending_categories: List[str]
    travel_frequency: str  # rarely | occasionally | frequently
    dining_frequency: str
    preferred_benefits: List[str]
    preferred_airlines: List[str] = field(default_factory=list)
    existing_cards: List[str] = field(default_factory=list)
    shopping_habits: ShoppingHabits = field(default_factory=ShoppingHabits)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class CreditCard:
    """A card held by exactly one user"""

    id: str
    user_id: str
    card_name: str
    issuer: str
    card_number: str  # masked, e.g. "•••• •••• •••• 4578"
    points_balance: int
    expire_date: str
    card_type: str
    color: str = "primary"


@dataclass
class User:
    """Registered or Auth0-synced account"""

    id: str
    username: str
    email: str
    name: str
    password: str = ""
    membership_level: str = "Premium"
    auth0_id: Optional[str] = None
    picture_url: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_login: Optional[datetime] = None


@dataclass
class Flight:
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
    card_benefits: List[str] = field(default_factory=list)


@dataclass
class Hotel:
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
    benefits: List[str] = field(default_factory=list)
    card_exclusive_offer: str = ""


@dataclass
class ShoppingOffer:
    id: str
    store_name: str
    location: str
    distance_from_hotel: str
    offer_type: str
    offer_value: str
    description: str
    image_url: str
    valid_through: str
    category: str
    benefits: List[str] = field(default_factory=list)


@dataclass
class ChatMessage:
    """Single conversation turn, ordered by timestamp"""

    id: str
    user_id: str
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime


@dataclass
class CardCandidate:
    """Card document retrieved from the vector index, with its MITC text"""

    id: str
    card_name: str
    issuer: str
    card_type: str = "General"
    annual_fee: float = 0
    rewards_rate: Dict[str, str] = field(default_factory=dict)
    signup_bonus: str = ""
    benefits_summary: List[str] = field(default_factory=list)
    primary_benefits: List[str] = field(default_factory=list)
    mitc_content: str = ""


@dataclass
class CardRecommendation:
    """Scored candidate returned to the user"""

    card_name: str
    issuer: str
    card_type: str
    annual_fee: float
    rewards_rate: Dict[str, str]
    signup_bonus: str
    benefits_summary: List[str]
    primary_benefits: List[str]
    match_score: int
    match_reason: str
    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class ChatEntities:
    """Entities extracted from a chat message by the intent classifier"""

    location: Optional[str] = None
    dates: Dict[str, Optional[str]] = field(default_factory=dict)
    travelers: Optional[int] = None
    card_preference: Optional[str] = None
    budget: Optional[str] = None
    category: Optional[str] = None
    secondary_intents: List[str] = field(default_factory=list)


@dataclass
class ContextAnalysis:
    """Structured classification of a chat message"""

    context: str  # flight | hotel | shopping | general
    intent: str
    confidence: float = 0.0
    clarification_question: Optional[str] = None
    entities: ChatEntities = field(default_factory=ChatEntities)

    def to_dict(self) -> Dict[str, Any]:
        entities: Dict[str, Any] = {}
        if self.entities.location:
            entities["location"] = self.entities.location
        if self.entities.dates:
            entities["dates"] = self.entities.dates
        if self.entities.travelers is not None:
            entities["travelers"] = self.entities.travelers
        if self.entities.card_preference:
            entities["cardPreference"] = self.entities.card_preference
        if self.entities.budget:
            entities["budget"] = self.entities.budget
        if self.entities.category:
            entities["category"] = self.entities.category
        if self.entities.secondary_intents:
            entities["secondaryIntents"] = self.entities.secondary_intents
        return {
            "context": self.context,
            "intent": self.intent,
            "confidence": self.confidence,
            "clarificationQuestion": self.clarification_question,
            "entities": entities,
        }
