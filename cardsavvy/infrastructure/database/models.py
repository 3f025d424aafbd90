"""SQLAlchemy ORM models for the relational storage backend"""

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class UserRow(Base):
    """Registered or Auth0-synced account"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False, unique=True)
    password = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    membership_level = Column(Text, nullable=False, default="Premium")
    auth0_id = Column(Text, nullable=True, unique=True, index=True)
    picture_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_login = Column(DateTime(timezone=True), nullable=True)


class CreditCardRow(Base):
    """Card held by one user"""

    __tablename__ = "credit_cards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    card_name = Column(Text, nullable=False)
    issuer = Column(Text, nullable=False)
    card_number = Column(Text, nullable=False)
    points_balance = Column(Integer, nullable=False)
    expire_date = Column(Text, nullable=False)
    card_type = Column(Text, nullable=False)
    color = Column(Text, nullable=False, default="primary")


class FlightRow(Base):
    __tablename__ = "flights"

    id = Column(Integer, primary_key=True, autoincrement=True)
    airline = Column(Text, nullable=False)
    departure_time = Column(Text, nullable=False)
    departure_airport = Column(Text, nullable=False)
    arrival_time = Column(Text, nullable=False)
    arrival_airport = Column(Text, nullable=False)
    duration = Column(Text, nullable=False)
    is_nonstop = Column(Boolean, nullable=False)
    points_required = Column(Integer, nullable=False)
    cash_price = Column(Integer, nullable=False)
    rating = Column(Float, nullable=False)
    card_benefits = Column(JSON, nullable=False)


class HotelRow(Base):
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    location = Column(Text, nullable=False)
    area = Column(Text, nullable=False)
    rating = Column(Float, nullable=False)
    review_count = Column(Integer, nullable=False)
    price_per_night = Column(Integer, nullable=False)
    total_price = Column(Integer, nullable=False)
    points_earned = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    benefits = Column(JSON, nullable=False)
    card_exclusive_offer = Column(Text, nullable=False)


class ShoppingOfferRow(Base):
    __tablename__ = "shopping_offers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_name = Column(Text, nullable=False)
    location = Column(Text, nullable=False)
    distance_from_hotel = Column(Text, nullable=False)
    offer_type = Column(Text, nullable=False)
    offer_value = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    benefits = Column(JSON, nullable=False)
    valid_through = Column(Text, nullable=False)
    category = Column(Text, nullable=False, index=True)


class ChatMessageRow(Base):
    """Append-only conversation log, cleared per user"""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    role = Column(Text, nullable=False)  # 'user' or 'assistant'
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)


class FinancialProfileRow(Base):
    """One profile per user; list and map fields stored as JSON"""

    __tablename__ = "financial_profiles"

    user_id = Column(Integer, primary_key=True, autoincrement=False)
    annual_income = Column(Float, nullable=False)
    credit_score = Column(Integer, nullable=False)
    monthly_spending = Column(JSON, nullable=False)
    primary_spending_categories = Column(JSON, nullable=False)
    travel_frequency = Column(Text, nullable=False)
    dining_frequency = Column(Text, nullable=False)
    preferred_benefits = Column(JSON, nullable=False)
    preferred_airlines = Column(JSON, nullable=False)
    existing_cards = Column(JSON, nullable=False)
    shopping_online = Column(Integer, nullable=False, default=50)
    shopping_in_store = Column(Integer, nullable=False, default=50)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class CardRecommendationRow(Base):
    """Persisted output of the last recommendation run for a user"""

    __tablename__ = "card_recommendations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    card_name = Column(Text, nullable=False)
    issuer = Column(Text, nullable=False)
    card_type = Column(Text, nullable=False)
    annual_fee = Column(Float, nullable=False, default=0)
    rewards_rate = Column(JSON, nullable=False)
    signup_bonus = Column(Text, nullable=False, default="")
    benefits_summary = Column(JSON, nullable=False)
    primary_benefits = Column(JSON, nullable=False)
    match_score = Column(Integer, nullable=False)
    match_reason = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
