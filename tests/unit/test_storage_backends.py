"""Behaviour shared by the memory, relational and document storage backends"""

from datetime import datetime, timedelta

import mongomock
import pytest

from cardsavvy.domain.exceptions import StorageError
from cardsavvy.domain.models import (
    CardRecommendation,
    ChatMessage,
    CreditCard,
    FinancialProfile,
    ShoppingHabits,
    User,
)
from cardsavvy.infrastructure.storage.memory import MemStorage
from cardsavvy.infrastructure.storage.mongo import MongoStorage
from cardsavvy.infrastructure.storage.seed import DEMO_USERNAME, seed_demo_data
from cardsavvy.infrastructure.storage.sql import SqlStorage


def _build(backend: str):
    if backend == "memory":
        return MemStorage(seed=False)
    if backend == "sql":
        return SqlStorage.from_url("sqlite://")
    return MongoStorage(mongomock.MongoClient()["cardsavvy_test"])


@pytest.fixture(params=["memory", "sql", "mongo"])
def backend(request):
    """Empty storage for each backend"""
    return _build(request.param)


@pytest.fixture
def user(backend) -> User:
    return backend.create_user(
        User(id="", username="priya", email="priya@example.com", name="Priya Sharma", password="x.y")
    )


def _card(user_id: str, name: str = "Regalia") -> CreditCard:
    return CreditCard(
        id="", user_id=user_id, card_name=name, issuer="HDFC Bank", card_number="•••• 1111",
        points_balance=1000, expire_date="01/27", card_type="Signature", color="",
    )


def _recommendation(name: str, score: int) -> CardRecommendation:
    return CardRecommendation(
        card_name=name, issuer="Bank", card_type="Travel", annual_fee=500, rewards_rate={"general": "2X"},
        signup_bonus="", benefits_summary=["Lounge"], primary_benefits=["Lounge"], match_score=score,
        match_reason="fits",
    )


def test_user_lookups(backend, user):
    assert backend.get_user(user.id).username == "priya"
    assert backend.get_user_by_username("priya").id == user.id
    assert backend.get_user_by_email("priya@example.com").id == user.id
    assert backend.get_user_by_username("nobody") is None
    assert backend.get_user_by_auth0_id("auth0|missing") is None


def test_update_user_sets_external_identity(backend, user):
    user.auth0_id = "auth0|abc"
    user.picture_url = "https://example.com/p.png"

    updated = backend.update_user(user)

    assert updated.auth0_id == "auth0|abc"
    assert backend.get_user_by_auth0_id("auth0|abc").id == user.id


def test_unknown_ids_resolve_to_absent(backend):
    assert backend.get_user("not-an-id") is None
    assert backend.get_credit_card("not-an-id") is None
    assert backend.delete_credit_card("not-an-id") is False
    assert backend.get_flight("not-an-id") is None
    assert backend.get_financial_profile("not-an-id") is None
    assert backend.get_credit_cards("not-an-id") == []


def test_card_lifecycle_is_scoped_to_owner(backend, user):
    other = backend.create_user(User(id="", username="other", email="o@example.com", name="Other"))
    card = backend.create_credit_card(_card(user.id))
    backend.create_credit_card(_card(other.id, "Elite"))

    assert card.id
    assert card.color == "primary"
    assert [c.card_name for c in backend.get_credit_cards(user.id)] == ["Regalia"]
    assert backend.get_credit_card(card.id).user_id == user.id

    assert backend.delete_credit_card(card.id) is True
    assert backend.delete_credit_card(card.id) is False
    assert backend.get_credit_cards(user.id) == []
    assert len(backend.get_credit_cards(other.id)) == 1


def test_seeded_catalog_and_category_filter(backend):
    seeded = seed_demo_data(backend)

    assert seeded.username == DEMO_USERNAME
    assert len(backend.get_credit_cards(seeded.id)) == 3
    assert [f.airline for f in backend.get_flights()] == ["Air India", "IndiGo", "Vistara"]
    assert len(backend.get_hotels()) == 3
    assert len(backend.get_shopping_offers()) == 7
    assert [o.store_name for o in backend.get_shopping_offers_by_category("Fashion")] == ["Bloomingdale's"]
    assert len(backend.get_shopping_offers_by_category("Electronics")) == 6
    assert backend.get_shopping_offers_by_category("Groceries") == []

    flight = backend.get_flights()[0]
    assert backend.get_flight(flight.id).card_benefits == flight.card_benefits
    hotel = backend.get_hotels()[1]
    assert backend.get_hotel(hotel.id).name == "Atlantis, The Palm"


def test_chat_messages_ordered_by_timestamp(backend, user):
    now = datetime.utcnow()
    for offset, content in [(2, "third"), (0, "first"), (1, "second")]:
        backend.create_chat_message(
            ChatMessage(id="", user_id=user.id, role="user", content=content, timestamp=now + timedelta(seconds=offset))
        )

    assert [m.content for m in backend.get_chat_messages(user.id)] == ["first", "second", "third"]


def test_clear_chat_only_affects_one_user(backend, user):
    other = backend.create_user(User(id="", username="other", email="o@example.com", name="Other"))
    for owner in (user.id, user.id, other.id):
        backend.create_chat_message(
            ChatMessage(id="", user_id=owner, role="user", content="hi", timestamp=datetime.utcnow())
        )

    assert backend.clear_chat_messages(user.id) == 2
    assert backend.get_chat_messages(user.id) == []
    assert len(backend.get_chat_messages(other.id)) == 1


def test_financial_profile_upsert_keeps_one_record(backend, user):
    profile = FinancialProfile(
        user_id=user.id, annual_income=900000, credit_score=720, monthly_spending={"travel": 20000.0},
        primary_spending_categories=["travel"], travel_frequency="occasionally", dining_frequency="rarely",
        preferred_benefits=["cashback"], shopping_habits=ShoppingHabits(online=80, in_store=20),
    )

    backend.upsert_financial_profile(profile)
    profile.credit_score = 780
    profile.monthly_spending = {"travel": 25000.0, "dining": 0.0}
    backend.upsert_financial_profile(profile)

    stored = backend.get_financial_profile(user.id)
    assert stored.credit_score == 780
    assert stored.monthly_spending == {"travel": 25000.0, "dining": 0.0}
    assert stored.shopping_habits == ShoppingHabits(online=80, in_store=20)


def test_recommendations_sorted_and_replaceable(backend, user):
    created = backend.create_card_recommendations(
        user.id, [_recommendation("A", 40), _recommendation("B", 90), _recommendation("C", 65)]
    )

    assert all(r.id and r.user_id == user.id and r.created_at for r in created)
    stored = backend.get_card_recommendations(user.id)
    assert [r.card_name for r in stored] == ["B", "C", "A"]
    assert stored[0].rewards_rate == {"general": "2X"}

    assert backend.delete_card_recommendations(user.id) == 3
    assert backend.get_card_recommendations(user.id) == []


def test_memory_storage_returns_copies():
    storage = MemStorage()
    card = storage.get_credit_cards("1")[0]

    card.points_balance = 0

    assert storage.get_credit_cards("1")[0].points_balance == 78450


def test_memory_storage_seeds_demo_user_with_id_one():
    storage = MemStorage()

    assert storage.get_user("1").username == DEMO_USERNAME
    assert len(storage.get_chat_messages("1")) == 1


def test_sql_storage_wraps_integrity_errors():
    storage = SqlStorage.from_url("sqlite://")
    storage.create_user(User(id="", username="dup", email="dup@example.com", name="Dup"))

    with pytest.raises(StorageError):
        storage.create_user(User(id="", username="dup", email="dup2@example.com", name="Dup"))


def test_mongo_storage_rejects_card_for_missing_user():
    storage = MongoStorage(mongomock.MongoClient()["cardsavvy_test"])

    with pytest.raises(StorageError):
        storage.create_credit_card(_card("64b7f0c2a1b2c3d4e5f60718"))
