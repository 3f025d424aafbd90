"""Pytest fixtures for testing"""

import json
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from cardsavvy.api.main import create_app
from cardsavvy.config import Settings
from cardsavvy.domain.exceptions import LLMServiceError, VectorStoreError
from cardsavvy.infrastructure.storage.memory import MemStorage

SCORING_MARKER = "Analyze this credit card"
CLASSIFICATION_MARKER = "Analyze the following user message"
EXTRACTION_MARKER = "MITC (Most Important Terms and Conditions) content"


def card_match(card_id: str, name: str, issuer: str, **metadata: Any) -> Dict[str, Any]:
    """Vector-store match shaped like an indexed MITC document"""
    base = {
        "cardName": name,
        "issuer": issuer,
        "cardType": "Travel",
        "annualFee": 2500,
        "rewardsRate": json.dumps({"general": "4 points per ₹150"}),
        "signupBonus": "",
        "benefitsSummary": "Airport lounge access | Fuel surcharge waiver | Dining discounts",
        "primaryBenefits": "Airport lounge access | Fuel surcharge waiver",
        "mitcContent": f"{issuer} {name} most important terms and conditions. " * 20,
    }
    base.update(metadata)
    return {"id": card_id, "score": 0.8, "metadata": base}


SAMPLE_MATCHES = [
    card_match("hdfc-regalia", "HDFC Regalia", "HDFC Bank"),
    card_match("sbi-simplyclick", "SBI SimplyCLICK", "SBI Card", cardType="Shopping"),
    card_match("axis-atlas", "Axis Atlas", "Axis Bank"),
]

SCORES = {"HDFC Regalia": 88, "SBI SimplyCLICK": 42, "Axis Atlas": 75}


def default_reply(messages: List[Dict[str, str]]) -> str:
    """Deterministic stand-in for the chat model, keyed on the prompt type"""
    prompt = messages[-1]["content"]
    if SCORING_MARKER in prompt:
        name = next((n for n in SCORES if f"Current Name (from filename): {n}" in prompt), None)
        if name is None:
            return "not json at all"
        return "```json\n" + json.dumps({
            "actualCardName": name,
            "issuer": name.split()[0],
            "matchScore": SCORES[name],
            "matchReason": f"{name} suits frequent travellers",
        }) + "\n```"
    if CLASSIFICATION_MARKER in prompt:
        return json.dumps({
            "context": "flight",
            "intent": "Find a flight to Dubai",
            "confidence": 0.9,
            "clarificationQuestion": None,
            "entities": {"location": "Dubai", "travelers": 2, "dates": {"start": "2025-05-01"}},
        })
    if EXTRACTION_MARKER in prompt:
        return json.dumps({
            "cardName": "HDFC Regalia Gold",
            "issuer": "HDFC Bank",
            "cardType": "Travel",
            "annualFee": "2,500",
            "keyBenefits": ["Lounge access", "Milestone vouchers", "Fuel waiver", "Dining offers"],
            "rewardsStructure": "4 reward points per ₹150",
        })
    return "Book the Vistara flight with your HDFC Infinia for 4X reward points."


class FakeLLM:
    """In-process LLMClient; set ``fail_complete``/``fail_embed`` to simulate outages"""

    def __init__(self, reply: Callable[[List[Dict[str, str]]], str] = default_reply, dimension: int = 8):
        self.reply = reply
        self.dimension = dimension
        self.fail_complete = False
        self.fail_embed = False
        self.completions: List[Dict[str, Any]] = []
        self.embeddings: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.embeddings.append(text)
        if self.fail_embed:
            raise LLMServiceError("embedding service down")
        return [0.5] * self.dimension

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        self.completions.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens, "json_mode": json_mode}
        )
        if self.fail_complete:
            raise LLMServiceError("completion service down")
        return self.reply(messages)


class FakeVectorStore:
    """In-process VectorStore returning fixed matches"""

    def __init__(self, matches: Optional[List[Dict[str, Any]]] = None):
        self.matches = list(SAMPLE_MATCHES if matches is None else matches)
        self.fail = False
        self.queries: List[Dict[str, Any]] = []
        self.upserted: List[Dict[str, Any]] = []

    async def query(self, vector: List[float], top_k: int) -> List[Dict[str, Any]]:
        self.queries.append({"vector": vector, "top_k": top_k})
        if self.fail:
            raise VectorStoreError("index unavailable")
        return self.matches[:top_k]

    async def upsert(self, vectors: List[Dict[str, Any]]) -> int:
        if self.fail:
            raise VectorStoreError("index unavailable")
        self.upserted.extend(vectors)
        return len(vectors)

    async def connection_status(self) -> Dict[str, Any]:
        if self.fail:
            return {"success": False, "message": "Failed to connect to Pinecone: index unavailable"}
        return {"success": True, "message": "Connected", "stats": {"totalVectorCount": len(self.matches)}}


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        use_mem_storage=True,
        session_secret="test-secret",
        trust_user_header=True,
        demo_user_id="1",
        embedding_dimension=8,
    )


@pytest.fixture
def storage() -> MemStorage:
    """Seeded in-memory storage (demo user id "1")"""
    return MemStorage()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def app(test_settings, storage, fake_llm, fake_vector_store):
    return create_app(settings=test_settings, storage=storage, llm=fake_llm, vector_store=fake_vector_store)


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client backed by seeded memory storage and fake AI services"""
    return TestClient(app)


@pytest.fixture
def demo_client(client: TestClient) -> TestClient:
    """Client whose session is already logged in as the seeded demo user"""
    response = client.post("/api/auth/login", json={"username": "james.wilson", "password": "password123"})
    assert response.status_code == 200
    return client


@pytest.fixture
def profile_form() -> Dict[str, Any]:
    return {
        "annualIncome": 1200000,
        "creditScore": 750,
        "monthlySpending": {"travel": 30000, "dining": 12000},
        "primarySpendingCategories": ["travel", "dining"],
        "travelFrequency": "frequently",
        "diningFrequency": "occasionally",
        "preferredBenefits": ["travel_points"],
    }
