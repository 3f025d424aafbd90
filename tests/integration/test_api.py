"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get("/api/flights")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "cardsavvy_recommendations_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_is_echoed_or_generated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health").headers["X-Request-ID"]
    assert generated and generated != "req-123"


def test_list_flights_uses_camel_case(client: TestClient):
    response = client.get("/api/flights")

    assert response.status_code == 200
    flights = response.json()
    assert [f["airline"] for f in flights] == ["Air India", "IndiGo", "Vistara"]
    assert flights[0]["departureAirport"] == "BOM"
    assert flights[0]["isNonstop"] is True
    assert "card_benefits" not in flights[0]


def test_flight_and_hotel_detail(client: TestClient):
    flight_id = client.get("/api/flights").json()[2]["id"]
    hotel_id = client.get("/api/hotels").json()[0]["id"]

    assert client.get(f"/api/flights/{flight_id}").json()["airline"] == "Vistara"
    hotel = client.get(f"/api/hotels/{hotel_id}").json()
    assert hotel["name"] == "Burj Al Arab Jumeirah"
    assert hotel["cardExclusiveOffer"]


@pytest.mark.parametrize("path", ["/api/flights/999", "/api/hotels/999", "/api/shopping-offers/999"])
def test_catalog_detail_not_found(client: TestClient, path):
    response = client.get(path)

    assert response.status_code == 404
    assert "not found" in response.json()["message"].lower()


@pytest.mark.parametrize("path", ["/api/shopping-offers", "/api/shopping"])
def test_shopping_offers_filter_by_category(client: TestClient, path):
    assert len(client.get(path).json()) == 7

    fashion = client.get(path, params={"category": "Fashion"}).json()
    assert [o["storeName"] for o in fashion] == ["Bloomingdale's"]

    assert len(client.get(path, params={"category": "Electronics"}).json()) == 6
    assert client.get(path, params={"category": "Groceries"}).json() == []


def test_cards_default_to_demo_user(client: TestClient):
    cards = client.get("/api/cards").json()

    assert [c["cardName"] for c in cards] == ["Infinia", "Emeralde", "Elite"]
    assert cards[0]["pointsBalance"] == 78450
    assert all(c["userId"] == "1" for c in cards)


def test_card_crud(demo_client: TestClient):
    response = demo_client.post(
        "/api/cards",
        json={
            "cardName": "Atlas",
            "issuer": "Axis Bank",
            "cardNumber": "•••• •••• •••• 9012",
            "pointsBalance": 1500,
            "expireDate": "08/28",
            "cardType": "Visa",
        },
    )
    assert response.status_code == 201
    card = response.json()
    assert card["color"] == "primary"
    assert card["userId"] == "1"

    assert demo_client.get(f"/api/cards/{card['id']}").json()["cardName"] == "Atlas"
    assert len(demo_client.get("/api/cards").json()) == 4

    assert demo_client.delete(f"/api/cards/{card['id']}").status_code == 204
    assert demo_client.get(f"/api/cards/{card['id']}").status_code == 404
    assert demo_client.delete(f"/api/cards/{card['id']}").status_code == 404


def test_card_validation(client: TestClient):
    response = client.post(
        "/api/cards",
        json={"cardName": "X", "issuer": "Y", "cardNumber": "1", "pointsBalance": -10, "expireDate": "1", "cardType": "Z"},
    )
    assert response.status_code == 422

    assert client.post("/api/cards", json={"cardName": "X"}).status_code == 422


def test_card_of_another_user_is_hidden(client: TestClient):
    client.post(
        "/api/auth/register",
        json={"username": "asha", "password": "pw", "email": "asha@example.com", "name": "Asha Rao"},
    )
    other = client.post(
        "/api/cards",
        json={"cardName": "Own", "issuer": "Kotak", "cardNumber": "1", "expireDate": "1", "cardType": "Visa"},
    ).json()
    assert [c["id"] for c in client.get("/api/cards").json()] == [other["id"]]

    client.post("/api/auth/logout")

    assert client.get(f"/api/cards/{other['id']}").status_code == 404
    assert client.delete(f"/api/cards/{other['id']}").status_code == 404


def test_chat_history_and_send(demo_client: TestClient, fake_llm):
    history = demo_client.get("/api/chat").json()
    assert len(history) == 1
    assert history[0]["role"] == "assistant"

    response = demo_client.post("/api/chat", json={"message": "Flights to Dubai for 2 people"})

    assert response.status_code == 200
    turn = response.json()
    assert turn["userMessage"]["content"] == "Flights to Dubai for 2 people"
    assert turn["aiMessage"]["role"] == "assistant"
    assert turn["aiMessage"]["content"].startswith("Book the Vistara flight")
    assert turn["contextAnalysis"]["context"] == "flight"
    assert turn["contextAnalysis"]["entities"]["travelers"] == 2
    assert len(demo_client.get("/api/chat").json()) == 3


def test_chat_degrades_when_model_unavailable(demo_client: TestClient, fake_llm):
    fake_llm.fail_complete = True

    response = demo_client.post("/api/chat", json={"message": "Hello"})

    assert response.status_code == 200
    assert response.json()["contextAnalysis"]["context"] == "general"
    assert "trouble connecting" in response.json()["aiMessage"]["content"]


def test_chat_rejects_empty_message(client: TestClient):
    assert client.post("/api/chat", json={"message": ""}).status_code == 422
    assert client.post("/api/chat", json={"message": "   "}).status_code == 422


def test_clear_chat_returns_welcome(demo_client: TestClient):
    demo_client.post("/api/chat", json={"message": "Hotels in Dubai"})

    response = demo_client.delete("/api/chat")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["welcomeMessage"]["content"].startswith("Hello James!")
    assert len(demo_client.get("/api/chat").json()) == 1


def test_vector_index_status(client: TestClient, fake_vector_store):
    body = client.get("/api/vector-index/status").json()
    assert body["success"] is True
    assert body["stats"]["totalVectorCount"] == 3

    fake_vector_store.fail = True
    body = client.get("/api/vector-index/status").json()
    assert body["success"] is False
    assert "stats" not in body
