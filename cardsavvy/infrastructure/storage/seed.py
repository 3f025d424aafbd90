"""Deterministic demo data loaded by the in-memory backend at startup"""

from datetime import datetime
from typing import List

from cardsavvy.domain.models import ChatMessage, CreditCard, Flight, Hotel, ShoppingOffer, User
from cardsavvy.domain.passwords import hash_password
from cardsavvy.infrastructure.storage.base import Storage

DEMO_USERNAME = "james.wilson"
DEMO_PASSWORD = "password123"

DEMO_WELCOME = (
    "Hello James! I'm your CardConcierge. I see you have premium Indian credit cards including "
    "HDFC Infinia, ICICI Emeralde, and SBI Elite. How can I help you maximize your card benefits "
    "for travel or shopping today? Would you like recommendations for flights, hotels, or perhaps "
    "help finding the best deals on electronics?"
)


def demo_user() -> User:
    return User(
        id="",
        username=DEMO_USERNAME,
        password=hash_password(DEMO_PASSWORD),
        name="James Wilson",
        email="james.wilson@example.com",
        membership_level="Platinum",
    )


def demo_cards(user_id: str) -> List[CreditCard]:
    return [
        CreditCard(
            id="", user_id=user_id, card_name="Infinia", issuer="HDFC Bank",
            card_number="•••• •••• •••• 4578", points_balance=78450, expire_date="09/26",
            card_type="Signature", color="primary",
        ),
        CreditCard(
            id="", user_id=user_id, card_name="Emeralde", issuer="ICICI Bank",
            card_number="•••• •••• •••• 1236", points_balance=43820, expire_date="11/24",
            card_type="Signature", color="accent",
        ),
        CreditCard(
            id="", user_id=user_id, card_name="Elite", issuer="SBI Card",
            card_number="•••• •••• •••• 7892", points_balance=92150, expire_date="03/25",
            card_type="Signature", color="gray",
        ),
    ]


def demo_flights() -> List[Flight]:
    # Cash prices in rupees
    return [
        Flight(
            id="", airline="Air India", departure_time="4:30 AM", departure_airport="BOM",
            arrival_time="6:15 AM", arrival_airport="DXB", duration="3h 15m", is_nonstop=True,
            points_required=38500, cash_price=22800, rating=3.5,
            card_benefits=["4X HDFC Reward Points", "Complimentary meal + beverage"],
        ),
        Flight(
            id="", airline="IndiGo", departure_time="9:40 AM", departure_airport="BOM",
            arrival_time="11:25 AM", arrival_airport="DXB", duration="3h 15m", is_nonstop=True,
            points_required=25000, cash_price=18500, rating=4.0,
            card_benefits=["Complimentary Seat Selection", "5% cashback with ICICI cards"],
        ),
        Flight(
            id="", airline="Vistara", departure_time="7:15 PM", departure_airport="BOM",
            arrival_time="9:05 PM", arrival_airport="DXB", duration="3h 20m", is_nonstop=True,
            points_required=32000, cash_price=24600, rating=4.5,
            card_benefits=["10% off with SBI Elite Card", "Club Vistara points bonus"],
        ),
    ]


def demo_hotels() -> List[Hotel]:
    # Total price covers a 7-night stay
    return [
        Hotel(
            id="", name="Burj Al Arab Jumeirah", location="Jumeirah Beach Road", area="Jumeirah",
            rating=5.0, review_count=876, price_per_night=75000, total_price=525000, points_earned=157500,
            description=(
                "Iconic sail-shaped luxury hotel with stunning Arabian Gulf views. "
                "Features private beach access and butler service."
            ),
            image_url="https://images.unsplash.com/photo-1582719508461-905c673771fd",
            benefits=[
                "15% off on spa treatments",
                "Complimentary airport transfers",
                "Room upgrade when available",
                "Free breakfast buffet",
            ],
            card_exclusive_offer="Earn 10X HDFC Infinia Reward Points",
        ),
        Hotel(
            id="", name="Atlantis, The Palm", location="Palm Jumeirah", area="The Palm",
            rating=4.5, review_count=1243, price_per_night=42000, total_price=294000, points_earned=88200,
            description=(
                "Iconic ocean-themed resort with a massive aquarium, water park, "
                "and private beach on Palm Jumeirah."
            ),
            image_url="https://images.unsplash.com/photo-1556767573-4c111cce8103",
            benefits=[
                "Free Aquaventure Waterpark access",
                "SBI Elite Card 8% instant discount",
                "Late checkout 4PM",
                "Free Lost Chambers Aquarium tickets",
            ],
            card_exclusive_offer="3X bonus SBI Card ELITE Reward Points",
        ),
        Hotel(
            id="", name="Address Downtown", location="Downtown Dubai", area="Downtown",
            rating=4.7, review_count=562, price_per_night=35000, total_price=245000, points_earned=73500,
            description=(
                "Luxury hotel with stunning views of Burj Khalifa and Dubai Fountain. "
                "Features multiple restaurants and infinity pool."
            ),
            image_url="https://images.unsplash.com/photo-1533395427226-a54d3a0c25b3",
            benefits=[
                "ICICI Emeralde complimentary dinner",
                "Dubai Mall shopping vouchers",
                "Burj Khalifa fast-track tickets",
                "Free WiFi and airport transfers",
            ],
            card_exclusive_offer="12% discount with ICICI Emeralde card",
        ),
    ]


def demo_shopping_offers() -> List[ShoppingOffer]:
    online = "Available online"
    return [
        ShoppingOffer(
            id="", store_name="Bloomingdale's", location="59th St & Lexington Ave, New York",
            distance_from_hotel=online, offer_type="percentage", offer_value="15% Back",
            description="Luxury department store offering designer clothing, accessories, home goods, and beauty products.",
            image_url="https://images.unsplash.com/photo-1441986300917-64674bd600d8",
            benefits=["Get 15% statement credit up to $75", "3X points on purchases"],
            valid_through="June 30, 2023", category="Fashion",
        ),
        ShoppingOffer(
            id="", store_name="B&H Photo Video", location="9th Ave & 34th St, New York",
            distance_from_hotel=online, offer_type="cash", offer_value="$50 Back",
            description="Premier destination for cameras, computers, home theater equipment, and other electronics.",
            image_url="https://images.unsplash.com/photo-1491933382434-500287f9b54b",
            benefits=["$50 back on purchases of $250+", "Extended warranty with Amex"],
            valid_through="July 15, 2023", category="Electronics",
        ),
        ShoppingOffer(
            id="", store_name="Samsung Experience Store", location="Multiple locations across India",
            distance_from_hotel=online, offer_type="percentage", offer_value="10% Back",
            description="Official Samsung stores with latest products including Galaxy S25 Ultra and other premium smartphones.",
            image_url="https://images.unsplash.com/photo-1610945415295-d9bbf067e59c",
            benefits=["10% cashback up to ₹5,000 with HDFC Infinia", "Additional 1-year warranty with HDFC cards"],
            valid_through="August 31, 2023", category="Electronics",
        ),
        ShoppingOffer(
            id="", store_name="Flipkart", location="Online, India",
            distance_from_hotel=online, offer_type="cash", offer_value="₹10,000 Off",
            description="India's leading e-commerce marketplace with wide selection of electronics, clothing, and more.",
            image_url="https://images.unsplash.com/photo-1622560480605-d83c853bc5c3",
            benefits=["₹10,000 instant discount on S25 Ultra with ICICI Bank cards", "No-cost EMI options with Citi cards"],
            valid_through="Limited time offer", category="Electronics",
        ),
        ShoppingOffer(
            id="", store_name="Croma", location="Multiple locations across India",
            distance_from_hotel=online, offer_type="points", offer_value="5X Points",
            description="Indian retail chain for consumer electronics and durables with wide product selection.",
            image_url="https://images.unsplash.com/photo-1546054454-aa26e2b734c7",
            benefits=["5X reward points with SBI Elite cards", "Extended warranty protection on premium electronics"],
            valid_through="July 30, 2023", category="Electronics",
        ),
        ShoppingOffer(
            id="", store_name="Amazon India", location="Online, India",
            distance_from_hotel=online, offer_type="percentage", offer_value="15% Back",
            description="E-commerce giant with vast selection of products including the latest smartphones and electronics.",
            image_url="https://images.unsplash.com/photo-1523474253046-8cd2748b5fd2",
            benefits=["15% instant discount up to ₹7,500 with HDFC Infinia", "Additional exchange bonus of ₹5,000 on old phones"],
            valid_through="Limited period offer", category="Electronics",
        ),
        ShoppingOffer(
            id="", store_name="Reliance Digital", location="Multiple locations across India",
            distance_from_hotel=online, offer_type="cash", offer_value="₹8,000 Back",
            description="Electronics retail chain offering a wide range of consumer electronics and home appliances.",
            image_url="https://images.unsplash.com/photo-1601524909162-ae8725290836",
            benefits=["Instant cashback of ₹8,000 with ICICI Emeralde", "Free premium case worth ₹3,999"],
            valid_through="July 15, 2023", category="Electronics",
        ),
    ]


def seed_demo_data(storage: Storage) -> User:
    """Load the demo user, cards, catalog and welcome message; returns the user"""
    user = storage.create_user(demo_user())
    for card in demo_cards(user.id):
        storage.create_credit_card(card)
    for flight in demo_flights():
        storage.create_flight(flight)
    for hotel in demo_hotels():
        storage.create_hotel(hotel)
    for offer in demo_shopping_offers():
        storage.create_shopping_offer(offer)
    storage.create_chat_message(
        ChatMessage(id="", user_id=user.id, role="assistant", content=DEMO_WELCOME, timestamp=datetime.utcnow())
    )
    return user
