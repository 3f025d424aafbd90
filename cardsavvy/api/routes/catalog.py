"""Read-only flight, hotel and shopping offer catalog"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from cardsavvy.api.dependencies import get_storage
from cardsavvy.api.routes.schemas import FlightResponse, HotelResponse, ShoppingOfferResponse
from cardsavvy.domain.exceptions import NotFoundError
from cardsavvy.infrastructure.storage.base import Storage

router = APIRouter()


@router.get("/flights", response_model=List[FlightResponse])
def list_flights(storage: Storage = Depends(get_storage)):
    return [FlightResponse.from_domain(f) for f in storage.get_flights()]


@router.get("/flights/{flight_id}", response_model=FlightResponse)
def get_flight(flight_id: str, storage: Storage = Depends(get_storage)):
    flight = storage.get_flight(flight_id)
    if flight is None:
        raise NotFoundError("Flight not found")
    return FlightResponse.from_domain(flight)


@router.get("/hotels", response_model=List[HotelResponse])
def list_hotels(storage: Storage = Depends(get_storage)):
    return [HotelResponse.from_domain(h) for h in storage.get_hotels()]


@router.get("/hotels/{hotel_id}", response_model=HotelResponse)
def get_hotel(hotel_id: str, storage: Storage = Depends(get_storage)):
    hotel = storage.get_hotel(hotel_id)
    if hotel is None:
        raise NotFoundError("Hotel not found")
    return HotelResponse.from_domain(hotel)


@router.get("/shopping-offers", response_model=List[ShoppingOfferResponse])
@router.get("/shopping", response_model=List[ShoppingOfferResponse])
def list_shopping_offers(
    category: Optional[str] = Query(None, description="Exact category, e.g. Electronics"),
    storage: Storage = Depends(get_storage),
):
    offers = storage.get_shopping_offers_by_category(category) if category else storage.get_shopping_offers()
    return [ShoppingOfferResponse.from_domain(o) for o in offers]


@router.get("/shopping-offers/{offer_id}", response_model=ShoppingOfferResponse)
def get_shopping_offer(offer_id: str, storage: Storage = Depends(get_storage)):
    offer = storage.get_shopping_offer(offer_id)
    if offer is None:
        raise NotFoundError("Shopping offer not found")
    return ShoppingOfferResponse.from_domain(offer)
