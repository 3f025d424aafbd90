"""Financial profile create/update and read"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from cardsavvy.api.dependencies import get_profile_service, require_user_id
from cardsavvy.api.routes.schemas import FinancialProfileResponse
from cardsavvy.domain.profile import ProfileService

router = APIRouter()


@router.post("/financial-profile", response_model=FinancialProfileResponse)
def submit_financial_profile(
    form: Dict[str, Any] = Body(...),
    user_id: str = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    """
    Create or update the caller's profile from the multi-step form.

    Returns:
        The stored profile; previously selected spending categories that are no
        longer selected are kept with a zero amount
    Raises:
        422 with per-field errors when validation fails
    """
    return FinancialProfileResponse.from_domain(service.submit_profile(user_id, form))


@router.get("/financial-profile", response_model=FinancialProfileResponse)
@router.get("/financial-profile/user", response_model=FinancialProfileResponse)
def get_financial_profile(
    user_id: str = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    return FinancialProfileResponse.from_domain(service.get_profile(user_id))
