"""Financial profile service - validates and persists the multi-step profile form"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from cardsavvy.domain.exceptions import NotFoundError, ValidationError
from cardsavvy.domain.models import FREQUENCIES, FinancialProfile, ShoppingHabits
from cardsavvy.infrastructure.storage.base import Storage

MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 850

logger = logging.getLogger(__name__)


def _parse_number(value: Any) -> Optional[float]:
    """Accept numbers or strings like "12,00,000" from the form; NaN and infinities are rejected"""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _string_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return None
    return list(value)


def merge_monthly_spending(
    previous: Dict[str, float],
    submitted: Dict[str, float],
    selected: List[str],
) -> Dict[str, float]:
    """
    Build the persisted spending map.

    Every category the user has ever touched stays in the map. Categories not
    currently selected are zeroed rather than removed; selected categories keep
    the submitted amount, else the previous one, else 0.
    """
    keys = list(previous)
    for key in list(submitted) + list(selected):
        if key not in keys:
            keys.append(key)

    merged: Dict[str, float] = {}
    for key in keys:
        if key in selected:
            merged[key] = submitted.get(key, previous.get(key, 0.0))
        else:
            merged[key] = 0.0
    return merged


def validate_profile_form(raw_form: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a raw form submission.

    Returns normalised field values; raises ValidationError listing every bad field.
    """
    errors: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    income = _parse_number(raw_form.get("annualIncome"))
    if income is None or income < 0:
        errors["annualIncome"] = "Please enter a valid income amount"
    values["annual_income"] = income

    score = _parse_number(raw_form.get("creditScore"))
    if score is None or score != int(score) or not MIN_CREDIT_SCORE <= score <= MAX_CREDIT_SCORE:
        errors["creditScore"] = f"Credit score must be between {MIN_CREDIT_SCORE} and {MAX_CREDIT_SCORE}"
    else:
        values["credit_score"] = int(score)

    categories = _string_list(raw_form.get("primarySpendingCategories"))
    if not categories:
        errors["primarySpendingCategories"] = "Please select at least one spending category"
    values["primary_spending_categories"] = categories or []

    benefits = _string_list(raw_form.get("preferredBenefits"))
    if not benefits:
        errors["preferredBenefits"] = "Please select at least one preferred benefit"
    values["preferred_benefits"] = benefits or []

    for form_key, field_name in (("travelFrequency", "travel_frequency"), ("diningFrequency", "dining_frequency")):
        frequency = raw_form.get(form_key) or "occasionally"
        if frequency not in FREQUENCIES:
            errors[form_key] = f"Must be one of: {', '.join(FREQUENCIES)}"
        values[field_name] = frequency

    for form_key, field_name in (("preferredAirlines", "preferred_airlines"), ("existingCards", "existing_cards")):
        items = _string_list(raw_form.get(form_key))
        if items is None:
            errors[form_key] = "Must be a list of strings"
        values[field_name] = items or []

    spending_raw = raw_form.get("monthlySpending") or {}
    spending: Dict[str, float] = {}
    if not isinstance(spending_raw, dict):
        errors["monthlySpending"] = "Must be a map of category to amount"
    else:
        for category, amount in spending_raw.items():
            parsed = _parse_number(amount)
            if parsed is None or parsed < 0:
                errors["monthlySpending"] = f"Invalid amount for category '{category}'"
                break
            spending[str(category)] = parsed
    values["monthly_spending"] = spending

    habits_raw = raw_form.get("shoppingHabits")
    habits = ShoppingHabits()
    if habits_raw is not None:
        online = _parse_number(habits_raw.get("online")) if isinstance(habits_raw, dict) else None
        in_store_raw = habits_raw.get("inStore") if isinstance(habits_raw, dict) else None
        in_store = _parse_number(in_store_raw) if in_store_raw is not None else None
        if online is not None and in_store_raw is None:
            in_store = 100 - online
        if online is None or in_store is None or not 0 <= online <= 100 or online + in_store != 100:
            errors["shoppingHabits"] = "Online and in-store percentages must sum to 100"
        else:
            habits = ShoppingHabits(online=int(online), in_store=int(in_store))
    values["shopping_habits"] = habits

    if errors:
        raise ValidationError("Invalid financial profile", errors)
    return values


class ProfileService:
    """Create, update and read per-user financial profiles"""

    def __init__(self, storage: Storage):
        self.storage = storage

    def submit_profile(self, user_id: str, raw_form: Dict[str, Any]) -> FinancialProfile:
        """Validate ``raw_form``, upsert it as ``user_id``'s profile and drop stale recommendations"""
        values = validate_profile_form(raw_form)

        previous = self.storage.get_financial_profile(user_id)
        values["monthly_spending"] = merge_monthly_spending(
            previous.monthly_spending if previous else {},
            values["monthly_spending"],
            values["primary_spending_categories"],
        )

        profile = FinancialProfile(user_id=user_id, updated_at=datetime.utcnow(), **values)
        saved = self.storage.upsert_financial_profile(profile)
        # Stored recommendations were ranked against the old profile
        stale = self.storage.delete_card_recommendations(user_id) if previous else 0
        logger.info(
            "Financial profile saved",
            extra={
                "user_id": user_id,
                "step": "profile_saved",
                "profile_created": previous is None,
                "stale_recommendations": stale,
            },
        )
        return saved

    def get_profile(self, user_id: str) -> FinancialProfile:
        profile = self.storage.get_financial_profile(user_id)
        if profile is None:
            raise NotFoundError("Financial profile not found")
        return profile
