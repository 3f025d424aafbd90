"""Recommendation pipeline - retrieve card documents, score each with the LLM, rank"""

import asyncio
import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, List

from cardsavvy.domain.exceptions import LLMServiceError, VectorStoreError
from cardsavvy.domain.llm_parsing import Fallback, parse_json_reply
from cardsavvy.domain.models import CardCandidate, CardRecommendation, FinancialProfile
from cardsavvy.domain.ports import LLMClient, VectorStore
from cardsavvy.infrastructure.observability.logging import log_llm_fallback, log_recommendations
from cardsavvy.infrastructure.observability.metrics import record_llm_fallback, vector_store_failures_counter

DEFAULT_MATCH_SCORE = 50
PARSE_FALLBACK_REASON = "Card analysis failed due to JSON parsing error"
CALL_FALLBACK_REASON = "Card analysis failed, but card is relevant based on search"
FETCH_ALL_QUERY = "credit card"
DEFAULT_REWARDS = {"general": "1% cashback"}

logger = logging.getLogger(__name__)


@dataclass
class ScoredCandidate:
    recommendation: CardRecommendation
    used_fallback: bool


def candidate_from_match(match: Dict[str, Any], position: int) -> CardCandidate:
    """Map a vector-store match (metadata dict) to a CardCandidate"""
    metadata = match.get("metadata") or {}

    rewards = DEFAULT_REWARDS
    raw_rewards = metadata.get("rewardsRate")
    if raw_rewards:
        try:
            parsed = json.loads(raw_rewards) if isinstance(raw_rewards, str) else raw_rewards
            if isinstance(parsed, dict):
                rewards = {str(k): str(v) for k, v in parsed.items()}
        except json.JSONDecodeError:
            pass

    def split(value: Any) -> List[str]:
        if isinstance(value, list):
            return [str(v) for v in value]
        return [part for part in str(value).split(" | ") if part] if value else []

    try:
        annual_fee = float(metadata.get("annualFee") or 0)
    except (TypeError, ValueError):
        annual_fee = 0

    return CardCandidate(
        id=str(match.get("id", position)),
        card_name=metadata.get("cardName") or f"Credit Card {position + 1}",
        issuer=metadata.get("issuer") or "Unknown Bank",
        card_type=metadata.get("cardType") or "General",
        annual_fee=annual_fee,
        rewards_rate=dict(rewards),
        signup_bonus=metadata.get("signupBonus") or "",
        benefits_summary=split(metadata.get("benefitsSummary")),
        primary_benefits=split(metadata.get("primaryBenefits")),
        mitc_content=metadata.get("mitcContent") or "No MITC content available",
    )


def build_search_query(profile: FinancialProfile) -> str:
    """Natural-language query describing the profile, for similarity retrieval"""
    return (
        "Credit card terms and conditions for Indian credit cards. "
        "Looking for credit cards with benefits, rewards, and features. "
        f"Annual income {profile.annual_income:.0f}, credit score {profile.credit_score}. "
        f"Interested in {', '.join(profile.primary_spending_categories)} spending. "
        f"Travel frequency: {profile.travel_frequency}, dining frequency: {profile.dining_frequency}. "
        f"Preferred benefits: {', '.join(profile.preferred_benefits)}."
    )


def build_scoring_prompt(profile: FinancialProfile, candidate: CardCandidate, excerpt_chars: int) -> str:
    """Prompt asking the model to rate one card against the profile"""
    spending = json.dumps(profile.monthly_spending)
    return f"""
Analyze this credit card for the given user profile and provide a match score, reason, and EXTRACT THE REAL CARD NAME from the MITC content:

User Profile:
- Annual Income: ₹{profile.annual_income:,.0f}
- Credit Score: {profile.credit_score}
- Primary Spending Categories: {', '.join(profile.primary_spending_categories)}
- Travel Frequency: {profile.travel_frequency}
- Dining Frequency: {profile.dining_frequency}
- Preferred Benefits: {', '.join(profile.preferred_benefits)}
- Monthly Spending: {spending}

Credit Card Information:
- Current Name (from filename): {candidate.card_name}
- Issuer: {candidate.issuer}
- Type: {candidate.card_type}
- Annual Fee: ₹{candidate.annual_fee:,.0f}
- Rewards: {json.dumps(candidate.rewards_rate)}
- Benefits: {', '.join(candidate.benefits_summary)}
- Primary Benefits: {', '.join(candidate.primary_benefits)}
- MITC Content: {candidate.mitc_content[:excerpt_chars]}...

IMPORTANT: Extract the ACTUAL credit card name from the MITC content. Look for:
- Bank name + card type (e.g., "HDFC Regalia Credit Card", "SBI SimplyCLICK", "ICICI Amazon Pay")
- Specific product names mentioned in the terms
- Brand names and card series

If you cannot find a specific card name in the MITC content, use the bank name + "Credit Card".

Provide a JSON response with:
{{
  "actualCardName": "extracted real card name from MITC content",
  "issuer": "bank or financial institution name",
  "matchScore": number (0-100),
  "matchReason": "detailed explanation of why this card matches the user's profile"
}}
"""


def coerce_match_score(value: Any) -> int:
    """Integer score clamped to [0, 100]; non-numeric values become the default"""
    if isinstance(value, bool):
        return DEFAULT_MATCH_SCORE
    try:
        score = round(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_MATCH_SCORE
    return max(0, min(100, score))


def _recommendation(candidate: CardCandidate, **overrides: Any) -> CardRecommendation:
    fields = dict(
        card_name=candidate.card_name,
        issuer=candidate.issuer,
        card_type=candidate.card_type,
        annual_fee=candidate.annual_fee,
        rewards_rate=candidate.rewards_rate,
        signup_bonus=candidate.signup_bonus,
        benefits_summary=candidate.benefits_summary,
        primary_benefits=candidate.primary_benefits,
        match_score=DEFAULT_MATCH_SCORE,
        match_reason=PARSE_FALLBACK_REASON,
    )
    fields.update(overrides)
    return CardRecommendation(**fields)


def rank_recommendations(recommendations: List[CardRecommendation], limit: int) -> List[CardRecommendation]:
    """Sort by match score descending (stable) and keep the first ``limit``"""
    ranked = sorted(recommendations, key=lambda r: r.match_score, reverse=True)
    return ranked[:max(limit, 0)]


class RecommendationPipeline:
    """
    Profile -> candidate cards -> per-card LLM score -> ranked list.

    External failures never abort a batch: an embedding outage falls back to a
    random query vector, a vector-store outage yields no candidates, and a
    failed or malformed score becomes the default score for that card only.
    """

    def __init__(
        self,
        llm: LLMClient,
        vector_store: VectorStore,
        retrieval_mode: str = "all",
        retrieval_top_k: int = 20,
        similarity_min_top_k: int = 15,
        mitc_excerpt_chars: int = 1000,
        embedding_dimension: int = 1536,
    ):
        self.llm = llm
        self.vector_store = vector_store
        self.retrieval_mode = retrieval_mode
        self.retrieval_top_k = retrieval_top_k
        self.similarity_min_top_k = similarity_min_top_k
        self.mitc_excerpt_chars = mitc_excerpt_chars
        self.embedding_dimension = embedding_dimension

    async def embed_query(self, text: str) -> List[float]:
        try:
            return await self.llm.embed(text)
        except LLMServiceError as e:
            record_llm_fallback("embedding")
            log_llm_fallback("embedding", str(e))
            return [random.random() for _ in range(self.embedding_dimension)]

    async def retrieve_candidates(self, profile: FinancialProfile, limit: int) -> List[CardCandidate]:
        """Query the vector index; empty list when the index is unavailable"""
        if self.retrieval_mode == "similarity":
            query_text = build_search_query(profile)
            top_k = max(limit, self.similarity_min_top_k)
        else:
            query_text = FETCH_ALL_QUERY
            top_k = self.retrieval_top_k

        vector = await self.embed_query(query_text)
        try:
            matches = await self.vector_store.query(vector, top_k)
        except VectorStoreError as e:
            vector_store_failures_counter.inc()
            logger.error(f"Vector store query failed: {e}", extra={"step": "retrieve_candidates"})
            return []

        return [candidate_from_match(match, i) for i, match in enumerate(matches)]

    async def score_candidate(self, profile: FinancialProfile, candidate: CardCandidate) -> ScoredCandidate:
        """Ask the LLM to rate one card; substitutes the default score on any failure"""
        prompt = build_scoring_prompt(profile, candidate, self.mitc_excerpt_chars)
        try:
            content = await self.llm.complete(
                [{"role": "user", "content": prompt}],
                temperature=0.3,
                max_tokens=500,
            )
        except LLMServiceError as e:
            record_llm_fallback("scoring")
            log_llm_fallback("scoring", f"{candidate.card_name}: {e}")
            return ScoredCandidate(_recommendation(candidate, match_reason=CALL_FALLBACK_REASON), True)

        result = parse_json_reply(content, default=None)
        if isinstance(result, Fallback):
            record_llm_fallback("scoring")
            log_llm_fallback("scoring", f"{candidate.card_name}: {result.error}", result.raw)
            return ScoredCandidate(_recommendation(candidate), True)

        analysis = result.value
        reason = analysis.get("matchReason")
        return ScoredCandidate(
            _recommendation(
                candidate,
                card_name=str(analysis.get("actualCardName") or candidate.card_name),
                issuer=str(analysis.get("issuer") or candidate.issuer),
                match_score=coerce_match_score(analysis.get("matchScore")),
                match_reason=str(reason) if reason else PARSE_FALLBACK_REASON,
            ),
            False,
        )

    async def recommend(self, profile: FinancialProfile, limit: int = 7) -> List[CardRecommendation]:
        """Run the full pipeline for ``profile``; at most ``limit`` results"""
        start_time = time.time()

        candidates = await self.retrieve_candidates(profile, limit)
        if not candidates:
            logger.warning("No candidate cards retrieved", extra={"user_id": profile.user_id})
            return []

        scored = await asyncio.gather(*(self.score_candidate(profile, c) for c in candidates))
        ranked = rank_recommendations([s.recommendation for s in scored], limit)

        duration_ms = (time.time() - start_time) * 1000
        log_recommendations(
            profile.user_id,
            candidate_count=len(candidates),
            returned_count=len(ranked),
            fallback_count=sum(1 for s in scored if s.used_fallback),
            duration_ms=duration_ms,
        )
        return ranked
