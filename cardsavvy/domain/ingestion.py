"""MITC ingestion - extract card facts from terms documents and index them"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePath
from typing import Any, Dict, List

from cardsavvy.domain.exceptions import UpstreamServiceError
from cardsavvy.domain.llm_parsing import Fallback, parse_json_reply
from cardsavvy.domain.ports import LLMClient, VectorStore
from cardsavvy.infrastructure.observability.logging import log_llm_fallback
from cardsavvy.infrastructure.observability.metrics import record_llm_fallback

EXTRACTION_CHARS = 4000
EMBEDDING_CHARS = 6000
METADATA_CONTENT_CHARS = 8000
MIN_CONTENT_CHARS = 100

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """
Analyze this MITC (Most Important Terms and Conditions) content and extract key credit card information:

Filename: {file_name}
Content: {content}

Extract and return ONLY a valid JSON object with:
{{
  "cardName": "specific credit card name (e.g., HDFC Regalia, SBI Elite, ICICI Amazon Pay)",
  "issuer": "bank or financial institution name",
  "cardType": "type of card (Travel, Cashback, Rewards, Premium, etc.)",
  "annualFee": "annual fee amount in rupees (number only, 0 if free)",
  "keyBenefits": ["list", "of", "key", "benefits"],
  "rewardsStructure": "brief description of rewards/cashback structure"
}}

Focus on extracting the actual card name mentioned in the content, not just the filename.
Return ONLY the JSON object, no additional text or explanation.
"""


@dataclass
class MitcDocument:
    file_name: str
    content: str


@dataclass
class CardInfo:
    card_name: str
    issuer: str
    card_type: str
    annual_fee: float
    key_benefits: List[str]
    rewards_structure: str


@dataclass
class IngestionReport:
    uploaded: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)


def document_id(file_name: str) -> str:
    stem = PurePath(file_name).stem
    return re.sub(r"[^a-z0-9]", "-", stem.lower())


def fallback_card_name(file_name: str) -> str:
    """``hdfc_regalia-gold.pdf`` -> ``Hdfc Regalia Gold``"""
    words = re.sub(r"[-_]", " ", PurePath(file_name).stem)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), words)


def fallback_card_info(file_name: str) -> CardInfo:
    return CardInfo(
        card_name=fallback_card_name(file_name),
        issuer="Unknown Bank",
        card_type="Credit Card",
        annual_fee=0,
        key_benefits=["Credit facility", "EMI options"],
        rewards_structure="Standard rewards program",
    )


def card_info_from_dict(data: Dict[str, Any], file_name: str) -> CardInfo:
    fallback = fallback_card_info(file_name)
    try:
        annual_fee = float(str(data.get("annualFee") or 0).replace(",", ""))
    except ValueError:
        annual_fee = 0
    benefits = data.get("keyBenefits")
    if not isinstance(benefits, list) or not benefits:
        benefits = ["Standard credit card benefits"]
    return CardInfo(
        card_name=str(data.get("cardName") or fallback.card_name),
        issuer=str(data.get("issuer") or fallback.issuer),
        card_type=str(data.get("cardType") or fallback.card_type),
        annual_fee=annual_fee,
        key_benefits=[str(b) for b in benefits],
        rewards_structure=str(data.get("rewardsStructure") or "Standard rewards"),
    )


def build_metadata(info: CardInfo, document: MitcDocument, extracted_at: datetime) -> Dict[str, Any]:
    """Flat metadata record; list and dict fields are serialised to strings"""
    return {
        "cardName": info.card_name,
        "issuer": info.issuer,
        "cardType": info.card_type,
        "annualFee": info.annual_fee,
        "rewardsRate": json.dumps({"general": info.rewards_structure}),
        "signupBonus": "",
        "benefitsSummary": " | ".join(info.key_benefits),
        "primaryBenefits": " | ".join(info.key_benefits[:3]),
        "mitcContent": document.content[:METADATA_CONTENT_CHARS],
        "fileName": document.file_name,
        "extractedAt": extracted_at.isoformat(),
        "contentLength": len(document.content),
    }


class MitcIngestor:
    """Turns MITC text documents into vector-index records"""

    def __init__(self, llm: LLMClient, vector_store: VectorStore):
        self.llm = llm
        self.vector_store = vector_store

    async def extract_card_info(self, document: MitcDocument) -> CardInfo:
        prompt = EXTRACTION_PROMPT.format(
            file_name=document.file_name,
            content=document.content[:EXTRACTION_CHARS],
        )
        try:
            content = await self.llm.complete(
                [{"role": "user", "content": prompt}],
                temperature=0.1,
                max_tokens=500,
            )
        except UpstreamServiceError as e:
            record_llm_fallback("extraction")
            log_llm_fallback("extraction", f"{document.file_name}: {e}")
            return fallback_card_info(document.file_name)

        result = parse_json_reply(content, default=None)
        if isinstance(result, Fallback):
            record_llm_fallback("extraction")
            log_llm_fallback("extraction", f"{document.file_name}: {result.error}", result.raw)
            return fallback_card_info(document.file_name)
        return card_info_from_dict(result.value, document.file_name)

    async def build_record(self, document: MitcDocument) -> Dict[str, Any]:
        """
        Build one upsert record ``{id, values, metadata}``.

        Raises:
            ValueError: If the document text is too short to be a terms document
            LLMServiceError: If the embedding cannot be computed
        """
        content = document.content.strip()
        if len(content) < MIN_CONTENT_CHARS:
            raise ValueError(f"document too short ({len(content)} characters)")
        document = MitcDocument(file_name=document.file_name, content=content)

        info = await self.extract_card_info(document)
        embedding_input = f"{info.card_name} {info.issuer} {info.card_type} {content[:EMBEDDING_CHARS]}"
        values = await self.llm.embed(embedding_input)

        return {
            "id": document_id(document.file_name),
            "values": values,
            "metadata": build_metadata(info, document, datetime.utcnow()),
        }

    async def ingest(self, documents: List[MitcDocument]) -> IngestionReport:
        """Index every document; a failing document is logged and skipped"""
        report = IngestionReport()
        for document in documents:
            try:
                record = await self.build_record(document)
                await self.vector_store.upsert([record])
            except (ValueError, UpstreamServiceError) as e:
                logger.error(f"Skipping {document.file_name}: {e}", extra={"file_name": document.file_name})
                report.skipped[document.file_name] = str(e)
                continue

            logger.info(
                "Indexed MITC document",
                extra={"file_name": document.file_name, "card_name": record["metadata"]["cardName"]},
            )
            report.uploaded.append(record["id"])
        return report
