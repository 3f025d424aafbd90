"""Unit tests for MITC ingestion"""

import json
from datetime import datetime

import pytest

from cardsavvy.domain.ingestion import (
    MitcDocument,
    MitcIngestor,
    build_metadata,
    card_info_from_dict,
    document_id,
    fallback_card_info,
    fallback_card_name,
)

TERMS = "Most Important Terms and Conditions. Annual fee Rs 2,500 plus GST. " * 5


@pytest.fixture
def ingestor(fake_llm, fake_vector_store) -> MitcIngestor:
    return MitcIngestor(fake_llm, fake_vector_store)


def test_document_id_is_lowercase_slug():
    assert document_id("HDFC_Regalia Gold.v2.txt") == "hdfc-regalia-gold-v2"


def test_fallback_card_name_from_filename():
    assert fallback_card_name("hdfc_regalia-gold.pdf") == "Hdfc Regalia Gold"


def test_card_info_parses_formatted_fee_and_defaults_benefits():
    info = card_info_from_dict({"cardName": "SBI Elite", "annualFee": "4,999", "keyBenefits": []}, "sbi.txt")

    assert info.card_name == "SBI Elite"
    assert info.annual_fee == 4999
    assert info.key_benefits == ["Standard credit card benefits"]
    assert info.issuer == "Unknown Bank"


def test_card_info_non_numeric_fee_becomes_zero():
    assert card_info_from_dict({"annualFee": "Nil"}, "x.txt").annual_fee == 0


def test_metadata_is_flat_and_bounded():
    info = card_info_from_dict(
        {"cardName": "Axis Atlas", "keyBenefits": ["a", "b", "c", "d"], "rewardsStructure": "5X miles"},
        "axis.txt",
    )
    document = MitcDocument(file_name="axis.txt", content="z" * 9000)

    metadata = build_metadata(info, document, datetime(2025, 1, 2, 3, 4, 5))

    assert all(isinstance(v, (str, int, float)) for v in metadata.values())
    assert json.loads(metadata["rewardsRate"]) == {"general": "5X miles"}
    assert metadata["benefitsSummary"] == "a | b | c | d"
    assert metadata["primaryBenefits"] == "a | b | c"
    assert len(metadata["mitcContent"]) == 8000
    assert metadata["contentLength"] == 9000
    assert metadata["extractedAt"] == "2025-01-02T03:04:05"


async def test_build_record_uses_extracted_card_info(ingestor, fake_llm):
    record = await ingestor.build_record(MitcDocument(file_name="hdfc_regalia.txt", content=TERMS))

    assert record["id"] == "hdfc-regalia"
    assert record["values"] == [0.5] * 8
    assert record["metadata"]["cardName"] == "HDFC Regalia Gold"
    assert record["metadata"]["annualFee"] == 2500
    assert fake_llm.embeddings[0].startswith("HDFC Regalia Gold HDFC Bank Travel ")
    assert fake_llm.completions[0]["temperature"] == 0.1


async def test_extraction_failure_falls_back_to_filename(ingestor, fake_llm):
    fake_llm.reply = lambda messages: "I could not find any card details."

    info = await ingestor.extract_card_info(MitcDocument(file_name="icici_emeralde.txt", content=TERMS))

    assert info == fallback_card_info("icici_emeralde.txt")
    assert info.card_name == "Icici Emeralde"


async def test_extraction_outage_falls_back_to_filename(ingestor, fake_llm):
    fake_llm.fail_complete = True

    info = await ingestor.extract_card_info(MitcDocument(file_name="sbi_elite.txt", content=TERMS))

    assert info.card_name == "Sbi Elite"
    assert info.key_benefits == ["Credit facility", "EMI options"]


async def test_ingest_skips_bad_documents_and_continues(ingestor, fake_vector_store):
    documents = [
        MitcDocument(file_name="short.txt", content="   too short   "),
        MitcDocument(file_name="hdfc_regalia.txt", content=TERMS),
    ]

    report = await ingestor.ingest(documents)

    assert report.uploaded == ["hdfc-regalia"]
    assert list(report.skipped) == ["short.txt"]
    assert [v["id"] for v in fake_vector_store.upserted] == ["hdfc-regalia"]


async def test_ingest_skips_document_when_embedding_fails(ingestor, fake_llm, fake_vector_store):
    fake_llm.fail_embed = True

    report = await ingestor.ingest([MitcDocument(file_name="axis_atlas.txt", content=TERMS)])

    assert report.uploaded == []
    assert "axis_atlas.txt" in report.skipped
    assert fake_vector_store.upserted == []


async def test_ingest_records_vector_store_failure(ingestor, fake_vector_store):
    fake_vector_store.fail = True

    report = await ingestor.ingest([MitcDocument(file_name="axis_atlas.txt", content=TERMS)])

    assert report.skipped == {"axis_atlas.txt": "index unavailable"}
