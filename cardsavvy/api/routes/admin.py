"""Vector index administration"""

from fastapi import APIRouter, Depends

from cardsavvy.api.dependencies import get_vector_store
from cardsavvy.api.routes.schemas import VectorIndexStatus
from cardsavvy.domain.ports import VectorStore

router = APIRouter()


@router.get("/vector-index/status", response_model=VectorIndexStatus, response_model_exclude_none=True)
async def vector_index_status(vector_store: VectorStore = Depends(get_vector_store)):
    """Connectivity and stats for the card index; failures are reported in the body"""
    return VectorIndexStatus(**await vector_store.connection_status())
