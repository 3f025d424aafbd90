"""Interfaces the domain layer expects from external AI services"""

from typing import Any, Dict, List, Optional, Protocol


class LLMClient(Protocol):
    """Chat completion + embedding provider"""

    async def embed(self, text: str) -> List[float]:
        ...

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        ...


class VectorStore(Protocol):
    """Nearest-neighbour index over card documents"""

    async def query(self, vector: List[float], top_k: int) -> List[Dict[str, Any]]:
        """Return matches as dicts with ``id``, ``score`` and ``metadata``"""
        ...

    async def upsert(self, vectors: List[Dict[str, Any]]) -> int:
        ...

    async def connection_status(self) -> Dict[str, Any]:
        """``{success, message, stats?}``; never raises"""
        ...
