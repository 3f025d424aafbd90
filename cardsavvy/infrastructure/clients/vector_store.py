"""Pinecone REST client for the card MITC index"""

from typing import Any, Dict, List

import httpx

from cardsavvy.config import settings
from cardsavvy.domain.exceptions import VectorStoreError

API_VERSION = "2024-07"


class PineconeClient:
    """Client for the Pinecone control plane and one index's data plane"""

    def __init__(
        self,
        api_key: str | None = None,
        index_name: str | None = None,
        index_host: str | None = None,
        control_plane_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or settings.pinecone_api_key
        self.index_name = index_name or settings.pinecone_index_name
        self.index_host = index_host or settings.pinecone_index_host
        self.control_plane_url = (control_plane_url or settings.pinecone_control_plane_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"Api-Key": self.api_key, "X-Pinecone-API-Version": API_VERSION},
        )

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        async with self._client() as client:
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json() if response.content else {}
            except httpx.TimeoutException as e:
                raise VectorStoreError(f"Pinecone timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise VectorStoreError(f"Pinecone error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise VectorStoreError(f"Pinecone unreachable: {e}") from e
            except ValueError as e:
                raise VectorStoreError(f"Invalid response from Pinecone: {e}") from e

    async def _data_plane_url(self) -> str:
        if not self.index_host:
            description = await self.describe_index()
            host = description.get("host")
            if not host:
                raise VectorStoreError(f"Index {self.index_name} has no host yet")
            self.index_host = host
        host = self.index_host
        if not host.startswith("http"):
            host = f"https://{host}"
        return host.rstrip("/")

    # Control plane

    async def list_indexes(self) -> List[str]:
        data = await self._request("GET", f"{self.control_plane_url}/indexes")
        return [index["name"] for index in data.get("indexes", []) if "name" in index]

    async def describe_index(self) -> Dict[str, Any]:
        return await self._request("GET", f"{self.control_plane_url}/indexes/{self.index_name}")

    async def ensure_index(self, dimension: int | None = None) -> bool:
        """
        Create the serverless cosine index if it does not exist.

        Returns:
            True when the index was created by this call
        """
        if self.index_name in await self.list_indexes():
            return False
        await self._request(
            "POST",
            f"{self.control_plane_url}/indexes",
            json={
                "name": self.index_name,
                "dimension": dimension or settings.embedding_dimension,
                "metric": "cosine",
                "spec": {"serverless": {"cloud": "aws", "region": "us-east-1"}},
            },
        )
        return True

    # Data plane

    async def query(self, vector: List[float], top_k: int) -> List[Dict[str, Any]]:
        """
        Nearest-neighbour query with metadata.

        Raises:
            VectorStoreError: On timeout, HTTP errors, or invalid response
        """
        base = await self._data_plane_url()
        data = await self._request(
            "POST",
            f"{base}/query",
            json={"vector": vector, "topK": top_k, "includeMetadata": True, "includeValues": False},
        )
        return [
            {"id": match["id"], "score": match.get("score"), "metadata": match.get("metadata") or {}}
            for match in data.get("matches", [])
            if "id" in match
        ]

    async def upsert(self, vectors: List[Dict[str, Any]]) -> int:
        base = await self._data_plane_url()
        data = await self._request("POST", f"{base}/vectors/upsert", json={"vectors": vectors})
        return int(data.get("upsertedCount", len(vectors)))

    async def describe_index_stats(self) -> Dict[str, Any]:
        base = await self._data_plane_url()
        return await self._request("POST", f"{base}/describe_index_stats", json={})

    async def connection_status(self) -> Dict[str, Any]:
        """Report index availability without raising"""
        try:
            if self.index_name not in await self.list_indexes():
                return {
                    "success": False,
                    "message": f"Index {self.index_name} does not exist. Please create it first.",
                }
            stats = await self.describe_index_stats()
        except VectorStoreError as e:
            return {"success": False, "message": f"Failed to connect to Pinecone: {e}"}
        return {
            "success": True,
            "message": f"Successfully connected to Pinecone index: {self.index_name}",
            "stats": stats,
        }
