"""OpenAI client for chat completions and embeddings"""

from typing import Dict, List, Optional

import openai
from openai import AsyncOpenAI

from cardsavvy.config import settings
from cardsavvy.domain.exceptions import LLMServiceError
from cardsavvy.infrastructure.observability.metrics import llm_latency_histogram


class OpenAIClient:
    """Thin async wrapper that maps provider errors to LLMServiceError"""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        embedding_model: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model or settings.openai_model
        self.embedding_model = embedding_model or settings.openai_embedding_model
        self._client = client or AsyncOpenAI(api_key=api_key or settings.openai_api_key or "sk-missing")

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Run a chat completion and return the first choice's text.

        Raises:
            LLMServiceError: On any API, network or timeout error
        """
        kwargs = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            with llm_latency_histogram.labels(operation="completion").time():
                response = await self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    **kwargs,
                )
        except openai.OpenAIError as e:
            raise LLMServiceError(f"OpenAI completion failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def embed(self, text: str) -> List[float]:
        """
        Embed ``text`` with the configured embedding model.

        Raises:
            LLMServiceError: On any API error or an empty response
        """
        try:
            with llm_latency_histogram.labels(operation="embedding").time():
                response = await self._client.embeddings.create(
                    model=self.embedding_model,
                    input=text,
                )
        except openai.OpenAIError as e:
            raise LLMServiceError(f"OpenAI embedding failed: {e}") from e

        if not response.data:
            raise LLMServiceError("OpenAI returned no embedding")
        return list(response.data[0].embedding)
