import logging
from typing import Any, Dict, List

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

logger = logging.getLogger(__name__)


class CompletionClient:
    """Thin wrapper over the OpenAI chat completions API (legacy function calling).

    The underlying ``AsyncOpenAI`` client is built on the first request, so a
    missing API key fails that request instead of the service construction.
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.0,
        timeout: float | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key, base_url=self._base_url, timeout=self._timeout
            )
        return self._client

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        functions: List[Dict[str, Any]] | None = None,
    ) -> ChatCompletion:
        """Send one chat completion request.

        When ``functions`` is non-empty they are attached together with
        ``function_call="auto"``; otherwise neither is sent.

        Raises:
            openai.OpenAIError: If no API key is configured or the request fails.
        """
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if functions:
            kwargs["functions"] = functions
            kwargs["function_call"] = "auto"

        logger.info(
            "Calling completion API: model=%s, messages=%d, functions=%d",
            self.model,
            len(messages),
            len(functions or []),
        )
        return await self.client.chat.completions.create(**kwargs)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
