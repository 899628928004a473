"""
Infrastructure adapter: OpenAI-compatible chat completion (ChatOpenAI) → ILanguageModel.

All ChatOpenAI / langchain_openai details are confined here. The default
endpoint is Groq's OpenAI-compatible API; any compatible base URL works.
Authentication is the bearer key passed as ``api_key``.
"""

from typing import Any, Optional

from langchain_openai import ChatOpenAI
from openai import OpenAIError

from src.domain.errors import ConfigurationError, NarrativeGenerationError
from src.domain.ports.llm_port import ILanguageModel


class ChatCompletionAdapter(ILanguageModel):
    """Wraps ChatOpenAI and exposes the ILanguageModel interface."""

    DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        _chat_model: Any = None,
    ) -> None:
        """
        Args:
            api_key:     Bearer key for the completion endpoint.
            base_url:    OpenAI-compatible base URL. Defaults to Groq.
            model:       Model name. Defaults to llama-3.3-70b-versatile.
            _chat_model: Optional pre-built chat model (a fake in tests).
        """
        if _chat_model is not None:
            self._llm = _chat_model
            return
        if not api_key:
            raise ConfigurationError("LLM_API_KEY not configured")
        self._llm = ChatOpenAI(
            model=model or self.DEFAULT_MODEL,
            api_key=api_key,
            base_url=base_url or self.DEFAULT_BASE_URL,
            temperature=0.3,
            max_tokens=6000,
            top_p=1,
        )

    async def complete(
        self,
        messages: list[Any],
        callbacks: Optional[list[Any]] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        config: dict = {}
        if callbacks:
            config["callbacks"] = callbacks
        if metadata:
            config["metadata"] = metadata
        try:
            response = await self._llm.ainvoke(messages, config=config or None)
        except OpenAIError as exc:
            raise NarrativeGenerationError(f"Completion request failed: {exc}") from exc

        content = getattr(response, "content", response)
        if isinstance(content, list):
            # Multi-part replies: keep the text parts in order.
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        return str(content)
