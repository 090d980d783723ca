"""LLM service for ShouldCost.

Provides the prompt-in / text-out reasoning gateway over LangChain's
ChatOpenAI. Structure is recovered from the returned text by
services.extraction; no schema is enforced here.
"""

from typing import Dict, Any, Optional, List
import structlog
from langchain_openai import ChatOpenAI
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from config.settings import settings
from config.errors import ShouldCostError, ErrorCode

logger = structlog.get_logger()

CONTEXT_LIMIT_MARKERS = ("context_length", "maximum context")


def _token_usage(response: Any) -> int:
    metadata = getattr(response, "response_metadata", None) or {}
    return metadata.get("token_usage", {}).get("total_tokens", 0)


def _gateway_error(error: Exception) -> ShouldCostError:
    """Map a provider exception onto the pipeline error codes."""
    text = str(error)
    lowered = text.lower()
    details = {"original_error": text}
    if "rate_limit" in lowered:
        return ShouldCostError(ErrorCode.LLM_RATE_LIMIT, "OpenAI rate limit exceeded", details)
    if any(marker in lowered for marker in CONTEXT_LIMIT_MARKERS):
        return ShouldCostError(ErrorCode.LLM_CONTEXT_TOO_LONG, "Input too long for model context", details)
    return ShouldCostError(ErrorCode.LLM_ERROR, f"LLM generation failed: {text}", details)


class LLMService:
    """Chat gateway with lazy client creation and running token totals."""

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None
    ):
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.api_key = api_key or settings.openai_api_key

        self._client: Optional[ChatOpenAI] = None
        self._total_tokens_used = 0

    @property
    def client(self) -> ChatOpenAI:
        """Get LangChain ChatOpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                api_key=self.api_key
            )
        return self._client

    @property
    def total_tokens_used(self) -> int:
        """Get total tokens used across all calls."""
        return self._total_tokens_used

    async def generate(
        self,
        messages: List[BaseMessage],
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Run one chat completion.

        Args:
            messages: LangChain messages, system role first when present.
            max_tokens: Stage token budget; omitted when falsy.

        Returns:
            Dict with content, tokens_used and model.

        Raises:
            ShouldCostError: LLM_RATE_LIMIT, LLM_CONTEXT_TOO_LONG or LLM_ERROR.
        """
        kwargs = {"max_tokens": max_tokens} if max_tokens else {}
        try:
            response = await self.client.ainvoke(messages, **kwargs)
        except Exception as e:
            raise _gateway_error(e) from e

        tokens_used = _token_usage(response)
        self._total_tokens_used += tokens_used
        logger.info(
            "llm_generated",
            model=self.model,
            tokens_used=tokens_used,
            budget=max_tokens,
            content_length=len(response.content)
        )
        return {
            "content": response.content,
            "tokens_used": tokens_used,
            "model": self.model
        }

    async def complete(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        system_role: Optional[str] = None
    ) -> str:
        """Send a prompt and return the raw response text.

        Args:
            prompt: Rendered prompt.
            max_tokens: Optional max tokens for response.
            system_role: Optional persona sent as a system message.

        Returns:
            Response text, possibly wrapping JSON in prose or code fences.
        """
        messages: List[BaseMessage] = []
        if system_role:
            messages.append(SystemMessage(content=system_role))
        messages.append(HumanMessage(content=prompt))

        result = await self.generate(messages, max_tokens)
        return result["content"]


_default_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """Get the process-wide LLMService instance."""
    global _default_service
    if _default_service is None:
        _default_service = LLMService()
    return _default_service
