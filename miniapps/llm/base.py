"""
Abstract base class for LLM providers.

This abstraction allows swapping out the underlying LLM (OpenAI, DeepSeek,
Gemini) without changing the mini-apps. Every provider takes the same
ChatRequest and returns the same ChatResponse.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Literal, Optional


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A message in a conversation with the LLM."""
    role: Role
    content: str


@dataclass(frozen=True)
class ChatRequest:
    """A single chat completion request.

    ``model`` may be left unset, in which case the provider uses its
    default model (the first entry of ``ProviderInfo.supported_models``).
    """
    messages: tuple[ChatMessage, ...]
    model: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    json_mode: bool = False
    seed: Optional[int] = None
    logprobs: bool = False
    top_logprobs: Optional[int] = None


@dataclass(frozen=True)
class TokenUsage:
    """Token counts as reported by the backend. Any of them may be missing."""
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass(frozen=True)
class TopLogprob:
    """One alternative token considered at a position."""
    token: str
    logprob: float


@dataclass(frozen=True)
class TokenLogprob:
    """Log probability of a generated token plus its top alternatives."""
    token: str
    logprob: float
    top_logprobs: tuple[TopLogprob, ...] = ()


@dataclass
class ChatResponse:
    """Normalized response from an LLM provider.

    For streaming calls every chunk carries the full text accumulated so far.
    """
    content: str
    model: str
    latency_ms: int
    usage: Optional[TokenUsage] = None
    logprobs: Optional[list[TokenLogprob]] = None


@dataclass(frozen=True)
class ProviderInfo:
    """Static description of a provider."""
    name: str
    version: str
    supported_models: list[str] = field(default_factory=list)

    @property
    def default_model(self) -> Optional[str]:
        return self.supported_models[0] if self.supported_models else None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        """
        Generate a chat completion.

        Args:
            request: Messages and generation settings

        Returns:
            ChatResponse with the generated content

        Raises:
            ProviderRequestError: transport failure, HTTP error status or
                malformed payload
        """
        pass

    @abstractmethod
    def stream_chat_completion(self, request: ChatRequest) -> AsyncIterator[ChatResponse]:
        """
        Generate a chat completion chunk by chunk.

        Each yielded ChatResponse holds the full text accumulated so far;
        the last one also carries token usage when the backend reports it.
        """
        pass

    @abstractmethod
    def provider_info(self) -> ProviderInfo:
        """Return the provider's name, version and supported models."""
        pass

    @property
    def provider_name(self) -> str:
        """Return the name of this provider (e.g., 'OpenAI', 'Gemini')."""
        return self.provider_info().name

    @property
    def default_model(self) -> str:
        """Return the model used when a request doesn't name one."""
        return self.provider_info().default_model or ""

    async def aclose(self) -> None:
        """Release the provider's HTTP client. Nothing to do by default."""
        pass
