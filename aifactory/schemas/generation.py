"""
Pydantic Schemas for Generation Requests and Responses

This module defines the normalized shapes every provider accepts and emits:
- GenerationRequest: prompt plus optional model, sampling and conversation fields
- GenerationResponse: success flag, generated text or error, provider identity
- ConversationTurn / UsageContext: request sub-models

Both top-level models are frozen. Requests are never mutated by the
dispatch layer; responses are built fresh per call and copied (not
modified) when decorated.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from aifactory.errors import AIErrorCode

PREFERRED_PROVIDER_KEY = "preferred_provider"
NO_PROVIDER_ID = "none"


# =============================================================================
# REQUEST MODELS
# =============================================================================


class ConversationTurn(BaseModel):
    """One prior message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime | None = None


class UsageContext(BaseModel):
    """
    Advisory hints about how a request will be used.

    Never mandatory and never consulted for correctness; providers and
    decoration may read them.
    """

    model_config = ConfigDict(frozen=True)

    task_type: Literal[
        "content-generation", "analysis", "conversation", "code-generation", "custom"
    ] = "custom"
    priority: Literal["low", "medium", "high"] = "medium"
    cost_sensitive: bool = False
    quality_preference: Literal["speed", "balanced", "quality"] | None = None


class GenerationRequest(BaseModel):
    """
    One generation intent.

    Prompt and sampling fields are not range-checked here: an empty prompt
    or an out-of-range temperature is forwarded to the provider, which
    decides whether to reject it.

    Example:
        GenerationRequest(
            prompt="Summarize this paragraph",
            model_id="gpt-4o-mini",
            history=[{"role": "user", "content": "Hi"}],
            metadata={"preferred_provider": "openai"},
        )
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    prompt: str = Field(..., description="The text to send to the model")

    model_id: str | None = Field(
        default=None,
        description="Explicit model; providers fall back to their default when absent",
    )

    temperature: float | None = Field(
        default=None, description="Sampling temperature; range is enforced by the provider"
    )

    max_tokens: int | None = Field(
        default=None, description="Output limit; a falsy value means the provider default"
    )

    system_prompt: str | None = Field(
        default=None, description="Leading instruction, sent first when supported"
    )

    history: tuple[ConversationTurn, ...] = Field(
        default=(), description="Prior turns in conversation order"
    )

    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque key-value bag; 'preferred_provider' influences selection",
    )

    usage_context: UsageContext | None = None

    @property
    def preferred_provider(self) -> str | None:
        """Provider id requested through metadata, if any."""
        value = self.metadata.get(PREFERRED_PROVIDER_KEY) or self.metadata.get(
            "preferredProvider"
        )
        return str(value) if value else None


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class GenerationResponse(BaseModel):
    """
    Normalized result of a generation call.

    `success` is the discriminant: on success `data`, `model_used` and
    `provider_id` are set; on failure `error` and `provider_id` are set.
    Everything after `error_code` is best-effort decoration.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    success: bool
    data: str | None = None
    error: str | None = None
    model_used: str | None = None
    provider_id: str | None = None
    error_code: AIErrorCode | None = None
    status_code: int | None = None

    tokens_used: int | None = None
    cost: float | None = None
    processing_time: float | None = Field(
        default=None, description="Milliseconds spent in the whole dispatch call"
    )
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    model_capabilities: tuple[str, ...] = ()
    suggested_improvements: tuple[str, ...] = ()
    request_id: str | None = None
    timestamp: datetime | None = None
    retry_count: int = 0
    fallback_used: bool = False

    @classmethod
    def ok(
        cls,
        data: str,
        model_used: str | None,
        provider_id: str,
        tokens_used: int | None = None,
        cost: float | None = None,
    ) -> "GenerationResponse":
        """Build a successful response."""
        return cls(
            success=True,
            data=data,
            model_used=model_used,
            provider_id=provider_id,
            tokens_used=tokens_used,
            cost=cost,
        )

    @classmethod
    def failure(
        cls,
        error: str,
        provider_id: str = NO_PROVIDER_ID,
        model_used: str | None = None,
        error_code: AIErrorCode | None = None,
        status_code: int | None = None,
        processing_time: float | None = None,
    ) -> "GenerationResponse":
        """Build a failed response."""
        return cls(
            success=False,
            error=error,
            provider_id=provider_id,
            model_used=model_used,
            error_code=error_code,
            status_code=status_code,
            processing_time=processing_time,
        )
