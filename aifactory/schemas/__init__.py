"""
Schemas module: normalized request/response models.

Every provider accepts a GenerationRequest and returns a GenerationResponse;
the dispatch engine only ever sees these shapes.

Example usage:
    from aifactory.schemas import GenerationRequest

    request = GenerationRequest(prompt="Hello", model_id="gpt-4o-mini")
"""

from aifactory.schemas.generation import (
    NO_PROVIDER_ID,
    PREFERRED_PROVIDER_KEY,
    ConversationTurn,
    GenerationRequest,
    GenerationResponse,
    UsageContext,
)

__all__ = [
    "NO_PROVIDER_ID",
    "PREFERRED_PROVIDER_KEY",
    "ConversationTurn",
    "GenerationRequest",
    "GenerationResponse",
    "UsageContext",
]
