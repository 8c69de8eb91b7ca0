"""
Best-effort response decoration.

Heuristic annotations attached to successful responses: elapsed time, a
coarse confidence score, capability hints from the model name and request
suggestions. None of these are accurate measurements and nothing depends
on them for correctness.
"""

import uuid
from datetime import datetime, timezone

from aifactory.schemas import GenerationRequest, GenerationResponse

# Checked in order; first substring match wins
_CAPABILITY_HINTS: list[tuple[str, tuple[str, ...]]] = [
    ("gpt-4", ("Advanced reasoning", "High quality", "Complex tasks")),
    ("gpt-3.5", ("Balanced performance", "Good value", "Versatile")),
    ("claude-3-opus", ("Maximum reasoning", "Premium quality", "Complex analysis")),
    ("claude", ("Advanced reasoning", "Long context", "Writing")),
    ("gemini", ("Multimodal", "Long context", "General tasks")),
    ("codellama", ("Code generation", "Programming assistance", "Technical tasks")),
    ("70b", ("Maximum reasoning", "Premium quality", "Complex analysis")),
    ("13b", ("High performance", "Advanced reasoning", "Professional tasks")),
    ("7b", ("Balanced performance", "Good value", "Versatile")),
    ("8b", ("Balanced performance", "Good value", "Versatile")),
    ("mistral", ("Fast processing", "Good reasoning", "General tasks")),
]


def model_capabilities(model_id: str | None) -> tuple[str, ...]:
    """Capability hints derived from substrings of the model id."""
    if not model_id:
        return ()
    lowered = model_id.lower()
    for needle, capabilities in _CAPABILITY_HINTS:
        if needle in lowered:
            return capabilities
    return ()


def suggested_improvements(
    request: GenerationRequest, response: GenerationResponse
) -> tuple[str, ...]:
    """Free-text suggestions for the caller."""
    suggestions: list[str] = []

    if response.success and response.data:
        if len(response.data.split()) < 50:
            suggestions.append("Consider increasing max_tokens for more detailed responses")
        if request.temperature is not None and request.temperature < 0.3:
            suggestions.append(
                "Low temperature gives focused but less creative responses"
            )

    context = request.usage_context
    if context and context.cost_sensitive and response.cost and response.cost > 0.01:
        suggestions.append("Consider using a smaller model to reduce costs")

    return tuple(suggestions)


def calculate_confidence(response: GenerationResponse, processing_time_ms: float) -> float:
    """
    Coarse confidence score in [0, 1].

    Starts at 0.7, rewards fast and longer responses, penalizes expensive
    ones. Failed responses score 0.
    """
    if not response.success:
        return 0.0

    confidence = 0.7
    if processing_time_ms < 2000:
        confidence += 0.1
    if processing_time_ms < 1000:
        confidence += 0.1
    if response.data and len(response.data) > 100:
        confidence += 0.1
    if response.cost and response.cost > 0.05:
        confidence -= 0.1

    return round(max(0.0, min(confidence, 1.0)), 4)


def decorate_response(
    request: GenerationRequest,
    response: GenerationResponse,
    processing_time_ms: float,
    retry_count: int = 0,
    fallback_used: bool = False,
) -> GenerationResponse:
    """
    Return a decorated copy of a provider response.

    The provider's own response object is left untouched.
    """
    return response.model_copy(
        update={
            "processing_time": round(processing_time_ms, 2),
            "confidence": calculate_confidence(response, processing_time_ms),
            "model_capabilities": model_capabilities(response.model_used),
            "suggested_improvements": suggested_improvements(request, response),
            "retry_count": retry_count,
            "fallback_used": fallback_used,
            "request_id": response.request_id or str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc),
        }
    )
