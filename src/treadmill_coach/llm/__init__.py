"""Plan-generation assistant: prompt, client and response schemas."""

from .assistant import AssistantClient, extract_json
from .prompts import build_plan_prompt
from .schemas import AIPlanResponse, FixturePlan

__all__ = [
    "AssistantClient",
    "extract_json",
    "build_plan_prompt",
    "AIPlanResponse",
    "FixturePlan",
]
