"""Pydantic schemas for summary output."""

from pydantic import BaseModel, ConfigDict, Field


class FinalSummary(BaseModel):
    """Two-section meeting summary.

    Serializes with the camelCase keys the mobile client expects
    (``keyPoints`` / ``nextSteps``).
    """

    model_config = ConfigDict(populate_by_name=True)

    key_points: str = Field(default="", alias="keyPoints")
    next_steps: str = Field(default="", alias="nextSteps")

    def is_empty(self) -> bool:
        return not self.key_points and not self.next_steps


# JSON Schema for structured aggregate output
SUMMARY_OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "key_points": {"type": "string"},
        "next_steps": {"type": "string"},
    },
    "required": ["key_points", "next_steps"],
    "additionalProperties": False,
}
