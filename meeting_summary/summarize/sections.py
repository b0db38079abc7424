"""Extract the labelled sections from aggregated summary text."""

import json

from .schema import FinalSummary

KEY_POINTS_MARKER = "Key Points:"
NEXT_STEPS_MARKER = "Next Steps:"


def parse_sections(raw: str) -> FinalSummary:
    """
    Split free text into key points and next steps.

    Everything before the first "Next Steps:" is the key points (with a
    leading "Key Points:" label removed), everything after it is the next
    steps. Without the marker, next steps is empty.
    """
    head, marker, tail = raw.partition(NEXT_STEPS_MARKER)

    head = head.strip()
    if head.startswith(KEY_POINTS_MARKER):
        head = head[len(KEY_POINTS_MARKER) :]

    return FinalSummary(
        key_points=head.strip(),
        next_steps=tail.strip() if marker else "",
    )


def parse_structured(raw: str) -> FinalSummary:
    """
    Parse a JSON object with key_points / next_steps fields.

    Raises:
        ValueError: raw is not valid JSON or does not match the schema
    """
    data = json.loads(_strip_code_fence(raw))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    summary = FinalSummary.model_validate(
        {
            "key_points": data.get("key_points", data.get("keyPoints")),
            "next_steps": data.get("next_steps", data.get("nextSteps", "")),
        }
    )
    return FinalSummary(
        key_points=summary.key_points.strip(),
        next_steps=summary.next_steps.strip(),
    )


def _strip_code_fence(text: str) -> str:
    """Remove markdown code fence from text."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()
