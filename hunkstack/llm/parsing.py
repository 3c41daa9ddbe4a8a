"""JSON parsing and validation utilities for LLM responses.

Contains:
- GroupingResponse / ProposedCommit: Schema of an AI grouping
- MessageResponse: Schema of an AI commit message
- parse_json_response: Parse raw LLM response as JSON
- validate_response: Validate parsed JSON against a response schema
"""

import json
from typing import Optional, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from hunkstack.llm.exceptions import JSONParseError

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class ProposedCommit(BaseModel):
    """One commit of an AI grouping."""

    message: str
    explanation: Optional[str] = None
    hunks: list[int] = Field(default_factory=list)

    @field_validator("hunks", mode="before")
    @classmethod
    def flatten_hunk_refs(cls, value: list[Union[int, dict]]) -> list[int]:
        """Accept bare indices as well as {"hunk": n} objects."""
        if not isinstance(value, list):
            return value
        return [item.get("hunk") if isinstance(item, dict) else item for item in value]


class GroupingResponse(BaseModel):
    """AI grouping of hunks into ordered commits."""

    commits: list[ProposedCommit]


class MessageResponse(BaseModel):
    """AI commit message: a summary line and an optional body."""

    summary: str
    body: Optional[str] = None


def parse_json_response(raw_response: str) -> dict:
    """Parse the LLM response as JSON.

    Args:
        raw_response: The raw text response from the LLM.

    Returns:
        The parsed JSON as a dictionary.

    Raises:
        JSONParseError: If parsing fails.
    """
    cleaned = raw_response.strip()

    # Remove markdown code fences if the model included them despite instructions
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)

    # Keep only the outermost object if there's extra content
    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        cleaned = cleaned[first_brace:last_brace + 1]

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise JSONParseError(
            f"Failed to parse LLM response as JSON.\n"
            f"Error: {e}\n"
            f"Raw response:\n{raw_response}"
        )

    if not isinstance(parsed, dict):
        raise JSONParseError(f"Expected a JSON object, got: {type(parsed).__name__}")
    return parsed


def validate_response(parsed: dict, schema: type[ResponseT]) -> ResponseT:
    """Validate parsed JSON against a pydantic response schema.

    Raises:
        JSONParseError: If validation fails.
    """
    try:
        return schema.model_validate(parsed)
    except ValidationError as e:
        raise JSONParseError(
            f"LLM response does not match expected schema.\n"
            f"Error: {e}\n"
            f"Parsed JSON: {parsed}"
        )
