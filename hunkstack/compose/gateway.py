"""Grouping and message generation for hunkstack compose module.

Contains:
- Succeeded / Cancelled / Failed: The three outcomes of a generation request
- GroupingResult, MessageResult: Successful generation payloads
- GenerationGateway: Abstract cancellable generation contract
- LLMGenerationGateway: Gateway backed by a hunkstack.llm provider
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from hunkstack.config import AI_DRAFT_ID_PREFIX
from hunkstack.compose.cancellation import (
    CancellationToken,
    OperationCancelledError,
    run_cancellable,
)
from hunkstack.compose.errors import GenerationFailedError
from hunkstack.compose.models import DraftCommit, Hunk, HunkMapEntry
from hunkstack.compose.prompt import (
    GROUPING_SYSTEM_PROMPT,
    MESSAGE_SYSTEM_PROMPT,
    build_grouping_prompt,
    build_message_prompt,
)
from hunkstack.llm import BaseLLMProvider, get_provider
from hunkstack.llm.exceptions import LLMError
from hunkstack.llm.parsing import (
    GroupingResponse,
    MessageResponse,
    parse_json_response,
    validate_response,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class Failed:
    error: Exception


Outcome = Union[Succeeded[T], Cancelled, Failed]


@dataclass
class GroupingResult:
    """Draft commits proposed by a grouping request."""

    drafts: list[DraftCommit]


@dataclass
class MessageResult:
    """A generated commit message."""

    summary: str
    body: Optional[str] = None

    @property
    def message(self) -> str:
        """Full commit message: the summary, then the body after a blank line."""
        if self.body and self.body.strip():
            return f"{self.summary.strip()}\n\n{self.body.strip()}"
        return self.summary.strip()


class GenerationGateway(ABC):
    """Cancellable request/response contract to a suggestion service.

    Implementations return Cancelled() when token is cancelled before a
    result is available and Failed(error) for every other problem. They do
    not raise for either.
    """

    @abstractmethod
    async def generate_grouping(
        self,
        hunks: list[Hunk],
        existing_drafts: list[DraftCommit],
        hunk_map: list[HunkMapEntry],
        custom_instructions: Optional[str],
        token: CancellationToken,
    ) -> "Outcome[GroupingResult]":
        pass

    @abstractmethod
    async def generate_message(
        self,
        commit_id: str,
        diff_text: str,
        token: CancellationToken,
    ) -> "Outcome[MessageResult]":
        pass


def drafts_from_grouping(
    response: GroupingResponse, hunk_map: list[HunkMapEntry]
) -> list[DraftCommit]:
    """Turn an AI grouping into draft commits, validated against hunk_map.

    Commits without hunks are dropped.

    Raises:
        GenerationFailedError: If a hunk index is unknown or repeated, or no
            commit with hunks remains.
    """
    known = {entry.index for entry in hunk_map}
    seen: set[int] = set()
    drafts: list[DraftCommit] = []

    for commit in response.commits:
        if not commit.hunks:
            continue
        for index in commit.hunks:
            if index not in known:
                raise GenerationFailedError(f"Grouping references unknown hunk: {index}")
            if index in seen:
                raise GenerationFailedError(f"Grouping assigns hunk {index} more than once")
            seen.add(index)
        drafts.append(
            DraftCommit(
                id=f"{AI_DRAFT_ID_PREFIX}-{len(drafts)}",
                message=commit.message.strip(),
                ai_explanation=commit.explanation,
                hunk_indices=list(commit.hunks),
            )
        )

    if not drafts:
        raise GenerationFailedError("Grouping did not propose any commits")
    return drafts


class LLMGenerationGateway(GenerationGateway):
    """Generation gateway that prompts an LLM provider.

    The provider call is blocking and runs in a worker thread. Cancelling
    the token abandons the call; its response is discarded.
    """

    def __init__(self, provider: Optional[BaseLLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> BaseLLMProvider:
        if self._provider is None:
            self._provider = get_provider()
        return self._provider

    async def generate_grouping(
        self,
        hunks: list[Hunk],
        existing_drafts: list[DraftCommit],
        hunk_map: list[HunkMapEntry],
        custom_instructions: Optional[str],
        token: CancellationToken,
    ) -> "Outcome[GroupingResult]":
        user_prompt = build_grouping_prompt(hunks, existing_drafts, custom_instructions)
        try:
            result = await run_cancellable(
                token, self.provider.generate_raw, GROUPING_SYSTEM_PROMPT, user_prompt
            )
            parsed = validate_response(parse_json_response(result.raw_response), GroupingResponse)
            drafts = drafts_from_grouping(parsed, hunk_map)
        except OperationCancelledError:
            return Cancelled()
        except (LLMError, GenerationFailedError) as e:
            logger.warning("Grouping generation failed: %s", e)
            return Failed(e)

        logger.info("Grouping proposed %d commits (model %s)", len(drafts), result.model)
        return Succeeded(GroupingResult(drafts=drafts))

    async def generate_message(
        self,
        commit_id: str,
        diff_text: str,
        token: CancellationToken,
    ) -> "Outcome[MessageResult]":
        user_prompt = build_message_prompt(diff_text)
        try:
            result = await run_cancellable(
                token, self.provider.generate_raw, MESSAGE_SYSTEM_PROMPT, user_prompt
            )
            parsed = validate_response(parse_json_response(result.raw_response), MessageResponse)
        except OperationCancelledError:
            return Cancelled()
        except LLMError as e:
            logger.warning("Message generation for %s failed: %s", commit_id, e)
            return Failed(e)

        if not parsed.summary.strip():
            error = GenerationFailedError(f"Empty commit message generated for {commit_id}")
            logger.warning("%s", error)
            return Failed(error)

        return Succeeded(MessageResult(summary=parsed.summary, body=parsed.body))
