"""Prompt utilities for hunkstack compose module.

Contains:
- GROUPING_SYSTEM_PROMPT: System prompt for grouping hunks into commits
- MESSAGE_SYSTEM_PROMPT: System prompt for writing a single commit message
- format_hunks_for_llm: Render hunks as an indexed inventory
- build_grouping_prompt: Build the user prompt for grouping
- build_message_prompt: Build the user prompt for a commit message
"""

from typing import Optional

from hunkstack.config import MAX_PROMPT_DIFF_CHARS
from hunkstack.compose.models import DraftCommit, Hunk


GROUPING_SYSTEM_PROMPT = """You are an expert software engineer creating a clean commit stack from a set of changes.

Your task is to split the given hunks into logical, atomic commits:
- Each commit should be cohesive and focused on one logical change
- Separate features, refactors, tests, docs, and config changes
- Order commits so that each one builds on the previous ones
- Reference ONLY the hunk indices listed in the inventory

Output ONLY valid JSON matching the required schema. No markdown fences or commentary."""


MESSAGE_SYSTEM_PROMPT = """You are an expert software engineer writing git commit messages.
Be precise: only describe changes actually shown in the diff.

Output ONLY valid JSON matching the required schema. No markdown fences or commentary."""


def format_hunks_for_llm(hunks: list[Hunk]) -> str:
    """Render hunks grouped by file, each labelled with its index.

    Args:
        hunks: Hunks to render, in index order

    Returns:
        Inventory text for the LLM
    """
    lines = ["[HUNK INVENTORY]"]
    current_file: Optional[tuple[str, str]] = None

    for hunk in hunks:
        if (hunk.file_name, hunk.origin) != current_file:
            current_file = (hunk.file_name, hunk.origin)
            lines.append("")
            lines.append(f"File: {hunk.file_name} ({hunk.origin})")

        if hunk.is_rename:
            lines.append(f"  [{hunk.index}] {hunk.content}")
            continue

        lines.append(f"  [{hunk.index}] {hunk.hunk_header} (+{hunk.additions}/-{hunk.deletions})")
        for content_line in hunk.content.split("\n"):
            lines.append(f"      {content_line}")

    return "\n".join(lines)


def _format_existing_drafts(drafts: list[DraftCommit]) -> str:
    described = [d for d in drafts if d.message.strip()]
    if not described:
        return "None"
    return "\n".join(
        f"- {d.message.splitlines()[0]} (hunks: {', '.join(map(str, d.hunk_indices)) or 'none'})"
        for d in described
    )


def build_grouping_prompt(
    hunks: list[Hunk],
    existing_drafts: list[DraftCommit],
    custom_instructions: Optional[str] = None,
) -> str:
    """Build the user prompt for grouping hunks into commits.

    Args:
        hunks: Every hunk of the session
        existing_drafts: The user's current draft commits, as context
        custom_instructions: Optional extra guidance from the user

    Returns:
        User prompt string
    """
    inventory_text = format_hunks_for_llm(hunks)
    instructions_text = custom_instructions.strip() if custom_instructions else "None"

    return f"""Split the following changes into a clean commit stack.

[STATS]
Files with changes: {len({h.file_name for h in hunks})}
Total hunks: {len(hunks)}

[CURRENT DRAFT COMMITS]
{_format_existing_drafts(existing_drafts)}

[USER INSTRUCTIONS]
{instructions_text}

{inventory_text}

[OUTPUT SCHEMA]
Return a JSON object with this exact structure:
{{
  "commits": [
    {{
      "message": "<summary line in imperative mood, max 72 chars>\\n\\n<optional body>",
      "explanation": "<one sentence on why these hunks belong together>",
      "hunks": [<hunk index>, <hunk index>]
    }}
  ]
}}

[RULES]
1. Reference ONLY hunk indices from the inventory above
2. Each hunk must appear in at most ONE commit
3. List commits in the order they should be applied
4. Follow the user instructions when they are given

Output ONLY the JSON object:"""


def build_message_prompt(diff_text: str) -> str:
    """Build the user prompt for writing the message of one commit.

    The diff is truncated past MAX_PROMPT_DIFF_CHARS.
    """
    if len(diff_text) > MAX_PROMPT_DIFF_CHARS:
        diff_text = diff_text[:MAX_PROMPT_DIFF_CHARS] + "\n... (diff truncated)"

    return f"""Write a commit message for the following diff.

[DIFF]
{diff_text}

[OUTPUT SCHEMA]
Return a JSON object with this exact structure:
{{
  "summary": "<summary line in imperative mood, max 72 chars>",
  "body": "<optional longer description, or null>"
}}

Output ONLY the JSON object:"""
