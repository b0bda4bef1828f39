"""
Session summarizer.

Condenses an ordered list of user/assistant turn pairs into one short
summary, asking the oracle for a ``{"summary": ...}`` JSON object.
"""

import json
from typing import Any

from keepsake.core.errors import (
    DependencyError,
    EmptyInputError,
    EmptyResponseError,
    ParseError,
)
from keepsake.core.logging import get_logger, preview
from keepsake.llm.base import LLMConfig, LLMProvider, ResponseFormat
from keepsake.memory.base import SessionSummary, TurnPair

logger = get_logger("memory.summarizer")

SUMMARY_PROMPT = """Analyze the following conversation between a user and an assistant.
Create a concise summary that captures:
- The main topics discussed
- Key questions asked by the user
- Important decisions or conclusions reached
- Any action items or next steps

Keep the summary under 200 words and focus on the most important aspects.

Conversation:"""

JSON_INSTRUCTIONS = """Provide your output as a JSON containing the following field:
"summary": "The conversation summary"
Start your response with `{` and end it with `}`.
Make sure it only contains valid JSON."""

SUMMARY_REQUEST = "Provide the summary of the conversation."


def render_transcript(turn_pairs: list[TurnPair]) -> str:
    lines = []
    for pair in turn_pairs:
        lines.append(f"User: {pair.user}")
        if pair.assistant:
            lines.append(f"Assistant: {pair.assistant}")
    return "\n".join(lines)


def strip_code_fence(content: str) -> str:
    """Remove a surrounding ```json (any case) or bare ``` markdown fence."""
    content = content.strip()
    if content[:7].lower() == "```json":
        content = content[len("```json"):]
    elif content.startswith("```"):
        content = content[len("```"):]
    else:
        return content
    if content.endswith("```"):
        content = content[: -len("```")]
    return content.strip()


def parse_summary(content: str) -> str:
    """Pull the summary text out of an oracle reply.

    Plain JSON is tried first, then the same text with a markdown fence
    removed. Valid JSON without a string "summary" field yields the raw
    reply unchanged.
    """
    if not content.strip():
        raise EmptyResponseError("empty response from model")

    data: Any
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        try:
            data = json.loads(strip_code_fence(content))
        except json.JSONDecodeError as e:
            raise ParseError(f"failed to parse session summary response: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("summary"), str):
        return data["summary"]
    return content


class SessionSummarizer:
    """Builds SessionSummary objects from conversation turns."""

    def __init__(self, llm: LLMProvider, temperature: float = 0.3, max_tokens: int = 1024):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_system_prompt(self, turn_pairs: list[TurnPair]) -> str:
        parts = [SUMMARY_PROMPT, render_transcript(turn_pairs)]
        if not getattr(self.llm, "supports_structured_output", False):
            parts.append(JSON_INSTRUCTIONS)
        return "\n".join(parts)

    async def summarize(
        self,
        user_id: str,
        session_id: str,
        turn_pairs: list[TurnPair],
    ) -> SessionSummary:
        """Summarize a session. The result is not persisted here."""
        if not turn_pairs:
            raise EmptyInputError("no message pairs provided for summarization")

        messages = [
            {"role": "system", "content": self.build_system_prompt(turn_pairs)},
            {"role": "user", "content": SUMMARY_REQUEST},
        ]
        config = LLMConfig(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_format=ResponseFormat.JSON_OBJECT,
        )

        logger.debug(
            f"Summarizing session {session_id} for {user_id}: {len(turn_pairs)} turn pairs"
        )
        try:
            response = await self.llm.complete(messages, config)
        except Exception as e:
            raise DependencyError("summarize session", e) from e

        summary_text = parse_summary(response.content)
        logger.debug(f"Session {session_id} summary: {preview(summary_text)}")
        return SessionSummary(
            user_id=user_id,
            session_id=session_id,
            summary_text=summary_text,
        )
