"""Fact extraction from a single user/assistant exchange."""

import json

from keepsake.core.errors import DependencyError
from keepsake.core.logging import get_logger, preview
from keepsake.llm.base import LLMConfig, LLMProvider, ResponseFormat

logger = get_logger("memory.extractor")

EXTRACTOR_SYSTEM_PROMPT = (
    "You are a memory extraction assistant. "
    "Extract important facts about users from conversations."
)

EXTRACTION_PROMPT = """Analyze the following conversation between a user and an AI assistant.
Extract any important facts, preferences, or personal information about the user that should be remembered for future interactions.

Guidelines:
- Only extract factual information about the user
- Include preferences, hobbies, work, personal details, etc.
- Keep it concise, clear and in the third person
- If there's nothing meaningful to remember, return empty
- Do not include temporary information like current weather or time

User: {user}
Assistant: {assistant}
"""

PLAIN_SUFFIX = "Important information to remember about the user:"

STRUCTURED_SUFFIX = """Provide your output as a JSON object with the following fields:
"memory": the fact to remember, or an empty string
"nothing_to_remember": true if there is nothing worth remembering, else false
Start your response with `{` and end it with `}`."""

# Prose refusals some models return instead of an empty reply
REFUSAL_MARKERS = ("nothing meaningful", "no important", "no specific")
MIN_MEMORY_LENGTH = 10


def filter_memory_text(text: str) -> str:
    """Return the stripped text, or "" if it reads as 'nothing to remember'."""
    memory = text.strip()
    lowered = memory.lower()
    if (
        not memory
        or any(marker in lowered for marker in REFUSAL_MARKERS)
        or len(memory) < MIN_MEMORY_LENGTH
    ):
        return ""
    return memory


class MemoryExtractor:
    """Turns a conversation turn into one concise third-person fact."""

    def __init__(
        self,
        llm: LLMProvider,
        temperature: float = 0.1,
        use_structured_output: bool = False,
    ):
        self.llm = llm
        self.temperature = temperature
        self.use_structured_output = use_structured_output

    def build_prompt(self, user_turn: str, assistant_turn: str) -> str:
        prompt = EXTRACTION_PROMPT.format(user=user_turn, assistant=assistant_turn)
        suffix = STRUCTURED_SUFFIX if self.use_structured_output else PLAIN_SUFFIX
        return prompt + "\n" + suffix

    async def extract(self, user_turn: str, assistant_turn: str) -> str:
        """Extract a memory string; "" means nothing worth remembering."""
        messages = [
            {"role": "system", "content": EXTRACTOR_SYSTEM_PROMPT},
            {"role": "user", "content": self.build_prompt(user_turn, assistant_turn)},
        ]
        config = LLMConfig(
            temperature=self.temperature,
            response_format=(
                ResponseFormat.JSON_OBJECT
                if self.use_structured_output
                else ResponseFormat.TEXT
            ),
        )

        try:
            response = await self.llm.complete(messages, config)
        except Exception as e:
            raise DependencyError("extract memory", e) from e

        if self.use_structured_output:
            memory = self._parse_structured(response.content)
        else:
            memory = filter_memory_text(response.content)

        if memory:
            logger.debug(f"Extracted memory: {preview(memory)}")
        else:
            logger.debug("Nothing to remember in this turn")
        return memory

    def _parse_structured(self, content: str) -> str:
        """Read the JSON verdict; fall back to the text heuristic."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("Structured extraction reply is not JSON, using text filter")
            return filter_memory_text(content)

        if not isinstance(data, dict):
            logger.warning("Structured extraction reply is not a JSON object, ignoring it")
            return ""
        if data.get("nothing_to_remember") is True:
            return ""

        memory = data.get("memory")
        if not isinstance(memory, str):
            logger.warning("Structured extraction reply has no memory string, ignoring it")
            return ""
        return filter_memory_text(memory)
