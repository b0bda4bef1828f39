"""Gate deciding whether a user message is worth remembering."""

from keepsake.core.errors import DependencyError
from keepsake.core.logging import get_logger, preview
from keepsake.llm.base import LLMConfig, LLMProvider
from keepsake.memory.base import Memory

logger = get_logger("memory.classifier")

CLASSIFIER_PROMPT = """Your task is to identify if the user's message contains information that is worth remembering for future conversations.
This includes details that could personalize ongoing interactions with the user, such as:
  - Personal facts: name, age, occupation, location, interests, preferences, etc.
  - Significant life events or experiences shared by the user
  - Important context about the user's current situation, challenges or goals
  - What the user likes or dislikes, their opinions, beliefs, values, etc.
  - Any other details that provide valuable insights into the user's personality, perspective or needs
Your task is to decide whether the user input contains any of the above information worth remembering.
If the user input contains any information worth remembering for future conversations, respond with 'yes'.
If the input does not contain any important details worth saving, respond with 'no' to disregard it.
You will also be provided with a list of existing memories to help you decide if the input is new or already known.
If the memory already exists that matches the input, respond with 'no' to keep it as is.
If a memory exists that needs to be updated or deleted, respond with 'yes' to update/delete it.
You must only respond with 'yes' or 'no'. Nothing else will be considered as a valid response."""


class MemoryClassifier:
    """Asks the oracle a strict yes/no question about a user turn."""

    def __init__(self, llm: LLMProvider, temperature: float = 0.0):
        self.llm = llm
        self.temperature = temperature

    def build_system_prompt(self, existing_memories: list[Memory] | None = None) -> str:
        """Instruction block plus the known memories, if any."""
        if not existing_memories:
            return CLASSIFIER_PROMPT

        lines = [CLASSIFIER_PROMPT, "\nExisting memories:", "<existing_memories>"]
        lines.extend(f"  - {m.text}" for m in existing_memories)
        lines.append("</existing_memories>")
        return "\n".join(lines)

    async def should_remember(
        self,
        turn_text: str,
        existing_memories: list[Memory] | None = None,
    ) -> bool:
        """True only if the oracle answers exactly 'yes'."""
        messages = [
            {"role": "system", "content": self.build_system_prompt(existing_memories)},
            {"role": "user", "content": turn_text},
        ]
        config = LLMConfig(max_tokens=5, temperature=self.temperature)

        try:
            response = await self.llm.complete(messages, config)
        except Exception as e:
            raise DependencyError("classify memory", e) from e

        verdict = response.content.strip().lower()
        logger.debug(f"Classifier verdict {verdict!r} for: {preview(turn_text)}")
        return verdict == "yes"
