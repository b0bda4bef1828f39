"""Merge all memories into one consolidated memory via the oracle."""

from keepsake.core.errors import DependencyError, EmptyInputError, EmptyResponseError
from keepsake.core.logging import get_logger, preview
from keepsake.llm.base import LLMConfig, LLMProvider
from keepsake.memory.base import Memory, dedupe_topics, new_id
from keepsake.memory.optimization.types import CompactionStrategy, StrategyType

logger = get_logger("memory.optimization.summarize")

COMPRESSION_PROMPT = """You are a memory compression assistant. Your task is to summarize multiple memories about a user into a single comprehensive summary while preserving all key facts.

Requirements:
- Combine related information from all memories
- Preserve all factual information
- Remove redundancy and consolidate repeated facts
- Create a coherent narrative about the user
- Maintain third-person perspective
- Do not add information not present in the original memories

Return only the summarized memory text, nothing else."""

MERGE_REQUEST = """Summarize these memories into a single summary:

{memories}"""


def _first_set(memories: list[Memory], attr: str) -> str | None:
    for memory in memories:
        value = getattr(memory, attr)
        if value:
            return value
    return None


class SummarizeStrategy(CompactionStrategy):
    """Maximum compression: N memories in, exactly one memory out."""

    type = StrategyType.SUMMARIZE

    def __init__(self, llm: LLMProvider, max_tokens: int = 2000, temperature: float = 0.3):
        self.llm = llm
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def name(self) -> str:
        return "Summarize"

    @property
    def description(self) -> str:
        return (
            "Combines all memories into a single comprehensive summary, "
            "achieving maximum compression by eliminating redundancy"
        )

    async def optimize(self, memories: list[Memory]) -> list[Memory]:
        if not memories:
            raise EmptyInputError("no memories to optimize")

        contents = [m.text for m in memories if m.text]
        if not contents:
            raise EmptyInputError("no memory content to summarize")

        messages = [
            {"role": "system", "content": COMPRESSION_PROMPT},
            {"role": "user", "content": MERGE_REQUEST.format(memories="\n\n".join(contents))},
        ]
        config = LLMConfig(max_tokens=self.max_tokens, temperature=self.temperature)

        try:
            response = await self.llm.complete(messages, config)
        except Exception as e:
            raise DependencyError("summarize memories", e) from e

        text = response.content.strip()
        if not text:
            raise EmptyResponseError("empty merged memory from model")

        merged = Memory(
            id=new_id(),
            user_id=_first_set(memories, "user_id") or "",
            agent_id=_first_set(memories, "agent_id"),
            team_id=_first_set(memories, "team_id"),
            text=text,
            topics=dedupe_topics([t for m in memories for t in m.topics]),
        )
        logger.debug(f"Merged {len(memories)} memories into: {preview(merged.text)}")
        return [merged]
