"""
Keepsake - long-term user memory for conversational agents.

Package structure:
- core: Configuration, logging, error hierarchy, typing aliases
- llm: Oracle (chat completion) and embedding provider abstraction
- memory: Data model, persistence, classification, extraction,
  summarization, ranking and compaction
"""

__version__ = "0.1.0"
