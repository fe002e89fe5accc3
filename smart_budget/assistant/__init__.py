"""Keyword chat assistant."""

from smart_budget.assistant.chat import DEFAULT_REPLIES, ChatAssistant

__all__ = ["ChatAssistant", "DEFAULT_REPLIES"]
