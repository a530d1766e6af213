"""Prompt templates describing how to call each tool."""

from .templates import PROMPT_TEMPLATES, PromptName, PromptTemplate

__all__ = ["PROMPT_TEMPLATES", "PromptName", "PromptTemplate"]
