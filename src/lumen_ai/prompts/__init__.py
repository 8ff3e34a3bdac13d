"""Prompt templates."""

from __future__ import annotations

from lumen_ai.prompts.templates import NO_CONTEXT, prompt_names, render

__all__ = ["NO_CONTEXT", "prompt_names", "render"]
