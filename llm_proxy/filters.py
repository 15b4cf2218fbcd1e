# llm_proxy/filters.py
"""
Prompt filter hook.

The proxy never implements redaction itself. A PromptFilter is any
callable taking the prompt and returning the text to send upstream; it is
supplied through ProxyConfig.filter_function and applied before the cache
lookup, so cached and live requests see the same filtered prompt.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PromptFilter(Protocol):
    def __call__(self, prompt: str) -> str: ...


def apply_filter(prompt_filter: PromptFilter | None, prompt: str) -> str:
    if prompt_filter is None:
        return prompt
    filtered = prompt_filter(prompt)
    if not isinstance(filtered, str):
        raise TypeError(
            f"filter_function must return str, got {type(filtered).__name__}"
        )
    return filtered
