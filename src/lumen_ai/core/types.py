"""Shared type aliases for the framework layer."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Union

# JSON-like dict returned by structured-data extraction
JsonDict = dict[str, Any]

# OpenAI-format chat messages handed to backend clients
Messages = list[dict[str, str]]

# Monotonic or wall-clock time source, injectable for tests
Clock = Callable[[], float]

# Async sleep, injectable so retry backoff can be observed without waiting
Sleeper = Callable[[float], Awaitable[None]]

# Progress callbacks may be plain functions or coroutines
MaybeAwaitable = Union[None, Awaitable[None]]
