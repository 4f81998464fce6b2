"""Isolated fan-out of independent ledger reads.

Runs N named coroutines concurrently and folds their outcomes into successes
and failures. A branch that raises never cancels or affects its siblings;
its exception is captured once as a SourceFailure. Nothing is retried.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SourceFailure:
    """A single source that could not be read."""

    source: str
    error: Exception

    @property
    def error_type(self) -> str:
        return type(self.error).__name__

    def __str__(self) -> str:
        return f"{self.source}: {self.error_type}: {self.error}"


@dataclass(frozen=True)
class FanOutResult(Generic[T]):
    """Folded outcome of a fan-out: values by source name, plus failures."""

    successes: dict[str, T] = field(default_factory=dict)
    failures: list[SourceFailure] = field(default_factory=list)

    @property
    def degraded(self) -> list[str]:
        """Names of the sources that failed."""
        return [failure.source for failure in self.failures]

    @property
    def ok(self) -> bool:
        return not self.failures

    def get(self, source: str, default: T | None = None) -> T | None:
        return self.successes.get(source, default)


async def gather_isolated(branches: Mapping[str, Awaitable[T]]) -> FanOutResult[T]:
    """Await all branches concurrently and fold them into a FanOutResult.

    Args:
        branches: Source name -> awaitable. Insertion order is preserved in
            ``successes`` and ``failures``.

    Returns:
        A FanOutResult. Exceptions raised by branches are captured, except
        non-Exception BaseExceptions (cancellation, interrupts), which
        propagate.
    """
    names = list(branches)
    outcomes = await asyncio.gather(*branches.values(), return_exceptions=True)

    successes: dict[str, T] = {}
    failures: list[SourceFailure] = []
    for name, outcome in zip(names, outcomes, strict=True):
        if isinstance(outcome, Exception):
            failures.append(SourceFailure(source=name, error=outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            successes[name] = outcome

    return FanOutResult(successes=successes, failures=failures)
