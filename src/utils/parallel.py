"""Bounded fan-out helpers for read-only phases."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from opentelemetry import context as otel_context

T = TypeVar("T")
U = TypeVar("U")

DEFAULT_IO_WORKERS = 8


def resolve_max_workers(max_workers: int | None, *, kind: str = "io") -> int:
    """Resolve max_workers using runtime defaults when unset.

    Returns
    -------
    int
        Effective worker count.
    """
    if max_workers is not None:
        return max(1, max_workers)
    cpu_count = os.cpu_count() or 1
    if kind == "cpu":
        return max(1, cpu_count)
    return max(1, min(DEFAULT_IO_WORKERS, cpu_count * 2))


def bounded_map(
    items: Iterable[T],
    fn: Callable[[T], U],
    *,
    max_workers: int | None = None,
) -> Iterator[U]:
    """Map items over a bounded thread pool, yielding results in input order.

    The caller is the single collector: workers never touch shared state,
    results are handed back through the iterator. The current OpenTelemetry
    context is propagated into each worker so spans nest correctly.

    Parameters
    ----------
    items
        Work items.
    fn
        Pure function applied to each item.
    max_workers
        Optional worker bound, resolved via ``resolve_max_workers``.

    Yields
    ------
    U
        Results produced by applying ``fn`` to each item.
    """
    current = otel_context.get_current()

    def _wrapped(item: T) -> U:
        token = otel_context.attach(current)
        try:
            return fn(item)
        finally:
            otel_context.detach(token)

    workers = resolve_max_workers(max_workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        yield from executor.map(_wrapped, items)


__all__ = ["DEFAULT_IO_WORKERS", "bounded_map", "resolve_max_workers"]
