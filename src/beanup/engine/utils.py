"""Engine utility helpers."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from beanup.contracts.bean import Bean


class RemoteIdIndex:
    """Bean id to ClickUp task id, shared by the workers of one run.

    Every read and write goes through the lock, so a reader never observes a
    half-applied update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: dict[str, str] = {}

    def get(self, bean_id: str) -> str | None:
        with self._lock:
            return self._ids.get(bean_id)

    def set(self, bean_id: str, task_id: str) -> None:
        with self._lock:
            self._ids[bean_id] = task_id

    def discard(self, bean_id: str) -> None:
        with self._lock:
            self._ids.pop(bean_id, None)


def partition_layers(beans: Sequence[Bean]) -> list[list[Bean]]:
    """Group beans by parent depth within the run, roots first.

    A bean is a root when it has no parent or its parent is not part of the
    run. Beans caught in a parent cycle are treated as roots. Input order is
    preserved inside each layer.
    """
    by_id = {bean.id: bean for bean in beans}
    depths: dict[str, int] = {}

    def depth_of(bean_id: str) -> int:
        cached = depths.get(bean_id)
        if cached is not None:
            return cached
        chain: list[str] = []
        on_chain: set[str] = set()
        current: str | None = bean_id
        base = 0
        while current is not None:
            if current in depths:
                base = depths[current] + 1
                break
            if current in on_chain:
                # Cycle: every bean on the loop becomes a root.
                loop_start = chain.index(current)
                for member in chain[loop_start:]:
                    depths[member] = 0
                chain = chain[:loop_start]
                base = 1
                break
            chain.append(current)
            on_chain.add(current)
            parent = by_id[current].parent
            current = parent if parent in by_id and parent != current else None
        for offset, member in enumerate(reversed(chain)):
            depths[member] = base + offset
        return depths[bean_id]

    layers: list[list[Bean]] = []
    for bean in beans:
        depth = depth_of(bean.id)
        while len(layers) <= depth:
            layers.append([])
        layers[depth].append(bean)
    return [layer for layer in layers if layer]


def blocking_pairs(beans: Iterable[Bean]) -> list[tuple[str, str]]:
    """``(blocker, blocked)`` bean id pairs where both ends are in the run, deduplicated."""
    bean_list = list(beans)
    present = {bean.id for bean in bean_list}
    seen: dict[tuple[str, str], None] = {}
    for bean in bean_list:
        for blocked_id in bean.blocking:
            if blocked_id in present and blocked_id != bean.id:
                seen.setdefault((bean.id, blocked_id), None)
    return list(seen)
