"""Ordered pattern cascades: try matcher steps in sequence, first hit wins.

A step is any callable ``text -> value | None``.  :func:`regex_step`
builds the common case (search a compiled regex, return one group,
optionally transformed).  A transform may return ``None`` to reject a
match, in which case the cascade moves on to the next step.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, Tuple, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")

Matcher = Callable[[str], Optional[T]]


@dataclass(frozen=True)
class Cascade(Generic[T]):
    """Named sequence of ``(label, matcher)`` steps."""

    name: str
    steps: Sequence[Tuple[str, Matcher]]

    def __call__(self, text: str) -> Optional[T]:
        for label, step in self.steps:
            value = step(text)
            if value is not None:
                log.debug("%s: matched via %s -> %r", self.name, label, value)
                return value
        log.info("Could not extract %s", self.name)
        return None

    def labels(self) -> list[str]:
        return [label for label, _ in self.steps]


def regex_step(
    pattern: re.Pattern[str] | str,
    group: int | str = 1,
    transform: Callable[[str], Optional[T]] | None = None,
    flags: int = 0,
) -> Matcher:
    """Matcher returning *group* of the first ``search`` hit of *pattern*."""
    rx = re.compile(pattern, flags) if isinstance(pattern, str) else pattern

    def _step(text: str) -> Optional[T]:
        m = rx.search(text)
        if not m:
            return None
        value = m.group(group)
        if transform is not None:
            return transform(value)
        return value.strip() or None

    return _step
