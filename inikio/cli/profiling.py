"""Stage timings for ``inikio`` commands.

Each command runs in up to three stages: importing the hierarchy, inspecting
it into a ``DslSchema`` and rendering the builder module. With
``INIKIO_PROFILE=1`` (or ``--profile``) the CLI prints one line per stage:

    [PROFILE] import    0.41ms  examples.dice:Dice
    [PROFILE] inspect   0.22ms  2 variants, 1 instruction
    [PROFILE] render    0.09ms  DiceBuilder, 31 lines
    [PROFILE] total     0.72ms
"""

from __future__ import annotations

import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


def profiling_requested() -> bool:
    return os.environ.get("INIKIO_PROFILE", "").lower() in ("1", "true", "yes")


@dataclass
class StageTiming:
    stage: str
    elapsed_ms: float = 0.0
    detail: str = ""


@dataclass
class StageTimer:
    enabled: bool = field(default_factory=profiling_requested)
    timings: list[StageTiming] = field(default_factory=list)

    @contextmanager
    def stage(self, name: str, detail: str = "") -> Iterator[StageTiming]:
        """Time the block as stage ``name``.

        The yielded ``StageTiming`` can be given a ``detail`` once the block
        knows what it produced. Nothing is recorded when the timer is disabled.
        """
        timing = StageTiming(name, detail=detail)
        if not self.enabled:
            yield timing
            return
        start = time.perf_counter()
        try:
            yield timing
        finally:
            timing.elapsed_ms = (time.perf_counter() - start) * 1000
            self.timings.append(timing)

    @property
    def total_ms(self) -> float:
        return sum(timing.elapsed_ms for timing in self.timings)

    def report(self) -> str:
        lines = [
            f"[PROFILE] {timing.stage:<8} {timing.elapsed_ms:.2f}ms  {timing.detail}".rstrip()
            for timing in self.timings
        ]
        lines.append(f"[PROFILE] {'total':<8} {self.total_ms:.2f}ms")
        return "\n".join(lines)
