from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Tuple

from .model import Inset, StyledRun, TextBlock
from .styles import TEXT_INSET


def trim_runs(runs: Iterable[StyledRun]) -> Tuple[StyledRun, ...]:
    """Strip whitespace and newlines from both ends of a run sequence.

    Runs that are blank end to end are dropped; the first and last surviving
    runs are shortened in place and keep their attributes.
    """
    trimmed = list(runs)
    while trimmed and not trimmed[0].text.strip():
        trimmed.pop(0)
    while trimmed and not trimmed[-1].text.strip():
        trimmed.pop()
    if not trimmed:
        return ()
    trimmed[0] = replace(trimmed[0], text=trimmed[0].text.lstrip())
    trimmed[-1] = replace(trimmed[-1], text=trimmed[-1].text.rstrip())
    return tuple(trimmed)


def finalize(runs: Iterable[StyledRun], container_width: float, inset: Inset = TEXT_INSET) -> TextBlock:
    # remove head/tail whitespace and newlines from text blocks
    return TextBlock(runs=trim_runs(runs), container_width=container_width, inset=inset)
