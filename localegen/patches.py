"""Apply non-overlapping text patches to a buffer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


class OverlappingPatchError(ValueError):
    """Raised when two patches touch the same region of text."""


@dataclass(frozen=True)
class TextPatch:
    offset: int
    length: int
    replacement: str

    @property
    def end(self) -> int:
        return self.offset + self.length


def apply_patches(text: str, patches: Iterable[TextPatch]) -> str:
    """Splice every patch into ``text``.

    Patches are applied from the end of the buffer towards the start so the
    offsets of patches still waiting to be applied stay valid. A replacement
    and an insertion may share an offset (the insertion lands in front of the
    replaced text); two insertions at one offset, or any real overlap, raise
    ``OverlappingPatchError``.
    """
    pending: List[TextPatch] = []
    for patch in patches:
        if patch.offset < 0 or patch.length < 0 or patch.end > len(text):
            raise ValueError(f"Patch out of bounds: {patch}")
        if text[patch.offset : patch.end] == patch.replacement:
            continue
        pending.append(patch)

    pending.sort(key=lambda p: (p.offset, p.length))
    for previous, current in zip(pending, pending[1:]):
        if current.offset < previous.end:
            raise OverlappingPatchError(f"{previous} overlaps {current}")
        if current.offset == previous.offset and previous.length == current.length == 0:
            raise OverlappingPatchError(f"Two insertions at offset {current.offset}")

    for patch in reversed(pending):
        text = text[: patch.offset] + patch.replacement + text[patch.end :]
    return text


__all__ = ["OverlappingPatchError", "TextPatch", "apply_patches"]
