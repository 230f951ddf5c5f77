"""Tests for localegen.patches."""

from __future__ import annotations

import pytest

from localegen.patches import OverlappingPatchError, TextPatch, apply_patches


def test_apply_patches_is_order_independent() -> None:
    text = "alpha beta gamma"
    patches = [
        TextPatch(0, 5, "A"),
        TextPatch(11, 5, "G"),
        TextPatch(6, 4, "B"),
    ]
    assert apply_patches(text, patches) == "A B G"
    assert apply_patches(text, list(reversed(patches))) == "A B G"


def test_insertion_lands_before_replacement_at_same_offset() -> None:
    text = "line\nvalue"
    patches = [TextPatch(5, 5, "KEY"), TextPatch(5, 0, "/// doc\n")]
    assert apply_patches(text, patches) == "line\n/// doc\nKEY"


def test_adjacent_insertion_and_replacement_compose() -> None:
    text = "  String a = 'x';\n"
    patches = [TextPatch(0, 0, "  /// x\n"), TextPatch(13, 3, "'S_a'")]
    assert apply_patches(text, patches) == "  /// x\n  String a = 'S_a';\n"


def test_overlapping_patches_raise() -> None:
    with pytest.raises(OverlappingPatchError):
        apply_patches("abcdef", [TextPatch(0, 4, "x"), TextPatch(2, 2, "y")])


def test_two_insertions_at_one_offset_raise() -> None:
    with pytest.raises(OverlappingPatchError):
        apply_patches("abc", [TextPatch(1, 0, "x"), TextPatch(1, 0, "y")])


def test_noop_patches_are_dropped_before_overlap_check() -> None:
    text = "abcdef"
    patches = [TextPatch(0, 3, "abc"), TextPatch(1, 2, "ZZ")]
    assert apply_patches(text, patches) == "aZZdef"


def test_out_of_bounds_patch_raises() -> None:
    with pytest.raises(ValueError):
        apply_patches("abc", [TextPatch(2, 5, "x")])
