"""Sequence helpers shared by the interpreter and the ``range`` global."""

from __future__ import annotations

from typing import TypeVar

from ..exceptions import TemplateRuntimeError

__all__ = ["make_range", "slice_sequence"]

T = TypeVar("T", str, tuple)


def make_range(start: int, stop: int | None = None, step: int = 1) -> list[int]:
    """
    Python-style ``range`` as a list.

    With a single argument, ``start`` is the exclusive upper bound and
    counting starts at 0.

    Raises
    ------
        TemplateRuntimeError: If ``step`` is zero.
    """
    if stop is None:
        start, stop = 0, start
    if step == 0:
        raise TemplateRuntimeError("range() step must not be zero", details={"step": step})
    return list(range(start, stop, step))


def slice_sequence(
    sequence: T, start: int | None = None, stop: int | None = None, step: int | None = None
) -> T:
    """
    Slice a string or tuple with Python semantics.

    Negative bounds count from the end, out-of-range bounds are clamped and
    a negative ``step`` walks backwards.

    Raises
    ------
        TemplateRuntimeError: If ``step`` is zero.
    """
    if step == 0:
        raise TemplateRuntimeError("Slice step cannot be zero", details={"step": step})
    return sequence[start:stop:step]
