"""Substitution word generation -- the Tribonacci morphism 1→12, 2→13, 3→1 from seed "1".

The morphism is prefix-stable: generation k is a prefix of generation k+1, so
substituting only a prefix of the current word yields a prefix of the next
generation. Both the early stop below and incremental growth rely on it.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any, TypeVar

import numpy as np
from numpy.typing import NDArray

from rauzy.engine.errors import ValidationError

T = TypeVar("T")

ALPHABET = (1, 2, 3)
SUBSTITUTION = {"1": "12", "2": "13", "3": "1"}
_TABLE = str.maketrans(SUBSTITUTION)

DEFAULT_CHUNK = 5000


def substitute(word: str) -> str:
    """Apply the morphism to every symbol of ``word`` simultaneously."""
    return word.translate(_TABLE)


def iter_generate(target_length: int, chunk_size: int = DEFAULT_CHUNK) -> Generator[int, None, str]:
    """Checkpointed ``generate``.

    Yields a non-decreasing count of symbols produced after every ``chunk_size``
    source symbols; the finished word is the generator's return value.
    Arguments are validated eagerly, before the first ``next()``.
    """
    target_length = require_positive_int(target_length, "Target length")
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return _substitution_steps(target_length, chunk_size)


def _substitution_steps(target_length: int, chunk_size: int) -> Generator[int, None, str]:
    word = "1"
    while len(word) < target_length:
        parts: list[str] = []
        produced = 0
        for start in range(0, len(word), chunk_size):
            piece = word[start : start + chunk_size].translate(_TABLE)
            parts.append(piece)
            produced += len(piece)
            if produced >= target_length:
                break
            yield max(len(word), produced)
        word = "".join(parts)
    return word[:target_length]


def generate(target_length: int) -> str:
    """Substitution word of exactly ``target_length`` symbols."""
    target_length = require_positive_int(target_length, "Target length")
    return drain(iter_generate(target_length, chunk_size=target_length))


def drain(gen: Generator[Any, None, T]) -> T:
    """Run a checkpointed generator to completion and return its result."""
    while True:
        try:
            next(gen)
        except StopIteration as stop:
            return stop.value


def digits(word: str) -> NDArray[np.uint8]:
    """Word as a uint8 array of 1/2/3."""
    return np.frombuffer(word.encode("ascii"), dtype=np.uint8) - np.uint8(ord("0"))


def letter_counts(word: str) -> NDArray[np.float64]:
    """Abelian vector (n1, n2, n3) of ``word``."""
    if not word:
        return np.zeros(3, dtype=np.float64)
    return np.bincount(digits(word), minlength=4)[1:4].astype(np.float64)


def build_index_maps(word: str) -> dict[int, list[int]]:
    """Symbol → ascending 1-based positions. The three lists partition 1..len(word)."""
    d = digits(word)
    return {s: (np.flatnonzero(d == s) + 1).tolist() for s in ALPHABET}


def is_valid_word(word: str) -> bool:
    return bool(word) and not word.strip("123")


def require_positive_int(value: Any, label: str) -> int:
    """``value`` as a plain int; Python and numpy integers >= 1 are accepted, bools are not."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValidationError(f"{label} must be an integer, got {value!r}")
    if value < 1:
        raise ValidationError(f"{label} must be >= 1, got {value}")
    return int(value)
