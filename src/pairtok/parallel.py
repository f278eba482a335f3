"""Parallel processing mode helpers for batch encoding and decoding."""

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
import os
from typing import Literal

from .errors import ConfigurationError
from .model import TokenizerModel
from .types import Token

ParallelStrategy = Literal["auto", "batch", "off"]


class ParallelMode(str, Enum):
    """Named parallelization modes for batch encoding."""

    AUTO = "auto"
    BATCH = "batch"
    OFF = "off"

    @classmethod
    def get(cls, name: "str | ParallelMode") -> "ParallelMode":
        """Get parallel mode by name (case-insensitive)."""
        if isinstance(name, cls):
            return name
        try:
            return cls[name.upper()]
        except KeyError:
            raise ConfigurationError(
                "unknown parallel mode",
                invalid_name=name,
                available=[mode.value for mode in cls],
            ) from None


def list_parallel_modes() -> list[str]:
    """Return available parallel mode names."""
    return [mode.value for mode in ParallelMode]


def _map(
    func: Callable,
    items: Sequence,
    num_workers: int | None,
    parallel_mode: "ParallelStrategy | ParallelMode",
) -> list:
    """
    Apply ``func`` to every item, on a thread pool when the mode asks for it.

    Parallelization happens across items, never inside a single text, because
    merges can span arbitrary byte boundaries. Results keep input order.
    """
    mode = ParallelMode.get(parallel_mode)
    if num_workers is None:
        workers = os.cpu_count() or 1
    else:
        workers = max(1, num_workers)

    def process_batch() -> list:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(func, items))

    match mode:
        case ParallelMode.OFF:
            return [func(item) for item in items]
        case ParallelMode.BATCH:
            return process_batch()
        case ParallelMode.AUTO:
            if len(items) <= 1 or workers == 1:
                return [func(item) for item in items]
            return process_batch()


def encode_batch(
    texts: Sequence[bytes],
    model: TokenizerModel,
    num_workers: int | None = None,
    parallel_mode: "ParallelStrategy | ParallelMode" = "auto",
) -> list[list[Token]]:
    """Encode many byte strings with optional parallel processing mode."""
    return _map(model.encode, texts, num_workers, parallel_mode)


def decode_batch(
    token_batch: Sequence[Sequence[Token]],
    model: TokenizerModel,
    num_workers: int | None = None,
    parallel_mode: "ParallelStrategy | ParallelMode" = "auto",
) -> list[bytes]:
    """
    Decode many token sequences with optional parallel processing mode.

    :raises OutOfRangeSymbolError: If any sequence holds an unknown token.
    """
    return _map(model.decode, token_batch, num_workers, parallel_mode)


__all__ = [
    "ParallelStrategy",
    "ParallelMode",
    "list_parallel_modes",
    "encode_batch",
    "decode_batch",
]
