"""Standalone BPE training module."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging
import os

from ._bpe import (
    apply_merge,
    apply_merge_with_freq_update,
    count_pairs,
    count_pairs_parallel,
    first_seen_pair,
    most_frequent_pair,
)
from ._decorators import measure_time
from ._progress import _is_enabled
from ._sanitise import render_bytes
from .errors import ConfigurationError, OutOfRangeSymbolError
from .merges import MergeRuleTable
from .model import StopReason, TokenizerModel, TrainingStats
from .types import PairCounts, Token, TokenPair
from .vocab import MAX_ALPHABET_SIZE, Vocabulary

log = logging.getLogger(__name__)

type MergeCallback = Callable[[int, TokenPair, Token, int], None]
type StopCheck = Callable[[], bool]


class CountingMode(str, Enum):
    """How pair frequencies are kept up to date between merges."""

    INCREMENTAL = "incremental"
    RECOUNT = "recount"

    @classmethod
    def get(cls, name: "str | CountingMode") -> "CountingMode":
        """Get counting mode by name (case-insensitive)."""
        if isinstance(name, cls):
            return name
        try:
            return cls[name.upper()]
        except KeyError:
            raise ConfigurationError(
                "unknown counting mode",
                invalid_name=name,
                available=[mode.value for mode in cls],
            ) from None


@dataclass
class BPETrainingResult:
    """Results from one BPE training run."""

    vocab: Vocabulary
    merges: MergeRuleTable
    n_merges_requested: int
    n_merges_completed: int
    stop_reason: StopReason
    # working sequence length after each merge
    sequence_lengths: list[int] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        """True when the input ran out of pairs before the requested merges."""
        return self.stop_reason is StopReason.EXHAUSTED


class BPETrainer:
    """
    BPE trainer that learns merge operations from token sequences.

    Each iteration merges the most frequent adjacent pair into the next free
    token id. On a frequency tie the pair seen first when scanning the current
    sequence left to right wins. Both counting modes pick the same pair at
    every step; ``"incremental"`` patches counts around each merge while
    ``"recount"`` rescans the whole sequence (on a thread pool when
    ``num_workers > 1``).

    Example:
       >>> trainer = BPETrainer()
       >>> result = trainer.train(list(b"aaabdaaabac"), n_merges=3)
       >>> result.merges.history()
       [((97, 97), 256), ((256, 97), 257), ((257, 98), 258)]
    """

    def __init__(
        self,
        base_alphabet_size: int = MAX_ALPHABET_SIZE,
        counting: "str | CountingMode" = CountingMode.INCREMENTAL,
        num_workers: int | None = None,
    ) -> None:
        if not 1 <= base_alphabet_size <= MAX_ALPHABET_SIZE:
            raise ConfigurationError(
                f"alphabet size must be between 1 and {MAX_ALPHABET_SIZE}",
                alphabet_size=base_alphabet_size,
            )
        self.base_alphabet_size = base_alphabet_size
        self.counting = CountingMode.get(counting)
        self.num_workers = 1 if num_workers is None else max(1, num_workers)

    @measure_time
    def train(
        self,
        tokens: Sequence[Token],
        n_merges: int,
        *,
        on_merge: MergeCallback | None = None,
        should_stop: StopCheck | None = None,
        verbose: bool = False,
        show_progress: bool = True,
    ) -> BPETrainingResult:
        """
        Learn up to ``n_merges`` merges from a sequence of base tokens.

        Running out of pairs or being cancelled is not an error: the rules
        learned so far are returned and ``stop_reason`` says why it ended.

        :param tokens: Sequence of base token ids (typically bytes 0-255).
        :param n_merges: Number of merge operations to learn.
        :param on_merge: Called after each merge with ``(iteration, pair,
            new_tok, count)``, ``iteration`` counting from 0.
        :param should_stop: Checked before each iteration; training ends
            when it returns ``True``.
        :param verbose: Log each learned merge when ``True``.
        :param show_progress: Log a progress line every 10% of merges.
        :return: Learned vocabulary, merge rules and run statistics.
        :raises ConfigurationError: If ``n_merges`` is negative.
        :raises OutOfRangeSymbolError: If a token is outside the base alphabet.
        """
        if n_merges < 0:
            raise ConfigurationError("merge count must not be negative")
        self._check_alphabet(tokens)

        vocab = Vocabulary.base(self.base_alphabet_size)
        merges = MergeRuleTable()
        working: list[Token] = list(tokens)
        lengths: list[int] = []

        incremental = self.counting is CountingMode.INCREMENTAL
        # incremental mode counts once up front and patches from then on
        counts: PairCounts = count_pairs(working) if incremental else self._count(working)

        if show_progress and _is_enabled():
            progress_every = max(1, n_merges // 10)
        else:
            progress_every = 0

        stop_reason = StopReason.COMPLETED
        for i in range(n_merges):
            if should_stop is not None and should_stop():
                stop_reason = StopReason.CANCELLED
                break

            if incremental:
                best = _select_pair(working, counts)
            else:
                if i > 0:
                    counts = self._count(working)
                best = most_frequent_pair(counts)

            # sequence compressed to one token, or too short to begin with
            if best is None:
                stop_reason = StopReason.EXHAUSTED
                break

            pair, count = best
            new_tok = self.base_alphabet_size + i

            if incremental:
                working = apply_merge_with_freq_update(working, pair, new_tok, counts)
            else:
                working = apply_merge(working, pair, new_tok)

            expansion = vocab.extend(new_tok, *pair)
            merges.record(pair, new_tok)
            lengths.append(len(working))

            if verbose:
                log.info(
                    "merge %d/%d: %s -> %d [%s] had %d occurrences",
                    i + 1,
                    n_merges,
                    pair,
                    new_tok,
                    render_bytes(expansion),
                    count,
                )
            if progress_every and (i + 1) % progress_every == 0:
                log.info(
                    "learned %d/%d merges (%.0f%%), sequence length %d",
                    i + 1,
                    n_merges,
                    100 * (i + 1) / n_merges,
                    len(working),
                )
            if on_merge is not None:
                on_merge(i, pair, new_tok, count)

        return BPETrainingResult(
            vocab=vocab,
            merges=merges,
            n_merges_requested=n_merges,
            n_merges_completed=len(merges),
            stop_reason=stop_reason,
            sequence_lengths=lengths,
        )

    def _count(self, tokens: Sequence[Token]) -> PairCounts:
        """Count pairs from scratch, split across workers when configured."""
        if self.num_workers > 1:
            return count_pairs_parallel(tokens, self.num_workers)
        return count_pairs(tokens)

    def _check_alphabet(self, tokens: Sequence[Token]) -> None:
        """Reject tokens that are not part of the base alphabet."""
        for tok in tokens:
            if not 0 <= tok < self.base_alphabet_size:
                raise OutOfRangeSymbolError(
                    "input token outside base alphabet",
                    token=tok,
                    valid_range=(0, self.base_alphabet_size - 1),
                )


def _select_pair(
    tokens: Sequence[Token], counts: PairCounts
) -> tuple[TokenPair, int] | None:
    """Pick the most frequent pair from patched counts, first seen in ``tokens`` on ties."""
    if not counts:
        return None

    top = max(counts.values())
    tied = {pair for pair, count in counts.items() if count == top}
    if len(tied) == 1:
        return next(iter(tied)), top

    pair = first_seen_pair(tokens, tied)
    # counts always mirror the sequence, so a tied pair must occur in it
    assert pair is not None
    return pair, top


def train(
    data: bytes | Sequence[Token],
    vocab_size: int,
    base_alphabet_size: int = MAX_ALPHABET_SIZE,
    *,
    on_merge: MergeCallback | None = None,
    should_stop: StopCheck | None = None,
    counting: "str | CountingMode" = CountingMode.INCREMENTAL,
    num_workers: int | None = None,
    verbose: bool = False,
    show_progress: bool = True,
) -> TokenizerModel:
    """
    Train a byte-level BPE model up to ``vocab_size`` tokens.

    ``vocab_size - base_alphabet_size`` merges are requested. Empty or very
    short input is not an error: fewer merges are learned and the model's
    ``stats`` record how many.

    :param data: Raw training bytes.
    :param vocab_size: Target vocabulary size including the base alphabet.
    :param base_alphabet_size: Number of single-byte base tokens.
    :param num_workers: Threads for pair counting in ``"recount"`` mode;
        ``0`` uses one per CPU.
    :raises ConfigurationError: If ``vocab_size < base_alphabet_size``.

    .. code-block:: python

        model = train(b"aaabdaaabac", vocab_size=259)
        ids = model.encode(b"aaab")
    """
    if vocab_size < base_alphabet_size:
        raise ConfigurationError(
            f"vocab size must be at least the base alphabet size ({base_alphabet_size})",
            vocab_size=vocab_size,
        )

    if num_workers == 0:
        num_workers = os.cpu_count() or 1

    n_merges = vocab_size - base_alphabet_size
    trainer = BPETrainer(base_alphabet_size, counting=counting, num_workers=num_workers)
    result = trainer.train(
        list(data),
        n_merges,
        on_merge=on_merge,
        should_stop=should_stop,
        verbose=verbose,
        show_progress=show_progress,
    )

    if result.stop_reason is StopReason.EXHAUSTED:
        log.warning(
            "no more byte pairs to merge after %d merges (requested %d) stopping early",
            result.n_merges_completed,
            n_merges,
        )
    elif result.stop_reason is StopReason.CANCELLED:
        log.info(
            "training cancelled after %d of %d merges",
            result.n_merges_completed,
            n_merges,
        )

    stats = TrainingStats(
        n_merges_requested=result.n_merges_requested,
        n_merges_completed=result.n_merges_completed,
        stop_reason=result.stop_reason,
        sequence_lengths=result.sequence_lengths,
    )
    return TokenizerModel(result.vocab, result.merges, base_alphabet_size, stats)


__all__ = [
    "BPETrainer",
    "BPETrainingResult",
    "CountingMode",
    "StopReason",
    "train",
]
