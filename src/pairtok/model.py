"""
Trained tokenizer model: vocabulary plus ordered merge rules.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging

from ._bpe import apply_merge
from ._sanitise import render_bytes
from .errors import OutOfRangeSymbolError, VocabularyError
from .merges import MergeRuleTable
from .types import MergeRule, Token
from .vocab import MAX_ALPHABET_SIZE, Vocabulary

log = logging.getLogger(__name__)


class StopReason(str, Enum):
    """Why a training run ended."""

    # every requested merge was learned
    COMPLETED = "completed"
    # the working sequence ran out of pairs
    EXHAUSTED = "exhausted"
    # the caller's stop check fired between iterations
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TrainingStats:
    """How a training run went: merges requested vs learned, and why it stopped."""

    n_merges_requested: int
    n_merges_completed: int
    stop_reason: StopReason
    sequence_lengths: list[int] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        """True when the input ran out of pairs before the requested merges."""
        return self.stop_reason is StopReason.EXHAUSTED


class TokenizerModel:
    """
    Read-only result of training.

    Holds everything needed to encode and decode: the vocabulary for decoding
    and the merge rules, in learned order, for encoding. ``stats`` is set
    only for models produced by training.
    """

    def __init__(
        self,
        vocab: Vocabulary,
        merges: MergeRuleTable,
        base_alphabet_size: int = MAX_ALPHABET_SIZE,
        stats: TrainingStats | None = None,
    ) -> None:
        self.vocab = vocab
        self.merges = merges
        self.base_alphabet_size = base_alphabet_size
        self.stats = stats

    @classmethod
    def from_merge_history(
        cls,
        history: Iterable[MergeRule],
        base_alphabet_size: int = MAX_ALPHABET_SIZE,
    ) -> "TokenizerModel":
        """
        Rebuild a model from plain ``((tok0, tok1), mtok)`` rules.

        Rules are replayed in merge token order so child tokens always exist
        before their parent.

        :raises VocabularyError: If merge tokens are not ``base_alphabet_size``,
            ``base_alphabet_size + 1``, ... without gaps, or a pair repeats.
        :raises OutOfRangeSymbolError: If a rule refers to an unknown token.
        """
        vocab = Vocabulary.base(base_alphabet_size)
        merges = MergeRuleTable()

        for i, ((tok0, tok1), mtok) in enumerate(sorted(history, key=lambda r: r[1])):
            if mtok != base_alphabet_size + i:
                raise VocabularyError(
                    f"expected merge token {base_alphabet_size + i}", token=mtok
                )
            vocab.extend(mtok, tok0, tok1)
            merges.record((tok0, tok1), mtok)

        log.debug(f"rebuilt model with {len(merges)} merge rules, {len(vocab)} tokens")
        return cls(vocab, merges, base_alphabet_size)

    def encode(self, data: bytes) -> list[Token]:
        """
        Encode raw bytes into token ids.

        Repeatedly merges the lowest ranked pair present in the sequence. A
        rule's pair can never reappear once a later rule has run, so this
        applies the rules in learned order and only skips those that do
        not occur.

        :raises OutOfRangeSymbolError: If a byte is outside the base alphabet.
        """
        tokens = list(data)
        for tok in tokens:
            if tok >= self.base_alphabet_size:
                raise OutOfRangeSymbolError(
                    "input byte outside base alphabet",
                    token=tok,
                    valid_range=(0, self.base_alphabet_size - 1),
                )

        no_merge = float("inf")
        ranks = self.merges.ranks()
        while len(tokens) >= 2:
            # retrieve the pair with the lowest merge token, because higher
            # merge tokens might depend on lower ones
            pair = min(
                zip(tokens, tokens[1:]),
                key=lambda p: ranks.get(p, no_merge),
            )
            # nothing left to merge
            if pair not in ranks:
                break
            tokens = apply_merge(tokens, pair, ranks[pair])

        return tokens

    def decode(self, tokens: Sequence[Token]) -> bytes:
        """
        Concatenate the byte expansion of each token.

        :raises OutOfRangeSymbolError: On the first token with no vocabulary entry.
        """
        return b"".join(self.vocab.lookup(tok) for tok in tokens)

    def vocab_size(self) -> int:
        """Return the number of tokens in the vocabulary."""
        return len(self.vocab)

    def merge_history(self) -> list[MergeRule]:
        """Return merge rules as plain data, in learned order."""
        return self.merges.history()

    def render_vocab(self) -> list[str]:
        """
        Return one human-readable line per token.

        Merged tokens show their derivation: ``[256] [a][a] -> aa``. Base
        tokens show only their byte: ``[97] a``.
        """
        inverted_merges = {mtok: pair for pair, mtok in self.merges}

        lines: list[str] = []
        for tok, b in self.vocab.items():
            subword = render_bytes(b)
            # token arises from merging: show derivation from child tokens
            if tok in inverted_merges:
                ctok0, ctok1 = inverted_merges[tok]
                subword0 = render_bytes(self.vocab.lookup(ctok0))
                subword1 = render_bytes(self.vocab.lookup(ctok1))
                lines.append(f"[{tok}] [{subword0}][{subword1}] -> {subword}")
            else:
                lines.append(f"[{tok}] {subword}")
        return lines

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(vocab_size={self.vocab_size()}, "
            f"merges={len(self.merges)})"
        )


def encode(data: bytes, model: TokenizerModel) -> list[Token]:
    """Encode raw bytes with a trained model."""
    return model.encode(data)


def decode(tokens: Sequence[Token], model: TokenizerModel) -> bytes:
    """Decode token ids with a trained model."""
    return model.decode(tokens)
