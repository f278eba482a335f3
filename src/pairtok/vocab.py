"""Token id to byte expansion mapping."""

from collections.abc import Iterator
from typing import Final

from .errors import ConfigurationError, OutOfRangeSymbolError, VocabularyError
from .types import Token, TokenBytes

MAX_ALPHABET_SIZE: Final[int] = 256


class Vocabulary:
    """
    Mapping from token id to the bytes it stands for.

    Ids below the alphabet size are single bytes. Every merged id expands to
    the concatenation of its two parents, fixed when the merge is added.
    """

    def __init__(self) -> None:
        self._entries: dict[Token, TokenBytes] = {}

    @classmethod
    def base(cls, alphabet_size: int = MAX_ALPHABET_SIZE) -> "Vocabulary":
        """
        Build a vocabulary holding one entry per raw byte value.

        :param alphabet_size: Number of base byte tokens, between 1 and 256.
        :raises ConfigurationError: If ``alphabet_size`` is outside that range.
        """
        if not 1 <= alphabet_size <= MAX_ALPHABET_SIZE:
            raise ConfigurationError(
                f"alphabet size must be between 1 and {MAX_ALPHABET_SIZE}",
                alphabet_size=alphabet_size,
            )
        vocab = cls()
        vocab._entries = {btok: bytes([btok]) for btok in range(alphabet_size)}
        return vocab

    def extend(self, new_tok: Token, first: Token, second: Token) -> TokenBytes:
        """
        Add ``new_tok`` expanding to the bytes of ``first`` followed by ``second``.

        :raises VocabularyError: If ``new_tok`` already has an entry.
        :raises OutOfRangeSymbolError: If either parent has no entry.
        """
        if new_tok in self._entries:
            raise VocabularyError("token already in vocabulary", token=new_tok)
        expansion = self.lookup(first) + self.lookup(second)
        self._entries[new_tok] = expansion
        return expansion

    def lookup(self, tok: Token) -> TokenBytes:
        """Return the bytes for ``tok``."""
        try:
            return self._entries[tok]
        except KeyError:
            raise OutOfRangeSymbolError(
                "token not in vocabulary", token=tok, valid_range=self.valid_range()
            ) from None

    def valid_range(self) -> tuple[Token, Token]:
        """Return the inclusive ``(lowest, highest)`` token ids."""
        return 0, len(self._entries) - 1

    def items(self) -> Iterator[tuple[Token, TokenBytes]]:
        return iter(self._entries.items())

    def as_dict(self) -> dict[Token, TokenBytes]:
        """Return a plain copy of the mapping."""
        return dict(self._entries)

    def __getitem__(self, tok: Token) -> TokenBytes:
        return self.lookup(tok)

    def __contains__(self, tok: object) -> bool:
        return tok in self._entries

    def __iter__(self) -> Iterator[Token]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={len(self)})"


def base_vocabulary(alphabet_size: int = MAX_ALPHABET_SIZE) -> Vocabulary:
    """Return a vocabulary seeded with ``alphabet_size`` single-byte tokens."""
    return Vocabulary.base(alphabet_size)
