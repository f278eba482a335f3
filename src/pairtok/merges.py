"""Ordered table of learned merge rules."""

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from .errors import VocabularyError
from .types import MergeRule, Token, TokenPair


class MergeRuleTable:
    """
    Append-only list of ``(pair, new_tok)`` rules in the order they were learned.

    Encoding depends on this order: a later rule may consume tokens that
    only exist once an earlier rule has been applied.
    """

    def __init__(self) -> None:
        self._rules: list[MergeRule] = []
        # pair -> merge token, for rank lookups while encoding
        self._ranks: dict[TokenPair, Token] = {}

    def record(self, pair: TokenPair, new_tok: Token) -> None:
        """
        Append a rule.

        :raises VocabularyError: If ``pair`` was already merged or ``new_tok``
            does not come after the previous rule's token.
        """
        if pair in self._ranks:
            raise VocabularyError(
                f"pair {pair} already merged", token=self._ranks[pair]
            )
        if self._rules and new_tok <= self._rules[-1][1]:
            raise VocabularyError(
                "merge tokens must be strictly increasing", token=new_tok
            )
        self._rules.append((pair, new_tok))
        self._ranks[pair] = new_tok

    def rank(self, pair: TokenPair) -> Token | None:
        """Return the token ``pair`` merges into, or ``None`` if never merged."""
        return self._ranks.get(pair)

    def ranks(self) -> Mapping[TokenPair, Token]:
        """Return a read-only view of pair -> merge token."""
        return MappingProxyType(self._ranks)

    def history(self) -> list[MergeRule]:
        """Return the rules as plain tuples, in learned order."""
        return list(self._rules)

    def __iter__(self) -> Iterator[MergeRule]:
        # a fresh iterator each call so the table can be walked repeatedly
        return iter(self._rules)

    def __contains__(self, pair: object) -> bool:
        return pair in self._ranks

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rules={len(self)})"
