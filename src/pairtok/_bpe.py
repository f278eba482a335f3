"""
Core Byte Pair Encoding (BPE) operations.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from math import ceil

from typing_extensions import deprecated

from .types import MergeRule, PairCounts, Token, TokenPair


def count_pairs(tokens: Sequence[Token]) -> PairCounts:
    """
    Compute the frequency of all consecutive token pairs in the token list.

    Keys are inserted in the order their pair is first seen while scanning
    left to right, which is what ``most_frequent_pair`` relies on to break ties.

    :param tokens: Token sequence to analyze.
    :return: Mapping of token pairs to their occurrence counts.
    """
    return Counter(zip(tokens, tokens[1:]))


def count_pairs_parallel(
    tokens: Sequence[Token], num_workers: int, min_chunk: int = 4096
) -> PairCounts:
    """
    Count consecutive token pairs on a thread pool.

    The pair index range is split into contiguous chunks, each chunk is counted
    independently and the partial counters are summed in chunk order. A pair
    first seen in chunk ``c`` is absent from every earlier chunk, so the merged
    counter keeps the same first-seen key order as ``count_pairs``.

    :param tokens: Token sequence to analyze.
    :param num_workers: Number of worker threads.
    :param min_chunk: Smallest number of pairs worth handing to a worker.
    :return: Counts identical to ``count_pairs(tokens)``, including key order.
    """
    n_pairs = len(tokens) - 1
    if num_workers <= 1 or n_pairs < 2 * min_chunk:
        return count_pairs(tokens)

    size = max(min_chunk, ceil(n_pairs / num_workers))
    bounds = [(start, min(start + size, n_pairs)) for start in range(0, n_pairs, size)]

    def count_chunk(bound: tuple[int, int]) -> PairCounts:
        """Count pairs starting at indices ``start..end-1``."""
        start, end = bound
        return Counter(zip(tokens[start:end], tokens[start + 1 : end + 1]))

    with ThreadPoolExecutor(max_workers=num_workers) as pool:
        partials = list(pool.map(count_chunk, bounds))

    counts: PairCounts = Counter()
    for partial in partials:
        counts.update(partial)
    return counts


def most_frequent_pair(counts: PairCounts) -> tuple[TokenPair, int] | None:
    """
    Return the pair with the strictly highest count and that count.

    Ties go to whichever pair comes first in iteration order. For a counter
    built by ``count_pairs`` that is the pair seen first in the sequence.
    Returns ``None`` for an empty counter.
    """
    best: TokenPair | None = None
    best_count = 0
    for pair, count in counts.items():
        # strict comparison keeps the earliest pair on ties
        if count > best_count:
            best, best_count = pair, count

    if best is None:
        return None
    return best, best_count


def first_seen_pair(
    tokens: Sequence[Token], candidates: set[TokenPair]
) -> TokenPair | None:
    """Return the leftmost adjacent pair in ``tokens`` that is one of ``candidates``."""
    for pair in zip(tokens, tokens[1:]):
        if pair in candidates:
            return pair
    return None


def apply_merge(
    tokens: Sequence[Token], target: TokenPair, new_tok: Token
) -> list[Token]:
    """
    Merge all occurrences of a target token pair into a single new token.

    Matches are consumed left to right and never overlap: with target ``(a, a)``
    the run ``a a a`` becomes ``new a``.

    Note that some of the new tokens may be partial utf-8 sequences, so
    their bytes cannot always be decoded into valid strings.

    :param tokens: Original list of tokens.
    :param target: The consecutive pair of tokens to merge.
    :param new_tok: The new token that replaces the target pair.
    :return: New token list with all target pairs replaced by ``new_tok``.
    """
    newtoks: list[Token] = []
    first, second = target
    n = len(tokens)

    i = 0
    while i < n:
        if i < n - 1 and tokens[i] == first and tokens[i + 1] == second:
            newtoks.append(new_tok)
            i += 2
        else:
            newtoks.append(tokens[i])
            i += 1

    return newtoks


def apply_merge_with_freq_update(
    tokens: Sequence[Token],
    target: TokenPair,
    new_tok: Token,
    counts: PairCounts,
) -> list[Token]:
    """
    Merge target pair into new token and patch the frequency counter in place.

    Every pair of the old sequence that overlaps a merged span is removed from
    ``counts`` exactly once, and every pair of the new sequence that touches
    an inserted ``new_tok`` is added exactly once. Pairs away from the merges
    are the same in both sequences, so afterwards ``counts`` holds the same
    counts as ``count_pairs`` of the result. Key order is not preserved, use
    ``first_seen_pair`` to break ties.

    :param tokens: Current token sequence.
    :param target: The pair to merge.
    :param new_tok: The new token ID for the merged pair.
    :param counts: Frequency counter of ``tokens``, updated in place.
    :return: New token sequence with merges applied.
    """
    n = len(tokens)
    if n < 2:
        return list(tokens)

    first, second = target
    newtoks: list[Token] = []
    # old pair indices overlapping a merge, new positions holding new_tok
    stale: set[int] = set()
    fresh: list[int] = []

    i = 0
    while i < n:
        if i < n - 1 and tokens[i] == first and tokens[i + 1] == second:
            stale.update((i - 1, i, i + 1))
            fresh.append(len(newtoks))
            newtoks.append(new_tok)
            i += 2
        else:
            newtoks.append(tokens[i])
            i += 1

    if not fresh:
        return newtoks

    touched: set[TokenPair] = set()
    for k in stale:
        if 0 <= k < n - 1:
            pair = (tokens[k], tokens[k + 1])
            counts[pair] -= 1
            touched.add(pair)

    m = len(newtoks)
    created: set[int] = set()
    for j in fresh:
        created.update((j - 1, j))
    for k in created:
        if 0 <= k < m - 1:
            counts[(newtoks[k], newtoks[k + 1])] += 1

    # keep counter lean: drop pairs that no longer occur
    for pair in touched:
        if counts[pair] <= 0:
            del counts[pair]

    return newtoks


@deprecated(
    "Reference implementation for documentation only. Use `encode()` for production."
)
def apply_merges_in_order(
    tokens: Sequence[Token], rules: Iterable[MergeRule]
) -> list[Token]:
    """
    Apply every merge rule once, in learned order, each over the whole sequence.

    Naive algorithm: O(n x M) for sequence length n and M rules, even when
    most rules never occur in the input.
    """
    result = list(tokens)
    for pair, new_tok in rules:
        if len(result) < 2:
            break
        result = apply_merge(result, pair, new_tok)
    return result
