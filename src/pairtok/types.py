"""
Core types for tokenization.
"""

from collections import Counter

type Token = int
type TokenBytes = bytes
type TokenPair = tuple[Token, Token]
type PairCounts = Counter[TokenPair]
type MergeRule = tuple[TokenPair, Token]
