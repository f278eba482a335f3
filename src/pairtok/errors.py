"""Custom exception hierarchy for pairtok errors."""

from .types import Token


class PairTokError(Exception):
    """Base exception for all pairtok errors."""


class ConfigurationError(PairTokError):
    """Raised when training or batch settings are invalid."""

    def __init__(
        self,
        message: str,
        *,
        vocab_size: int | None = None,
        alphabet_size: int | None = None,
        invalid_name: str | None = None,
        available: list[str] | None = None,
    ) -> None:
        """Initialize with optional settings that get appended to the message."""
        extra = " "
        if vocab_size is not None:
            extra += f"(vocab size: {vocab_size}) "
        if alphabet_size is not None:
            extra += f"(alphabet size: {alphabet_size}) "
        if invalid_name is not None:
            extra += f"(available: {available}) (got {invalid_name}) "
        super().__init__(message + extra)
        self.vocab_size = vocab_size
        self.alphabet_size = alphabet_size
        self.invalid_name = invalid_name
        self.available = available


class VocabularyError(PairTokError):
    """Raised when vocabulary or merge table bookkeeping is violated."""

    def __init__(self, message: str, *, token: Token | None = None) -> None:
        if token is not None:
            message = f"{message} (token: {token})"
        super().__init__(message)
        self.token = token


class OutOfRangeSymbolError(VocabularyError):
    """Raised when a token id has no vocabulary entry."""

    def __init__(
        self, message: str, *, token: Token, valid_range: tuple[Token, Token]
    ) -> None:
        """
        Initialize with the offending token and the inclusive range of valid ids.

        :param message: Error message.
        :param token: The token id that has no vocabulary entry.
        :param valid_range: ``(lowest, highest)`` valid token ids.
        """
        lo, hi = valid_range
        super().__init__(f"{message} (valid range: [{lo}, {hi}])", token=token)
        self.valid_range = valid_range


class TrainingError(PairTokError):
    """Raised when a tokenizer is used before it has been trained."""
