"""Stateful byte-level tokenizer built on the functional training API."""

from .errors import TrainingError
from .model import TokenizerModel, TrainingStats
from .parallel import ParallelMode, ParallelStrategy, decode_batch, encode_batch
from .trainer import CountingMode, MergeCallback, StopCheck, train
from .types import Token
from .vocab import MAX_ALPHABET_SIZE


def _to_bytes(text: str | bytes | list[str]) -> bytes:
    """Convert tokenizer input to the raw bytes BPE operates on."""
    # handle list input by concatenation
    if isinstance(text, list):
        text = "".join(text)
    if isinstance(text, str):
        return text.encode("utf-8", errors="replace")
    return bytes(text)


class Tokenizer:
    """
    Tokenizer that operates directly on the whole byte buffer without regex splitting.

    Text is handled as UTF-8 bytes. Learned tokens may cover partial UTF-8
    sequences, so ``decode`` returns bytes and ``decode_text`` replaces
    invalid sequences.

    Example:
       >>> tok = Tokenizer()
       >>> _ = tok.train("hello world hello world", vocab_size=260)
       >>> tok.decode_text(tok.encode("hello"))
       'hello'
    """

    def __init__(
        self,
        base_alphabet_size: int = MAX_ALPHABET_SIZE,
        counting: "str | CountingMode" = CountingMode.INCREMENTAL,
        num_workers: int | None = None,
    ) -> None:
        self.base_alphabet_size = base_alphabet_size
        self.counting = CountingMode.get(counting)
        self.num_workers = num_workers
        self._model: TokenizerModel | None = None

    @classmethod
    def from_model(cls, model: TokenizerModel) -> "Tokenizer":
        """Wrap an already trained or rebuilt model."""
        tok = cls(base_alphabet_size=model.base_alphabet_size)
        tok._model = model
        return tok

    @property
    def model(self) -> TokenizerModel:
        """
        The trained model.

        :raises TrainingError: If the tokenizer has not been trained yet.
        """
        if self._model is None:
            raise TrainingError(f"{self.__class__.__name__} must be trained first")
        return self._model

    def train(
        self,
        text: str | bytes | list[str],
        vocab_size: int,
        verbose: bool = False,
        show_progress: bool = True,
        on_merge: MergeCallback | None = None,
        should_stop: StopCheck | None = None,
    ) -> TrainingStats:
        """
        Train the tokenizer on raw text using byte-level BPE.

        List inputs are concatenated and ``str`` inputs encoded as UTF-8
        before ``vocab_size - base_alphabet_size`` merges are learned.

        :param text: Training text as bytes, a single string or list of strings.
        :param vocab_size: Target vocabulary size including the base alphabet.
        :param verbose: Log each learned merge when ``True``.
        :return: Statistics of the run, including early stops.
        :raises ConfigurationError: If ``vocab_size`` is below the base alphabet size.
        """
        model = train(
            _to_bytes(text),
            vocab_size,
            self.base_alphabet_size,
            on_merge=on_merge,
            should_stop=should_stop,
            counting=self.counting,
            num_workers=self.num_workers,
            verbose=verbose,
            show_progress=show_progress,
        )
        self._model = model
        assert model.stats is not None
        return model.stats

    def encode(self, text: str | bytes) -> list[Token]:
        """Encode text into a sequence of tokens."""
        return self.model.encode(_to_bytes(text))

    def decode(self, tokens: list[Token]) -> bytes:
        """
        Decode a sequence of tokens back into bytes.

        :raises TrainingError: If the tokenizer has not been trained yet.
        :raises OutOfRangeSymbolError: If any token ID is not in the vocabulary.
        """
        return self.model.decode(tokens)

    def decode_text(self, tokens: list[Token], errors: str = "replace") -> str:
        """
        Decode tokens into UTF-8 text.

        :param errors: How to handle invalid UTF-8, "strict" or "replace".
        """
        return self.decode(tokens).decode("utf-8", errors=errors)

    def encode_batch(
        self,
        texts: list[str] | list[bytes],
        num_workers: int | None = None,
        parallel_mode: "ParallelStrategy | ParallelMode" = ParallelMode.AUTO,
    ) -> list[list[Token]]:
        """Encode multiple texts into sequences of tokens in batch."""
        model = self.model
        if not texts:
            return []
        return encode_batch(
            [_to_bytes(text) for text in texts], model, num_workers, parallel_mode
        )

    def decode_batch(
        self,
        token_batch: list[list[Token]],
        num_workers: int | None = None,
        parallel_mode: "ParallelStrategy | ParallelMode" = ParallelMode.AUTO,
    ) -> list[bytes]:
        """Decode multiple token sequences in batch."""
        model = self.model
        if not token_batch:
            return []
        return decode_batch(token_batch, model, num_workers, parallel_mode)

    def vocab_size(self) -> int:
        """Return the number of tokens in the vocabulary."""
        if self._model is None:
            return self.base_alphabet_size
        return self._model.vocab_size()
