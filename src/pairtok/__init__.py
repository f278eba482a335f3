"""PairTok: whole-buffer byte-level BPE tokenization library."""

from ._bpe import apply_merge, count_pairs
from ._progress import disable_progress, enable_progress
from .errors import (
    ConfigurationError,
    OutOfRangeSymbolError,
    PairTokError,
    TrainingError,
    VocabularyError,
)
from .merges import MergeRuleTable
from .model import StopReason, TokenizerModel, TrainingStats, decode, encode
from .parallel import decode_batch, encode_batch, list_parallel_modes
from .tokenizer import Tokenizer
from .trainer import BPETrainer, BPETrainingResult, CountingMode, train
from .vocab import Vocabulary, base_vocabulary

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pairtok")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "Tokenizer",
    "TokenizerModel",
    "TrainingStats",
    "StopReason",
    "BPETrainer",
    "BPETrainingResult",
    "CountingMode",
    "Vocabulary",
    "MergeRuleTable",
    "PairTokError",
    "ConfigurationError",
    "VocabularyError",
    "OutOfRangeSymbolError",
    "TrainingError",
    "train",
    "encode",
    "decode",
    "encode_batch",
    "decode_batch",
    "count_pairs",
    "apply_merge",
    "base_vocabulary",
    "list_parallel_modes",
    "enable_progress",
    "disable_progress",
]
