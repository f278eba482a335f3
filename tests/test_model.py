"""Unit tests for the vocabulary, merge rule table and model rebuilding."""

import pytest

import pairtok as ptok
from pairtok.errors import ConfigurationError, OutOfRangeSymbolError, VocabularyError
from pairtok.merges import MergeRuleTable
from pairtok.vocab import Vocabulary

A = ord("a")


# Vocabulary
# ---------------------------------------------------------------------------


def test_base_vocabulary():
    """Each base id expands to its own byte."""
    vocab = ptok.base_vocabulary()
    assert len(vocab) == 256
    assert vocab.lookup(A) == b"a"
    assert vocab[255] == b"\xff"
    assert vocab.valid_range() == (0, 255)


@pytest.mark.parametrize("size", [0, 257])
def test_base_vocabulary_size_bounds(size):
    """Alphabet sizes outside 1..256 are rejected."""
    with pytest.raises(ConfigurationError):
        Vocabulary.base(size)


def test_extend_concatenates_parents():
    """A merged token expands to its parents' bytes."""
    vocab = Vocabulary.base()
    assert vocab.extend(256, A, ord("b")) == b"ab"
    assert vocab.extend(257, 256, 256) == b"abab"
    assert 257 in vocab
    assert len(vocab) == 258


def test_extend_existing_token_raises():
    """Tokens are never redefined."""
    vocab = Vocabulary.base()
    vocab.extend(256, A, A)
    with pytest.raises(VocabularyError):
        vocab.extend(256, A, A)
    with pytest.raises(VocabularyError):
        vocab.extend(A, A, A)


def test_extend_missing_parent_raises():
    """Parents must already be in the vocabulary."""
    vocab = Vocabulary.base()
    with pytest.raises(OutOfRangeSymbolError):
        vocab.extend(256, A, 300)


def test_lookup_missing_raises():
    """Lookups outside the vocabulary report the valid range."""
    vocab = Vocabulary.base(4)
    with pytest.raises(OutOfRangeSymbolError) as exc:
        vocab.lookup(4)
    assert exc.value.valid_range == (0, 3)


def test_as_dict_is_a_copy():
    """The plain mapping does not alias internal state."""
    vocab = Vocabulary.base(2)
    plain = vocab.as_dict()
    plain[2] = b"x"
    assert 2 not in vocab


# Merge rule table
# ---------------------------------------------------------------------------


def test_merge_table_keeps_learned_order():
    """Iteration follows insertion order and can be repeated."""
    table = MergeRuleTable()
    table.record((A, A), 256)
    table.record((256, A), 257)
    assert list(table) == [((A, A), 256), ((256, A), 257)]
    assert list(table) == list(table)
    assert table.rank((256, A)) == 257
    assert table.rank((A, 256)) is None
    assert (A, A) in table
    assert len(table) == 2


def test_merge_table_rejects_duplicate_pair():
    """A pair is merged at most once."""
    table = MergeRuleTable()
    table.record((A, A), 256)
    with pytest.raises(VocabularyError):
        table.record((A, A), 257)


def test_merge_table_rejects_non_increasing_token():
    """Merge tokens must increase."""
    table = MergeRuleTable()
    table.record((A, A), 257)
    with pytest.raises(VocabularyError):
        table.record((A, 98), 256)


def test_history_is_plain_data():
    """History is a detached list of tuples."""
    table = MergeRuleTable()
    table.record((A, A), 256)
    history = table.history()
    history.clear()
    assert len(table) == 1


# Rebuilding from merge history
# ---------------------------------------------------------------------------


def test_from_merge_history_roundtrip():
    """A model rebuilt from plain rules encodes and decodes the same way."""
    text = b"the cat sat on the mat with the hat " * 10
    trained = ptok.train(text, 290)
    rebuilt = ptok.TokenizerModel.from_merge_history(trained.merge_history())

    assert rebuilt.vocab.as_dict() == trained.vocab.as_dict()
    assert rebuilt.encode(text) == trained.encode(text)
    assert rebuilt.decode(rebuilt.encode(text)) == text
    assert rebuilt.stats is None


def test_from_merge_history_accepts_unordered_rules():
    """Rules are replayed in merge token order."""
    model = ptok.TokenizerModel.from_merge_history(
        [((256, A), 257), ((A, A), 256)]
    )
    assert model.vocab[257] == b"aaa"


def test_from_merge_history_gap_raises():
    """Merge tokens must follow the alphabet without gaps."""
    with pytest.raises(VocabularyError):
        ptok.TokenizerModel.from_merge_history([((A, A), 300)])


def test_from_merge_history_unknown_parent_raises():
    """Rules may only refer to known tokens."""
    with pytest.raises(OutOfRangeSymbolError):
        ptok.TokenizerModel.from_merge_history([((A, 999), 256)])


# Vocabulary listing
# ---------------------------------------------------------------------------


def test_render_vocab():
    """Merged tokens show their derivation and control bytes are escaped."""
    model = ptok.TokenizerModel.from_merge_history([((A, A), 256)])
    lines = model.render_vocab()
    assert len(lines) == 257
    assert lines[256] == "[256] [a][a] -> aa"
    assert lines[A] == "[97] a"
    assert lines[10] == "[10] \\u000a"


def test_model_repr():
    """The repr summarises size."""
    model = ptok.train(b"aaabdaaabac", 259)
    assert repr(model) == "TokenizerModel(vocab_size=259, merges=3)"
