"""Unit tests for PairTok tokenizer encode/decode, edge cases and batch helpers."""

import pytest

import pairtok as ptok
from pairtok._bpe import apply_merges_in_order
from pairtok.errors import ConfigurationError, OutOfRangeSymbolError, TrainingError
from pairtok.parallel import ParallelMode

A = ord("a")


# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tokenizer():
    """Return a trained Tokenizer."""
    tok = ptok.Tokenizer()
    tok.train("hello world hello world " * 20, vocab_size=300, show_progress=False)
    return tok


@pytest.fixture
def model():
    """Return the model trained on the reference input."""
    return ptok.train(b"aaabdaaabac", 259)


# Encode-decode round-trip
# ---------------------------------------------------------------------------


def test_encode_decode_roundtrip(tokenizer):
    """Encode then decode returns the original text."""
    text = "Hello, world!"
    assert tokenizer.decode_text(tokenizer.encode(text)) == text


def test_encode_decode_roundtrip_unicode(tokenizer):
    """Round-trip preserves multi-byte characters."""
    text = "café naïve 日本語 🎉"
    assert tokenizer.decode_text(tokenizer.encode(text)) == text


@pytest.mark.parametrize(
    "data",
    [b"aaabdaaabac", b"a", b"\x00\xff\x10", bytes(range(256)), b"ab" * 50],
)
def test_roundtrip_arbitrary_bytes(model, data):
    """decode(encode(b)) == b for any bytes, not just training text."""
    assert ptok.decode(ptok.encode(data, model), model) == data


def test_repetitive_text_creates_merges(tokenizer):
    """Repetitive text produces fewer tokens due to merges."""
    text = "hello world hello world"
    assert len(tokenizer.encode(text)) < len(text.encode("utf-8"))


# Edge cases
# ---------------------------------------------------------------------------


def test_empty_string(tokenizer):
    """Empty string encodes to empty list and decodes back."""
    assert tokenizer.encode("") == []
    assert tokenizer.decode([]) == b""


def test_whitespace_only(tokenizer):
    """Whitespace-only text round-trips correctly."""
    text = "   \n\t  "
    assert tokenizer.decode_text(tokenizer.encode(text)) == text


def test_single_character(tokenizer):
    """Single character round-trips."""
    assert tokenizer.encode("x") == [ord("x")]
    assert tokenizer.decode_text([ord("x")]) == "x"


def test_encode_is_non_overlapping():
    """With only (a, a) learned, "aaa" encodes to [256, a]."""
    model = ptok.TokenizerModel.from_merge_history([((A, A), 256)])
    assert ptok.encode(b"aaa", model) == [256, A]


def test_encode_applies_rules_in_learned_order(model):
    """Later rules build on tokens created by earlier ones."""
    assert ptok.encode(b"aaab", model) == [258]


def test_encode_matches_reference_order(tokenizer):
    """Fast encoding equals applying every rule once, in order."""
    rules = tokenizer.model.merge_history()
    for text in ["hello world", "world hello hello", "hhello wworld", "xyz"]:
        data = text.encode("utf-8")
        with pytest.deprecated_call():
            expected = apply_merges_in_order(list(data), rules)
        assert tokenizer.encode(text) == expected


def test_encode_byte_outside_alphabet_raises():
    """Encoding rejects bytes a small alphabet cannot represent."""
    model = ptok.train(b"\x00\x01\x00\x01", 3, base_alphabet_size=2)
    with pytest.raises(OutOfRangeSymbolError):
        model.encode(b"\x00\x02")


# Decode errors
# ---------------------------------------------------------------------------


def test_decode_out_of_range_raises(model):
    """Unknown ids name themselves and the valid range."""
    with pytest.raises(OutOfRangeSymbolError) as exc:
        ptok.decode([97, 99999], model)
    assert exc.value.token == 99999
    assert exc.value.valid_range == (0, 258)
    assert "99999" in str(exc.value)
    assert "[0, 258]" in str(exc.value)


def test_decode_negative_id_raises(model):
    """Negative ids are never valid."""
    with pytest.raises(OutOfRangeSymbolError):
        model.decode([-1])


# Use before training
# ---------------------------------------------------------------------------


def test_decode_before_training_raises():
    """Decoding before training raises TrainingError."""
    with pytest.raises(TrainingError):
        ptok.Tokenizer().decode([0, 1, 2])


def test_encode_before_training_raises():
    """Encoding before training raises TrainingError."""
    with pytest.raises(TrainingError):
        ptok.Tokenizer().encode("hello")


def test_vocab_size_before_training():
    """An untrained tokenizer only knows the base alphabet."""
    assert ptok.Tokenizer().vocab_size() == 256


# Training through the tokenizer
# ---------------------------------------------------------------------------


def test_train_returns_stats():
    """Training reports how many merges were learned."""
    tok = ptok.Tokenizer()
    stats = tok.train(["aaab", "daaabac"], vocab_size=259)
    assert stats.n_merges_completed == 3
    assert tok.vocab_size() == 259


def test_recount_tokenizer_matches_default():
    """Counting mode does not change what is learned."""
    text = "the cat sat on the mat with the hat " * 10
    fast = ptok.Tokenizer()
    slow = ptok.Tokenizer(counting="recount")
    fast.train(text, vocab_size=280)
    slow.train(text, vocab_size=280)
    assert fast.model.merge_history() == slow.model.merge_history()


def test_vocab_size_below_alphabet_raises():
    """Target vocabulary smaller than the alphabet is rejected."""
    with pytest.raises(ConfigurationError):
        ptok.Tokenizer().train("hello", vocab_size=100)


# Batch encode/decode
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("mode", ["auto", "batch", "off", ParallelMode.BATCH])
def test_encode_batch_decode_batch(tokenizer, mode):
    """Batch encode and decode match single-text results, in input order."""
    texts = ["First.", "Second document.", "Third.", "hello world"]
    encoded = tokenizer.encode_batch(texts, num_workers=4, parallel_mode=mode)
    decoded = tokenizer.decode_batch(encoded, num_workers=4, parallel_mode=mode)

    for i, text in enumerate(texts):
        assert encoded[i] == tokenizer.encode(text)
        assert decoded[i] == text.encode("utf-8")


def test_batch_empty_inputs(tokenizer):
    """Empty batches return empty lists."""
    assert tokenizer.encode_batch([]) == []
    assert tokenizer.decode_batch([]) == []


def test_decode_batch_out_of_range_raises(model):
    """Batch decoding propagates unknown ids."""
    with pytest.raises(OutOfRangeSymbolError):
        ptok.decode_batch([[97], [5000]], model, parallel_mode="batch")


def test_unknown_parallel_mode_raises(model):
    """Parallel modes are validated by name."""
    with pytest.raises(ConfigurationError) as exc:
        ptok.encode_batch([b"a"], model, parallel_mode="chunk")
    assert exc.value.invalid_name == "chunk"


def test_list_parallel_modes():
    """All parallel modes are listed."""
    assert ptok.list_parallel_modes() == ["auto", "batch", "off"]
