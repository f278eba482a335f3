"""Benchmark BPE training (both counting modes), encoding and decoding."""

import argparse
import logging
import time

from datasets import load_dataset

import pairtok as ptok

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%H:%M:%S",
)


def load_corpus(num_docs: int | None) -> list[str]:
    """Load documents from the sci-fi books dataset."""
    ds = load_dataset("stevez80/Sci-Fi-Books-gutenberg", split="train")
    if num_docs is not None:
        ds = ds.select(range(min(num_docs, len(ds))))
    return [doc for doc in ds["text"] if doc]


def time_training(data: bytes, vocab_size: int, counting: str) -> tuple[ptok.TokenizerModel, float]:
    """Train once and return the model with elapsed seconds."""
    t0 = time.perf_counter()
    model = ptok.train(data, vocab_size, counting=counting, show_progress=False)
    return model, time.perf_counter() - t0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--num-docs",
        type=int,
        default=200,
        help="Number of documents to load (default: 200).",
    )
    parser.add_argument(
        "--vocab-size",
        type=int,
        default=512,
        help="Vocab size for training (default: 512).",
    )
    parser.add_argument(
        "--skip-recount",
        action="store_true",
        help="Only time incremental counting.",
    )
    args = parser.parse_args()

    docs = load_corpus(args.num_docs)
    if not docs:
        raise RuntimeError("No documents loaded from dataset.")

    batch = [doc.encode("utf-8") for doc in docs]
    data = b"".join(batch)
    corpus_mb = len(data) / (1024 * 1024)

    # --- Training ---
    model, incremental_secs = time_training(data, args.vocab_size, "incremental")
    rows = [("incremental", incremental_secs)]
    if not args.skip_recount:
        recount_model, recount_secs = time_training(data, args.vocab_size, "recount")
        if recount_model.merge_history() != model.merge_history():
            raise RuntimeError("counting modes learned different merges")
        rows.append(("recount", recount_secs))

    # --- Encoding ---
    t0 = time.perf_counter()
    encoded = ptok.encode_batch(batch, model)
    encode_elapsed = time.perf_counter() - t0
    encode_mbps = corpus_mb / encode_elapsed

    # --- Decoding ---
    t0 = time.perf_counter()
    decoded = ptok.decode_batch(encoded, model)
    decode_elapsed = time.perf_counter() - t0
    total_tokens = sum(len(seq) for seq in encoded)
    decode_mtps = total_tokens / decode_elapsed / 1_000_000

    if decoded != batch:
        raise RuntimeError("round trip failed")

    compression_ratio = len(data) / total_tokens

    print()
    print(f"corpus: {corpus_mb:.2f} MB, vocab size: {model.vocab_size():,}")
    for counting, secs in rows:
        print(f"| {'train (' + counting + ')':22} | {secs:10.2f} s |")
    print(f"| {'encode':22} | {encode_mbps:10.2f} MB/sec |")
    print(f"| {'decode':22} | {decode_mtps:10.2f}M tokens/sec |")
    print(f"| {'compression ratio':22} | {compression_ratio:10.2f}x |")
    print()


if __name__ == "__main__":
    main()
