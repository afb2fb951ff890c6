"""Download a GGUF model for local inference.

Usage:
    python scripts/download_models.py --model phi-3-mini --output-dir ./models/
    python scripts/download_models.py --url https://.../model.gguf?download=true
"""

from __future__ import annotations

import argparse
from pathlib import Path
from urllib.parse import unquote, urlsplit

import httpx

MODELS: dict[str, str] = {
    "phi-3-mini": (
        "https://huggingface.co/microsoft/Phi-3-mini-4k-instruct-gguf/resolve/main/"
        "Phi-3-mini-4k-instruct-q4.gguf"
    ),
    "qwen2.5-1.5b": (
        "https://huggingface.co/Qwen/Qwen2.5-1.5B-Instruct-GGUF/resolve/main/"
        "qwen2.5-1.5b-instruct-q4_k_m.gguf"
    ),
}

CHUNK_SIZE = 1024 * 1024


def filename_from_url(url: str) -> str:
    """Last path segment of ``url`` with any query string or fragment dropped.

    A ``?`` left in the filename makes the local engine reject the model.
    """
    name = unquote(Path(urlsplit(url).path).name)
    if not name:
        raise ValueError(f"Cannot derive a filename from URL: {url}")
    return name


def download(url: str, output_dir: Path, *, client: httpx.Client | None = None) -> Path:
    """Stream ``url`` into ``output_dir``; returns the final file path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / filename_from_url(url)
    partial = target.with_name(target.name + ".part")

    owns_client = client is None
    client = client or httpx.Client(follow_redirects=True, timeout=httpx.Timeout(30.0, read=None))
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0))
            written = 0
            with partial.open("wb") as fh:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    fh.write(chunk)
                    written += len(chunk)
                    if total:
                        print(f"\r  {written / total:6.1%} of {total / CHUNK_SIZE:.0f} MB", end="", flush=True)
        if total:
            print()
    finally:
        if owns_client:
            client.close()

    partial.replace(target)
    return target


def main() -> None:
    parser = argparse.ArgumentParser(description="Download a GGUF model for CareerBench local mode")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--model", choices=sorted(MODELS), help="Known model name")
    source.add_argument("--url", help="Direct GGUF download URL")
    parser.add_argument("--output-dir", default="./models", help="Directory to save the model into")
    args = parser.parse_args()

    url = MODELS[args.model] if args.model else args.url
    print(f"Downloading {url}...")
    path = download(url, Path(args.output_dir))
    print(f"Saved to {path}")
    print(f"Set CAREERBENCH_LLM_LOCAL_MODEL_PATH={path.resolve()} or configure the path in Settings.")


if __name__ == "__main__":
    main()
