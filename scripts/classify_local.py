"""
Quick local test helper: compiles the bundled flower model, classifies a local
image and prints the top labels. This bypasses the HTTP layer.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

# Ensure project root is importable when running from scripts/
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flower_service import config
from flower_service.model_loader import setup


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify a local flower image")
    parser.add_argument("--input", required=True, help="Path to the input image")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=config.get_settings().log_level)
    input_path = Path(args.input)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    classifier = setup()
    for result in classifier.classify(input_path.read_bytes()):
        print(f"{result.label:<10} {result.score:6.2f}%")


if __name__ == "__main__":
    main()
