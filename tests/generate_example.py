# tests/generate_example.py
# Live run against the configured model (needs HF_TOKEN), either as:
#   python -m tests.generate_example [YYYY-MM-DD]
# or directly:
#   python tests/generate_example.py [YYYY-MM-DD]

import json
import logging
import os
import sys

# --- file-style run: put the project root on sys.path ---
if __package__ is None and __name__ == "__main__":
    _here = os.path.dirname(os.path.abspath(__file__))
    _root = os.path.dirname(_here)
    if _root not in sys.path:
        sys.path.insert(0, _root)

from daily_challenge.config import load_settings
from daily_challenge.generator import ChallengeGenerator
from daily_challenge.llm import build_client

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    settings = load_settings()
    generator = ChallengeGenerator(settings, client=build_client(settings))
    result = generator.generate_challenge(date=sys.argv[1] if len(sys.argv) > 1 else None)
    print(json.dumps(result.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
