#!/usr/bin/env python3
"""Write the synthetic onset fixtures to disk.

Each generator in odf_signals.synthetic is rendered once as a WAV file so
detection function outputs can be compared across versions. A manifest
records the expected onset times and a SHA256 of every file.

Format: WAV IEEE float32, mono, 44100 Hz, 4.0s exactly

Usage:
    python fixtures/generate_fixtures.py [--output-dir DIR]
"""

import argparse
import hashlib
import json
import sys
from pathlib import Path
from typing import Dict, List

import numpy as np
from scipy.io import wavfile

sys.path.insert(0, str(Path(__file__).parent.parent))

from odf_signals.synthetic import generate_click_track, generate_tone_bursts  # noqa: E402

SAMPLE_RATE = 44100
DURATION_SEC = 4.0
MANIFEST_VERSION = "1.0"
DEFAULT_OUTPUT_DIR = Path(__file__).parent / "synthetic_audio"


def render_fixtures() -> Dict[str, tuple]:
    """Map fixture name to (audio, onset_times)."""
    silence = np.zeros(int(DURATION_SEC * SAMPLE_RATE), dtype=np.float32)
    return {
        "click_track": generate_click_track(DURATION_SEC, SAMPLE_RATE),
        "tone_bursts": generate_tone_bursts(DURATION_SEC, SAMPLE_RATE),
        # Every detection function stays at 0.0 on silence
        "silence": (silence, []),
    }


def write_fixture(output_dir: Path, name: str, audio: np.ndarray, onset_times: List[float]) -> Dict:
    """Write one WAV and return its manifest entry."""
    wav_path = output_dir / f"{name}.wav"
    wavfile.write(wav_path, SAMPLE_RATE, audio.astype(np.float32))
    digest = hashlib.sha256(wav_path.read_bytes()).hexdigest()

    return {
        "name": name,
        "filename": wav_path.name,
        "duration_sec": DURATION_SEC,
        "sample_rate_hz": SAMPLE_RATE,
        "channels": 1,
        "onset_times_sec": [float(t) for t in onset_times],
        "sha256_bytes": digest,
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate synthetic onset fixtures")
    parser.add_argument(
        '--output-dir',
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f'Directory for WAV files and manifest (default: {DEFAULT_OUTPUT_DIR})'
    )
    args = parser.parse_args(argv)

    output_dir = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    entries = []
    for name, (audio, onset_times) in render_fixtures().items():
        entry = write_fixture(output_dir, name, audio, onset_times)
        print(f"{entry['filename']}: {entry['sha256_bytes']}")
        entries.append(entry)

    manifest_path = output_dir / "fixtures_manifest.json"
    manifest_path.write_text(json.dumps({"version": MANIFEST_VERSION, "fixtures": entries}, indent=2))

    print(f"\nManifest written to: {manifest_path}")


if __name__ == "__main__":
    main()
