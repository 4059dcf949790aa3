"""Command line front end: analyse one file and print the results."""
from __future__ import annotations

import argparse
import json
import math
import sys
from typing import List, Optional

from .config import configure_logging
from .dispatch import KINDS, AnalysisDispatcher, AnalysisResponse
from .loader import AudioDecodeError, load_pcm

DEFAULT_KINDS = ("verdict", "lufs", "stereo")

# Array-shaped fields are summarised by length in text mode
_ARRAY_FIELDS = {"short_term", "momentary", "peaks", "rms", "magnitudes", "frequencies", "times", "octave_bands", "regions"}


def _fmt(value) -> str:
    if isinstance(value, float):
        if math.isinf(value):
            return "-inf" if value < 0 else "inf"
        return f"{value:.2f}"
    return str(value)


def _print_text(response: AnalysisResponse) -> None:
    print(f"[{response.kind}]")
    if response.error:
        print(f"  error: {response.error}")
        return
    data = response.result.to_dict()
    for key, value in data.items():
        if key in ("kind", "computed_at_millis"):
            continue
        if key in _ARRAY_FIELDS:
            print(f"  {key}: {len(value)} values")
        elif isinstance(value, list):
            for item in value:
                print(f"  - {item}")
        else:
            print(f"  {key}: {_fmt(value)}")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Forensic and quality analysis of an audio file.")
    ap.add_argument("input")
    ap.add_argument("--kind", action="append", choices=KINDS, default=None,
                    help="analysis to run (repeatable); default: verdict, lufs, stereo")
    ap.add_argument("--bit-depth", type=int, default=None,
                    help="override the bit depth reported by the decoder")
    ap.add_argument("--json", action="store_true", help="print JSON instead of text")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)

    configure_logging(args.log_level)

    try:
        pcm, fmt = load_pcm(args.input, bit_depth=args.bit_depth)
    except (AudioDecodeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    kinds = args.kind or list(DEFAULT_KINDS)
    with AnalysisDispatcher() as dispatcher:
        responses = dispatcher.run_many(pcm, kinds)

    if args.json:
        payload = {
            "file": {
                "path": args.input,
                "container": fmt.container,
                "subtype": fmt.subtype,
                "bit_depth": pcm.bit_depth,
                "sample_rate": pcm.sample_rate,
                "channels": pcm.num_channels,
                "duration": pcm.duration,
            },
            "analyses": [r.to_dict(json_safe=True) for r in responses],
        }
        print(json.dumps(payload, indent=2))
    else:
        print(f"{args.input}: {fmt.container}/{fmt.subtype} {pcm.sample_rate} Hz "
              f"{pcm.num_channels} ch {pcm.duration:.2f} s")
        for response in responses:
            _print_text(response)

    return 0 if all(r.ok for r in responses) else 1


if __name__ == "__main__":
    raise SystemExit(main())
