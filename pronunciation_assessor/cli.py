"""Command-line interface for the pronunciation assessor.

WHY: Learners and developers need a quick way to score a recording
against a reference sentence from the terminal, without standing up the
HTTP API. The CLI wires together the full pipeline (intake checks, audio
normalization, Azure recognition, alignment, scoring) and the result
formatters behind a single command.

HOW: Uses argparse to accept an audio file, the reference text (inline
or from a file), language, output format selection and output directory.
Runs the async pipeline via asyncio.run(). Status messages go to stderr;
output files are saved next to the source (or to --output-dir).

RULES:
- Positional argument: input audio file path
- Exactly one of --text / --text-file gives the reference text
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-assessment-2.json)
- Status output goes to stderr (not stdout)
- Exit code 1 on any assessment failure, with "Error: <reason>" on stderr
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pronunciation_assessor.api.client import AzureSpeechClient
from pronunciation_assessor.config import (
    DEFAULT_LANGUAGE,
    FFMPEG_PATH,
    FFMPEG_TIMEOUT_S,
    LOG_LEVEL,
    SUPPORTED_LANGUAGES,
)
from pronunciation_assessor.core.ir import AssessmentResult
from pronunciation_assessor.core.normalizer import FfmpegTranscoder
from pronunciation_assessor.core.pipeline import AssessmentPipeline, AssessmentRequest
from pronunciation_assessor.formatters import FORMATTERS
from pronunciation_assessor.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed immediately."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. reading-assessment.json)
    - Conflict: insert counter before the extension
      (e.g. reading-assessment-2.json), counter starts at 2

    Args:
        stem: Source filename stem (without extension).
        suffix: Formatter's suffix (e.g. "-assessment.json").
        output_dir: Directory to save the output file.

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _read_reference_text(args: argparse.Namespace) -> str:
    if args.text is not None:
        return args.text
    path = Path(args.text_file)
    if not path.is_file():
        _fail("Reference text file not found: {}".format(path))
    return path.read_text(encoding="utf-8").strip()


def _select_formats(formats: Optional[str]) -> List[str]:
    if not formats:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in formats.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    return keys


def _write_outputs(
    result: AssessmentResult,
    format_keys: List[str],
    stem: str,
    output_dir: Path,
) -> List[Path]:
    saved: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        output = formatter.format(result)
        path = _save_output(output, stem, output_dir)
        saved.append(path)
        _status("  Saved: {}".format(path.name))
    return saved


async def _run_assessment(args: argparse.Namespace) -> None:
    """Execute one assessment and save the formatted results.

    RULES:
    - Input file, output directory and formats are checked before any
      audio is decoded or sent
    - Intake, conversion and recognition failures come back as a typed
      outcome and are reported with their reason
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _select_formats(args.formats)
    reference_text = _read_reference_text(args)

    request = AssessmentRequest(
        reference_text=reference_text,
        audio=input_path.read_bytes(),
        language=args.language,
    )
    transcoder = FfmpegTranscoder(ffmpeg_path=args.ffmpeg_path, timeout_s=args.timeout)

    try:
        async with AzureSpeechClient() as client:
            pipeline = AssessmentPipeline(recognizer=client, transcoder=transcoder)
            _status("Assessing {} ({})...".format(input_path.name, args.language))
            outcome = await pipeline.assess(request)
    except ValueError as e:
        # Missing recognizer credentials
        _fail(str(e))

    if not outcome.ok:
        _fail(outcome.error.reason)

    result = outcome.result
    _status("  Overall score: {} ({} error(s))".format(
        result.scores.overall_score, result.error_count,
    ))

    _status("Formatting output...")
    saved = _write_outputs(result, format_keys, input_path.stem, output_dir)
    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can inspect the parser without
    running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="pronunciation_assessor",
        description="Score a recording of a read-aloud sentence against its "
                    "reference text (accuracy, fluency, completeness, prosody).",
    )

    parser.add_argument(
        "input_file",
        help="Path to the audio recording (any format ffmpeg can decode).",
    )

    text_group = parser.add_mutually_exclusive_group(required=True)
    text_group.add_argument(
        "--text",
        default=None,
        help="Reference text the speaker was asked to read.",
    )
    text_group.add_argument(
        "--text-file",
        default=None,
        help="Path to a UTF-8 file holding the reference text.",
    )

    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        choices=SUPPORTED_LANGUAGES,
        help="Assessment language (default: %(default)s).",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--ffmpeg-path",
        default=FFMPEG_PATH,
        help="ffmpeg executable used for audio conversion (default: %(default)s).",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=FFMPEG_TIMEOUT_S,
        help="Audio conversion timeout in seconds (default: %(default)s).",
    )

    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        help="Logging level for pipeline diagnostics (default: %(default)s).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m pronunciation_assessor``.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(_run_assessment(args))


if __name__ == "__main__":
    main()
