# ============================================================================
# src/lab_triage/__main__.py
# ============================================================================
"""
Command line entry point.

    python -m lab_triage informe.pdf --age 67 --sex F
    python -m lab_triage informe.txt --text

Prints the PipelineResult as JSON on stdout; logs go to stderr.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .core.context import PatientContext
from .core.pipeline import LabReportPipeline
from .utils.exceptions import LabTriageError, DecodingFailure
from .utils.logging import setup_logging, LogContext


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lab_triage",
        description="Extract, grade and prioritize a Chilean lab report"
    )

    parser.add_argument(
        "report",
        type=str,
        help="Path to the report (PDF, or decoded text with --text)"
    )

    parser.add_argument(
        "--age",
        type=int,
        default=None,
        help="Patient age in years"
    )

    parser.add_argument(
        "--sex",
        type=str,
        choices=["M", "F", "m", "f"],
        default=None,
        help="Patient sex for gender-specific reference ranges"
    )

    parser.add_argument(
        "--text",
        action="store_true",
        help="Treat the input as already-decoded UTF-8 text"
    )

    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password for encrypted PDFs"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (defaults to LAB_TRIAGE_LOG_LOG_LEVEL)"
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log records as JSON lines"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(
        level=args.log_level,
        format_json=True if args.json_logs else None,
    )

    path = Path(args.report)

    try:
        patient = None
        if args.age is not None or args.sex is not None:
            patient = PatientContext(age=args.age, sex=args.sex)

        pipeline = LabReportPipeline()
        with LogContext(document_id=path.name):
            if args.text:
                try:
                    text = path.read_text(encoding="utf-8")
                except OSError as e:
                    raise DecodingFailure(f"Could not read {path}: {e}", source=str(path), reason="unreadable") from e
                result = pipeline.process_text(text, patient=patient)
            else:
                result = pipeline.process_document(path, patient=patient, password=args.password)

    except DecodingFailure as e:
        print(f"Decoding failed ({e.reason}): {e.message}", file=sys.stderr)
        return 1
    except LabTriageError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    print(result.to_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
