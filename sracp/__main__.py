"""
Entry point for sracp: resolve accessions and copy their files locally.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .application.exceptions import SracpError
from .infrastructure.containers import Container

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level)


def split_values(values: Optional[List[str]]) -> List[str]:
    """Flattens repeated, comma-separated option values."""
    return [
        item.strip()
        for value in values or []
        for item in value.split(",")
        if item.strip()
    ]


def read_accession_file(path: str) -> List[str]:
    """Reads one accession per line, ignoring blanks and '#' comments."""
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [
        line.strip()
        for line in lines
        if line.strip() and not line.lstrip().startswith("#")
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sracp",
        description="Copy the files of SRA accessions to a local directory.",
    )

    parser.add_argument(
        "-a",
        "--acc",
        action="append",
        help="Accession to fetch; repeat or separate with commas, "
        "e.g. SRR000001,SRR000002",
    )

    parser.add_argument(
        "-A",
        "--acc-file",
        help="File listing one accession per line.",
    )

    parser.add_argument(
        "-n",
        "--ngc",
        default="",
        help="Path or S3 URL (https://[bucket].[region].s3.amazonaws.com/"
        "[file]) of an ngc file granting access to restricted data.",
    )

    parser.add_argument(
        "-l",
        "--loc",
        default="",
        help="Location hint for the Name Resolver API, e.g. s3.us-east-1.",
    )

    parser.add_argument(
        "-e",
        "--endpoint",
        default="",
        help="Name Resolver API URL; the configured default when omitted.",
    )

    parser.add_argument(
        "-p",
        "--path",
        default=".",
        help="Directory to copy files into; one subdirectory per accession.",
    )

    parser.add_argument(
        "-o",
        "--only",
        action="append",
        help="Only copy files with these extensions, e.g. bam,crai",
    )

    parser.add_argument(
        "--force-check",
        action="store_true",
        help="Force re-verification of existing files."
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses and validates the command line."""

    parser = build_parser()
    args = parser.parse_args(argv)

    accessions = split_values(args.acc)
    if args.acc_file:
        try:
            accessions.extend(read_accession_file(args.acc_file))
        except OSError as e:
            parser.error(f"could not read accession file: {e}")
    if not accessions:
        parser.error("no accessions given; use --acc or --acc-file")

    args.accessions = sorted(set(accessions))
    args.types = frozenset(
        ext.lstrip(".") for ext in split_values(args.only)
    ) or None
    return args


async def run_application(args: argparse.Namespace) -> int:
    """Wires and runs the application using the DI container."""

    container = Container()
    container.cli_args.from_dict(vars(args))
    setup_logging(level=container.config().logging.level)
    try:
        fetch_service = container.fetch_service()
        summary = await fetch_service.run(
            accessions=args.accessions,
            destination=Path(args.path),
            endpoint=args.endpoint,
            location=args.loc,
            ngc=args.ngc,
            types=args.types,
        )
    except SracpError as e:
        logger.error(f"An application error occurred: {e}")
        return 1
    finally:
        await container.http_client().aclose()

    return 1 if summary.failed else 0


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    sys.exit(asyncio.run(run_application(args)))


if __name__ == "__main__":
    main()
