"""
Command-line entry point.

    hash-search [-b BITS] [-d DIGEST] [-e ENCODING] [-j THREADS] [-l] HEXPREFIX

Reads stdin, then searches for a suffix whose digest of stdin+suffix
starts with HEXPREFIX. In matching mode stdout receives stdin verbatim
followed by the suffix; in listing mode one line per match.
"""

from __future__ import annotations

import argparse
import sys
from threading import Thread
from typing import List, Optional

from .config import (
    DEFAULT_BITS,
    DEFAULT_DIGEST,
    CliConfig,
    ConfigurationError,
    max_search_for_bits,
    parse_bits,
    parse_threads,
)
from .digest import available_algorithms, lookup_algorithm
from .encoding import CandidateEncoder, CandidateEncoding
from .prefix import TargetPrefix
from .report import Reporter, progress_thread
from .search import SearchCoordinator, SearchMode

EXIT_OK = 0
EXIT_FAIL = 1
EXIT_INTERRUPTED = 130


def die(msg: str, parser: Optional[argparse.ArgumentParser] = None, err=None):
    err = err if err is not None else sys.stderr
    if parser is not None:
        parser.print_usage(err)
    print(f"{parser.prog if parser else 'hash-search'}: error: {msg}", file=err)
    sys.exit(EXIT_FAIL)


class ArgumentParser(argparse.ArgumentParser):
    """Reports bad arguments through die() so they exit like other config errors."""

    def __init__(self, *args, err=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.err = err

    def error(self, message):
        die(message, self, self.err)


def build_parser(err=None) -> ArgumentParser:
    parser = ArgumentParser(
        err=err,
        prog="hash-search",
        description="Append bytes to stdin so that its digest begins with HEXPREFIX.",
        usage="%(prog)s [-b BITS] [-d DIGEST] [-e ENCODING] [-j THREADS] [-l] HEXPREFIX",
    )
    parser._optionals.title = "Options"

    parser.add_argument(
        "hexprefix",
        metavar="HEXPREFIX",
        nargs="?",
        help="Digest prefix to match; an odd final digit matches a half byte",
    )
    parser.add_argument(
        "-b",
        "--bits",
        default=str(DEFAULT_BITS),
        help=f"Search 2^BITS - 1 candidates, 1..64 (default {DEFAULT_BITS})",
    )
    parser.add_argument(
        "-d",
        "--digest",
        default=DEFAULT_DIGEST,
        help=f"Digest algorithm (default {DEFAULT_DIGEST})",
    )
    parser.add_argument(
        "-e",
        "--encoding",
        default=CandidateEncoding.BINARY_LE.value,
        help="Candidate suffix layout: bytes (4 little-endian bytes, default) or decimal",
    )
    parser.add_argument(
        "-j",
        "--threads",
        default=None,
        help="Worker threads (default: CPU count)",
    )
    parser.add_argument(
        "-l",
        "--list",
        dest="listing",
        action="store_true",
        help="List every match instead of writing a matching file",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print progress and hash rate while searching",
    )
    parser.add_argument(
        "--list-digests",
        action="store_true",
        help="Print the available digest algorithms and exit",
    )
    return parser


def parse_cli(argv: Optional[List[str]] = None, err=None) -> CliConfig:
    parser = build_parser(err)
    args = parser.parse_args(argv)

    if args.list_digests:
        print("\n".join(available_algorithms()))
        sys.exit(EXIT_OK)

    if args.hexprefix is None:
        die("HEXPREFIX is required", parser, err)

    cli = CliConfig(
        hexprefix=args.hexprefix,
        bits=0,
        digest=args.digest,
        encoding=args.encoding,
        threads=None,
        listing=bool(args.listing),
        stats=bool(args.stats),
    )

    try:
        cli.bits = parse_bits(args.bits)
        if args.threads is not None:
            cli.threads = parse_threads(args.threads)
        CandidateEncoder.from_name(cli.encoding)
    except ConfigurationError as e:
        die(str(e), parser, err)

    return cli


def build_coordinator(cli: CliConfig) -> SearchCoordinator:
    """Resolve every configuration value. Raises ConfigurationError."""
    algorithm = lookup_algorithm(cli.digest)
    prefix = TargetPrefix.from_hex(cli.hexprefix)
    encoder = CandidateEncoder.from_name(cli.encoding)
    return SearchCoordinator(
        algorithm,
        prefix,
        encoder,
        max_search_for_bits(cli.bits),
        mode=SearchMode.LIST if cli.listing else SearchMode.MATCH,
        workers=cli.threads,
    )


def run(cli: CliConfig, stdin, stdout, stderr) -> int:
    try:
        coord = build_coordinator(cli)
    except ConfigurationError as e:
        die(str(e), build_parser(stderr), stderr)

    reporter = Reporter(stdout, stderr)
    matching = not cli.listing

    interactive = hasattr(stdin, "isatty") and stdin.isatty()
    reporter.reading_started(interactive)

    def on_block(block: bytes):
        if matching:
            reporter.tee(block)
        reporter.reading_progress()

    encoder = coord.ctx.encoder
    try:
        coord.consume(stdin, on_block)
        reporter.reading_finished()
        reporter.search_started(coord.base.peek(), coord.max_search)

        if cli.stats:
            Thread(
                target=progress_thread,
                args=(coord.ctx, coord.max_search, stderr),
                name="reporter",
                daemon=True,
            ).start()

        outcome = coord.run(
            on_match=(lambda r: reporter.listing(r, encoder)) if cli.listing else None
        )
    except KeyboardInterrupt:
        reporter.diag("Interrupted")
        return EXIT_INTERRUPTED
    finally:
        coord.ctx.stop_flag = True

    if cli.listing:
        reporter.diag(f"done, {outcome.match_count} matches.")
        return EXIT_OK

    if outcome.found:
        reporter.found(outcome.winner)
        return EXIT_OK

    reporter.exhausted()
    return EXIT_FAIL


def main(argv: Optional[List[str]] = None) -> int:
    cli = parse_cli(argv)
    return run(cli, sys.stdin.buffer, sys.stdout.buffer, sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
