"""
=============================================================================
NETDIAL CLI ENTRY POINT
=============================================================================

    # Which addresses would be tried, in order?
    python -m netdial example.com http --resolve-only

    # Connect, send a raw request, print whatever comes back
    python -m netdial example.com 80 \\
        --send 'GET / HTTP/1.1\\r\\nHost: example.com\\r\\nConnection: close\\r\\n\\r\\n'

    # IPv4 only, 3 seconds per address, 10 seconds overall
    python -m netdial example.com http -4 --timeout 3 --deadline 10

    # Pipe standard input to the peer
    printf 'PING\\r\\n' | python -m netdial localhost 6379 --stdin

Exit codes:
    0   connected (and the exchange finished)
    1   every address failed
    2   the name could not be resolved

=============================================================================
"""

import argparse
import logging
import re
import sys

from . import __version__
from .config import DialConfig
from .core import Connector
from .errors import ConnectionFailedError, ResolutionError


logger = logging.getLogger("netdial")


EXIT_OK = 0
EXIT_CONNECT_FAILED = 1
EXIT_RESOLVE_FAILED = 2

_ESCAPES = {"r": "\r", "n": "\n", "t": "\t", "0": "\0", "\\": "\\"}


def _unescape(text: str) -> str:
    """Expand \\r, \\n, \\t, \\0 and \\\\ typed on the command line."""
    return re.sub(r"\\([rnt0\\])", lambda m: _ESCAPES[m.group(1)], text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netdial",
        description="Resolve a host and connect to the first address that answers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m netdial example.com http --resolve-only
  python -m netdial example.com 80 --send 'GET / HTTP/1.0\\r\\n\\r\\n'
  python -m netdial example.com http -4 --timeout 3 --deadline 10
        """,
    )

    parser.add_argument("host", help="Hostname or literal IP address")
    parser.add_argument("service", help="Port number or service name (e.g. http)")

    # ─────────────────────────────────────────────────────────────────────
    # RESOLUTION
    # ─────────────────────────────────────────────────────────────────────

    family = parser.add_mutually_exclusive_group()
    family.add_argument(
        "-4", dest="family", action="store_const", const="ipv4",
        help="Only try IPv4 addresses",
    )
    family.add_argument(
        "-6", dest="family", action="store_const", const="ipv6",
        help="Only try IPv6 addresses",
    )

    parser.add_argument(
        "--resolve-only",
        action="store_true",
        help="Print the candidate addresses in order and exit",
    )

    # ─────────────────────────────────────────────────────────────────────
    # TIMEOUTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Seconds to wait for each connection attempt (default: no limit)",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Seconds for resolution plus all attempts (default: no limit)",
    )
    parser.add_argument(
        "--io-timeout",
        type=float,
        default=None,
        help="Seconds to wait on reads/writes once connected (default: no limit)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # PAYLOAD
    # ─────────────────────────────────────────────────────────────────────

    payload = parser.add_mutually_exclusive_group()
    payload.add_argument(
        "--send", "-s",
        metavar="TEXT",
        default=None,
        help="Text to send after connecting (\\r, \\n, \\t escapes are expanded)",
    )
    payload.add_argument(
        "--stdin",
        action="store_true",
        help="Send standard input after connecting",
    )

    # ─────────────────────────────────────────────────────────────────────
    # META
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"netdial {__version__}",
    )

    return parser


def build_config(args: argparse.Namespace) -> DialConfig:
    """Environment first, then CLI arguments on top."""
    config = DialConfig.from_env()

    if args.family:
        config.family = args.family
    if args.timeout is not None:
        config.connect_timeout = args.timeout
    if args.deadline is not None:
        config.deadline = args.deadline
    if args.io_timeout is not None:
        config.io_timeout = args.io_timeout
    if args.log_level:
        config.log_level = args.log_level

    config.validate()
    return config


def setup_logging(config: DialConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.log_level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("netdial").setLevel(level)


def main(argv=None, stdin=None, stdout=None) -> int:
    """
    Run the CLI.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:]).
        stdin: Binary stream for --stdin (default: sys.stdin.buffer).
        stdout: Binary stream for the peer's reply (default: sys.stdout.buffer).

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(config)

    stdout = stdout or sys.stdout.buffer
    connector = Connector(config)

    try:
        if args.resolve_only:
            for candidate in connector.resolve(args.host, args.service):
                stdout.write(f"{candidate.family.name} {candidate}\n".encode())
            stdout.flush()
            return EXIT_OK

        conn = connector.connect(args.host, args.service)

    except ResolutionError as e:
        print(f"netdial: cannot resolve {args.host}:{args.service}: {e}", file=sys.stderr)
        return EXIT_RESOLVE_FAILED

    except ConnectionFailedError as e:
        print(f"netdial: {e}", file=sys.stderr)
        for attempt in e.attempts:
            print(f"  {attempt}", file=sys.stderr)
        return EXIT_CONNECT_FAILED

    # ─────────────────────────────────────────────────────────────────────
    # EXCHANGE
    # ─────────────────────────────────────────────────────────────────────
    # Send the payload, half-close so request/EOF-style servers reply,
    # then copy the reply to stdout chunk by chunk until the peer closes.

    with conn:
        try:
            if args.send is not None:
                conn.send(_unescape(args.send).encode("utf-8"))
                conn.shutdown_write()
            elif args.stdin:
                source = stdin or sys.stdin.buffer
                conn.send(source.read())
                conn.shutdown_write()
        except OSError as e:
            # Reset or broken pipe while writing the payload
            print(f"netdial: send failed: {e}", file=sys.stderr)
            return EXIT_CONNECT_FAILED

        try:
            for chunk in conn.iter_chunks():
                stdout.write(chunk)
                stdout.flush()
        except OSError as e:
            print(f"netdial: read failed: {e}", file=sys.stderr)
            return EXIT_CONNECT_FAILED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
