"""CLI entry point for fsblock: block on, or watch, filesystem changes."""

import argparse
import logging
import sys

from fsblock_core.config import build_session_config, load_file_config
from fsblock_core.errors import ConfigError
from fsblock_core.notifier import ConsoleNotifier

from fsblock import __version__
from fsblock.session import EXIT_CONFIG_ERROR, WatchSession


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Boolean flags default to None so values from a config file are only
    overridden when a flag is actually given.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="fsblock",
        description="Block until a file changes in a directory, or watch it and run a command on every change.",
        epilog="Examples:\n"
        "  fsblock -p src                       # Wait for one change, print it, exit\n"
        "  fsblock -p src -w -i src/build       # Print every change outside src/build\n"
        '  fsblock -p src -w -C "make -s" -F    # Run make with the changed file name',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("-p", "--path", help="Directory to watch")
    parser.add_argument(
        "-n", "--norecurse", action="store_true", default=None, help="Do not watch subdirectories"
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="Verbose mode")
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        default=None,
        help="Continuously watch for changes. Be sure feedback is enabled.",
    )
    parser.add_argument(
        "-f", "--nofeedback", action="store_true", default=None, help="Do not print changes to stdout"
    )
    parser.add_argument("-C", "--command", default=None, help="Command to run when a file changes")
    parser.add_argument(
        "-F",
        "--forward",
        action="store_true",
        default=None,
        help="Pass the changed file name to the command. Only has an effect if --command is set.",
    )
    parser.add_argument(
        "-N",
        "--nocmdwait",
        action="store_true",
        default=None,
        help="Do not wait for the command to finish. Only has an effect if --command is set.",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        nargs="+",
        action="extend",
        default=[],
        metavar="PATH",
        help="Paths to ignore (any changed path containing one of them)",
    )
    parser.add_argument("--config", default=None, help="TOML file with an [fsblock] table of defaults")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def _pick(flag: bool | None, file_values: dict, key: str, default: bool) -> bool:
    if flag is not None:
        return flag
    return file_values.get(key, default)


def configure_logging(args: argparse.Namespace, verbose: bool) -> None:
    """Send log records to stderr at the requested level."""
    if args.log_level:
        level = getattr(logging, args.log_level.upper(), logging.WARNING)
    else:
        level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the fsblock CLI.

    Handles:
    - Argument parsing and config file merging
    - Validation of root and command (exit 1 on failure)
    - Running the watch session and exiting with its status
    """
    args = parse_args(argv)

    try:
        file_values = load_file_config(args.config) if args.config else {}
        verbose = _pick(args.verbose, file_values, "verbose", False)
        configure_logging(args, verbose)

        command = args.command if args.command is not None else file_values.get("command")
        config = build_session_config(
            args.path or file_values.get("path"),
            recursive=not args.norecurse if args.norecurse is not None else file_values.get("recursive", True),
            verbose=verbose,
            feedback=not args.nofeedback if args.nofeedback is not None else file_values.get("feedback", True),
            watch=_pick(args.watch, file_values, "watch", False),
            command=command,
            forward=_pick(args.forward, file_values, "forward", False),
            wait=not args.nocmdwait if args.nocmdwait is not None else file_values.get("wait", True),
            ignore=file_values.get("ignore", []) + args.ignore,
        )
    except ConfigError as e:
        print(e, file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        session = WatchSession(config, notifier=ConsoleNotifier())
        sys.exit(session.run())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
