from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, TextIO

from lettersynth.core.config import get_settings
from lettersynth.core.container import AppContainer, build_container
from lettersynth.core.logging import configure_console_logging
from lettersynth.models.command import CommandVerb

logger = logging.getLogger(__name__)

PROMPT = "cmd> "

HELP_BANNER = """\
| Interactive mode. Commands:
|   Bind a letter:
|       SET <letter> <type> <parameter> <value>...   specify the type and some parameters
|           e.g.: SET a sin note 66
|           e.g.: SET a delay time 0.5 feedback 0.4
|       SET <letter> <type>                          just the type, default parameters
|       SET <letter> <parameter> <value>...          change parameters of a bound letter
|   Save a graph:
|       "h (el lo)"                                  letters in parentheses follow a pulse letter,
|                                                    e.g. SET x midi then "x(ab)"
|   Play/Pause your graph:
|       PLAY
|       PAUSE
|   Print the letter bindings:
|       PRINT
|       PRINT v                                      verbose, with parameters and defaults
|   EXIT"""


def _emit(lines: Iterable[str], out: TextIO) -> None:
    for line in lines:
        print(line, file=out)


def execute(container: AppContainer, line: str, out: TextIO) -> bool:
    """Run one line; returns False once the loop should stop."""
    result = container.command_service.process_line(line)
    if result.should_exit:
        print("'EXIT' command received. Stopping.", file=out)
        return False
    _emit(result.output, out)
    if result.verb is CommandVerb.SET and not result.ok:
        print("Binding unchanged.", file=out)
    return True


def run_file(container: AppContainer, path: Path, out: TextIO) -> bool:
    """Run every line of ``path``; returns False if the file asked to exit."""
    print(f"Running commands from '{path}'", file=out)
    with path.open(encoding="utf-8") as handle:
        for raw in handle:
            line = raw.rstrip("\n")
            if line.strip().upper() == "EXIT":
                print("'EXIT' directive found in file - stopping.", file=out)
                return False
            execute(container, line, out)
    print(f"[File mode] Finished processing '{path}'. Type EXIT to stop.", file=out)
    return True


def run_console(container: AppContainer, stream: TextIO, out: TextIO, prompt: str = PROMPT) -> None:
    while True:
        print(prompt, end="", file=out, flush=True)
        line = stream.readline()
        if not line:
            print("\nEOF on console input. Exiting.", file=out)
            return
        if not execute(container, line.rstrip("\n"), out):
            return


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="lettersynth command loop")
    parser.add_argument("command_file", nargs="?", type=Path, help="Run the commands of this file first.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the startup letter bindings.")
    parser.add_argument("--quiet", action="store_true", help="Do not print the startup bindings.")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    configure_console_logging(args.debug)
    settings = get_settings()
    container = build_container(settings, seed=args.seed)
    out = sys.stdout

    if not args.quiet and len(container.registry):
        _emit(container.registry.format_bindings(verbose=True), out)

    if args.command_file is not None:
        if not args.command_file.is_file():
            logger.error("Cannot open command file '%s'", args.command_file)
            return 1
        if not run_file(container, args.command_file, out):
            return 0
    else:
        print(HELP_BANNER, file=out)

    run_console(container, sys.stdin, out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
