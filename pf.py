#!/usr/bin/python3

# pf.py
# Runner for the grid machines: load a program, pick an engine, cycle it.

import argparse
import logging
import sys

from argh_vm import ArghVM
from befunge_vm import BefungeVM
from bf_vm import BrainfuckVM
from grid import SilentBounds, StrictBounds, WIDTH

LANGS = {
    "befunge": BefungeVM,
    "argh": ArghVM,
    "bf": BrainfuckVM,
}


def parse_args(argv=None):
    ap = argparse.ArgumentParser(prog="pf", description="Run a Befunge, Argh! or Brainfuck program.")
    ap.add_argument("program", nargs="?", help="program file (source is read from stdin when omitted)")
    ap.add_argument("-l", "--lang", choices=sorted(LANGS), default="befunge")
    policy = ap.add_mutually_exclusive_group()
    policy.add_argument("--strict", dest="bounds", action="store_const", const=StrictBounds,
                        help="abort on any access outside the grid")
    policy.add_argument("--silent", dest="bounds", action="store_const", const=SilentBounds,
                        help="read spaces and drop writes outside the grid")
    ap.add_argument("-w", "--width", type=int, default=WIDTH, help="grid width (default %(default)s)")
    ap.add_argument("--max-cycles", type=int, default=None, metavar="N",
                    help="abort after N cycles")
    ap.add_argument("-v", "--verbose", action="store_true", help="trace every cycle to stderr")
    return ap.parse_args(argv)


def setup_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def decode_source(raw, encoding):
    # same newline handling as a file opened in text mode
    return raw.decode(encoding).replace("\r\n", "\n").replace("\r", "\n")


def read_source(path, lang):
    # Brainfuck programs are byte streams, the grids are text
    encoding = "latin-1" if lang == "bf" else "utf-8"
    if path is None:
        print("Expect the source code on stdin", file=sys.stderr)
        return decode_source(sys.stdin.buffer.read(), encoding)
    try:
        with open(path, "r", encoding=encoding) as f:
            return f.read()
    except OSError as e:
        raise SystemExit(f"The file specified is invalid: {e}")


def build_vm(lang, source, width=WIDTH, bounds=None):
    cls = LANGS[lang]
    if cls is BrainfuckVM:
        return BrainfuckVM(source)
    return cls.from_source(source, width=width, bounds=bounds() if bounds else None)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    source = read_source(args.program, args.lang)
    vm = build_vm(args.lang, source, width=args.width, bounds=args.bounds)
    vm.run(max_cycles=args.max_cycles)


if __name__ == "__main__":
    main()
