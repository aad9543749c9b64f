#!/usr/bin/env python3

#    __main__.py
#        Entry point of the python module. Launch the CLI.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

from himmel.cli import CLI
import sys
import os


def himmel_cli() -> None:
    cli = CLI(os.getcwd())
    code = cli.run(sys.argv[1:])
    sys.exit(code)


if __name__ == '__main__':
    himmel_cli()
