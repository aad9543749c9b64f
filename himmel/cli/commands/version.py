#    version.py
#        A command line utility that outputs the himmel version.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['Version']

import argparse

from .base_command import BaseCommand
from himmel.tools.typing import *


class Version(BaseCommand):
    _cmd_name_ = 'version'
    _brief_ = 'Display the version string'
    _group_ = 'Information'

    args: List[str]
    parser: argparse.ArgumentParser

    def __init__(self, args: List[str], requested_log_level: Optional[str] = None):
        self.args = args
        self.parser = argparse.ArgumentParser(prog=self.get_prog())
        self.parser.add_argument('--format', choices=['full', 'short'], default='full', help='The version format')

    def run(self) -> Optional[int]:
        import himmel
        args = self.parser.parse_args(self.args)

        if args.format == 'full':
            print(f"Himmel v{himmel.__version__}\n(c) {himmel.__author__} (License : {himmel.__license__})")
        if args.format == 'short':
            print(f"{himmel.__version__}")

        return 0
