#    analyze.py
#        CLI Command to analyze an ELF file and/or a core dump and output the result as JSON
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['Analyze']

import argparse
import os
import logging

from .base_command import BaseCommand
from himmel.tools.typing import *


class Analyze(BaseCommand):
    _cmd_name_ = 'analyze'
    _brief_ = 'Extract the structure of an ELF file and/or the threads of a core dump.'
    _group_ = 'Analysis'

    args: List[str]
    parser: argparse.ArgumentParser
    logger: logging.Logger

    def __init__(self, args: List[str], requested_log_level: Optional[str] = None):
        self.args = args
        self.logger = logging.getLogger(self.__class__.__name__)
        self.parser = argparse.ArgumentParser(prog=self.get_prog())
        self.parser.add_argument('--elf', default=None, metavar='FILE', help='The ELF file to analyze')
        self.parser.add_argument('--core', default=None, metavar='FILE', help='The core dump to analyze')
        self.parser.add_argument('--format', choices=['json'], default='json', help='The output format')
        self.parser.add_argument('--no-dwarf', action='store_true', default=False,
                                 help='Only read the ELF headers. Do not extract the debug symbols')
        self.parser.add_argument('--output', default=None, metavar='FILE', help='The output file. Will go to STDOUT if not set')

    def run(self) -> Optional[int]:
        from himmel.core.analyzer import analyze_files
        from himmel.core.analysis_result import AnalysisResult
        from himmel.exceptions import AnalysisFailedError

        args = self.parser.parse_args(self.args)
        if args.elf is None and args.core is None:
            raise ValueError("Nothing to analyze. Specify --elf, --core or both")

        code = 0
        try:
            result = analyze_files(elf_path=args.elf, core_path=args.core, with_dwarf=not args.no_dwarf)
        except AnalysisFailedError as e:
            for failure in e.failures:
                self.logger.error(str(failure))
            result = e.partial_result
            code = 1
            if result == AnalysisResult():
                return code     # Nothing succeeded. Nothing to output

        self.write_output(result.to_json(), args.output)
        return code

    def write_output(self, content: str, output: Optional[str]) -> None:
        if output is None:
            print(content)
            return

        if os.path.isfile(output):
            self.logger.warning(f'File {output} already exist. Overwriting')

        with open(output, 'w', encoding='utf8') as f:
            f.write(content)
