#    cli.py
#        Provide the Command Line Interface.
#        Each functionality is a command selected by the first positional argument.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['CLI']

import os
import argparse
import logging

from himmel.cli.commands import *
from himmel.core.logging import configure_logging
from himmel import tools

from himmel.tools.typing import *


class CLI:
    """Himmel Command Line Interface.
    All commands are executed through this class."""

    workdir: str
    default_log_level: str
    command_list: List[Type[BaseCommand]]
    parser: argparse.ArgumentParser

    def __init__(self, workdir: str = '.', default_log_level: str = 'warning') -> None:
        self.workdir = workdir
        self.default_log_level = default_log_level

        self.command_list = get_all_commands()
        self.parser = argparse.ArgumentParser(
            prog='himmel',
            epilog=self.make_command_list_help(),
            add_help=False,
            formatter_class=argparse.RawTextHelpFormatter
        )
        self.parser.add_argument('command', help='Command to execute')
        self.parser.add_argument('--loglevel', help='Log level to use', default=None, metavar='LEVEL')
        self.parser.add_argument('--logfile', help='File to write logs', default=None, metavar='FILENAME')
        self.parser.add_argument('--disable_loggers', help='Comma separated list of loggers to disable', default=None, metavar='LOGGERS')

    def make_command_list_help(self) -> str:
        """Return a string meant to be displayed in the command line explaining the possible commands"""
        msg = "Here are the possible commands\n"
        commands = get_commands_by_groups()
        groups = list(commands.keys())
        if '' in groups:
            groups.remove('')  # Ungrouped commands at the end
            groups.append('')

        for group in groups:
            group_name = group if group else 'Others'
            msg += f"\n--- {group_name} ---\n"
            longest_cmd_name = max([len(cmd.get_name()) for cmd in commands[group]])
            for cmd in commands[group]:
                padding = ' ' * (longest_cmd_name + 4 - len(cmd.get_name()))
                msg += f"    - {cmd.get_name()}:{padding}{cmd.get_brief()}\n"

        return msg

    def run(self, args: List[str], except_failed: bool = False) -> int:
        """Run a command. Arguments must be passed as a list of strings (like they would be split in a shell).
        Returns the process exit code"""
        if len(args) > 0:   # The help might be for a subcommand, so we take it only if it's the first argument.
            if args[0] in ['-h', '--help']:
                self.parser.print_help()
                return 0

        cargs, command_cargs = self.parser.parse_known_args(args)
        command_class: Optional[Type[BaseCommand]] = None
        for cmd in self.command_list:
            if cmd.get_name() == cargs.command:
                command_class = cmd
                break

        if command_class is None:
            if except_failed:
                raise ValueError(f'Unknown command {cargs.command}')
            self.parser.print_help()
            return 1

        code = 0
        current_workdir = os.getcwd()
        try:
            logging_level_str = cargs.loglevel if cargs.loglevel else self.default_log_level
            configure_logging(logging_level_str, logfile=cargs.logfile, disabled_loggers=cargs.disable_loggers)

            cmd_instance = command_class(command_cargs, requested_log_level=cargs.loglevel)
            os.chdir(self.workdir)
            ret = cmd_instance.run()
            code = ret if ret is not None else 0
        except Exception as e:
            if except_failed:
                raise
            code = 1
            tools.log_exception(logging.getLogger('CLI'), e)
            logging.getLogger('CLI').debug('Command : himmel ' + ' '.join(args))
        finally:
            os.chdir(current_workdir)

        return code
