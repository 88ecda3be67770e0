#!/usr/bin/env python3
"""
Shared CLI context for the ipfs-race command line interface.
"""

import sys
import logging
import functools
import traceback
from typing import Any, Optional, List

import click

from cli.config import ConfigurationManager
from cli.output import print_output


class CLIContext:
    """Per-invocation state shared by every ipfs-race command."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.profile: Optional[str] = None
        self.output_format: Optional[str] = None
        self.verbose: int = 0
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('ipfs-race-cli')

    def setup_logging(self):
        """Route library and CLI logs to stderr at the level chosen by -v."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }

        level = log_levels.get(min(self.verbose, 2), logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        # Library and CLI loggers share the handler
        for name in ('ipfs-race-cli', 'ipfs_race'):
            logger = logging.getLogger(name)
            logger.handlers = [handler]
            logger.setLevel(level)

        # Connection pool chatter only at -vv
        if self.verbose < 2:
            logging.getLogger('requests').setLevel(logging.WARNING)
            logging.getLogger('urllib3').setLevel(logging.WARNING)

    def load_config(self):
        """Create the configuration manager for this invocation."""
        self.config_manager = ConfigurationManager(self.config_file, self.profile)
        self.config_manager.load()
        self.logger.debug(f"Configuration sources: {', '.join(self.config_manager.get_sources())}")

        if self.output_format is None:
            self.output_format = self.config_manager.get('cli.output_format', 'table')

    def output(self, data: Any, headers: Optional[List[str]] = None):
        """Output data in the selected format."""
        print_output(data, self.output_format or 'table', headers)


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Turn any error raised by a command into a one-line message and exit status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("\nOperation cancelled by user.", err=True)
            sys.exit(130)
        except click.exceptions.Exit:
            raise
        except Exception as e:
            ctx = click.get_current_context(silent=True)
            cli_ctx = ctx.find_object(CLIContext) if ctx else None

            click.echo(f"Error: {e}", err=True)
            if cli_ctx and cli_ctx.verbose >= 2:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo("Use -vv for detailed error information.", err=True)

            sys.exit(1)

    return wrapper
