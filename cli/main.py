#!/usr/bin/env python3
"""
IPFS Race - Command Line Interface

Resolve IPFS/IPNS content by racing public gateways, inspect URI
classification, and manage resolver configuration.
"""

import sys
from typing import Optional

import click

from cli import __version__
from cli.commands.config import config
from cli.commands.resolve import classify_command, gateways_command, resolve_command
from cli.config import PROFILES
from cli.context import CLIContext, pass_context
from cli.output import OUTPUT_FORMATS


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              type=click.Path(exists=True, dir_okay=False),
              help='Path to configuration file (YAML or JSON)')
@click.option('--profile', '-p',
              type=click.Choice(list(PROFILES)),
              help='Configuration profile')
@click.option('--output-format', '-o',
              type=click.Choice(OUTPUT_FORMATS),
              help='Output format')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='ipfs-race')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], profile: Optional[str],
        output_format: Optional[str], verbose: int):
    """
    ipfs-race: fetch IPFS/IPNS content from the fastest gateway

    Examples:
        ipfs-race resolve QmaiJczLW9X1Gk7rQH7CgYCuquLZMbdWB6hhqznDBoqdLE
        ipfs-race classify https://ipfs.io/ipfs/QmaiJczLW9X1Gk7rQH7CgYCuquLZMbdWB6hhqznDBoqdLE
        ipfs-race -p local gateways
    """
    ctx.config_file = config_file
    ctx.profile = profile
    ctx.output_format = output_format
    ctx.verbose = verbose

    ctx.setup_logging()

    try:
        ctx.load_config()
    except Exception as e:
        click.echo(f"Error: failed to load configuration: {e}", err=True)
        sys.exit(1)

    ctx.logger.debug("CLI initialized with context")


cli.add_command(resolve_command)
cli.add_command(classify_command)
cli.add_command(gateways_command)
cli.add_command(config)


def main():
    """Console script entry point."""
    cli()


if __name__ == '__main__':
    main()
