#!/usr/bin/env python3
"""
Configuration Management Commands for the ipfs-race CLI

Commands for inspecting the merged configuration, its sources, and validating it.
"""

import sys
from typing import Optional

import click

from cli.config import PROFILES, ENV_PREFIX, CONFIG_SEARCH_PATHS
from cli.context import CLIContext, pass_context, handle_cli_error


@click.group('config')
@pass_context
def config(ctx: CLIContext):
    """
    Configuration management commands.

    Inspect and validate gateway, resolve and transport settings.
    """
    ctx.logger.debug("Config command group invoked")


@config.command('show')
@click.option('--key', '-k', help='Show a single value by dot-notation path')
@pass_context
@handle_cli_error
def show_config(ctx: CLIContext, key: Optional[str]):
    """Show the merged configuration."""
    if key:
        value = ctx.config_manager.get(key)
        if value is None:
            raise click.ClickException(f"Configuration key not found: {key}")
        ctx.output({key: value})
    else:
        ctx.output(ctx.config_manager.load())


@config.command('sources')
@pass_context
@handle_cli_error
def config_sources(ctx: CLIContext):
    """List where configuration was loaded from."""
    ctx.output({
        'loaded': ctx.config_manager.get_sources(),
        'search_paths': [str(p) for p in CONFIG_SEARCH_PATHS],
        'env_prefix': ENV_PREFIX,
        'profiles': list(PROFILES)
    })


@config.command('validate')
@pass_context
@handle_cli_error
def validate_config(ctx: CLIContext):
    """Validate the merged configuration."""
    errors = ctx.config_manager.validate()

    if errors:
        for error in errors:
            click.echo(f"✗ {error}", err=True)
        sys.exit(1)

    click.echo("✓ Configuration is valid")
