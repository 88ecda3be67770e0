#!/usr/bin/env python3
"""
Resolution Commands for the ipfs-race CLI

Commands for fetching content through the gateway race, inspecting how a
URI is classified, and listing the effective gateways.
"""

from dataclasses import replace
from typing import Optional, Tuple

import click

from cli.context import CLIContext, pass_context, handle_cli_error
from ipfs_race.classifier import DirectUrl, GatewayRequest, explain
from ipfs_race.gateways import Protocol
from ipfs_race.identifiers import is_valid_http_url
from ipfs_race.race import build_candidates
from ipfs_race.resolve import resolve

CHUNK_SIZE = 64 * 1024


def _write_body(response, stream) -> int:
    """Copy a response body to a binary stream, returning the byte count."""
    written = 0
    if hasattr(response, 'iter_content'):
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if chunk:
                stream.write(chunk)
                written += len(chunk)
    else:
        body = response.content
        stream.write(body)
        written = len(body)
    return written


def _describe_target(target) -> dict:
    if isinstance(target, DirectUrl):
        return {'type': 'direct-url', 'url': target.url}
    return {'type': 'gateway-request', 'protocol': target.protocol.value, 'path': target.path}


@click.command('resolve')
@click.argument('uri')
@click.option('--output-file', '-f', type=click.Path(dir_okay=False, writable=True),
              help='Write the body to a file instead of stdout')
@click.option('--default-protocol', type=click.Choice([p.value for p in Protocol]),
              help='Protocol assumed for a bare CID')
@click.option('--gateway', '-g', 'gateways', multiple=True,
              help='Gateway base URL to race (repeatable, replaces configured gateways)')
@click.option('--timeout', type=float, help='Per-gateway request timeout in seconds')
@click.option('--log-failures/--no-log-failures', default=None,
              help='Log each failing or cancelled gateway')
@click.option('--info', is_flag=True, help='Print resolution details instead of the body')
@pass_context
@handle_cli_error
def resolve_command(ctx: CLIContext, uri: str, output_file: Optional[str],
                    default_protocol: Optional[str], gateways: Tuple[str, ...],
                    timeout: Optional[float], log_failures: Optional[bool], info: bool):
    """
    Fetch URI by racing IPFS gateways.

    URI may be a CID, CID/path, ipfs/ or ipns/ path, ipfs:// or ipns:// URI,
    gateway URL (path or subdomain style) or a regular http(s) URL.

    Examples:
        ipfs-race resolve QmeSjSinHpPnmXmspMjwiXyN6zS4E9zccariGR3jxcaWtq/0
        ipfs-race resolve ipfs://bafy.../metadata.json -f metadata.json
    """
    options = ctx.config_manager.to_resolve_options()

    changes = {}
    if default_protocol:
        changes['default_protocol'] = Protocol.parse(default_protocol)
    if gateways:
        changes['gateways'] = options.gateways.replace(ipfs=gateways, ipns=gateways)
    if timeout is not None:
        changes['timeout'] = timeout
    if log_failures is not None:
        changes['log_failures'] = log_failures
    if changes:
        options = replace(options, **changes)

    with options.transport, resolve(uri, options) as outcome:
        response = outcome.response
        ctx.logger.info(f"Resolved {uri} from {outcome.resolved_from}")

        details = {
            'uri': uri,
            'resolved_from': outcome.resolved_from,
            'status_code': outcome.status_code,
            'content_type': getattr(response, 'headers', {}).get('Content-Type')
        }

        if info:
            ctx.output(details)
        elif output_file:
            with open(output_file, 'wb') as f:
                details['bytes'] = _write_body(response, f)
            details['output_file'] = output_file
            ctx.output(details)
        else:
            _write_body(response, click.get_binary_stream('stdout'))


@click.command('classify')
@click.argument('uri')
@click.option('--default-protocol', type=click.Choice([p.value for p in Protocol]),
              help='Protocol assumed for a bare CID')
@pass_context
@handle_cli_error
def classify_command(ctx: CLIContext, uri: str, default_protocol: Optional[str]):
    """
    Show how URI is classified and which URLs would be raced.
    """
    options = ctx.config_manager.to_resolve_options()
    protocol = Protocol.parse(default_protocol or options.default_protocol)

    rule, target = explain(uri, protocol)
    origin = uri if isinstance(target, GatewayRequest) and is_valid_http_url(uri) else None

    result = {'uri': uri, 'rule': rule}
    result.update(_describe_target(target))
    result['candidates'] = build_candidates(target, options.gateways, origin)

    if ctx.output_format == 'table':
        candidates = result.pop('candidates')
        ctx.output(result)
        click.echo("")
        ctx.output([{'#': i + 1, 'candidate': url} for i, url in enumerate(candidates)])
    else:
        ctx.output(result)


@click.command('gateways')
@click.option('--protocol', type=click.Choice([p.value for p in Protocol]),
              help='Only list gateways for one protocol')
@pass_context
@handle_cli_error
def gateways_command(ctx: CLIContext, protocol: Optional[str]):
    """
    List the gateways raced for each protocol.
    """
    gateway_lists = ctx.config_manager.to_resolve_options().gateways
    protocols = [Protocol.parse(protocol)] if protocol else list(Protocol)

    rows = [
        {'protocol': p.value, 'gateway': url}
        for p in protocols
        for url in gateway_lists.for_protocol(p)
    ]
    ctx.output(rows)
