#!/usr/bin/env python3
"""
Configuration Management Module for the ipfs-race CLI

Layers built-in defaults, a named profile, a YAML/JSON file and IPFS_RACE_*
environment variables into one settings tree, and turns it into ResolveOptions.
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

import yaml

from ipfs_race.gateways import (
    DEFAULT_IPFS_GATEWAYS, DEFAULT_IPNS_GATEWAYS, GatewayLists, Protocol
)
from ipfs_race.identifiers import is_valid_http_url
from ipfs_race.resolve import ResolveOptions
from ipfs_race.transport import DEFAULT_USER_AGENT, RequestsTransport

from cli.output import OUTPUT_FORMATS

# Searched in order; the first existing file is used
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.ipfs-race.yml',              # Project-specific YAML
    Path.cwd() / '.ipfs-race.json',             # Project-specific JSON
    Path.home() / '.ipfs-race' / 'config.yml',  # User global YAML
    Path.home() / '.ipfs-race' / 'config.json', # User global JSON
]

ENV_PREFIX = 'IPFS_RACE_'

DEFAULT_CONFIG = {
    'gateways': {
        'ipfs': list(DEFAULT_IPFS_GATEWAYS),
        'ipns': list(DEFAULT_IPNS_GATEWAYS)
    },

    'resolve': {
        'default_protocol': 'ipfs',
        'log_failures': False
    },

    'transport': {
        'timeout': 30,  # seconds, per gateway request
        'user_agent': DEFAULT_USER_AGENT
    },

    'cli': {
        'output_format': 'table'
    }
}

# Configuration profiles
PROFILES = {
    'public': {
        'resolve': {'log_failures': False}
    },
    'local': {
        'gateways': {
            'ipfs': ['http://127.0.0.1:8080'],
            'ipns': ['http://127.0.0.1:8080']
        },
        'transport': {'timeout': 120}
    },
    'debug': {
        'resolve': {'log_failures': True},
        'transport': {'timeout': 10}
    }
}


class ConfigurationManager:
    """Resolver settings merged from defaults, profile, file and environment."""

    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None,
                 environ: Optional[Dict[str, str]] = None):
        """
        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (public, local, debug)
            environ: Environment mapping (defaults to os.environ)
        """
        self.logger = logging.getLogger('ipfs-race-cli.config')
        self.config_file = config_file
        self.profile = profile
        self.environ = os.environ if environ is None else environ
        self._config_cache = None
        self._config_sources = []

    def load(self) -> Dict[str, Any]:
        """Merge every source, later ones winning. The result is cached."""
        if self._config_cache is not None:
            return self._config_cache

        configs = [DEFAULT_CONFIG]
        self._config_sources = ["defaults"]

        if self.profile:
            if self.profile not in PROFILES:
                raise ValueError(f"Unknown profile: {self.profile} (available: {', '.join(PROFILES)})")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")
            self.logger.debug(f"Applied profile: {self.profile}")

        if self.config_file:
            config_data = self._load_config_file(Path(self.config_file))
            if config_data:
                configs.append(config_data)
                self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    config_data = self._load_config_file(config_path)
                    if config_data:
                        configs.append(config_data)
                        self._config_sources.append(f"file:{config_path}")
                        self.logger.debug(f"Loaded config from {config_path}")
                        break

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        self._config_cache = self._deep_merge(*configs)
        return self._config_cache

    def _load_config_file(self, path: Path) -> Optional[Dict[str, Any]]:
        """Load configuration from a YAML or JSON file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                self.logger.warning(f"Unknown config file format: {path}")
                return None

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        The first underscore after the prefix separates the section from the key,
        e.g. IPFS_RACE_RESOLVE_DEFAULT_PROTOCOL -> {'resolve': {'default_protocol': ...}}
        """
        env_config = {}

        for key, value in self.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            config_key = key[len(ENV_PREFIX):].lower()
            section, _, name = config_key.partition('_')
            if not name:
                self.logger.debug(f"Ignoring environment variable without a section: {key}")
                continue

            env_config.setdefault(section, {})[name] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool, list]:
        """JSON, then yes/no booleans, then comma separated lists, else the raw string."""
        # JSON first, so gateway lists can be given as '["https://..."]'
        try:
            return json.loads(value)
        except ValueError:
            pass

        if value.lower() in ['true', 'yes']:
            return True
        elif value.lower() in ['false', 'no']:
            return False

        # Comma separated lists
        if ',' in value:
            return [item.strip() for item in value.split(',') if item.strip()]

        return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Merge mappings left to right into fresh dicts and lists."""
        result = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                elif isinstance(value, dict):
                    result[key] = self._deep_merge(value)
                elif isinstance(value, list):
                    result[key] = list(value)
                else:
                    result[key] = value

        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Look up a value such as 'resolve.default_protocol', or return default.
        """
        current = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, key_path: str, value: Any):
        """Set configuration value by dot-notation path."""
        config = self.load()

        keys = key_path.split('.')
        current = config
        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def validate(self) -> List[str]:
        """
        Check the merged settings.

        Returns:
            Human readable problems, empty when the settings are usable
        """
        config = self.load()
        errors = []

        # Gateway validation
        gateways = config.get('gateways', {})
        for protocol in Protocol:
            urls = gateways.get(protocol.value)
            if not isinstance(urls, list):
                errors.append(f"gateways.{protocol.value} must be a list of URLs")
                continue
            for url in urls:
                if not is_valid_http_url(url):
                    errors.append(f"Invalid {protocol.value} gateway URL: {url}")

        # Resolve validation
        default_protocol = config.get('resolve', {}).get('default_protocol')
        if default_protocol not in [p.value for p in Protocol]:
            errors.append(f"Invalid default protocol: {default_protocol}")

        # Transport validation
        timeout = config.get('transport', {}).get('timeout')
        if timeout is not None and (not isinstance(timeout, (int, float))
                                    or isinstance(timeout, bool) or timeout <= 0):
            errors.append(f"Transport timeout must be a positive number: {timeout}")

        # CLI validation
        output_format = config.get('cli', {}).get('output_format')
        if output_format not in OUTPUT_FORMATS:
            errors.append(f"Invalid output format: {output_format}")

        return errors

    def get_sources(self) -> List[str]:
        """Names of the sources that contributed to the merged settings."""
        self.load()
        return self._config_sources

    def to_resolve_options(self) -> ResolveOptions:
        """Build resolve options, including a configured transport, from the merged configuration."""
        timeout = self.get('transport.timeout')
        gateways = GatewayLists.from_dict(self.get('gateways') or {})

        return ResolveOptions(
            gateways=gateways,
            default_protocol=Protocol.parse(self.get('resolve.default_protocol', 'ipfs')),
            transport=RequestsTransport(
                timeout=timeout,
                user_agent=self.get('transport.user_agent', DEFAULT_USER_AGENT)
            ),
            log_failures=bool(self.get('resolve.log_failures', False)),
            timeout=timeout
        )

    def reset(self):
        """Drop the merged settings so the next read reloads every source."""
        self._config_cache = None
        self._config_sources = []
