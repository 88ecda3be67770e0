#!/usr/bin/env python3
"""
Output Formatting Module for the ipfs-race CLI

Renders command results as tables, JSON or YAML.
"""

import json
import sys
from enum import Enum
from typing import Any, Dict, List, Optional

import yaml
from tabulate import tabulate

OUTPUT_FORMATS = ['table', 'json', 'yaml']


class OutputFormatter:
    """Output formatter for CLI results."""

    def __init__(self, format_type: str = 'table', max_width: Optional[int] = None):
        """
        Initialize output formatter.

        Args:
            format_type: Output format (table, json, yaml)
            max_width: Maximum width of a table cell
        """
        self.format_type = format_type
        self.max_width = max_width or 120

    def format(self, data: Any, headers: Optional[List[str]] = None) -> str:
        """Format data according to the configured format type."""
        data = self._plain(data)
        if self.format_type == 'json':
            return json.dumps(data, indent=2)
        elif self.format_type == 'yaml':
            return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()
        return self.format_table(data, headers)

    def format_table(self, data: Any, headers: Optional[List[str]] = None) -> str:
        """Format a mapping as key/value rows, or a list of mappings as columns."""
        if isinstance(data, dict):
            return self._format_dict_table(data)
        if isinstance(data, list):
            return self._format_list_table(data, headers)
        return str(data)

    def _format_dict_table(self, data: Dict[str, Any]) -> str:
        rows = [[key, self._format_value(value)] for key, value in data.items()]
        return tabulate(rows, tablefmt='plain')

    def _format_list_table(self, data: List[Any], headers: Optional[List[str]] = None) -> str:
        if not data:
            return "No data available"
        if not isinstance(data[0], dict):
            return '\n'.join(str(item) for item in data)

        headers = headers or list(data[0].keys())
        rows = [[self._format_value(item.get(h, '')) for h in headers] for item in data]
        return tabulate(rows, headers=headers, tablefmt='simple')

    def _format_value(self, value: Any) -> str:
        """Format individual value for display."""
        if value is None:
            text = 'null'
        elif isinstance(value, bool):
            text = 'true' if value else 'false'
        elif isinstance(value, list):
            text = ', '.join(str(v) for v in value)
        elif isinstance(value, dict):
            text = f"<{len(value)} items>"
        else:
            text = str(value)

        if len(text) > self.max_width:
            text = text[:self.max_width - 3] + '...'
        return text

    def _plain(self, data: Any) -> Any:
        """Convert enums and tuples into JSON/YAML friendly values."""
        if isinstance(data, Enum):
            return data.value
        if isinstance(data, dict):
            return {str(self._plain(k)): self._plain(v) for k, v in data.items()}
        if isinstance(data, (list, tuple)):
            return [self._plain(v) for v in data]
        return data


def print_output(data: Any, format_type: str = 'table', headers: Optional[List[str]] = None,
                 file=None):
    """Format and print data."""
    formatter = OutputFormatter(format_type)
    print(formatter.format(data, headers), file=file or sys.stdout)
