"""
IPFS Race CLI Commands Package

Command modules for the ipfs-race CLI.
"""

__all__ = ['resolve', 'config']
