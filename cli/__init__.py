"""
IPFS Race CLI Package

Command line interface for the ipfs-race gateway resolver.
"""

__version__ = "1.0.0"
