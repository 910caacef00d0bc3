"""
cli - Command Line Interface for editren
"""

from .cli_entry import main

__all__ = ["main"]
