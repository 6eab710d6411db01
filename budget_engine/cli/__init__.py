"""
CLI Module - Command-line interface for the Budget Import Engine.

Provides commands for:
- Sheet validation
- Location budget import
- Template column reference
"""

from .budget_commands import cli, main

__all__ = ['cli', 'main']
