"""
SurrealDB testsuite Command Line Interface.

Provides inspection commands for writing relation and scope tests:
- relations: List relation-declaring methods and their relation classes
- methods: List the methods a mixin mock of a class accepts
"""

from .commands import cli

__all__ = ["cli"]
