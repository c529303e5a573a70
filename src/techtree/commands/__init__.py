"""
techtree.commands - CLI command implementations
"""

__all__ = [
    "config_cmd",
    "edit",
    "format_cmd",
    "init",
    "query",
    "serve",
    "validate",
]
