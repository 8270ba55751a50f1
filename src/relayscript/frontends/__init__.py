"""Frontends - User interfaces for relayscript.

Submodules:
    cli/    Command-line interface (run a worker, replay command files)
    sdk/    Python SDK for hosts driving a worker subprocess
"""
