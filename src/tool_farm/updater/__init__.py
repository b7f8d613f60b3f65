"""Self-update pipeline for Tool Farm.

Detects a newer upstream release, asks the operator for confirmation,
applies it with git or a release archive, reinstalls dependencies and
hands off to a freshly started process.
"""
