"""
rconf - backup and deploy configuration files.

Collects configuration files into a single portable archive and reinstalls
them, optionally together with their packages, on another machine.
"""

__version__ = "0.3.0"
