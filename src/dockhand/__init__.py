"""
Dockhand - pluggable command-line toolbox.

Top-level commands can be provided by external ``dockhand-<name>``
executables, which are discovered, validated and dispatched at runtime.
"""

__version__ = "0.1.0"
