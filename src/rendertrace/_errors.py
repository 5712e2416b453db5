"""rendertrace error hierarchy.

All rendertrace-specific errors inherit from RenderTraceError for easy catching.
The core never raises across its public operations; these errors are only
raised at the configuration boundary.
"""


class RenderTraceError(Exception):
    """Base error for all rendertrace operations."""


class ConfigError(RenderTraceError):
    """Invalid or unreadable configuration."""
