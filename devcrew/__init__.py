"""devcrew: multi-worker development agent orchestration."""

__version__ = "1.0.0"
