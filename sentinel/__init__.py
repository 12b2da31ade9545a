"""sentinel: score shell commands for danger before they run."""

__version__ = "0.1.0"
