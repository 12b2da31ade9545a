"""Built-in plugins, addressable by identifier from the `plugins:` config list."""

from .branch_guard import BranchGuardPlugin

__all__ = ["BranchGuardPlugin"]
