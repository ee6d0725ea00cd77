"""Exceptions raised by branch-pruner."""

from typing import Optional


class BranchPrunerError(Exception):
    """Base exception for all branch-pruner errors."""

    pass


class GatewayError(BranchPrunerError):
    """The git backend could not answer a query.

    Raised for fetch, branch listing and current-branch lookups. Fatal to
    the run: nothing is deleted once one of these has been raised.
    """

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class DeletionError(BranchPrunerError):
    """A single branch could not be deleted."""

    def __init__(self, branch: str, message: Optional[str] = None):
        self.branch = branch
        self.message = message or "deletion failed"
        super().__init__(f"Failed to delete branch '{branch}': {self.message}")


class ClassificationError(BranchPrunerError):
    """The ancestry check failed for one candidate."""

    def __init__(self, branch: str, message: Optional[str] = None):
        self.branch = branch
        self.message = message
        error_msg = f"Could not classify branch '{branch}'"
        if message:
            error_msg += f": {message}"
        super().__init__(error_msg)
