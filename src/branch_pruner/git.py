"""Git repository operations."""

from pathlib import Path
from typing import Optional, Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from branch_pruner.exceptions import DeletionError, GatewayError
from branch_pruner.logging_config import get_logger
from branch_pruner.models import BranchRef, CommitSummary

logger = get_logger(__name__)


class Gateway(Protocol):
    """Branch and commit primitives the pruning engine needs from a VCS."""

    def fetch_and_prune(self) -> None: ...

    def current_branch(self) -> Optional[BranchRef]: ...

    def local_branches(self) -> list[BranchRef]: ...

    def remote_branch_names(self, remote_name: str) -> set[str]: ...

    def is_ancestor(self, candidate: BranchRef, base: BranchRef) -> bool: ...

    def commit_summary(self, branch: BranchRef) -> Optional[CommitSummary]: ...

    def delete_branch(self, branch: BranchRef, force: bool) -> None: ...


def _stderr(err: GitCommandError) -> str:
    """Best human-readable message from a failed git command."""
    stderr = err.stderr.strip() if isinstance(err.stderr, str) else ""
    # GitPython wraps stderr as "\n  stderr: 'error: ...'"
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:") :].strip().strip("'").strip()
    return stderr or str(err)


class GitRepo:
    """Git repository operations backed by GitPython."""

    def __init__(self, path: Path, remote: str = "origin") -> None:
        """Open the repository at ``path``.

        Args:
            path: Path inside a git working tree
            remote: Remote that fetch/prune talks to

        Raises:
            GatewayError: If ``path`` is not a usable repository
        """
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
            if self.repo.bare:
                raise GatewayError("open_repository", "Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GatewayError("open_repository", f"Not a git repository: {path}") from err
        self.remote = remote

    def fetch_and_prune(self) -> None:
        """Fetch from the remote and drop tracking refs for deleted branches."""
        try:
            self.repo.remote(self.remote)
        except ValueError as err:
            raise GatewayError("fetch", f"Remote '{self.remote}' does not exist") from err

        logger.info(f"Fetching from {self.remote} with prune")
        try:
            self.repo.git.fetch("--prune", self.remote)
        except GitCommandError as err:
            raise GatewayError("fetch", _stderr(err)) from err

    def current_branch(self) -> Optional[BranchRef]:
        """Get the checked-out branch, or None when HEAD is detached."""
        try:
            if self.repo.head.is_detached:
                return None
            return BranchRef(self.repo.active_branch.name, is_current=True)
        except TypeError:
            # Detached HEAD reported late by some GitPython versions
            return None
        except (GitCommandError, ValueError) as err:
            raise GatewayError("current_branch", str(err)) from err

    def local_branches(self) -> list[BranchRef]:
        """List local branches in refname order.

        ``is_current`` is left False; the caller marks the current branch
        from its own snapshot.
        """
        try:
            return [BranchRef(head.name) for head in self.repo.heads]
        except (GitCommandError, ValueError) as err:
            raise GatewayError("list_local_branches", str(err)) from err

    def remote_branch_names(self, remote_name: str) -> set[str]:
        """Branch names that exist on ``remote_name``.

        Asks the remote itself, so branches outside a narrowed fetch refspec
        (single-branch or shallow clones) are still seen.
        """
        try:
            output = self.repo.git.ls_remote("--heads", remote_name)
        except GitCommandError as err:
            raise GatewayError("list_remote_branches", _stderr(err)) from err

        prefix = "refs/heads/"
        names = set()
        for line in output.splitlines():
            _, _, refname = line.partition("\t")
            refname = refname.strip()
            if refname.startswith(prefix):
                names.add(refname[len(prefix) :])
        return names

    def is_ancestor(self, candidate: BranchRef, base: BranchRef) -> bool:
        """Check whether ``candidate``'s tip is reachable from ``base``."""
        try:
            return self.repo.is_ancestor(self._rev(candidate), self._rev(base))
        except GitCommandError as err:
            raise GatewayError("is_ancestor", _stderr(err)) from err

    def commit_summary(self, branch: BranchRef) -> Optional[CommitSummary]:
        """Short hash, subject and relative date of the branch tip."""
        try:
            output = self.repo.git.log("-1", "--format=%h%x00%s%x00%cr", self._rev(branch), "--")
        except GitCommandError as err:
            logger.debug(f"Could not read last commit of {branch.name}: {_stderr(err)}")
            return None

        parts = output.strip().split("\x00")
        if len(parts) != 3:
            return None
        return CommitSummary(*parts)

    def delete_branch(self, branch: BranchRef, force: bool) -> None:
        """Delete a local branch.

        Without ``force`` git refuses to delete branches with unmerged work.

        Raises:
            DeletionError: If git refuses or the branch does not exist
        """
        try:
            self.repo.delete_head(branch.name, force=force)
        except GitCommandError as err:
            raise DeletionError(branch.name, _stderr(err)) from err

    @staticmethod
    def _rev(branch: BranchRef) -> str:
        # Fully qualified so a tag with the same name can't shadow the branch
        if branch.name == "HEAD":
            return "HEAD"
        return f"refs/heads/{branch.name}"
