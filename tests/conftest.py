"""Test configuration and fixtures."""

from pathlib import Path
from typing import Callable, Generator, Iterable, Optional

import pytest
from git import Actor, Repo

from branch_pruner.exceptions import DeletionError, GatewayError
from branch_pruner.models import BranchRef, CommitSummary


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    Local branches after setup, with ``main`` checked out:
    - feature/kept: still on the remote, unmerged
    - feature/merged: merged into main, deleted on the remote
    - feature/unmerged: not merged, deleted on the remote

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    Repo.init(remote_path, bare=True)
    local_repo = Repo.init(local_path)

    author = Actor("Test User", "test@example.com")
    local_repo.config_writer().set_value("user", "name", author.name).release()
    local_repo.config_writer().set_value("user", "email", author.email).release()

    readme = local_path / "README.md"
    readme.write_text("# Test Repository")
    local_repo.index.add(["README.md"])
    local_repo.index.commit("Initial commit", author=author)

    # Whatever init.defaultBranch says, work on main
    local_repo.git.branch("-M", "main")
    main_branch = local_repo.heads.main

    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("main")

    def create_branch(name: str, content: str, merge: bool = False, keep_on_remote: bool = True) -> None:
        """Create a branch with one commit and push it."""
        main_branch.checkout()
        branch = local_repo.create_head(name)
        branch.checkout()

        file_name = f"{name.replace('/', '_')}.txt"
        (local_path / file_name).write_text(content)
        local_repo.index.add([file_name])
        local_repo.index.commit(f"Add {content}", author=author)
        origin.push(name)

        if merge:
            main_branch.checkout()
            local_repo.git.merge(name, "--no-ff", "--no-edit")
            origin.push("main")

        if not keep_on_remote:
            origin.push(f":{name}")

    create_branch("feature/kept", "kept work")
    create_branch("feature/merged", "merged work", merge=True, keep_on_remote=False)
    create_branch("feature/unmerged", "unmerged work", keep_on_remote=False)

    main_branch.checkout()

    yield local_path, remote_path

    local_repo.close()


@pytest.fixture
def test_repo(test_env: tuple[Path, Path]) -> Path:
    """Path of the local repository from ``test_env``."""
    local_path, _ = test_env
    return local_path


class FakeGateway:
    """In-memory gateway with configurable merge state and failures."""

    def __init__(
        self,
        local: Iterable[str],
        remote: Iterable[str],
        current: Optional[str] = "main",
        merged: Iterable[str] = (),
        broken: Iterable[str] = (),
        failing: Iterable[str] = (),
        fetch_error: bool = False,
        fail_on: Iterable[str] = (),
    ) -> None:
        self.local = list(local)
        self.remote = set(remote)
        self.current = current
        self.merged = set(merged)
        self.broken = set(broken)
        self.failing = set(failing)
        self.fetch_error = fetch_error
        self.fail_on = set(fail_on)

        self.fetch_calls = 0
        self.remote_calls = 0
        self.bases: list[str] = []
        self.summary_calls: list[str] = []
        self.deleted: list[tuple[str, bool]] = []

    def fetch_and_prune(self) -> None:
        self.fetch_calls += 1
        if self.fetch_error:
            raise GatewayError("fetch", "Could not read from remote repository")

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise GatewayError(operation, "fatal: unable to read refs")

    def current_branch(self) -> Optional[BranchRef]:
        self._check("current_branch")
        if self.current is None:
            return None
        return BranchRef(self.current, is_current=True)

    def local_branches(self) -> list[BranchRef]:
        self._check("list_local_branches")
        return [BranchRef(name) for name in self.local]

    def remote_branch_names(self, remote_name: str) -> set[str]:
        self.remote_calls += 1
        self._check("list_remote_branches")
        return set(self.remote)

    def is_ancestor(self, candidate: BranchRef, base: BranchRef) -> bool:
        self.bases.append(base.name)
        if candidate.name in self.broken:
            raise GatewayError("is_ancestor", f"bad revision '{candidate.name}'")
        return candidate.name in self.merged

    def commit_summary(self, branch: BranchRef) -> Optional[CommitSummary]:
        self.summary_calls.append(branch.name)
        return CommitSummary("abc1234", f"Work on {branch.name}", "2 days ago")

    def delete_branch(self, branch: BranchRef, force: bool) -> None:
        if branch.name not in self.local:
            raise DeletionError(branch.name, f"branch '{branch.name}' not found")
        if branch.name in self.failing:
            raise DeletionError(branch.name, "cannot lock ref")
        if not force and branch.name not in self.merged:
            raise DeletionError(branch.name, f"the branch '{branch.name}' is not fully merged")
        self.local.remove(branch.name)
        self.deleted.append((branch.name, force))


@pytest.fixture
def make_gateway() -> Callable[..., FakeGateway]:
    """Factory for in-memory gateways."""
    return FakeGateway
