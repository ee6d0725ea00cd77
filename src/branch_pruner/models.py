"""Value types shared by the engine, the git gateway and the CLI."""

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Callable, Iterator, Mapping, Optional


class MergeStatus(Enum):
    """Whether a branch is fully merged into the base branch."""

    MERGED = "merged"
    UNMERGED = "unmerged"
    UNKNOWN = "unknown"  # Ancestry check failed

    @property
    def is_safe_to_delete(self) -> bool:
        """Only a confirmed merge allows a non-forced deletion."""
        return self is MergeStatus.MERGED


class DeletionMode(Enum):
    """How a run treats its stale branches."""

    DRY_RUN = "dry-run"
    SAFE_DELETE = "safe-delete"
    FORCE_DELETE = "force-delete"


class RunState(Enum):
    """Stages of a single run, in order."""

    INIT = "init"
    FETCHED = "fetched"
    DETECTED = "detected"
    CLASSIFIED = "classified"
    PLANNED = "planned"
    EXECUTED = "executed"
    REPORTED = "reported"


@dataclass(frozen=True)
class BranchRef:
    """A local branch as seen by the current run."""

    name: str
    is_current: bool = False

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RemoteBranchSet:
    """Branch names present on a remote right after fetch/prune."""

    remote: str
    names: frozenset[str] = field(default_factory=frozenset)

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.names)


@dataclass(frozen=True)
class CommitSummary:
    """Last commit on a branch, for display only."""

    short_hash: str
    subject: str
    relative_age: str

    def __str__(self) -> str:
        return f"{self.short_hash} {self.subject}".strip()


SummaryLoader = Callable[[BranchRef], Optional[CommitSummary]]


@dataclass(frozen=True)
class StaleCandidate:
    """A local branch that no longer exists on the remote.

    The commit summary is loaded on first access through ``loader`` and is
    never needed to decide whether the branch gets deleted.
    """

    branch: BranchRef
    loader: Optional[SummaryLoader] = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.branch.name

    @cached_property
    def summary(self) -> Optional[CommitSummary]:
        if self.loader is None:
            return None
        return self.loader(self.branch)


@dataclass(frozen=True)
class PlanEntry:
    """One planned decision for a stale branch."""

    candidate: StaleCandidate
    status: MergeStatus
    will_delete: bool
    reason: str

    @property
    def name(self) -> str:
        return self.candidate.name


@dataclass(frozen=True)
class DeletionPlan:
    """Ordered, immutable deletion decisions for one run."""

    mode: DeletionMode
    entries: tuple[PlanEntry, ...] = ()

    def __post_init__(self) -> None:
        for entry in self.entries:
            if not entry.will_delete:
                continue
            if self.mode is DeletionMode.DRY_RUN:
                raise ValueError(f"Dry-run plan cannot delete '{entry.name}'")
            if self.mode is not DeletionMode.FORCE_DELETE and entry.status is not MergeStatus.MERGED:
                raise ValueError(f"Branch '{entry.name}' is {entry.status.value} and cannot be deleted without force")

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def force(self) -> bool:
        """Whether deletions should bypass git's own unmerged check."""
        return self.mode is DeletionMode.FORCE_DELETE

    @property
    def to_delete(self) -> list[PlanEntry]:
        return [entry for entry in self.entries if entry.will_delete]

    @property
    def skipped(self) -> list[PlanEntry]:
        return [entry for entry in self.entries if not entry.will_delete]


@dataclass(frozen=True)
class DeletionFailure:
    """A branch the executor could not delete."""

    branch: str
    reason: str


@dataclass
class RunOutcome:
    """Counts and failures from applying a plan."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    deleted: list[str] = field(default_factory=list)
    failures: list[DeletionFailure] = field(default_factory=list)

    def record_success(self, branch: str) -> None:
        self.attempted += 1
        self.succeeded += 1
        self.deleted.append(branch)

    def record_failure(self, branch: str, reason: str) -> None:
        self.attempted += 1
        self.failed += 1
        self.failures.append(DeletionFailure(branch, reason))

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


@dataclass(frozen=True)
class Detection:
    """Snapshot-derived result of the detection and classification stages."""

    current: Optional[BranchRef]
    local_branches: tuple[BranchRef, ...]
    remote: RemoteBranchSet
    candidates: tuple[StaleCandidate, ...]
    statuses: Mapping[StaleCandidate, MergeStatus]

    @property
    def total_local(self) -> int:
        """Local branches other than the current one."""
        return sum(1 for branch in self.local_branches if not branch.is_current)

    @property
    def stale_count(self) -> int:
        return len(self.candidates)

    def status_of(self, candidate: StaleCandidate) -> MergeStatus:
        return self.statuses.get(candidate, MergeStatus.UNKNOWN)
