"""Stale branch detection, merge classification, planning and execution."""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Mapping, Optional

from branch_pruner.config import Config
from branch_pruner.exceptions import ClassificationError, DeletionError, GatewayError
from branch_pruner.git import Gateway
from branch_pruner.logging_config import get_logger
from branch_pruner.models import (
    BranchRef,
    DeletionMode,
    DeletionPlan,
    Detection,
    MergeStatus,
    PlanEntry,
    RemoteBranchSet,
    RunOutcome,
    RunState,
    StaleCandidate,
    SummaryLoader,
)

logger = get_logger(__name__)

REASON_DRY_RUN = "dry-run"
REASON_MERGED = "merged"
REASON_UNMERGED = "unmerged; rerun with force"
REASON_FORCED = "forced"


def detect_stale(
    local_branches: Iterable[BranchRef],
    remote: RemoteBranchSet,
    current: Optional[BranchRef],
    summary_loader: Optional[SummaryLoader] = None,
) -> list[StaleCandidate]:
    """Local branches that are missing from the remote.

    The current branch is never returned. Order follows ``local_branches``.

    Args:
        local_branches: Snapshot of local branches
        remote: Snapshot of remote branch names taken after fetch/prune
        current: Checked-out branch, or None when HEAD is detached
        summary_loader: Attached to each candidate for lazy commit display

    Returns:
        Stale candidates in discovery order
    """
    current_name = current.name if current else None
    return [
        StaleCandidate(branch, loader=summary_loader)
        for branch in local_branches
        if branch.name not in remote.names and branch.name != current_name
    ]


def _check_ancestry(candidate: StaleCandidate, base: BranchRef, gateway: Gateway) -> bool:
    try:
        return gateway.is_ancestor(candidate.branch, base)
    except GatewayError as err:
        raise ClassificationError(candidate.name, err.message or str(err)) from err


def classify(candidate: StaleCandidate, base: BranchRef, gateway: Gateway) -> MergeStatus:
    """Merge status of ``candidate`` relative to ``base``.

    Never raises: a failed ancestry check degrades to UNKNOWN, which the
    planner treats like UNMERGED.
    """
    try:
        merged = _check_ancestry(candidate, base, gateway)
    except ClassificationError as err:
        logger.warning(str(err))
        return MergeStatus.UNKNOWN
    return MergeStatus.MERGED if merged else MergeStatus.UNMERGED


def classify_all(
    candidates: Iterable[StaleCandidate],
    base: BranchRef,
    gateway: Gateway,
    workers: int = 1,
) -> dict[StaleCandidate, MergeStatus]:
    """Classify every candidate, keyed in the order they were given."""
    candidates = list(candidates)
    if workers > 1 and len(candidates) > 1:
        logger.debug(f"Classifying {len(candidates)} branches with {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields results in submission order
            results = list(executor.map(lambda candidate: classify(candidate, base, gateway), candidates))
    else:
        results = [classify(candidate, base, gateway) for candidate in candidates]
    return dict(zip(candidates, results))


def build_plan(
    candidates: Iterable[StaleCandidate],
    mode: DeletionMode,
    statuses: Mapping[StaleCandidate, MergeStatus],
) -> DeletionPlan:
    """Decide which candidates get deleted under ``mode``."""
    entries = []
    for candidate in candidates:
        status = statuses.get(candidate, MergeStatus.UNKNOWN)
        if mode is DeletionMode.DRY_RUN:
            will_delete, reason = False, REASON_DRY_RUN
        elif mode is DeletionMode.FORCE_DELETE:
            will_delete, reason = True, REASON_FORCED
        elif status.is_safe_to_delete:
            will_delete, reason = True, REASON_MERGED
        else:
            will_delete, reason = False, REASON_UNMERGED
        entries.append(PlanEntry(candidate, status, will_delete, reason))
    return DeletionPlan(mode, tuple(entries))


def apply_plan(
    plan: DeletionPlan,
    gateway: Gateway,
    should_stop: Optional[Callable[[], bool]] = None,
) -> RunOutcome:
    """Delete every branch the plan marks for deletion.

    A failed deletion is recorded and the remaining entries still run.

    Args:
        plan: Plan to apply
        gateway: Backend performing the deletions
        should_stop: Checked before each deletion; True ends the run early

    Returns:
        Outcome with counts and per-branch failures
    """
    outcome = RunOutcome()
    for entry in plan.to_delete:
        if should_stop is not None and should_stop():
            logger.info("Stopping before remaining deletions")
            break
        try:
            gateway.delete_branch(entry.candidate.branch, force=plan.force)
        except DeletionError as err:
            logger.warning(str(err))
            outcome.record_failure(entry.name, err.message)
            continue
        logger.info(f"Deleted branch {entry.name}")
        outcome.record_success(entry.name)
    return outcome


class BranchPruner:
    """Runs detection, planning and execution against one repository.

    Snapshots (current branch, local branches, remote branch names) are taken
    once, right after fetch/prune, and reused by every later stage of the
    same run. Create a new instance for each run.
    """

    def __init__(self, gateway: Gateway, config: Optional[Config] = None) -> None:
        self.gateway = gateway
        self.config = config or Config()
        self.state = RunState.INIT
        self._detection: Optional[Detection] = None

    def _transition(self, state: RunState) -> None:
        logger.debug(f"Run state {self.state.value} -> {state.value}")
        self.state = state

    def _base_branch(self, current: Optional[BranchRef]) -> BranchRef:
        if self.config.base_branch:
            return BranchRef(self.config.base_branch, is_current=bool(current and current.name == self.config.base_branch))
        if current is None:
            logger.info("HEAD is detached, checking merges against HEAD")
            return BranchRef("HEAD")
        return current

    def run_detection(self) -> Detection:
        """Fetch, snapshot, detect and classify stale branches.

        Raises:
            GatewayError: If fetching or listing fails; nothing is deleted
        """
        if self._detection is not None:
            return self._detection

        self.gateway.fetch_and_prune()
        self._transition(RunState.FETCHED)

        current = self.gateway.current_branch()
        current_name = current.name if current else None
        local = tuple(BranchRef(branch.name, is_current=branch.name == current_name) for branch in self.gateway.local_branches())
        remote = RemoteBranchSet(self.config.remote, frozenset(self.gateway.remote_branch_names(self.config.remote)))
        logger.info(
            f"Current branch: {current.name if current else '(detached)'}, "
            f"{len(local)} local branches, {len(remote)} on {remote.remote}"
        )

        candidates = detect_stale(local, remote, current, summary_loader=self.gateway.commit_summary)
        self._transition(RunState.DETECTED)
        logger.info(f"Found {len(candidates)} stale branch(es)")

        base = self._base_branch(current)
        statuses = classify_all(candidates, base, self.gateway, workers=self.config.workers)
        self._transition(RunState.CLASSIFIED)

        self._detection = Detection(
            current=current,
            local_branches=local,
            remote=remote,
            candidates=tuple(candidates),
            statuses=statuses,
        )
        return self._detection

    def run_plan(self, mode: DeletionMode) -> DeletionPlan:
        """Build a plan for ``mode`` from this run's detection."""
        detection = self.run_detection()
        plan = build_plan(detection.candidates, mode, detection.statuses)
        self._transition(RunState.PLANNED)
        logger.info(f"Plan ({mode.value}): {len(plan.to_delete)} to delete, {len(plan.skipped)} skipped")
        return plan

    def run_execution(self, plan: DeletionPlan) -> RunOutcome:
        """Apply ``plan``. The caller is responsible for confirmation."""
        outcome = apply_plan(plan, self.gateway)
        self._transition(RunState.EXECUTED)
        logger.info(f"Deleted {outcome.succeeded} of {outcome.attempted} branch(es), {outcome.failed} failed")
        return outcome

    def mark_reported(self) -> None:
        self._transition(RunState.REPORTED)
