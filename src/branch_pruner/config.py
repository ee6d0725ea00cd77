"""Configuration handling for branch-pruner."""

from dataclasses import asdict, dataclass, fields
from typing import Any, Optional


@dataclass
class Config:
    """Run configuration with validation."""

    remote: str = "origin"
    base_branch: Optional[str] = None  # None = current branch
    workers: int = 1  # Parallel merge classification; deletion is always sequential
    verbose: bool = False
    debug: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_remote()
        self._validate_base_branch()
        self._validate_workers()

    def _validate_remote(self) -> None:
        """Validate remote is not empty."""
        if not self.remote or not self.remote.strip():
            raise ValueError("remote cannot be empty")
        self.remote = self.remote.strip()

    def _validate_base_branch(self) -> None:
        """Normalize an empty base branch to None."""
        if self.base_branch is not None:
            self.base_branch = self.base_branch.strip() or None

    def _validate_workers(self) -> None:
        """Validate workers is positive."""
        if not isinstance(self.workers, int) or self.workers <= 0:
            raise ValueError(f"workers must be a positive integer, got {self.workers!r}")

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "Config":
        """Create Config from a dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
