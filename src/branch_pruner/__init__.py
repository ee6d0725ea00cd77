"""Prune local git branches whose remote branch is gone.

Features:
- Detect local branches missing from the remote after fetch --prune
- Never touch the currently checked-out branch
- Classify stale branches as merged or unmerged
- Safe deletion of merged branches, forced deletion on request
- Dry-run preview and confirmation before deleting
"""

__version__ = "0.1.0"
