"""Changeset replay engine."""

from .composer import CommitComposer, CommitRecord
from .materializer import WorkingTree, WorkspaceMaterializer
from .orchestrator import ReplayOrchestrator, ReplayState, run_migration
from .reconciler import CaseReconciler, Rename

__all__ = [
    "CommitComposer",
    "CommitRecord",
    "WorkingTree",
    "WorkspaceMaterializer",
    "ReplayOrchestrator",
    "ReplayState",
    "run_migration",
    "CaseReconciler",
    "Rename",
]
