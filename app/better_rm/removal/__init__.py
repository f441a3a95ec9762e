"""Removal module.

This module provides the rm-compatible removal engine together with the
path classifier, batch protection checks and prompt policy it relies on.
"""

from better_rm.removal.classifier import PathInfo, PathKind, classify
from better_rm.removal.engine import RemovalEngine, RemovalReport, RemovalResult
from better_rm.removal.policy import (
    Disposition,
    DispositionPolicy,
    InteractiveMode,
    RemovalOptions,
)
from better_rm.removal.protection import (
    ProtectionError,
    ProtectionPolicy,
    RootProtectionError,
    validate_targets,
)
from better_rm.removal.walk import WalkNode, walk_post_order

__all__ = [
    "Disposition",
    "DispositionPolicy",
    "InteractiveMode",
    "PathInfo",
    "PathKind",
    "ProtectionError",
    "ProtectionPolicy",
    "RemovalEngine",
    "RemovalOptions",
    "RemovalReport",
    "RemovalResult",
    "RootProtectionError",
    "WalkNode",
    "classify",
    "validate_targets",
    "walk_post_order",
]
