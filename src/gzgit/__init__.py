"""gzgit: branch and merge intelligence for git working copies.

Lists and classifies branches, guards protected ones, predicts merge
conflicts before they happen, and drives merges and rebases through git
with a state you can always read back and abort.
"""

from gzgit._version import __version__

# Core entry point
from gzgit.workspace import Workspace
from gzgit.repository import Repository
from gzgit.context import InvocationContext

# Configuration
from gzgit.models.config import DEFAULT_PROTECTED_BRANCHES, GzgitConfig

# Branch models
from gzgit.models.branch import (
    Branch,
    BranchType,
    CreateOptions,
    DeleteOptions,
    DeleteResult,
    ListOptions,
    SortBy,
)

# Merge models
from gzgit.models.merge import (
    Conflict,
    ConflictType,
    ExecuteOptions,
    MergeDifficulty,
    MergeOutcome,
    MergeResult,
    MergeState,
    MergeStrategy,
    RebaseOptions,
    RebaseOutcome,
)

# Parsing and classification
from gzgit.operations.parser import parse_branch_line, parse_branch_list
from gzgit.operations.protection import infer_type, is_protected
from gzgit.operations.branch import validate_branch_name

# Exceptions
from gzgit.exceptions import (
    BranchExistsError,
    BranchNotFoundError,
    CancelledError,
    CheckedOutBranchError,
    DetachedHeadError,
    FastForwardError,
    GitCommandError,
    GitLockError,
    GzgitError,
    InvalidArgumentError,
    InvalidBranchNameError,
    MalformedLineError,
    MergeConflictError,
    MergeError,
    NoOperationInProgressError,
    NothingToMergeError,
    OperationInProgressError,
    ProtectedBranchError,
    RebaseConflictError,
    RebaseError,
    RefNotFoundError,
    RepositoryNotFoundError,
    UnmergedBranchError,
)

__all__ = [
    "__version__",
    # Core
    "Workspace",
    "Repository",
    "InvocationContext",
    # Configuration
    "GzgitConfig",
    "DEFAULT_PROTECTED_BRANCHES",
    # Branch models
    "Branch",
    "BranchType",
    "SortBy",
    "ListOptions",
    "CreateOptions",
    "DeleteOptions",
    "DeleteResult",
    # Merge models
    "Conflict",
    "ConflictType",
    "MergeDifficulty",
    "MergeResult",
    "MergeState",
    "MergeStrategy",
    "ExecuteOptions",
    "RebaseOptions",
    "MergeOutcome",
    "RebaseOutcome",
    # Functions
    "parse_branch_line",
    "parse_branch_list",
    "infer_type",
    "is_protected",
    "validate_branch_name",
    # Exceptions
    "GzgitError",
    "InvalidArgumentError",
    "RepositoryNotFoundError",
    "InvalidBranchNameError",
    "MalformedLineError",
    "BranchNotFoundError",
    "BranchExistsError",
    "ProtectedBranchError",
    "CheckedOutBranchError",
    "UnmergedBranchError",
    "DetachedHeadError",
    "RefNotFoundError",
    "CancelledError",
    "GitCommandError",
    "GitLockError",
    "MergeError",
    "MergeConflictError",
    "NothingToMergeError",
    "FastForwardError",
    "OperationInProgressError",
    "NoOperationInProgressError",
    "RebaseError",
    "RebaseConflictError",
]
