"""Static rules for files that are never worth embedding."""

from __future__ import annotations

import posixpath
from typing import Callable, FrozenSet, List

SKIP_BASENAMES: FrozenSet[str] = frozenset({
    "package.json",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "pnpm-workspace.yaml",
    "bun.lockb",
    "composer.json",
    "composer.lock",
    "gemfile",
    "gemfile.lock",
    "go.sum",
    "go.mod",
    "poetry.lock",
    "pipfile",
    "pipfile.lock",
    "mix.lock",
    "pubspec.yaml",
    "pubspec.lock",
    "cargo.lock",
    "environment.yml",
    "environment.yaml",
})

SKIP_EXTENSIONS: FrozenSet[str] = frozenset({".lock", ".lockb"})

SKIP_BASENAME_MATCHERS: List[Callable[[str], bool]] = [
    lambda name: name.startswith("requirements") and name.endswith(".txt"),
    lambda name: name.startswith("constraints") and name.endswith(".txt"),
]


def should_skip_for_embedding(relative_path: str) -> bool:
    """Whether a repo-relative posix path is a lockfile, manifest or similar."""
    basename = posixpath.basename(relative_path).lower()
    if basename in SKIP_BASENAMES:
        return True
    if any(matcher(basename) for matcher in SKIP_BASENAME_MATCHERS):
        return True
    return posixpath.splitext(basename)[1] in SKIP_EXTENSIONS
