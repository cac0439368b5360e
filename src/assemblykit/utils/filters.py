"""
Artifact and project filtering.

Patterns have the form ``group:artifact[:type[:classifier]]:version`` with
``*`` wildcards per token; a shorter pattern such as ``group:artifact``
matches every artifact with those leading coordinates. In transitive mode an
artifact also matches when any entry of its dependency trail matches, so
excluding a dependency excludes everything it pulled in.

Example:
    >>> f = PatternFilter(["org.example:*"], include=True)
    >>> f.include(Artifact("org.example", "core", "1.0"))
    True
"""

from __future__ import annotations

import logging
from fnmatch import fnmatchcase
from typing import Callable, Iterable, Optional, Sequence

from assemblykit.errors import InvalidAssemblerConfigurationError
from assemblykit.model.project import Artifact, ModuleProject

logger = logging.getLogger(__name__)

ArtifactFilter = Callable[[Artifact], bool]

# Scopes each requested resolution scope admits
SCOPES: dict[str, frozenset[str]] = {
    "compile": frozenset({"compile", "provided", "system"}),
    "provided": frozenset({"provided"}),
    "runtime": frozenset({"compile", "runtime"}),
    "system": frozenset({"system"}),
    "test": frozenset({"compile", "provided", "runtime", "system", "test"}),
}


def _token_lists(artifact: Artifact) -> list[list[str]]:
    g, a, t, v = artifact.group_id, artifact.artifact_id, artifact.type, artifact.base_version
    if artifact.classifier:
        return [[g, a, t, artifact.classifier, v], [g, a, t, v]]
    return [[g, a, t, v], [g, a, t, "", v]]


def _trail_token_lists(entry: str) -> list[list[str]]:
    tokens = entry.split(":")
    lists = [tokens]
    if len(tokens) == 4:
        lists.append(tokens[:3] + [""] + tokens[3:])
    return lists


def _match_tokens(pattern: str, candidates: list[list[str]]) -> bool:
    wanted = pattern.split(":")
    for tokens in candidates:
        if len(wanted) <= len(tokens) and all(
            fnmatchcase(tok, pat) for tok, pat in zip(tokens, wanted)
        ):
            return True
    return False


class PatternFilter:
    """
    Include or exclude filter over coordinate patterns, recording which patterns matched.

    Args:
        patterns: Coordinate patterns
        include: True for an inclusion filter, False for an exclusion filter
        transitive: Also match against the dependency trail
    """

    def __init__(self, patterns: Iterable[str], *, include: bool, transitive: bool = False):
        self.patterns = [p.strip() for p in patterns if p and p.strip()]
        self.is_include = include
        self.transitive = transitive
        self._matched: set[str] = set()

    def _matches(self, artifact: Artifact) -> bool:
        hit = False
        own = _token_lists(artifact)
        for pattern in self.patterns:
            if _match_tokens(pattern, own) or (
                self.transitive
                and any(_match_tokens(pattern, _trail_token_lists(e)) for e in artifact.dependency_trail)
            ):
                self._matched.add(pattern)
                hit = True
        return hit

    def include(self, artifact: Artifact) -> bool:
        matched = self._matches(artifact)
        return matched if self.is_include else not matched

    __call__ = include

    @property
    def missed_criteria(self) -> list[str]:
        return [p for p in self.patterns if p not in self._matched]

    def has_missed_criteria(self) -> bool:
        return bool(self.missed_criteria)

    def report_missed_criteria(self) -> None:
        missed = self.missed_criteria
        if missed:
            kind = "inclusion" if self.is_include else "exclusion"
            lines = "\n".join(f"o  '{p}'" for p in missed)
            logger.warning(
                f"The following patterns were never triggered in this artifact {kind} filter:\n{lines}"
            )


def new_scope_filter(scope: Optional[str]) -> ArtifactFilter:
    """
    Admit artifacts whose scope is visible from the requested resolution scope.

    Raises:
        InvalidAssemblerConfigurationError: If the scope is unknown
    """
    requested = scope or "runtime"
    try:
        admitted = SCOPES[requested]
    except KeyError as exc:
        raise InvalidAssemblerConfigurationError(f"Unknown dependency scope: '{scope}'") from exc

    def scope_filter(artifact: Artifact) -> bool:
        return (artifact.scope or "compile") in admitted

    return scope_filter


def _pattern_filters(
    includes: Sequence[str], excludes: Sequence[str], transitive: bool
) -> list[PatternFilter]:
    filters = []
    if includes:
        filters.append(PatternFilter(includes, include=True, transitive=transitive))
    if excludes:
        filters.append(PatternFilter(excludes, include=False, transitive=transitive))
    return filters


def filter_artifacts(
    artifacts: list[Artifact],
    includes: Sequence[str],
    excludes: Sequence[str],
    strict: bool,
    transitive: bool,
    *additional_filters: ArtifactFilter,
) -> None:
    """
    Remove, in place, every artifact rejected by the additional filters or the patterns.

    Additional filters run first and never count toward strictness.

    Raises:
        InvalidAssemblerConfigurationError: If strict and any pattern matched nothing
    """
    pattern_filters = _pattern_filters(includes, excludes, transitive)

    kept = []
    for artifact in artifacts:
        admitted = all(f(artifact) for f in additional_filters)
        # Patterns see every artifact so their hits count even after a scope miss
        matched = [f(artifact) for f in pattern_filters]
        if admitted and all(matched):
            kept.append(artifact)
        else:
            logger.debug(f"{artifact.id} was removed by one or more filters.")
    artifacts[:] = kept

    for f in pattern_filters:
        f.report_missed_criteria()
    if strict and any(f.has_missed_criteria() for f in pattern_filters):
        raise InvalidAssemblerConfigurationError(
            "One or more filters had unmatched criteria. Check debug log for more information."
        )


def filter_projects(
    projects: Iterable[ModuleProject],
    includes: Sequence[str],
    excludes: Sequence[str],
    transitive: bool,
) -> list[ModuleProject]:
    """Projects whose artifact passes the include/exclude patterns, in input order."""
    pattern_filters = _pattern_filters(includes, excludes, transitive)
    result = [
        p for p in projects if all(f(p.project_artifact()) for f in pattern_filters)
    ]
    for f in pattern_filters:
        f.report_missed_criteria()
    return result
