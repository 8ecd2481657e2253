"""Deduplicator: collapses findings that several analyzers report for one issue.

Two findings match when

* both carry a location in the same file within ``line_window`` lines and
  either share a normalized category or, coming from different analyzers,
  have sufficiently overlapping keyword signatures, or
* they share a normalized category and a sufficiently overlapping keyword
  signature, when at least one lacks a location or both sit in the same file
  outside the line window.

Findings in different files never match, and neither do findings whose
identity attributes (package, CVE, endpoint, ...) disagree. One analyzer
reporting two categories at one spot has reported two issues.

Matching is not assumed transitive, so groups are the connected components
of the pairwise match graph.
Inconclusive pairs are kept apart and reported as ``AmbiguousDedupMatch``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from itertools import combinations
from typing import Sequence

from auditsynth.config import settings
from auditsynth.errors.exceptions import AmbiguousDedupMatch
from auditsynth.models.enums import SOURCE_PRIORITY
from auditsynth.models.finding import Finding
from auditsynth.models.synthesis import DedupGroup
from auditsynth.services.id_generator import generate_id
from auditsynth.synthesis.normalize import (
    keyword_signature,
    normalize_category,
    normalize_path,
)

logger = logging.getLogger(__name__)

# Attributes naming the affected artifact; findings disagreeing on one never merge.
IDENTITY_ATTRIBUTES: tuple[str, ...] = ("package", "cve", "version", "endpoint", "resource")


@dataclass(frozen=True)
class _Signature:
    finding_id: str
    position: int
    source: str
    file: str | None
    line: int | None
    category: str
    keywords: frozenset[str]
    identity: tuple[tuple[str, str], ...]


@dataclass
class DedupResult:
    """Groups partitioning the input plus the pairs left unmerged as ambiguous."""

    groups: list[DedupGroup] = field(default_factory=list)
    ambiguous: list[AmbiguousDedupMatch] = field(default_factory=list)

    def group_of(self) -> dict[str, str]:
        """Map finding id -> group id."""
        return {
            member: group.id for group in self.groups for member in group.member_ids
        }

    @property
    def duplicates_merged(self) -> int:
        return sum(len(g.member_ids) - 1 for g in self.groups)


class _UnionFind:
    def __init__(self, items: Sequence[str]) -> None:
        self._parent = {item: item for item in items}
        self._rank = {item: i for i, item in enumerate(items)}

    def find(self, item: str) -> str:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return
        # earliest input position becomes the root
        if self._rank[root_b] < self._rank[root_a]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a


def _signature(finding: Finding, position: int) -> _Signature:
    location = finding.location
    return _Signature(
        finding_id=finding.id,
        position=position,
        source=finding.source.value,
        file=normalize_path(location.file) if location else None,
        line=location.line if location else None,
        category=normalize_category(finding.category),
        keywords=keyword_signature(finding.title, finding.description),
        identity=tuple(
            (key, str(finding.attributes[key]).strip().lower())
            for key in IDENTITY_ATTRIBUTES
            if finding.attributes.get(key) not in (None, "")
        ),
    )


def _identity_conflict(left: _Signature, right: _Signature) -> bool:
    right_identity = dict(right.identity)
    return any(
        key in right_identity and right_identity[key] != value
        for key, value in left.identity
    )


def canonical_sort_key(finding: Finding) -> tuple[int, int, str]:
    """Highest severity first, then source priority, then id."""
    return (-finding.severity.rank, SOURCE_PRIORITY.index(finding.source), finding.id)


class Deduplicator:
    """Groups findings that describe the same underlying issue."""

    def __init__(
        self,
        line_window: int | None = None,
        overlap_threshold: float | None = None,
        min_shared_keywords: int | None = None,
    ) -> None:
        self.line_window = (
            settings.dedup_line_window if line_window is None else line_window
        )
        self.overlap_threshold = (
            settings.keyword_overlap_threshold
            if overlap_threshold is None
            else overlap_threshold
        )
        self.min_shared_keywords = (
            settings.min_shared_keywords
            if min_shared_keywords is None
            else min_shared_keywords
        )

    def group(self, findings: Sequence[Finding]) -> DedupResult:
        """Partition ``findings`` into dedup groups.

        Args:
            findings: Findings in stable store order.

        Returns:
            DedupResult whose groups cover every finding exactly once.
        """
        signatures = [_signature(f, i) for i, f in enumerate(findings)]
        uf = _UnionFind([s.finding_id for s in signatures])
        candidates: list[tuple[str, str]] = []
        ambiguous: list[AmbiguousDedupMatch] = []

        for left, right in self._candidate_pairs(signatures):
            try:
                if self._match(left, right):
                    uf.union(left.finding_id, right.finding_id)
            except AmbiguousDedupMatch as exc:
                candidates.append((left.finding_id, right.finding_id))
                ambiguous.append(exc)

        # Ambiguity is moot when another match path joined the pair anyway.
        unresolved = [
            exc
            for exc, (a, b) in zip(ambiguous, candidates)
            if uf.find(a) != uf.find(b)
        ]
        for exc in unresolved:
            logger.debug("Not merging: %s", exc.message)

        groups = self._build_groups(findings, uf)
        logger.info(
            "Deduplicated %d findings into %d groups (%d ambiguous pairs kept apart)",
            len(findings),
            len(groups),
            len(unresolved),
        )
        return DedupResult(groups=groups, ambiguous=unresolved)

    # ----- pair selection -----

    def _candidate_pairs(
        self, signatures: list[_Signature]
    ) -> list[tuple[_Signature, _Signature]]:
        """Pairs that share a file or a category; nothing else can match."""
        buckets: dict[tuple[str, str], list[_Signature]] = defaultdict(list)
        for sig in signatures:
            if sig.file:
                buckets[("file", sig.file)].append(sig)
            buckets[("category", sig.category)].append(sig)

        seen: set[tuple[int, int]] = set()
        pairs: list[tuple[_Signature, _Signature]] = []
        for members in buckets.values():
            for left, right in combinations(members, 2):
                key = (left.position, right.position)
                if key not in seen:
                    seen.add(key)
                    pairs.append((left, right))
        pairs.sort(key=lambda p: (p[0].position, p[1].position))
        return pairs

    # ----- similarity -----

    def _match(self, left: _Signature, right: _Signature) -> bool:
        if _identity_conflict(left, right):
            return False
        if left.file and right.file:
            if left.file != right.file:
                return False
            if (
                left.line is not None
                and right.line is not None
                and abs(left.line - right.line) <= self.line_window
            ):
                if left.category == right.category:
                    return True
                if left.source == right.source:
                    return False
                return self._keyword_match(
                    left, right, "same location but unrelated categories and descriptions"
                )
        return self._category_match(left, right)

    def _category_match(self, left: _Signature, right: _Signature) -> bool:
        if left.category != right.category:
            return False
        return self._keyword_match(left, right)

    def _keyword_match(
        self, left: _Signature, right: _Signature, unrelated: str | None = None
    ) -> bool:
        """Overlap test; inconclusive overlap raises ``AmbiguousDedupMatch``.

        With no shared keyword the pair is unrelated: ``False``, or an
        ambiguity carrying ``unrelated`` as its reason when one is given.
        """
        shared = left.keywords & right.keywords
        if not shared:
            if unrelated is None:
                return False
            raise AmbiguousDedupMatch(left.finding_id, right.finding_id, unrelated)
        overlap = len(shared) / len(left.keywords | right.keywords)
        if overlap >= self.overlap_threshold and len(shared) >= self.min_shared_keywords:
            return True
        raise AmbiguousDedupMatch(
            left.finding_id,
            right.finding_id,
            f"weak keyword overlap ({overlap:.2f}, {len(shared)} shared)",
        )

    # ----- group assembly -----

    def _build_groups(self, findings: Sequence[Finding], uf: _UnionFind) -> list[DedupGroup]:
        components: dict[str, list[Finding]] = defaultdict(list)
        for finding in findings:
            components[uf.find(finding.id)].append(finding)

        groups: list[DedupGroup] = []
        # dict preserves first-seen order, i.e. the first member's input position
        for members in components.values():
            canonical = min(members, key=canonical_sort_key)
            ordered = [canonical] + [m for m in members if m.id != canonical.id]
            categories = list(dict.fromkeys(normalize_category(m.category) for m in ordered))
            sources = list(dict.fromkeys(m.source for m in ordered))
            member_ids = [m.id for m in members]
            groups.append(
                DedupGroup(
                    id=generate_id("grp_", *sorted(member_ids)),
                    canonical_id=canonical.id,
                    member_ids=member_ids,
                    severity=canonical.severity,
                    categories=categories,
                    sources=sources,
                    resolved=all(m.resolved for m in members),
                )
            )
        return groups
