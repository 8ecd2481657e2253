"""Risk scorer: likelihood / impact / exposure levels and composite category."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from auditsynth.errors.exceptions import NotFoundError
from auditsynth.models.enums import Confidence
from auditsynth.models.finding import Finding
from auditsynth.models.synthesis import AttackChain, DedupGroup, RiskScore
from auditsynth.synthesis.scoring.tables import (
    DEFAULT_LEVEL,
    DIMENSION_FACTORS,
    composite_for,
)
from auditsynth.synthesis.store import FindingStore

logger = logging.getLogger(__name__)

# dimension -> recognized level, None when no factor of that dimension was present
Levels = dict[str, int | None]


def attribute_levels(attributes: Mapping[str, Any], item_id: str = "") -> Levels:
    """Resolve each dimension's level from raw analyzer attributes."""
    levels: Levels = {}
    for dimension, factors in DIMENSION_FACTORS.items():
        best: int | None = None
        for factor in factors:
            if factor.attribute not in attributes:
                continue
            level = factor.level_for(attributes[factor.attribute])
            if level is None:
                logger.debug(
                    "Ignoring unrecognized %s=%r on %s",
                    factor.attribute,
                    attributes[factor.attribute],
                    item_id,
                )
                continue
            best = level if best is None else max(best, level)
        levels[dimension] = best
    return levels


def merge_levels(all_levels: Sequence[Levels]) -> Levels:
    """Per-dimension max; a dimension stays unknown only if unknown everywhere."""
    merged: Levels = {dimension: None for dimension in DIMENSION_FACTORS}
    for levels in all_levels:
        for dimension, level in levels.items():
            if level is not None:
                current = merged[dimension]
                merged[dimension] = level if current is None else max(current, level)
    return merged


def _confidence(defaulted: int) -> Confidence:
    # more than half of the three dimensions defaulted -> low
    if defaulted == 0:
        return Confidence.HIGH
    if defaulted * 2 > len(DIMENSION_FACTORS):
        return Confidence.LOW
    return Confidence.MEDIUM


def build_score(levels: Levels) -> RiskScore:
    defaulted = [d for d in DIMENSION_FACTORS if levels.get(d) is None]
    resolved = {d: levels.get(d) or DEFAULT_LEVEL for d in DIMENSION_FACTORS}
    return RiskScore(
        likelihood=resolved["likelihood"],
        impact=resolved["impact"],
        exposure=resolved["exposure"],
        composite=composite_for(
            resolved["likelihood"], resolved["impact"], resolved["exposure"]
        ),
        confidence=_confidence(len(defaulted)),
        defaulted=defaulted,
    )


class RiskScorer:
    """Scores findings, dedup groups and attack chains.

    Groups merge their members' attributes; chains aggregate their steps.
    Scoring is deterministic and side-effect free.
    """

    def __init__(
        self,
        store: FindingStore | None = None,
        groups: Sequence[DedupGroup] = (),
    ) -> None:
        self._store = store
        self._groups = {group.id: group for group in groups}

    def score(self, item: Finding | DedupGroup | AttackChain) -> RiskScore:
        return build_score(self.levels(item))

    def levels(self, item: Finding | DedupGroup | AttackChain) -> Levels:
        if isinstance(item, Finding):
            return attribute_levels(item.attributes, item.id)
        if isinstance(item, DedupGroup):
            return merge_levels([self.levels(f) for f in self._members(item)])
        if isinstance(item, AttackChain):
            return merge_levels(
                [self.levels(self._group(gid)) for gid in item.group_ids]
            )
        raise TypeError(f"Cannot score {type(item).__name__}")

    def _members(self, group: DedupGroup) -> list[Finding]:
        if self._store is None:
            raise ValueError("Scoring a dedup group requires a FindingStore")
        return [self._store.lookup(fid) for fid in group.member_ids]

    def _group(self, group_id: str) -> DedupGroup:
        try:
            return self._groups[group_id]
        except KeyError:
            raise NotFoundError("DedupGroup", group_id) from None
