"""Chain correlator: matches the template catalog against dedup groups."""

from __future__ import annotations

import logging
from typing import Sequence

from auditsynth.config import settings
from auditsynth.models.enums import Severity
from auditsynth.models.synthesis import AttackChain, ChainStep, DedupGroup
from auditsynth.services.id_generator import generate_id
from auditsynth.synthesis.correlation.templates import (
    CHAIN_TEMPLATES,
    ChainTemplate,
    TemplateStep,
)

logger = logging.getLogger(__name__)


class ChainCorrelator:
    """Discovers attack chains by greedy first-fit template matching.

    Groups are not consumed: one group may seed or join chains of several
    templates, and several chains of the same template. Resolved groups are
    skipped, since fixing any link breaks the chain.
    """

    def __init__(
        self,
        templates: Sequence[ChainTemplate] = CHAIN_TEMPLATES,
        max_chains_per_template: int | None = None,
    ) -> None:
        self.templates = tuple(templates)
        self.max_chains_per_template = (
            settings.max_chains_per_template
            if max_chains_per_template is None
            else max_chains_per_template
        )

    def correlate(self, groups: Sequence[DedupGroup]) -> list[AttackChain]:
        active = [g for g in groups if not g.resolved]
        chains: list[AttackChain] = []
        seen: set[tuple[str, ...]] = set()

        for template in self.templates:
            emitted = 0
            for root in active:
                if not template.steps[0].matches(root):
                    continue
                matched = self._fit(template, root, active)
                if matched is None:
                    continue
                sequence = tuple(group.id for group, _ in matched)
                if sequence in seen:
                    continue
                if emitted >= self.max_chains_per_template:
                    logger.warning(
                        "Template %s hit the %d-chain cap; remaining roots skipped",
                        template.id,
                        self.max_chains_per_template,
                    )
                    break
                seen.add(sequence)
                chains.append(self._build_chain(template, matched))
                emitted += 1

        logger.info("Correlated %d attack chains from %d groups", len(chains), len(active))
        return chains

    def _fit(
        self,
        template: ChainTemplate,
        root: DedupGroup,
        candidates: Sequence[DedupGroup],
    ) -> list[tuple[DedupGroup, TemplateStep]] | None:
        matched: list[tuple[DedupGroup, TemplateStep]] = [(root, template.steps[0])]
        used = {root.id}
        for step in template.steps[1:]:
            group = next(
                (g for g in candidates if g.id not in used and step.matches(g)),
                None,
            )
            if group is None:
                if step.optional:
                    continue
                return None
            matched.append((group, step))
            used.add(group.id)
        if len(matched) < 2:
            return None
        return matched

    def _build_chain(
        self,
        template: ChainTemplate,
        matched: list[tuple[DedupGroup, TemplateStep]],
    ) -> AttackChain:
        groups = [group for group, _ in matched]
        step_max = Severity.highest(g.severity for g in groups)
        return AttackChain(
            id=generate_id("chain_", template.id, *(g.id for g in groups)),
            template_id=template.id,
            title=template.title,
            steps=[
                ChainStep(group_id=group.id, description=step.description)
                for group, step in matched
            ],
            severity=step_max.raised(template.severity_boost),
            finding_ids=[fid for g in groups for fid in g.member_ids],
        )
