"""Synthesis API routes."""

from fastapi import APIRouter, Query

from auditsynth.errors.exceptions import NotFoundError
from auditsynth.models.enums import FrameworkType
from auditsynth.models.report import SynthesisRequest
from auditsynth.models.synthesis import SynthesisReport
from auditsynth.synthesis.compliance import CONTROL_CATALOG
from auditsynth.synthesis.correlation import CHAIN_TEMPLATES, get_template
from auditsynth.synthesis.service import SynthesisService

router = APIRouter(tags=["Synthesis"])


@router.post("/synthesis", status_code=200, response_model=SynthesisReport)
async def create_synthesis(body: SynthesisRequest) -> SynthesisReport:
    """Synthesize the posted analyzer reports into one report.

    Analyzers listed in ``expected_analyzers`` but absent from ``reports``
    are recorded as coverage gaps.
    """
    return SynthesisService().synthesize(
        body.reports, expected_analyzers=body.expected_analyzers
    )


@router.get("/frameworks", status_code=200)
async def list_frameworks(
    framework: FrameworkType | None = Query(None, description="Only this framework"),
) -> dict:
    """Control catalog, keyed by framework."""
    frameworks = [framework] if framework else list(CONTROL_CATALOG)
    return {
        fw.value: [control.to_dict() for control in CONTROL_CATALOG[fw].values()]
        for fw in frameworks
    }


@router.get("/chain-templates", status_code=200)
async def list_chain_templates() -> list[dict]:
    """Attack-chain template catalog in matching order."""
    return [template.to_dict() for template in CHAIN_TEMPLATES]


@router.get("/chain-templates/{template_id}", status_code=200)
async def get_chain_template(template_id: str) -> dict:
    template = get_template(template_id)
    if template is None:
        raise NotFoundError("ChainTemplate", template_id)
    return template.to_dict()
