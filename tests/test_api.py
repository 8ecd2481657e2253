"""HTTP API tests."""

import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "auditsynth"
    assert data["chain_templates"] >= 6


@pytest.mark.asyncio
async def test_liveness(client):
    response = await client.get("/api/v1/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_trace_id_is_echoed(client):
    response = await client.get("/api/v1/health", headers={"X-Trace-Id": "trc_test_0001"})
    assert response.headers["X-Trace-Id"] == "trc_test_0001"


@pytest.mark.asyncio
async def test_trace_id_generated_when_absent(client):
    response = await client.get("/api/v1/health")
    assert response.headers["X-Trace-Id"].startswith("trc_")


@pytest.mark.asyncio
async def test_synthesize_reports(client, sample_documents):
    response = await client.post(
        "/api/v1/synthesis",
        json={"reports": list(sample_documents.values()), "expected_analyzers": ["frontend", "backend"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["total_findings"] == 8
    assert data["stats"]["attack_chains"] == 1
    assert data["risk_score"]["overall"] == "critical"
    assert data["coverage_gap"] == []
    assert list(data["remediation_roadmap"]) == ["immediate", "short_term", "medium_term", "long_term"]


@pytest.mark.asyncio
async def test_synthesize_records_missing_expected_analyzer(client, sample_documents):
    response = await client.post(
        "/api/v1/synthesis",
        json={"reports": [sample_documents["frontend.json"]], "expected_analyzers": ["frontend", "ai"]},
    )

    assert response.status_code == 200
    gaps = response.json()["coverage_gap"]
    assert gaps == [{"source": "ai", "reason": "missing", "message": "No report from analyzer 'ai'"}]


@pytest.mark.asyncio
async def test_synthesize_is_idempotent(client, sample_documents):
    body = {"reports": list(sample_documents.values())}
    first = await client.post("/api/v1/synthesis", json=body)
    second = await client.post("/api/v1/synthesis", json=body)
    assert first.json() == second.json()


@pytest.mark.asyncio
async def test_duplicate_ids_return_validation_error(client, sample_documents):
    document = sample_documents["frontend.json"]
    document["findings"].append(dict(document["findings"][0]))

    response = await client.post("/api/v1/synthesis", json={"reports": [document]})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["id"] == "FE-001"
    assert error["trace_id"] == response.headers["X-Trace-Id"]


@pytest.mark.asyncio
async def test_malformed_body_returns_validation_error(client):
    response = await client.post("/api/v1/synthesis", json={"reports": "nope"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_list_frameworks(client):
    response = await client.get("/api/v1/frameworks")
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"owasp_top10", "owasp_llm", "soc2", "pci_dss", "cis_controls"}
    llm01 = next(c for c in data["owasp_llm"] if c["id"] == "LLM01")
    assert llm01["requires_component"] == "ai"


@pytest.mark.asyncio
async def test_list_single_framework(client):
    response = await client.get("/api/v1/frameworks", params={"framework": "soc2"})
    assert list(response.json()) == ["soc2"]


@pytest.mark.asyncio
async def test_chain_templates(client):
    response = await client.get("/api/v1/chain-templates")
    assert response.status_code == 200
    ids = [t["id"] for t in response.json()]
    assert "ssrf_to_infra_compromise" in ids

    single = await client.get("/api/v1/chain-templates/ssrf_to_infra_compromise")
    assert single.json()["severity_boost"] == 2


@pytest.mark.asyncio
async def test_unknown_chain_template_is_404(client):
    response = await client.get("/api/v1/chain-templates/nope")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"
