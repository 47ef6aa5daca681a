"""Tests for the FastAPI routes."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client():
    from clinote.web.app import app

    return TestClient(app)


def test_health_is_public(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requires_basic_auth(client):
    response = client.post("/api/classify", json={"delta": "fiebre"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"].startswith("Basic")

    response = client.post("/api/classify", json={"delta": "fiebre"}, auth=("tester", "wrong"))
    assert response.status_code == 401


def test_classify(client, auth_headers):
    response = client.post(
        "/api/classify",
        json={"delta": "Diagnóstico: neumonía", "sections": {"motivo": "fiebre"}},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["sections"]["diagnosis"] == "neumonía"
    assert data["sections"]["chief_complaint"] == "fiebre"
    assert [e["section"] for e in data["timeline"]] == ["diagnosis"]


def test_classify_rejects_unknown_fallback(client, auth_headers):
    response = client.post("/api/classify", json={"delta": "x", "fallback": "nope"}, headers=auth_headers)
    assert response.status_code == 400


def test_patient_fields_questions_and_suggestions(client, auth_headers):
    from clinote.notes.questions import Q_DOSAGE

    response = client.post(
        "/api/patient-fields", json={"text": "El paciente tiene 34 años, sexo femenino"}, headers=auth_headers,
    )
    assert response.json() == {"age": "34", "sex": "Femenino"}

    response = client.post(
        "/api/questions",
        json={"sections": {"prescription": "amoxicilina", "diagnosis": "faringitis"}},
        headers=auth_headers,
    )
    assert Q_DOSAGE in response.json()["questions"]

    response = client.post("/api/suggestions", json={"text": "dolor de cabeza", "max": 2}, headers=auth_headers)
    assert [s["code"] for s in response.json()["suggestions"]] == ["R51", "G43.9"]


def test_analyze_endpoint_is_public(client):
    response = client.post("/api/clinote/analyze", json={
        "current": {"sections": {}, "alerts": [], "questions": []},
        "input": {"delta_text": "Dolor de garganta desde ayer"},
    })
    assert response.status_code == 200
    data = response.json()
    assert data["sections"]["chief_complaint"] == "Dolor de garganta desde ayer"
    assert data["questions"]


def test_session_lifecycle(client, auth_headers):
    response = client.post("/api/sessions/", json={"clinician": "Dra. Ruiz"}, headers=auth_headers)
    assert response.status_code == 200
    session_id = response.json()["id"]
    base = f"/api/sessions/{session_id}"

    response = client.post(f"{base}/dictation", json={"text": "Diagnóstico: migraña"}, headers=auth_headers)
    assert response.json()["sections"]["diagnosis"] == "migraña"
    assert response.json()["active_section"] == "diagnosis"

    response = client.put(f"{base}/sections/plan", json={"text": "reposo"}, headers=auth_headers)
    assert response.json()["sections"]["plan"] == "reposo"

    response = client.put(f"{base}/patient", json={"name": "Ana López", "consent": True}, headers=auth_headers)
    assert response.json()["patient"]["name"] == "Ana López"
    assert response.json()["meta"]["consent"] is True

    response = client.get(f"{base}/report", headers=auth_headers)
    assert response.headers["content-type"].startswith("text/plain")
    assert "Paciente: Ana López" in response.text

    response = client.post(f"{base}/reset", headers=auth_headers)
    assert response.json()["sections"]["diagnosis"] == ""
    assert len(response.json()["timeline"]) == 1

    response = client.post(f"{base}/stop", headers=auth_headers)
    assert response.status_code == 200

    response = client.get("/api/sessions/", headers=auth_headers)
    assert session_id in [row["id"] for row in response.json()["sessions"]]


def test_session_errors(client, auth_headers):
    assert client.get("/api/sessions/missing", headers=auth_headers).status_code == 404

    session_id = client.post("/api/sessions/", json={}, headers=auth_headers).json()["id"]
    response = client.put(f"/api/sessions/{session_id}/sections/nope", json={"text": "x"}, headers=auth_headers)
    assert response.status_code == 400

    response = client.patch(f"/api/sessions/{session_id}", json={"mode": "bogus"}, headers=auth_headers)
    assert response.status_code == 422

    response = client.patch(f"/api/sessions/{session_id}", json={"mode": "free"}, headers=auth_headers)
    assert response.json()["mode"] == "free"


def test_settings_roundtrip(client, auth_headers):
    response = client.get("/settings/", headers=auth_headers)
    assert set(response.json()) == {"analysis_enabled", "analysis_url", "max_questions", "max_suggestions"}

    response = client.post("/settings/global", json={"max_questions": 4}, headers=auth_headers)
    assert response.json()["max_questions"] == "4"

    client.post("/settings/global", json={"max_questions": 6}, headers=auth_headers)


def test_session_handlers_run_on_the_event_loop():
    import inspect

    from clinote.web.routes import sessions

    for handler in [
        sessions.create_session, sessions.get_session, sessions.update_options, sessions.dictate,
        sessions.reset, sessions.edit_section, sessions.edit_patient, sessions.report,
    ]:
        assert inspect.iscoroutinefunction(handler), handler.__name__


@pytest.mark.anyio
async def test_concurrent_dictation_keeps_both_sections(auth_headers):
    import asyncio

    import httpx

    from clinote.web.app import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", headers=auth_headers) as client:
        response = await client.post("/api/sessions/", json={"analysis_enabled": False})
        base = f"/api/sessions/{response.json()['id']}"

        await asyncio.gather(
            client.post(f"{base}/dictation", json={"text": "Diagnóstico: faringitis"}),
            client.post(f"{base}/dictation", json={"text": "Plan: reposo"}),
        )

        data = (await client.get(base)).json()
    assert data["sections"]["diagnosis"] == "faringitis"
    assert data["sections"]["plan"] == "reposo"
    assert len(data["timeline"]) == 2
