"""Tests for SQLite persistence of dictation sessions."""


def test_save_and_reload_session():
    from clinote.dictation.store import SessionRegistry, list_consultations, load_session
    from clinote.notes.sections import SectionKey

    registry = SessionRegistry()
    session = registry.create(clinician="Dra. Ruiz", site="Zona 10")
    assert session.analysis_enabled is False

    session.ingest("Motivo de consulta: fiebre. La paciente tiene 30 años")
    registry.save(session)

    loaded = load_session(session.id)
    assert loaded is not None
    assert loaded.clinician == "Dra. Ruiz"
    assert loaded.effective_sections[SectionKey.CHIEF_COMPLAINT].startswith("fiebre")
    assert loaded.patient.age == "30"
    assert [e.text for e in loaded.timeline] == [e.text for e in session.timeline]

    assert session.id in [row["id"] for row in list_consultations(100)]


def test_timeline_rows_survive_reset():
    from clinote.dictation.store import SessionRegistry, load_session

    registry = SessionRegistry()
    session = registry.create()
    session.ingest("dolor de garganta")
    registry.save(session)
    session.reset()
    session.ingest("tos seca")
    registry.save(session)

    loaded = load_session(session.id)
    assert [e.text for e in loaded.timeline] == ["dolor de garganta", "tos seca"]
    assert loaded.transcript == "tos seca"


def test_registry_loads_unknown_ids_from_database():
    from clinote.dictation.store import SessionRegistry

    first = SessionRegistry()
    session = first.create(clinician="Dr. Paz")

    second = SessionRegistry()
    assert second.get(session.id).clinician == "Dr. Paz"
    assert second.get("missing") is None
