"""Tests for the server-side analysis heuristic and the report builder."""


def test_unrecognised_text_fills_complaint_then_impression():
    from clinote.notes.analyzer import Q_CONFIRM_DIAGNOSIS, analyze_delta
    from clinote.notes.sections import SectionKey, empty_note

    first = analyze_delta(empty_note(), "Dolor de garganta desde ayer")
    assert first.sections[SectionKey.CHIEF_COMPLAINT] == "Dolor de garganta desde ayer"
    assert first.questions == [Q_CONFIRM_DIAGNOSIS]

    second = analyze_delta(first.sections, "malestar general", questions=first.questions)
    assert second.sections[SectionKey.IMPRESSION] == "malestar general"
    assert second.questions == [Q_CONFIRM_DIAGNOSIS]


def test_header_routes_whole_batch():
    from clinote.notes.analyzer import analyze_delta
    from clinote.notes.sections import SectionKey, empty_note

    result = analyze_delta(empty_note(), "Plan: reposo y abundantes líquidos")
    assert result.sections[SectionKey.PLAN] == "reposo y abundantes líquidos"


def test_extractors_pull_statements():
    from clinote.notes.analyzer import analyze_delta
    from clinote.notes.sections import SectionKey, empty_note

    result = analyze_delta(empty_note(), "receta amoxicilina 500 mg cada 8 horas, PA 110/70")
    assert result.sections[SectionKey.PRESCRIPTION] == "amoxicilina 500 mg cada 8 horas, PA 110/70"
    assert result.sections[SectionKey.VITALS] == "PA: 110/70"
    assert result.sections[SectionKey.CHIEF_COMPLAINT] == ""


def test_loose_medication_mention():
    from clinote.notes.analyzer import analyze_delta
    from clinote.notes.sections import SectionKey, empty_note

    result = analyze_delta(empty_note(), "toma ibuprofeno ocasionalmente")
    assert result.sections[SectionKey.PRESCRIPTION] == "Medicamentos mencionados: ibuprofeno"


def test_blank_batch_carries_state():
    from clinote.notes.analyzer import analyze_delta
    from clinote.notes.sections import SectionKey, empty_note

    state = empty_note()
    state[SectionKey.DIAGNOSIS] = "migraña"
    result = analyze_delta(state, "  ", alerts=["Revisar alergias"], questions=["¿Dosis?"])
    assert result.sections == state
    assert result.alerts == ["Revisar alergias"]
    assert result.questions == ["¿Dosis?"]


def test_report_lists_sections_and_suggestions():
    from clinote.notes.report import EMPTY_MARK, build_report
    from clinote.notes.sections import PatientProfile, SectionKey, Suggestion, empty_note

    state = empty_note()
    state[SectionKey.CHIEF_COMPLAINT] = "dolor de cabeza"
    report = build_report(
        state,
        patient=PatientProfile(name="Ana López", age="30"),
        meta={"created_at": "2024-05-01 10:30", "clinician": "Dra. Ruiz"},
        transcript="dolor de cabeza",
        suggestions=[Suggestion(code="R51", title="Cefalea")],
        questions=["¿Cuál es el diagnóstico final?"],
    )
    assert report.startswith("INFORME DE CONSULTA (Borrador)")
    assert "Paciente: Ana López" in report
    assert "Edad: 30" in report
    assert "MOTIVO DE LA CONSULTA\ndolor de cabeza" in report
    assert f"DIAGNÓSTICO\n{EMPTY_MARK}" in report
    assert "- R51 — Cefalea" in report
    assert "PREGUNTAS PARA ACLARAR" in report
    assert report.endswith("TRANSCRIPCIÓN COMPLETA\ndolor de cabeza")
    assert "ALERTAS" not in report
