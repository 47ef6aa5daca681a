"""Tests for the regex field extractors."""


def test_vitals_blood_pressure_and_heart_rate():
    from clinote.notes.extractors import extract_vitals

    vitals = extract_vitals("PA 120/80 FC 78")
    assert vitals == "PA: 120/80 · FC: 78"


def test_vitals_temperature_and_saturation():
    from clinote.notes.extractors import extract_vitals

    vitals = extract_vitals("temperatura de 38,5 y saturación de 95%, FR 18")
    assert "Temp: 38.5°C" in vitals
    assert "SatO2: 95%" in vitals
    assert "FR: 18" in vitals


def test_vitals_miss_is_empty():
    from clinote.notes.extractors import extract_vitals

    assert extract_vitals("sin datos relevantes") == ""


def test_diagnosis_until_sentence_end():
    from clinote.notes.extractors import extract_diagnosis

    assert extract_diagnosis("Diagnóstico: faringitis aguda. Control en 3 días") == "faringitis aguda"
    assert extract_diagnosis("el diagnóstico es otitis media") == "otitis media"
    assert extract_diagnosis("dolor de cabeza") == ""


def test_prescription_stops_at_plan_wording():
    from clinote.notes.extractors import extract_prescription

    text = "Tratamiento: amoxicilina 500 mg cada 8 horas, reposo y control en 3 días"
    assert extract_prescription(text) == "amoxicilina 500 mg cada 8 horas"

    text = "se indica ibuprofeno 400 mg y control en una semana"
    assert extract_prescription(text) == "ibuprofeno 400 mg"


def test_prescription_capture_ignores_connector_only_value():
    from clinote.notes.extractors import capture_prescription

    assert capture_prescription("tratamiento con reposo y paracetamol 500 mg") is None
    assert capture_prescription("se indica de") is None


def test_capture_leftovers_are_trimmed_of_connectors():
    from clinote.notes.extractors import capture_prescription, capture_vitals

    source = "se indica paracetamol 500 mg y control en 3 dias"
    capture = capture_prescription(source)
    assert capture.text == "paracetamol 500 mg"
    assert capture.leftovers(source) == ["control en 3 dias"]

    source = "PA 120/80 FC 78"
    assert capture_vitals(source).leftovers(source) == []


def test_medications_loose_lists_each_drug_once():
    from clinote.notes.extractors import extract_medications_loose

    text = "tomaba ibuprofeno y paracetamol, luego ibuprofeno otra vez"
    assert extract_medications_loose(text) == "Medicamentos mencionados: ibuprofeno, paracetamol"
    assert extract_medications_loose("sin medicamentos") == ""


def test_patient_fields_age_and_sex_only():
    from clinote.notes.extractors import extract_patient_fields

    fields = extract_patient_fields("El paciente tiene 34 años, sexo femenino")
    assert fields == {"age": "34", "sex": "Femenino"}


def test_patient_name_and_identifiers():
    from clinote.notes.extractors import extract_patient_fields

    fields = extract_patient_fields(
        "La paciente se llama María José Pérez, DPI: 1234567890123, "
        "teléfono 5555-1234, expediente número A-2031"
    )
    assert fields["name"] == "María José Pérez"
    assert fields["document_id"] == "1234 56789 0123"
    assert fields["phone"] == "55551234"
    assert fields["record_number"] == "A-2031"


def test_patient_fields_reject_weak_matches():
    from clinote.notes.extractors import extract_phone, extract_record_number, extract_sex

    assert extract_phone("tel 1234567") == ""
    assert extract_record_number("expediente pendiente") == ""
    assert extract_sex("sexo: M") == "Masculino"


def test_document_id_grouping():
    from clinote.notes.extractors import format_document_id

    assert format_document_id("1234-56789-0123") == "1234 56789 0123"
    assert format_document_id("12 34 56") == "123456"


def test_patient_fields_blank_text():
    from clinote.notes.extractors import extract_patient_fields

    assert extract_patient_fields("   ") == {}


def test_fail_soft_returns_default():
    from clinote.notes.extractors import fail_soft

    @fail_soft("")
    def broken(text):
        raise RuntimeError("bad pattern")

    @fail_soft(dict)
    def broken_fields(text):
        raise ValueError("bad pattern")

    assert broken("x") == ""
    assert broken_fields("x") == {}
