"""Tests for merge, follow-up questions and ICD-10 suggestions."""


def test_merge_text_basic_cases():
    from clinote.notes.merge import merge_text

    assert merge_text("", "  fiebre ") == "fiebre"
    assert merge_text("fiebre", "") == "fiebre"
    assert merge_text("fiebre", "tos") == "fiebre tos"


def test_merge_text_suppresses_contained_text():
    from clinote.notes.merge import merge_text

    once = merge_text("", "Dolor de cabeza intenso")
    twice = merge_text(once, "Dolor de cabeza intenso")
    assert twice == once
    assert merge_text(once, "dolor de cabeza") == once


def test_merge_text_lets_reordered_text_through():
    from clinote.notes.merge import merge_text

    assert merge_text("dolor de cabeza", "cabeza dolor") == "dolor de cabeza cabeza dolor"


def test_merge_into_reports_change():
    from clinote.notes.merge import merge_into
    from clinote.notes.sections import SectionKey, empty_note

    state = empty_note()
    assert merge_into(state, SectionKey.PLAN, "reposo") is True
    assert merge_into(state, SectionKey.PLAN, "Reposo") is False
    assert state[SectionKey.PLAN] == "reposo"


def test_questions_for_empty_note():
    from clinote.notes.questions import Q_DIAGNOSIS, build_questions
    from clinote.notes.sections import empty_note

    assert build_questions(empty_note()) == [Q_DIAGNOSIS]


def test_questions_prescription_without_dosage():
    from clinote.notes.questions import Q_DIAGNOSIS, Q_DOSAGE, build_questions
    from clinote.notes.sections import SectionKey, empty_note

    state = empty_note()
    state[SectionKey.PRESCRIPTION] = "amoxicilina"
    state[SectionKey.DIAGNOSIS] = "faringitis"
    questions = build_questions(state)
    assert Q_DOSAGE in questions
    assert Q_DIAGNOSIS not in questions
    assert questions == [Q_DOSAGE]


def test_questions_priority_order():
    from clinote.notes.questions import Q_DIAGNOSIS, Q_HYDRATION, Q_VITALS, build_questions
    from clinote.notes.sections import SectionKey, empty_note

    state = empty_note()
    state[SectionKey.CHIEF_COMPLAINT] = "vómitos desde ayer"
    assert build_questions(state) == [Q_VITALS, Q_DIAGNOSIS, Q_HYDRATION]


def test_questions_complete_note():
    from clinote.notes.questions import build_questions
    from clinote.notes.sections import SectionKey, empty_note

    state = empty_note()
    state[SectionKey.PRESCRIPTION] = "amoxicilina 500 mg cada 8 horas"
    state[SectionKey.DIAGNOSIS] = "faringitis"
    assert build_questions(state) == []


def test_dedupe_questions_caps_list():
    from clinote.notes.questions import dedupe_questions

    assert dedupe_questions(["a", "a", " ", "b", "c"], 2) == ["a", "b"]


def test_suggestions_headache_without_duplicates():
    from clinote.notes.suggestions import derive_suggestions

    suggestions = derive_suggestions("dolor de cabeza, sigue con dolor de cabeza")
    codes = [s.code for s in suggestions]
    assert "R51" in codes
    assert len(codes) == len(set(codes))


def test_suggestions_rule_order_and_cap():
    from clinote.notes.suggestions import derive_suggestions

    suggestions = derive_suggestions("fiebre y dolor de cabeza", max_results=5)
    assert [s.code for s in suggestions] == ["R51", "G43.9", "G44.2", "J01.9", "R50.9"]


def test_suggestions_deduplicate_across_rules():
    from clinote.notes.suggestions import derive_suggestions

    codes = [s.code for s in derive_suggestions("vómito y diarrea", max_results=10)]
    assert codes == ["R11", "A09", "K52.9", "E86"]


def test_suggestion_context_includes_transcript():
    from clinote.notes.sections import SectionKey, empty_note
    from clinote.notes.suggestions import suggestion_context

    state = empty_note()
    state[SectionKey.CHIEF_COMPLAINT] = "cefalea"
    state[SectionKey.PLAN] = "reposo"
    assert suggestion_context(state, "tos seca") == "cefalea tos seca"


def test_suggestions_empty_text():
    from clinote.notes.suggestions import derive_suggestions

    assert derive_suggestions("   ") == []
