from clinote.notes.sections import NoteState, SectionKey
from clinote.notes.segmenter import normalize_text


def merge_text(existing: str | None, new: str | None) -> str:
    """Append ``new`` to ``existing`` unless it is already contained (case-insensitive).

    Containment is a plain substring test; reordered or partially overlapping
    near-duplicates are let through.
    """
    old = normalize_text(existing)
    addition = normalize_text(new)
    if not addition:
        return old
    if not old:
        return addition
    if addition.lower() in old.lower():
        return old
    return f"{old} {addition}".strip()


def merge_into(state: NoteState, key: SectionKey, text: str) -> bool:
    """Merge into ``state[key]`` in place. Returns True when the field changed."""
    before = state.get(key, "")
    after = merge_text(before, text)
    state[key] = after
    return after != before
