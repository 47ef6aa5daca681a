"""Click CLI for ClinNote."""

import asyncio
import logging
import sys

import click

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def _read_text(text):
    if text == "-" or text is None:
        return sys.stdin.read()
    return text


@click.group()
def cli():
    """ClinNote: clinical dictation to structured consultation notes."""


@cli.command()
def init_db():
    """Create SQLite schema and seed global settings from .env."""
    from clinote.database import init_db
    init_db()
    click.echo("Database initialized successfully.")


@cli.command()
def run_web():
    """Start the FastAPI web interface."""
    import uvicorn
    from clinote.config import settings
    from clinote.database import init_db
    init_db()
    uvicorn.run(
        "clinote.web.app:app",
        host=settings.web_host,
        port=settings.web_port,
        reload=False,
    )


@cli.command()
@click.argument("text", required=False, default="-")
@click.option("--fallback", default="impression", show_default=True, help="Section for unscored text")
def classify(text, fallback):
    """Classify one dictation chunk (or stdin) into note sections."""
    from clinote.config import settings
    from clinote.notes.classifier import classify_delta
    from clinote.notes.sections import SECTION_LABELS, empty_note, parse_section_key

    key = parse_section_key(fallback)
    if key is None:
        click.echo(f"Unknown section '{fallback}'", err=True)
        sys.exit(1)

    result = classify_delta(
        _read_text(text), empty_note(), key,
        min_split_offset=settings.mixed_split_min_offset,
    )
    for section, value in result.next_state.items():
        if value:
            click.echo(f"{SECTION_LABELS[section]}: {value}")
    click.echo(f"\n{len(result.timeline_entries)} timeline entries")


@cli.command()
@click.argument("text", required=False, default="-")
def analyze(text):
    """Run the rule-based analyzer over a chunk and print sections, alerts and questions."""
    from clinote.notes.analyzer import analyze_delta
    from clinote.notes.sections import SECTION_LABELS, empty_note

    result = analyze_delta(empty_note(), _read_text(text))
    for section, value in result.sections.items():
        if value:
            click.echo(f"{SECTION_LABELS[section]}: {value}")
    for alert in result.alerts:
        click.echo(f"  ! {alert}")
    for question in result.questions:
        click.echo(f"  ? {question}")


@cli.command()
@click.argument("text", required=False, default="-")
@click.option("--max", "max_results", default=6, type=int, show_default=True)
def suggest(text, max_results):
    """Print ICD-10 suggestions for free text."""
    from clinote.notes.suggestions import derive_suggestions

    suggestions = derive_suggestions(_read_text(text), max_results)
    if not suggestions:
        click.echo("No suggestions.")
    for s in suggestions:
        click.echo(f"  {s.code:8s}  {s.title}")


@cli.command()
@click.option("--limit", default=20, type=int, help="Max consultations to list")
def sessions(limit):
    """List stored consultations, most recent first."""
    from clinote.database import init_db
    from clinote.dictation.store import list_consultations
    init_db()
    rows = list_consultations(limit)
    if not rows:
        click.echo("No consultations stored.")
    for r in rows:
        click.echo(f"  {r['id']}  {r['updated_at'] or '':19.19s}  {r['clinician'] or '-':24s}  {r['site'] or '-'}")


@cli.command()
@click.argument("session_id")
def report(session_id):
    """Print the text report for a stored consultation."""
    from clinote.database import init_db
    from clinote.dictation.store import load_session
    init_db()
    session = load_session(session_id)
    if session is None:
        click.echo(f"No consultation found with id '{session_id}'", err=True)
        sys.exit(1)
    click.echo(session.report())


@cli.command()
@click.argument("session_id")
def flush(session_id):
    """Send any queued dictation of a stored consultation to the analyzer."""
    from clinote.database import init_db
    from clinote.dictation.store import load_session, save_session
    init_db()
    session = load_session(session_id)
    if session is None:
        click.echo(f"No consultation found with id '{session_id}'", err=True)
        sys.exit(1)
    if session.client is None:
        click.echo("Remote analysis is disabled.", err=True)
        sys.exit(1)
    pending = len(session.queue.pending)
    asyncio.run(session.stop())
    save_session(session)
    if session.queue.last_error:
        click.echo(f"Analysis failed: {session.queue.last_error}", err=True)
        sys.exit(1)
    click.echo(f"Flushed {pending} queued chunk(s).")


@cli.command()
def show_settings():
    """Show the effective global settings (SQLite overrides over .env)."""
    from clinote.config_store import get_config_store
    from clinote.database import init_db
    init_db()
    for key, value in get_config_store().get_all_globals().items():
        click.echo(f"  {key:20s}  {value}")


if __name__ == "__main__":
    cli()
