"""CLI entry point for question bank import/export."""

import asyncio
import sys
from pathlib import Path

import click

from qbank.core.errors import RemoteError
from qbank.core.logging import LOG_LEVELS, get_logger, setup_logging
from qbank.remote.question_store import QuestionStoreClient
from qbank.schemas.question import Difficulty, FileFormat, QuestionBase
from qbank.services.exporter import ExportedFile, export_demo
from qbank.services.notifications import ERROR
from qbank.services.question_bank import QuestionBankController

logger = get_logger(__name__)

FORMAT_CHOICE = click.Choice([f.value for f in FileFormat], case_sensitive=False)


def _format_for(path: Path, explicit: str | None) -> FileFormat:
    if explicit:
        return FileFormat.normalize(explicit)
    suffix = path.suffix.lower().lstrip(".")
    try:
        return FileFormat(suffix)
    except ValueError:
        raise click.BadParameter(
            f"Cannot infer format from '{path.name}'; pass --format", param_hint="--format"
        )


def _echo_notifications(controller: QuestionBankController) -> None:
    for item in controller.notifier.active:
        click.echo(f"[{item.level}] {item.message}", err=item.level == ERROR)


def _echo_preview(batch: list[QuestionBase]) -> None:
    click.echo(f"Verify Questions ({len(batch)})")
    for index, q in enumerate(batch):
        content = q.content if len(q.content) <= 60 else q.content[:57] + "..."
        click.echo(f"  {index:>4}  {q.type.value:<16} {q.difficulty.value:<7} {q.marks:>5}  {content}")


def _write(exported: ExportedFile, output: Path | None) -> Path:
    target = output or Path(exported.filename)
    target.write_bytes(exported.content)
    click.echo(f"Wrote {target}")
    return target


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL",
)
def cli(log_level: str | None):
    """Question bank administration."""
    setup_logging(log_level, stream=sys.stderr)


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "file_format", type=FORMAT_CHOICE, default=None)
@click.option("--commit", is_flag=True, help="Send the batch to the question store")
def import_questions(path: Path, file_format: str | None, commit: bool):
    """
    Validate an import file and optionally commit it.

    Example:
        qbank import questions.csv --commit
    """
    fmt = _format_for(path, file_format)
    content = path.read_bytes()

    async def run_async() -> int:
        async with QuestionStoreClient() as store:
            controller = QuestionBankController(store)
            if not controller.import_file(content, fmt):
                _echo_notifications(controller)
                return 1
            _echo_preview(controller.preview.batch)
            if not commit:
                click.echo("Dry run: nothing sent (use --commit to import)")
                return 0
            if not controller.preview.can_confirm:
                _echo_notifications(controller)
                return 1
            ok = await controller.confirm_import()
            _echo_notifications(controller)
            return 0 if ok else 1

    sys.exit(asyncio.run(run_async()))


@cli.command("export")
@click.option("--search", default="")
@click.option("--type", "question_type", default="all")
@click.option("--difficulty", default="all")
@click.option("--format", "file_format", type=FORMAT_CHOICE, default="csv")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
def export(search: str, question_type: str, difficulty: str, file_format: str, output: Path | None):
    """Export every question matching the filters."""

    async def run_async() -> int:
        async with QuestionStoreClient() as store:
            controller = QuestionBankController(store)
            await controller.apply_filters(search=search, type=question_type, difficulty=difficulty)
            if controller.notifier.last and controller.notifier.last.level == ERROR:
                _echo_notifications(controller)
                return 1
            controller.selection.select_all()
            exported = controller.export_selection(file_format.lower())
            if exported is None:
                click.echo("No questions to export")
                return 0
            _write(exported, output)
            return 0

    sys.exit(asyncio.run(run_async()))


@cli.command()
@click.option("--format", "file_format", type=FORMAT_CHOICE, default="csv")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
def demo(file_format: str, output: Path | None):
    """Write the demonstration import file."""
    _write(export_demo(file_format.lower()), output)


@cli.command()
@click.argument("question_ids", nargs=-1, required=True)
def delete(question_ids: tuple[str, ...]):
    """Move questions to the recycle bin."""

    async def run_async() -> int:
        async with QuestionStoreClient() as store:
            controller = QuestionBankController(store)
            await controller.refresh()
            selected = controller.selection.set_selected(question_ids)
            missing = set(question_ids) - set(controller.selection.ids())
            if missing:
                click.echo(f"Not in question list: {', '.join(sorted(missing))}", err=True)
            if not selected:
                _echo_notifications(controller)
                return 1
            result = await controller.bulk_delete()
            _echo_notifications(controller)
            for question_id, error in result.failed.items():
                click.echo(f"  {question_id}: {error}", err=True)
            return 0 if result.ok and not missing else 1

    sys.exit(asyncio.run(run_async()))


@cli.command()
@click.argument("question_ids", nargs=-1, required=True)
@click.option("--difficulty", type=click.Choice([d.value for d in Difficulty]), default=None)
@click.option("--category", default=None)
@click.option("--marks", type=float, default=None)
def edit(question_ids: tuple[str, ...], difficulty: str | None, category: str | None, marks: float | None):
    """
    Apply the same changes to several questions.

    Example:
        qbank edit q1 q2 --difficulty hard --category Algebra
    """
    changes = {
        key: value
        for key, value in (("difficulty", difficulty), ("category", category), ("marks", marks))
        if value is not None
    }
    if not changes:
        raise click.UsageError("Nothing to change; pass --difficulty, --category or --marks")
    if "marks" in changes and changes["marks"].is_integer():
        changes["marks"] = int(changes["marks"])

    async def run_async() -> int:
        async with QuestionStoreClient() as store:
            controller = QuestionBankController(store)
            await controller.refresh()
            controller.selection.set_selected(question_ids)
            missing = set(question_ids) - set(controller.selection.ids())
            if missing:
                click.echo(f"Not in question list: {', '.join(sorted(missing))}", err=True)
            ok = await controller.bulk_update_selection(changes)
            _echo_notifications(controller)
            return 0 if ok and not missing else 1

    sys.exit(asyncio.run(run_async()))


@cli.command("bin-count")
def bin_count():
    """Print the number of questions in the recycle bin."""

    async def run_async() -> int:
        async with QuestionStoreClient() as store:
            try:
                click.echo(await store.bin_count())
            except RemoteError as e:
                logger.error("Bin count failed", extra={"error": e.message})
                click.echo(f"Bin count failed: {e}", err=True)
                return 1
            return 0

    sys.exit(asyncio.run(run_async()))


if __name__ == "__main__":
    cli()
