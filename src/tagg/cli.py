"""Command line interface for tagg."""

from __future__ import annotations

import difflib
import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, NoReturn, Sequence

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax

from tagg.commit import (
    CommitError,
    CommitPipeline,
    PdfTitleExtractor,
    StorageCollisionError,
    generate_titles,
)
from tagg.config import (
    ConfigError,
    ConfigManager,
    TaggConfig,
    resolve_with_precedence,
    set_path,
)
from tagg.lookup import resolve_prefix
from tagg.query import find as find_files
from tagg.query import list_all as list_all_files
from tagg.query import parse_predicates
from tagg.registration import (
    AnnotateReport,
    BatchReport,
    ClickConfirmer,
    HashComputer,
    RegistrationManager,
)
from tagg.session import Session
from tagg.state import COMMENT_MAIN, DESCRIPTION_KEY, TITLE_KEY, StateError, StoredFile

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)
LOGGER = logging.getLogger(__name__)

_TAG_SEPARATOR = re.compile(r"[,\s]+")


@dataclass
class GlobalOptions:
    """Global options shared by every subcommand."""

    config_path: Path | None = None
    verbose: bool = False


def _handle_cli_error(message: str, *, original: Exception | None = None) -> NoReturn:
    """Terminate the command with a standardized error.

    Args:
        message: Human-readable error message.
        original: Original exception for chaining.

    Raises:
        click.ClickException: Always, to surface the error with exit code 1.
    """
    if isinstance(original, click.ClickException):
        raise original
    raise click.ClickException(message) from original


def _configure_logging(*, verbose: bool, level: str = "WARNING") -> None:
    """Route `tagg` loggers to stderr through rich.

    Args:
        verbose: Lower the threshold to INFO when set.
        level: Configured logging level name.
    """
    threshold = logging.getLevelName(level.upper())
    if not isinstance(threshold, int):
        threshold = logging.WARNING
    if verbose:
        threshold = min(threshold, logging.INFO)

    logger = logging.getLogger("tagg")
    handler = RichHandler(console=err_console, show_time=False, show_path=False)
    logger.handlers = [handler]
    logger.setLevel(threshold)
    logger.propagate = False


def _open_session(ctx: click.Context) -> Session:
    """Load configuration and state for the current invocation.

    Raises:
        click.ClickException: If the config or state file cannot be loaded.
    """
    options: GlobalOptions = ctx.ensure_object(GlobalOptions)
    _configure_logging(verbose=options.verbose)
    try:
        session = Session.open(
            ConfigManager(options.config_path),
            confirmer=ClickConfirmer(),
            verbose=options.verbose,
        )
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), original=exc)

    session.verbose = options.verbose or session.config.cli.verbose_default
    _configure_logging(verbose=session.verbose, level=session.config.logging.level)
    return session


def _split_tags(values: Iterable[str]) -> list[str]:
    """Flatten repeated `--tags` values that may hold comma or space separated tags."""
    tags: list[str] = []
    for value in values:
        tags.extend(part for part in _TAG_SEPARATOR.split(value) if part)
    return tags


def _warn(message: str) -> None:
    err_console.print(f"[yellow]WARN:[/yellow] {escape(message)}")


def _info(message: str) -> None:
    err_console.print(f"[cyan]INFO:[/cyan] {escape(message)}")


def _emit_report(report: BatchReport) -> None:
    """Print per-item warnings and notes of a batch operation."""
    for warning in report.warnings:
        _warn(warning)
    for note in report.notes:
        _info(note)


def _format_tags(tags: Sequence[str], matched: Iterable[str] = ()) -> str:
    highlighted = set(matched)
    rendered = [
        f"[green]{escape(tag)}[/green]" if tag in highlighted else f"[blue]{escape(tag)}[/blue]"
        for tag in tags
    ]
    joined = ", ".join(rendered)
    return f"[bright_black]\\[[/bright_black]{joined}[bright_black]][/bright_black]"


def _format_file(entry: StoredFile, matched: Iterable[str] = ()) -> str:
    line = f"  [bright_black]{escape(entry.storage_name)}[/bright_black] "
    if entry.original_filename is not None:
        line += f"([blue]{escape(entry.original_filename)}[/blue]) "
    return line + _format_tags(entry.tags, matched)


def _print_file(entry: StoredFile, *, matched: Iterable[str] = (), comments: bool = False) -> None:
    console.print(_format_file(entry, matched))
    if not comments:
        return
    for title, body in entry.comments.items():
        prefix = "" if title == COMMENT_MAIN else f"[bright_black]{escape(title)}[/bright_black]: "
        console.print(f"    - {prefix}[white]{escape(body)}[/white]")


def _emit_annotations(report: AnnotateReport) -> None:
    for ambiguous in report.ambiguous:
        console.print(
            f"There was more than one entry which would match the prefix {ambiguous.prefix!r}"
        )
        for candidate in ambiguous.candidates:
            _print_file(candidate)
    _emit_report(report)


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {escape(str(target))}: {parts}.[/green]"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="tagg")
@click.option("-v", "--verbose", is_flag=True, help="Emit trace output on stderr.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file to use instead of ~/.tagg/config.yaml.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """tagg stages files, tags them, and commits them into a flat tagged store."""
    ctx.obj = GlobalOptions(config_path=config_path, verbose=verbose)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the files waiting in the registration area."""
    session = _open_session(ctx)
    console.print("Files in Registration-Area:")
    console.print(
        "  (use `[bright_black]tagg drop <file>[/bright_black]` to remove it from the "
        "registration-area)"
    )
    for entry in session.state.registration_area:
        name = entry.path.name or str(entry.path)
        console.print(f"    [blue]{escape(name)}[/blue]  {_format_tags(entry.tags)}")


@cli.command()
@click.argument("files", nargs=-1, required=True)
@click.option("-c", "--comment", type=str, help="Note about the files to reference later.")
@click.option(
    "-t",
    "--tags",
    multiple=True,
    help="Tags to apply; comma or space separated, may be repeated.",
)
@click.pass_context
def add(
    ctx: click.Context, files: tuple[str, ...], comment: str | None, tags: tuple[str, ...]
) -> None:
    """Add FILES to the registration area."""
    session = _open_session(ctx)
    tag_list = _split_tags(tags)
    LOGGER.info("Adding files %s with tags %s", list(files), tag_list)
    try:
        report = RegistrationManager(session).stage(files, tag_list, comment)
    except StateError as exc:
        _handle_cli_error(str(exc), original=exc)
    _emit_report(report)
    skipped = len(files) - len(report.added) - len(report.merged)
    metrics = {"added": len(report.added), "merged": len(report.merged), "skipped": skipped}
    console.print(_format_summary_line("Add", "registration-area", metrics))


@cli.command()
@click.argument("files", nargs=-1, required=True)
@click.pass_context
def drop(ctx: click.Context, files: tuple[str, ...]) -> None:
    """Remove FILES (by file name) from the registration area."""
    session = _open_session(ctx)
    try:
        report = RegistrationManager(session).drop(files)
    except StateError as exc:
        _handle_cli_error(str(exc), original=exc)
    _emit_report(report)


@cli.command()
@click.option("--dry", is_flag=True, help="Preview names without copying, trashing, or saving.")
@click.option("--soft", is_flag=True, help="Keep the original files instead of trashing them.")
@click.pass_context
def commit(ctx: click.Context, dry: bool, soft: bool) -> None:
    """Move files from the registration area into storage."""
    session = _open_session(ctx)
    verifier = HashComputer().verify if session.config.hash_added_files else None
    pipeline = CommitPipeline(session, title_extractor=PdfTitleExtractor(), verifier=verifier)
    try:
        result = pipeline.run(dry_run=dry, soft=soft)
    except StorageCollisionError as exc:
        _handle_cli_error(f"Internal consistency failure: {exc}", original=exc)
    except (CommitError, StateError) as exc:
        _handle_cli_error(str(exc), original=exc)

    if result.empty:
        _info("There were no files in the registration area to commit.")
        return

    for warning in result.warnings:
        _warn(warning)
    for entry in result.committed:
        _print_file(entry)
    if dry:
        console.print("[cyan]Dry run: no files were copied and the state was not saved.[/cyan]")
    console.print(
        _format_summary_line(
            "Commit",
            session.storage_dir,
            {"committed": len(result.committed), "soft": soft, "dry_run": dry},
        )
    )


@cli.command("add-tags")
@click.argument("files", nargs=-1, required=True)
@click.option(
    "-t",
    "--tags",
    multiple=True,
    required=True,
    help="Tags to add; comma or space separated, may be repeated.",
)
@click.pass_context
def add_tags(ctx: click.Context, files: tuple[str, ...], tags: tuple[str, ...]) -> None:
    """Add tags to stored FILES identified by name prefix."""
    session = _open_session(ctx)
    try:
        report = RegistrationManager(session).add_tags(files, _split_tags(tags))
    except StateError as exc:
        _handle_cli_error(str(exc), original=exc)
    _emit_annotations(report)
    for entry in report.updated:
        _print_file(entry)


def _set_comment(ctx: click.Context, files: Sequence[str], message: str, title: str) -> None:
    session = _open_session(ctx)
    try:
        report = RegistrationManager(session).set_comment(files, message, title)
    except StateError as exc:
        _handle_cli_error(str(exc), original=exc)
    _emit_annotations(report)


@cli.command("set-comment")
@click.argument("files", nargs=-1, required=True)
@click.option("-m", "--message", required=True, help="Comment text.")
@click.option("--title", default=COMMENT_MAIN, show_default=True, help="Comment title.")
@click.pass_context
def set_comment(ctx: click.Context, files: tuple[str, ...], message: str, title: str) -> None:
    """Set a comment on stored FILES identified by name prefix."""
    _set_comment(ctx, files, message, title)


@cli.command("set-title")
@click.argument("file")
@click.argument("message")
@click.pass_context
def set_title(ctx: click.Context, file: str, message: str) -> None:
    """Set the title of a stored FILE."""
    _set_comment(ctx, [file], message, TITLE_KEY)


@cli.command("set-desc")
@click.argument("file")
@click.argument("message")
@click.pass_context
def set_desc(ctx: click.Context, file: str, message: str) -> None:
    """Set the description of a stored FILE."""
    _set_comment(ctx, [file], message, DESCRIPTION_KEY)


@cli.command("generate-titles")
@click.option("--dry", is_flag=True, help="Do not save the generated titles.")
@click.pass_context
def generate_titles_command(ctx: click.Context, dry: bool) -> None:
    """Extract titles for stored files that lack one."""
    session = _open_session(ctx)
    try:
        titled = generate_titles(session, PdfTitleExtractor(), dry_run=dry)
    except StateError as exc:
        _handle_cli_error(str(exc), original=exc)
    for entry in titled:
        console.print(f"  {escape(entry.storage_name)}: {escape(entry.comments[TITLE_KEY])}")
    console.print(
        _format_summary_line("Titles", session.storage_dir, {"titled": len(titled), "dry_run": dry})
    )


# `-h` would otherwise swallow exclusions such as `-holiday`.
@cli.command(context_settings={"ignore_unknown_options": True, "help_option_names": ["--help"]})
@click.argument("tags", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def find(ctx: click.Context, tags: tuple[str, ...]) -> None:
    """Search stored files by TAGS; prefix with + to require or - to exclude."""
    session = _open_session(ctx)
    predicates = parse_predicates(tags)
    required = [predicate.tag for predicate in predicates if predicate.present]
    for entry in find_files(session.state.storage, predicates):
        _print_file(entry, matched=required, comments=True)


@cli.command("list-all")
@click.pass_context
def list_all(ctx: click.Context) -> None:
    """List every stored file."""
    session = _open_session(ctx)
    for entry in list_all_files(session.state.storage):
        original = entry.original_filename if entry.original_filename is not None else "None"
        console.print(
            f"{escape(entry.storage_name)} - {escape(original)} - {escape(', '.join(entry.tags))}"
        )


@cli.command("open")
@click.argument("files", nargs=-1, required=True)
@click.option("-u", "--using", type=str, help="Program used to open the files.")
@click.pass_context
def open_files(ctx: click.Context, files: tuple[str, ...], using: str | None) -> None:
    """Open stored FILES with their associated program, one at a time."""
    session = _open_session(ctx)
    for prefix in files:
        match = resolve_prefix(prefix, session.state.storage.files)
        if match.missing:
            _warn(f"Failed to find file with prefix {prefix!r}")
            continue
        if match.ambiguous:
            console.print(f"There was more than one entry which would match the prefix {prefix!r}")
            for candidate in match.matches:
                _print_file(candidate)
            continue

        path = session.storage_path_for(match.entry.storage_name)
        try:
            if using:
                subprocess.Popen([using, str(path)], start_new_session=True)
            else:
                click.launch(str(path))
        except OSError as exc:
            _handle_cli_error(f"Unable to open {path}: {exc}", original=exc)


@cli.group()
def config() -> None:
    """Manage tagg configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    options: GlobalOptions = ctx.ensure_object(GlobalOptions)
    manager = ConfigManager(options.config_path)
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))
    console.print(f"storage: {escape(str(manager.storage_dir(loaded)))}")
    console.print(f"state: {escape(str(manager.state_file(loaded)))}")


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    options: GlobalOptions = ctx.ensure_object(GlobalOptions)
    manager = ConfigManager(options.config_path)
    try:
        manager.ensure_exists()
        file_data = manager.load_file_overrides()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'cli.verbose_default'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        set_path(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=TaggConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()
    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    # Header timestamp lines differ on every save.
    changed = [
        line
        for line in diff
        if line[:1] in "+-" and not line.startswith(("+++", "---", "+# Last", "-# Last"))
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
