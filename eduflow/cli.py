"""Command-line interface for EduFlow.

Responsibilities:
- Expose the interactive `create` wizard that drives `EduflowPipeline`.
- Expose library browsing/export and credential management commands.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Callable, TypeVar

import typer

from .audio.wav import wav_duration_seconds
from .cli_rendering import (
    echo_options,
    echo_project_detail,
    echo_project_row,
    echo_stage_failure,
    exit_with_command_error,
)
from .cli_runtime import prompt_hidden_api_key, resolve_provider_runtime_sources
from .config import ConfigLoader, EduflowConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .duration import DurationChoice, parse_duration_choice
from .errors import GenerationError, PipelineStageError
from .io.library import Library, LibraryStore
from .io.storage import ArtifactStore
from .models.datatypes import Project, TopicOption
from .parsing import parse_selection_index
from .pipeline import EduflowPipeline
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="eduflow",
    no_args_is_help=True,
    help="EduFlow CLI: turn a PDF into a narrated educational video project.",
)
library_app = typer.Typer(no_args_is_help=True, help="Browse and export saved projects.")
app.add_typer(library_app, name="library")

_StepResult = TypeVar("_StepResult")

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
LibraryOption = Annotated[
    Path | None,
    typer.Option("--library", help="Library JSON file (overrides config value)."),
]


class WizardProgressIndicator:
    """Render deterministic per-stage progress lines for the wizard."""

    _SPINNER_FRAMES = "|/-\\"

    def on_stage_start(self, stage_name: str, stage_index: int, stage_total: int) -> None:
        spinner = self._SPINNER_FRAMES[(stage_index - 1) % len(self._SPINNER_FRAMES)]
        typer.echo(f"[progress] {spinner} {stage_index}/{stage_total} stage={stage_name}")


def _load_config(config_path: Path | None, library_path: Path | None) -> EduflowConfig:
    """Load YAML or environment config and map failures to stage errors."""

    try:
        config = (
            ConfigLoader.from_yaml(config_path)
            if config_path is not None
            else ConfigLoader.from_env()
        )
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid configuration: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    if library_path is not None:
        config.library_path = library_path
    return config


def _open_library(config: EduflowConfig) -> Library:
    try:
        return Library(LibraryStore(config.library_path))
    except ValueError as exc:
        raise PipelineStageError(
            stage="library",
            detail=str(exc),
            hint="Move the malformed library file aside and rerun.",
        ) from exc


def _require_saved_project(library: Library, project_id: str) -> Project:
    project = library.get(project_id)
    if project is None:
        raise PipelineStageError(
            stage="library",
            detail=f"No saved project with id `{project_id}`.",
            hint="Run `eduflow library list` to see saved project ids.",
        )
    return project


def _with_retry(
    stage: str,
    first_attempt: Callable[[], _StepResult],
    retry: Callable[[], _StepResult],
) -> _StepResult:
    """Run a fatal stage, offering retries until it succeeds or the user gives up."""

    action = first_attempt
    while True:
        try:
            return action()
        except GenerationError as exc:
            echo_stage_failure(stage, exc)
            if not typer.confirm(f"Retry {stage}?", default=True):
                raise PipelineStageError(
                    stage=stage,
                    detail=str(exc),
                    hint="Check the API key and network access, then run `eduflow create` again.",
                ) from exc
            action = retry


def _prompt_index(label: str, options: tuple[TopicOption, ...]) -> int:
    """Prompt until the user enters a valid 1-based option number."""

    while True:
        raw = typer.prompt(label, default="1")
        try:
            return parse_selection_index(raw, len(options))
        except ValueError as exc:
            typer.secho(str(exc), fg=typer.colors.YELLOW, err=True)


def _prompt_duration(default: str) -> tuple[DurationChoice, str | None]:
    while True:
        raw = typer.prompt("Duration (short, medium, long, custom)", default=default)
        try:
            choice = parse_duration_choice(raw)
        except ValueError as exc:
            typer.secho(str(exc), fg=typer.colors.YELLOW, err=True)
            continue
        if choice is DurationChoice.CUSTOM:
            return choice, typer.prompt("Minutes", default="5")
        return choice, None


def _review_script(pipeline: EduflowPipeline) -> None:
    """Show the script and loop until the user approves it."""

    while True:
        typer.echo("")
        typer.echo(pipeline.project.script)
        typer.echo("")
        action = typer.prompt("Script: [a]pprove, [e]dit, [r]egenerate", default="a").strip().lower()
        if action.startswith("e"):
            edited = typer.edit(pipeline.project.script)
            if edited is not None and edited.strip():
                pipeline.edit_script(edited.strip())
            continue
        if action.startswith("r"):
            _with_retry("script", pipeline.generate_script, pipeline.generate_script)
            continue
        if action.startswith("a"):
            return
        typer.secho("Choose `a`, `e`, or `r`.", fg=typer.colors.YELLOW, err=True)


def _produce_media(pipeline: EduflowPipeline, voice: str, want_thumbnail: bool) -> None:
    """Run media production, offering retries for failed branches only."""

    need_audio = True
    need_thumbnail = want_thumbnail
    while need_audio or need_thumbnail:
        outcome = pipeline.produce_media(voice, audio=need_audio, thumbnail=need_thumbnail)
        if need_audio and outcome.audio_error is None:
            typer.echo(f"Audio: {wav_duration_seconds(pipeline.project.audio):.1f}s")
        need_audio = outcome.audio_error is not None
        need_thumbnail = outcome.thumbnail_error is not None
        if outcome.audio_error is not None:
            echo_stage_failure("audio", outcome.audio_error)
        if outcome.thumbnail_error is not None:
            echo_stage_failure("thumbnail", outcome.thumbnail_error)
        if outcome.all_succeeded or not typer.confirm("Retry failed media?", default=False):
            return


def _run_wizard(pipeline: EduflowPipeline, input_pdf: Path, config: EduflowConfig) -> Project:
    """Walk one project from ingest to save with interactive choices."""

    pipeline.ingest(input_pdf)
    project = pipeline.project
    typer.echo(f"Project: {project.id} ({project.document_name})")
    typer.echo(f"Attachment mode: {project.attachment_mode.value if project.attachment_mode else '?'}")

    echo_options("Structure options:", project.structure_options)
    scope_index = _prompt_index("Scope", project.structure_options)
    _with_retry(
        "insight",
        lambda: pipeline.select_scope(scope_index),
        pipeline.analyze_insight,
    )

    typer.echo(f"Summary: {project.summary}")
    echo_options("Angles:", project.angles)
    pipeline.select_angle(_prompt_index("Angle", project.angles))

    choice, custom_minutes = _prompt_duration(config.duration)
    minutes = pipeline.select_duration(choice, custom_minutes)
    typer.echo(f"Target length: {minutes} min")
    _with_retry("script", pipeline.generate_script, pipeline.generate_script)
    _review_script(pipeline)

    if pipeline.approve_script() is None:
        typer.secho(
            "Metadata generation failed; continuing without title and hashtags.",
            fg=typer.colors.YELLOW,
            err=True,
        )
    else:
        typer.echo(f"Title: {project.title}")
        typer.echo(f"Hashtags: {project.hashtags}")

    voice = typer.prompt("Voice (kore, puck, M, F, or provider voice id)", default=config.tts_voice)
    want_thumbnail = typer.confirm("Generate thumbnail?", default=True)
    _produce_media(pipeline, voice, want_thumbnail)

    if not pipeline.can_save():
        raise PipelineStageError(
            stage="save",
            detail="Neither audio nor a thumbnail was produced.",
            hint="Retry media generation; at least one artifact is required to save.",
        )
    return pipeline.save()


@app.command("create")
def create_command(
    input_pdf: Annotated[Path, typer.Argument(help="Path to source PDF.")],
    config_file: ConfigOption = None,
    library_path: LibraryOption = None,
    model_text: Annotated[
        str | None, typer.Option("--model-text", help="Text model id override.")
    ] = None,
    model_image: Annotated[
        str | None, typer.Option("--model-image", help="Thumbnail model id override.")
    ] = None,
    model_tts: Annotated[
        str | None, typer.Option("--model-tts", help="Speech model id override.")
    ] = None,
    tts_voice: Annotated[
        str | None, typer.Option("--tts-voice", help="Default narration voice override.")
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option(
            "--api-key",
            help="Gemini API key override. Prefer `--prompt-api-key` to avoid shell history.",
        ),
    ] = None,
    prompt_api_key: Annotated[
        bool,
        typer.Option(
            "--prompt-api-key",
            help="Prompt for API key with hidden input (never echoed).",
        ),
    ] = False,
    store_api_key: Annotated[
        bool,
        typer.Option(
            "--store-api-key/--no-store-api-key",
            help="Persist CLI-entered API key to secure credential storage.",
        ),
    ] = False,
) -> None:
    """Run the interactive wizard for one PDF and save the project."""

    try:
        runtime_cli_values, runtime_secure_values = resolve_provider_runtime_sources(
            model_text=model_text,
            model_image=model_image,
            model_tts=model_tts,
            tts_voice=tts_voice,
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            credential_store_factory=create_credential_store,
        )
        config = _load_config(config_file, library_path)
        config.runtime_sources = RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=os.environ,
        )
        runtime = config.resolved_provider_runtime()
        config.tts_voice = runtime.tts_voice
        pipeline = EduflowPipeline(
            client=ProviderFactory.create_generation_client(config, runtime),
            library=_open_library(config),
            config=config,
            run_logger=RunLogger(),
            stage_progress_callback=WizardProgressIndicator().on_stage_start,
            runtime_metadata=runtime.as_metadata(),
        )
        saved = _run_wizard(pipeline, input_pdf, config)
    except typer.Abort:
        raise
    except Exception as exc:
        exit_with_command_error("create", exc)

    typer.echo(f"Saved project: {saved.id}")
    typer.echo(f"Library: {config.library_path}")


@library_app.command("list")
def library_list_command(
    config_file: ConfigOption = None,
    library_path: LibraryOption = None,
) -> None:
    """List saved projects, most recent first."""

    try:
        library = _open_library(_load_config(config_file, library_path))
    except Exception as exc:
        exit_with_command_error("library list", exc)

    if len(library) == 0:
        typer.echo("Library is empty.")
        return
    for project in library:
        echo_project_row(project)


@library_app.command("show")
def library_show_command(
    project_id: Annotated[str, typer.Argument(help="Saved project id.")],
    config_file: ConfigOption = None,
    library_path: LibraryOption = None,
) -> None:
    """Show one saved project with its script."""

    try:
        library = _open_library(_load_config(config_file, library_path))
        project = _require_saved_project(library, project_id)
    except Exception as exc:
        exit_with_command_error("library show", exc)

    echo_project_detail(project)


@library_app.command("delete")
def library_delete_command(
    project_id: Annotated[str, typer.Argument(help="Saved project id.")],
    config_file: ConfigOption = None,
    library_path: LibraryOption = None,
) -> None:
    """Delete one saved project."""

    try:
        library = _open_library(_load_config(config_file, library_path))
        _require_saved_project(library, project_id)
        library.remove(project_id)
    except Exception as exc:
        exit_with_command_error("library delete", exc)

    typer.echo(f"Deleted project: {project_id}")


@library_app.command("export")
def library_export_command(
    project_id: Annotated[str, typer.Argument(help="Saved project id.")],
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Export directory (defaults to the configured output dir)."),
    ] = None,
    name: Annotated[
        str | None,
        typer.Option("--name", help="Base filename for exported files (defaults to project id)."),
    ] = None,
    config_file: ConfigOption = None,
    library_path: LibraryOption = None,
) -> None:
    """Write a saved project's audio, thumbnail, and script metadata to disk."""

    try:
        config = _load_config(config_file, library_path)
        project = _require_saved_project(_open_library(config), project_id)
        store = ArtifactStore(out if out is not None else config.output_dir)
        base_name = name or project.id
        written: list[Path] = []
        if project.audio is not None:
            written.append(store.save_bytes(Path(f"{base_name}.wav"), project.audio))
        if project.thumbnail is not None:
            written.append(store.save_bytes(Path(f"{base_name}.png"), project.thumbnail))
        written.append(
            store.save_json(
                Path(f"{base_name}.json"),
                {
                    "id": project.id,
                    "title": project.title,
                    "description": project.description,
                    "hashtags": project.hashtags,
                    "script": project.script,
                },
            )
        )
    except Exception as exc:
        exit_with_command_error("library export", exc)

    for path in written:
        typer.echo(f"Wrote: {path}")


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored CLI credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = prompt_hidden_api_key("Gemini API key (hidden input)")
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        if credential_store.clear_api_key():
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored Gemini API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
