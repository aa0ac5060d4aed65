"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
numbered option menus, media outcomes, and library rows.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import GenerationError, PipelineStageError
from .models.datatypes import Project, TopicOption


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_stage_failure(stage: str, exc: GenerationError) -> None:
    """Print one red line describing a failed generation stage."""

    kind = f" ({exc.failure_kind})" if exc.failure_kind else ""
    typer.secho(f"{stage} failed{kind}: {exc}", fg=typer.colors.RED, err=True)


def echo_options(heading: str, options: tuple[TopicOption, ...]) -> None:
    """Print a 1-based numbered menu of title/description options."""

    typer.echo(heading)
    for number, option in enumerate(options, start=1):
        typer.echo(f"  {number}. {option.title}")
        if option.description:
            typer.echo(f"     {option.description}")


def echo_project_row(project: Project) -> None:
    label = project.title or project.scope_title or project.document_name
    media = []
    if project.audio is not None:
        media.append("audio")
    if project.thumbnail is not None:
        media.append("thumbnail")
    typer.echo(f"{project.id}  {project.created_at}  {label}  [{', '.join(media) or 'no media'}]")


def echo_project_detail(project: Project) -> None:
    """Print the stored fields of one saved project, without binary payloads."""

    typer.echo(f"Id: {project.id}")
    typer.echo(f"Created: {project.created_at}")
    typer.echo(f"Document: {project.document_name}")
    typer.echo(f"Scope: {project.scope_title}")
    if project.selected_angle is not None:
        typer.echo(f"Angle: {project.selected_angle.title}")
    typer.echo(f"Duration: {project.duration.value} ({project.resolved_minutes or '?'} min)")
    typer.echo(f"Title: {project.title or '(none)'}")
    typer.echo(f"Description: {project.description or '(none)'}")
    typer.echo(f"Hashtags: {project.hashtags or '(none)'}")
    typer.echo(f"Audio: {'yes' if project.audio is not None else 'no'}")
    typer.echo(f"Thumbnail: {'yes' if project.thumbnail is not None else 'no'}")
    typer.echo("")
    typer.echo(project.script)
