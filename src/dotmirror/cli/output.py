"""Small wrappers for user-facing CLI output."""

import typer


def success(message: str):
    typer.echo(f"✓ {message}")


def warning(message: str):
    typer.echo(f"⚠ {message}")


def error(message: str):
    typer.echo(f"✗ {message}", err=True)


def header(title: str):
    typer.echo(f"\n=== {title} ===")
