# type: ignore
from invoke import task


@task
def venv(ctx):
    """Create .venv with the package and its test/dev extras."""
    ctx.run("uv sync --all-extras")


@task
def lint(ctx):
    """
    Run ruff (lint and format check) and mypy over the package.
    """
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def test(ctx):
    """
    Run tests with coverage information.
    """
    ctx.run("pytest --cov=powerctl --cov-report=term-missing", pty=True)


@task
def build_package(ctx):
    """
    Build sdist and wheel into dist/.
    """

    ctx.run("rm -rf dist")
    ctx.run("uv build")
