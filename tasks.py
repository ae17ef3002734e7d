# type: ignore
from invoke import task


@task
def venv(ctx):
    """Initialize development environment with uv."""
    ctx.run("uv sync --all-extras")


@task
def lint(ctx):
    """Run ruff and mypy over the package."""
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def test(ctx):
    """Run tests with coverage information."""
    ctx.run("pytest --cov=devhub --cov-report=term-missing", pty=True)


@task
def mock(ctx, port=4455):
    """Start a mock software endpoint to connect devhub against."""
    ctx.run(f"devhub mock --port {port}", pty=True)


@task
def build_package(ctx):
    """Build sdist and wheel with uv."""
    ctx.run("rm -rf dist")
    ctx.run("uv build")
