"""Command-line entry points.

Usage:
    tenant-provisioner validate-access --root /var/lib/anyapp-saas/tenants
    tenant-provisioner serve --port 8080
"""

from pathlib import Path

import typer

from provisioner.core.config import get_settings
from provisioner.services.acl_validation import validate_access_tree

app = typer.Typer(
    name="tenant-provisioner",
    help="Tenant control plane tools",
    no_args_is_help=True,
)


@app.command("validate-access")
def validate_access(
    root: Path | None = typer.Option(
        None,
        "--root",
        "-r",
        help="Runtime tenants directory (defaults to RUNTIME_TENANTS_PATH)",
    ),
) -> None:
    """Validate every tenant ACL file for schema and consistency."""
    settings = get_settings()
    root = root or settings.runtime_tenants_path
    tree = validate_access_tree(root, settings.access_file_name)
    if tree.skipped:
        typer.echo("Runtime tenants directory not found; skipping")
        return

    typer.echo(f"validate-access: using runtime tenants dir: {root}")
    for report in tree.reports:
        for error in report.errors:
            typer.echo(f"validate-access: {report.path}: {error}", err=True)
        for warning in report.warnings:
            typer.echo(f"{report.path}: note: {warning}", err=True)
    typer.echo(f"validate-access: checked {len(tree.reports)} tenant access files")
    if not tree.ok:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Bind address"),
    port: int = typer.Option(8080, "--port", "-p", help="Bind port", envvar="PORT"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("provisioner.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
