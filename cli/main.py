"""Feednly CLI: scrape a product page or run the HTTP service.

Usage:
    python cli/main.py --help

Commands:
    scrape    → run the acquisition ladder for one URL and print the result
    serve     → start the HTTP API under uvicorn
    config    → print the effective (non-secret) configuration
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from feednly.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from feednly.config import settings

app = typer.Typer(
    name="feednly",
    help="Feednly product-page scraper.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="Product page URL to scrape."),
    raw: bool = typer.Option(False, "--json", help="Print only the JSON result."),
) -> None:
    """Scrape a URL through the escalation stages and print the result."""
    from feednly.acquisition import acquire

    if not raw:
        typer.echo(f"[scrape] Acquiring {url!r} …")
    try:
        result = acquire(url)
    except ValueError as exc:
        typer.echo(f"[scrape] {exc}", err=True)
        raise typer.Exit(1)

    if not raw:
        if result.get("ok"):
            meta = result.get("meta", {})
            typer.echo(f"[scrape] Stage  : {meta.get('stage')}  ({meta.get('durationSeconds')}s)")
            typer.echo(f"[scrape] Title  : {result.get('title') or '(none)'}")
            typer.echo(f"[scrape] Price  : {result.get('price') or '(none)'}")
            typer.echo(f"[scrape] Images : {len(result.get('images', []))}")
        else:
            steps = ", ".join(f"{k}={v}" for k, v in result.get("steps", {}).items())
            typer.echo(f"[scrape] Blocked ({steps}): {result.get('error')}")
        typer.echo("")

    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))
    if not result.get("ok"):
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: HOST or 0.0.0.0)."),
    port: Optional[int] = typer.Option(None, help="Port (default: PORT or 8080)."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    typer.echo(
        f"[serve] Feednly Scraper listening on {bind_host}:{bind_port} "
        f"(proxy={settings.proxy_configured}, unlocker={settings.unlocker_configured}, "
        f"zone={settings.brightdata_zone})"
    )
    uvicorn.run("feednly.api.app:app", host=bind_host, port=bind_port)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
@app.command("config")
def show_config() -> None:
    """Print the effective configuration (secrets omitted)."""
    for key, value in settings.describe().items():
        typer.echo(f"  {key:<22} {value}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
