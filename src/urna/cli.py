"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/urna/cli.py`.
Interfaz de línea de comandos: servidor HTTP, recuento offline y
verificación de direcciones.

Componentes detectados:
  - main
  - serve
  - tally
  - check_address

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `src/urna/cli.py`.
Command line interface: HTTP server, offline tally and address checks.

Detected components:
  - main
  - serve
  - tally
  - check_address

Notes:
- Keep this header in sync with structural changes in the file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .addresses import is_valid_address
from .config import load_config
from .errors import StorageError
from .logging import setup_logging
from .reconcile import all_votes, current_votes
from .store import BallotStore

app = typer.Typer(help="Urna ballot service CLI")


@app.callback()
def main() -> None:
    """Interfaz de línea de comandos de Urna.

    English: Urna command line interface.
    """


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(3000, help="Bind port."),
    config: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="YAML configuration file."),
) -> None:
    """Levanta la API HTTP / Run the HTTP API."""
    import uvicorn

    from .api.main import create_app

    try:
        settings = load_config(config)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    log = setup_logging(settings.LOG_LEVEL, settings.LOG_DIR, secrets=[settings.JWT_SECRET_KEY])
    log.info("urna_starting", host=host, port=port, network=settings.DASH_NETWORK)
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


@app.command()
def tally(
    db: Path = typer.Option(Path("data") / "votes.db", exists=True, dir_okay=False, help="Ballot database."),
    include_superseded: bool = typer.Option(False, "--all", help="Print the raw log instead of current votes."),
) -> None:
    """Recuento offline desde la base de votos / Offline tally from the ballot database."""
    try:
        log = BallotStore(db).all_ballots()
    except StorageError as exc:
        typer.echo(f"cannot read ballots: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if include_superseded:
        payload = [ballot.to_json() for ballot in all_votes(log)]
    else:
        payload = {address: ballot.to_json() for address, ballot in current_votes(log).items()}
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("check-address")
def check_address(
    address: str = typer.Argument(..., help="Dash address to check."),
    network: str = typer.Option("mainnet", help="mainnet or testnet."),
) -> None:
    """Valida una dirección para la red / Validate an address for a network."""
    if is_valid_address(address, network):
        typer.echo(f"{address}: valid {network} address")
        return
    typer.echo(f"{address}: INVALID_NETWORK for {network}")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
