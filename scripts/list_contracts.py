#!/usr/bin/python3

from itertools import groupby
from pathlib import Path
from typing import List, Optional, Tuple

import click

from groupfund_deployment.constants import ARTIFACTS_DIR
from groupfund_deployment.registry import RegistryEntry, read_registry


def _get_registry_entries(
    filepath: Optional[Path] = None,
) -> List[Tuple[str, List[RegistryEntry]]]:
    """Parse the given registry file, or every registry artifact."""
    filepaths = [filepath] if filepath else sorted(ARTIFACTS_DIR.glob("*.json"))
    return [(path.stem, read_registry(filepath=path)) for path in filepaths]


def _display_registry_entries(registry_entries: List[Tuple[str, List[RegistryEntry]]]) -> None:
    """Display registry entries grouped by chain ID."""
    for name, entries in registry_entries:
        grouped_entries = groupby(entries, key=lambda e: e.chain_id)
        click.secho(f"\n{name}", fg="green")

        for chain_id, chain_entries in grouped_entries:
            click.secho(f"    Chain ID {chain_id}", fg="yellow")

            for index, entry in enumerate(chain_entries, start=1):
                click.secho(f"        {index}. {entry.name} {entry.address}", fg="cyan")


@click.command(name="list-contracts")
@click.option(
    "--registry",
    "-r",
    "registry_filepath",
    help="Registry artifact to list (all artifacts if omitted).",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def cli(registry_filepath):
    """List all contracts in the registry artifacts."""
    registry_entries = _get_registry_entries(registry_filepath)
    if not registry_entries:
        click.echo(f"No registry artifacts in {ARTIFACTS_DIR}.")
        return
    _display_registry_entries(registry_entries)


if __name__ == "__main__":
    cli()
