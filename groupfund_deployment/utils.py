import json
from pathlib import Path
from typing import Dict, List

import yaml
from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from groupfund_deployment.constants import ARTIFACTS_DIR


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def get_artifact_filepath(config: Dict) -> Path:
    """Returns the filepath of the artifact file."""
    artifact_config = config.get("artifacts", {})
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise ValueError("artifact filename is not set in params file.")
    return artifact_dir / filename


def validate_config(
    config: Dict, chain_id: int, live_deployment: bool, resume: bool = False
) -> Path:
    """
    Checks that the params file targets the connected chain and that the
    deployment has not already been published for its chain_id.
    """
    print("Validating parameters YAML...")

    deployment = config.get("deployment")
    if not deployment:
        raise ValueError("deployment is not set in params file.")

    config_chain_id = deployment.get("chain_id")
    if not config_chain_id:
        raise ValueError("chain_id is not set in params file.")

    contracts = config.get("contracts")
    if not contracts:
        raise ValueError("Constructor parameters file missing 'contracts' field.")

    config_chain_id = int(config_chain_id)
    if config_chain_id != chain_id and live_deployment:
        raise ValueError(
            f"chain_id in params file ({config_chain_id}) does not match "
            f"chain_id of current network ({chain_id})."
        )

    registry_filepath = get_artifact_filepath(config=config)
    if resume or not registry_filepath.exists():
        return registry_filepath

    registry_chain_ids = map(int, _load_json(registry_filepath).keys())
    if config_chain_id in registry_chain_ids:
        raise ValueError(f"Deployment is already published for chain_id {config_chain_id}.")

    return registry_filepath


def load_account_list(filepath: Path) -> List[ChecksumAddress]:
    """
    Loads an ordered list of accounts from a JSON file.

    The file holds a plain JSON array of addresses. Order and duplicates are preserved;
    a malformed entry fails the whole list before anything is sent to the network.
    """
    data = _load_json(filepath)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of addresses in {filepath}.")

    accounts = list()
    for position, value in enumerate(data):
        if not isinstance(value, str) or not is_address(value):
            raise ValueError(f"Entry #{position} in {filepath} is not an address: {value!r}")
        accounts.append(to_checksum_address(value))
    return accounts
