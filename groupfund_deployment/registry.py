import json
from collections import OrderedDict, defaultdict
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from groupfund_deployment.exceptions import NotDeployed
from groupfund_deployment.utils import _load_json

ChainId = int
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(NamedTuple):
    """Represents a single contract in a registry artifact."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress
    deployer: Optional[ChecksumAddress] = None


class DeployedRegistry:
    """
    Addresses of the contracts deployed so far, keyed by contract name.

    Entries are only ever appended: an address, once recorded, is never replaced.
    """

    def __init__(
        self,
        chain_id: Optional[ChainId] = None,
        deployer: Optional[ChecksumAddress] = None,
        addresses: Optional[Dict[ContractName, str]] = None,
    ):
        self.chain_id = chain_id
        self.deployer = deployer
        self._addresses: "OrderedDict[ContractName, ChecksumAddress]" = OrderedDict()
        for name, address in (addresses or {}).items():
            self.add(name, address)

    def add(self, name: ContractName, address: str) -> ChecksumAddress:
        if name in self._addresses:
            raise ValueError(
                f"{name} is already registered at {self._addresses[name]}; "
                "registry entries cannot be replaced."
            )
        checksum_address = to_checksum_address(address)
        self._addresses[name] = checksum_address
        return checksum_address

    def address_of(self, name: ContractName) -> ChecksumAddress:
        try:
            return self._addresses[name]
        except KeyError:
            raise NotDeployed(name)

    def names(self) -> List[ContractName]:
        return list(self._addresses)

    def as_dict(self) -> Dict[ContractName, ChecksumAddress]:
        return dict(self._addresses)

    def entries(self) -> List[RegistryEntry]:
        return [
            RegistryEntry(
                chain_id=self.chain_id, name=name, address=address, deployer=self.deployer
            )
            for name, address in self._addresses.items()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._addresses

    def __iter__(self) -> Iterator[ContractName]:
        return iter(self._addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def __repr__(self):
        return f"DeployedRegistry(chain_id={self.chain_id}, {dict(self._addresses)})"


def read_registry(filepath: Path) -> List[RegistryEntry]:
    data = _load_json(filepath)
    registry_entries = list()
    for chain_id, entries in data.items():
        for contract_name, artifacts in entries.items():
            registry_entry = RegistryEntry(
                chain_id=int(chain_id),
                name=contract_name,
                address=artifacts["address"],
                deployer=artifacts.get("deployer"),
            )
            registry_entries.append(registry_entry)
    return registry_entries


def write_registry(
    entries: List[RegistryEntry], filepath: Path, silent: bool = False, replace: bool = False
) -> Path:
    """
    Writes a contract registry artifact to a file.

    Entries for other chains already in the file are kept. Entries for a chain that is
    already present are only overwritten when `replace` is set (e.g. when completing a
    resumed deployment), otherwise they are written to a separate `.unmerged.json` file.
    """

    if not entries:
        print("No entries provided.")
        return filepath

    # Sort registry entries to enforce common order
    entries = sorted(entries, key=lambda entry: (str(entry.chain_id), entry.name))

    data = defaultdict(dict)
    for entry in entries:
        data[str(entry.chain_id)][entry.name] = {
            "address": entry.address,
            "deployer": entry.deployer,
        }

    # Create the parent directory if it does not exist
    filepath.parent.mkdir(parents=True, exist_ok=True)

    # If the file already exists, attempt to merge the data, if not create a new file
    if filepath.exists():
        if not silent:
            print(f"Updating existing registry at {filepath}.")
        existing_data = _load_json(filepath)

        if not replace and any(chain_id in existing_data for chain_id in data):
            filepath = filepath.with_suffix(".unmerged.json")
            if not silent:
                print(
                    "Cannot merge registries with overlapping chain IDs.\n"
                    f"Writing to {filepath} to avoid overwriting existing data."
                )
        else:
            existing_data.update(data)
            data = existing_data
    elif not silent:
        print(f"Creating new registry at {filepath}.")

    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)

    return filepath


def registry_from_file(filepath: Path, chain_id: ChainId) -> DeployedRegistry:
    """Seeds a registry with the addresses recorded for one chain in a registry artifact."""
    registry = DeployedRegistry(chain_id=chain_id)
    for entry in read_registry(filepath=filepath):
        if entry.chain_id != chain_id:
            continue
        registry.add(entry.name, entry.address)
        registry.deployer = registry.deployer or entry.deployer
    return registry


def write_deployed_registry(
    registry: DeployedRegistry, output_filepath: Path, replace: bool = False
) -> Path:
    """Publishes the addresses of a deployment run to a registry artifact."""
    output_filepath = write_registry(
        entries=registry.entries(), filepath=output_filepath, replace=replace
    )
    print(f"(i) Registry written to {output_filepath}!")
    return output_filepath
