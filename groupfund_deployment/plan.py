import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, Optional, Set

from groupfund_deployment.exceptions import PlanError
from groupfund_deployment.params import (
    VariableContext,
    process_raw_value,
    process_raw_values,
    referenced_contracts,
)
from groupfund_deployment.utils import _load_yaml

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_TYPE_KEY = "contract_type"

TRANSFER_OWNERSHIP_KEY = "transfer_ownership"
INVOKE_KEY = "invoke"


class ContractSpec:
    """A contract to deploy: its name, contract type and constructor parameters."""

    def __init__(
        self,
        name: str,
        constructor: Optional[OrderedDict] = None,
        contract_type: Optional[str] = None,
    ):
        self.name = name
        self.constructor = constructor or OrderedDict()
        self.contract_type = contract_type or name

    @property
    def dependencies(self) -> Set[str]:
        """Names of the contracts whose addresses are constructor arguments."""
        names = set()
        for value in self.constructor.values():
            names |= referenced_contracts(value)
        return names

    def __repr__(self):
        return f"ContractSpec({self.name})"


class DeploymentStep:
    """A single step of a deployment plan."""

    @property
    def contract(self) -> str:
        raise NotImplementedError


class Deploy(DeploymentStep):
    def __init__(self, spec: ContractSpec):
        self.spec = spec

    @property
    def contract(self) -> str:
        return self.spec.name

    def __repr__(self):
        return f"Deploy({self.spec.name})"


class TransferOwnership(DeploymentStep):
    METHOD = "transferOwnership"

    def __init__(self, contract: str, new_owner: Any):
        self._contract = contract
        self.new_owner = new_owner

    @property
    def contract(self) -> str:
        return self._contract

    @property
    def method(self) -> str:
        return self.METHOD

    @property
    def args(self) -> List[Any]:
        return [self.new_owner]

    def __repr__(self):
        return f"TransferOwnership({self._contract} -> {self.new_owner!r})"


class Invoke(DeploymentStep):
    def __init__(self, contract: str, method: str, args: Optional[List[Any]] = None):
        self._contract = contract
        self.method = method
        self.args = list(args or [])

    @property
    def contract(self) -> str:
        return self._contract

    def __repr__(self):
        pretty_args = ", ".join(repr(arg) for arg in self.args)
        return f"Invoke({self._contract}.{self.method}({pretty_args}))"


WiringStep = typing.Union[TransferOwnership, Invoke]


def _sort_specs(specs: List[ContractSpec]) -> List[ContractSpec]:
    """
    Orders specs so that each appears after every spec it depends on.
    Declaration order is kept wherever the dependencies allow it.
    """
    remaining = list(specs)
    placed: Set[str] = set()
    ordered = list()
    while remaining:
        for spec in remaining:
            if spec.dependencies <= placed:
                break
        else:
            cycle = ", ".join(spec.name for spec in remaining)
            raise PlanError(f"Dependency cycle between contracts: {cycle}")
        remaining.remove(spec)
        placed.add(spec.name)
        ordered.append(spec)
    return ordered


class DeploymentPlan:
    """
    An ordered set of contracts to deploy followed by an ordered list of wiring steps.

    The plan is resolved when it is constructed: contract references are checked and
    the deploy sequence is sorted topologically, so a plan that exists is one that can
    be executed without ever referencing a contract that has not been deployed.
    """

    def __init__(self, specs: List[ContractSpec], wiring: Optional[List[WiringStep]] = None):
        self.specs = list(specs)
        self.wiring = list(wiring or [])
        self._validate()
        self.deploy_sequence = _sort_specs(self.specs)

    @property
    def contract_names(self) -> List[str]:
        return [spec.name for spec in self.specs]

    @property
    def steps(self) -> List[DeploymentStep]:
        """The full plan: every deployment in order, then every wiring step."""
        return [Deploy(spec) for spec in self.deploy_sequence] + list(self.wiring)

    def spec(self, name: str) -> ContractSpec:
        for spec in self.specs:
            if spec.name == name:
                return spec
        raise PlanError(f"No contract named '{name}' in plan.")

    def _validate(self) -> None:
        names = self.contract_names
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise PlanError(f"Contracts declared more than once: {', '.join(sorted(duplicates))}")

        for spec in self.specs:
            undeclared = spec.dependencies - set(names)
            if undeclared:
                raise PlanError(
                    f"{spec.name} depends on undeclared contracts: {', '.join(sorted(undeclared))}"
                )

        for index, step in enumerate(self.wiring):
            if not isinstance(step, (TransferOwnership, Invoke)):
                raise PlanError(f"Wiring step #{index} is not a wiring step: {step!r}")
            referenced = {step.contract} | referenced_contracts(step.args)
            undeclared = referenced - set(names)
            if undeclared:
                raise PlanError(
                    f"Wiring step #{index} ({step!r}) references undeclared contracts: "
                    f"{', '.join(sorted(undeclared))}"
                )

    @classmethod
    def from_config(cls, config: typing.Dict) -> "DeploymentPlan":
        """Builds a plan from a params file configuration."""
        print("Processing deployment plan...")
        contracts = config.get("contracts")
        if not contracts:
            raise PlanError("Deployment plan has no 'contracts'.")

        contract_names = _get_contract_names(contracts)
        constants = config.get("constants")

        specs = list()
        for contract_info in contracts:
            if isinstance(contract_info, str):
                specs.append(ContractSpec(name=contract_info))
                continue

            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            context = VariableContext(
                contract_names=contract_names, contract_name=contract_name, constants=constants
            )
            constructor = process_raw_values(
                contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or dict(), context
            )
            specs.append(
                ContractSpec(
                    name=contract_name,
                    constructor=constructor,
                    contract_type=contract_data.get(CONTRACT_TYPE_KEY),
                )
            )

        wiring = [
            _wiring_step_from_config(index, step_info, contract_names, constants)
            for index, step_info in enumerate(config.get("wiring") or [])
        ]
        return cls(specs=specs, wiring=wiring)

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentPlan":
        return cls.from_config(_load_yaml(filepath))


def _get_contract_names(contracts: List[Any]) -> List[str]:
    contract_names = list()
    for contract_info in contracts:
        if isinstance(contract_info, str):
            contract_names.append(contract_info)
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_names.extend(list(contract_info.keys()))
        else:
            raise PlanError("Malformed constructor parameters YAML.")

    return contract_names


def _wiring_step_from_config(
    index: int, step_info: Any, contract_names: List[str], constants: typing.Dict
) -> WiringStep:
    if not isinstance(step_info, dict) or len(step_info) != 1:
        raise PlanError(f"Malformed wiring step #{index}.")

    kind = list(step_info.keys())[0]  # only one entry
    step_data = step_info[kind] or dict()
    contract = step_data.get("contract")
    if not contract:
        raise PlanError(f"Wiring step #{index} has no 'contract'.")

    context = VariableContext(
        contract_names=contract_names,
        contract_name=f"wiring step #{index}",
        constants=constants,
    )
    if kind == TRANSFER_OWNERSHIP_KEY:
        if "new_owner" not in step_data:
            raise PlanError(f"Wiring step #{index} has no 'new_owner'.")
        new_owner = process_raw_value(step_data["new_owner"], context)
        return TransferOwnership(contract=contract, new_owner=new_owner)
    elif kind == INVOKE_KEY:
        method = step_data.get("method")
        if not method:
            raise PlanError(f"Wiring step #{index} has no 'method'.")
        args = process_raw_value(list(step_data.get("args") or []), context)
        return Invoke(contract=contract, method=method, args=args)

    raise PlanError(f"Unknown wiring step '{kind}' at #{index}.")
