import threading
from enum import Enum
from typing import List, NamedTuple, Optional

from groupfund_deployment.chain import ChainClient
from groupfund_deployment.confirm import _confirm_resolution, _continue
from groupfund_deployment.exceptions import (
    Cancelled,
    DeployError,
    GroupFundDeploymentError,
    NotDeployed,
    PlanError,
    TxError,
    WireError,
)
from groupfund_deployment.params import resolve_args, resolve_params
from groupfund_deployment.plan import ContractSpec, DeploymentPlan, WiringStep
from groupfund_deployment.registry import DeployedRegistry


class Stage(Enum):
    PLANNED = "planned"
    DEPLOYING = "deploying"
    WIRING = "wiring"
    COMPLETE = "complete"
    FAILED = "failed"


class OrchestrationResult(NamedTuple):
    """Outcome of a deployment run."""

    stage: Stage
    registry: DeployedRegistry
    failed_stage: Optional[Stage] = None
    error: Optional[GroupFundDeploymentError] = None
    next_wiring_step: int = 0

    @property
    def complete(self) -> bool:
        return self.stage == Stage.COMPLETE


class Orchestrator:
    """
    Deploys the contracts of a plan in dependency order, then runs its wiring steps.

    In interactive mode each deployment and transaction is confirmed before it is sent. There is
    no retry: a failed run is resumed by passing the registry it left behind (and, for
    a failed wiring phase, the index of the failed step) to a new run.
    """

    def __init__(
        self,
        client: ChainClient,
        interactive: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.client = client
        self.interactive = interactive
        self.cancel_event = cancel_event or threading.Event()
        self.stage = Stage.PLANNED
        self.next_wiring_step = 0

    def cancel(self) -> None:
        """Requests the run to stop before its next step; a sent transaction is never aborted."""
        self.cancel_event.set()

    def _checkpoint(self, upcoming: str) -> None:
        if self.cancel_event.is_set():
            raise Cancelled(f"Cancelled before {upcoming}")

    def _prepare_registry(self, registry: Optional[DeployedRegistry]) -> DeployedRegistry:
        if registry is None:
            return DeployedRegistry(
                chain_id=self.client.chain_id, deployer=self.client.deployer_address
            )
        if registry.chain_id is not None and registry.chain_id != self.client.chain_id:
            raise PlanError(
                f"Registry for chain_id {registry.chain_id} cannot be used "
                f"on chain_id {self.client.chain_id}."
            )
        registry.chain_id = self.client.chain_id
        if registry.deployer is None:
            registry.deployer = self.client.deployer_address
        return registry

    def deploy_all(
        self, plan: DeploymentPlan, registry: Optional[DeployedRegistry] = None
    ) -> DeployedRegistry:
        """
        Deploys every contract of the plan that is not in the registry yet.

        Raises `DeployError` for the first contract that cannot be deployed;
        nothing after it is deployed.
        """
        registry = self._prepare_registry(registry)
        self.stage = Stage.DEPLOYING
        for spec in plan.deploy_sequence:
            if spec.name in registry:
                print(f"(i) Reusing {spec.name} at {registry.address_of(spec.name)}")
                continue
            self._checkpoint(f"deploying {spec.name}")
            self._deploy(spec, registry)
        return registry

    def _deploy(self, spec: ContractSpec, registry: DeployedRegistry) -> None:
        try:
            resolved_params = resolve_params(spec.constructor, registry)
        except NotDeployed as e:
            raise DeployError(spec.name, e) from e

        if self.interactive and not _confirm_resolution(resolved_params, spec.name):
            raise Cancelled(f"Deployment of {spec.name} declined")

        print(f"\nDeploying {spec.name}...")
        try:
            address = self.client.deploy_contract(
                spec.contract_type, list(resolved_params.values())
            )
        except TxError as e:
            raise DeployError(spec.name, e) from e

        address = registry.add(spec.name, address)
        print(f"(i) {spec.name} deployed to {address}")

    def wire(self, registry: DeployedRegistry, steps: List[WiringStep], start: int = 0) -> None:
        """
        Runs wiring steps in order, starting at index `start`.

        Raises `WireError` for the first step that fails; the steps after it are
        never attempted.
        """
        self.stage = Stage.WIRING
        self.next_wiring_step = start
        for index, step in enumerate(steps):
            if index < start:
                continue
            self._checkpoint(f"wiring step #{index} ({step!r})")
            self._wire(index, step, registry)
            self.next_wiring_step = index + 1

    def _wire(self, index: int, step: WiringStep, registry: DeployedRegistry) -> None:
        try:
            address = registry.address_of(step.contract)
            args = resolve_args(step.args, registry)
        except NotDeployed as e:
            raise WireError(index, step, e) from e

        base_message = f"\nTransacting {step.contract}[{address[:10]}].{step.method}"
        if args:
            pretty_args = "\n\t".join(str(arg) for arg in args)
            print(f"{base_message} with arguments:\n\t{pretty_args}")
        else:
            print(f"{base_message} with no arguments")
        if self.interactive and not _continue():
            raise Cancelled(f"Wiring step #{index} declined")

        try:
            self.client.send_transaction(address, step.method, args)
        except TxError as e:
            raise WireError(index, step, e) from e

    @staticmethod
    def _check_wiring_start(
        plan: DeploymentPlan, registry: DeployedRegistry, wiring_start: int
    ) -> None:
        """
        Wiring can only be resumed past its first step when every contract was
        deployed (and partly wired) by an earlier run.
        """
        if wiring_start < 0 or wiring_start > len(plan.wiring):
            raise PlanError(
                f"Wiring start #{wiring_start} is out of range for {len(plan.wiring)} wiring steps."
            )
        if wiring_start == 0:
            return
        missing = [name for name in plan.contract_names if name not in registry]
        if missing:
            raise PlanError(
                f"Cannot start wiring at step #{wiring_start}: "
                f"{', '.join(missing)} would be deployed by this run and never wired."
            )

    def run(
        self,
        plan: DeploymentPlan,
        registry: Optional[DeployedRegistry] = None,
        wiring_start: int = 0,
    ) -> OrchestrationResult:
        """Runs a full deployment: every contract, then every wiring step."""
        registry = self._prepare_registry(registry)
        self._check_wiring_start(plan, registry, wiring_start)
        self.next_wiring_step = wiring_start
        try:
            self.deploy_all(plan, registry)
            self.wire(registry, plan.wiring, start=wiring_start)
        except (DeployError, WireError, Cancelled) as e:
            failed_stage = self.stage
            self.stage = Stage.FAILED
            print(f"(!) Deployment failed while {failed_stage.value}: {e}")
            return OrchestrationResult(
                stage=Stage.FAILED,
                registry=registry,
                failed_stage=failed_stage,
                error=e,
                next_wiring_step=self.next_wiring_step,
            )

        self.stage = Stage.COMPLETE
        print(f"(i) Deployment complete: {len(registry)} contracts, {len(plan.wiring)} wiring steps")
        return OrchestrationResult(
            stage=Stage.COMPLETE, registry=registry, next_wiring_step=self.next_wiring_step
        )
