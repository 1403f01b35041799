import pytest
from eth_utils import to_checksum_address

from groupfund_deployment.exceptions import Cancelled, DeployError, PlanError, WireError
from groupfund_deployment.orchestrator import Orchestrator, Stage
from groupfund_deployment.plan import DeploymentPlan
from groupfund_deployment.registry import DeployedRegistry
from tests.conftest import DEPLOY, DEPLOYER, SEND, FakeChainClient

ETHER_DELTA = to_checksum_address("0x4e10d1807608994489355d873edb6dc09b151776")


@pytest.fixture
def plan(groupfund_config):
    return DeploymentPlan.from_config(groupfund_config)


def test_deploy_and_wire_groupfund(client, plan):
    orchestrator = Orchestrator(client)
    result = orchestrator.run(plan)

    assert result.complete
    assert result.stage == Stage.COMPLETE
    assert orchestrator.stage == Stage.COMPLETE
    assert result.error is None

    registry = result.registry
    assert registry.names() == ["ControlToken", "OraclizeHandler", "GroupFund"]
    assert registry.chain_id == client.chain_id
    token = registry.address_of("ControlToken")
    handler = registry.address_of("OraclizeHandler")
    fund = registry.address_of("GroupFund")
    assert len({token, handler, fund}) == 3
    assert set(client.deployed) == {token, handler, fund}

    assert client.calls == [
        (DEPLOY, "ControlToken", []),
        (DEPLOY, "OraclizeHandler", [ETHER_DELTA]),
        (DEPLOY, "GroupFund", [token, handler, DEPLOYER, 10**16, 20]),
        (SEND, token, "transferOwnership", [fund]),
        (SEND, handler, "transferOwnership", [fund]),
        (SEND, fund, "initializeSubcontracts", [token, handler]),
    ]


def test_substituted_addresses_exist_when_used(plan):
    class CheckingClient(FakeChainClient):
        def deploy_contract(self, contract_type, args):
            for arg in args:
                if isinstance(arg, str) and arg not in (DEPLOYER, ETHER_DELTA):
                    assert arg in self.deployed
            return super().deploy_contract(contract_type, args)

    client = CheckingClient()
    result = Orchestrator(client).run(plan)
    assert result.complete
    assert len(result.registry) == len(plan.specs)
    assert set(result.registry.as_dict().values()) == set(client.deployed)


def test_deployment_failure_halts_the_run(client, plan):
    client.failing_deployments.add("OraclizeHandler")

    result = Orchestrator(client).run(plan)

    assert not result.complete
    assert result.stage == Stage.FAILED
    assert result.failed_stage == Stage.DEPLOYING
    assert isinstance(result.error, DeployError)
    assert result.error.contract_name == "OraclizeHandler"
    assert result.registry.names() == ["ControlToken"]
    assert [call[1] for call in client.calls] == ["ControlToken", "OraclizeHandler"]
    assert client.calls_of(SEND) == []


def test_deploy_all_raises(client, plan):
    client.failing_deployments.add("ControlToken")
    orchestrator = Orchestrator(client)
    with pytest.raises(DeployError) as error:
        orchestrator.deploy_all(plan)
    assert error.value.contract_name == "ControlToken"
    assert len(client.calls) == 1


def test_wiring_failure_halts_remaining_steps(client, plan):
    registry = Orchestrator(client).deploy_all(plan)
    handler = registry.address_of("OraclizeHandler")
    client.failing_transactions.add((handler, "transferOwnership"))
    client.calls.clear()

    orchestrator = Orchestrator(client)
    with pytest.raises(WireError) as error:
        orchestrator.wire(registry, plan.wiring)

    assert error.value.index == 1
    assert error.value.step is plan.wiring[1]
    assert [call[2] for call in client.calls] == ["transferOwnership", "transferOwnership"]
    assert orchestrator.next_wiring_step == 1


def test_failed_wiring_is_resumed_from_registry(client, plan):
    client.failing_transactions.add("initializeSubcontracts")

    first = Orchestrator(client).run(plan)
    assert first.failed_stage == Stage.WIRING
    assert isinstance(first.error, WireError)
    assert first.error.index == 2
    assert first.next_wiring_step == 2
    assert len(first.registry) == 3

    client.failing_transactions.clear()
    client.calls.clear()
    second = Orchestrator(client).run(plan, registry=first.registry, wiring_start=2)

    assert second.complete
    assert client.calls_of(DEPLOY) == []
    assert [call[2] for call in client.calls] == ["initializeSubcontracts"]


def test_wiring_start_requires_every_contract_deployed(client, plan):
    with pytest.raises(PlanError, match="never wired"):
        Orchestrator(client).run(plan, wiring_start=2)
    assert client.calls == []


def test_wiring_start_with_partial_registry_is_refused(client, plan):
    token = "0x" + "70" * 20
    seeded = DeployedRegistry(chain_id=client.chain_id, addresses={"ControlToken": token})

    with pytest.raises(PlanError, match="OraclizeHandler, GroupFund"):
        Orchestrator(client).run(plan, registry=seeded, wiring_start=1)
    assert client.calls == []


def test_wiring_start_out_of_range(client, plan):
    registry = Orchestrator(client).deploy_all(plan)
    client.calls.clear()

    with pytest.raises(PlanError, match="out of range"):
        Orchestrator(client).run(plan, registry=registry, wiring_start=len(plan.wiring) + 1)
    assert client.calls == []


def test_wiring_start_past_last_step_completes_without_transactions(client, plan):
    registry = Orchestrator(client).deploy_all(plan)
    client.calls.clear()

    result = Orchestrator(client).run(plan, registry=registry, wiring_start=len(plan.wiring))

    assert result.complete
    assert client.calls == []


def test_seeded_registry_skips_deployed_contracts(client, plan):
    token = "0x" + "70" * 20
    seeded = DeployedRegistry(chain_id=client.chain_id, addresses={"ControlToken": token})

    result = Orchestrator(client).run(plan, registry=seeded)

    assert result.complete
    assert result.registry is seeded
    assert seeded.deployer == DEPLOYER
    assert [call[1] for call in client.calls_of(DEPLOY)] == ["OraclizeHandler", "GroupFund"]
    assert client.calls_of(DEPLOY)[1][2][0] == seeded.address_of("ControlToken")


def test_registry_from_another_chain_is_refused(client, plan):
    seeded = DeployedRegistry(chain_id=1)
    with pytest.raises(PlanError, match="chain_id"):
        Orchestrator(client).run(plan, registry=seeded)
    assert client.calls == []


def test_cancelled_before_start(client, plan):
    orchestrator = Orchestrator(client)
    orchestrator.cancel()

    result = orchestrator.run(plan)

    assert result.failed_stage == Stage.DEPLOYING
    assert isinstance(result.error, Cancelled)
    assert client.calls == []
    assert len(result.registry) == 0


def test_cancellation_waits_for_step_boundary(plan):
    orchestrator = None

    class CancellingClient(FakeChainClient):
        def send_transaction(self, address, method, args):
            receipt = super().send_transaction(address, method, args)
            orchestrator.cancel()
            return receipt

    client = CancellingClient()
    orchestrator = Orchestrator(client)
    result = orchestrator.run(plan)

    assert result.failed_stage == Stage.WIRING
    assert isinstance(result.error, Cancelled)
    assert len(result.registry) == 3
    assert len(client.calls_of(SEND)) == 1
    assert result.next_wiring_step == 1


def test_declined_deployment_cancels(client, plan, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    result = Orchestrator(client, interactive=True).run(plan)

    assert isinstance(result.error, Cancelled)
    assert client.calls == []


def test_interactive_deployment(client, plan, monkeypatch):
    prompts = list()

    def answer(prompt):
        prompts.append(prompt)
        return "y"

    monkeypatch.setattr("builtins.input", answer)

    result = Orchestrator(client, interactive=True).run(plan)

    assert result.complete
    assert prompts[:3] == [
        "Deploy ControlToken Y/N? ",
        "Deploy OraclizeHandler Y/N? ",
        "Deploy GroupFund Y/N? ",
    ]
    assert prompts[3:] == ["Continue Y/N? "] * 3


def test_zero_address_parameter_needs_confirmation(monkeypatch):
    config = {
        "contracts": [
            {"GroupFund": {"constructor": {"_etherDeltaAddr": "$deployer"}}},
        ]
    }
    client = FakeChainClient(deployer=None)
    answers = iter(["y", "n"])
    monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

    result = Orchestrator(client, interactive=True).run(DeploymentPlan.from_config(config))

    assert isinstance(result.error, Cancelled)
    assert client.calls == []
