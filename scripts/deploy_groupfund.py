#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from groupfund_deployment.ape_adapter import (
    ApeChainClient,
    check_plugins,
    validate_constructor_parameters,
    verify_contracts,
)
from groupfund_deployment.confirm import _continue
from groupfund_deployment.options import (
    auto_option,
    params_option,
    registry_option,
    verify_option,
    wiring_start_option,
)
from groupfund_deployment.orchestrator import Orchestrator, Stage
from groupfund_deployment.plan import DeploymentPlan
from groupfund_deployment.registry import registry_from_file, write_deployed_registry
from groupfund_deployment.utils import _load_yaml, validate_config


@click.command(cls=ConnectedProviderCommand, name="deploy-groupfund")
@account_option()
@network_option(required=True)
@params_option
@registry_option
@wiring_start_option
@verify_option
@auto_option
def cli(network, account, params_filepath, registry_filepath, wiring_start, verify, auto):
    """
    Deploy the GroupFund contracts described by a params file, then wire them together.

    A failed run leaves its registry artifact behind; run again with --registry
    (and --wiring-start for a failed wiring phase) to resume it.

    ape run deploy_groupfund --network ethereum:sepolia:infura -p <params.yml>
    """
    check_plugins()
    click.echo(f"Connected to {network.name} network.")

    client = ApeChainClient(account=account, autosign=auto, publish=False)
    resume = registry_filepath is not None

    config = _load_yaml(params_filepath)
    artifact_filepath = validate_config(
        config=config,
        chain_id=client.chain_id,
        live_deployment=not client.is_local,
        resume=resume,
    )
    plan = DeploymentPlan.from_config(config)

    registry = None
    if resume:
        registry = registry_from_file(registry_filepath, chain_id=client.chain_id)
        client.bind_registry(registry, {spec.name: spec.contract_type for spec in plan.specs})
        click.echo(f"Resuming with {len(registry)} deployed contracts from {registry_filepath}.")
    validate_constructor_parameters(plan, registry)

    click.echo(
        "\n".join(
            [
                f"Account: {client.deployer_address}",
                f"Config: {params_filepath}",
                f"Registry: {artifact_filepath}",
                f"Verify: {verify}",
                f"Chain ID: {client.chain_id}",
                f"Deploy: {', '.join(spec.name for spec in plan.deploy_sequence)}",
                f"Wiring: {len(plan.wiring)} steps, starting at #{wiring_start}",
            ]
        )
    )
    if not auto and not _continue():
        raise click.Abort()

    orchestrator = Orchestrator(client=client, interactive=not auto)
    result = orchestrator.run(plan, registry=registry, wiring_start=wiring_start)
    artifact_filepath = write_deployed_registry(
        result.registry, output_filepath=artifact_filepath, replace=resume
    )

    if not result.complete:
        click.secho(
            f"Deployment failed while {result.failed_stage.value}: {result.error}", fg="red"
        )
        if result.registry:
            resume_hint = f"--registry {artifact_filepath}"
            if result.failed_stage == Stage.WIRING:
                resume_hint += f" --wiring-start {result.next_wiring_step}"
            click.secho(f"Resume with: {resume_hint}", fg="yellow")
        raise click.Abort()

    if verify:
        verify_contracts(result.registry.as_dict())


if __name__ == "__main__":
    cli()
