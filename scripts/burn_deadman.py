#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from groupfund_deployment.ape_adapter import ApeChainClient, check_plugins
from groupfund_deployment.batch import Outcome
from groupfund_deployment.confirm import _continue
from groupfund_deployment.constants import CONTROL_TOKEN, GROUP_FUND
from groupfund_deployment.deadman import burn_deadmen, print_summary
from groupfund_deployment.exceptions import NotDeployed
from groupfund_deployment.options import (
    accounts_file_option,
    auto_option,
    fund_option,
    registry_option,
    threshold_option,
    token_option,
)
from groupfund_deployment.registry import registry_from_file
from groupfund_deployment.utils import load_account_list


@click.command(cls=ConnectedProviderCommand, name="burn-deadman")
@account_option()
@network_option(required=True)
@accounts_file_option
@registry_option
@fund_option
@token_option
@threshold_option
@auto_option
def cli(network, account, accounts_file, registry_filepath, fund, token, threshold, auto):
    """
    Burn the stake of inactive accounts on a deployed GroupFund.

    Accounts holding less than the threshold of ControlToken are skipped,
    so the same list can safely be processed again.
    """
    check_plugins()
    click.echo(f"Connected to {network.name} network.")
    client = ApeChainClient(account=account, autosign=auto)

    if fund is None or token is None:
        if registry_filepath is None:
            raise click.UsageError("Either --registry or both --fund and --token are required.")
        registry = registry_from_file(registry_filepath, chain_id=client.chain_id)
        try:
            fund = fund or registry.address_of(GROUP_FUND)
            token = token or registry.address_of(CONTROL_TOKEN)
        except NotDeployed as e:
            raise click.UsageError(f"{e} on chain_id {client.chain_id} ({registry_filepath})")
    client.bind(fund, GROUP_FUND)
    client.bind(token, CONTROL_TOKEN)

    deadmen = load_account_list(accounts_file)
    click.echo(f"{GROUP_FUND}: {fund}\n{CONTROL_TOKEN}: {token}\nAccounts: {len(deadmen)}")
    if not auto and not _continue():
        raise click.Abort()

    results, summary = burn_deadmen(
        client=client,
        fund_address=fund,
        token_address=token,
        accounts=deadmen,
        threshold=threshold,
    )
    print_summary(summary, total=len(deadmen))
    for result in results:
        if result.outcome == Outcome.FAILED:
            click.secho(f"x {result.item}: {result.error}", fg="red")


if __name__ == "__main__":
    cli()
