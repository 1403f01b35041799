from pathlib import Path

import click

from groupfund_deployment.constants import DEADMAN_THRESHOLD
from groupfund_deployment.types import ChecksumAddress, MinInt, WholeUnits

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help="Deployment parameters YAML file.",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
)

registry_option = click.option(
    "--registry",
    "-r",
    "registry_filepath",
    help="Registry artifact (JSON) holding already deployed contracts.",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)

wiring_start_option = click.option(
    "--wiring-start",
    "-w",
    help="Index of the first wiring step to run (resumes a failed wiring phase).",
    type=MinInt(0),
    default=0,
)

verify_option = click.option(
    "--verify/--no-verify",
    help="Publish the deployed contracts to the block explorer.",
    default=False,
)

auto_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

accounts_file_option = click.option(
    "--accounts-file",
    "-a",
    help="JSON file holding the list of accounts to process.",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
)

threshold_option = click.option(
    "--threshold",
    "-t",
    help="Minimum balance, in whole units, for an account to be processed.",
    type=WholeUnits(),
    default=DEADMAN_THRESHOLD,
    show_default="1",
)

fund_option = click.option(
    "--fund",
    help="Address of the GroupFund contract (looked up in the registry if omitted).",
    type=ChecksumAddress(),
)

token_option = click.option(
    "--token",
    help="Address of the ControlToken contract (looked up in the registry if omitted).",
    type=ChecksumAddress(),
)
