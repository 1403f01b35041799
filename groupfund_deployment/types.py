from decimal import Decimal, InvalidOperation

import click
from eth_utils import to_checksum_address
from web3 import Web3


class MinInt(click.ParamType):
    name = "minint"

    def __init__(self, min_value):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        try:
            ivalue = int(value)
        except ValueError:
            self.fail(f"{value} is not a valid integer", param, ctx)
        if ivalue < self.min_value:
            self.fail(
                f"{value} is less than the minimum allowed value of {self.min_value}", param, ctx
            )
        return ivalue


class ChecksumAddress(click.ParamType):
    name = "checksum_address"

    def convert(self, value, param, ctx):
        try:
            value = to_checksum_address(value=value)
        except ValueError:
            self.fail(f"{value} is not a valid ethereum address", param, ctx)
        else:
            return value


class WholeUnits(click.ParamType):
    """A non-negative decimal number of whole token units, converted to base units."""

    name = "whole_units"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            self.fail(f"{value} is not a valid amount", param, ctx)
        if amount < 0:
            self.fail(f"{value} is negative", param, ctx)
        return Web3.to_wei(amount, "ether")
