"""Tokenized vault accounting (ERC-4626)

Shares are an ERC-20 ledger kept by the vault itself. Conversions use a
virtual share and a virtual asset so the first depositor cannot inflate the
share price:

    shares = assets * (total_supply + 1) / (total_assets + 1)
    assets = shares * (total_assets + 1) / (total_supply + 1)

Rounding always favours the vault: shares handed out and assets paid out
round down, assets charged and shares burned round up.
"""

from typing import Dict
from enum import Enum

from ..engine import SmartContract
from ..constants import ZERO_ADDRESS
from ..errors import (
    ZeroAmount,
    DepositMoreThanMax,
    MintMoreThanMax,
    WithdrawMoreThanMax,
    RedeemMoreThanMax,
    ERC20InsufficientBalance,
    ERC20InsufficientAllowance,
    ERC20InvalidReceiver
)


class Rounding(Enum):
    FLOOR = "floor"
    CEIL = "ceil"


def mul_div(x: int, y: int, denominator: int, rounding: Rounding = Rounding.FLOOR) -> int:
    """x * y / denominator with explicit rounding"""
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")

    result, remainder = divmod(x * y, denominator)
    if rounding is Rounding.CEIL and remainder:
        result += 1
    return result


class ERC4626(SmartContract):
    """Share ledger, conversions and the four entry points.

    Subclasses report ``total_assets`` and move the underlying through the
    ``_deposit``, ``_mint_shares``, ``_withdraw`` and ``_redeem`` hooks.
    """

    def _init_erc4626(self, asset: str, name: str, symbol: str, decimals: int):
        self._asset = asset
        self._name = name
        self._symbol = symbol
        self._decimals = decimals

        self._total_supply = 0
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[str, Dict[str, int]] = {}

    # Share token

    def name(self) -> str:
        return self._name

    def symbol(self) -> str:
        return self._symbol

    def decimals(self) -> int:
        return self._decimals

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def approve(self, spender: str, amount: int) -> bool:
        self._approve(self._get_caller(), spender, amount)
        return True

    def transfer(self, to: str, amount: int) -> bool:
        self._transfer(self._get_caller(), to, amount)
        return True

    def transfer_from(self, from_address: str, to: str, amount: int) -> bool:
        self._spend_allowance(from_address, self._get_caller(), amount)
        self._transfer(from_address, to, amount)
        return True

    def _approve(self, owner: str, spender: str, amount: int):
        self.allowances.setdefault(owner, {})[spender] = amount
        self._emit_event('Approval', {'owner': owner, 'spender': spender, 'amount': amount})

    def _spend_allowance(self, owner: str, spender: str, amount: int):
        if owner == spender:
            return

        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise ERC20InsufficientAllowance(spender, allowed, amount)
        self.allowances[owner][spender] = allowed - amount

    def _transfer(self, from_address: str, to: str, amount: int):
        if to == ZERO_ADDRESS:
            raise ERC20InvalidReceiver(to)

        balance = self.balance_of(from_address)
        if balance < amount:
            raise ERC20InsufficientBalance(from_address, balance, amount)

        self.balances[from_address] = balance - amount
        self.balances[to] = self.balances.get(to, 0) + amount
        self._emit_event('Transfer', {'from': from_address, 'to': to, 'amount': amount})

    def _mint(self, account: str, amount: int):
        if account == ZERO_ADDRESS:
            raise ERC20InvalidReceiver(account)

        self._total_supply += amount
        self.balances[account] = self.balances.get(account, 0) + amount
        self._emit_event('Transfer', {'from': ZERO_ADDRESS, 'to': account, 'amount': amount})

    def _burn(self, account: str, amount: int):
        balance = self.balance_of(account)
        if balance < amount:
            raise ERC20InsufficientBalance(account, balance, amount)

        self.balances[account] = balance - amount
        self._total_supply -= amount
        self._emit_event('Transfer', {'from': account, 'to': ZERO_ADDRESS, 'amount': amount})

    # Accounting

    def asset(self) -> str:
        return self._asset

    def total_assets(self) -> int:
        raise NotImplementedError

    def convert_to_shares(self, assets: int) -> int:
        return self._convert_to_shares(assets, Rounding.FLOOR)

    def convert_to_assets(self, shares: int) -> int:
        return self._convert_to_assets(shares, Rounding.FLOOR)

    def _convert_to_shares(self, assets: int, rounding: Rounding) -> int:
        return self._convert_to_shares_with_totals(assets, self._total_supply, self.total_assets(), rounding)

    def _convert_to_assets(self, shares: int, rounding: Rounding) -> int:
        return mul_div(shares, self.total_assets() + 1, self._total_supply + 1, rounding)

    @staticmethod
    def _convert_to_shares_with_totals(assets: int, total_supply: int, total_assets: int,
                                       rounding: Rounding) -> int:
        return mul_div(assets, total_supply + 1, total_assets + 1, rounding)

    def preview_deposit(self, assets: int) -> int:
        return self._convert_to_shares(assets, Rounding.FLOOR)

    def preview_mint(self, shares: int) -> int:
        return self._convert_to_assets(shares, Rounding.CEIL)

    def preview_withdraw(self, assets: int) -> int:
        return self._convert_to_shares(assets, Rounding.CEIL)

    def preview_redeem(self, shares: int) -> int:
        return self._convert_to_assets(shares, Rounding.FLOOR)

    def max_deposit(self, receiver: str) -> int:
        raise NotImplementedError

    def max_mint(self, receiver: str) -> int:
        raise NotImplementedError

    def max_withdraw(self, owner: str) -> int:
        raise NotImplementedError

    def max_redeem(self, owner: str) -> int:
        raise NotImplementedError

    # Entry points

    def deposit(self, assets: int, receiver: str) -> int:
        """Supply exactly `assets`, receive shares"""
        if assets == 0:
            raise ZeroAmount("deposit")

        max_assets = self.max_deposit(receiver)
        if assets > max_assets:
            raise DepositMoreThanMax(assets, max_assets)

        if self.preview_deposit(assets) == 0:
            raise ZeroAmount("deposit")

        return self._deposit(self._get_caller(), receiver, assets)

    def mint(self, shares: int, receiver: str) -> int:
        """Receive exactly `shares`, paying what they cost rounded up"""
        if shares == 0:
            raise ZeroAmount("mint")

        max_shares = self.max_mint(receiver)
        if shares > max_shares:
            raise MintMoreThanMax(shares, max_shares)

        assets = self.preview_mint(shares)
        return self._mint_shares(self._get_caller(), receiver, assets, shares)

    def withdraw(self, assets: int, receiver: str, owner: str) -> int:
        """Pay out exactly `assets`, burning shares rounded up"""
        if assets == 0:
            raise ZeroAmount("withdraw")

        max_assets = self.max_withdraw(owner)
        if assets > max_assets:
            raise WithdrawMoreThanMax(assets, max_assets)

        shares = self.preview_withdraw(assets)
        self._withdraw(self._get_caller(), receiver, owner, assets, shares)
        return shares

    def redeem(self, shares: int, receiver: str, owner: str) -> int:
        """Burn exactly `shares`, paying out their value rounded down"""
        if shares == 0:
            raise ZeroAmount("redeem")

        max_shares = self.max_redeem(owner)
        if shares > max_shares:
            raise RedeemMoreThanMax(shares, max_shares)

        assets = self.preview_redeem(shares)
        if assets == 0:
            raise ZeroAmount("redeem")

        return self._redeem(self._get_caller(), receiver, owner, assets, shares)

    def _deposit(self, caller: str, receiver: str, assets: int) -> int:
        raise NotImplementedError

    def _mint_shares(self, caller: str, receiver: str, assets: int, shares: int) -> int:
        raise NotImplementedError

    def _withdraw(self, caller: str, receiver: str, owner: str, assets: int, shares: int):
        raise NotImplementedError

    def _redeem(self, caller: str, receiver: str, owner: str, assets: int, shares: int) -> int:
        raise NotImplementedError
