"""Lending market token (vToken)

Supplying underlying mints vTokens at the stored exchange rate; redeeming
burns them. Failures are reported as error codes, never raised, so callers
have to check every return value.
"""

from typing import Dict
from enum import IntEnum
import logging

from ..engine import SmartContract
from ..constants import EXP_SCALE, DEFAULT_EXCHANGE_RATE
from ..errors import OwnableUnauthorizedAccount, InvalidExchangeRate

logger = logging.getLogger(__name__)


class VTokenError(IntEnum):
    """Error codes returned by mint / redeem / redeem_underlying"""
    NO_ERROR = 0
    COMPTROLLER_REJECTION = 1
    TOKEN_TRANSFER_IN_FAILED = 2
    TOKEN_TRANSFER_OUT_FAILED = 3
    TOKEN_INSUFFICIENT_CASH = 4
    INSUFFICIENT_BALANCE = 5
    INVALID_AMOUNT = 6


class VToken(SmartContract):
    """Simulated money market for a single underlying token"""

    def __init__(self, underlying: str, comptroller: str, name: str, symbol: str,
                 admin: str, exchange_rate: int = DEFAULT_EXCHANGE_RATE, decimals: int = 8):
        super().__init__()

        if exchange_rate <= 0:
            raise InvalidExchangeRate(exchange_rate)

        self._underlying = underlying
        self._comptroller = comptroller
        self._name = name
        self._symbol = symbol
        self._decimals = decimals
        self.admin = admin

        self.exchange_rate = exchange_rate
        self.balances: Dict[str, int] = {}
        self._total_supply = 0

    # Views

    def underlying(self) -> str:
        return self._underlying

    def comptroller(self) -> str:
        return self._comptroller

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

    def balance_of_underlying(self, account: str) -> int:
        return self.balance_of(account) * self.exchange_rate // EXP_SCALE

    def exchange_rate_stored(self) -> int:
        return self.exchange_rate

    def get_cash(self) -> int:
        """Underlying held by the market and available for redemption"""
        return self._call(self._underlying, 'balance_of', self.address)

    # Supply side

    def mint(self, mint_amount: int) -> int:
        """Supply underlying and receive vTokens at the stored rate"""
        minter = self._get_caller()

        if mint_amount <= 0:
            return VTokenError.INVALID_AMOUNT

        allowed = self._call(self._comptroller, 'mint_allowed', self.address, minter, mint_amount)
        if allowed != 0:
            return VTokenError.COMPTROLLER_REJECTION

        if not self._call(self._underlying, 'transfer_from', minter, self.address, mint_amount):
            return VTokenError.TOKEN_TRANSFER_IN_FAILED

        mint_tokens = mint_amount * EXP_SCALE // self.exchange_rate
        self.balances[minter] = self.balances.get(minter, 0) + mint_tokens
        self._total_supply += mint_tokens

        self._emit_event('Mint', {
            'minter': minter,
            'mint_amount': mint_amount,
            'mint_tokens': mint_tokens
        })
        return VTokenError.NO_ERROR

    def redeem(self, redeem_tokens: int) -> int:
        """Burn vTokens for the underlying they are worth, rounded down"""
        redeem_amount = redeem_tokens * self.exchange_rate // EXP_SCALE
        return self._redeem_fresh(self._get_caller(), redeem_tokens, redeem_amount)

    def redeem_underlying(self, redeem_amount: int) -> int:
        """Receive exactly `redeem_amount` underlying, burning vTokens rounded up"""
        redeem_tokens = -(-redeem_amount * EXP_SCALE // self.exchange_rate)
        return self._redeem_fresh(self._get_caller(), redeem_tokens, redeem_amount)

    def _redeem_fresh(self, redeemer: str, redeem_tokens: int, redeem_amount: int) -> int:
        if redeem_tokens < 0 or redeem_amount < 0:
            return VTokenError.INVALID_AMOUNT

        allowed = self._call(self._comptroller, 'redeem_allowed', self.address, redeemer, redeem_tokens)
        if allowed != 0:
            return VTokenError.COMPTROLLER_REJECTION

        if self.balances.get(redeemer, 0) < redeem_tokens:
            return VTokenError.INSUFFICIENT_BALANCE

        if self.get_cash() < redeem_amount:
            return VTokenError.TOKEN_INSUFFICIENT_CASH

        self.balances[redeemer] -= redeem_tokens
        self._total_supply -= redeem_tokens

        if not self._call(self._underlying, 'transfer', redeemer, redeem_amount):
            # Undo the burn; codes never revert the caller's transaction
            self.balances[redeemer] += redeem_tokens
            self._total_supply += redeem_tokens
            return VTokenError.TOKEN_TRANSFER_OUT_FAILED

        self._emit_event('Redeem', {
            'redeemer': redeemer,
            'redeem_amount': redeem_amount,
            'redeem_tokens': redeem_tokens
        })
        return VTokenError.NO_ERROR

    # Admin

    def set_exchange_rate(self, new_exchange_rate: int) -> bool:
        """Move the stored rate, standing in for interest accrual"""
        caller = self._get_caller()
        if caller != self.admin:
            raise OwnableUnauthorizedAccount(caller)

        if new_exchange_rate <= 0:
            raise InvalidExchangeRate(new_exchange_rate)

        old_exchange_rate = self.exchange_rate
        self.exchange_rate = new_exchange_rate

        self._emit_event('ExchangeRateUpdated', {
            'old_exchange_rate': old_exchange_rate,
            'new_exchange_rate': new_exchange_rate
        })
        logger.info(f"{self._symbol} exchange rate {old_exchange_rate} -> {new_exchange_rate}")
        return True

