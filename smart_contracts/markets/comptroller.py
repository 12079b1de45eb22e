"""Comptrollers and rewards distributors

The core pool comptroller accrues a single reward token (XVS) and pays it
out through ``claim_venus``. Isolated pool comptrollers delegate rewards to
any number of registered distributors, each paying one reward token.
"""

from typing import Dict, List
from dataclasses import dataclass
from enum import IntEnum
import logging

from ..engine import SmartContract
from ..constants import EXP_SCALE, MAX_UINT256, ZERO_ADDRESS
from ..errors import OwnableUnauthorizedAccount, ZeroAddressNotAllowed, TransferFailed, ArrayLengthMismatch

logger = logging.getLogger(__name__)


class Action(IntEnum):
    """Market actions that can be paused per market"""
    MINT = 0
    REDEEM = 1


class ComptrollerError(IntEnum):
    NO_ERROR = 0
    MARKET_NOT_LISTED = 1
    ACTION_PAUSED = 2
    SUPPLY_CAP_EXCEEDED = 3


@dataclass
class Market:
    """Per-market listing record"""
    is_listed: bool = False
    collateral_factor_mantissa: int = 0


class Comptroller(SmartContract):
    """Market registry and risk checks shared by both pool kinds"""

    def __init__(self, admin: str):
        super().__init__()
        self.admin = admin

        self.market_records: Dict[str, Market] = {}
        self.all_markets: List[str] = []
        self.supply_cap_values: Dict[str, int] = {}
        self.paused_actions: Dict[str, Dict[int, bool]] = {}

    def _only_admin(self):
        caller = self._get_caller()
        if caller != self.admin:
            raise OwnableUnauthorizedAccount(caller)

    def markets(self, v_token: str) -> Market:
        return self.market_records.get(v_token, Market())

    def get_all_markets(self) -> List[str]:
        return list(self.all_markets)

    def is_market_listed(self, v_token: str) -> bool:
        return self.markets(v_token).is_listed

    def supply_caps(self, v_token: str) -> int:
        return self.supply_cap_values.get(v_token, MAX_UINT256)

    def action_paused(self, v_token: str, action: int) -> bool:
        return self.paused_actions.get(v_token, {}).get(int(action), False)

    def support_market(self, v_token: str) -> bool:
        """List a market"""
        self._only_admin()

        if v_token == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        if self.is_market_listed(v_token):
            return False

        self.market_records[v_token] = Market(is_listed=True)
        self.all_markets.append(v_token)

        self._emit_event('MarketSupported', {'v_token': v_token})
        logger.info(f"Market {v_token} listed in comptroller {self.address}")
        return True

    def set_market_supply_caps(self, v_tokens: List[str], new_supply_caps: List[int]) -> bool:
        self._only_admin()

        if len(v_tokens) != len(new_supply_caps):
            raise ArrayLengthMismatch(len(v_tokens), len(new_supply_caps))

        for v_token, new_cap in zip(v_tokens, new_supply_caps):
            self.supply_cap_values[v_token] = new_cap
            self._emit_event('NewSupplyCap', {'v_token': v_token, 'new_supply_cap': new_cap})
        return True

    def set_action_paused(self, v_token: str, action: int, paused: bool) -> bool:
        self._only_admin()

        self.paused_actions.setdefault(v_token, {})[int(action)] = paused
        self._emit_event('ActionPausedMarket', {
            'v_token': v_token,
            'action': int(action),
            'paused': paused
        })
        return True

    # Hooks called by markets

    def mint_allowed(self, v_token: str, minter: str, mint_amount: int) -> int:
        if not self.is_market_listed(v_token):
            return ComptrollerError.MARKET_NOT_LISTED

        if self.action_paused(v_token, Action.MINT):
            return ComptrollerError.ACTION_PAUSED

        supply_cap = self.supply_caps(v_token)
        if supply_cap != MAX_UINT256:
            total_supply = self._call(v_token, 'total_supply')
            exchange_rate = self._call(v_token, 'exchange_rate_stored')
            if total_supply * exchange_rate // EXP_SCALE + mint_amount > supply_cap:
                return ComptrollerError.SUPPLY_CAP_EXCEEDED

        return ComptrollerError.NO_ERROR

    def redeem_allowed(self, v_token: str, redeemer: str, redeem_tokens: int) -> int:
        if not self.is_market_listed(v_token):
            return ComptrollerError.MARKET_NOT_LISTED

        if self.action_paused(v_token, Action.REDEEM):
            return ComptrollerError.ACTION_PAUSED

        return ComptrollerError.NO_ERROR


class CoreComptroller(Comptroller):
    """Core pool comptroller paying XVS rewards directly"""

    def __init__(self, admin: str, xvs: str):
        super().__init__(admin)
        self.xvs = xvs
        self.venus_accrued: Dict[str, int] = {}

    def get_xvs_address(self) -> str:
        return self.xvs

    def set_venus_accrued(self, holder: str, amount: int) -> bool:
        """Credit XVS to a holder, standing in for the reward speed accounting"""
        self._only_admin()
        self.venus_accrued[holder] = amount
        return True

    def claim_venus(self, holder: str) -> int:
        """Pay out everything accrued to `holder`"""
        amount = self.venus_accrued.get(holder, 0)
        if amount == 0:
            return 0

        if not self._call(self.xvs, 'transfer', holder, amount):
            raise TransferFailed(self.xvs, self.address, holder, amount)

        self.venus_accrued[holder] = 0
        self._emit_event('DistributedVenus', {'holder': holder, 'amount': amount})
        return amount


class PoolComptroller(Comptroller):
    """Isolated pool comptroller with pluggable reward distributors"""

    def __init__(self, admin: str, pool_registry: str):
        super().__init__(admin)
        self._pool_registry = pool_registry
        self.reward_distributors: List[str] = []

    def pool_registry(self) -> str:
        return self._pool_registry

    def get_reward_distributors(self) -> List[str]:
        return list(self.reward_distributors)

    def add_rewards_distributor(self, distributor: str) -> bool:
        self._only_admin()

        if distributor in self.reward_distributors:
            return False

        self.reward_distributors.append(distributor)
        self._emit_event('NewRewardsDistributor', {
            'rewards_distributor': distributor,
            'reward_token': self._call(distributor, 'reward_token')
        })
        return True


class RewardsDistributor(SmartContract):
    """Pays one reward token to holders of an isolated pool's markets"""

    def __init__(self, reward_token: str, admin: str):
        super().__init__()
        self._reward_token = reward_token
        self.admin = admin
        self.reward_token_accrued: Dict[str, int] = {}

    def reward_token(self) -> str:
        return self._reward_token

    def set_reward_token_accrued(self, holder: str, amount: int) -> bool:
        caller = self._get_caller()
        if caller != self.admin:
            raise OwnableUnauthorizedAccount(caller)

        self.reward_token_accrued[holder] = amount
        return True

    def claim_reward_token(self, holder: str, v_tokens: List[str]) -> int:
        """Pay out what `holder` accrued across `v_tokens`"""
        amount = self.reward_token_accrued.get(holder, 0)
        if amount == 0:
            return 0

        if not self._call(self._reward_token, 'transfer', holder, amount):
            raise TransferFailed(self._reward_token, self.address, holder, amount)

        self.reward_token_accrued[holder] = 0
        self._emit_event('RewardTokenClaimed', {
            'holder': holder,
            'v_tokens': list(v_tokens),
            'amount': amount
        })
        return amount
