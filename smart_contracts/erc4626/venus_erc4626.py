"""Vault over a Venus market

The vault holds vTokens only. Underlying pulled from a depositor is
supplied to the market in the same transaction and redeemed from it on the
way out, so ``total_assets`` is the vault's vToken balance valued at the
stored exchange rate.
"""

from dataclasses import dataclass
from enum import Enum
import logging

from ..constants import EXP_SCALE, MAX_UINT256, ZERO_ADDRESS
from ..access import AccessControlledOwnable, MaxLoopsLimitHelper
from ..markets.comptroller import Action
from ..markets.protocol_share_reserve import IncomeType
from ..errors import (
    AlreadyInitialized,
    ZeroAddressNotAllowed,
    ZeroAmount,
    VenusError,
    TransferFailed,
    SweepNotAllowed
)
from .base import ERC4626, Rounding, mul_div

logger = logging.getLogger(__name__)


class RecipientKind(Enum):
    ACCOUNT = "account"
    SHARE_RESERVE = "share_reserve"


@dataclass(frozen=True)
class RewardRecipient:
    """Reward recipient resolved once per claim"""
    kind: RecipientKind
    address: str

    @property
    def is_share_reserve(self) -> bool:
        return self.kind is RecipientKind.SHARE_RESERVE


class VenusERC4626(ERC4626, AccessControlledOwnable, MaxLoopsLimitHelper):
    """Common layer of the core and isolated pool vaults.

    Deployed behind a beacon proxy, so state is set up by ``initialize`` and
    ``initialize2`` rather than by the constructor.
    """

    def initialize(self, v_token: str) -> bool:
        if self.__dict__.get('_initialized', 0) >= 1:
            raise AlreadyInitialized(self.address)

        if v_token == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        asset = self._call(v_token, 'underlying')
        self._init_erc4626(
            asset=asset,
            name="ERC4626-Wrapped " + self._call(v_token, 'name'),
            symbol="v4626" + self._call(v_token, 'symbol'),
            decimals=self._call(asset, 'decimals')
        )

        self.v_token = v_token
        self.comptroller = self._call(v_token, 'comptroller')
        self._initialized = 1
        return True

    def initialize2(self, access_control_manager: str, reward_recipient: str,
                    max_loops_limit: int, owner: str) -> bool:
        if self.__dict__.get('_initialized', 0) != 1:
            raise AlreadyInitialized(self.address)

        if reward_recipient == ZERO_ADDRESS or owner == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        self._init_access_controlled(owner, access_control_manager)
        self.reward_recipient = reward_recipient
        self._set_max_loops_limit(max_loops_limit)

        self.max_deposit_limit = MAX_UINT256
        self.max_mint_limit = MAX_UINT256
        self.max_withdraw_limit = MAX_UINT256
        self.max_redeem_limit = MAX_UINT256

        self._initialized = 2
        logger.info(f"Vault {self.address} initialized over {self.v_token}")
        return True

    # Market views

    def total_assets(self) -> int:
        v_token_balance = self._call(self.v_token, 'balance_of', self.address)
        exchange_rate = self._call(self.v_token, 'exchange_rate_stored')
        return v_token_balance * exchange_rate // EXP_SCALE

    def _market_cash(self) -> int:
        return self._call(self.v_token, 'get_cash')

    def _v_tokens_for(self, assets: int, rounding: Rounding) -> int:
        exchange_rate = self._call(self.v_token, 'exchange_rate_stored')
        return mul_div(assets, EXP_SCALE, exchange_rate, rounding)

    def _market_credit(self, assets: int) -> int:
        """Underlying value of the vTokens the market mints or pays out for `assets`"""
        exchange_rate = self._call(self.v_token, 'exchange_rate_stored')
        return mul_div(self._v_tokens_for(assets, Rounding.FLOOR), exchange_rate, EXP_SCALE, Rounding.FLOOR)

    def _market_cost(self, assets: int) -> int:
        """Underlying that has to move through the market to account for `assets` in full"""
        exchange_rate = self._call(self.v_token, 'exchange_rate_stored')
        return mul_div(self._v_tokens_for(assets, Rounding.CEIL), exchange_rate, EXP_SCALE, Rounding.CEIL)

    # Previews follow the market's vToken rounding so they match execution

    def preview_deposit(self, assets: int) -> int:
        return self._convert_to_shares(self._market_credit(assets), Rounding.FLOOR)

    def preview_mint(self, shares: int) -> int:
        return self._market_cost(self._convert_to_assets(shares, Rounding.CEIL))

    def preview_withdraw(self, assets: int) -> int:
        return self._convert_to_shares(self._market_cost(assets), Rounding.CEIL)

    def preview_redeem(self, shares: int) -> int:
        return self._market_credit(self._convert_to_assets(shares, Rounding.FLOOR))

    # Caps

    def max_deposit(self, receiver: str) -> int:
        if self._call(self.comptroller, 'action_paused', self.v_token, Action.MINT):
            return 0

        supply_cap = self._call(self.comptroller, 'supply_caps', self.v_token)
        if supply_cap == MAX_UINT256:
            return self.max_deposit_limit

        total_supply = self._call(self.v_token, 'total_supply')
        exchange_rate = self._call(self.v_token, 'exchange_rate_stored')
        supplied = total_supply * exchange_rate // EXP_SCALE
        headroom = supply_cap - supplied if supply_cap > supplied else 0

        return min(self.max_deposit_limit, headroom)

    def max_mint(self, receiver: str) -> int:
        max_deposit = self.max_deposit(receiver)
        if max_deposit == MAX_UINT256:
            return self.max_mint_limit
        # preview_mint of the result never costs more than max_deposit
        return min(self.max_mint_limit, self.preview_deposit(max_deposit))

    def max_withdraw(self, owner: str) -> int:
        owner_assets = self.preview_redeem(self.balance_of(owner))
        return min(self.max_withdraw_limit, owner_assets, self._market_cash())

    def max_redeem(self, owner: str) -> int:
        cash_shares = self._convert_to_shares(self._market_cash(), Rounding.FLOOR)
        return min(self.max_redeem_limit, self.balance_of(owner), cash_shares)

    def set_max_deposit(self, max_deposit: int) -> bool:
        self._check_owner()
        self.max_deposit_limit = max_deposit
        return True

    def set_max_mint(self, max_mint: int) -> bool:
        self._check_owner()
        self.max_mint_limit = max_mint
        return True

    def set_max_withdraw(self, max_withdraw: int) -> bool:
        self._check_owner()
        self.max_withdraw_limit = max_withdraw
        return True

    def set_max_redeem(self, max_redeem: int) -> bool:
        self._check_owner()
        self.max_redeem_limit = max_redeem
        return True

    # Privileged setters

    def set_reward_recipient(self, new_recipient: str) -> bool:
        self._check_access_allowed("setRewardRecipient(address)")

        if new_recipient == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        old_recipient = self.reward_recipient
        self.reward_recipient = new_recipient

        self._emit_event('RewardRecipientUpdated', {
            'old_recipient': old_recipient,
            'new_recipient': new_recipient
        })
        return True

    def set_max_loops_limit(self, limit: int) -> bool:
        self._check_access_allowed("setMaxLoopsLimit(uint256)")
        self._set_max_loops_limit(limit)
        return True

    def sweep_token(self, token: str) -> int:
        """Send a stray token balance to the owner"""
        self._check_owner()

        if token == self.v_token:
            raise SweepNotAllowed(token)

        balance = self._call(token, 'balance_of', self.address)
        if balance > 0:
            self._safe_transfer(token, self.owner, balance)
            self._emit_event('SweepToken', {
                'token': token,
                'receiver': self.owner,
                'amount': balance
            })
        return balance

    # Market interaction

    def _deposit(self, caller: str, receiver: str, assets: int) -> int:
        total_supply_before = self._total_supply
        total_assets_before = self.total_assets()

        credited = self._supply_to_market(caller, assets)
        shares = self._convert_to_shares_with_totals(credited, total_supply_before,
                                                     total_assets_before, Rounding.FLOOR)
        if shares == 0:
            raise ZeroAmount("deposit")

        self._mint(receiver, shares)

        self._emit_event('Deposit', {
            'caller': caller,
            'receiver': receiver,
            'assets': assets,
            'shares': shares
        })
        return shares

    def _mint_shares(self, caller: str, receiver: str, assets: int, shares: int) -> int:
        # `assets` is already grossed up so the market's floor still credits the share value
        self._supply_to_market(caller, assets)
        self._mint(receiver, shares)

        self._emit_event('Deposit', {
            'caller': caller,
            'receiver': receiver,
            'assets': assets,
            'shares': shares
        })
        return assets

    def _withdraw(self, caller: str, receiver: str, owner: str, assets: int, shares: int):
        self._spend_allowance(owner, caller, shares)
        self._burn(owner, shares)

        received = self._redeem_from_market('redeem_underlying', assets)
        self._safe_transfer(self._asset, receiver, received)

        self._emit_event('Withdraw', {
            'caller': caller,
            'receiver': receiver,
            'owner': owner,
            'assets': received,
            'shares': shares
        })

    def _redeem(self, caller: str, receiver: str, owner: str, assets: int, shares: int) -> int:
        # Sized from the unrounded share value while the totals still include `shares`
        v_tokens = self._v_tokens_for(self._convert_to_assets(shares, Rounding.FLOOR), Rounding.FLOOR)
        if v_tokens == 0:
            raise ZeroAmount("redeem")

        self._spend_allowance(owner, caller, shares)
        self._burn(owner, shares)

        received = self._redeem_from_market('redeem', v_tokens)
        self._safe_transfer(self._asset, receiver, received)

        self._emit_event('Withdraw', {
            'caller': caller,
            'receiver': receiver,
            'owner': owner,
            'assets': received,
            'shares': shares
        })
        return received

    def _supply_to_market(self, caller: str, amount: int) -> int:
        """Pull `amount` from caller into the market; returns assets credited"""
        balance_before = self._call(self._asset, 'balance_of', self.address)
        if not self._call(self._asset, 'transfer_from', caller, self.address, amount):
            raise TransferFailed(self._asset, caller, self.address, amount)
        received = self._call(self._asset, 'balance_of', self.address) - balance_before

        v_tokens_before = self._call(self.v_token, 'balance_of', self.address)
        self._call(self._asset, 'approve', self.v_token, received)

        error_code = self._call(self.v_token, 'mint', received)
        if error_code != 0:
            raise VenusError(int(error_code))

        minted = self._call(self.v_token, 'balance_of', self.address) - v_tokens_before
        exchange_rate = self._call(self.v_token, 'exchange_rate_stored')
        return minted * exchange_rate // EXP_SCALE

    def _redeem_from_market(self, function_name: str, amount: int) -> int:
        """Call a market redemption function; returns underlying received"""
        balance_before = self._call(self._asset, 'balance_of', self.address)

        error_code = self._call(self.v_token, function_name, amount)
        if error_code != 0:
            raise VenusError(int(error_code))

        return self._call(self._asset, 'balance_of', self.address) - balance_before

    def _safe_transfer(self, token: str, to: str, amount: int):
        if not self._call(token, 'transfer', to, amount):
            raise TransferFailed(token, self.address, to, amount)

    # Rewards

    def claim_rewards(self) -> bool:
        raise NotImplementedError

    def _resolve_reward_recipient(self) -> RewardRecipient:
        recipient = self.reward_recipient
        if self._is_contract(recipient):
            return RewardRecipient(RecipientKind.SHARE_RESERVE, recipient)
        return RewardRecipient(RecipientKind.ACCOUNT, recipient)

    def _distribute_reward(self, reward_token: str, recipient: RewardRecipient) -> int:
        """Forward the vault's whole `reward_token` balance to the recipient"""
        amount = self._call(reward_token, 'balance_of', self.address)
        if amount == 0:
            return 0

        self._safe_transfer(reward_token, recipient.address, amount)

        if recipient.is_share_reserve:
            self._call(recipient.address, 'update_assets_state', self.comptroller,
                       reward_token, IncomeType.ERC4626_WRAPPER_REWARDS)

        self._emit_event('ClaimRewards', {'amount': amount, 'reward_token': reward_token})
        logger.info(f"Vault {self.address} sent {amount} of {reward_token} to {recipient.address}")
        return amount
