from typing import Dict, Any
from dataclasses import dataclass

from ..engine import SmartContract
from security.cryptography import ZERO_ADDRESS


@dataclass
class TokenInfo:
    """Token information structure"""
    name: str
    symbol: str
    decimals: int
    total_supply: int
    owner: str
    is_paused: bool = False


class ERC20Token(SmartContract):
    """ERC-20 compatible token used for underlying assets and reward tokens.

    Transfers report failure by returning False rather than reverting, like
    the non-standard tokens a vault has to guard against.
    """

    def __init__(self, name: str, symbol: str, decimals: int = 18,
                 initial_supply: int = 0, owner: str = ""):
        super().__init__()

        # Token metadata
        self._name = name
        self._symbol = symbol
        self._decimals = decimals
        self._total_supply = initial_supply
        self.owner = owner

        # State variables
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[str, Dict[str, int]] = {}  # owner -> spender -> amount
        self.frozen_accounts: Dict[str, bool] = {}
        self.is_paused = False

        # Initialize owner balance
        if initial_supply > 0 and owner:
            self.balances[owner] = initial_supply

    def name(self) -> str:
        return self._name

    def symbol(self) -> str:
        return self._symbol

    def decimals(self) -> int:
        return self._decimals

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        """Get token balance of account"""
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Get allowance amount"""
        return self.allowances.get(owner, {}).get(spender, 0)

    def transfer(self, to: str, amount: int) -> bool:
        """Transfer tokens"""
        from_address = self._get_caller()
        return self._transfer(from_address, to, amount)

    def transfer_from(self, from_address: str, to: str, amount: int) -> bool:
        """Transfer tokens from approved account"""
        spender = self._get_caller()

        allowed = self.allowance(from_address, spender)
        if allowed < amount:
            return False

        if not self._transfer(from_address, to, amount):
            return False

        self.allowances.setdefault(from_address, {})[spender] = allowed - amount
        return True

    def approve(self, spender: str, amount: int) -> bool:
        """Approve spender to transfer tokens"""
        owner = self._get_caller()

        self.allowances.setdefault(owner, {})[spender] = amount

        self._emit_event('Approval', {
            'owner': owner,
            'spender': spender,
            'amount': amount
        })

        return True

    def mint(self, to: str, amount: int) -> bool:
        """Mint new tokens"""
        caller = self._get_caller()

        # Only owner can mint
        if caller != self.owner:
            return False

        if self.is_paused:
            return False

        self.balances[to] = self.balances.get(to, 0) + amount
        self._total_supply += amount

        self._emit_event('Transfer', {
            'from': ZERO_ADDRESS,
            'to': to,
            'amount': amount
        })

        return True

    def burn(self, amount: int) -> bool:
        """Burn tokens from caller's balance"""
        caller = self._get_caller()

        if self.is_paused:
            return False

        if self.balances.get(caller, 0) < amount:
            return False

        self.balances[caller] -= amount
        self._total_supply -= amount

        self._emit_event('Transfer', {
            'from': caller,
            'to': ZERO_ADDRESS,
            'amount': amount
        })

        return True

    def pause(self) -> bool:
        """Pause token transfers"""
        caller = self._get_caller()
        if caller != self.owner:
            return False

        self.is_paused = True
        self._emit_event('Paused', {'by': caller})
        return True

    def unpause(self) -> bool:
        """Unpause token transfers"""
        caller = self._get_caller()
        if caller != self.owner:
            return False

        self.is_paused = False
        self._emit_event('Unpaused', {'by': caller})
        return True

    def freeze_account(self, account: str) -> bool:
        """Freeze an account"""
        caller = self._get_caller()
        if caller != self.owner:
            return False

        self.frozen_accounts[account] = True
        self._emit_event('AccountFrozen', {'account': account})
        return True

    def unfreeze_account(self, account: str) -> bool:
        """Unfreeze an account"""
        caller = self._get_caller()
        if caller != self.owner:
            return False

        self.frozen_accounts[account] = False
        self._emit_event('AccountUnfrozen', {'account': account})
        return True

    def _transfer(self, from_address: str, to: str, amount: int) -> bool:
        """Internal transfer function"""
        if self.is_paused:
            return False

        if self.frozen_accounts.get(from_address, False) or self.frozen_accounts.get(to, False):
            return False

        if amount < 0 or self.balances.get(from_address, 0) < amount:
            return False

        self.balances[from_address] -= amount
        self.balances[to] = self.balances.get(to, 0) + amount

        self._emit_event('Transfer', {
            'from': from_address,
            'to': to,
            'amount': amount
        })

        return True

    def get_token_info(self) -> Dict[str, Any]:
        """Get comprehensive token information"""
        return TokenInfo(
            name=self._name,
            symbol=self._symbol,
            decimals=self._decimals,
            total_supply=self._total_supply,
            owner=self.owner,
            is_paused=self.is_paused
        ).__dict__
