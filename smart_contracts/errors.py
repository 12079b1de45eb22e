"""Typed reverts raised by the vault, factory, token and access-control contracts"""

from .engine.vm import ContractError


# Vault accounting

class ZeroAmount(ContractError):
    """An entry operation was called with a zero quantity"""
    fields = ('operation',)


class DepositMoreThanMax(ContractError):
    fields = ('assets', 'max_assets')


class MintMoreThanMax(ContractError):
    fields = ('shares', 'max_shares')


class WithdrawMoreThanMax(ContractError):
    fields = ('assets', 'max_assets')


class RedeemMoreThanMax(ContractError):
    fields = ('shares', 'max_shares')


class VenusError(ContractError):
    """The wrapped market reported a non-zero error code"""
    fields = ('error_code',)


class TransferFailed(ContractError):
    """An underlying or reward token transfer returned false"""
    fields = ('token', 'sender', 'recipient', 'amount')


class SweepNotAllowed(ContractError):
    fields = ('token',)


class AlreadyInitialized(ContractError):
    fields = ('contract',)


# Share token

class ERC20InsufficientBalance(ContractError):
    fields = ('sender', 'balance', 'needed')


class ERC20InsufficientAllowance(ContractError):
    fields = ('spender', 'allowance', 'needed')


class ERC20InvalidReceiver(ContractError):
    fields = ('receiver',)


# Rewards

class TooManyDistributors(ContractError):
    """Distributor enumeration would exceed the loop limit"""
    fields = ('loops_limit', 'required_loops')


class RecipientNotSupported(ContractError):
    """The reward recipient kind cannot receive this variant's rewards"""
    fields = ('recipient',)


class InvalidMaxLoopsLimit(ContractError):
    fields = ('current_limit', 'new_limit')


# Access control

class Unauthorized(ContractError):
    """The policy engine denied a privileged call"""
    fields = ('sender', 'called_contract', 'method_signature')


class OwnableUnauthorizedAccount(ContractError):
    """Caller is not the owner"""
    fields = ('account',)


class ZeroAddressNotAllowed(ContractError):
    pass


# Factory

class InvalidVToken(ContractError):
    """The market failed validation against its comptroller or pool registry"""
    fields = ('v_token',)


InvalidMarket = InvalidVToken


class VaultAlreadyExists(ContractError):
    fields = ('v_token', 'is_core')


# Markets

class InvalidExchangeRate(ContractError):
    """A vToken exchange rate must be positive"""
    fields = ('exchange_rate',)


class ArrayLengthMismatch(ContractError):
    fields = ('first_length', 'second_length')
