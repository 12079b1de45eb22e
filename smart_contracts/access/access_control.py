"""Policy engine and the owner/policy mixin used by vaults and the factory

Permissions are granted per (contract, function signature, account). A grant
on the zero address as contract applies to that signature on every contract.
"""

from typing import Dict
import logging

from security.cryptography import CryptoUtils
from ..engine import SmartContract
from ..constants import ZERO_ADDRESS
from ..errors import Unauthorized, OwnableUnauthorizedAccount, ZeroAddressNotAllowed

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE = "0x" + "00" * 32


def get_role(contract_address: str, function_sig: str) -> str:
    """Role identifier for calling `function_sig` on `contract_address`"""
    return "0x" + CryptoUtils.hash_sha256_hex(CryptoUtils.encode_packed(contract_address, function_sig))


class AccessControlManager(SmartContract):
    """Answers whether an account may invoke a privileged function"""

    def __init__(self, admin: str):
        super().__init__()
        self.roles: Dict[str, Dict[str, bool]] = {DEFAULT_ADMIN_ROLE: {admin: True}}

    def has_role(self, role: str, account: str) -> bool:
        return self.roles.get(role, {}).get(account, False)

    def _check_admin(self):
        caller = self._get_caller()
        if not self.has_role(DEFAULT_ADMIN_ROLE, caller):
            raise Unauthorized(caller, self.address, "giveCallPermission(address,string,address)")

    def give_call_permission(self, contract_address: str, function_sig: str, account_to_permit: str) -> bool:
        """Allow `account_to_permit` to call `function_sig` on `contract_address`"""
        self._check_admin()

        role = get_role(contract_address, function_sig)
        self.roles.setdefault(role, {})[account_to_permit] = True

        self._emit_event('PermissionGranted', {
            'account': account_to_permit,
            'contract_address': contract_address,
            'function_sig': function_sig
        })
        logger.info(f"Granted {function_sig} on {contract_address} to {account_to_permit}")
        return True

    def revoke_call_permission(self, contract_address: str, function_sig: str, account_to_revoke: str) -> bool:
        self._check_admin()

        role = get_role(contract_address, function_sig)
        self.roles.get(role, {}).pop(account_to_revoke, None)

        self._emit_event('PermissionRevoked', {
            'account': account_to_revoke,
            'contract_address': contract_address,
            'function_sig': function_sig
        })
        return True

    def is_allowed_to_call(self, account: str, function_sig: str) -> bool:
        """Checked by the calling contract on behalf of `account`"""
        contract_address = self._get_caller()

        if self.has_role(get_role(contract_address, function_sig), account):
            return True
        return self.has_role(get_role(ZERO_ADDRESS, function_sig), account)

    def has_permission(self, account: str, contract_address: str, function_sig: str) -> bool:
        return self.has_role(get_role(contract_address, function_sig), account)


class AccessControlledOwnable(SmartContract):
    """Two-step ownership plus policy-engine gating for privileged setters"""

    def _init_access_controlled(self, owner: str, access_control_manager: str):
        if access_control_manager == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        self.owner = owner
        self.pending_owner = ZERO_ADDRESS
        self.access_control_manager = access_control_manager

    def _check_owner(self):
        caller = self._get_caller()
        if caller != self.owner:
            raise OwnableUnauthorizedAccount(caller)

    def _check_access_allowed(self, signature: str):
        caller = self._get_caller()
        allowed = self._call(self.access_control_manager, 'is_allowed_to_call', caller, signature)

        if not allowed:
            raise Unauthorized(caller, self.address, signature)

    def transfer_ownership(self, new_owner: str) -> bool:
        """Start a transfer; `new_owner` must call accept_ownership"""
        self._check_owner()

        self.pending_owner = new_owner
        self._emit_event('OwnershipTransferStarted', {
            'previous_owner': self.owner,
            'new_owner': new_owner
        })
        return True

    def accept_ownership(self) -> bool:
        caller = self._get_caller()
        if caller != self.pending_owner:
            raise OwnableUnauthorizedAccount(caller)

        previous_owner = self.owner
        self.owner = caller
        self.pending_owner = ZERO_ADDRESS

        self._emit_event('OwnershipTransferred', {
            'previous_owner': previous_owner,
            'new_owner': caller
        })
        return True

    def set_access_control_manager(self, access_control_manager: str) -> bool:
        self._check_owner()

        if access_control_manager == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        old_access_control_manager = self.access_control_manager
        self.access_control_manager = access_control_manager

        self._emit_event('NewAccessControlManager', {
            'old_access_control_manager': old_access_control_manager,
            'new_access_control_manager': access_control_manager
        })
        return True
