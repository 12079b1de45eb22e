"""Deterministic vault factory

One vault per (vToken, kind). The vault address is a CREATE2 address over
the factory address, a salt derived from (vToken, kind) and the beacon proxy
init code of that kind, so it can be computed before deployment and never
depends on the factory's mutable defaults.
"""

from typing import Dict, List, Tuple, Type
import logging

from security.cryptography import CryptoUtils
from ..engine import SmartContract, UpgradeableBeacon, BeaconProxy
from ..constants import ZERO_ADDRESS
from ..access import AccessControlledOwnable, MaxLoopsLimitHelper
from ..errors import (
    AlreadyInitialized,
    ZeroAddressNotAllowed,
    InvalidVToken,
    VaultAlreadyExists
)

logger = logging.getLogger(__name__)


class VenusERC4626Factory(AccessControlledOwnable, MaxLoopsLimitHelper):
    """Creates and tracks vaults; owns one upgradeable beacon per kind"""

    def initialize(self, access_control_manager: str, pool_registry: str, core_comptroller: str,
                   reward_recipient: str, core_implementation: Type[SmartContract],
                   isolated_implementation: Type[SmartContract], max_loops_limit: int) -> bool:
        """Set defaults and deploy the beacons; the caller becomes owner"""
        if self.__dict__.get('_initialized'):
            raise AlreadyInitialized(self.address)

        for address in (pool_registry, core_comptroller, reward_recipient):
            if address == ZERO_ADDRESS:
                raise ZeroAddressNotAllowed()

        self._init_access_controlled(self._get_caller(), access_control_manager)
        self.pool_registry = pool_registry
        self.core_comptroller = core_comptroller
        self.reward_recipient = reward_recipient
        self._set_max_loops_limit(max_loops_limit)

        self.created_vaults: Dict[Tuple[str, bool], str] = {}
        self.vault_list: List[str] = []

        self.core_beacon = self.vm.deploy_contract(
            UpgradeableBeacon(core_implementation, self.owner), self.address)
        self.isolated_beacon = self.vm.deploy_contract(
            UpgradeableBeacon(isolated_implementation, self.owner), self.address)

        self._initialized = True
        logger.info(f"Factory {self.address} initialized with beacons "
                    f"{self.core_beacon} (core) and {self.isolated_beacon} (isolated)")
        return True

    # Views

    def beacon_for(self, is_core: bool) -> str:
        return self.core_beacon if is_core else self.isolated_beacon

    def get_vault(self, v_token: str, is_core: bool) -> str:
        return self.created_vaults.get((v_token, bool(is_core)), ZERO_ADDRESS)

    def all_vaults(self) -> List[str]:
        return list(self.vault_list)

    @staticmethod
    def _salt(v_token: str, is_core: bool) -> bytes:
        return CryptoUtils.hash_sha256(CryptoUtils.encode_packed(v_token, bool(is_core)))

    def compute_vault_address(self, v_token: str, is_core: bool) -> str:
        """Address the vault for (v_token, is_core) is, or will be, deployed at"""
        init_code_hash = BeaconProxy.init_code_hash(self.beacon_for(is_core))
        return CryptoUtils.create2_address(self.address, self._salt(v_token, is_core), init_code_hash)

    # Vault creation

    def create_erc4626(self, v_token: str, is_core: bool) -> str:
        """Deploy, initialize and record the vault for a listed market"""
        is_core = bool(is_core)

        if v_token == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        if is_core:
            self._validate_core_market(v_token)
        else:
            self._validate_isolated_market(v_token)

        if (v_token, is_core) in self.created_vaults:
            raise VaultAlreadyExists(v_token, is_core)

        beacon = self.beacon_for(is_core)
        vault = self.vm.create2(self.address, self._salt(v_token, is_core),
                                BeaconProxy.init_code_hash(beacon), BeaconProxy(beacon))

        self._call(vault, 'initialize', v_token)
        self._call(vault, 'initialize2', self.access_control_manager, self.reward_recipient,
                   self.max_loops_limit, self.owner)

        self.created_vaults[(v_token, is_core)] = vault
        self.vault_list.append(vault)

        self._emit_event('VaultCreated', {
            'v_token': v_token,
            'is_core': is_core,
            'vault': vault
        })
        logger.info(f"Created {'core' if is_core else 'isolated'} vault {vault} for {v_token}")
        return vault

    def _validate_core_market(self, v_token: str):
        if not self._is_contract(v_token):
            raise InvalidVToken(v_token)

        market = self._call(self.core_comptroller, 'markets', v_token)
        if not market.is_listed:
            raise InvalidVToken(v_token)

    def _validate_isolated_market(self, v_token: str):
        if not self._is_contract(v_token):
            raise InvalidVToken(v_token)

        comptroller = self._call(v_token, 'comptroller')
        pool = self._call(self.pool_registry, 'get_pool_by_comptroller', comptroller)
        if pool.comptroller != comptroller or comptroller == ZERO_ADDRESS:
            raise InvalidVToken(v_token)

        asset = self._call(v_token, 'underlying')
        if self._call(self.pool_registry, 'get_vtoken_for_asset', comptroller, asset) != v_token:
            raise InvalidVToken(v_token)

    # Defaults for future vaults

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
