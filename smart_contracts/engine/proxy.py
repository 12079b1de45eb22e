"""Upgradeable beacon and beacon proxy

A beacon stores the implementation class shared by every proxy pointing at
it. Proxies hold only storage; each attribute lookup that misses the proxy
resolves the beacon's *current* implementation, so one ``upgrade_to`` changes
the behaviour of every deployed proxy at once.
"""

from typing import Any, Type
import logging

from security.cryptography import CryptoUtils
from .vm import SmartContract, VMException, ContractError
from ..errors import OwnableUnauthorizedAccount

logger = logging.getLogger(__name__)


class InvalidImplementation(ContractError):
    """Beacon implementation must be a contract class"""
    fields = ('implementation',)


class UpgradeableBeacon(SmartContract):
    """Implementation pointer shared by all proxies of one kind"""

    def __init__(self, implementation: Type[SmartContract], owner: str):
        super().__init__()
        self._check_implementation(implementation)
        self._implementation = implementation
        self.owner = owner

    def implementation(self) -> Type[SmartContract]:
        return self._implementation

    def upgrade_to(self, new_implementation: Type[SmartContract]) -> bool:
        """Point every proxy of this beacon at a new implementation"""
        caller = self._get_caller()
        if caller != self.owner:
            raise OwnableUnauthorizedAccount(caller)

        self._check_implementation(new_implementation)
        self._implementation = new_implementation

        self._emit_event('Upgraded', {'implementation': new_implementation.__name__})
        logger.info(f"Beacon {self.address} upgraded to {new_implementation.__name__}")
        return True

    def transfer_ownership(self, new_owner: str) -> bool:
        caller = self._get_caller()
        if caller != self.owner:
            raise OwnableUnauthorizedAccount(caller)

        previous_owner = self.owner
        self.owner = new_owner
        self._emit_event('OwnershipTransferred', {
            'previous_owner': previous_owner,
            'new_owner': new_owner
        })
        return True

    @staticmethod
    def _check_implementation(implementation: Any):
        if not (isinstance(implementation, type) and issubclass(implementation, SmartContract)):
            raise InvalidImplementation(implementation)


class BeaconProxy(SmartContract):
    """Storage-only contract delegating behaviour to its beacon's implementation"""

    def __init__(self, beacon: str):
        super().__init__()
        self._beacon = beacon

    @staticmethod
    def init_code_hash(beacon: str) -> bytes:
        """Hash of the creation code, which depends only on the beacon"""
        return CryptoUtils.hash_sha256(CryptoUtils.encode_packed('BeaconProxy', beacon))

    def get_beacon(self) -> str:
        return self._beacon

    def _implementation_view(self) -> SmartContract:
        beacon = self.vm.get_contract(self._beacon) if self.vm else None
        if beacon is None:
            raise VMException(f"Beacon not found: {self._beacon}")

        implementation = beacon.implementation()
        view = object.__new__(implementation)
        # Share storage rather than copying it
        object.__setattr__(view, '__dict__', self.__dict__)
        return view

    def __getattr__(self, name: str) -> Any:
        if name.startswith('__') or name in ('_beacon', 'vm', 'address'):
            raise AttributeError(name)
        return getattr(self._implementation_view(), name)

    def __repr__(self) -> str:
        return f"BeaconProxy(address={self.__dict__.get('address')}, beacon={self.__dict__.get('_beacon')})"
