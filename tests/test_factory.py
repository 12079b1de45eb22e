import unittest

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tests.fixtures import VaultTestCase, units
from smart_contracts.constants import ZERO_ADDRESS
from smart_contracts.engine import FunctionNotFound, BeaconProxy
from smart_contracts.markets import VToken
from smart_contracts.erc4626 import VenusERC4626Core, VenusERC4626Isolated
from smart_contracts.errors import (
    AlreadyInitialized,
    InvalidVToken,
    InvalidMarket,
    VaultAlreadyExists,
    InvalidMaxLoopsLimit,
    Unauthorized,
    OwnableUnauthorizedAccount,
    ZeroAddressNotAllowed
)
from security.cryptography import CryptoUtils, random_address


class VenusERC4626CoreV2(VenusERC4626Core):
    """Upgraded core vault used to exercise the beacon"""

    def version(self) -> int:
        return 2


class TestFactoryInitialization(VaultTestCase):
    """Test cases for factory defaults and beacons"""

    def test_defaults(self):
        factory = self.contract(self.factory)

        self.assertEqual(factory.owner, self.owner)
        self.assertEqual(factory.access_control_manager, self.eco['access_control_manager'])
        self.assertEqual(factory.pool_registry, self.eco['pool_registry'])
        self.assertEqual(factory.core_comptroller, self.eco['core_comptroller'])
        self.assertEqual(factory.reward_recipient, self.psr)
        self.assertEqual(factory.max_loops_limit, 10)

    def test_beacons(self):
        """Test one beacon per vault kind, owned by the factory owner"""
        core_beacon = self.view(self.factory, 'beacon_for', True)
        isolated_beacon = self.view(self.factory, 'beacon_for', False)

        self.assertNotEqual(core_beacon, isolated_beacon)
        self.assertIs(self.view(core_beacon, 'implementation'), VenusERC4626Core)
        self.assertIs(self.view(isolated_beacon, 'implementation'), VenusERC4626Isolated)
        self.assertEqual(self.contract(core_beacon).owner, self.owner)
        self.assertEqual(self.view(self.core_vault, 'get_beacon'), core_beacon)
        self.assertEqual(self.view(self.isolated_vault, 'get_beacon'), isolated_beacon)

    def test_initialize_once(self):
        with self.assertRaises(AlreadyInitialized):
            self.transact(self.owner, self.factory, 'initialize', self.eco['access_control_manager'],
                          self.eco['pool_registry'], self.eco['core_comptroller'], self.psr,
                          VenusERC4626Core, VenusERC4626Isolated, 10)


class TestVaultCreation(VaultTestCase):
    """Test cases for deterministic vault creation"""

    def test_created_vaults_recorded(self):
        self.assertEqual(self.view(self.factory, 'all_vaults'), [self.core_vault, self.isolated_vault])
        self.assertEqual(self.view(self.factory, 'get_vault', self.v_usdt, True), self.core_vault)
        self.assertEqual(self.view(self.factory, 'get_vault', self.v_hay, False), self.isolated_vault)
        self.assertEqual(self.view(self.factory, 'get_vault', self.v_hay, True), ZERO_ADDRESS)

        event = self.events('VaultCreated', self.factory)[0]['data']
        self.assertEqual(event, {'v_token': self.v_usdt, 'is_core': True, 'vault': self.core_vault})

    def test_predicted_address(self):
        """Test the vault lands exactly where the factory predicted"""
        v_btcb = self.eco['core_markets']['BTCB']
        predicted = self.view(self.factory, 'compute_vault_address', v_btcb, True)

        self.assertFalse(self.engine.vm.is_contract(predicted))
        vault = self.transact(self.user, self.factory, 'create_erc4626', v_btcb, True)

        self.assertEqual(vault, predicted)
        self.assertIsInstance(self.contract(vault), BeaconProxy)

    def test_address_formula(self):
        """Test the address is CREATE2 over the kind's beacon proxy code"""
        salt = CryptoUtils.hash_sha256(CryptoUtils.encode_packed(self.v_usdt, True))
        code_hash = BeaconProxy.init_code_hash(self.view(self.factory, 'beacon_for', True))

        self.assertEqual(self.core_vault, CryptoUtils.create2_address(self.factory, salt, code_hash))
        self.assertNotEqual(self.view(self.factory, 'compute_vault_address', self.v_usdt, False),
                            self.core_vault)

    def test_prediction_ignores_defaults(self):
        """Test changing factory defaults does not move future vaults"""
        v_usdd = self.eco['isolated_markets']['USDD']
        predicted = self.view(self.factory, 'compute_vault_address', v_usdd, False)

        self.transact(self.owner, self.factory, 'set_reward_recipient', random_address())
        self.transact(self.owner, self.factory, 'set_max_loops_limit', 50)

        self.assertEqual(self.transact(self.user, self.factory, 'create_erc4626', v_usdd, False), predicted)

    def test_duplicate_vault(self):
        """Test one vault per market and kind"""
        with self.assertRaises(VaultAlreadyExists) as ctx:
            self.transact(self.user, self.factory, 'create_erc4626', self.v_usdt, True)

        self.assertEqual(ctx.exception.v_token, self.v_usdt)
        self.assertTrue(ctx.exception.is_core)

        self.transact(self.owner, self.factory, 'set_reward_recipient', self.other)
        with self.assertRaises(VaultAlreadyExists):
            self.transact(self.user, self.factory, 'create_erc4626', self.v_hay, False)

        self.assertEqual(len(self.view(self.factory, 'all_vaults')), 2)

    def test_core_market_validation(self):
        """Test core vaults need a listed core market"""
        unlisted = self.engine.deploy(VToken, self.owner, self.usdt, self.eco['core_comptroller'],
                                      "Venus USDT 2", "vUSDT2", self.owner)

        for v_token in (unlisted, random_address(), self.v_hay):
            with self.subTest(v_token=v_token):
                with self.assertRaises(InvalidVToken):
                    self.transact(self.user, self.factory, 'create_erc4626', v_token, True)

        with self.assertRaises(ZeroAddressNotAllowed):
            self.transact(self.user, self.factory, 'create_erc4626', ZERO_ADDRESS, True)

    def test_isolated_market_validation(self):
        """Test isolated vaults need the pool registry's market for the asset"""
        pool_comptroller = self.eco['pool_comptroller']
        unregistered = self.engine.deploy(VToken, self.owner, self.hay, pool_comptroller,
                                          "Venus HAY 2", "vHAY2", self.owner)
        self.transact(self.owner, pool_comptroller, 'support_market', unregistered)

        for v_token in (unregistered, self.v_usdt, random_address()):
            with self.subTest(v_token=v_token):
                with self.assertRaises(InvalidMarket):
                    self.transact(self.user, self.factory, 'create_erc4626', v_token, False)

        self.assertEqual(len(self.view(self.factory, 'all_vaults')), 2)


class TestFactoryAdministration(VaultTestCase):
    """Test cases for factory defaults, permissions and upgrades"""

    def test_reward_recipient_for_future_vaults(self):
        """Test a new default reaches only vaults created afterwards"""
        self.transact(self.owner, self.factory, 'set_reward_recipient', self.other)

        v_btcb = self.eco['core_markets']['BTCB']
        vault = self.transact(self.user, self.factory, 'create_erc4626', v_btcb, True)

        self.assertEqual(self.contract(vault).reward_recipient, self.other)
        self.assertEqual(self.contract(self.core_vault).reward_recipient, self.psr)

        event = self.events('RewardRecipientUpdated', self.factory)[-1]['data']
        self.assertEqual(event['old_recipient'], self.psr)

    def test_max_loops_for_future_vaults(self):
        self.transact(self.owner, self.factory, 'set_max_loops_limit', 15)

        v_btcb = self.eco['core_markets']['BTCB']
        vault = self.transact(self.user, self.factory, 'create_erc4626', v_btcb, True)

        self.assertEqual(self.contract(vault).max_loops_limit, 15)
        self.assertEqual(self.contract(self.core_vault).max_loops_limit, 10)

        with self.assertRaises(InvalidMaxLoopsLimit):
            self.transact(self.owner, self.factory, 'set_max_loops_limit', 14)

    def test_setters_need_permission(self):
        with self.assertRaises(Unauthorized) as ctx:
            self.transact(self.user, self.factory, 'set_reward_recipient', self.user)
        self.assertEqual(ctx.exception.called_contract, self.factory)

        with self.assertRaises(Unauthorized):
            self.transact(self.user, self.factory, 'set_max_loops_limit', 20)

        with self.assertRaises(ZeroAddressNotAllowed):
            self.transact(self.owner, self.factory, 'set_reward_recipient', ZERO_ADDRESS)

    def test_new_owner_owns_new_vaults(self):
        """Test vaults are initialized with the factory's current owner"""
        self.transact(self.owner, self.factory, 'transfer_ownership', self.other)
        self.transact(self.other, self.factory, 'accept_ownership')

        v_btcb = self.eco['core_markets']['BTCB']
        vault = self.transact(self.user, self.factory, 'create_erc4626', v_btcb, True)

        self.assertEqual(self.contract(vault).owner, self.other)
        self.assertEqual(self.contract(self.core_vault).owner, self.owner)

    def test_beacon_upgrade(self):
        """Test upgrading a beacon changes every vault of that kind only"""
        self.deposit(self.user, self.core_vault, self.usdt, units(100))
        core_beacon = self.view(self.factory, 'beacon_for', True)

        with self.assertRaises(OwnableUnauthorizedAccount):
            self.transact(self.user, core_beacon, 'upgrade_to', VenusERC4626CoreV2)

        self.transact(self.owner, core_beacon, 'upgrade_to', VenusERC4626CoreV2)

        self.assertEqual(self.view(self.core_vault, 'version'), 2)
        self.assertEqual(self.view(self.core_vault, 'balance_of', self.user), units(100))
        self.assertEqual(self.view(self.core_vault, 'total_assets'), units(100))

        with self.assertRaises(FunctionNotFound):
            self.view(self.isolated_vault, 'version')


if __name__ == '__main__':
    unittest.main(verbosity=2)
