"""Shared setup for vault, factory and API tests"""

import unittest

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from smart_contracts import create_vault_ecosystem, EXP_SCALE
from security.cryptography import random_address


class VaultTestCase(unittest.TestCase):
    """Deploys a fresh ecosystem with one core and one isolated vault"""

    max_loops_limit = 10

    def setUp(self):
        self.owner = random_address()
        self.user = random_address()
        self.other = random_address()

        self.eco = create_vault_ecosystem(self.owner, max_loops_limit=self.max_loops_limit)
        self.engine = self.eco['engine']
        self.factory = self.eco['factory']
        self.xvs = self.eco['xvs']
        self.psr = self.eco['protocol_share_reserve']

        self.usdt = self.eco['tokens']['USDT']
        self.v_usdt = self.eco['core_markets']['USDT']
        self.hay = self.eco['tokens']['HAY']
        self.v_hay = self.eco['isolated_markets']['HAY']

        self.core_vault = self.transact(self.owner, self.factory, 'create_erc4626', self.v_usdt, True)
        self.isolated_vault = self.transact(self.owner, self.factory, 'create_erc4626', self.v_hay, False)

    def transact(self, caller, contract, function_name, *args):
        return self.engine.transact(caller, contract, function_name, *args)

    def view(self, contract, function_name, *args):
        return self.engine.view(contract, function_name, *args)

    def contract(self, address):
        return self.engine.get_contract(address)

    def events(self, name, contract=None):
        return self.engine.get_events(name, contract)

    def fund(self, token, account, amount):
        self.transact(self.owner, token, 'mint', account, amount)

    def deposit(self, account, vault, token, amount):
        """Fund, approve and deposit; returns the shares received"""
        self.fund(token, account, amount)
        self.transact(account, token, 'approve', vault, amount)
        return self.transact(account, vault, 'deposit', amount, account)

    def set_rate(self, v_token, rate):
        self.transact(self.owner, v_token, 'set_exchange_rate', rate)


def units(amount) -> int:
    """Whole token amount in 18-decimal base units"""
    return int(amount * EXP_SCALE)
