#!/usr/bin/env python3
"""
Vault Platform - Main Application Entry Point

Deploys a complete lending-market environment with the ERC-4626 vault
factory, then either runs a scripted walkthrough or serves the REST API.

Usage:
    python main.py [options]

Options:
    --demo              Run the scripted walkthrough and exit
    --port PORT         API server port (default: 5000)
    --host HOST         API server host (default: 0.0.0.0)
    --max-loops N       Distributor bound copied into new vaults
    --debug             Enable debug mode
    --help              Show this help message

Examples:
    python main.py                    # Serve the API
    python main.py --demo             # Walk through a deposit/claim/redeem cycle
    python main.py --port 8080        # Serve on port 8080
"""

import sys
import argparse
import logging
import signal

from smart_contracts import create_vault_ecosystem, DEFAULT_MAX_LOOPS_LIMIT, EXP_SCALE
from smart_contracts.engine import ContractError
from security.cryptography import random_address
from api import start_api_server

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class VaultPlatform:
    """Runs the vault ecosystem either as a scripted demo or behind the API"""

    def __init__(self, max_loops_limit: int = DEFAULT_MAX_LOOPS_LIMIT):
        self.owner = random_address()
        self.max_loops_limit = max_loops_limit
        self.ecosystem = None
        self.engine = None

    def initialize(self):
        """Deploy markets, pools and the factory"""
        print("Initializing vault ecosystem...")

        self.ecosystem = create_vault_ecosystem(self.owner, max_loops_limit=self.max_loops_limit)
        self.engine = self.ecosystem['engine']

        print(f"✓ Factory deployed at {self.ecosystem['factory']}")
        print(f"✓ Core markets: {', '.join(self.ecosystem['core_markets'])}")
        print(f"✓ Isolated markets: {', '.join(self.ecosystem['isolated_markets'])}")

    def run_demo(self):
        """Create vaults, deposit, accrue interest and rewards, claim and redeem"""
        engine = self.engine
        eco = self.ecosystem
        owner = self.owner
        user = random_address()
        amount = 1_000 * EXP_SCALE

        usdt = eco['tokens']['USDT']
        v_usdt = eco['core_markets']['USDT']
        core_vault = engine.transact(owner, eco['factory'], 'create_erc4626', v_usdt, True)
        print(f"✓ Core USDT vault created at {core_vault}")

        hay = eco['tokens']['HAY']
        v_hay = eco['isolated_markets']['HAY']
        predicted = engine.view(eco['factory'], 'compute_vault_address', v_hay, False)
        isolated_vault = engine.transact(owner, eco['factory'], 'create_erc4626', v_hay, False)
        print(f"✓ Isolated HAY vault created at {isolated_vault} (predicted {predicted})")

        for token, vault in ((usdt, core_vault), (hay, isolated_vault)):
            engine.transact(owner, token, 'mint', user, amount)
            engine.transact(user, token, 'approve', vault, amount)
            shares = engine.transact(user, vault, 'deposit', amount, user)
            print(f"✓ Deposited {amount / EXP_SCALE:,.2f} into {vault}: {shares / EXP_SCALE:,.4f} shares")

        # Interest accrues: fund the market and raise its exchange rate by 1%
        engine.transact(owner, usdt, 'mint', v_usdt, amount // 100)
        engine.transact(owner, v_usdt, 'set_exchange_rate', EXP_SCALE * 101 // 100)
        total_assets = engine.view(core_vault, 'total_assets')
        print(f"✓ Core vault total assets after accrual: {total_assets / EXP_SCALE:,.4f}")

        engine.transact(owner, eco['core_comptroller'], 'set_venus_accrued', core_vault, 5 * EXP_SCALE)
        engine.transact(owner, eco['rewards_distributor'], 'set_reward_token_accrued',
                        isolated_vault, 3 * EXP_SCALE)
        for vault in (core_vault, isolated_vault):
            engine.transact(user, vault, 'claim_rewards')
        reserve = engine.view(eco['xvs'], 'balance_of', eco['protocol_share_reserve'])
        print(f"✓ Rewards claimed; share reserve holds {reserve / EXP_SCALE:,.2f} XVS")

        shares = engine.view(core_vault, 'balance_of', user)
        try:
            assets = engine.transact(user, core_vault, 'redeem', shares, user, user)
            print(f"✓ Redeemed {shares / EXP_SCALE:,.4f} shares for {assets / EXP_SCALE:,.4f} USDT")
        except ContractError as e:
            print(f"❌ Redeem failed: {e}")

        stats = engine.get_engine_stats()
        print(f"✓ {stats['total_transactions']} transactions, {stats['failed_transactions']} failed")

    def serve(self, host='0.0.0.0', port=5000, debug=False):
        print(f"Starting API server on {host}:{port}...")
        start_api_server(host=host, port=port, debug=debug, owner=self.owner)


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Vault Platform',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--demo', action='store_true',
                        help='Run the scripted walkthrough and exit')
    parser.add_argument('--port', type=int, default=5000,
                        help='API server port (default: 5000)')
    parser.add_argument('--host', default='0.0.0.0',
                        help='API server host (default: 0.0.0.0)')
    parser.add_argument('--max-loops', type=int, default=DEFAULT_MAX_LOOPS_LIMIT,
                        help=f'Distributor bound for new vaults (default: {DEFAULT_MAX_LOOPS_LIMIT})')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug mode')

    args = parser.parse_args()

    platform = VaultPlatform(max_loops_limit=args.max_loops)

    def signal_handler(signum, frame):
        print("\n🛑 Stopping Vault Platform...")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        if args.demo:
            platform.initialize()
            platform.run_demo()
        else:
            platform.serve(host=args.host, port=args.port, debug=args.debug)

    except ContractError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
