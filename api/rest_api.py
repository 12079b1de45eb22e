from flask import Flask, request, g, current_app
from flask_cors import CORS
from flask_restful import Api, Resource
from functools import wraps
import jwt
import time
import logging
from typing import Dict, Any, Optional

from smart_contracts import create_vault_ecosystem
from smart_contracts.engine import SmartContractEngine, VMException, ContractError
from security.cryptography import ECDSAKeyPair, CryptoUtils

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VAULT_OPERATIONS = ('deposit', 'mint', 'withdraw', 'redeem')
PREVIEW_OPERATIONS = {
    'deposit': 'preview_deposit',
    'mint': 'preview_mint',
    'withdraw': 'preview_withdraw',
    'redeem': 'preview_redeem'
}


class VaultAPI:
    """HTTP front end for the vault factory and its vaults"""

    def __init__(self, owner: Optional[str] = None, engine: Optional[SmartContractEngine] = None,
                 secret_key: str = 'your-secret-key-change-in-production'):
        self.app = Flask(__name__)
        self.app.config['SECRET_KEY'] = secret_key
        self.app.config['JWT_EXPIRATION'] = 3600

        # Enable CORS for all routes
        CORS(self.app)

        # Initialize Flask-RESTful
        self.api = Api(self.app)

        self.owner = owner or ECDSAKeyPair.generate().get_address()
        self.ecosystem = create_vault_ecosystem(self.owner, engine=engine)
        self.engine: SmartContractEngine = self.ecosystem['engine']

        # Register API routes
        self._register_routes()

    def _register_routes(self):
        """Register all API routes"""
        kwargs = {'api': self}

        self.api.add_resource(AuthResource, '/api/auth/token', resource_class_kwargs=kwargs)
        self.api.add_resource(EcosystemResource, '/api/ecosystem', resource_class_kwargs=kwargs)

        # Factory routes
        self.api.add_resource(VaultListResource, '/api/vaults', resource_class_kwargs=kwargs)
        self.api.add_resource(VaultAddressResource, '/api/vaults/predict', resource_class_kwargs=kwargs)

        # Vault routes
        self.api.add_resource(VaultResource, '/api/vaults/<vault>', resource_class_kwargs=kwargs)
        self.api.add_resource(VaultPreviewResource, '/api/vaults/<vault>/preview/<operation>',
                              resource_class_kwargs=kwargs)
        self.api.add_resource(VaultOperationResource, '/api/vaults/<vault>/<operation>',
                              resource_class_kwargs=kwargs)

        # Token and event routes
        self.api.add_resource(TokenResource, '/api/tokens/<token>/<action>', resource_class_kwargs=kwargs)
        self.api.add_resource(EventResource, '/api/events', resource_class_kwargs=kwargs)

    def run(self, host='0.0.0.0', port=5000, debug=False):
        """Run the Flask application"""
        logger.info(f"Starting API server on {host}:{port}")
        self.app.run(host=host, port=port, debug=debug)

    # Helpers shared by resources

    def vault_summary(self, vault: str) -> Dict[str, Any]:
        contract = self.engine.get_contract(vault)
        view = self.engine.view
        return {
            'address': vault,
            'name': view(vault, 'name'),
            'symbol': view(vault, 'symbol'),
            'asset': view(vault, 'asset'),
            'v_token': contract.v_token,
            'comptroller': contract.comptroller,
            'owner': contract.owner,
            'reward_recipient': contract.reward_recipient,
            'max_loops_limit': contract.max_loops_limit,
            'total_assets': str(view(vault, 'total_assets')),
            'total_supply': str(view(vault, 'total_supply'))
        }

    def is_vault(self, address: str) -> bool:
        return address in self.engine.get_contract(self.ecosystem['factory']).vault_list


def require_auth(f):
    """Decorator to require authentication for API endpoints"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.headers.get('Authorization')
        if not token:
            return {'error': 'No authorization token provided'}, 401

        try:
            # Remove 'Bearer ' prefix if present
            if token.startswith('Bearer '):
                token = token[7:]

            # Decode JWT token
            payload = jwt.decode(token, current_app.config['SECRET_KEY'], algorithms=['HS256'])
            g.caller = payload['address']

        except jwt.ExpiredSignatureError:
            return {'error': 'Token has expired'}, 401
        except jwt.InvalidTokenError:
            return {'error': 'Invalid token'}, 401

        return f(*args, **kwargs)
    return decorated_function


def contract_call(f):
    """Map contract reverts to 400 responses carrying the error name"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ContractError as e:
            return {'error': str(e), 'error_name': e.name}, 400
        except VMException as e:
            return {'error': str(e), 'error_name': type(e).__name__}, 400
        except (KeyError, TypeError, ValueError) as e:
            return {'error': f'Invalid request: {e}'}, 400
    return decorated_function


def parse_amount(value: Any) -> int:
    """Amounts travel as decimal strings so they survive JSON"""
    amount = int(value)
    if amount < 0:
        raise ValueError("amount must not be negative")
    return amount


class AuthResource(Resource):
    """Issues bearer tokens binding requests to an account address"""

    def __init__(self, api):
        self.api = api

    def post(self):
        """Token for an existing address, or for a freshly generated account"""
        data = request.get_json(silent=True) or {}
        address = data.get('address')

        if address is None:
            address = ECDSAKeyPair.generate().get_address()
        elif not CryptoUtils.is_address(address):
            return {'error': 'Invalid address'}, 400

        payload = {
            'address': address,
            'exp': int(time.time()) + self.api.app.config['JWT_EXPIRATION']
        }
        token = jwt.encode(payload, self.api.app.config['SECRET_KEY'], algorithm='HS256')

        return {
            'success': True,
            'address': address,
            'token': token
        }


class EcosystemResource(Resource):
    """Addresses of the deployed markets and factory"""

    def __init__(self, api):
        self.api = api

    def get(self):
        info = {key: value for key, value in self.api.ecosystem.items() if key != 'engine'}
        info['stats'] = self.api.engine.get_engine_stats()
        return info


class VaultListResource(Resource):
    """Factory endpoints"""

    def __init__(self, api):
        self.api = api

    def get(self):
        """List every vault the factory created"""
        factory = self.api.engine.get_contract(self.api.ecosystem['factory'])
        return {'vaults': [self.api.vault_summary(vault) for vault in factory.all_vaults()]}

    @require_auth
    @contract_call
    def post(self):
        """Create the vault for a market"""
        data = request.get_json()
        v_token = data['v_token']
        is_core = bool(data.get('is_core', True))

        vault = self.api.engine.transact(g.caller, self.api.ecosystem['factory'],
                                         'create_erc4626', v_token, is_core)
        return {'success': True, 'vault': vault}, 201


class VaultAddressResource(Resource):
    """Deterministic address of a market's vault"""

    def __init__(self, api):
        self.api = api

    @contract_call
    def get(self):
        v_token = request.args['v_token']
        is_core = request.args.get('is_core', 'true').lower() in ('1', 'true', 'yes')
        factory = self.api.ecosystem['factory']

        return {
            'v_token': v_token,
            'is_core': is_core,
            'address': self.api.engine.view(factory, 'compute_vault_address', v_token, is_core),
            'deployed': self.api.engine.view(factory, 'get_vault', v_token, is_core)
        }


class VaultResource(Resource):
    """Vault state"""

    def __init__(self, api):
        self.api = api

    def get(self, vault):
        if not self.api.is_vault(vault):
            return {'error': 'Vault not found'}, 404

        summary = self.api.vault_summary(vault)
        account = request.args.get('account')
        if account:
            view = self.api.engine.view
            summary['account'] = {
                'address': account,
                'shares': str(view(vault, 'balance_of', account)),
                'max_withdraw': str(view(vault, 'max_withdraw', account)),
                'max_redeem': str(view(vault, 'max_redeem', account))
            }
        return summary


class VaultPreviewResource(Resource):
    """Previews against the current share price"""

    def __init__(self, api):
        self.api = api

    @contract_call
    def get(self, vault, operation):
        if not self.api.is_vault(vault):
            return {'error': 'Vault not found'}, 404
        if operation not in PREVIEW_OPERATIONS:
            return {'error': f'Unknown operation: {operation}'}, 400

        amount = parse_amount(request.args['amount'])
        result = self.api.engine.view(vault, PREVIEW_OPERATIONS[operation], amount)
        return {'operation': operation, 'amount': str(amount), 'result': str(result)}


class VaultOperationResource(Resource):
    """State-changing vault calls made on behalf of the token holder"""

    def __init__(self, api):
        self.api = api

    @require_auth
    @contract_call
    def post(self, vault, operation):
        if not self.api.is_vault(vault):
            return {'error': 'Vault not found'}, 404

        data = request.get_json(silent=True) or {}
        engine = self.api.engine

        if operation in VAULT_OPERATIONS:
            amount = parse_amount(data['amount'])
            receiver = data.get('receiver', g.caller)
            if operation in ('deposit', 'mint'):
                args = (amount, receiver)
            else:
                args = (amount, receiver, data.get('owner', g.caller))
        elif operation == 'claim_rewards':
            args = ()
        elif operation == 'set_reward_recipient':
            args = (data['recipient'],)
        elif operation == 'set_max_loops_limit':
            args = (int(data['limit']),)
        else:
            return {'error': f'Unknown operation: {operation}'}, 400

        result = engine.transact(g.caller, vault, operation, *args)
        receipt = engine.get_transaction_history(address=g.caller)[-1]

        return {
            'success': True,
            'operation': operation,
            'result': str(result),
            'transaction_hash': receipt.transaction_hash,
            'gas_used': receipt.gas_used,
            'events': [{'event': log['event'], 'contract': log['contract'],
                        'data': {k: str(v) for k, v in log['data'].items()}}
                       for log in receipt.logs]
        }


class TokenResource(Resource):
    """Underlying token helpers: balances, approvals and a test faucet"""

    def __init__(self, api):
        self.api = api

    @contract_call
    def get(self, token, action):
        if action != 'balance':
            return {'error': f'Unknown action: {action}'}, 400

        account = request.args['account']
        return {'token': token, 'account': account,
                'balance': str(self.api.engine.view(token, 'balance_of', account))}

    @require_auth
    @contract_call
    def post(self, token, action):
        data = request.get_json(silent=True) or {}
        amount = parse_amount(data['amount'])

        if action == 'approve':
            ok = self.api.engine.transact(g.caller, token, 'approve', data['spender'], amount)
        elif action == 'faucet':
            if token not in self.api.ecosystem['tokens'].values():
                return {'error': 'Token not found'}, 404
            ok = self.api.engine.transact(self.api.owner, token, 'mint', g.caller, amount)
        else:
            return {'error': f'Unknown action: {action}'}, 400

        return {'success': bool(ok), 'token': token, 'amount': str(amount)}


class EventResource(Resource):
    """Event log queries"""

    def __init__(self, api):
        self.api = api

    def get(self):
        events = self.api.engine.get_events(request.args.get('name'), request.args.get('contract'))
        return {
            'events': [{
                'event': log['event'],
                'contract': log['contract'],
                'block_number': log['block_number'],
                'data': {key: str(value) for key, value in log['data'].items()}
            } for log in events]
        }


# Main application factory
def create_app(owner: Optional[str] = None):
    """Create and configure the Flask application"""
    api = VaultAPI(owner=owner)
    return api.app


if __name__ == '__main__':
    # Create and run the API
    vault_api = VaultAPI()
    vault_api.run(debug=True)
