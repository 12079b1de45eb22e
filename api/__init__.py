"""API Module for the Vault Platform

REST endpoints for creating vaults through the factory and for depositing
into, withdrawing from and claiming rewards on existing vaults.

Features:
- RESTful API endpoints
- JWT bearer tokens carrying the caller address
- Contract reverts reported with their error name
- CORS support
"""

from .rest_api import (
    VaultAPI,
    AuthResource,
    EcosystemResource,
    VaultListResource,
    VaultAddressResource,
    VaultResource,
    VaultPreviewResource,
    VaultOperationResource,
    TokenResource,
    EventResource,
    create_app
)

__all__ = [
    'VaultAPI',
    'AuthResource',
    'EcosystemResource',
    'VaultListResource',
    'VaultAddressResource',
    'VaultResource',
    'VaultPreviewResource',
    'VaultOperationResource',
    'TokenResource',
    'EventResource',
    'create_app',
    'start_api_server'
]

__version__ = '1.0.0'
__author__ = 'Smart Contract Platform Team'

# API Configuration
DEFAULT_PORT = 5000
DEFAULT_HOST = '0.0.0.0'


def start_api_server(host=DEFAULT_HOST, port=DEFAULT_PORT, debug=False, owner=None):
    """Start the API server

    Args:
        host (str): Host to bind to
        port (int): Port to listen on
        debug (bool): Enable debug mode
        owner (str): Account owning the deployed ecosystem
    """
    api = VaultAPI(owner=owner)
    api.run(host=host, port=port, debug=debug)
