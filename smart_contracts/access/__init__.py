"""Access control for privileged contract functions"""

from .access_control import (
    AccessControlManager,
    AccessControlledOwnable,
    DEFAULT_ADMIN_ROLE,
    get_role
)
from .max_loops_limit import MaxLoopsLimitHelper

__all__ = [
    'AccessControlManager',
    'AccessControlledOwnable',
    'DEFAULT_ADMIN_ROLE',
    'get_role',
    'MaxLoopsLimitHelper'
]
