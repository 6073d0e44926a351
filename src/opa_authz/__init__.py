"""
opa_authz

Authorization decision cache and Open Policy Agent client.

Responsibilities:
- Expose package version metadata.
- Re-export the public client surface used by interception layers.
"""

from opa_authz.cache import DecisionCache
from opa_authz.client import PolicyClient
from opa_authz.errors import AccessDenied, OpaError
from opa_authz.models import Action, Decision, Principal, Resource

__all__ = [
    "AccessDenied",
    "Action",
    "Decision",
    "DecisionCache",
    "OpaError",
    "PolicyClient",
    "Principal",
    "Resource",
    "__version__",
]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file free of side effects; logging is configured explicitly by callers.
