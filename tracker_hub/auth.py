"""
Authentication Module
Bearer token authentication and scope checks for the API blueprints.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from flask import current_app, g, request

from tracker_hub.api.errors import Forbidden, NotAuthenticated
from tracker_hub.config_manager import ConfigManager
from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)

EXTENSION_KEY = 'tracker_hub.auth'


@dataclass
class Principal:
    """Authenticated caller."""
    user: str
    scopes: List[str] = field(default_factory=list)

    def has_scope(self, resource: str, method: str) -> bool:
        """Check for a '<resource>:<method>' grant; either part may be '*'."""
        for scope in self.scopes:
            granted_resource, _, granted_method = scope.partition(':')
            if granted_resource not in ('*', resource):
                continue
            if granted_method in ('*', method):
                return True
        return False


class NoAuth:
    """Accepts every request as the built-in admin user."""

    USER = 'admin.noauth'

    def authenticate(self, token: Optional[str]) -> Optional[Principal]:
        return Principal(user=self.USER, scopes=['*:*'])


class TokenAuth:
    """Static bearer tokens mapped to a user and its scopes."""

    def __init__(self, tokens: Dict[str, Dict]):
        self.tokens = tokens

    def authenticate(self, token: Optional[str]) -> Optional[Principal]:
        if not token:
            return None
        entry = self.tokens.get(token)
        if entry is None:
            return None
        return Principal(user=entry.get('user', ''), scopes=list(entry.get('scopes', [])))


def build_provider(config: ConfigManager):
    """Build the auth provider described by the 'auth' config section."""
    auth_config = config.get_auth_config()
    if not auth_config.get('required', False):
        logger.info("Authentication disabled; all callers are treated as admin")
        return NoAuth()
    return TokenAuth(auth_config.get('tokens') or {})


def _bearer_token() -> Optional[str]:
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def required(resource: str) -> Callable[[], None]:
    """
    Build a before_request hook requiring the '<resource>:<method>' scope.

    Usage:
        trackers_bp.before_request(auth.required('trackers'))
    """
    def check() -> None:
        # CORS preflight carries no credentials
        if request.method == 'OPTIONS':
            return

        provider = current_app.extensions[EXTENSION_KEY]
        principal = provider.authenticate(_bearer_token())
        if principal is None:
            raise NotAuthenticated('Not authenticated')

        method = request.method.lower()
        if not principal.has_scope(resource, method):
            logger.warning(f"User {principal.user} denied {resource}:{method}")
            raise Forbidden(f"Scope {resource}:{method} required")

        g.principal = principal

    return check


def current_user() -> str:
    """Name of the authenticated caller for the current request."""
    principal = g.get('principal')
    return principal.user if principal is not None else ''
