"""
Core dependencies: bearer-token auth for the JSON API, and the per-visitor
context plus route guard for page views.
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.errors import RedirectRequired
from app.database.supabase_client import SupabaseClient, get_supabase
from app.modules.auth.guard import resolve_route
from app.modules.auth.service import AuthService
from app.modules.visitors.registry import Visitor, VisitorRegistry, new_visitor_id
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

VISITOR_SESSION_KEY = "visitor_id"


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_fresh_client() -> Client:
    """Unshared, non-refreshing client for API calls that open a session (sign-up, sign-in)"""
    return SupabaseClient.request_client()


def get_session_auth_service(client: Client = Depends(get_fresh_client)) -> AuthService:
    return AuthService(client)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_user_client(token: str = Depends(get_current_token)) -> Client:
    """Client acting as the token's user, for tables behind row-level policies"""
    return SupabaseClient.for_token(token)


def get_visitor_registry(request: Request) -> VisitorRegistry:
    return request.app.state.visitors


def get_visitor(
    request: Request,
    registry: VisitorRegistry = Depends(get_visitor_registry)
) -> Visitor:
    """Visitor context for the browser making the request, created on first sight"""
    visitor_id = request.session.get(VISITOR_SESSION_KEY)
    if not visitor_id:
        visitor_id = new_visitor_id()
        request.session[VISITOR_SESSION_KEY] = visitor_id
    return registry.get_or_create(visitor_id)


def guard_route(
    request: Request,
    visitor: Visitor = Depends(get_visitor)
) -> Visitor:
    """Redirect according to the routing rule before a page view runs"""
    target = resolve_route(request.url.path, visitor.is_authenticated)
    if target is not None:
        raise RedirectRequired(target)
    return visitor
