"""Routing rule for page views: a pure function of (path, signed in or not)."""
from typing import Optional

LOGIN_PATH = "/login"
REGISTER_PATH = "/register"
DASHBOARD_PATH = "/dashboard"
ROOT_PATH = "/"

PROTECTED_PATHS = frozenset({DASHBOARD_PATH, "/logout"})
GUEST_ONLY_PATHS = frozenset({LOGIN_PATH, REGISTER_PATH})


def normalize_path(path: str) -> str:
    if len(path) > 1:
        path = path.rstrip("/")
    return path or ROOT_PATH


def requires_auth(path: str) -> bool:
    return normalize_path(path) in PROTECTED_PATHS


def resolve_route(path: str, authenticated: bool) -> Optional[str]:
    """Return the path to redirect to, or None to render the requested view."""
    path = normalize_path(path)
    if path == ROOT_PATH:
        return DASHBOARD_PATH if authenticated else LOGIN_PATH
    if path in PROTECTED_PATHS and not authenticated:
        return LOGIN_PATH
    if path in GUEST_ONLY_PATHS and authenticated:
        return DASHBOARD_PATH
    return None
