"""
Page views: login and registration forms, the dashboard, and sign-out.

Every view runs behind guard_route, so which page a visitor ends up on is
decided by the routing rule and the visitor's observer. Handlers call the
external service and report its errors; they never set the current user.
"""
import logging
from pathlib import Path
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from app.config import settings
from app.core.dependencies import get_visitor, guard_route
from app.core.errors import RedirectRequired
from app.core.flash import flash, pop_flashes
from app.core.limiter import limiter
from app.modules.auth.guard import DASHBOARD_PATH, LOGIN_PATH, ROOT_PATH, resolve_route
from app.modules.auth.schemas import LoginRequest, RegisterRequest
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from app.modules.visitors.registry import Visitor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"], include_in_schema=False)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))


def _validation_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    return f"{field}: {error['msg']}" if field else error["msg"]


def _render(request: Request, name: str, context: dict = None, status_code: int = 200):
    context = dict(context or {})
    context.setdefault("app_name", settings.app_name)
    context.setdefault("flashes", pop_flashes(request))
    return templates.TemplateResponse(request, name, context, status_code=status_code)


@router.get("/")
async def root(visitor: Visitor = Depends(get_visitor)):
    return RedirectResponse(resolve_route(ROOT_PATH, visitor.is_authenticated), status_code=303)


@router.get("/login")
async def login_page(request: Request, visitor: Visitor = Depends(guard_route)):
    return _render(request, "login.html", {"email": ""})


@router.post("/login")
@limiter.limit(settings.auth_rate_limit)
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    visitor: Visitor = Depends(guard_route)
):
    try:
        login_data = LoginRequest(email=email, password=password)
    except ValidationError as e:
        return _render(request, "login.html", {"email": email, "error": _validation_message(e)}, 422)

    try:
        AuthService(visitor.client).login(login_data)
    except HTTPException as e:
        return _render(request, "login.html", {"email": email, "error": e.detail}, e.status_code)

    # Where to go next is up to the guard, once the observer has seen the sign-in
    return RedirectResponse(request.url.path, status_code=303)


@router.get("/register")
async def register_page(request: Request, visitor: Visitor = Depends(guard_route)):
    return _render(request, "register.html", {"form": {}})


@router.post("/register")
@limiter.limit(settings.auth_rate_limit)
async def register_submit(
    request: Request,
    display_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    phone: str = Form(""),
    visitor: Visitor = Depends(guard_route)
):
    form = {"display_name": display_name, "email": email, "phone": phone}
    try:
        register_data = RegisterRequest(password=password, **form)
    except ValidationError as e:
        return _render(request, "register.html", {"form": form, "error": _validation_message(e)}, 422)

    try:
        result = AuthService(visitor.client).register(register_data)
    except HTTPException as e:
        return _render(request, "register.html", {"form": form, "error": e.detail}, e.status_code)

    flash(request, result.message, "success")
    return RedirectResponse(LOGIN_PATH, status_code=303)


@router.get("/dashboard")
async def dashboard(request: Request, visitor: Visitor = Depends(guard_route)):
    user = visitor.current_user
    if user is None:
        raise RedirectRequired(LOGIN_PATH)

    profile = None
    profile_error = None
    try:
        profile = ProfileService(visitor.client).get_profile(user.id)
    except HTTPException as e:
        logger.warning(f"Dashboard profile lookup failed for {user.id}: {e.detail}")
        profile_error = e.detail

    return _render(request, "dashboard.html", {
        "user": user,
        "profile": profile,
        "profile_error": profile_error,
    })


@router.post("/logout")
async def logout(request: Request, visitor: Visitor = Depends(guard_route)):
    try:
        AuthService(visitor.client).logout()
    except HTTPException as e:
        flash(request, e.detail, "error")
        return RedirectResponse(DASHBOARD_PATH, status_code=303)

    target = resolve_route(request.url.path, visitor.is_authenticated) or LOGIN_PATH
    return RedirectResponse(target, status_code=303)
