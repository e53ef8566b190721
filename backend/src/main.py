"""HealthyGrowth Backend - Entry point.

Runs the local HTTP API (and the MCP endpoint) for the health tracker.
Uses Starlette with the MCP HTTP app mounted at the root.
"""

import asyncio
import logging

import uvicorn
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from .core.errors import (
    AnalysisError,
    CredentialMissingError,
    DuplicateEntryError,
    PlanGenerationError,
    SessionNotReadyError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from .core.logs import accept_recognized
from .core.models import ExerciseItem, FoodItem
from .shell.config import AppConfig
from .shell.context import AppContext, build_context, set_context
from .shell.mcp_server import mcp


logger = logging.getLogger(__name__)


def _context(request: Request) -> AppContext:
    return request.app.state.context


async def _json_body(request: Request) -> dict | list:
    try:
        return await request.json()
    except ValueError:
        return {}


async def _json_object(request: Request) -> dict:
    body = await _json_body(request)
    return body if isinstance(body, dict) else {}


def _not_ready() -> JSONResponse:
    return JSONResponse({"error": "No user data loaded. Please log in."}, status_code=409)


def _invalid(e: ValidationError | ValueError) -> JSONResponse:
    if isinstance(e, ValidationError):
        details = e.errors(include_url=False, include_context=False)
        return JSONResponse({"error": "Invalid input", "details": details}, status_code=422)
    return JSONResponse({"error": str(e)}, status_code=400)


def _user_dict(user) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name}


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "healthy", "service": "healthygrowth"})


async def status(request: Request) -> JSONResponse:
    """Session state and AI availability."""
    ctx = _context(request)
    user = ctx.session.current_user
    return JSONResponse({
        "state": ctx.session.state.value,
        "user": _user_dict(user) if user else None,
        "ai_available": ctx.advisor.available,
    })


async def signup(request: Request) -> JSONResponse:
    """Register a new user and log them in."""
    ctx = _context(request)
    body = await _json_object(request)
    try:
        user = ctx.directory.signup(body.get("email"), body.get("name"))
    except UserAlreadyExistsError as e:
        return JSONResponse({"error": str(e), "mode": "login"}, status_code=409)
    except ValueError as e:
        return _invalid(e)

    ctx.session.login(user)
    return JSONResponse({"user": _user_dict(user), "state": ctx.session.state.value})


async def login(request: Request) -> JSONResponse:
    """Log in an existing user and load their data."""
    ctx = _context(request)
    body = await _json_object(request)
    email = body.get("email")
    if not email or not isinstance(email, str):
        return JSONResponse({"error": "Email is required"}, status_code=400)
    try:
        user = ctx.directory.login(email)
    except UserNotFoundError as e:
        return JSONResponse({"error": str(e), "mode": "signup"}, status_code=404)

    ctx.session.login(user)
    return JSONResponse({"user": _user_dict(user), "state": ctx.session.state.value})


async def logout(request: Request) -> JSONResponse:
    ctx = _context(request)
    ctx.session.logout()
    return JSONResponse({"state": ctx.session.state.value})


async def list_users(request: Request) -> JSONResponse:
    """All registered users (admin view)."""
    users = _context(request).directory.list_users()
    return JSONResponse([_user_dict(u) for u in users])


async def profile(request: Request) -> JSONResponse:
    """Read or update the current user's profile."""
    session = _context(request).session
    try:
        if request.method == "PUT":
            body = await _json_body(request)
            if not isinstance(body, dict):
                return JSONResponse({"error": "Profile changes must be an object"}, status_code=400)
            updated = session.update_profile(body)
        else:
            updated = session.data.profile
    except SessionNotReadyError:
        return _not_ready()
    except ValueError as e:
        return _invalid(e)
    return JSONResponse(updated.model_dump(mode="json"))


async def foods(request: Request) -> JSONResponse:
    """List today's food log, or append one or more items."""
    session = _context(request).session
    try:
        if request.method == "POST":
            body = await _json_body(request)
            raw_items = body if isinstance(body, list) else [body]
            items = [FoodItem.model_validate(item) for item in raw_items]
            session.add_foods(items)
            return JSONResponse([f.model_dump(mode="json") for f in items], status_code=201)
        return JSONResponse([f.model_dump(mode="json") for f in session.data.foods])
    except SessionNotReadyError:
        return _not_ready()
    except DuplicateEntryError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    except ValueError as e:
        return _invalid(e)


async def food_item(request: Request) -> JSONResponse:
    """Replace or delete a food item."""
    session = _context(request).session
    food_id = request.path_params["food_id"]
    try:
        if request.method == "DELETE":
            remaining = session.delete_food(food_id)
            return JSONResponse({"success": True, "items_remaining": len(remaining)})
        body = await _json_object(request)
        item = FoodItem.model_validate({**body, "id": food_id})
        session.update_food(item)
        return JSONResponse(item.model_dump(mode="json"))
    except SessionNotReadyError:
        return _not_ready()
    except ValueError as e:
        return _invalid(e)


async def exercises(request: Request) -> JSONResponse:
    """List or add exercise sessions."""
    session = _context(request).session
    try:
        if request.method == "POST":
            body = await _json_object(request)
            item = ExerciseItem.model_validate({k: v for k, v in body.items() if k != "id"})
            session.add_exercise(item)
            return JSONResponse(item.model_dump(mode="json"), status_code=201)
        return JSONResponse([e.model_dump(mode="json") for e in session.data.exercises])
    except SessionNotReadyError:
        return _not_ready()
    except ValueError as e:
        return _invalid(e)


async def exercise_item(request: Request) -> JSONResponse:
    session = _context(request).session
    try:
        remaining = session.delete_exercise(request.path_params["exercise_id"])
    except SessionNotReadyError:
        return _not_ready()
    return JSONResponse({"success": True, "entries_remaining": len(remaining)})


async def water(request: Request) -> JSONResponse:
    """Adjust today's water intake by a signed delta in millilitres."""
    session = _context(request).session
    body = await _json_object(request)
    delta = body.get("delta")
    if isinstance(delta, bool) or not isinstance(delta, int):
        return JSONResponse({"error": "delta must be an integer (ml)"}, status_code=400)
    try:
        total = session.adjust_water(delta)
    except SessionNotReadyError:
        return _not_ready()
    return JSONResponse({"date": session.today().isoformat(), "amount": total})


async def dashboard(request: Request) -> JSONResponse:
    session = _context(request).session
    try:
        summary = session.dashboard()
    except SessionNotReadyError:
        return _not_ready()
    return JSONResponse(summary.model_dump(mode="json"))


async def scan(request: Request) -> JSONResponse:
    """Analyze a food photo; results get IDs but are not logged yet."""
    ctx = _context(request)
    mime_type = request.headers.get("content-type", "").split(";")[0].strip()
    image_bytes = await request.body()
    try:
        recognized = await asyncio.to_thread(ctx.advisor.analyze_image, image_bytes, mime_type)
    except CredentialMissingError as e:
        return JSONResponse({"error": str(e), "ai_available": False}, status_code=503)
    except AnalysisError as e:
        return JSONResponse({"error": str(e), "retry": True}, status_code=502)
    return JSONResponse([f.model_dump(mode="json") for f in accept_recognized(recognized)])


async def plan(request: Request) -> JSONResponse:
    """Generate a diet plan for the current user's profile."""
    ctx = _context(request)
    try:
        profile = ctx.session.data.profile
    except SessionNotReadyError:
        return _not_ready()
    try:
        diet_plan = await asyncio.to_thread(ctx.advisor.generate_plan, profile)
    except CredentialMissingError as e:
        return JSONResponse({"error": str(e), "ai_available": False}, status_code=503)
    except PlanGenerationError as e:
        return JSONResponse({"error": str(e), "retry": True}, status_code=502)
    return JSONResponse(diet_plan.model_dump(mode="json"))


# ==================== Create ASGI App ====================


def create_app(context: AppContext | None = None) -> Starlette:
    """Create the Starlette application with MCP at root.

    Args:
        context: Application context (defaults to one built from the environment)
    """
    context = context or build_context()
    set_context(context)

    mcp_app = mcp.streamable_http_app()

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/auth/signup", signup, methods=["POST"]),
        Route("/auth/login", login, methods=["POST"]),
        Route("/auth/logout", logout, methods=["POST"]),
        Route("/users", list_users, methods=["GET"]),
        Route("/profile", profile, methods=["GET", "PUT"]),
        Route("/foods", foods, methods=["GET", "POST"]),
        Route("/foods/{food_id}", food_item, methods=["PUT", "DELETE"]),
        Route("/exercises", exercises, methods=["GET", "POST"]),
        Route("/exercises/{exercise_id}", exercise_item, methods=["DELETE"]),
        Route("/water", water, methods=["POST"]),
        Route("/dashboard", dashboard, methods=["GET"]),
        Route("/scan", scan, methods=["POST"]),
        Route("/plan", plan, methods=["POST"]),
        # Mount MCP app at root - it handles /mcp/ path internally
        Mount("/", app=mcp_app),
    ]

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=context.config.cors_origins,
                allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                allow_headers=["*"],
            ),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )
    app.state.context = context

    return app


def main() -> None:
    """Run the server."""
    config = AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = create_app(build_context(config))
    logger.info("Starting HealthyGrowth server on %s:%d", config.host, config.port)

    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
