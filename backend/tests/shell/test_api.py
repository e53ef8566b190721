"""Integration tests for API endpoints using Starlette TestClient."""

import asyncio
import time

import httpx
import pytest
from starlette.testclient import TestClient

from src.core.errors import AnalysisError, CredentialMissingError, PlanGenerationError
from src.core.models import DietPlan, Meal, RecognizedFood
from src.main import create_app
from src.shell.config import AppConfig
from src.shell.context import build_context
from src.shell.storage import MemoryStore


class FakeAdvisor:
    """Advisory client stand-in with canned results."""

    def __init__(self, available=True, error=None):
        self.available = available
        self.error = error

    def _check(self, error_type):
        if not self.available:
            raise CredentialMissingError("AI features are offline (check API configuration)")
        if self.error:
            raise error_type(self.error)

    def analyze_image(self, image_bytes, mime_type):
        self._check(AnalysisError)
        return [RecognizedFood(name="Rice", calories=200, protein=4, carbs=44, fats=0.5, portion="1 cup")]

    def generate_plan(self, profile):
        self._check(PlanGenerationError)
        return DietPlan(
            daily_calories=1800,
            meals=[Meal(time="08:00", label="Breakfast", suggestions=["Oats"], approx_calories=400)],
            advice=["Walk daily"],
        )


class SlowAdvisor(FakeAdvisor):
    """Advisory client whose calls block for a while."""

    def __init__(self, delay):
        super().__init__()
        self.delay = delay

    def generate_plan(self, profile):
        time.sleep(self.delay)
        return super().generate_plan(profile)


def _client(advisor=None):
    context = build_context(AppConfig(), store=MemoryStore(), advisor=advisor or FakeAdvisor())
    return TestClient(create_app(context))


@pytest.fixture
def client():
    return _client()


@pytest.fixture
def logged_in(client):
    """Client with a signed-up, logged-in user."""
    client.post("/auth/signup", json={"email": "rina@example.com", "name": "Rina"})
    return client


class TestHealthEndpoint:
    """Tests for /health and /status."""

    def test_health_returns_json(self, client):
        """Health endpoint returns JSON with status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "healthygrowth"}

    def test_status_without_user(self, client):
        """Status reports no user and AI availability."""
        data = client.get("/status").json()
        assert data["state"] == "no_user"
        assert data["user"] is None
        assert data["ai_available"] is True


class TestAuthEndpoints:
    """Tests for signup, login and logout."""

    def test_signup_logs_in(self, client):
        """Signup creates the user and loads their data."""
        response = client.post("/auth/signup", json={"email": "rina@example.com", "name": "Rina"})
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["name"] == "Rina"
        assert data["state"] == "ready"
        assert client.get("/profile").json()["name"] == "Rina"

    def test_signup_existing_user(self, logged_in):
        """Signing up an existing email points to login."""
        response = logged_in.post("/auth/signup", json={"email": "rina@example.com"})
        assert response.status_code == 409
        assert response.json()["mode"] == "login"

    def test_signup_invalid_email(self, client):
        """An invalid email returns 400."""
        response = client.post("/auth/signup", json={"email": "not-an-email"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_login_unknown_user(self, client):
        """Logging in an unknown email points to signup."""
        response = client.post("/auth/login", json={"email": "ghost@example.com"})
        assert response.status_code == 404
        assert response.json()["mode"] == "signup"

    def test_login_missing_email(self, client):
        """Login without an email returns 400."""
        assert client.post("/auth/login", json={}).status_code == 400

    def test_logout_then_login(self, logged_in):
        """Data survives logout and comes back on login."""
        logged_in.post("/water", json={"delta": 300})
        assert logged_in.post("/auth/logout").json()["state"] == "no_user"
        assert logged_in.get("/dashboard").status_code == 409

        response = logged_in.post("/auth/login", json={"email": "Rina@example.com"})
        assert response.json()["state"] == "ready"
        assert logged_in.get("/dashboard").json()["water_today"] == 300

    def test_users_listed(self, logged_in):
        """Registered users are listed."""
        users = logged_in.get("/users").json()
        assert [u["email"] for u in users] == ["rina@example.com"]

    @pytest.mark.parametrize(
        "body",
        [
            {"email": 123},
            {"email": ["rina@example.com"]},
            {"email": "rina@example.com", "name": 5},
        ],
    )
    def test_signup_non_text_fields(self, client, body):
        """Non-string email or name values return 400."""
        response = client.post("/auth/signup", json=body)
        assert response.status_code == 400
        assert client.get("/users").json() == []

    @pytest.mark.parametrize("email", [123, ["rina@example.com"], {"a": 1}])
    def test_login_non_text_email(self, logged_in, email):
        """A non-string email returns 400."""
        assert logged_in.post("/auth/login", json={"email": email}).status_code == 400


class TestNotReady:
    """Tests that data endpoints refuse requests without a loaded user."""

    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("get", "/profile", None),
            ("get", "/foods", None),
            ("post", "/foods", {"name": "Rice", "calories": 200}),
            ("post", "/exercises", {"type": "Run", "duration": 30, "calories_burned": 300}),
            ("post", "/water", {"delta": 250}),
            ("get", "/dashboard", None),
            ("post", "/plan", None),
        ],
    )
    def test_returns_409(self, client, method, path, body):
        """Requests before login return 409."""
        kwargs = {"json": body} if body is not None else {}
        response = getattr(client, method)(path, **kwargs)
        assert response.status_code == 409


class TestProfileEndpoint:
    """Tests for /profile."""

    def test_update_profile(self, logged_in):
        """Profile changes are applied and returned."""
        response = logged_in.put("/profile", json={"weight": 61.5, "activity_level": "active"})
        assert response.status_code == 200
        assert response.json()["weight"] == 61.5
        assert response.json()["activity_level"] == "active"

    def test_invalid_value(self, logged_in):
        """Invalid values return 422 with details."""
        response = logged_in.put("/profile", json={"age": -3})
        assert response.status_code == 422
        assert response.json()["details"]

    def test_unknown_field(self, logged_in):
        """Unknown fields return 400."""
        assert logged_in.put("/profile", json={"shoe_size": 42}).status_code == 400

    def test_non_object_body(self, logged_in):
        """A list body is rejected."""
        assert logged_in.put("/profile", json=[1, 2]).status_code == 400


class TestFoodEndpoints:
    """Tests for /foods."""

    def test_add_single_food(self, logged_in):
        """A single food item is added with a generated ID."""
        response = logged_in.post("/foods", json={"name": "Rice", "calories": 200, "portion": "1 cup"})
        assert response.status_code == 201
        [item] = response.json()
        assert item["id"]
        assert [f["name"] for f in logged_in.get("/foods").json()] == ["Rice"]

    def test_add_batch(self, logged_in):
        """A list of food items is added in order."""
        logged_in.post("/foods", json=[{"name": "Rice", "calories": 200}, {"name": "Dal", "calories": 150}])
        assert [f["name"] for f in logged_in.get("/foods").json()] == ["Rice", "Dal"]

    def test_duplicate_id(self, logged_in):
        """Re-adding an existing ID returns 409."""
        logged_in.post("/foods", json={"id": "f1", "name": "Rice", "calories": 200})
        response = logged_in.post("/foods", json={"id": "f1", "name": "Dal", "calories": 150})
        assert response.status_code == 409

    def test_negative_calories(self, logged_in):
        """Negative calories fail validation."""
        response = logged_in.post("/foods", json={"name": "Rice", "calories": -5})
        assert response.status_code == 422

    def test_update_and_delete(self, logged_in):
        """Foods can be replaced and deleted by ID."""
        logged_in.post("/foods", json={"id": "f1", "name": "Rice", "calories": 200})
        response = logged_in.put("/foods/f1", json={"name": "Brown rice", "calories": 180})
        assert response.json()["id"] == "f1"
        assert logged_in.get("/foods").json()[0]["name"] == "Brown rice"

        response = logged_in.delete("/foods/f1")
        assert response.json() == {"success": True, "items_remaining": 0}


class TestExerciseAndWater:
    """Tests for /exercises, /water and /dashboard."""

    def test_exercise_lifecycle(self, logged_in):
        """Exercises get server IDs and can be deleted."""
        response = logged_in.post(
            "/exercises", json={"id": "mine", "type": "Run", "duration": 30, "caloriesBurned": 300}
        )
        assert response.status_code == 201
        exercise_id = response.json()["id"]
        assert exercise_id != "mine"

        response = logged_in.delete(f"/exercises/{exercise_id}")
        assert response.json() == {"success": True, "entries_remaining": 0}

    def test_water_floors_at_zero(self, logged_in):
        """Water goes up and down but never below zero."""
        logged_in.post("/water", json={"delta": 250})
        assert logged_in.post("/water", json={"delta": 500}).json()["amount"] == 750
        assert logged_in.post("/water", json={"delta": -1000}).json()["amount"] == 0

    @pytest.mark.parametrize("delta", ["250", 2.5, True, None])
    def test_water_bad_delta(self, logged_in, delta):
        """Non-integer deltas return 400."""
        assert logged_in.post("/water", json={"delta": delta}).status_code == 400

    def test_dashboard(self, logged_in):
        """Dashboard aggregates the day."""
        logged_in.post("/foods", json={"name": "Rice", "calories": 200, "protein": 4})
        logged_in.post("/exercises", json={"type": "Run", "duration": 30, "calories_burned": 300})
        data = logged_in.get("/dashboard").json()
        assert data["net_calories"] == -100
        assert data["calorie_progress"] == 10
        assert len(data["water_history"]) == 7


class TestAdvisoryEndpoints:
    """Tests for /scan and /plan."""

    def test_scan_returns_items_with_ids(self, client):
        """Recognized items come back with IDs but are not logged."""
        response = client.post("/scan", content=b"jpeg-bytes", headers={"content-type": "image/jpeg"})
        assert response.status_code == 200
        [item] = response.json()
        assert item["name"] == "Rice"
        assert item["id"]

    def test_scan_without_credential(self):
        """A missing credential returns 503."""
        client = _client(FakeAdvisor(available=False))
        response = client.post("/scan", content=b"x", headers={"content-type": "image/jpeg"})
        assert response.status_code == 503
        assert response.json()["ai_available"] is False

    def test_scan_failure(self):
        """An analysis failure returns 502 with a retry hint."""
        client = _client(FakeAdvisor(error="Problem analyzing food."))
        response = client.post("/scan", content=b"x", headers={"content-type": "image/jpeg"})
        assert response.status_code == 502
        assert response.json() == {"error": "Problem analyzing food.", "retry": True}

    def test_plan(self, logged_in):
        """A plan is generated for the logged-in user."""
        response = logged_in.post("/plan")
        assert response.status_code == 200
        assert response.json()["daily_calories"] == 1800

    def test_plan_failure(self):
        """A plan failure returns 502."""
        client = _client(FakeAdvisor(error="Could not generate a diet plan. Please try again."))
        client.post("/auth/signup", json={"email": "rina@example.com"})
        assert client.post("/plan").status_code == 502

    def test_slow_plan_does_not_block_other_requests(self):
        """Health checks answer while a slow plan request is in flight."""
        context = build_context(AppConfig(), store=MemoryStore(), advisor=SlowAdvisor(delay=1.0))
        context.session.login(context.directory.signup("rina@example.com", "Rina"))
        app = create_app(context)

        async def run():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
                plan_request = asyncio.create_task(client.post("/plan"))
                await asyncio.sleep(0.1)
                started = time.perf_counter()
                health = await client.get("/health")
                elapsed = time.perf_counter() - started
                plan_response = await plan_request
            return health, elapsed, plan_response

        health, elapsed, plan_response = asyncio.run(run())

        assert health.status_code == 200
        assert elapsed < 0.5
        assert plan_response.status_code == 200


class TestCORS:
    """Tests for CORS configuration."""

    def test_cors_preflight_localhost(self, client):
        """CORS preflight from the dev frontend is allowed."""
        response = client.options(
            "/foods",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            }
        )
        assert response.status_code == 200
        assert response.headers.get("access-control-allow-origin") == "http://localhost:5173"

    def test_cors_unknown_origin(self, client):
        """Unlisted origins get no CORS grant."""
        response = client.get("/health", headers={"Origin": "https://evil.example"})
        assert response.headers.get("access-control-allow-origin") is None
