"""Session Manager - Current user, load-before-save ordering and mutations.

State machine:

    NoUser --login--> Loading --load completes--> Ready
    any    --logout-> NoUser
    Ready  --login--> Loading   (switching users)

Each login bumps a generation counter. A load may only be applied while its
ticket's generation is current, and saves only happen in the Ready state, so
a superseded load or a stale caller can never write under another user's key.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable

from ..core import logs
from ..core.collections import COLLECTIONS, EXERCISES, FOODS, PROFILE, WATER_LOGS
from ..core.errors import SessionNotReadyError
from ..core.macros import DEFAULT_CALORIE_TARGET, DEFAULT_WATER_GOAL_ML
from ..core.models import (
    DashboardSummary,
    ExerciseItem,
    FoodItem,
    User,
    UserData,
    UserProfile,
)
from ..core.reports import build_dashboard
from .persistence import PersistenceGateway


logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NO_USER = "no_user"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class LoadTicket:
    """Handle for one load; only the current generation may complete."""

    generation: int
    user: User


class SessionManager:
    """Owns the current user and their in-memory collections."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock: Callable[[], date] = date.today,
        calorie_target: int = DEFAULT_CALORIE_TARGET,
        water_goal: int = DEFAULT_WATER_GOAL_ML,
    ) -> None:
        """Initialize session manager.

        Args:
            gateway: Persistence gateway for loads and saves
            clock: Returns the local "today" used for water and dashboards
            calorie_target: Daily calorie target for the dashboard
            water_goal: Daily water goal in millilitres
        """
        self._gateway = gateway
        self._clock = clock
        self.calorie_target = calorie_target
        self.water_goal = water_goal
        self._state = SessionState.NO_USER
        self._user: User | None = None
        self._data: UserData | None = None
        self._generation = 0

    # ==================== State ====================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_user(self) -> User | None:
        return self._user

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    def today(self) -> date:
        """The local day used for water logs and dashboards."""
        return self._clock()

    @property
    def data(self) -> UserData:
        """Snapshot of the current user's collections."""
        return self._require_ready()

    # ==================== Transitions ====================

    def restore(self) -> SessionState:
        """Resume a persisted session, if one exists."""
        user = self._gateway.load_session_user()
        if user is None:
            logger.debug("No persisted session")
            return self._state
        logger.info("Restoring session for user: %s", user.id[:8])
        self.login(user)
        return self._state

    def begin_login(self, user: User) -> LoadTicket:
        """Switch to a user and enter Loading.

        In-memory data of the previous user is discarded immediately, so no
        save can run until the new user's load completes.
        """
        self._gateway.save_session_user(user)
        self._generation += 1
        self._user = user
        self._data = None
        self._state = SessionState.LOADING
        logger.info("Loading session for user: %s (generation %d)", user.id[:8], self._generation)
        return LoadTicket(generation=self._generation, user=user)

    def fetch(self, ticket: LoadTicket) -> UserData:
        """Read a ticket's user data from storage without applying it."""
        return self._gateway.load_user_data(ticket.user)

    def complete_load(self, ticket: LoadTicket, data: UserData) -> bool:
        """Apply loaded data if the ticket is still current.

        Returns:
            True if applied; False if the load was superseded
        """
        if ticket.generation != self._generation or self._state is not SessionState.LOADING:
            logger.info(
                "Discarding stale load for user %s (generation %d, current %d)",
                ticket.user.id[:8],
                ticket.generation,
                self._generation,
            )
            return False
        self._data = data
        self._state = SessionState.READY
        logger.info("Session ready for user: %s", ticket.user.id[:8])
        return True

    def login(self, user: User) -> UserData:
        """Switch to a user and load all of their collections."""
        ticket = self.begin_login(user)
        self.complete_load(ticket, self.fetch(ticket))
        return self._require_ready()

    def logout(self) -> None:
        """Forget the current user and discard in-memory state."""
        if self._user is not None:
            logger.info("Logging out user: %s", self._user.id[:8])
        self._gateway.clear_session_user()
        self._generation += 1
        self._user = None
        self._data = None
        self._state = SessionState.NO_USER

    # ==================== Persistence ====================

    def save(
        self,
        collections: Iterable[str] = COLLECTIONS,
        generation: int | None = None,
    ) -> bool:
        """Write collections of the current user.

        Args:
            collections: Collection names to write
            generation: Generation the caller observed; a stale value drops
                the save

        Returns:
            True if every collection was written
        """
        if not self.is_ready or self._user is None or self._data is None:
            logger.debug("Skipping save, session is %s", self._state.value)
            return False
        if generation is not None and generation != self._generation:
            logger.info("Dropping stale save (generation %d, current %d)", generation, self._generation)
            return False

        ok = True
        for collection in collections:
            ok = self._gateway.save_collection(self._user.id, self._data, collection) and ok
        return ok

    def _require_ready(self) -> UserData:
        if self._state is not SessionState.READY or self._data is None:
            raise SessionNotReadyError(f"Session is {self._state.value}, not ready")
        return self._data

    def _commit(self, collection: str, **changes: Any) -> UserData:
        self._data = self._data.model_copy(update=changes)
        self.save([collection])
        return self._data

    # ==================== Mutations ====================

    def add_foods(self, items: list[FoodItem]) -> list[FoodItem]:
        data = self._require_ready()
        return self._commit(FOODS, foods=logs.add_foods(data.foods, items)).foods

    def update_food(self, item: FoodItem) -> list[FoodItem]:
        data = self._require_ready()
        return self._commit(FOODS, foods=logs.update_food(data.foods, item)).foods

    def delete_food(self, food_id: str) -> list[FoodItem]:
        data = self._require_ready()
        return self._commit(FOODS, foods=logs.delete_food(data.foods, food_id)).foods

    def add_exercise(self, item: ExerciseItem) -> list[ExerciseItem]:
        data = self._require_ready()
        return self._commit(EXERCISES, exercises=logs.add_exercise(data.exercises, item)).exercises

    def delete_exercise(self, exercise_id: str) -> list[ExerciseItem]:
        data = self._require_ready()
        return self._commit(EXERCISES, exercises=logs.delete_exercise(data.exercises, exercise_id)).exercises

    def adjust_water(self, delta: int, reference_date: date | None = None) -> int:
        """Add a signed delta to a day's water (today by default).

        Returns:
            The day's new total in millilitres
        """
        data = self._require_ready()
        day = reference_date or self._clock()
        water_logs = logs.adjust_water(data.water_logs, delta, day)
        self._commit(WATER_LOGS, water_logs=water_logs)
        return water_logs[day.isoformat()]

    def update_profile(self, changes: dict[str, Any]) -> UserProfile:
        data = self._require_ready()
        return self._commit(PROFILE, profile=logs.update_profile(data.profile, changes)).profile

    # ==================== Views ====================

    def dashboard(self, reference_date: date | None = None) -> DashboardSummary:
        data = self._require_ready()
        return build_dashboard(
            data,
            reference_date or self._clock(),
            calorie_target=self.calorie_target,
            water_goal=self.water_goal,
        )
