"""Application Context - Wires the stores, session and advisor together."""

import logging
from dataclasses import dataclass

from .advisor import AdvisoryClient
from .auth import UserDirectory
from .config import AppConfig
from .persistence import PersistenceGateway
from .session import SessionManager
from .storage import JsonFileStore, KeyValueStore, MemoryStore


logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything one running app instance needs."""

    config: AppConfig
    gateway: PersistenceGateway
    directory: UserDirectory
    session: SessionManager
    advisor: AdvisoryClient


def build_context(
    config: AppConfig | None = None,
    store: KeyValueStore | None = None,
    advisor: AdvisoryClient | None = None,
) -> AppContext:
    """Create an application context and restore any persisted session.

    Args:
        config: Configuration (defaults to environment)
        store: Key/value substrate (defaults to the configured file or memory)
        advisor: AI advisory client (defaults to a Gemini client)

    Returns:
        Ready-to-use AppContext
    """
    config = config or AppConfig.from_env()

    if store is None:
        if config.storage_path:
            logger.info("Using file store at %s", config.storage_path)
            store = JsonFileStore(config.storage_path)
        else:
            logger.info("Using in-memory store; data will not survive restarts")
            store = MemoryStore()

    gateway = PersistenceGateway(store, prefix=config.key_prefix)
    session = SessionManager(
        gateway,
        calorie_target=config.calorie_target,
        water_goal=config.water_goal_ml,
    )
    advisor = advisor or AdvisoryClient(config.gemini_api_key, config.gemini_model)
    if not advisor.available:
        logger.warning("No Gemini API key configured; AI features are offline")

    context = AppContext(
        config=config,
        gateway=gateway,
        directory=UserDirectory(gateway),
        session=session,
        advisor=advisor,
    )
    session.restore()
    return context


_context: AppContext | None = None


def get_context() -> AppContext:
    """Get or create the process-wide context."""
    global _context
    if _context is None:
        _context = build_context()
    return _context


def set_context(context: AppContext) -> None:
    """Install a context (used by the app factory and tests)."""
    global _context
    _context = context
