"""
Application state and session controller.

The whole store belongs to one ``AppState`` built at startup; the session
controller keeps the currently logged-in user on that state. Nothing here is a
module-level global, so tests and the API can run several independent states.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import Settings, get_settings
from database import User, build_engine, build_session_factory, get_db_context, init_db
from .actors import Actor, actor_from_user

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Everything one gradebook session owns."""
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    current_user_id: Optional[str] = None

    def session(self):
        """Context manager for a database session on this state."""
        return get_db_context(self.session_factory)


def create_app_state(settings: Optional[Settings] = None, seed: bool = True) -> AppState:
    """
    Build a fresh application state: engine, tables and seed accounts.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        seed: Whether to create the seed accounts (and demo data if enabled)

    Returns:
        A ready-to-use AppState with nobody logged in
    """
    from database.seed import seed_database

    settings = settings or get_settings()
    engine = build_engine(settings.database_url, echo=settings.debug)
    init_db(engine)
    state = AppState(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
    )
    if seed:
        with state.session() as db:
            seed_database(db, settings)
    logger.info("Gradebook state initialised (%s)", settings.database_url)
    return state


class SessionController:
    """
    Login, logout and the current user of an AppState.
    """

    def __init__(self, state: AppState):
        self.state = state

    def login(self, db: Session, login_name: str, secret: str) -> Optional[Dict[str, Any]]:
        """
        Authenticate by login name and secret.

        Scans users in insertion order; the first exact match on both fields
        wins. Secrets are compared as plain values.

        Returns:
            The user's public info, or None when the credentials match nobody
        """
        for user in db.query(User).order_by(User.seq).all():
            if user.login_name == login_name and user.secret == secret:
                self.state.current_user_id = user.id
                logger.info("User %s logged in as %s", user.id, user.role)
                return user.to_dict()

        logger.info("Failed login attempt for '%s'", login_name)
        return None

    def logout(self) -> None:
        """Clear the current session. Safe to call when nobody is logged in."""
        if self.state.current_user_id is not None:
            logger.info("User %s logged out", self.state.current_user_id)
        self.state.current_user_id = None

    def _current_user_row(self, db: Session) -> Optional[User]:
        user_id = self.state.current_user_id
        if user_id is None:
            return None
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            # The account was deleted while logged in
            self.state.current_user_id = None
        return user

    def current_user(self, db: Session) -> Optional[Dict[str, Any]]:
        """Return the logged-in user's public info, or None."""
        user = self._current_user_row(db)
        return user.to_dict() if user else None

    def current_actor(self, db: Session) -> Optional[Actor]:
        """Return the logged-in user resolved to its role variant, or None."""
        user = self._current_user_row(db)
        return actor_from_user(user) if user else None
