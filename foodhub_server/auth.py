"""Authentication manager for the FoodHub API."""

import json
import os
from pathlib import Path
from typing import Optional
import logging

from .models import SessionData, UserSummary

logger = logging.getLogger(__name__)


class AuthManager:
    """Manages authentication state and session persistence."""

    def __init__(self, session_file: Optional[str] = None, token: Optional[str] = None) -> None:
        """
        Initialize the authentication manager.

        Args:
            session_file: Path to store session data. Defaults to ~/.foodhub_session.json
            token: Pre-issued bearer token; takes precedence over the saved session
        """
        if session_file is None:
            session_file = str(Path.home() / ".foodhub_session.json")
        self.session_file = session_file
        self.session: SessionData = self._load_session()

        if token:
            logger.info("Using bearer token from configuration")
            self.session = SessionData(token=token, is_authenticated=True)

    def _load_session(self) -> SessionData:
        """Load session data from file if it exists."""
        if os.path.exists(self.session_file):
            try:
                with open(self.session_file, "r") as f:
                    data = json.load(f)
                    session = SessionData(**data)
                    if session.token:
                        logger.info(f"Loaded existing session from {self.session_file}")
                    return session
            except (json.JSONDecodeError, ValueError) as e:
                # If file is corrupted, start fresh
                logger.warning(f"Could not load session: {e}")
        return SessionData()

    def _save_session(self) -> None:
        """Save session data to file."""
        try:
            with open(self.session_file, "w") as f:
                json.dump(self.session.model_dump(), f, indent=2)
            os.chmod(self.session_file, 0o600)
        except OSError as e:
            logger.error(f"Could not save session: {e}")

    def save_session(self, token: str, user: Optional[UserSummary] = None) -> None:
        """
        Save authentication session.

        Args:
            token: Bearer token from loginUser/registerUser
            user: Authenticated user summary
        """
        self.session = SessionData(
            token=token,
            user_id=user.id if user else None,
            user_email=user.email if user else None,
            is_authenticated=True,
        )
        self._save_session()
        logger.info(f"Session saved to {self.session_file}")

    def get_session(self) -> SessionData:
        """Get current session data."""
        return self.session

    def clear_session(self) -> None:
        """Clear the current session."""
        self.session = SessionData()
        if os.path.exists(self.session_file):
            try:
                os.remove(self.session_file)
                logger.info("Session cleared")
            except OSError as e:
                logger.warning(f"Could not delete session file: {e}")

    def is_authenticated(self) -> bool:
        """Check if there's an active authenticated session."""
        return self.session.is_authenticated and bool(self.session.token)

    def get_token(self) -> Optional[str]:
        return self.session.token if self.is_authenticated() else None

    def get_headers(self) -> dict[str, str]:
        """Authorization header for the current session, if any."""
        token = self.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}
