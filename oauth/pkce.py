"""PKCE (Proof Key for Code Exchange) generation and in-flight session registry"""

import base64
import hashlib
import logging
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from settings import PKCE_SESSION_TTL
from .models import PKCEPair, PkceSession

logger = logging.getLogger(__name__)


def code_challenge_for(verifier: str) -> str:
    """SHA-256 of the verifier, base64url encoded without padding"""
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


def generate_pkce() -> PKCEPair:
    """Generate PKCE code verifier and challenge

    RFC 7636 PKCE standard:
    - Verifier: 48 random bytes, base64url encoded (64 characters)
    - Challenge: SHA-256 hash of verifier, base64url encoded

    Returns:
        PKCEPair: Tuple of (verifier, challenge)
    """
    verifier = secrets.token_urlsafe(48)
    return PKCEPair(verifier=verifier, challenge=code_challenge_for(verifier))


def create_state() -> str:
    """Generate random state parameter for CSRF protection

    Independent of the verifier so the state leaks nothing about it.
    """
    return secrets.token_hex(16)


class SessionRegistry:
    """Time-bounded, single-use PKCE sessions keyed by state token

    Lives only in process memory; a restart silently expires every
    in-flight login. Expired entries are swept whenever a new session is
    created. All access to the map goes through one lock.
    """

    def __init__(self, ttl: float = PKCE_SESSION_TTL, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, PkceSession] = {}
        self._lock = threading.Lock()

    def create(self, provider: str, redirect_uri: str) -> Tuple[PkceSession, str]:
        """Register a new login attempt

        Args:
            provider: Provider tag the flow belongs to
            redirect_uri: Redirect URI that will be sent at authorize time

        Returns:
            Tuple of (session, code_challenge)
        """
        pkce = generate_pkce()
        state = create_state()

        with self._lock:
            self._sweep_locked()
            session = PkceSession(
                state=state,
                verifier=pkce.verifier,
                provider=provider,
                expires_at=self._clock() + self.ttl,
                redirect_uri=redirect_uri,
            )
            self._sessions[state] = session

        logger.debug(f"PKCE session created for {provider}")
        return session, pkce.challenge

    def consume(self, state: str, provider: Optional[str] = None) -> Optional[PkceSession]:
        """Take a live session out of the registry

        A session can be consumed once. Unknown and expired states return
        None; expired entries are dropped on the way. When provider is given
        and does not match, None is returned and the entry stays in place for
        the flow it belongs to.
        """
        with self._lock:
            session = self._sessions.get(state)
            if session is None:
                return None

            if session.is_expired(self._clock()):
                del self._sessions[state]
                logger.info(f"PKCE session for {session.provider} expired before callback")
                return None

            if provider is not None and session.provider != provider:
                logger.warning(f"PKCE session belongs to {session.provider}, not {provider}")
                return None

            del self._sessions[state]
            return session

    def peek(self, state: str) -> Optional[PkceSession]:
        """Look up a session without consuming it"""
        with self._lock:
            return self._sessions.get(state)

    def sweep(self) -> int:
        """Remove expired sessions

        Returns:
            Number of sessions removed
        """
        with self._lock:
            return self._sweep_locked()

    def _sweep_locked(self) -> int:
        now = self._clock()
        expired = [state for state, session in self._sessions.items() if session.is_expired(now)]
        for state in expired:
            del self._sessions[state]
        if expired:
            logger.debug(f"Swept {len(expired)} expired PKCE session(s)")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
