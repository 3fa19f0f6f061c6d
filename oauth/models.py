"""Data models for the OAuth broker"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional


class FlowState(str, Enum):
    """Lifecycle of one provider's authorization flow"""
    IDLE = "idle"
    AWAITING_CALLBACK = "awaiting_callback"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class PkceSession:
    """In-memory record of one login attempt, keyed by its state token

    Attributes:
        state: Opaque value round-tripped through the provider redirect
        verifier: PKCE code verifier, only ever sent to the token endpoint
        provider: Provider tag the flow was started for
        expires_at: Epoch seconds after which the session is dead
        redirect_uri: Exact redirect URI used at authorize time
    """
    state: str
    verifier: str
    provider: str
    expires_at: float
    redirect_uri: str

    def is_expired(self, now: float) -> bool:
        return self.expires_at < now


class PKCEPair(NamedTuple):
    """PKCE code verifier and challenge pair"""
    verifier: str
    challenge: str


class AuthorizationFlow(NamedTuple):
    """Result of starting a flow: the state token and the provider URL"""
    state: str
    url: str


@dataclass
class TokenResponse:
    """Token endpoint response, as much of it as the broker records"""
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenResponse":
        """Build from a token endpoint body

        Raises:
            ValueError: If the body carries no usable access token
        """
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("token response carries no access_token")

        expires_in = data.get("expires_in")
        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_in=int(expires_in) if expires_in else None,
        )

    def expires_at_ms(self, now_ms: int) -> Optional[int]:
        """Absolute expiry in epoch milliseconds, or None if not reported"""
        if not self.expires_in:
            return None
        return now_ms + self.expires_in * 1000


@dataclass
class CallbackOutcome:
    """Terminal result of a callback, rendered as the browser landing page"""
    state: FlowState
    title: str
    message: str = ""
    detail: Optional[str] = None
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return self.state is FlowState.COMPLETED


@dataclass(frozen=True)
class AuthStatus:
    """Connection status of one provider as seen by polling clients"""
    connected: bool
    method: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"connected": self.connected, "method": self.method}
