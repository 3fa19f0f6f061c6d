"""OAuth authentication broker for the AI providers linked to the gateway"""

import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from settings import PUBLIC_BASE_URL
from utils.storage import SettingsStore
from .constants import PROVIDERS, ProviderDescriptor
from .models import AuthorizationFlow, AuthStatus, CallbackOutcome, FlowState, TokenResponse
from .pkce import SessionRegistry, code_challenge_for
from .authorization import AuthorizationURLBuilder
from .token_exchange import TokenExchangeError, exchange_code
from .status import get_auth_status
from .pages import render_callback_page

logger = logging.getLogger(__name__)

# Keys owned by the broker inside a provider's settings sub-record
CREDENTIAL_KEYS = ("oauth_token", "oauth_refresh_token", "oauth_expires_at", "auth_method", "apiKey")


class UnknownProviderError(KeyError):
    """No provider is registered under the requested tag"""

    def __init__(self, tag: str):
        super().__init__(tag)
        self.tag = tag

    def __str__(self) -> str:
        return f"Unknown provider: {self.tag}"


class OAuthManager:
    """OAuth PKCE flow for a single provider

    This class orchestrates:
    - Flow start (session registration and authorization URL)
    - Callback validation, single-use session consumption
    - Token exchange and persistence into the settings document
    - API key storage and disconnect

    flow_state tracks the most recent transition of this provider's flow.
    """

    def __init__(
        self,
        provider: ProviderDescriptor,
        store: SettingsStore,
        registry: SessionRegistry,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.provider = provider
        self.store = store
        self.registry = registry
        self.redirect_uri = provider.redirect_uri(base_url)
        self.auth_builder = AuthorizationURLBuilder(provider)
        self.transport = transport
        self.flow_state = FlowState.IDLE

    def start_flow(self) -> AuthorizationFlow:
        """Register a login attempt and build the provider URL

        Returns:
            AuthorizationFlow with the state token and authorization URL
        """
        session, challenge = self.registry.create(self.provider.tag, self.redirect_uri)
        url = self.auth_builder.build(session, challenge)
        self.flow_state = FlowState.AWAITING_CALLBACK
        logger.info(f"{self.provider.display_name} OAuth URL generated")
        return AuthorizationFlow(state=session.state, url=url)

    async def handle_callback(
        self,
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> CallbackOutcome:
        """Finish a flow from the provider redirect

        Never raises: every path ends in a CallbackOutcome. The settings
        document is written only after a fully successful exchange.
        """
        name = self.provider.display_name

        if error:
            logger.error(f"{name} OAuth error: {error}" + (f" ({error_description})" if error_description else ""))
            return self._finish(CallbackOutcome(
                state=FlowState.FAILED,
                title=f"Authentication failed: {error}",
                message=error_description or "You can close this tab.",
                status_code=400,
            ))

        if not code or not state:
            logger.warning(f"{name} callback without code or state")
            return self._finish(CallbackOutcome(
                state=FlowState.FAILED,
                title="Missing code or state.",
                status_code=400,
            ))

        # Consumed before the exchange so a replayed callback finds nothing
        session = self.registry.consume(state, self.provider.tag)
        if session is None:
            logger.warning(f"{name} callback with unknown or expired state")
            return self._finish(CallbackOutcome(
                state=FlowState.EXPIRED,
                title="Invalid or expired session.",
                message="Please try connecting again from the dashboard.",
                status_code=400,
            ))

        try:
            tokens = await exchange_code(
                self.provider,
                code,
                session.verifier,
                session.redirect_uri,
                transport=self.transport,
            )
        except TokenExchangeError as e:
            logger.error(f"{name} token exchange failed: {e.status_code} - {e.body}")
            return self._finish(CallbackOutcome(
                state=FlowState.FAILED,
                title="Token exchange failed.",
                detail=e.body,
                status_code=502,
            ))
        except httpx.HTTPError as e:
            logger.error(f"{name} token exchange request failed: {e!r}")
            return self._finish(CallbackOutcome(
                state=FlowState.FAILED,
                title="Token exchange failed.",
                detail=str(e) or type(e).__name__,
                status_code=502,
            ))

        try:
            self._store_tokens(tokens)
        except OSError as e:
            logger.error(f"{name} tokens obtained but could not be saved: {e}")
            return self._finish(CallbackOutcome(
                state=FlowState.FAILED,
                title="An error occurred during authentication.",
                message="The tokens could not be written to the settings file.",
                status_code=500,
            ))

        logger.info(f"{name} OAuth token saved")
        return self._finish(CallbackOutcome(
            state=FlowState.COMPLETED,
            title=f"{name} Connected!",
            message="You can close this tab and return to the dashboard.",
        ))

    def _finish(self, outcome: CallbackOutcome) -> CallbackOutcome:
        self.flow_state = outcome.state
        return outcome

    def _provider_record(self, document: Dict[str, Any]) -> Dict[str, Any]:
        models = document.get("models")
        if not isinstance(models, dict):
            models = document["models"] = {}
        record = models.get(self.provider.settings_key)
        if not isinstance(record, dict):
            record = models[self.provider.settings_key] = {}
        return record

    def _store_tokens(self, tokens: TokenResponse) -> None:
        now_ms = int(time.time() * 1000)

        def apply(document: Dict[str, Any]) -> None:
            record = self._provider_record(document)
            record["oauth_token"] = tokens.access_token
            record["oauth_refresh_token"] = tokens.refresh_token
            record["oauth_expires_at"] = tokens.expires_at_ms(now_ms)
            record["auth_method"] = "oauth"

        self.store.mutate(apply)

    def save_api_key(self, api_key: str) -> None:
        """Store a static API key and make it the authoritative credential

        Raises:
            ValueError: If the key is blank
        """
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("API key must not be empty")

        def apply(document: Dict[str, Any]) -> None:
            record = self._provider_record(document)
            record["apiKey"] = api_key
            record["auth_method"] = "api_key"

        self.store.mutate(apply)
        logger.info(f"{self.provider.display_name} API key saved")

    def disconnect(self) -> None:
        """Drop every stored credential for this provider, whatever the method"""

        def apply(document: Dict[str, Any]) -> None:
            models = document.get("models")
            record = models.get(self.provider.settings_key) if isinstance(models, dict) else None
            if isinstance(record, dict):
                for key in CREDENTIAL_KEYS:
                    record.pop(key, None)

        self.store.mutate(apply)
        self.flow_state = FlowState.IDLE
        logger.info(f"{self.provider.display_name} disconnected")

    def get_status(self) -> AuthStatus:
        """Current connection status read from the settings document"""
        return get_auth_status(self.store.load(), self.provider.settings_key)


class AuthBroker:
    """All provider flows, sharing one settings store and session registry"""

    def __init__(
        self,
        store: Optional[SettingsStore] = None,
        base_url: str = PUBLIC_BASE_URL,
        registry: Optional[SessionRegistry] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        providers: Optional[Dict[str, ProviderDescriptor]] = None,
    ):
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Public base URL must be an absolute http(s) URL, got {base_url!r}")

        self.base_url = base_url.rstrip("/")
        self.store = store if store is not None else SettingsStore()
        self.registry = registry if registry is not None else SessionRegistry()
        self.managers: Dict[str, OAuthManager] = {}
        self._aliases: Dict[str, str] = {}

        for tag, descriptor in (providers or PROVIDERS).items():
            self.managers[tag] = OAuthManager(descriptor, self.store, self.registry, self.base_url, transport)
            for alias in descriptor.aliases:
                self._aliases[alias] = tag

        logger.debug(f"Auth broker ready for {list(self.managers)} with base URL {self.base_url}")

    def get(self, tag: str) -> OAuthManager:
        """Resolve a provider tag or alias

        Raises:
            UnknownProviderError: If nothing is registered under the tag
        """
        tag = tag.lower()
        manager = self.managers.get(self._aliases.get(tag, tag))
        if manager is None:
            raise UnknownProviderError(tag)
        return manager


__all__ = [
    "AuthBroker",
    "OAuthManager",
    "UnknownProviderError",
    "TokenExchangeError",
    "SessionRegistry",
    "FlowState",
    "CallbackOutcome",
    "AuthStatus",
    "get_auth_status",
    "render_callback_page",
    "code_challenge_for",
]
