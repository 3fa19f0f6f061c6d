"""OAuth authorization URL construction"""

from urllib.parse import urlencode

from .constants import ProviderDescriptor
from .models import PkceSession


class AuthorizationURLBuilder:
    """Builds provider authorization URLs with PKCE"""

    def __init__(self, provider: ProviderDescriptor):
        self.provider = provider

    def build(self, session: PkceSession, code_challenge: str) -> str:
        """Construct the authorize URL for a registered session

        Args:
            session: Session created for this login attempt
            code_challenge: S256 challenge derived from the session verifier

        Returns:
            Full authorization URL
        """
        params = {
            "client_id": self.provider.client_id,
            "response_type": "code",
            "redirect_uri": session.redirect_uri,
            "scope": self.provider.scope,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "state": session.state,
        }
        params.update(self.provider.extra_authorize_params)

        return f"{self.provider.authorize_url}?{urlencode(params)}"
