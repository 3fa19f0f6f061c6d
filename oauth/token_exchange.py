"""OAuth token exchange functionality"""

import logging
from typing import Optional

import httpx

from settings import TOKEN_EXCHANGE_TIMEOUT
from .constants import ProviderDescriptor
from .models import TokenResponse

logger = logging.getLogger(__name__)


class TokenExchangeError(Exception):
    """The token endpoint refused the code or answered with garbage

    Attributes:
        status_code: HTTP status of the response
        body: Raw response body, shown to the operator for diagnosis
    """

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Token exchange failed: {status_code} - {body}")


async def exchange_code(
    provider: ProviderDescriptor,
    code: str,
    code_verifier: str,
    redirect_uri: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = TOKEN_EXCHANGE_TIMEOUT,
) -> TokenResponse:
    """Exchange authorization code for tokens

    Single attempt, never retried.

    Args:
        provider: Descriptor of the provider that issued the code
        code: Authorization code from the callback
        code_verifier: PKCE verifier recovered from the consumed session
        redirect_uri: Redirect URI sent at authorize time, byte for byte
        transport: Optional httpx transport (tests plug a mock in here)
        timeout: Request timeout in seconds

    Returns:
        Parsed token response

    Raises:
        TokenExchangeError: If the endpoint answers non-2xx or without a token
        httpx.HTTPError: On transport failures
    """
    async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
        response = await client.post(
            provider.token_url,
            json={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": provider.client_id,
                "redirect_uri": redirect_uri,
                "code_verifier": code_verifier,
            },
            headers={"Content-Type": "application/json"},
        )

    if not response.is_success:
        raise TokenExchangeError(response.status_code, response.text)

    try:
        token_data = response.json()
        tokens = TokenResponse.from_dict(token_data)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.error(f"{provider.display_name} token endpoint returned an unusable body: {e}")
        raise TokenExchangeError(response.status_code, response.text) from e

    logger.info(f"{provider.display_name} OAuth tokens obtained")
    return tokens
