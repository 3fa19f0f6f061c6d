"""
Provider descriptor table for the OAuth flows (hardcoded - not user configurable)
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

from settings import API_PREFIX

# Callback route, relative to the public base URL
CALLBACK_PATH_TEMPLATE = API_PREFIX + "/auth/{provider}/callback"


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static OAuth endpoints and identifiers for one provider

    Attributes:
        tag: Provider name used in URLs (/api/auth/<tag>/...)
        settings_key: Sub-record under "models" in the settings document
        display_name: Human readable name for landing pages
        client_id: Public OAuth client identifier (not a secret)
        authorize_url: Provider-hosted login page
        token_url: Token endpoint for the code exchange
        scope: Space separated scopes requested at authorize time
        redirect_path_template: Callback path, formatted with the tag
        extra_authorize_params: Provider specific authorize query parameters
        aliases: Other tags that resolve to this provider
    """
    tag: str
    settings_key: str
    display_name: str
    client_id: str
    authorize_url: str
    token_url: str
    scope: str
    redirect_path_template: str = CALLBACK_PATH_TEMPLATE
    extra_authorize_params: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def redirect_path(self) -> str:
        return self.redirect_path_template.format(provider=self.tag)

    def redirect_uri(self, base_url: str) -> str:
        """Full redirect URI registered with the provider"""
        return f"{base_url.rstrip('/')}{self.redirect_path}"


# Max/Pro OAuth: claude.ai for authorization, console.anthropic.com for token exchange
CLAUDE = ProviderDescriptor(
    tag="claude",
    settings_key="anthropic",
    display_name="Claude",
    client_id="9d1c250a-e61b-44d9-88ed-5944d1962f5e",
    authorize_url="https://claude.ai/oauth/authorize",
    token_url="https://console.anthropic.com/v1/oauth/token",
    scope="org:create_api_key user:profile user:inference",
    aliases=("anthropic",),
)

OPENAI = ProviderDescriptor(
    tag="openai",
    settings_key="openai",
    display_name="OpenAI",
    client_id="app_EMOoBCMLmFgkSNTD5AvJGezA",
    authorize_url="https://auth.openai.com/authorize",
    token_url="https://auth.openai.com/oauth/token",
    scope="openid profile email offline_access",
    extra_authorize_params=(("audience", "https://api.openai.com/v1"),),
    # The dashboard refers to the OpenAI login as "codex"
    aliases=("codex",),
)

PROVIDERS: Dict[str, ProviderDescriptor] = {
    provider.tag: provider for provider in (CLAUDE, OPENAI)
}
