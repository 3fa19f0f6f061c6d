"""Connection status derived from the settings document"""

from typing import Any, Dict

from .models import AuthStatus


def get_auth_status(document: Dict[str, Any], settings_key: str) -> AuthStatus:
    """Derive a provider's connection status

    Pure: reads the given document and nothing else.

    Args:
        document: Settings document
        settings_key: Provider sub-record under "models"

    Returns:
        connected is True when an OAuth token or API key is stored; method is
        the stored auth_method, else "api_key" when a key is present, else None
    """
    models = document.get("models")
    record = models.get(settings_key) if isinstance(models, dict) else None
    if not isinstance(record, dict):
        return AuthStatus(connected=False, method=None)

    connected = bool(record.get("oauth_token") or record.get("apiKey"))
    method = record.get("auth_method") or ("api_key" if record.get("apiKey") else None)
    return AuthStatus(connected=connected, method=method)
