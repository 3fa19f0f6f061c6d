from pathlib import Path
from config.loader import get_config_loader, resolve_public_base_url

# Get the config loader instance
config = get_config_loader()

# Server configuration
PORT = config.get("PORT", 3777)
LOG_LEVEL = config.get("LOG_LEVEL", "info")
BIND_ADDRESS = config.get("BIND_ADDRESS", "0.0.0.0")

# All dashboard-facing routes live under this prefix (not user configurable)
API_PREFIX = "/api"

# Data directory: settings document, backups and logs
TINYCLAW_HOME = config.get("TINYCLAW_HOME", "~/.tinyclaw")
SETTINGS_FILE = config.get("SETTINGS_FILE", str(Path(TINYCLAW_HOME) / "settings.json"))
LOG_FILE = config.get("LOG_FILE", str(Path(TINYCLAW_HOME) / "logs" / "broker.log"))

# Externally reachable base URL. Redirect URIs are built from it and must
# match what was registered with each provider.
PUBLIC_BASE_URL = resolve_public_base_url(config)

# OAuth timing
# Token exchange is a single attempt, never retried
TOKEN_EXCHANGE_TIMEOUT = config.get("TOKEN_EXCHANGE_TIMEOUT", 30.0)
# Lifetime of an in-flight PKCE login attempt, in seconds
PKCE_SESSION_TTL = config.get("PKCE_SESSION_TTL", 600)

# Settings writes re-apply their transform when the file changed underneath them
SETTINGS_MUTATE_ATTEMPTS = config.get("SETTINGS_MUTATE_ATTEMPTS", 3)
