"""OSP Client - OAuth2/PKCE session and push notification client."""

__version__ = "1.0.0"
