from docbatch.auth.base import BaseAuthProvider
from docbatch.auth.exceptions import NotAuthenticatedError


class StaticTokenProvider(BaseAuthProvider):
    """Hands out a token read from configuration. Never prompts."""

    def __init__(self, token: str) -> None:
        self._token = token.strip()

    def get_token(self, interactive: bool) -> str:
        if not self._token:
            raise NotAuthenticatedError("No upload access token configured")
        return self._token
