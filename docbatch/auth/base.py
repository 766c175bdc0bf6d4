from abc import ABC, abstractmethod


class BaseAuthProvider(ABC):
    """Contract for sources of upload access tokens."""

    @abstractmethod
    def get_token(self, interactive: bool) -> str:
        """Return a bearer token for the upload sink.

        Args:
            interactive: Whether the provider may prompt the user.

        Raises:
            AuthCancelledError: if the user cancelled the sign-in.
            AuthError: on any other failure.
        """
