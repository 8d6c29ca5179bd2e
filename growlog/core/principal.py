"""
Principal resolvers.

Repositories only ever ask "who is calling?" through current_principal_id().
The answer is computed up front (token verification, sign-in) so the
accessor itself stays synchronous and side-effect free.
"""

from typing import Optional, Protocol


class PrincipalResolver(Protocol):
    def current_principal_id(self) -> Optional[str]:
        ...


class TokenPrincipal:
    """Fixed principal for a request-serving context, resolved from a verified token."""

    def __init__(self, user_id: Optional[str], email: Optional[str] = None):
        self.user_id = user_id
        self.email = email

    def current_principal_id(self) -> Optional[str]:
        return self.user_id

    def __repr__(self) -> str:
        return f"TokenPrincipal(user_id={self.user_id!r})"


class SessionPrincipal:
    """Principal for an interactive session; follows sign-in and sign-out."""

    def __init__(self):
        self._user_id: Optional[str] = None

    def sign_in(self, user_id: str) -> None:
        self._user_id = user_id

    def sign_out(self) -> None:
        self._user_id = None

    def current_principal_id(self) -> Optional[str]:
        return self._user_id

    def __repr__(self) -> str:
        return f"SessionPrincipal(user_id={self._user_id!r})"
