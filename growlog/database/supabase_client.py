"""
Explicitly constructed store context.

A StoreContext owns one Supabase client, the DocumentStore built on it
and the principal resolver for whoever the context serves. Build it with
one of the two constructors, hand it to the repository factories in
growlog.core.dependencies, and close it (or use ``async with``) when done:

    async with await StoreContext.for_request_serving(settings, token) as ctx:
        environments = get_environment_repository(ctx)
        await environments.list_by_owner()

There are no module-level client singletons; tests can build a context
around any DocumentStore and principal directly.
"""

import logging
from typing import Optional

from supabase import AsyncClient, acreate_client

from growlog.config.settings import Settings
from growlog.core.exceptions import GrowlogError, StoreUnavailable
from growlog.core.principal import PrincipalResolver, SessionPrincipal
from growlog.database.document_store import DocumentStore, SupabaseDocumentStore
from growlog.modules.auth.service import AuthService

logger = logging.getLogger(__name__)


async def create_store_client(url: str, key: Optional[str]) -> AsyncClient:
    if not url or not key:
        raise StoreUnavailable("Supabase URL and key must be configured", {"url": url or None})
    try:
        return await acreate_client(url, key)
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client for {url}: {e}")
        raise StoreUnavailable(f"Could not initialize store client: {e}", {"url": url}) from e


class StoreContext:
    def __init__(
        self,
        store: DocumentStore,
        principal: PrincipalResolver,
        settings: Settings,
        client: Optional[AsyncClient] = None,
        session: Optional[SessionPrincipal] = None,
    ):
        self.store = store
        self.principal = principal
        self.settings = settings
        self.client = client
        self.session = session
        self._closed = False

    @classmethod
    async def for_request_serving(cls, settings: Settings, access_token: str) -> "StoreContext":
        """
        Context for serving one authenticated request.

        Uses the service-role key; ownership is enforced by the repositories,
        so the principal is fixed to the user behind access_token.
        """
        client = await create_store_client(settings.supabase_url, settings.supabase_service_role_key)
        try:
            principal = await AuthService(client).resolve_principal(access_token)
        except GrowlogError:
            await cls._close_client(client)
            raise
        logger.debug(f"Request context opened for {principal}")
        return cls(SupabaseDocumentStore(client), principal, settings, client=client)

    @classmethod
    async def for_interactive_session(cls, settings: Settings) -> "StoreContext":
        """
        Context for a long-lived interactive session using the anon key.

        Starts signed out; call ``await context.auth.login(...)`` to bind a user.
        """
        client = await create_store_client(settings.supabase_url, settings.supabase_key)
        session = SessionPrincipal()
        logger.debug("Interactive session context opened")
        return cls(SupabaseDocumentStore(client), session, settings, client=client, session=session)

    @property
    def auth(self) -> AuthService:
        if self.client is None:
            raise StoreUnavailable("This context has no Supabase client")
        return AuthService(self.client, self.session)

    @property
    def closed(self) -> bool:
        return self._closed

    @staticmethod
    async def _close_client(client: AsyncClient) -> None:
        try:
            await client.postgrest.aclose()
        except Exception as e:
            logger.warning(f"Error closing Supabase client: {e}")

    async def close(self) -> None:
        """Release the HTTP session and forget the signed-in user. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        if self.session is not None:
            self.session.sign_out()
        if self.client is not None:
            await self._close_client(self.client)

    async def __aenter__(self) -> "StoreContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
