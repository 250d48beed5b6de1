from typing import Optional

from fastapi import Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import create_client, acreate_client, Client, AsyncClient, ClientOptions
from app.config import settings

bearer = HTTPBearer(auto_error=False)


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Shared anon client. Never sign in on it: a session would rewrite its Authorization header for every caller."""
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use for stock adjustments and admin writes."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()


def create_session_client(access_token: Optional[str] = None) -> Client:
    """
    Fresh client that keeps no session of its own.
    With an access token, PostgREST calls run as that user so RLS applies to them.
    """
    options = ClientOptions(auto_refresh_token=False, persist_session=False)
    if access_token:
        options.headers["Authorization"] = f"Bearer {access_token}"
    return create_client(settings.supabase_url, settings.supabase_key, options=options)


async def create_realtime_client() -> AsyncClient:
    """Async client for realtime channel subscriptions (the sync client has no realtime support)."""
    key = settings.supabase_service_role_key or settings.supabase_key
    return await acreate_client(settings.supabase_url, key)


def get_supabase(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer)
) -> Client:
    """Client scoped to the caller's bearer token, or the shared anon client for anonymous requests."""
    if credentials is not None:
        return create_session_client(credentials.credentials)
    return SupabaseClient.get_client()


def get_auth_supabase() -> Client:
    """Per-request client for sign-in flows, which store the signed-in session on the client."""
    return create_session_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()
