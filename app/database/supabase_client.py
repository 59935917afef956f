from supabase import create_client, Client, ClientOptions
from app.config import settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Shared handle with no user session; used for token validation."""
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def new_client(cls) -> Client:
        """Fresh handle for one visitor. The handle keeps that visitor's auth session."""
        return create_client(settings.supabase_url, settings.supabase_key)

    @classmethod
    def request_client(cls) -> Client:
        """Handle that lives for one API request: no refresh timer, no stored session.

        Tokens it obtains belong to the API caller; it must never refresh them itself.
        """
        return create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )

    @classmethod
    def for_token(cls, access_token: str) -> Client:
        """Request handle whose table calls run as the token's user, so row policies apply."""
        client = cls.request_client()
        client.postgrest.auth(access_token)
        return client

    @classmethod
    def reset_client(cls):
        cls._client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()
