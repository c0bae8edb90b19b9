from supabase import create_client, Client, ClientOptions
from progresspath.config import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Anon-key client; falls back to the service key when no anon key is configured."""
        if cls._client is None:
            key = settings.supabase_key or settings.service_key
            cls._client = create_client(settings.supabase_url, key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Used by every server-side route."""
        if cls._service_client is None and settings.service_key:
            cls._service_client = create_client(
                settings.supabase_url,
                settings.service_key,
                options=ClientOptions(auto_refresh_token=False, persist_session=False),
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_service_client()
