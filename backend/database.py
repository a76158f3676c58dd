from functools import lru_cache

from supabase import AsyncClient, Client, acreate_client, create_client

from backend.config import Settings, load_settings


def create_supabase_client(settings: Settings) -> Client:
  """
  Crea una instancia de cliente Supabase (síncrono) a partir de Settings.

  Espera encontrar en `.env`:
    - SUPABASE_URL
    - SUPABASE_KEY
  """
  url, key = settings.require_supabase()
  return create_client(url, key)


async def create_async_supabase_client(settings: Settings) -> AsyncClient:
  """
  Cliente asíncrono: necesario para Realtime (suscripciones a cambios).
  """
  url, key = settings.require_supabase()
  return await acreate_client(url, key)


async def close_async_supabase_client(client: AsyncClient) -> None:
  """
  Cierra el socket Realtime del cliente. Los canales se eliminan antes, al
  cerrar cada suscripción.
  """
  await client.realtime.close()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """
  Settings singleton para todo el proceso FastAPI.
  """
  return load_settings()


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
  """
  Devuelve un cliente Supabase singleton para todo el proceso FastAPI.
  """
  return create_supabase_client(get_settings())


__all__ = [
  "close_async_supabase_client",
  "create_async_supabase_client",
  "create_supabase_client",
  "get_settings",
  "get_supabase_client",
]
