# -*- coding: utf-8 -*-

"""
Supabase access for the species catalog.

Env (required for the live store):
  SUPABASE_URL
  SUPABASE_ANON_KEY

Env (optional):
  SPECIES_USER_EMAIL / SPECIES_USER_PASSWORD   sign-in used for edits
  SPECIES_TABLE          (default: species)
  PROFILES_TABLE         (default: profiles)
  SB_REQUEST_TIMEOUT     seconds (default: 15)

Install:
  pip install python-dotenv supabase httpx
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import httpx
from dotenv import load_dotenv
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client
from supabase import AuthError as SupabaseAuthError
from supabase.lib.client_options import AsyncClientOptions

# load environment from .env if present
load_dotenv()

# ---------------- Config ----------------
SPECIES_TABLE = os.getenv("SPECIES_TABLE", "species")
PROFILES_TABLE = os.getenv("PROFILES_TABLE", "profiles")
SB_REQUEST_TIMEOUT = float(os.getenv("SB_REQUEST_TIMEOUT", "15"))  # seconds

DEBUG = os.getenv("SPECIES_DEBUG", "0") == "1"


def dbg(*a, **k):
    if DEBUG: print("[DBG]", *a, **k)


# ---------------- Errors ----------------
class CatalogError(Exception):
    """Base for every failure the catalog reports back to the card."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class StoreError(CatalogError):
    """Lookup found nothing, or the backend rejected the request."""


class AuthError(CatalogError):
    """The caller's identity could not be resolved."""


@dataclass(frozen=True)
class Identity:
    id: str


# ---------------- Capability ----------------
class SpeciesStore(Protocol):
    async def lookup(self, table: str, filters: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> None: ...

    async def resolve_current_identity(self) -> Identity: ...

    async def list_species(self, limit: int) -> List[Dict[str, Any]]: ...


# ---------------- Supabase ----------------
async def get_sb() -> AsyncClient:
    load_dotenv()
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_ANON_KEY"]
    # passed as an option so clients rebuilt after sign-in keep it
    options = AsyncClientOptions(postgrest_client_timeout=SB_REQUEST_TIMEOUT)
    return await acreate_client(url, key, options=options)


def _api_message(e: APIError) -> str:
    return getattr(e, "message", None) or str(e)


class SupabaseSpeciesStore:
    """SpeciesStore over supabase-py's async client."""

    def __init__(self, sb: AsyncClient):
        self.sb = sb

    async def lookup(self, table: str, filters: Dict[str, Any]) -> Dict[str, Any]:
        q = self.sb.table(table).select("*")
        for col, val in filters.items():
            q = q.eq(col, val)
        try:
            res = await q.single().execute()
        except APIError as e:
            raise StoreError(_api_message(e), code=getattr(e, "code", None)) from e
        except httpx.HTTPError as e:
            raise StoreError(str(e)) from e

        row = getattr(res, "data", None)
        dbg("lookup", table, filters, "->", row)
        if not row:
            raise StoreError(f"No rows returned from {table}", code="PGRST116")
        return row

    async def update(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> None:
        q = self.sb.table(table).update(values)
        for col, val in filters.items():
            q = q.eq(col, val)
        try:
            res = await q.execute()
        except APIError as e:
            raise StoreError(_api_message(e), code=getattr(e, "code", None)) from e
        except httpx.HTTPError as e:
            raise StoreError(str(e)) from e

        # row-level policy filters silently; an empty result is not an error
        dbg("update", table, filters, "->", len(getattr(res, "data", None) or []), "row(s)")

    async def resolve_current_identity(self) -> Identity:
        try:
            res = await self.sb.auth.get_user()
        except SupabaseAuthError as e:
            raise AuthError(getattr(e, "message", None) or str(e)) from e
        except httpx.HTTPError as e:
            raise AuthError(str(e)) from e

        user = getattr(res, "user", None) if res else None
        if user is None:
            raise AuthError("Auth session missing!")
        return Identity(id=str(user.id))

    async def sign_in(self, email: str, password: str) -> Identity:
        try:
            res = await self.sb.auth.sign_in_with_password({"email": email, "password": password})
        except SupabaseAuthError as e:
            raise AuthError(getattr(e, "message", None) or str(e)) from e
        except httpx.HTTPError as e:
            raise AuthError(str(e)) from e

        user = getattr(res, "user", None)
        if user is None:
            raise AuthError("Sign-in returned no user")
        dbg("signed in as", user.id)
        return Identity(id=str(user.id))

    async def list_species(self, limit: int) -> List[Dict[str, Any]]:
        """Rows for the listing page, ordered by scientific name."""
        q = (
            self.sb.table(SPECIES_TABLE)
            .select("*")
            .order("scientific_name", desc=False)
            .limit(limit)
        )
        try:
            res = await q.execute()
        except APIError as e:
            raise StoreError(_api_message(e), code=getattr(e, "code", None)) from e
        except httpx.HTTPError as e:
            raise StoreError(str(e)) from e
        return getattr(res, "data", None) or []
