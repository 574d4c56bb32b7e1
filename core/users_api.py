# core/users_api.py

from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from core.errors import UsersApiError
from core.logging_config import logger
from models.user import Profile, RegistrationResult, UserCreate, UserFilters, UserUpdate


# ============================================================
# Marketplace users API (thin async HTTP wrapper, no retries)
# ============================================================
class UsersApi:
    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        **kwargs,
    ) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise UsersApiError(f"{type(e).__name__}: {e}") from e

        if response.is_error:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text or response.reason_phrase
            raise UsersApiError(detail, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise UsersApiError("Malformed JSON response", status_code=response.status_code) from e

    @staticmethod
    def _data(body: Any) -> Any:
        # The API wraps records as {"success": ..., "data": ...}
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    # ---------------------------------------------------------
    # Profile
    # ---------------------------------------------------------
    async def get_user_profile(self, uid: str, token: str) -> Profile:
        body = await self._request("GET", f"/users/profile/{quote(uid, safe='')}", token)
        try:
            return Profile.model_validate(self._data(body))
        except ValidationError as e:
            raise UsersApiError(f"Malformed profile payload ({e.error_count()} errors)") from e

    async def update_user_profile(self, uid: str, payload: UserUpdate, token: str) -> Any:
        return await self._request(
            "PUT",
            f"/users/profile/{quote(uid, safe='')}",
            token,
            json=payload.model_dump(by_alias=True, exclude_none=True),
        )

    async def create_user(self, payload: UserCreate) -> RegistrationResult:
        body = await self._request(
            "POST",
            "/users/create",
            json=payload.model_dump(by_alias=True, exclude_none=True, mode="json"),
        )
        try:
            return RegistrationResult.model_validate(body)
        except ValidationError as e:
            raise UsersApiError("Malformed registration response") from e

    # ---------------------------------------------------------
    # Admin
    # ---------------------------------------------------------
    async def get_all_users(self, token: str, filters: Optional[UserFilters] = None) -> List[Profile]:
        params = filters.model_dump(by_alias=True, exclude_none=True, mode="json") if filters else None
        body = await self._request("GET", "/users/all", token, params=params)

        users: List[Profile] = []
        for raw in self._data(body) or []:
            try:
                users.append(Profile.model_validate(raw))
            except ValidationError:
                logger.warning(f"Skipping malformed user record: id={raw.get('id') if isinstance(raw, dict) else None}")
        return users

    async def approve_user(self, user_id: str, token: str) -> Any:
        return await self._request("PATCH", f"/users/{quote(str(user_id), safe='')}/approve", token, json={})

    async def reject_user(self, user_id: str, reason: str, token: str) -> Any:
        return await self._request(
            "PATCH",
            f"/users/{quote(str(user_id), safe='')}/reject",
            token,
            json={"reason": reason},
        )

    async def toggle_user_status(self, user_id: str, token: str) -> Any:
        return await self._request("PATCH", f"/users/{quote(str(user_id), safe='')}/toggle-status", token, json={})

    async def delete_user(self, user_id: str, token: str) -> Any:
        return await self._request("DELETE", f"/users/{quote(str(user_id), safe='')}", token)
