from __future__ import annotations

from typing import Optional

from duck_login.client.transport import JsonTransport, RequestError
from duck_login.settings import settings
from duck_login.store.models import AuthenticatedUser


class DuckAuthApi:
    """The three remote calls of the login flow."""

    def __init__(self, transport: Optional[JsonTransport] = None):
        self.transport = transport or JsonTransport()

    async def request_otp(self, identifier: str) -> None:
        # Success body carries nothing the flow needs
        await self.transport.post(settings.OTP_REQUEST_PATH, json={"username": identifier})

    async def login(self, identifier: str, otp: str) -> AuthenticatedUser:
        data = await self.transport.post(settings.LOGIN_PATH, json={"username": identifier, "otp": otp})
        user = data.get("user")
        if not isinstance(user, dict):
            raise RequestError(message="Login response is missing user")
        try:
            return AuthenticatedUser.from_dict(user)
        except (KeyError, TypeError) as e:
            raise RequestError(message=f"Login response user is incomplete: {e}") from e

    async def generate_alias(self, access_token: str) -> str:
        data = await self.transport.post(settings.ALIAS_PATH, token=access_token)
        address = data.get("address")
        if not isinstance(address, str) or not address:
            raise RequestError(message="Alias response is missing address")
        if "@" not in address:
            address = f"{address}@{settings.ADDRESS_DOMAIN}"
        return address

    async def aclose(self) -> None:
        await self.transport.aclose()
