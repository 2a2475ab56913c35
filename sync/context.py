from typing import Any, List
from helpers.callbacks import call_maybe_async
from helpers.errors import ForbiddenError
from models.auth import User
from settings import logger

SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP", "JPY")


class SessionContext:
    """
    Per-session state handed explicitly to every workspace.

    Resources registered here (workspaces, panels) are closed in reverse
    order when the session ends.
    """

    def __init__(self, user: User, currency: str = "USD"):
        self.user = user
        self.currency = currency
        self.active = False
        self._resources: List[Any] = []

    def start(self) -> "SessionContext":
        self.active = True
        logger.info("Session started", extra={"user_id": self.user.id})
        return self

    def require_active(self) -> User:
        if not self.active:
            raise ForbiddenError("Session is not active")
        return self.user

    def register(self, resource: Any) -> Any:
        self._resources.append(resource)
        return resource

    def set_currency(self, currency: str) -> None:
        currency = (currency or "").upper()
        if currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {currency}")
        self.currency = currency

    async def close(self) -> None:
        while self._resources:
            resource = self._resources.pop()
            close = getattr(resource, "close", None)
            if close is not None:
                await call_maybe_async(close)
        self.active = False
        logger.info("Session closed", extra={"user_id": self.user.id})
