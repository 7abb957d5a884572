"""Authenticated session context.

A `Session` is created from a successful login/registration response and is
passed explicitly to every adapter that talks to the backend. It is frozen:
logging out discards it, nothing mutates it in place.
"""

from pydantic import BaseModel, ConfigDict

from shared.schemas import AuthResponse, Role


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user_id: str
    email: str
    full_name: str = ""
    role: str
    vendor_id: str | None = None

    @classmethod
    def from_auth(cls, auth: AuthResponse) -> "Session":
        return cls(
            token=auth.token,
            user_id=auth.user_id,
            email=auth.email,
            full_name=auth.full_name,
            role=auth.role,
            vendor_id=auth.vendor_id,
        )

    @property
    def is_vendor(self) -> bool:
        return self.role == Role.VENDOR.value and self.vendor_id is not None

    @property
    def identity(self) -> tuple[str, str]:
        """Key that scopes live subscriptions: vendors by store, everyone else by user."""
        if self.is_vendor:
            return (Role.VENDOR.value, self.vendor_id)
        return (self.role, self.user_id)

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"

    def __repr__(self):
        # Never print the token
        return f"Session(user_id={self.user_id!r}, role={self.role!r}, vendor_id={self.vendor_id!r})"
