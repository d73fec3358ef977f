"""
Identity record and token pair as the client sees them.
The backend answers with a few different user shapes (login/register, /auth/me, /profile/me);
User.from_api folds them into one record.
"""
from dataclasses import dataclass

ROLE_COACH = "coach"
ROLE_CLIENT = "client"
ROLE_ADMIN = "admin"
ROLES = {ROLE_COACH, ROLE_CLIENT, ROLE_ADMIN}


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass
class User:
    id: str
    email: str
    role: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_api(cls, payload: dict, fallback: "User | None" = None) -> "User":
        """
        Normalize a backend user payload. Role is lower-cased; fullName is split into first/last
        when those are missing; a nested profile block contributes displayName and avatarUrl.
        Fields the payload lacks are taken from fallback (the previously stored identity).
        """
        profile = payload.get("profile") or {}
        first_name = _clean(payload.get("firstName"))
        last_name = _clean(payload.get("lastName"))
        full_name = _clean(payload.get("fullName"))
        if full_name and not (first_name or last_name):
            first, _, rest = full_name.partition(" ")
            first_name = first or None
            last_name = rest.strip() or None
        display_name = _clean(payload.get("displayName")) or _clean(profile.get("displayName")) or full_name
        avatar_url = _clean(payload.get("avatarUrl")) or _clean(profile.get("avatarUrl"))

        if fallback is not None:
            first_name = first_name or fallback.first_name
            last_name = last_name or fallback.last_name
            display_name = display_name or fallback.display_name
            avatar_url = avatar_url or fallback.avatar_url

        role = _clean(payload.get("role")) or (fallback.role if fallback else ROLE_CLIENT)
        return cls(
            id=str(payload.get("id") or (fallback.id if fallback else "")),
            email=str(payload.get("email") or (fallback.email if fallback else "")),
            role=role.lower(),
            display_name=display_name,
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Inverse of to_dict. Raises KeyError if id, email or role is missing."""
        return cls(
            id=data["id"],
            email=data["email"],
            role=data["role"],
            display_name=data.get("displayName"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            avatar_url=data.get("avatarUrl"),
        )

    def to_dict(self) -> dict:
        """Identity slot layout: camelCase keys, absent optionals omitted."""
        data = {"id": self.id, "email": self.email, "role": self.role}
        for key, value in (
            ("displayName", self.display_name),
            ("firstName", self.first_name),
            ("lastName", self.last_name),
            ("avatarUrl", self.avatar_url),
        ):
            if value is not None:
                data[key] = value
        return data

    @property
    def name(self) -> str:
        if self.display_name:
            return self.display_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.email


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str | None = None

    @classmethod
    def from_api(cls, payload: dict) -> "TokenPair | None":
        """{token, refreshToken?} -> TokenPair; None when the response carries no usable access token."""
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token or not isinstance(token, str):
            return None
        refresh_token = payload.get("refreshToken")
        return cls(access_token=token, refresh_token=refresh_token or None)
