from dataclasses import dataclass, asdict
from typing import Optional


@dataclass(frozen=True)
class Actor:
    """Opaque identity recorded on every document history row."""

    user_id: str
    vendor_id: Optional[str] = None
    role: str = ""

    @classmethod
    def from_user(cls, user):
        return cls(
            user_id=str(user.id),
            vendor_id=str(user.vendor_id) if user.vendor_id else None,
            role=user.role,
        )

    @classmethod
    def from_request(cls, request):
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return SYSTEM_ACTOR
        return cls.from_user(user)

    @classmethod
    def from_dict(cls, data):
        if not data:
            return SYSTEM_ACTOR
        return cls(
            user_id=data.get("user_id") or SYSTEM_ACTOR.user_id,
            vendor_id=data.get("vendor_id"),
            role=data.get("role") or "",
        )

    def as_dict(self):
        return asdict(self)

    @property
    def is_system(self):
        return self.user_id == SYSTEM_ACTOR.user_id


SYSTEM_ACTOR = Actor(user_id="SYSTEM", role="SYSTEM")
