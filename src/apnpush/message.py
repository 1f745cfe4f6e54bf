"""Message model for push notifications.

A Message carries everything the payload factory needs to build one
gateway frame: the target device token, the alert body, the correlation
identifier and the optional delivery attributes.
"""

from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Message:
    """
    One push notification addressed to a single device.

    Instances are frozen; use with_changes() to derive a modified copy.
    """
    device_token: str = ""
    body: str = ""
    identifier: int = 0
    badge: Optional[int] = None
    sound: Optional[str] = None
    content_available: bool = False
    expires: Optional[datetime] = None
    custom_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary; ``expires`` becomes an ISO8601 string."""
        data = asdict(self)
        if self.expires is not None:
            data["expires"] = self.expires.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Create instance from dictionary."""
        data = dict(data)
        expires = data.get("expires")
        if isinstance(expires, str):
            data["expires"] = datetime.fromisoformat(expires.replace("Z", "+00:00"))
        return cls(**data)

    def with_changes(self, **changes: Any) -> "Message":
        """Return a copy of this message with the given fields replaced."""
        return replace(self, **changes)

    def validate(self) -> None:
        """Validate field types."""
        if not isinstance(self.device_token, str):
            raise ValueError("device_token must be a string")
        if not isinstance(self.body, str):
            raise ValueError("body must be a string")
        if not isinstance(self.identifier, int) or isinstance(self.identifier, bool):
            raise ValueError("identifier must be an integer")
        if self.badge is not None and (not isinstance(self.badge, int) or self.badge < 0):
            raise ValueError("badge must be a non-negative integer")
        if self.sound is not None and not isinstance(self.sound, str):
            raise ValueError("sound must be a string")
        if self.expires is not None and not isinstance(self.expires, datetime):
            raise ValueError("expires must be a datetime")
        if not isinstance(self.custom_data, dict):
            raise ValueError("custom_data must be a dictionary")
        if "aps" in self.custom_data:
            raise ValueError("custom_data cannot override the 'aps' key")
