from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from models.user import Role


class Claims(BaseModel):
    """
    Identity carried inside a signed access token.

    Serialized with the registered `exp` claim name so the payload stays
    readable by any standard JWT tooling.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: StrictStr = Field(..., min_length=1)
    role: Role
    seller_id: Optional[StrictStr] = None
    expires_at: StrictInt = Field(..., alias="exp")

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at_datetime

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
