"""Request models for the subscription limits endpoint."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LimitCheckRequest(BaseModel):
    """Body of `POST /limits/check`. `userId` defaults to the caller."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: Optional[str] = Field(None, example="uid_123")
    resource_type: Optional[str] = Field(None, example="shows")
