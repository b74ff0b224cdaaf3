from pydantic import BaseModel, ConfigDict, Field


class RememberedSession(BaseModel):
    user_id: int = Field(gt=0)
    credential: str = Field(min_length=1)
    model_config = ConfigDict(from_attributes=True)
