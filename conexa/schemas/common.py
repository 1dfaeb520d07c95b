"""Base for API/event models: snake_case in Python, camelCase (and `_id`) on the wire."""
from pydantic import AliasGenerator, BaseModel, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = AliasGenerator(serialization_alias=to_camel)

    def wire(self) -> dict:
        """JSON-ready dict with wire names, used as a real-time payload."""
        return self.model_dump(mode="json", by_alias=True)


class UserSummary(ApiModel):
    id: str = Field(serialization_alias="_id")
    username: str
    profile_picture: str = ""
