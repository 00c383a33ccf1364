from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; reads ORM objects directly"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


class BulkModerationResponse(CamelModel):
    message: str
    count: int


class PageMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
