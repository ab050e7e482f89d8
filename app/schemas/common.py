"""Shared schema building blocks"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that reads snake_case attributes and speaks camelCase JSON"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserSummary(CamelModel):
    """Populated user reference (collector, driver, approver)"""
    id: int
    username: str
    full_name: str
