"""
Shared pydantic configuration: request bodies arrive in camelCase.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Base for JSON request bodies (camelCase on the wire, snake_case in Python)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def present_fields(self) -> dict:
        """Fields the client actually sent, keyed by Python name"""
        return self.model_dump(exclude_unset=True)
