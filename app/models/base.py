from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python and DynamoDB, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def reject_null(value):
    """Partial updates may omit a field but may not null out a required one."""
    if value is None:
        raise ValueError("may not be null")
    return value
