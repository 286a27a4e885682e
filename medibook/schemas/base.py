from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schema exchanged with clients as camelCase JSON.

    Snake case field names are still accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def naive_time(value):
    """Reject times with a UTC offset; schedules are in server local time."""
    if value is not None and value.tzinfo is not None:
        raise ValueError("Time must not include a timezone offset")
    return value
