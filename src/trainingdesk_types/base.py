from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """
    Base for records exchanged with the course backend and the dashboard.

    Attributes are snake_case in Python and camelCase on the wire. Unknown
    keys sent by the backend are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        from_attributes=True,
        extra="ignore",
    )
