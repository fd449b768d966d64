"""
Shared schema plumbing
"""

from datetime import datetime, timezone
from typing import Annotated, ClassVar, FrozenSet, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Stored datetimes are naive UTC
UtcDatetime = Annotated[datetime, AfterValidator(_as_naive_utc)]


class ApiModel(BaseModel):
    """Request body base: camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )

    # Columns that cannot be cleared; an explicit null for these is ignored
    non_nullable: ClassVar[FrozenSet[str]] = frozenset()

    def to_fields(self) -> dict:
        """Fields the client actually sent, keyed by attribute name"""
        return {
            key: value for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key not in self.non_nullable
        }
