"""Relationship records written by the entity minter.

Each relationship is a directed edge between two catalog entities of the
same campaign: (source entity, relationship_type, target entity).

For example:
    - ("The Gilded Spire", "inhabited_by", "Gareth the Keeper")
    - ("The Gilded Spire", "contains", "Shadowmarket")
    - ("Blade of Dusk", "owned_by", "Tharivol")
"""

from datetime import datetime

from pydantic import BaseModel, Field

from canonforge.entity import utc_now

RELATED_TO = "related_to"
CONTAINS = "contains"
INHABITED_BY = "inhabited_by"
OWNED_BY = "owned_by"
LOCATED_IN = "located_in"
LOCATED_WITHIN = "located_within"
MEMBER_OF = "member_of"


class RelationshipRecord(BaseModel):
    """A relationship as accepted by the relationship writer."""

    model_config = {"frozen": True}

    campaign_id: str
    source_id: str = Field(description="Entity ID of the relationship source.")
    target_id: str = Field(description="Entity ID of the relationship target.")
    relationship_type: str = Field(description="One of the relationship type constants.")
    description: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    def triple(self) -> tuple[str, str, str]:
        return (self.source_id, self.relationship_type, self.target_id)
