"""
API Resources
Wire representations of persisted entities and the conversions between them.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from tracker_hub.database import models

TrackerKind = Literal[models.TRACKER_KINDS]
IdentityKind = Literal[models.IDENTITY_KINDS]


def _as_utc(value: datetime) -> datetime:
    # Columns hold naive UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


def _audit_fields(m) -> Dict[str, Any]:
    return {
        'id': m.id,
        'create_user': m.create_user or '',
        'update_user': m.update_user or '',
        'create_time': m.created_at,
    }


class Resource(BaseModel):
    """Fields common to every resource. All are server-managed."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = 0
    create_user: str = Field('', alias='createUser')
    update_user: str = Field('', alias='updateUser')
    create_time: Optional[UtcDatetime] = Field(None, alias='createTime')

    def render(self) -> Dict[str, Any]:
        """JSON-ready dict using the wire field names."""
        return self.model_dump(mode='json', by_alias=True)


class Ref(BaseModel):
    """Lightweight reference to a related entity."""

    id: int = Field(..., gt=0)
    name: str = ''


class Tracker(Resource):
    """Tracker API resource."""

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    kind: TrackerKind
    message: str = ''
    connected: bool = False
    insecure: bool = False
    last_updated: Optional[UtcDatetime] = Field(None, alias='lastUpdated')
    metadata: Dict[str, Any] = Field(default_factory=dict)
    identity: Ref

    @classmethod
    def from_model(cls, m: models.Tracker) -> 'Tracker':
        """Build the resource from a model; the identity is rendered as a ref."""
        identity_name = m.identity.name if m.identity is not None else ''
        return cls(
            **_audit_fields(m),
            name=m.name,
            url=m.url,
            kind=m.kind,
            message=m.message or '',
            connected=bool(m.connected),
            insecure=bool(m.insecure),
            last_updated=m.last_updated,
            metadata=m.metadata_ or {},
            identity=Ref(id=m.identity_id, name=identity_name),
        )

    def to_model(self) -> models.Tracker:
        """Build an unsaved model carrying only caller-settable fields."""
        return models.Tracker(
            name=self.name,
            url=self.url,
            kind=self.kind,
            insecure=self.insecure,
            identity_id=self.identity.id,
        )


class Identity(Resource):
    """Identity API resource. Secrets are accepted but never rendered."""

    name: str = Field(..., min_length=1)
    kind: IdentityKind = 'basic-auth'
    description: str = ''
    user: str = ''
    password: Optional[str] = Field(None, exclude=True)
    key: Optional[str] = Field(None, exclude=True)

    @classmethod
    def from_model(cls, m: models.Identity) -> 'Identity':
        return cls(
            **_audit_fields(m),
            name=m.name,
            kind=m.kind,
            description=m.description or '',
            user=m.user or '',
        )

    def to_model(self) -> models.Identity:
        return models.Identity(
            name=self.name,
            kind=self.kind,
            description=self.description,
            user=self.user,
            password=self.password,
            key=self.key,
        )
