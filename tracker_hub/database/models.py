"""
SQLAlchemy ORM Models
Defines the database models for the tracker hub.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, JSON, String, Text
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonDocument = JSON().with_variant(JSONB(), 'postgresql')

TRACKER_KINDS = ('jira-cloud', 'jira-server', 'jira-datacenter')
IDENTITY_KINDS = ('basic-auth', 'bearer-token')


def _one_of(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Identity(Base):
    """Stored credential used to authenticate against an external tracker."""
    __tablename__ = 'identities'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    kind = Column(String(50), nullable=False, default='basic-auth')
    description = Column(Text)
    user = Column(String(255))
    password = Column(Text)
    key = Column(Text)

    # Audit
    create_user = Column(String(255), default='')
    update_user = Column(String(255), default='')
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(_one_of('kind', IDENTITY_KINDS), name='ck_identity_kind'),
    )

    # Relationships
    # Referenced identities are protected by the foreign key, not the ORM
    trackers = relationship("Tracker", back_populates="identity", passive_deletes="all")


class Tracker(Base):
    """Connection to an external issue tracker (Jira Cloud/Server/Datacenter)."""
    __tablename__ = 'trackers'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    url = Column(Text, nullable=False)
    kind = Column(String(50), nullable=False)
    insecure = Column(Boolean, nullable=False, default=False)

    # Connection status, maintained by the tracker monitor
    message = Column(Text, nullable=False, default='')
    connected = Column(Boolean, nullable=False, default=False)
    last_updated = Column(DateTime)
    # 'metadata' is reserved on declarative classes
    metadata_ = Column('metadata', JsonDocument)

    identity_id = Column(Integer, ForeignKey('identities.id'), nullable=False)

    # Audit
    create_user = Column(String(255), default='')
    update_user = Column(String(255), default='')
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(_one_of('kind', TRACKER_KINDS), name='ck_tracker_kind'),
    )

    # Relationships
    identity = relationship("Identity", back_populates="trackers")

    def __repr__(self):
        return f"<Tracker {self.name} ({self.kind})>"
