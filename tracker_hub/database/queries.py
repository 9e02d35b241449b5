"""
Database Query Helpers Module
Provides functions for the tracker and identity queries used by the API.
"""

from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from tracker_hub.database.models import Identity, Tracker
from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)


class QueryHelpers:
    """Query helper functions for database operations."""

    def __init__(self, session: Session):
        """Initialize with database session."""
        self.session = session

    # ========================================
    # Tracker Queries
    # ========================================

    def get_tracker(self, tracker_id: int, eager: bool = True) -> Optional[Tracker]:
        """
        Get a tracker by primary key.

        Args:
            tracker_id: Tracker ID
            eager: Load the identity in the same query

        Returns:
            Tracker or None if absent
        """
        query = self.session.query(Tracker)
        if eager:
            query = query.options(joinedload(Tracker.identity))
        return query.filter(Tracker.id == tracker_id).first()

    def list_trackers(self, kind: Optional[str] = None, connected: Optional[bool] = None) -> List[Tracker]:
        """
        List trackers, optionally filtered.

        Args:
            kind: Exact tracker kind to match
            connected: Connection state to match

        Returns:
            Trackers ordered by ID
        """
        query = self.session.query(Tracker).options(joinedload(Tracker.identity))
        if kind is not None:
            query = query.filter(Tracker.kind == kind)
        if connected is not None:
            query = query.filter(Tracker.connected == connected)
        return query.order_by(Tracker.id).all()

    def update_tracker(self, tracker_id: int, fields: Dict) -> int:
        """
        Update scalar columns of a tracker in a single statement.

        Relationships are never loaded or written.

        Returns:
            Number of rows matched
        """
        return (
            self.session.query(Tracker)
            .filter(Tracker.id == tracker_id)
            .update(fields, synchronize_session=False)
        )

    def update_tracker_status(self, tracker_id: int, settings: Dict, status: Dict) -> int:
        """
        Write monitor status while the tracker still has the given settings.

        Returns:
            Number of rows matched; 0 when the tracker changed or was deleted
        """
        query = self.session.query(Tracker).filter(Tracker.id == tracker_id)
        for column, value in settings.items():
            query = query.filter(getattr(Tracker, column) == value)
        return query.update(status, synchronize_session=False)

    # ========================================
    # Identity Queries
    # ========================================

    def get_identity(self, identity_id: int) -> Optional[Identity]:
        """Get an identity by primary key."""
        return self.session.query(Identity).filter(Identity.id == identity_id).first()

    def list_identities(self, kind: Optional[str] = None) -> List[Identity]:
        """List identities ordered by ID, optionally filtered by kind."""
        query = self.session.query(Identity)
        if kind is not None:
            query = query.filter(Identity.kind == kind)
        return query.order_by(Identity.id).all()

    def update_identity(self, identity_id: int, fields: Dict) -> int:
        """Update scalar columns of an identity; returns rows matched."""
        return (
            self.session.query(Identity)
            .filter(Identity.id == identity_id)
            .update(fields, synchronize_session=False)
        )
