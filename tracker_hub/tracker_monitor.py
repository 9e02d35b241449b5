"""
Tracker Monitor Module
Probes each configured tracker and records its connection status.
"""

from typing import Callable, Dict, List, Optional, Tuple

from tracker_hub.config_manager import ConfigManager, get_config
from tracker_hub.database.connection import DatabaseConnection
from tracker_hub.database.queries import QueryHelpers
from tracker_hub.database.models import Tracker
from tracker_hub.jira_client import JiraAPIError, JiraClient
from tracker_hub.utils.helpers import safe_get, truncate_string, utc_now
from tracker_hub.utils.logger import LoggerMixin

ClientFactory = Callable[[Tracker, ConfigManager], JiraClient]

# Columns that must be unchanged for a probe result to be recorded
PROBED_SETTINGS = ('url', 'kind', 'insecure', 'identity_id', 'updated_at')


class TrackerMonitor(LoggerMixin):
    """
    Refreshes the server-managed status fields of trackers.

    A tracker is connected when its server info and project list can be read
    with its identity. The project list is kept in the tracker metadata.
    """

    def __init__(
        self,
        db: DatabaseConnection,
        config: Optional[ConfigManager] = None,
        client_factory: ClientFactory = JiraClient.for_tracker
    ):
        self.db = db
        self.config = config or get_config()
        self.client_factory = client_factory

    def refresh(self, tracker_id: Optional[int] = None) -> Dict[str, int]:
        """
        Probe all trackers, or only the given one.

        Args:
            tracker_id: Optional tracker ID to restrict the refresh to

        Returns:
            Counts of checked, connected and failed trackers, and of trackers
            skipped because they changed while being probed
        """
        stats = {'checked': 0, 'connected': 0, 'failed': 0, 'skipped': 0}

        for tracker_id in self._tracker_ids(tracker_id):
            probed = self._probe(tracker_id)
            if probed is None:
                continue
            settings, status = probed

            with self.db.session_scope() as session:
                matched = QueryHelpers(session).update_tracker_status(tracker_id, settings, status)

            if not matched:
                # Updated or deleted while probing; the next pass checks the new settings
                self.logger.info(f"Tracker {tracker_id} changed during refresh, status discarded")
                stats['skipped'] += 1
                continue

            stats['checked'] += 1
            if status['connected']:
                stats['connected'] += 1
            else:
                stats['failed'] += 1

        self.logger.info(
            f"Tracker refresh complete: {stats['checked']} checked, "
            f"{stats['connected']} connected, {stats['failed']} failed, "
            f"{stats['skipped']} skipped"
        )
        return stats

    def _tracker_ids(self, tracker_id: Optional[int]) -> List[int]:
        with self.db.session_scope() as session:
            queries = QueryHelpers(session)
            if tracker_id is not None:
                tracker = queries.get_tracker(tracker_id, eager=False)
                return [tracker.id] if tracker is not None else []
            return [t.id for t in queries.list_trackers()]

    def _probe(self, tracker_id: int) -> Optional[Tuple[Dict, Dict]]:
        """
        Probe one tracker.

        Returns:
            The probed settings and the status columns, or None if it vanished
        """
        # Build the client inside the session, call Jira outside it
        with self.db.session_scope() as session:
            tracker = QueryHelpers(session).get_tracker(tracker_id)
            if tracker is None:
                return None
            name = tracker.name
            settings = {column: getattr(tracker, column) for column in PROBED_SETTINGS}
            try:
                client = self.client_factory(tracker, self.config)
            except JiraAPIError as e:
                client = None
                setup_error = e

        if client is None:
            self.logger.warning(f"Tracker {name} misconfigured: {setup_error.message}")
            return settings, self._status(False, setup_error.message)

        try:
            server = client.get_server_info()
            projects = client.fetch_projects()
        except JiraAPIError as e:
            self.logger.warning(f"Tracker {name} unreachable: {e.message}")
            return settings, self._status(False, e.message)

        metadata = {
            'server': {
                'version': safe_get(server, 'version', default=''),
                'deploymentType': safe_get(server, 'deploymentType', default=''),
                'serverTitle': safe_get(server, 'serverTitle', default=''),
            },
            'projects': [
                {
                    'id': p.get('id'),
                    'key': p.get('key'),
                    'name': p.get('name'),
                }
                for p in projects
            ],
        }
        self.logger.debug(f"Tracker {name} connected with {len(projects)} projects")
        return settings, self._status(True, '', metadata)

    @staticmethod
    def _status(connected: bool, message: str, metadata: Optional[Dict] = None) -> Dict:
        status = {
            'connected': connected,
            'message': truncate_string(message, 1000) or '',
            'last_updated': utc_now(),
        }
        if metadata is not None:
            status['metadata_'] = metadata
        return status


def refresh_trackers(db: DatabaseConnection, tracker_id: Optional[int] = None) -> Dict[str, int]:
    """
    Convenience function to run one monitor pass.

    Args:
        db: Database connection
        tracker_id: Optional tracker to restrict the refresh to

    Returns:
        Refresh statistics
    """
    return TrackerMonitor(db).refresh(tracker_id)
