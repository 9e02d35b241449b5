"""
Tests for the tracker monitor with a mocked Jira client.
"""

import unittest
from unittest.mock import Mock

from tracker_hub.app import create_app, create_scheduler
from tracker_hub.config_manager import ConfigManager
from tracker_hub.database.models import Tracker
from tracker_hub.jira_client import JiraAPIError
from tracker_hub.tracker_monitor import TrackerMonitor

from tests.app_test_case import AppTestCase


def healthy_client(tracker, config):
    client = Mock()
    client.get_server_info.return_value = {
        'version': '9.12.1',
        'deploymentType': 'Server',
        'serverTitle': 'Example Jira'
    }
    client.fetch_projects.return_value = [
        {'id': '10000', 'key': 'APP', 'name': 'Application', 'self': 'https://...'},
        {'id': '10001', 'key': 'OPS', 'name': 'Operations'},
    ]
    return client


class TestTrackerMonitor(AppTestCase):
    """Test status refresh."""

    def setUp(self):
        super().setUp()
        identity = self.create_identity()
        self.identity_id = identity['id']
        self.tracker = self.create_tracker(self.identity_id, kind='jira-server')

    def _stored(self, tracker_id: int) -> dict:
        return self.client.get(f'/trackers/{tracker_id}').get_json()

    def test_connected_tracker(self):
        """Test a reachable tracker is marked connected with its projects."""
        monitor = TrackerMonitor(self.db, self.config, client_factory=healthy_client)

        stats = monitor.refresh()

        self.assertEqual(stats, {'checked': 1, 'connected': 1, 'failed': 0, 'skipped': 0})
        stored = self._stored(self.tracker['id'])
        self.assertTrue(stored['connected'])
        self.assertEqual(stored['message'], '')
        self.assertIsNotNone(stored['lastUpdated'])
        self.assertEqual(stored['metadata']['server']['version'], '9.12.1')
        self.assertEqual(
            stored['metadata']['projects'],
            [
                {'id': '10000', 'key': 'APP', 'name': 'Application'},
                {'id': '10001', 'key': 'OPS', 'name': 'Operations'},
            ]
        )

    def test_unreachable_tracker(self):
        """Test a failing probe records the error and keeps going."""
        second = self.create_tracker(self.identity_id, name='second')

        def factory(tracker, config):
            if tracker.id == self.tracker['id']:
                client = Mock()
                client.get_server_info.side_effect = JiraAPIError(
                    "Authentication failed. Check your credentials.", 401
                )
                return client
            return healthy_client(tracker, config)

        stats = TrackerMonitor(self.db, self.config, client_factory=factory).refresh()

        self.assertEqual(stats, {'checked': 2, 'connected': 1, 'failed': 1, 'skipped': 0})
        failed = self._stored(self.tracker['id'])
        self.assertFalse(failed['connected'])
        self.assertEqual(failed['message'], "Authentication failed. Check your credentials.")
        self.assertIsNotNone(failed['lastUpdated'])
        self.assertTrue(self._stored(second['id'])['connected'])

    def test_misconfigured_tracker(self):
        """Test client construction errors are recorded as failures."""
        def factory(tracker, config):
            raise JiraAPIError("Jira Cloud requires basic-auth credentials")

        stats = TrackerMonitor(self.db, self.config, client_factory=factory).refresh()

        self.assertEqual(stats['failed'], 1)
        self.assertEqual(
            self._stored(self.tracker['id'])['message'],
            "Jira Cloud requires basic-auth credentials"
        )

    def test_refresh_single_tracker(self):
        """Test refresh can be limited to one tracker."""
        second = self.create_tracker(self.identity_id, name='second')
        monitor = TrackerMonitor(self.db, self.config, client_factory=healthy_client)

        stats = monitor.refresh(second['id'])

        self.assertEqual(stats['checked'], 1)
        self.assertTrue(self._stored(second['id'])['connected'])
        self.assertFalse(self._stored(self.tracker['id'])['connected'])

    def test_refresh_unknown_tracker(self):
        monitor = TrackerMonitor(self.db, self.config, client_factory=healthy_client)
        self.assertEqual(monitor.refresh(404)['checked'], 0)

    def test_update_during_refresh_keeps_reset(self):
        """Test a status probed with old settings does not overwrite an Update."""
        tracker_id = self.tracker['id']
        body = self.tracker_body(
            self.identity_id, kind='jira-server', url='https://unreachable.invalid'
        )

        def factory(tracker, config):
            client = healthy_client(tracker, config)
            server_info = client.get_server_info.return_value

            def update_then_answer():
                response = self.client.put(f'/trackers/{tracker_id}', json=body)
                self.assertEqual(response.status_code, 204)
                return server_info

            client.get_server_info.side_effect = update_then_answer
            return client

        stats = TrackerMonitor(self.db, self.config, client_factory=factory).refresh()

        self.assertEqual(stats, {'checked': 0, 'connected': 0, 'failed': 0, 'skipped': 1})
        stored = self._stored(tracker_id)
        self.assertEqual(stored['url'], 'https://unreachable.invalid')
        self.assertFalse(stored['connected'])
        self.assertEqual(stored['message'], '')
        self.assertEqual(stored['metadata'], {})

    def test_delete_during_refresh(self):
        tracker_id = self.tracker['id']

        def factory(tracker, config):
            client = healthy_client(tracker, config)

            def delete_then_answer():
                self.client.delete(f'/trackers/{tracker_id}')
                return []

            client.fetch_projects.side_effect = delete_then_answer
            return client

        stats = TrackerMonitor(self.db, self.config, client_factory=factory).refresh()

        self.assertEqual(stats['skipped'], 1)
        self.assertEqual(self.client.get(f'/trackers/{tracker_id}').status_code, 404)

    def test_next_refresh_checks_new_settings(self):
        """Test a skipped tracker is recorded on the following pass."""
        tracker_id = self.tracker['id']
        calls = []

        def factory(tracker, config):
            calls.append(tracker.url)
            client = healthy_client(tracker, config)
            if len(calls) == 1:
                body = self.tracker_body(self.identity_id, kind='jira-server', url='https://jira.internal')

                def update_then_answer():
                    self.client.put(f'/trackers/{tracker_id}', json=body)
                    return []

                client.fetch_projects.side_effect = update_then_answer
            return client

        monitor = TrackerMonitor(self.db, self.config, client_factory=factory)
        monitor.refresh()
        stats = monitor.refresh()

        self.assertEqual(calls, ['https://example.atlassian.net', 'https://jira.internal'])
        self.assertEqual(stats['checked'], 1)
        self.assertTrue(self._stored(tracker_id)['connected'])

    def test_client_built_from_tracker(self):
        """Test the factory receives the tracker with its identity loaded."""
        seen = []

        def factory(tracker, config):
            seen.append((tracker, tracker.identity.name, config))
            return healthy_client(tracker, config)

        TrackerMonitor(self.db, self.config, client_factory=factory).refresh()

        tracker, identity_name, config = seen[0]
        self.assertIsInstance(tracker, Tracker)
        self.assertEqual(identity_name, 'jira-creds')
        self.assertIs(config, self.config)


class TestScheduler(AppTestCase):
    """Test scheduler wiring."""

    def test_disabled(self):
        scheduler = create_scheduler(self.app)
        self.assertEqual(scheduler.get_jobs(), [])

    def test_enabled(self):
        config = ConfigManager({'monitor': {'enabled': True, 'schedule': '*/10 * * * *'}})
        app = create_app(config, self.db, configure_logging=False)

        jobs = create_scheduler(app).get_jobs()

        self.assertEqual([job.id for job in jobs], ['tracker_refresh'])


if __name__ == '__main__':
    unittest.main()
