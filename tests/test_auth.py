"""
Tests for bearer token authentication and scopes.
"""

import unittest

from tracker_hub.auth import NoAuth, Principal, TokenAuth, build_provider
from tracker_hub.config_manager import ConfigManager

from tests.app_test_case import AppTestCase


class TestPrincipal(unittest.TestCase):
    """Test scope matching."""

    def test_exact_scope(self):
        principal = Principal(user='bob', scopes=['trackers:get'])
        self.assertTrue(principal.has_scope('trackers', 'get'))
        self.assertFalse(principal.has_scope('trackers', 'post'))
        self.assertFalse(principal.has_scope('identities', 'get'))

    def test_wildcards(self):
        principal = Principal(user='ops', scopes=['trackers:*', '*:get'])
        self.assertTrue(principal.has_scope('trackers', 'delete'))
        self.assertTrue(principal.has_scope('identities', 'get'))
        self.assertFalse(principal.has_scope('identities', 'put'))


class TestProviders(unittest.TestCase):
    """Test provider selection from configuration."""

    def test_noauth_by_default(self):
        provider = build_provider(ConfigManager({}))

        self.assertIsInstance(provider, NoAuth)
        self.assertEqual(provider.authenticate(None).user, 'admin.noauth')

    def test_token_auth(self):
        provider = build_provider(ConfigManager({
            'auth': {'required': True, 'tokens': {'t1': {'user': 'alice', 'scopes': ['*:*']}}}
        }))

        self.assertIsInstance(provider, TokenAuth)
        self.assertEqual(provider.authenticate('t1').user, 'alice')
        self.assertIsNone(provider.authenticate('nope'))
        self.assertIsNone(provider.authenticate(None))


class TestRouteAuth(AppTestCase):
    """Test the auth hook on the API blueprints."""

    auth_config = {
        'required': True,
        'tokens': {
            'admin-token': {'user': 'alice', 'scopes': ['*:*']},
            'reader-token': {'user': 'bob', 'scopes': ['trackers:get']},
        }
    }

    def setUp(self):
        super().setUp()
        self.headers = {'Authorization': 'Bearer admin-token'}

    def test_missing_token(self):
        """Test requests without a token are rejected."""
        response = self.client.get('/trackers')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers['WWW-Authenticate'], 'Bearer')

    def test_unknown_token(self):
        response = self.client.get('/trackers', headers={'Authorization': 'Bearer forged'})
        self.assertEqual(response.status_code, 401)

    def test_scope_required(self):
        """Test a read-only token can list but not create."""
        identity = self.create_identity()
        reader = {'Authorization': 'Bearer reader-token'}

        self.assertEqual(self.client.get('/trackers', headers=reader).status_code, 200)
        response = self.client.post('/trackers', json=self.tracker_body(identity['id']), headers=reader)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get('/identities', headers=reader).status_code, 403)

    def test_create_user_from_token(self):
        """Test audit users come from the authenticated caller."""
        identity = self.create_identity()
        tracker = self.create_tracker(identity['id'])

        self.assertEqual(identity['createUser'], 'alice')
        self.assertEqual(tracker['createUser'], 'alice')

    def test_health_is_public(self):
        self.assertEqual(self.client.get('/health').status_code, 200)


if __name__ == '__main__':
    unittest.main()
