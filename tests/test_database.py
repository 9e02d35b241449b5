"""
Tests for the database connection and session handling.
"""

import os
import shutil
import tempfile
import threading
import unittest

from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from tracker_hub.config_manager import ConfigManager
from tracker_hub.database.connection import DatabaseConnection
from tracker_hub.database.models import IDENTITY_KINDS, TRACKER_KINDS, Identity, Tracker


class TestEnginePool(unittest.TestCase):
    """Test pool selection for SQLite URLs."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.config = ConfigManager({})

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_memory_database_shares_one_connection(self):
        for url in ('sqlite://', 'sqlite:///:memory:'):
            db = DatabaseConnection(url=url, config=self.config)
            self.assertIsInstance(db.engine.pool, StaticPool, url)
            db.dispose()

    def test_file_database_uses_connection_pool(self):
        db = DatabaseConnection(url=f"sqlite:///{os.path.join(self.tmpdir, 'a.db')}", config=self.config)
        self.assertNotIsInstance(db.engine.pool, StaticPool)
        db.dispose()

    def test_file_database_enforces_foreign_keys(self):
        db = DatabaseConnection(url=f"sqlite:///{os.path.join(self.tmpdir, 'fk.db')}", config=self.config)
        db.create_all()

        with self.assertRaises(IntegrityError):
            with db.session_scope() as session:
                session.add(Tracker(name='jira', url='https://x', kind='jira-cloud', identity_id=99))
        db.dispose()


class TestKindConstraints(unittest.TestCase):
    """Test kinds are limited to the known set in storage as well."""

    def setUp(self):
        self.db = DatabaseConnection(url='sqlite://', config=ConfigManager({}))
        self.db.create_all()

    def tearDown(self):
        self.db.dispose()

    def test_unknown_identity_kind_rejected(self):
        with self.assertRaises(IntegrityError):
            with self.db.session_scope() as session:
                session.add(Identity(name='creds', kind='oauth'))

    def test_unknown_tracker_kind_rejected(self):
        with self.db.session_scope() as session:
            identity = Identity(name='creds', kind=IDENTITY_KINDS[0])
            session.add(identity)
            session.flush()
            identity_id = identity.id

        with self.assertRaises(IntegrityError):
            with self.db.session_scope() as session:
                session.add(Tracker(name='jira', url='https://x', kind='bugzilla', identity_id=identity_id))

        with self.db.session_scope() as session:
            for kind in TRACKER_KINDS:
                session.add(Tracker(name=kind, url='https://x', kind=kind, identity_id=identity_id))


class TestSessionIsolation(unittest.TestCase):
    """Test concurrent sessions on a file-backed database."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        url = f"sqlite:///{os.path.join(self.tmpdir, 'tracker_hub.db')}"
        self.db = DatabaseConnection(url=url, config=ConfigManager({}))
        self.db.create_all()

    def tearDown(self):
        self.db.dispose()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_rollback_does_not_discard_other_session(self):
        """Test a failing request leaves another thread's pending write intact."""
        flushed = threading.Event()
        rolled_back = threading.Event()
        errors = []

        def writer():
            try:
                with self.db.session_scope() as session:
                    session.add(Identity(name='a'))
                    session.flush()
                    flushed.set()
                    rolled_back.wait(10)
            except Exception as e:
                errors.append(e)
            finally:
                flushed.set()

        def failing_request():
            flushed.wait(10)
            try:
                with self.db.session_scope() as session:
                    session.query(Identity).count()
                    raise RuntimeError('request failed')
            except RuntimeError:
                pass
            finally:
                rolled_back.set()

        threads = [threading.Thread(target=writer), threading.Thread(target=failing_request)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(20)

        self.assertEqual(errors, [])
        with self.db.session_scope() as session:
            names = [i.name for i in session.query(Identity).order_by(Identity.id)]
        self.assertEqual(names, ['a'])


if __name__ == '__main__':
    unittest.main()
