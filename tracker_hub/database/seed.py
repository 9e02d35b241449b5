"""
Seed Data Module
Loads identities and trackers from a YAML document into the database.

Example document:

    identities:
      - name: jira-bot
        kind: basic-auth
        user: bot@example.com
        password: ${JIRA_API_TOKEN}
    trackers:
      - name: jira
        url: https://example.atlassian.net
        kind: jira-cloud
        identity: jira-bot
"""

from pathlib import Path
from typing import Dict, Union

import yaml
from pydantic import ValidationError

from tracker_hub.api import resources
from tracker_hub.config_manager import ConfigManager
from tracker_hub.database.connection import DatabaseConnection
from tracker_hub.database.models import Identity, Tracker
from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)

SEED_USER = 'admin.seed'


class SeedError(Exception):
    """Raised when a seed document cannot be applied."""


def load_seed_file(path: Union[str, Path]) -> Dict:
    """Read a seed document, substituting ${VAR} references from the environment."""
    with open(path, 'r') as f:
        data = yaml.safe_load(ConfigManager({}).substitute_env_vars(f.read())) or {}
    if not isinstance(data, dict):
        raise SeedError(f"{path}: expected a mapping with 'identities' and 'trackers'")
    return data


def _validate(resource_class, entry):
    if not isinstance(entry, dict):
        raise SeedError(f"Invalid {resource_class.__name__.lower()} entry: {entry!r}")
    try:
        return resource_class.model_validate(entry)
    except ValidationError as e:
        raise SeedError(f"Invalid {resource_class.__name__.lower()} entry: {e}") from e


def seed(db: DatabaseConnection, data: Dict, user: str = SEED_USER) -> Dict[str, int]:
    """
    Create the identities and trackers of a seed document.

    Entries whose name already exists are left untouched, so a document can
    be applied repeatedly. Trackers name their identity instead of its id.
    Nothing is written when any entry is invalid.

    Args:
        db: Database connection
        data: Parsed seed document
        user: Recorded as the creating user

    Returns:
        Counts of created identities and trackers, and of skipped entries
    """
    stats = {'identities': 0, 'trackers': 0, 'skipped': 0}

    with db.session_scope() as session:
        for entry in data.get('identities') or []:
            resource = _validate(resources.Identity, entry)
            if session.query(Identity.id).filter(Identity.name == resource.name).first():
                stats['skipped'] += 1
                continue
            model = resource.to_model()
            model.create_user = user
            session.add(model)
            stats['identities'] += 1
        session.flush()

        identity_ids = {name: id_ for name, id_ in session.query(Identity.name, Identity.id)}

        for entry in data.get('trackers') or []:
            if not isinstance(entry, dict):
                raise SeedError(f"Invalid tracker entry: {entry!r}")
            identity_name = entry.get('identity')
            if identity_name not in identity_ids:
                raise SeedError(f"Tracker {entry.get('name')!r} names unknown identity {identity_name!r}")
            entry = dict(entry, identity={'id': identity_ids[identity_name]})
            resource = _validate(resources.Tracker, entry)
            if session.query(Tracker.id).filter(Tracker.name == resource.name).first():
                stats['skipped'] += 1
                continue
            model = resource.to_model()
            model.create_user = user
            session.add(model)
            stats['trackers'] += 1

    logger.info(
        f"Seeded {stats['identities']} identities and {stats['trackers']} trackers, "
        f"{stats['skipped']} already present"
    )
    return stats
