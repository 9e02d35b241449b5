"""
Identities API Blueprint
Provides CRUD endpoints for the credentials referenced by trackers.
"""

from flask import Blueprint, jsonify, request

from tracker_hub import auth
from tracker_hub.api.base import bind
from tracker_hub.api.errors import NotFound
from tracker_hub.api.resources import Identity
from tracker_hub.database.connection import get_session
from tracker_hub.database.queries import QueryHelpers
from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)

identities_bp = Blueprint('identities', __name__, url_prefix='/identities')
identities_bp.before_request(auth.required('identities'))


@identities_bp.route('/', methods=['GET'], strict_slashes=False)
def list_identities():
    """
    List all identities.

    Query params:
        kind: Only identities of this kind
    """
    kind = request.args.get('kind') or None

    with get_session() as session:
        identities = QueryHelpers(session).list_identities(kind=kind)
        resources = [Identity.from_model(m).render() for m in identities]

    return jsonify(resources)


@identities_bp.route('/<int:identity_id>', methods=['GET'])
def get_identity(identity_id: int):
    """Get an identity by ID."""
    with get_session() as session:
        m = QueryHelpers(session).get_identity(identity_id)
        resource = Identity.from_model(m) if m is not None else None

    if resource is None:
        raise NotFound(f"Identity {identity_id} not found")

    return jsonify(resource.render())


@identities_bp.route('/', methods=['POST'], strict_slashes=False)
def create_identity():
    """Create an identity."""
    r = bind(Identity)

    with get_session() as session:
        m = r.to_model()
        m.create_user = auth.current_user()
        session.add(m)
        session.flush()
        session.refresh(m)
        created = Identity.from_model(m)

    logger.info(f"Identity {created.id} ({created.name}) created by {created.create_user}")

    return jsonify(created.render()), 201


@identities_bp.route('/<int:identity_id>', methods=['PUT'])
def update_identity(identity_id: int):
    """Update an identity. Omitted secrets are left unchanged."""
    r = bind(Identity)

    fields = {
        'name': r.name,
        'kind': r.kind,
        'description': r.description,
        'user': r.user,
        'update_user': auth.current_user(),
    }
    if r.password is not None:
        fields['password'] = r.password
    if r.key is not None:
        fields['key'] = r.key

    with get_session() as session:
        matched = QueryHelpers(session).update_identity(identity_id, fields)

    if not matched:
        raise NotFound(f"Identity {identity_id} not found")

    logger.info(f"Identity {identity_id} updated by {fields['update_user']}")

    return '', 204


@identities_bp.route('/<int:identity_id>', methods=['DELETE'])
def delete_identity(identity_id: int):
    """Delete an identity. Fails with a conflict while trackers reference it."""
    with get_session() as session:
        m = QueryHelpers(session).get_identity(identity_id)
        if m is not None:
            session.delete(m)

    if m is None:
        raise NotFound(f"Identity {identity_id} not found")

    logger.info(f"Identity {identity_id} deleted by {auth.current_user()}")

    return '', 204
