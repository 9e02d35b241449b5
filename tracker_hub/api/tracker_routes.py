"""
Trackers API Blueprint
Provides CRUD endpoints for issue tracker connections.
"""

from flask import Blueprint, jsonify, request

from tracker_hub import auth
from tracker_hub.api.base import bind
from tracker_hub.api.errors import NotFound
from tracker_hub.api.resources import Tracker
from tracker_hub.database.connection import get_session
from tracker_hub.database.queries import QueryHelpers
from tracker_hub.utils.helpers import parse_bool
from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)

trackers_bp = Blueprint('trackers', __name__, url_prefix='/trackers')
trackers_bp.before_request(auth.required('trackers'))


@trackers_bp.route('/', methods=['GET'], strict_slashes=False)
def list_trackers():
    """
    List all trackers.

    Query params:
        kind: Only trackers of this kind
        connected: Only trackers in this connection state (boolean)

    Returns:
        JSON array of trackers
    """
    kind = request.args.get('kind') or None

    connected = None
    q = request.args.get('connected', '')
    if q:
        try:
            connected = parse_bool(q)
        except ValueError:
            return '', 400

    with get_session() as session:
        queries = QueryHelpers(session)
        trackers = queries.list_trackers(kind=kind, connected=connected)
        resources = [Tracker.from_model(m).render() for m in trackers]

    return jsonify(resources)


@trackers_bp.route('/<int:tracker_id>', methods=['GET'])
def get_tracker(tracker_id: int):
    """
    Get a tracker by ID.

    Args:
        tracker_id: Tracker ID

    Returns:
        JSON tracker
    """
    with get_session() as session:
        m = QueryHelpers(session).get_tracker(tracker_id)
        resource = Tracker.from_model(m) if m is not None else None

    if resource is None:
        raise NotFound(f"Tracker {tracker_id} not found")

    return jsonify(resource.render())


@trackers_bp.route('/', methods=['POST'], strict_slashes=False)
def create_tracker():
    """
    Create a tracker.

    Returns:
        JSON tracker with the assigned ID, status 201
    """
    r = bind(Tracker)

    with get_session() as session:
        m = r.to_model()
        m.create_user = auth.current_user()
        session.add(m)
        session.flush()
        session.refresh(m)
        created = Tracker.from_model(m)

    logger.info(f"Tracker {created.id} ({created.name}) created by {created.create_user}")

    return jsonify(created.render()), 201


@trackers_bp.route('/<int:tracker_id>', methods=['PUT'])
def update_tracker(tracker_id: int):
    """
    Update a tracker.

    The path ID always wins over any ID in the body. Only scalar columns are
    written; the connection status is reset for the monitor to re-check.

    Args:
        tracker_id: Tracker ID

    Returns:
        Empty response, status 204
    """
    r = bind(Tracker)
    m = r.to_model()

    fields = {
        'name': m.name,
        'url': m.url,
        'kind': m.kind,
        'insecure': m.insecure,
        'identity_id': m.identity_id,
        'connected': False,
        'message': '',
        'update_user': auth.current_user(),
    }

    with get_session() as session:
        matched = QueryHelpers(session).update_tracker(tracker_id, fields)

    if not matched:
        raise NotFound(f"Tracker {tracker_id} not found")

    logger.info(f"Tracker {tracker_id} updated by {fields['update_user']}")

    return '', 204


@trackers_bp.route('/<int:tracker_id>', methods=['DELETE'])
def delete_tracker(tracker_id: int):
    """
    Delete a tracker.

    Args:
        tracker_id: Tracker ID

    Returns:
        Empty response, status 204
    """
    with get_session() as session:
        m = QueryHelpers(session).get_tracker(tracker_id, eager=False)
        if m is not None:
            session.delete(m)

    if m is None:
        raise NotFound(f"Tracker {tracker_id} not found")

    logger.info(f"Tracker {tracker_id} deleted by {auth.current_user()}")

    return '', 204
