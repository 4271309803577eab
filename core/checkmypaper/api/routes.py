"""Provides the review API."""

from typing import Callable
from functools import wraps

from flask import Blueprint, Response, current_app, g, jsonify, \
    make_response, request
from werkzeug.exceptions import Unauthorized

from .. import logging
from . import controllers
from .auth import get_actor

logger = logging.getLogger(__name__)

blueprint = Blueprint('review', __name__)


def json_response(func: Callable) -> Callable:
    """Generate a wrapper for routes that JSONifies the response body."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        r_body, r_status, r_headers = func(*args, **kwargs)
        return jsonify(r_body), r_status, r_headers
    return wrapper


@blueprint.before_request
def authenticate() -> None:
    """Attach the actor identified by the bearer token to the request."""
    secret = current_app.config.get('JWT_SECRET')
    if not secret:
        logger.error('JWT_SECRET is not set; cannot authenticate requests')
        raise Unauthorized('Authentication is not available')
    g.actor = get_actor(request.headers.get('Authorization'), secret)


@blueprint.route('/submissions', methods=['POST'])
@json_response
def create_submission() -> tuple:
    """Upload a document to be checked."""
    return controllers.create_submission(g.actor, request.form,
                                         request.files)


@blueprint.route('/submissions', methods=['GET'])
@json_response
def list_submissions() -> tuple:
    """Get the submissions that the actor may see."""
    return controllers.list_submissions(g.actor)


@blueprint.route('/submissions/summary', methods=['GET'])
@json_response
def summarize() -> tuple:
    """Get counts of visible submissions by state."""
    return controllers.summarize(g.actor)


@blueprint.route('/submissions/<string:submission_id>', methods=['GET'])
@json_response
def get_submission(submission_id: str) -> tuple:
    """Get the current state of a submission."""
    return controllers.get_submission(g.actor, submission_id)


@blueprint.route('/submissions/<string:submission_id>/history',
                 methods=['GET'])
@json_response
def get_history(submission_id: str) -> tuple:
    """Get the event log for a submission."""
    return controllers.get_history(g.actor, submission_id)


@blueprint.route('/submissions/<string:submission_id>/artifacts/'
                 '<string:kind>', methods=['GET'])
def get_artifact(submission_id: str, kind: str) -> Response:
    """Download a document attached to a submission."""
    content, code, head = controllers.get_artifact(g.actor, submission_id,
                                                   kind)
    response: Response = make_response(content, code, head)
    return response


@blueprint.route('/submissions/<string:submission_id>/claim',
                 methods=['POST'])
@json_response
def claim(submission_id: str) -> tuple:
    """Claim a submission for review."""
    return controllers.claim(g.actor, submission_id)


@blueprint.route('/submissions/<string:submission_id>/decline',
                 methods=['POST'])
@json_response
def decline(submission_id: str) -> tuple:
    """Decline to review a submission."""
    return controllers.decline(g.actor, submission_id)


@blueprint.route('/submissions/<string:submission_id>/finalize',
                 methods=['POST'])
@json_response
def finalize(submission_id: str) -> tuple:
    """Return a checked submission with a score and a grade."""
    return controllers.finalize(g.actor, submission_id, request.form,
                                request.files)


@blueprint.route('/notifications', methods=['GET'])
@json_response
def list_notifications() -> tuple:
    """Get the actor's most recent notifications."""
    return controllers.list_notifications(g.actor, request.args)


@blueprint.route('/notifications/<string:notification_id>/read',
                 methods=['POST'])
@json_response
def mark_notification_read(notification_id: str) -> tuple:
    """Mark a notification as read."""
    return controllers.mark_notification_read(g.actor, notification_id)
