"""
Identifies the actor behind a request.

Requests carry an HS256 JWT bearer token, issued by the identity system. The
``sub`` claim is the identity of the actor, and ``role`` is either
``requester`` or ``reviewer``. ``name`` and ``email`` are optional.
"""

from typing import Optional

import jwt
from werkzeug.exceptions import Unauthorized

from .. import logging
from ..domain.actor import Actor, Role

logger = logging.getLogger(__name__)


def get_actor(header: Optional[str], secret: str) -> Actor:
    """Decode the ``Authorization`` header of a request into an actor."""
    if not header:
        raise Unauthorized('Missing authorization token')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        token = header
    try:
        claims = jwt.decode(token, secret, algorithms=['HS256'])
    except jwt.exceptions.InvalidTokenError as e:
        logger.debug('Rejected token: %s', e)
        raise Unauthorized('Invalid authorization token') from e
    try:
        return Actor(identity=claims['sub'], role=Role(claims['role']),
                     full_name=claims.get('name', ''),
                     email=claims.get('email', ''))
    except (KeyError, ValueError) as e:
        raise Unauthorized('Token does not identify an actor') from e


def generate_token(actor: Actor, secret: str) -> str:
    """Generate a bearer token for an actor, e.g. for local development."""
    claims = {'sub': actor.identity, 'role': actor.role.value,
              'name': actor.full_name, 'email': actor.email}
    token = jwt.encode(claims, secret, algorithm='HS256')
    if isinstance(token, bytes):    # PyJWT < 2.
        token = token.decode('utf-8')
    return token
