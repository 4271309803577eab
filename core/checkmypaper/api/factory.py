"""Application factory for the review API."""

from flask import Flask, jsonify, Response
from werkzeug.exceptions import HTTPException, Forbidden, Unauthorized, \
    BadRequest, MethodNotAllowed, InternalServerError, NotFound, Conflict, \
    ServiceUnavailable

from .. import config, init_app
from . import routes


def create_web_app() -> Flask:
    """Initialize an instance of the review API."""
    app = Flask('checkmypaper')
    app.config.from_object(config)
    init_app(app)
    register_error_handlers(app)
    app.register_blueprint(routes.blueprint)
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(Forbidden)(jsonify_exception)
    app.errorhandler(Unauthorized)(jsonify_exception)
    app.errorhandler(BadRequest)(jsonify_exception)
    app.errorhandler(InternalServerError)(jsonify_exception)
    app.errorhandler(NotFound)(jsonify_exception)
    app.errorhandler(MethodNotAllowed)(jsonify_exception)
    app.errorhandler(Conflict)(jsonify_exception)
    app.errorhandler(ServiceUnavailable)(jsonify_exception)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions as JSON."""
    exc_resp = error.get_response()
    response: Response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response
