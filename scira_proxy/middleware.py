"""Request hooks for API-key authentication and CORS headers."""

from __future__ import annotations

import flask

from .config import Config

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS, PUT, DELETE",
    "Access-Control-Allow-Headers": (
        "Content-Type, Content-Length, Accept-Encoding, Authorization"
    ),
}


def install_auth(app: flask.Flask, config: Config) -> None:
    """Reject requests without the configured API key; no key means no check."""

    @app.before_request
    def _check_api_key():
        api_key = config.api_key
        if not api_key:
            return None
        header = flask.request.headers.get("Authorization", "")
        if not header:
            return flask.jsonify(error="Missing or invalid Authorization header"), 401
        if header.removeprefix("Bearer ") != api_key:
            return flask.jsonify(error="Invalid API key"), 401
        return None


def install_cors(app: flask.Flask) -> None:
    """Add permissive CORS headers and answer preflight requests with 204.

    Requests stopped by an earlier hook do not reach this one and get no
    CORS headers.
    """

    @app.before_request
    def _cors_preflight():
        flask.g.cors_enabled = True
        if flask.request.method == "OPTIONS":
            return flask.Response(status=204)
        return None

    @app.after_request
    def _add_cors_headers(response: flask.Response) -> flask.Response:
        if flask.g.get("cors_enabled", False):
            for name, value in _CORS_HEADERS.items():
                response.headers[name] = value
        return response