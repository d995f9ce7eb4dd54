"""Application assembly and the command that serves it."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

import flask

from . import logger
from .config import Config, ConfigError, load_config
from .middleware import install_auth, install_cors
from .service import ChatHandler


def create_app(config: Config) -> flask.Flask:
    """Build the web application for ``config``."""
    app = flask.Flask(__name__)
    install_auth(app, config)
    install_cors(app)
    ChatHandler(config).register(app)
    return app


def main(argv: Sequence[str] | None = None) -> None:
    """Read the configuration from the environment and serve the API."""
    argparse.ArgumentParser(prog="scira-proxy").parse_args(argv)
    try:
        config = load_config()
        port = int(config.port)
    except ConfigError as exc:
        logger.fatal("%s", exc)
        return
    except ValueError:
        logger.fatal("PORT is not a number: %s", config.port)
        return
    app = create_app(config)
    logger.info("Server is running on port %s", config.port)
    app.run(host="0.0.0.0", port=port, threaded=True)