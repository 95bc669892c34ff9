"""
Lab Desk application package
"""
import os

from flask import Flask

from labdesk.extensions import db, init_extensions
from labdesk.config import config


def create_app(config_name=None):
    """Application factory"""
    config_name = config_name or os.environ.get('FLASK_CONFIG', 'default')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    init_extensions(app)

    from labdesk.errors import register_error_handlers
    register_error_handlers(app)

    from labdesk.routes import register_blueprints
    register_blueprints(app)

    from labdesk.commands import register_commands
    register_commands(app)

    app.logger.debug(f"{app.config['APP_NAME']} started with '{config_name}' config")
    return app


__all__ = ['create_app', 'db']
