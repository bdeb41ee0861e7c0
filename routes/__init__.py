"""
Flask route blueprints for the Fancam print service.

- main: Index and health check
- print_api: Print submission, batch polling, job status and cancel

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .print_api import print_api_bp

__all__ = [
    "main_bp",
    "print_api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(print_api_bp)
