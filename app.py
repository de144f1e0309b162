import os
import logging
from rich.logging import RichHandler
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
import matplotlib
matplotlib.use("Agg")

import config
from survey_app.models import init_db
from routes.employee_routes import employee_bp
from routes.admin_routes import admin_bp
from asgiref.wsgi import WsgiToAsgi

# Configure rich logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(message)s",
)

logging.root.handlers = [
    RichHandler(rich_tracebacks=True, show_path=True, tracebacks_show_locals=False,
                log_time_format="[%b %d, %Y, %I:%M:%S %p]",
                )
]
logger = logging.getLogger("survey_system")


def create_app():
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB max request size

    # Register blueprints
    app.register_blueprint(employee_bp)
    app.register_blueprint(admin_bp)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception(f"Unhandled error: {e}")
        return jsonify({'error': 'Something went wrong!'}), 500

    # Ensure working folders exist
    os.makedirs(config.TEMP_FOLDER, exist_ok=True)
    os.makedirs(config.REPORTS_FOLDER, exist_ok=True)

    init_db()
    return app


app = create_app()
asgi_app = WsgiToAsgi(app)


if __name__ == "__main__":
    import uvicorn
    host = os.environ.get('SURVEY_HOST', '0.0.0.0')
    port = int(os.environ.get('SURVEY_PORT', '3000'))
    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(asgi_app, host=host, port=port, log_config=None)
