"""
Flask Application Factory
Main entry point for the tracker hub web application.
"""

import os
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from tracker_hub import auth
from tracker_hub.api.errors import register_error_handlers
from tracker_hub.config_manager import ConfigManager, get_config
from tracker_hub.database.connection import EXTENSION_KEY, DatabaseConnection, get_db
from tracker_hub.utils.logger import get_logger, log_response, setup_logging


def create_app(
    config: Optional[ConfigManager] = None,
    db: Optional[DatabaseConnection] = None,
    configure_logging: bool = True
) -> Flask:
    """
    Application factory for Flask app.

    Args:
        config: Optional configuration; loaded from config/ when omitted
        db: Optional database connection; built from configuration when omitted
        configure_logging: Install the root logging handlers

    Returns:
        Configured Flask application
    """
    config = config or get_config()

    if configure_logging:
        setup_logging(config)
    logger = get_logger(__name__)

    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    app.json.sort_keys = False

    CORS(app)

    # Collaborators
    db = db or DatabaseConnection(config=config)
    db.create_all()
    app.extensions[EXTENSION_KEY] = db
    app.extensions[auth.EXTENSION_KEY] = auth.build_provider(config)
    app.extensions['tracker_hub.config'] = config

    # Register blueprints
    from tracker_hub.api.tracker_routes import trackers_bp
    from tracker_hub.api.identity_routes import identities_bp

    app.register_blueprint(trackers_bp)
    app.register_blueprint(identities_bp)

    register_error_handlers(app)
    app.after_request(log_response)

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        db_healthy = get_db().check_connection()

        return jsonify({
            'status': 'healthy' if db_healthy else 'degraded',
            'timestamp': datetime.utcnow().isoformat(),
            'database': 'connected' if db_healthy else 'disconnected'
        })

    @app.route('/', methods=['GET'])
    def root():
        """Root endpoint with API info."""
        return jsonify({
            'name': 'Tracker Hub API',
            'version': '1.0.0',
            'endpoints': {
                '/health': 'Health check',
                '/trackers': 'List trackers (GET), create tracker (POST)',
                '/trackers/<id>': 'Get (GET), update (PUT), delete (DELETE) tracker',
                '/identities': 'List identities (GET), create identity (POST)',
                '/identities/<id>': 'Get (GET), update (PUT), delete (DELETE) identity'
            }
        })

    logger.info("Flask application created")

    return app


def create_scheduler(app: Flask) -> BackgroundScheduler:
    """
    Create and configure the background scheduler.

    Args:
        app: Flask app whose database the monitor refreshes

    Returns:
        Configured scheduler
    """
    from tracker_hub.tracker_monitor import TrackerMonitor

    logger = get_logger(__name__)
    config = app.extensions['tracker_hub.config']
    monitor_config = config.get_monitor_config()

    scheduler = BackgroundScheduler()

    if not monitor_config.get('enabled', True):
        logger.info("Tracker monitor is disabled")
        return scheduler

    schedule = monitor_config.get('schedule', '*/5 * * * *')  # Default: every 5 minutes
    monitor = TrackerMonitor(app.extensions[EXTENSION_KEY], config)

    @scheduler.scheduled_job(CronTrigger.from_crontab(schedule), id='tracker_refresh')
    def scheduled_refresh():
        """Scheduled tracker refresh job."""
        with app.app_context():
            try:
                monitor.refresh()
            except Exception as e:
                logger.error(f"Scheduled tracker refresh failed: {e}")

    return scheduler


if __name__ == '__main__':
    # Development server
    app = create_app()
    scheduler = create_scheduler(app)
    scheduler.start()

    try:
        app.run(
            host='0.0.0.0',
            port=int(os.getenv('FLASK_PORT', 8080)),
            debug=os.getenv('FLASK_DEBUG', 'false').lower() == 'true'
        )
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown()
