# fleet/__init__.py
import logging

from flask import Flask, jsonify
from config import Config
from fleet.extensions import db, bcrypt, login_manager, migrate, mail


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # Extensions
    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Models must be imported before the first create_all()
    from fleet import models  # noqa: F401

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'User not authenticated', 'error': 'NotAuthenticated'}), 401

    # Blueprints
    from fleet.routes.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix='/auth')

    from fleet.routes.main import main as main_blueprint
    app.register_blueprint(main_blueprint)

    from fleet.routes.vehicles import vehicles as vehicles_blueprint
    app.register_blueprint(vehicles_blueprint, url_prefix='/vehicles')

    from fleet.routes.rentals import rentals as rentals_blueprint
    app.register_blueprint(rentals_blueprint, url_prefix='/rentals')

    from fleet.routes.customers import customers as customers_blueprint
    app.register_blueprint(customers_blueprint, url_prefix='/customers')

    from fleet.routes.drivers import drivers as drivers_blueprint
    app.register_blueprint(drivers_blueprint, url_prefix='/drivers')

    from fleet.routes.maintenance import maintenance as maintenance_blueprint
    app.register_blueprint(maintenance_blueprint, url_prefix='/maintenance')

    from fleet.routes.reports import reports as reports_blueprint
    app.register_blueprint(reports_blueprint, url_prefix='/reports')

    return app
