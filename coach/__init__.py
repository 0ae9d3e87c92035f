import logging
from flask import Flask, session
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_session import Session
from flask_wtf import CSRFProtect
from config import Config

logger = logging.getLogger(__name__)

# Initialiseer extensies globaal voor gebruik in de applicatiefactory
db = SQLAlchemy()
migrate = Migrate()
login = LoginManager()
csrf = CSRFProtect()


@login.user_loader
def load_user(user_id):
    # Laad een gebruikersobject op basis van de user_id voor Flask-Login.
    from coach.models import User  # Import hier om circulaire imports te vermijden
    try:
        user = db.session.get(User, int(user_id))
        if not user:
            session.clear()  # forceer nieuwe login
            logger.debug("Geen gebruiker gevonden voor id, sessie gecleared")
        else:
            logger.debug(f"Gebruiker geladen: {user.username}")
        return user
    except (TypeError, ValueError) as e:
        logger.error(f"Ongeldige user_id in sessie {user_id}: {str(e)}")
        return None


@login.unauthorized_handler
def unauthorized():
    # De API heeft geen login-pagina; antwoord altijd met JSON.
    from flask import jsonify
    return jsonify({'error': 'Unauthorized', 'message': 'User not authenticated'}), 401


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # Initialiseer Flask-Session voor server-side sessiebeheer
    Session(app)

    # Initialiseer CSRF-bescherming voor formulieren
    csrf.init_app(app)

    # Initialiseer extensies met de app
    db.init_app(app)  # Database-ORM
    migrate.init_app(app, db)  # Database-migraties
    login.init_app(app)  # Gebruikersauthenticatie

    # Registreer blueprints voor routes en errorhandling
    from coach.errors import bp as errors_bp
    from coach.api import bp as api_bp
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(errors_bp)

    # Importeer modellen om database-tabellen te registreren
    from coach import models

    logger.debug(f"App aangemaakt met database {app.config['SQLALCHEMY_DATABASE_URI']}")
    return app
