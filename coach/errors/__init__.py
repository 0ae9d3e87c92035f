from flask import Blueprint

bp = Blueprint('errors', __name__)

from coach.errors import handlers
