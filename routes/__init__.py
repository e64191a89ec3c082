from .health import health_bp
from .auth import auth_bp
from .users import users_bp
from .bookings import bookings_bp
from .payments import payments_bp
