from .db import db
from .user import User
from .booking import Booking
from .payment import Payment
from .refresh_token import RefreshToken
from .audit_log import AuditLog
