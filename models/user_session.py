"""Server-side session records bound to issued access tokens."""

from utils.timeutils import utcnow

from . import db


class UserSession(db.Model):
    """Binds a JWT id to a user until logout or expiry."""

    __tablename__ = "user_sessions"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), nullable=False, unique=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    remember = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    user = db.relationship("User", back_populates="sessions")

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<UserSession user_id={self.user_id} remember={self.remember}>"
