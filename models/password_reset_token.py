"""Password reset token model."""

from utils.timeutils import utcnow

from . import db


class PasswordResetToken(db.Model):
    """A single-use reset token; only the SHA-256 digest of the value is kept."""

    __tablename__ = "password_reset_tokens"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<PasswordResetToken email={self.email} expires_at={self.expires_at}>"
