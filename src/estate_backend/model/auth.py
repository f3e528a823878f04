from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from .base import Base


class User(Base):
    __tablename__ = 'user'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    # Who provisioned this account; NULL for self-registered or seeded users
    created_by = Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)
    given_name = Column(String(255))
    family_name = Column(String(255))
    email = Column(String(320), unique=True)
    phone_number = Column(String(64))
    archived_at = Column(DateTime(True))

    # Relationships
    user_roles = relationship("UserRole", back_populates="user", foreign_keys="UserRole.user_id", uselist=True, lazy="select")

    # Self-referential relationships
    created_by_user = relationship("User", foreign_keys=[created_by], remote_side=[id])

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
