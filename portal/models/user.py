"""
User model — the authenticated account created at most once per email.
"""
from sqlalchemy import Column, Integer, Text, DateTime
from sqlalchemy.sql import func

from portal.database import Base


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=True)
    password_hash = Column(Text, nullable=False)
    user_type = Column(Text, nullable=False, default='SAGE_CLIENT')
    tier = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'user_type': self.user_type,
            'tier': self.tier,
        }
