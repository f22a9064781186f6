"""
Client model — the commercial relationship, 1:1 with a User.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from portal.database import Base


class Client(Base):
    __tablename__ = 'clients'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, unique=True)
    lead_id = Column(Integer, ForeignKey('leads.id'), nullable=True)
    tier = Column(Integer, nullable=False, default=1)
    status = Column(Text, nullable=False, default='ONBOARDING')
    project_address = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'lead_id': self.lead_id,
            'tier': self.tier,
            'status': self.status,
            'project_address': self.project_address,
        }
