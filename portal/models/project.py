"""
Project model — one billable engagement. A Client accumulates many.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from portal.database import Base


class Project(Base):
    __tablename__ = 'projects'

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey('clients.id'), nullable=False, index=True)
    lead_id = Column(Integer, ForeignKey('leads.id'), nullable=True)
    name = Column(Text, nullable=False)
    tier = Column(Integer, nullable=False)          # may diverge from Client.tier after upgrades
    status = Column(Text, nullable=False, default='ONBOARDING')
    payment_status = Column(Text, nullable=False, default='pending')
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'client_id': self.client_id,
            'lead_id': self.lead_id,
            'name': self.name,
            'tier': self.tier,
            'status': self.status,
            'payment_status': self.payment_status,
        }
