"""
Lead model — one row per intake submission. Never deleted; closed by status.
"""
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, JSON, CheckConstraint
from sqlalchemy.sql import func

from portal.database import Base


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=True)
    project_address = Column(Text, nullable=True)
    budget_range = Column(Text, nullable=True)
    timeline = Column(Text, nullable=True)
    project_type = Column(Text, nullable=True)
    has_survey = Column(Boolean, nullable=False, default=False)
    has_drawings = Column(Boolean, nullable=False, default=False)
    project_description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default='NEW')
    recommended_tier = Column(Integer, nullable=False, default=2)
    routing_reason = Column(Text, nullable=True)
    tier_confidence = Column(Text, nullable=True)            # high/medium/low
    needs_manual_review = Column(Boolean, nullable=False, default=False)
    routing_factors = Column(JSON, nullable=True)
    tier_override = Column(Integer, nullable=True)
    override_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "tier_override IS NULL OR (override_reason IS NOT NULL AND override_reason <> '')",
            name='ck_lead_override_reason',
        ),
    )

    @property
    def effective_tier(self):
        """Admin override wins over the router's recommendation."""
        return self.tier_override if self.tier_override is not None else self.recommended_tier

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'project_address': self.project_address,
            'budget_range': self.budget_range,
            'timeline': self.timeline,
            'project_type': self.project_type,
            'has_survey': bool(self.has_survey),
            'has_drawings': bool(self.has_drawings),
            'project_description': self.project_description,
            'status': self.status,
            'recommended_tier': self.recommended_tier,
            'routing_reason': self.routing_reason,
            'tier_confidence': self.tier_confidence,
            'needs_manual_review': bool(self.needs_manual_review),
            'tier_override': self.tier_override,
            'override_reason': self.override_reason,
            'effective_tier': self.effective_tier,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
