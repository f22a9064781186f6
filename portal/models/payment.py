"""
Payment model — one successful charge, deduplicated by provider payment intent.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from portal.database import Base


class Payment(Base):
    __tablename__ = 'payments'

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False, index=True)
    stripe_payment_intent_id = Column(Text, nullable=False)
    stripe_customer_id = Column(Text, nullable=False)
    stripe_checkout_session_id = Column(Text, nullable=True)
    amount = Column(Integer, nullable=False)        # minor currency units
    currency = Column(Text, nullable=False, default='usd')
    status = Column(Text, nullable=False)
    tier = Column(Integer, nullable=False)
    paid_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('stripe_payment_intent_id', name='uq_payment_intent'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'stripe_payment_intent_id': self.stripe_payment_intent_id,
            'stripe_customer_id': self.stripe_customer_id,
            'amount': self.amount,
            'currency': self.currency,
            'status': self.status,
            'tier': self.tier,
        }
