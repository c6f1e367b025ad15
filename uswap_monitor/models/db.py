"""SQLAlchemy database models for persisted poller state"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class AffiliateCursor(Base):
    """
    Last committed explorer position for an affiliate.
    Totals are written in the same transaction so a restart resumes both.
    """
    __tablename__ = 'affiliate_cursors'

    affiliate = Column(String, primary_key=True)
    last_deposit_address = Column(String, nullable=False, default='')
    last_deposit_memo = Column(String, nullable=False, default='')
    fee_usd = Column(Float, nullable=False, default=0.0)
    volume_usd = Column(Float, nullable=False, default=0.0)
    swap_count = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
