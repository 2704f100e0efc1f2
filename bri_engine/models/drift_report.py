"""
DriftReport model — period-over-period comparison of two snapshots.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, Text, DateTime, Numeric, JSON, ForeignKey

from bri_engine.database import Base


class DriftReport(Base):
    __tablename__ = 'drift_reports'

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey('companies.id'), nullable=False, index=True)
    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False)
    start_snapshot_id = Column(Integer, ForeignKey('valuation_snapshots.id'), nullable=True)
    end_snapshot_id = Column(Integer, ForeignKey('valuation_snapshots.id'), nullable=True)
    bri_score_start = Column(Numeric(6, 4), nullable=True)
    bri_score_end = Column(Numeric(6, 4), nullable=True)
    valuation_start = Column(Numeric(16, 2), nullable=True)
    valuation_end = Column(Numeric(16, 2), nullable=True)
    bri_delta = Column(Numeric(7, 2), nullable=False, default=0)        # BRI points
    valuation_delta = Column(Numeric(16, 2), nullable=False, default=0)
    category_changes = Column(JSON, default=list)
    overall_direction = Column(Text, nullable=False, default='stable')
    severity = Column(Text, nullable=False, default='INFO')
    summary = Column(Text, default='')
    signals_count = Column(Integer, default=0)
    tasks_completed_count = Column(Integer, default=0)
    tasks_added_count = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.now)
    viewed_at = Column(DateTime, nullable=True)
