"""
Signal model — a notable event raised for a company (e.g. readiness drift).
"""
from datetime import datetime

from sqlalchemy import Column, Integer, Text, DateTime, JSON, ForeignKey

from bri_engine.database import Base


class Signal(Base):
    __tablename__ = 'signals'

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey('companies.id'), nullable=False, index=True)
    signal_type = Column(Text, nullable=False)
    severity = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, default='')
    data = Column(JSON, nullable=True)
    drift_report_id = Column(Integer, ForeignKey('drift_reports.id'), nullable=True)
    created_at = Column(DateTime, default=datetime.now)
