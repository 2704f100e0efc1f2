"""
FinancialPeriod model — one row per reported fiscal period.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, Date, DateTime, Numeric, ForeignKey

from bri_engine.database import Base


class FinancialPeriod(Base):
    __tablename__ = 'financial_periods'

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey('companies.id'), nullable=False, index=True)
    period_end = Column(Date, nullable=False)
    annual_revenue = Column(Numeric(16, 2), nullable=True)
    adjusted_ebitda = Column(Numeric(16, 2), nullable=True)
    free_cash_flow = Column(Numeric(16, 2), nullable=True)
    created_at = Column(DateTime, default=datetime.now)
