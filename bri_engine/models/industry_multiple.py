"""
IndustryMultiple model — reference EBITDA and revenue multiple ranges.

Several rows may exist per classification key over time; the newest
effective row for a company's classification is authoritative.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, Text, Date, DateTime, Numeric, CheckConstraint

from bri_engine.database import Base


class IndustryMultiple(Base):
    __tablename__ = 'industry_multiples'
    __table_args__ = (
        CheckConstraint('ebitda_multiple_low <= ebitda_multiple_high', name='ck_ebitda_low_le_high'),
        CheckConstraint('revenue_multiple_low <= revenue_multiple_high', name='ck_revenue_low_le_high'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    icb_industry = Column(Text, nullable=False, index=True)
    icb_super_sector = Column(Text, nullable=False, index=True)
    icb_sector = Column(Text, nullable=False, index=True)
    icb_sub_sector = Column(Text, nullable=False, index=True)
    effective_date = Column(Date, nullable=False)
    ebitda_multiple_low = Column(Numeric(8, 4), nullable=False)
    ebitda_multiple_high = Column(Numeric(8, 4), nullable=False)
    revenue_multiple_low = Column(Numeric(8, 4), nullable=False)
    revenue_multiple_high = Column(Numeric(8, 4), nullable=False)
    source = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
