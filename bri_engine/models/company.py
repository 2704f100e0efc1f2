"""
Company model — one row per valued business.

Carries the ICB classification used for multiple lookups and the six
structural factors that feed the Core Score.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, Text, DateTime

from bri_engine.database import Base


class Company(Base):
    __tablename__ = 'companies'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)

    # ICB classification, most general first
    icb_industry = Column(Text, nullable=True, index=True)
    icb_super_sector = Column(Text, nullable=True, index=True)
    icb_sector = Column(Text, nullable=True, index=True)
    icb_sub_sector = Column(Text, nullable=True, index=True)

    # Core Score factors (level names, see scoring_config.yaml)
    revenue_size_category = Column(Text, nullable=True)
    revenue_model = Column(Text, nullable=True)
    gross_margin_proxy = Column(Text, nullable=True)
    labor_intensity = Column(Text, nullable=True)
    asset_intensity = Column(Text, nullable=True)
    owner_involvement = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
