"""
ValuationSnapshot model — immutable point-in-time valuation record.

Rows are append-only: a recalculation always inserts a new snapshot, and
any attempt to flush changes to a persisted snapshot raises.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, Text, Boolean, DateTime, Numeric, ForeignKey, Index, event

from bri_engine.database import Base


class SnapshotImmutableError(Exception):
    """Raised when code tries to update a persisted valuation snapshot."""
    def __init__(self, snapshot_id):
        self.snapshot_id = snapshot_id
        super().__init__(f"Valuation snapshot {snapshot_id} is immutable")


class ValuationSnapshot(Base):
    __tablename__ = 'valuation_snapshots'
    __table_args__ = (
        Index('ix_valuation_snapshots_company_created', 'company_id', 'created_at'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey('companies.id'), nullable=False)

    # Inputs
    adjusted_ebitda = Column(Numeric(16, 2), nullable=False)
    ebitda_is_estimated = Column(Boolean, nullable=False, default=False)
    # Audit reference only; multiple rows can be deleted or replaced later
    industry_multiple_id = Column(Integer, nullable=True)
    industry_multiple_low = Column(Numeric(8, 4), nullable=False)
    industry_multiple_high = Column(Numeric(8, 4), nullable=False)
    multiple_match_level = Column(Text, nullable=True)

    # Scores (category + BRI on a 0–1 scale; NULL = not assessed)
    core_score = Column(Numeric(6, 2), nullable=False)
    bri_score = Column(Numeric(6, 4), nullable=False)
    financial_score = Column(Numeric(6, 4), nullable=True)
    transferability_score = Column(Numeric(6, 4), nullable=True)
    operational_score = Column(Numeric(6, 4), nullable=True)
    market_score = Column(Numeric(6, 4), nullable=True)
    legal_tax_score = Column(Numeric(6, 4), nullable=True)
    personal_score = Column(Numeric(6, 4), nullable=True)

    # Derived
    alpha_constant = Column(Numeric(6, 4), nullable=False)
    discount_fraction = Column(Numeric(8, 6), nullable=False)
    base_multiple = Column(Numeric(8, 4), nullable=False)
    final_multiple = Column(Numeric(8, 4), nullable=False)
    current_value = Column(Numeric(16, 2), nullable=False)
    potential_value = Column(Numeric(16, 2), nullable=False)
    value_gap = Column(Numeric(16, 2), nullable=False)

    # Audit
    snapshot_reason = Column(Text, nullable=True)
    created_by_user_id = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def category_scores(self):
        """Return {category: score or None} in BRI_CATEGORIES order."""
        return {
            category: getattr(self, column)
            for category, column in CATEGORY_SCORE_COLUMNS.items()
        }


# BRI category → snapshot column
CATEGORY_SCORE_COLUMNS = {
    'FINANCIAL':       'financial_score',
    'TRANSFERABILITY': 'transferability_score',
    'OPERATIONAL':     'operational_score',
    'MARKET':          'market_score',
    'LEGAL_TAX':       'legal_tax_score',
    'PERSONAL':        'personal_score',
}


@event.listens_for(ValuationSnapshot, 'before_update')
def _refuse_snapshot_update(mapper, connection, target):
    raise SnapshotImmutableError(target.id)
