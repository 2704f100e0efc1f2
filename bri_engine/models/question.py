"""
Assessment question + option models.

Questions are immutable once created. Retired questions keep isActive=False
and stay referenced by historical responses.
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, Text, Boolean, DateTime, Numeric, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship

from bri_engine.database import Base


class Question(Base):
    __tablename__ = 'questions'
    __table_args__ = (
        CheckConstraint('max_impact_points > 0', name='ck_question_points_positive'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    bri_category = Column(Text, nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    max_impact_points = Column(Numeric(8, 2), nullable=False)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.now)

    options = relationship(
        'QuestionOption',
        back_populates='question',
        order_by='QuestionOption.display_order',
    )


class QuestionOption(Base):
    __tablename__ = 'question_options'
    __table_args__ = (
        CheckConstraint('score_value >= 0 AND score_value <= 1', name='ck_option_score_range'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey('questions.id'), nullable=False, index=True)
    option_text = Column(Text, nullable=False)
    score_value = Column(Numeric(5, 4), nullable=False)  # 1 = best answer
    display_order = Column(Integer, default=0)

    question = relationship('Question', back_populates='options')
