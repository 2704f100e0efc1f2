"""
AssessmentResponse model — a company's answer to one question.

selected_option_id is what the user picked. effective_option_id is what
scoring uses; it starts equal to the selection and may only move to a
better-scoring option through a completed upgrade task.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from bri_engine.database import Base


class AssessmentResponse(Base):
    __tablename__ = 'assessment_responses'
    __table_args__ = (
        Index('ix_assessment_responses_company_question', 'company_id', 'question_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey('companies.id'), nullable=False)
    question_id = Column(Integer, ForeignKey('questions.id'), nullable=False)
    selected_option_id = Column(Integer, ForeignKey('question_options.id'), nullable=False)
    effective_option_id = Column(Integer, ForeignKey('question_options.id'), nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    question = relationship('Question')
    selected_option = relationship('QuestionOption', foreign_keys=[selected_option_id])
    effective_option = relationship('QuestionOption', foreign_keys=[effective_option_id])

    @property
    def scoring_option(self):
        """Option used for scoring: the effective one, else the selection."""
        return self.effective_option or self.selected_option
