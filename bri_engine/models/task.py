"""
Task + TaskTemplate models.

A Task may prove that the company now qualifies for a better answer on a
linked question (the upgrade pair). TaskTemplate is the static next-tier
mapping used to unlock follow-up tasks once an answer has been upgraded.
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, Text, DateTime, Numeric, ForeignKey, UniqueConstraint,
)

from bri_engine.database import Base


class Task(Base):
    __tablename__ = 'tasks'

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey('companies.id'), nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, default='')
    bri_category = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default='PENDING')
    raw_impact = Column(Numeric(16, 2), nullable=False, default=0)      # fixed dollar value
    normalized_value = Column(Numeric(8, 6), nullable=False, default=0)  # relative priority
    linked_question_id = Column(Integer, ForeignKey('questions.id'), nullable=True)
    upgrades_from_option_id = Column(Integer, ForeignKey('question_options.id'), nullable=True)
    upgrades_to_option_id = Column(Integer, ForeignKey('question_options.id'), nullable=True)
    template_id = Column(Integer, ForeignKey('task_templates.id'), nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    completed_at = Column(DateTime, nullable=True)


class TaskTemplate(Base):
    __tablename__ = 'task_templates'
    __table_args__ = (
        UniqueConstraint(
            'question_id', 'upgrades_from_option_id', 'upgrades_to_option_id',
            name='uq_task_template_upgrade',
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey('questions.id'), nullable=False, index=True)
    upgrades_from_option_id = Column(Integer, ForeignKey('question_options.id'), nullable=False)
    upgrades_to_option_id = Column(Integer, ForeignKey('question_options.id'), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, default='')
    bri_category = Column(Text, nullable=True)
    raw_impact = Column(Numeric(16, 2), nullable=False, default=0)
