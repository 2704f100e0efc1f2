"""Shared test fixtures."""
from datetime import date
from decimal import Decimal
from unittest.mock import patch, MagicMock

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bri_engine import import_models
from bri_engine.config import BRI_CATEGORIES
from bri_engine.database import Base

# Modules that bind `get_session` at import time
SESSION_MODULES = [
    'bri_engine.services.snapshots',
    'bri_engine.services.upgrades',
    'bri_engine.services.batch',
    'bri_engine.services.industry_multiples',
    'bri_engine.services.drift',
    'bri_engine.services.breakdown',
]

DEFAULT_ICB = dict(
    icb_industry='Industrials',
    icb_super_sector='Industrial Goods and Services',
    icb_sector='Industrial Support Services',
    icb_sub_sector='Professional Business Support Services',
)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created.

    StaticPool keeps one shared connection so sessions opened from worker
    threads see the same database.
    """
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # SQLite only enforces foreign keys when asked to, Postgres always does
    @event.listens_for(engine, 'connect')
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    import_models()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def patch_get_session(db_engine):
    """
    Route get_session() calls inside the service modules to test sessions.

    Each call returns a new session on the shared in-memory engine so that
    close() inside production code does not destroy the test DB connection.
    Fixture data must be committed before calling a service.
    """
    TestSession = sessionmaker(bind=db_engine, expire_on_commit=False)
    patchers = [
        patch(f'{module}.get_session', side_effect=lambda: TestSession())
        for module in SESSION_MODULES
    ]
    for p in patchers:
        p.start()
    yield TestSession
    for p in reversed(patchers):
        p.stop()


@pytest.fixture(autouse=True)
def mock_redis():
    """Mock Redis client. Locks acquire immediately."""
    mock = MagicMock()
    mock.get.return_value = None
    mock.lock.return_value.acquire.return_value = True
    with patch('bri_engine.extensions.redis_client', mock):
        yield mock


@pytest.fixture
def scoring_config():
    """The bundled, validated scoring config."""
    from bri_engine.scoring.config import load_scoring_config, DEFAULT_CONFIG_PATH
    return load_scoring_config(DEFAULT_CONFIG_PATH)


# ── Factories ────────────────────────────────────────────────────────────────

@pytest.fixture
def make_company(db_session):
    from bri_engine.models.company import Company

    def _make(**overrides):
        fields = dict(name='Acme Services', **DEFAULT_ICB)
        fields.update(overrides)
        company = Company(**fields)
        db_session.add(company)
        db_session.commit()
        return company
    return _make


@pytest.fixture
def make_question(db_session):
    """Question with options scoring 0, .25, .5, .75, 1 (or the given scores)."""
    from bri_engine.models.question import Question, QuestionOption

    def _make(category='FINANCIAL', points=10, scores=('0', '0.25', '0.5', '0.75', '1'),
              is_active=True, text=None):
        question = Question(
            bri_category=category,
            question_text=text or f'{category.title()} question',
            max_impact_points=Decimal(str(points)),
            is_active=is_active,
        )
        db_session.add(question)
        db_session.flush()
        options = []
        for i, score in enumerate(scores):
            option = QuestionOption(
                question_id=question.id,
                option_text=f'Option {i}',
                score_value=Decimal(str(score)),
                display_order=i,
            )
            db_session.add(option)
            options.append(option)
        db_session.commit()
        return question, options
    return _make


@pytest.fixture
def make_response(db_session):
    from bri_engine.models.assessment_response import AssessmentResponse

    def _make(company, question, selected, effective=None):
        response = AssessmentResponse(
            company_id=company.id,
            question_id=question.id,
            selected_option_id=selected.id,
            effective_option_id=(effective or selected).id,
        )
        db_session.add(response)
        db_session.commit()
        return response
    return _make


@pytest.fixture
def make_multiple(db_session):
    from bri_engine.models.industry_multiple import IndustryMultiple

    def _make(ebitda_low='3.0', ebitda_high='6.0', revenue_low='0.5', revenue_high='1.5',
              effective_date=date(2025, 1, 1), **key):
        fields = dict(DEFAULT_ICB)
        fields.update(key)
        row = IndustryMultiple(
            effective_date=effective_date,
            ebitda_multiple_low=Decimal(ebitda_low),
            ebitda_multiple_high=Decimal(ebitda_high),
            revenue_multiple_low=Decimal(revenue_low),
            revenue_multiple_high=Decimal(revenue_high),
            **fields,
        )
        db_session.add(row)
        db_session.commit()
        return row
    return _make


@pytest.fixture
def make_financials(db_session):
    from bri_engine.models.financials import FinancialPeriod

    def _make(company, adjusted_ebitda='1000000', free_cash_flow=None, annual_revenue=None,
              period_end=date(2025, 12, 31)):
        row = FinancialPeriod(
            company_id=company.id,
            period_end=period_end,
            adjusted_ebitda=None if adjusted_ebitda is None else Decimal(adjusted_ebitda),
            free_cash_flow=None if free_cash_flow is None else Decimal(free_cash_flow),
            annual_revenue=None if annual_revenue is None else Decimal(annual_revenue),
        )
        db_session.add(row)
        db_session.commit()
        return row
    return _make


@pytest.fixture
def question_bank(make_question):
    """One 10-point question per BRI category: {category: (question, options)}."""
    return {category: make_question(category=category) for category in BRI_CATEGORIES}


@pytest.fixture
def seed_company(make_company, make_multiple, make_financials, make_response, question_bank):
    """Fully valuable company: multiple 3–6x, $1M EBITDA, every category answered.

    `option_index` picks the answer (0..4 → score 0..1) for every category.
    """
    state = {'multiple': None}

    def _seed(option_index=2, with_multiple=True, with_financials=True, answers=True, **overrides):
        if with_multiple and state['multiple'] is None:
            state['multiple'] = make_multiple()
        company = make_company(**overrides)
        if with_financials:
            make_financials(company)
        if answers:
            for question, options in question_bank.values():
                make_response(company, question, options[option_index])
        return company
    return _seed
