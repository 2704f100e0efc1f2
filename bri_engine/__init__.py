"""
BRI valuation & readiness scoring engine.

init_engine() is the startup hook: configures logging, validates the scoring
config (fail fast on INVALID_CONFIG) and registers models on Base.metadata.
"""
import importlib
import logging

MODEL_MODULES = [
    'bri_engine.models.company',
    'bri_engine.models.question',
    'bri_engine.models.assessment_response',
    'bri_engine.models.task',
    'bri_engine.models.industry_multiple',
    'bri_engine.models.financials',
    'bri_engine.models.valuation_snapshot',
    'bri_engine.models.drift_report',
    'bri_engine.models.signal',
]


def import_models():
    """Import models so Base.metadata knows about them (required for SQLAlchemy).

    Schema is managed by Alembic — no create_all() here.
    """
    for name in MODEL_MODULES:
        importlib.import_module(name)


def init_engine(config_path=None):
    """Configure logging and load the scoring config. Returns the config.

    Raises InvalidConfigError when the scoring config is inconsistent, so a
    misconfigured deployment never serves a recalculation.
    """
    from bri_engine.logging_config import configure_logging
    from bri_engine.scoring.config import load_scoring_config

    configure_logging()
    import_models()

    config = load_scoring_config(config_path)
    logging.getLogger('bri_engine').info(
        "Engine initialized (scoring config version=%s, alpha=%s)",
        config.version, config.alpha,
    )
    return config
