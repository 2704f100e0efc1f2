"""
Centralized configuration — env vars, category vocabulary, status values.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Scoring config ────────────────────────────────────────────────────────────
# Empty → bundled bri_engine/scoring/scoring_config.yaml
SCORING_CONFIG_PATH = os.getenv('SCORING_CONFIG_PATH', '')

# ── Recalculation ─────────────────────────────────────────────────────────────
BATCH_MAX_WORKERS = int(os.getenv('BATCH_MAX_WORKERS', '4'))
RECALC_LOCK_TIMEOUT = int(os.getenv('RECALC_LOCK_TIMEOUT', '60'))   # seconds a lock may be held
RECALC_LOCK_WAIT = int(os.getenv('RECALC_LOCK_WAIT', '30'))         # seconds to wait for a lock
BATCH_JOB_TIMEOUT = int(os.getenv('BATCH_JOB_TIMEOUT', '1800'))     # RQ job timeout

# ── BRI categories (display order) ────────────────────────────────────────────
BRI_CATEGORIES = [
    'FINANCIAL',
    'TRANSFERABILITY',
    'OPERATIONAL',
    'MARKET',
    'LEGAL_TAX',
    'PERSONAL',
]

CATEGORY_LABELS = {
    'FINANCIAL':       'Financial',
    'TRANSFERABILITY': 'Transferability',
    'OPERATIONAL':     'Operational',
    'MARKET':          'Market',
    'LEGAL_TAX':       'Legal/Tax',
    'PERSONAL':        'Personal',
}

# ── Task status values ────────────────────────────────────────────────────────
TASK_STATUSES = [
    'PENDING',
    'IN_PROGRESS',
    'COMPLETED',
    'DEFERRED',
    'BLOCKED',
    'CANCELLED',
]

# Statuses that still compete for priority
OPEN_TASK_STATUSES = ('PENDING', 'IN_PROGRESS', 'DEFERRED', 'BLOCKED')

# ── Recalculation failure causes ──────────────────────────────────────────────
NO_MULTIPLE = 'NO_MULTIPLE'
NO_FINANCIALS = 'NO_FINANCIALS'
NO_ASSESSMENT = 'NO_ASSESSMENT'
NOT_FOUND = 'NOT_FOUND'
UNEXPECTED = 'UNEXPECTED'
INVALID_CONFIG = 'INVALID_CONFIG'

# ── Multiple types ────────────────────────────────────────────────────────────
MULTIPLE_TYPES = ['EBITDA', 'Revenue', 'Both']

# ── Signal severities ─────────────────────────────────────────────────────────
SEVERITY_INFO = 'INFO'
SEVERITY_HIGH = 'HIGH'
SEVERITY_CRITICAL = 'CRITICAL'
