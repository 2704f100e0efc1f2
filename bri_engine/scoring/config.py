"""
Scoring configuration — YAML with hardcoded fallback, validated once at load.

The loaded config is an immutable ScoringConfig that callers pass explicitly
into the calculators. Validation failures raise InvalidConfigError, which is
fatal at startup and never raised during a calculation.
"""
import logging
import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from bri_engine.config import BRI_CATEGORIES, SCORING_CONFIG_PATH

logger = logging.getLogger('scoring.config')

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'scoring_config.yaml')

CORE_FACTORS = (
    'revenue_size_category',
    'revenue_model',
    'gross_margin_proxy',
    'labor_intensity',
    'asset_intensity',
    'owner_involvement',
)

ALPHA_MIN = Decimal('1.3')
ALPHA_MAX = Decimal('1.6')


class InvalidConfigError(Exception):
    """Raised when the scoring config is inconsistent (INVALID_CONFIG)."""
    cause = 'INVALID_CONFIG'


@dataclass(frozen=True)
class DefaultMultiple:
    icb_industry: str
    icb_super_sector: str
    icb_sector: str
    icb_sub_sector: str
    ebitda_low: Decimal
    ebitda_high: Decimal
    revenue_low: Decimal
    revenue_high: Decimal


@dataclass(frozen=True)
class DriftThresholds:
    high: Decimal
    critical: Decimal
    stability: Decimal


@dataclass(frozen=True)
class ScoringConfig:
    version: str
    alpha: Decimal
    category_weights: Mapping[str, Decimal]
    unmonetized_categories: frozenset
    core_factor_weights: Mapping[str, Decimal]
    core_factor_levels: Mapping[str, Mapping[str, Decimal]]
    core_factor_default: Decimal
    revenue_size_buckets: Tuple[Tuple[Optional[Decimal], str], ...]
    fcf_to_ebitda_ratio: Decimal
    drift: DriftThresholds
    default_multiples: Tuple[DefaultMultiple, ...]
    default_multiples_effective_date: date

    def factor_score(self, factor: str, level: Optional[str]) -> Decimal:
        """0–1 score for one Core Score factor level (default when unknown)."""
        if level is None:
            return self.core_factor_default
        return self.core_factor_levels.get(factor, {}).get(level, self.core_factor_default)

    def revenue_size_category_for(self, annual_revenue) -> Optional[str]:
        """Bucket an annual revenue figure into a revenue_size_category level."""
        if annual_revenue is None:
            return None
        revenue = Decimal(str(annual_revenue))
        for below, level in self.revenue_size_buckets:
            if below is None or revenue < below:
                return level
        return None

    @property
    def monetized_categories(self) -> List[str]:
        return [c for c in BRI_CATEGORIES if c not in self.unmonetized_categories]


# ── Loading ──────────────────────────────────────────────────────────────────

_scoring_config = None


def _default_config():
    """Hardcoded fallback if YAML is missing."""
    return {
        'version': 'default',
        'alpha': 1.4,
        'category_weights': {
            'FINANCIAL': 0.25,
            'TRANSFERABILITY': 0.20,
            'OPERATIONAL': 0.20,
            'MARKET': 0.15,
            'LEGAL_TAX': 0.10,
            'PERSONAL': 0.10,
        },
        'unmonetized_categories': ['PERSONAL'],
        'core_factor_weights': {
            'revenue_size_category': 0.10,
            'revenue_model': 0.20,
            'gross_margin_proxy': 0.20,
            'labor_intensity': 0.15,
            'asset_intensity': 0.15,
            'owner_involvement': 0.20,
        },
        'core_factor_default': 0.5,
        'core_factor_levels': {
            'revenue_size_category': {
                'UNDER_500K': 0.2,
                'FROM_500K_TO_1M': 0.4,
                'FROM_1M_TO_3M': 0.6,
                'FROM_3M_TO_10M': 0.8,
                'FROM_10M_TO_25M': 0.9,
                'OVER_25M': 1.0,
            },
            'revenue_model': {
                'PROJECT_BASED': 0.25,
                'TRANSACTIONAL': 0.5,
                'RECURRING_CONTRACTS': 0.75,
                'SUBSCRIPTION_SAAS': 1.0,
            },
            'gross_margin_proxy': {'LOW': 0.25, 'MODERATE': 0.5, 'GOOD': 0.75, 'EXCELLENT': 1.0},
            'labor_intensity': {'VERY_HIGH': 0.25, 'HIGH': 0.5, 'MODERATE': 0.75, 'LOW': 1.0},
            'asset_intensity': {'ASSET_HEAVY': 0.33, 'MODERATE': 0.67, 'ASSET_LIGHT': 1.0},
            'owner_involvement': {
                'CRITICAL': 0.0,
                'HIGH': 0.25,
                'MODERATE': 0.5,
                'LOW': 0.75,
                'MINIMAL': 1.0,
            },
        },
        'revenue_size_buckets': [
            {'below': 500000, 'level': 'UNDER_500K'},
            {'below': 1000000, 'level': 'FROM_500K_TO_1M'},
            {'below': 3000000, 'level': 'FROM_1M_TO_3M'},
            {'below': 10000000, 'level': 'FROM_3M_TO_10M'},
            {'below': 25000000, 'level': 'FROM_10M_TO_25M'},
            {'below': None, 'level': 'OVER_25M'},
        ],
        'fcf_to_ebitda_ratio': 0.70,
        'drift': {
            'high_threshold': 5,
            'critical_threshold': 10,
            'stability_threshold': 0.005,
        },
        'default_multiples_effective_date': date(2025, 1, 1),
        'default_multiples': [],
    }


def load_scoring_config(path: str = None) -> ScoringConfig:
    """Load + validate scoring config from YAML, with in-memory cache and hardcoded fallback.

    An explicit path always reloads. A missing file falls back to the
    built-in defaults; a malformed or inconsistent file raises InvalidConfigError.
    """
    global _scoring_config
    if path is None and _scoring_config is not None:
        return _scoring_config

    config_path = path or SCORING_CONFIG_PATH or DEFAULT_CONFIG_PATH
    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
        logger.info("Scoring config loaded from %s", config_path)
    except FileNotFoundError:
        logger.warning("Scoring config not found at %s, using defaults", config_path)
        raw = _default_config()
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"Scoring config {config_path} is not valid YAML: {e}") from e

    _scoring_config = build_scoring_config(raw)
    logger.info("Scoring config version=%s validated", _scoring_config.version)
    return _scoring_config


def get_scoring_config() -> ScoringConfig:
    """Return the validated, cached scoring config (loading it on first use)."""
    return load_scoring_config()


# ── Validation ───────────────────────────────────────────────────────────────

def _decimal(value, field: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidConfigError(f"{field}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidConfigError(f"{field}: expected a number, got {value!r}") from e
    if not result.is_finite():
        raise InvalidConfigError(f"{field}: must be finite")
    return result


def _unit_interval(value, field: str) -> Decimal:
    result = _decimal(value, field)
    if not (0 <= result <= 1):
        raise InvalidConfigError(f"{field}: must be within [0, 1], got {result}")
    return result


def _weights(raw: Dict, expected_keys, field: str) -> Mapping[str, Decimal]:
    if not isinstance(raw, dict):
        raise InvalidConfigError(f"{field}: expected a mapping")
    missing = set(expected_keys) - set(raw)
    extra = set(raw) - set(expected_keys)
    if missing or extra:
        raise InvalidConfigError(
            f"{field}: missing={sorted(missing)} unknown={sorted(extra)}"
        )
    weights = {key: _unit_interval(raw[key], f"{field}.{key}") for key in expected_keys}
    total = sum(weights.values(), Decimal('0'))
    if total != 1:
        raise InvalidConfigError(f"{field}: weights must sum to exactly 1, got {total}")
    return MappingProxyType(weights)


def _default_multiples(raw_list, field: str) -> Tuple[DefaultMultiple, ...]:
    rows = []
    for i, raw in enumerate(raw_list or []):
        where = f"{field}[{i}]"
        try:
            row = DefaultMultiple(
                icb_industry=str(raw['icb_industry']),
                icb_super_sector=str(raw['icb_super_sector']),
                icb_sector=str(raw['icb_sector']),
                icb_sub_sector=str(raw['icb_sub_sector']),
                ebitda_low=_decimal(raw['ebitda_low'], f"{where}.ebitda_low"),
                ebitda_high=_decimal(raw['ebitda_high'], f"{where}.ebitda_high"),
                revenue_low=_decimal(raw['revenue_low'], f"{where}.revenue_low"),
                revenue_high=_decimal(raw['revenue_high'], f"{where}.revenue_high"),
            )
        except (KeyError, TypeError) as e:
            raise InvalidConfigError(f"{where}: missing field {e}") from e
        if row.ebitda_low < 0 or row.ebitda_low > row.ebitda_high:
            raise InvalidConfigError(f"{where}: EBITDA multiple low must be <= high")
        if row.revenue_low < 0 or row.revenue_low > row.revenue_high:
            raise InvalidConfigError(f"{where}: revenue multiple low must be <= high")
        rows.append(row)
    return tuple(rows)


def _effective_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise InvalidConfigError(f"default_multiples_effective_date: {value!r} is not a date") from e


def build_scoring_config(raw: Dict) -> ScoringConfig:
    """Validate a raw config dict and freeze it into a ScoringConfig."""
    if not isinstance(raw, dict):
        raise InvalidConfigError("Scoring config must be a mapping")

    alpha = _decimal(raw.get('alpha'), 'alpha')
    if not (ALPHA_MIN <= alpha <= ALPHA_MAX):
        raise InvalidConfigError(f"alpha must be within [{ALPHA_MIN}, {ALPHA_MAX}], got {alpha}")
    # Snapshots store alpha with 4 decimal places
    if alpha != alpha.quantize(Decimal('0.0001')):
        raise InvalidConfigError(f"alpha must have at most 4 decimal places, got {alpha}")

    category_weights = _weights(raw.get('category_weights'), BRI_CATEGORIES, 'category_weights')

    unmonetized = frozenset(raw.get('unmonetized_categories') or [])
    unknown = unmonetized - set(BRI_CATEGORIES)
    if unknown:
        raise InvalidConfigError(f"unmonetized_categories: unknown {sorted(unknown)}")

    core_weights = _weights(raw.get('core_factor_weights'), CORE_FACTORS, 'core_factor_weights')

    raw_levels = raw.get('core_factor_levels') or {}
    levels = {}
    for factor in CORE_FACTORS:
        table = raw_levels.get(factor)
        if not isinstance(table, dict) or not table:
            raise InvalidConfigError(f"core_factor_levels.{factor}: missing level table")
        levels[factor] = MappingProxyType({
            str(level): _unit_interval(score, f"core_factor_levels.{factor}.{level}")
            for level, score in table.items()
        })

    buckets = []
    for i, bucket in enumerate(raw.get('revenue_size_buckets') or []):
        below = bucket.get('below')
        level = bucket.get('level')
        if level not in levels['revenue_size_category']:
            raise InvalidConfigError(f"revenue_size_buckets[{i}]: unknown level {level!r}")
        buckets.append((None if below is None else _decimal(below, f"revenue_size_buckets[{i}].below"), level))

    fcf_ratio = _decimal(raw.get('fcf_to_ebitda_ratio', 0.70), 'fcf_to_ebitda_ratio')
    if not (0 < fcf_ratio <= 1):
        raise InvalidConfigError(f"fcf_to_ebitda_ratio must be within (0, 1], got {fcf_ratio}")

    raw_drift = raw.get('drift') or {}
    drift = DriftThresholds(
        high=_decimal(raw_drift.get('high_threshold', 5), 'drift.high_threshold'),
        critical=_decimal(raw_drift.get('critical_threshold', 10), 'drift.critical_threshold'),
        stability=_decimal(raw_drift.get('stability_threshold', 0.005), 'drift.stability_threshold'),
    )
    if drift.high <= 0 or drift.critical < drift.high or drift.stability < 0:
        raise InvalidConfigError("drift: need 0 < high_threshold <= critical_threshold and stability >= 0")

    return ScoringConfig(
        version=str(raw.get('version', '?')),
        alpha=alpha,
        category_weights=category_weights,
        unmonetized_categories=unmonetized,
        core_factor_weights=core_weights,
        core_factor_levels=MappingProxyType(levels),
        core_factor_default=_unit_interval(raw.get('core_factor_default', 0.5), 'core_factor_default'),
        revenue_size_buckets=tuple(buckets),
        fcf_to_ebitda_ratio=fcf_ratio,
        drift=drift,
        default_multiples=_default_multiples(raw.get('default_multiples'), 'default_multiples'),
        default_multiples_effective_date=_effective_date(
            raw.get('default_multiples_effective_date', date(2025, 1, 1))
        ),
    )
