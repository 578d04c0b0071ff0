"""
Configuration for the medreminder engine
"""

import os
import logging

# Engine configuration
ENGINE_CONFIG = {
    'timezone': os.getenv('MEDREMINDER_TZ', 'America/Chicago'),
    # 0 = Monday .. 6 = Sunday, same numbering as date.weekday()
    'week_start': int(os.getenv('MEDREMINDER_WEEK_START', '0')) % 7,
}

# Chart configuration
CHART_CONFIG = {
    'day_axis_floor': 5,
    'month_axis_floor': 30,
    'day_label_format': '%a',
    'month_label_format': '%b',
}

# Persistence boundary
PARSER_CONFIG = {
    # Medication dates were stored as dd/MM/yyyy before the move to ISO text
    'legacy_date_formats': ['%d/%m/%Y'],
    'list_separator': ',',
}

# Development configuration
DEV_CONFIG = {
    'log_level': 'DEBUG',
}

# Production configuration
PROD_CONFIG = {
    'log_level': 'WARNING',
}

# Get current environment
ENVIRONMENT = os.getenv('ENVIRONMENT', 'development').lower()

if ENVIRONMENT == 'production':
    CURRENT_CONFIG = {**ENGINE_CONFIG, **PROD_CONFIG}
else:
    CURRENT_CONFIG = {**ENGINE_CONFIG, **DEV_CONFIG}


def configure_logging(level=None):
    """Set up root logging for scripts that embed the engine."""
    level = getattr(logging, str(level or CURRENT_CONFIG['log_level']).upper(), logging.INFO)
    logging.getLogger('medreminder').setLevel(level)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
