"""
Coverage strategy registry and factory (composition-based)
"""

# Registry of available strategies
_COVERAGE_STRATEGIES = {}

def register_coverage_strategy(name: str, strategy_factory):
    _COVERAGE_STRATEGIES[name] = strategy_factory

def get_coverage_strategy(name: str, config: object):
    """Get coverage strategy by name - passes config to factory"""
    if name not in _COVERAGE_STRATEGIES:
        raise ValueError(f"Unknown coverage strategy: {name}")
    return _COVERAGE_STRATEGIES[name](config)

def list_available_strategies():
    """List all available strategies"""
    return list(_COVERAGE_STRATEGIES.keys())

# Auto-register strategies using factory functions
from .coverage.snake import create_snake_coverage_strategy
from .coverage.random import create_random_coverage_strategy
from .coverage.inside_out import create_inside_out_coverage_strategy
from .coverage.min_time import create_min_time_coverage_strategy

register_coverage_strategy('snake', create_snake_coverage_strategy)
register_coverage_strategy('random', create_random_coverage_strategy)
register_coverage_strategy('inside_out', create_inside_out_coverage_strategy)
register_coverage_strategy('min_time', create_min_time_coverage_strategy)
