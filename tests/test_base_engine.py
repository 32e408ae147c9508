import pytest
from unittest.mock import Mock
from modules.base.base_engine import BaseEngine, DEFAULT_SEED

# Concrete implementation for testing purposes
class ConcreteTestEngine(BaseEngine):
    def execute(self, *args, **kwargs):
        return "done"

@pytest.fixture
def mock_logger():
    """Provides a mock logger instance."""
    return Mock()

def test_n_jobs_from_execution_section(mock_logger):
    engine = ConcreteTestEngine({'execution': {'n_jobs': 4}}, mock_logger)
    assert engine.n_jobs == 4
    assert engine.logger is mock_logger

def test_n_jobs_defaults_to_sequential(mock_logger):
    assert ConcreteTestEngine({}, mock_logger).n_jobs == 1

def test_seed_for_uses_propagated_seeds(mock_logger):
    config = {'cv': {'seed': 7}, '_internal_seeds': {'split': 7, 'model': 2007, 'nn': 3007}}
    engine = ConcreteTestEngine(config, mock_logger)
    assert engine.seed_for('split') == 7
    assert engine.seed_for('model') == 2007
    assert engine.seed_for('nn') == 3007

def test_seed_for_falls_back_to_master_seed(mock_logger):
    engine = ConcreteTestEngine({'cv': {'seed': 11}}, mock_logger)
    assert engine.seed_for('model') == 11
    assert ConcreteTestEngine({}, mock_logger).seed_for('split') == DEFAULT_SEED

def test_base_engine_is_abstract(mock_logger):
    with pytest.raises(TypeError):
        BaseEngine({}, mock_logger)
