import json
import os
import hashlib
import sys
import logging
import jsonschema
import psutil  # Required for worker-count awareness
from datetime import datetime
from typing import Dict, Any, Optional, List

from utils.exceptions import ConfigurationError, InvalidFoldCount
from utils import constants

class ConfigurationManager:
    """
    Manages system configuration loading, validation, and access.
    Acts as the single source of truth for seeds, fold counts and model specs,
    which are then threaded explicitly through every engine.
    """

    DEFAULT_SEED = 42
    DEFAULT_FOLDS = 10

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = "config/schema.json"):
        """
        Initialize the ConfigurationManager.

        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition.
        """
        self.config_path = config_path
        self.schema_path = schema_path
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.logger = logging.getLogger("config_manager")

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Main entry point. Loads config, validates schema/logic/resources,
        applies defaults, and propagates seeds.

        Returns:
            Dict[str, Any]: The fully validated and hydrated configuration.

        Raises:
            ConfigurationError: If any validation step fails.
        """
        # 1. Load Files
        self.config = self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)

        # 2. Structural Validation (Schema)
        self._validate_schema()

        # 3. Defaults, then Logical Validation (Business Rules & Bounds)
        self._apply_defaults()
        self._validate_logic()

        # 4. Resource Validation (Worker pool vs available cores)
        self._validate_resources()

        # 5. Internal Seed Propagation (Reproducibility)
        self._propagate_seeds()

        return self.config

    def generate_run_id(self) -> str:
        """
        Generate or retrieve a unique run identifier based on timestamp.
        """
        if not self.run_id:
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def config_hash(self) -> str:
        """SHA256 of the canonical config, logged for run identification."""
        config_str = json.dumps(self.config, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()

    def run_metadata(self) -> Dict[str, Any]:
        """Environment details for the run header log line."""
        return {
            'run_id': self.generate_run_id(),
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version.split()[0],
            'platform': sys.platform,
            'config_hash': self.config_hash(),
            'working_directory': os.getcwd()
        }

    def _load_json(self, path: str) -> Dict[str, Any]:
        """Safely load a JSON file."""
        if not os.path.exists(path):
            raise ConfigurationError(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self) -> None:
        """Validate config structure against JSON schema."""
        try:
            jsonschema.validate(instance=self.config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Schema validation failed: {e.message}")

    def _apply_defaults(self) -> None:
        data = self.config.setdefault('data', {})
        data.setdefault('target_column', constants.DEFAULT_TARGET_COLUMN)
        data.setdefault('separator', ';')
        data.setdefault('drop_duplicates', False)

        cv = self.config.setdefault('cv', {})
        cv.setdefault('k', self.DEFAULT_FOLDS)
        cv.setdefault('seed', self.DEFAULT_SEED)
        cv.setdefault('stratify', False)

        fs = self.config.setdefault('feature_selection', {})
        fs.setdefault('enabled', False)
        fs.setdefault('min_features', 1)

        self.config.setdefault('models', [])
        self.config.setdefault('execution', {}).setdefault('n_jobs', 1)
        self.config.setdefault('logging', {})

    def _validate_logic(self) -> None:
        """Comprehensive logical validation."""
        # --- Data Section ---
        data = self.config['data']
        for key in ['red_path', 'white_path', 'target_column']:
            if not data.get(key):
                raise ConfigurationError(f"Data '{key}' must be specified and non-empty.")

        # --- CV Section ---
        cv = self.config['cv']
        if cv['k'] < 2:
            raise InvalidFoldCount(f"cv.k must be >= 2, got {cv['k']}.")
        if cv['seed'] < 0:
            raise ConfigurationError("cv.seed must be non-negative.")

        # --- Models Section ---
        models = self.config['models']
        if not models:
            raise ConfigurationError("At least one model spec must be configured.")
        names = self._validate_model_specs(models)

        # --- Feature Selection Section ---
        fs = self.config['feature_selection']
        if fs['enabled']:
            min_feat = fs['min_features']
            if min_feat < 1:
                raise ConfigurationError(f"min_features must be >= 1, got {min_feat}.")
            ranking = fs.get('ranking_model')
            if not ranking:
                raise ConfigurationError("feature_selection.ranking_model must name a configured model.")
            if ranking not in names:
                raise ConfigurationError(
                    f"feature_selection.ranking_model '{ranking}' is not among configured models: {names}"
                )

        # Execution validation
        n_jobs = self.config['execution']['n_jobs']
        if n_jobs == 0 or n_jobs < -1:
            raise ConfigurationError(f"execution.n_jobs must be -1 (all cores) or a positive integer, got {n_jobs}")

    def _validate_model_specs(self, models: List[Dict[str, Any]]) -> List[str]:
        names = []
        for entry in models:
            family = entry.get('family')
            task = entry.get('task', constants.REGRESSION)
            if family not in constants.MODEL_FAMILIES:
                raise ConfigurationError(
                    f"Unknown model family: {family}. Available: {constants.MODEL_FAMILIES}"
                )
            if task not in constants.TASKS:
                raise ConfigurationError(f"Unknown task '{task}' for model family {family}.")
            if family == constants.REGRESSION_SPLINE and task == constants.CLASSIFICATION:
                raise ConfigurationError("regression-spline supports the regression task only.")
            name = entry.get('name') or f"{family}/{task}"
            if name in names:
                raise ConfigurationError(f"Duplicate model name: {name}")
            names.append(name)
        return names

    def _validate_resources(self) -> None:
        """
        Compare the configured worker pool against the physical core count.
        Oversubscription is allowed but logged, as fold tasks are CPU bound.
        """
        n_jobs = self.config['execution']['n_jobs']
        cores = psutil.cpu_count(logical=True) or 1

        if n_jobs > cores:
            logging.warning(
                f"Configured n_jobs ({n_jobs}) exceeds available CPU cores ({cores}). "
                "Fold tasks will oversubscribe the CPU."
            )
        effective = cores if n_jobs == -1 else min(n_jobs, cores)
        self.config['execution']['effective_workers'] = effective
        logging.info(f"Worker pool validated: n_jobs={n_jobs} (effective workers: {effective})")

    def _propagate_seeds(self) -> None:
        """
        Propagate master seed to internal components to ensure full pipeline reproducibility.
        Uses large, non-overlapping offsets to avoid correlation between components.
        """
        master_seed = self.config['cv']['seed']

        self.config['_internal_seeds'] = {
            'split': master_seed,
            'model': master_seed + 2000,
            'nn': master_seed + 3000,
        }
        logging.debug(f"Seeds propagated from master ({master_seed}): {self.config['_internal_seeds']}")
