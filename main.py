#!/usr/bin/env python
"""
Wine Quality CV Pipeline - Main Entry Point
Compares model families on the merged red/white wine data with k-fold
cross-validation, then optionally runs recursive feature elimination.
"""
import sys
import logging
import argparse
import traceback
import random
from pathlib import Path

import pandas as pd
import numpy as np

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

# Core Infrastructure
from modules.config_manager import ConfigurationManager
from modules.logging_config import LoggingConfigurator
from modules.data_manager import DataManager
from modules.split_engine import SplitEngine
from modules.cv_runner import CrossValidationRunner
from modules.evaluation_engine import MetricAggregator, compare_models
from modules.model_factory import ModelSpec
from modules.rfe import FeatureSelector
from utils import constants
from utils.exceptions import WineMLException


def parse_arguments():
    """
    Parse command-line arguments for configurable pipeline execution.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Wine Quality CV Pipeline - Model Comparison & Feature Elimination",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/config.json",
        help="Path to the configuration JSON file"
    )

    parser.add_argument(
        "--schema",
        type=str,
        default="config/schema.json",
        help="Path to the configuration JSON schema"
    )

    parser.add_argument(
        "--skip-rfe",
        action="store_true",
        help="Skip the feature elimination phase and only run the model comparison"
    )

    parser.add_argument(
        "--n-jobs",
        type=int,
        default=None,
        help="Override execution.n_jobs from the configuration"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and setup without running the pipeline"
    )

    return parser.parse_args()


def setup_global_determinism(config: dict, logger: logging.Logger):
    """
    Seed the global generators. Components draw their own seeds from
    config['_internal_seeds']; this only covers stray global draws.
    """
    seed = config.get('cv', {}).get('seed', 42)
    logger.info(f"Setting Global Deterministic Seed: {seed}")

    random.seed(seed)
    np.random.seed(seed)


def log_table(logger: logging.Logger, title: str, df: pd.DataFrame):
    logger.info(f"{title}\n{df.to_string(float_format=lambda v: f'{v:.4f}')}")


def log_pairwise_comparisons(logger: logging.Logger, results, specs):
    """Paired fold-level test of every regression model against the first one."""
    regression_ids = [s.name for s in specs if s.task == constants.REGRESSION]
    if len(regression_ids) < 2:
        return
    baseline = regression_ids[0]
    for candidate in regression_ids[1:]:
        outcome = compare_models(results, baseline, candidate, metric=constants.RMSE)
        logger.info(
            f"  {candidate} vs {baseline}: mean RMSE diff={outcome['mean_difference']:.4f}, "
            f"t-test p={outcome['p_value_ttest']:.4g}, Wilcoxon p={outcome['p_value_wilcoxon']:.4g}, "
            f"d={outcome['cohens_d']:.3f}"
        )


def main():
    """
    Main pipeline orchestration function.

    Returns:
        int: Exit code (0 for success, 1 for errors, 130 on interrupt)
    """
    logger = None

    try:
        args = parse_arguments()

        print("\n" + "=" * 80)
        print("    WINE QUALITY CROSS-VALIDATION PIPELINE")
        print("=" * 80 + "\n")

        # ---------------------------------------------------------------
        # PHASE 0: INITIALIZATION & VALIDATION
        # ---------------------------------------------------------------
        config_manager = ConfigurationManager(config_path=args.config, schema_path=args.schema)
        config = config_manager.load_and_validate()

        if args.verbose:
            config['logging']['level'] = 'DEBUG'
        if args.n_jobs is not None:
            if args.n_jobs == 0 or args.n_jobs < -1:
                raise WineMLException(f"--n-jobs must be -1 or a positive integer, got {args.n_jobs}")
            config['execution']['n_jobs'] = args.n_jobs

        logging_configurator = LoggingConfigurator(config)
        logging_configurator.setup()
        logger = logging_configurator.get_logger('pipeline')

        metadata = config_manager.run_metadata()
        logger.info("Pipeline initialization started")
        logger.info(f"Configuration loaded from: {args.config} (hash {metadata['config_hash'][:12]})")
        logger.info(f"Run ID: {metadata['run_id']} | Python {metadata['python_version']} on {metadata['platform']}")

        setup_global_determinism(config, logger)

        if args.dry_run:
            logger.info("Dry run mode: validation complete. Exiting without running pipeline.")
            print("\n[SUCCESS] Configuration validated successfully.")
            return 0

        # ---------------------------------------------------------------
        # PHASE 1: DATA INGESTION & FOLD ASSIGNMENT
        # ---------------------------------------------------------------
        logger.info("\n" + "=" * 60)
        logger.info("PHASE 1: DATA INGESTION & FOLD ASSIGNMENT")
        logger.info("=" * 60)

        data_manager = DataManager(config, logger)
        dataset = data_manager.execute()

        split_engine = SplitEngine(config, logger)
        assignment = split_engine.execute(dataset)

        # ---------------------------------------------------------------
        # PHASE 2: MODEL COMPARISON
        # ---------------------------------------------------------------
        logger.info("\n" + "=" * 60)
        logger.info("PHASE 2: CROSS-VALIDATED MODEL COMPARISON")
        logger.info("=" * 60)

        specs = [ModelSpec.from_dict(entry) for entry in config['models']]
        runner = CrossValidationRunner(config, logger)
        results = runner.run(dataset, dataset.target, assignment, specs)

        log_table(logger, "Per-fold results:", results.results_table().drop(columns=['confusion_ref']))
        summary = MetricAggregator(config, logger).execute(results)
        log_table(logger, "Per-model summary:", summary)
        log_pairwise_comparisons(logger, results, specs)

        if results.status == constants.RUN_FAILED:
            raise WineMLException("Every (fold, model) pair failed; see the per-fold errors above.")

        # ---------------------------------------------------------------
        # PHASE 3: RECURSIVE FEATURE ELIMINATION
        # ---------------------------------------------------------------
        if args.skip_rfe:
            logger.info("\n" + "=" * 60)
            logger.info("PHASE 3: RFE SKIPPED (--skip-rfe flag set)")
            logger.info("=" * 60)
        elif not config['feature_selection'].get('enabled', False):
            logger.info("\n" + "=" * 60)
            logger.info("PHASE 3: RFE DISABLED (config: feature_selection.enabled = false)")
            logger.info("=" * 60)
        else:
            logger.info("\n" + "=" * 60)
            logger.info("PHASE 3: RECURSIVE FEATURE ELIMINATION")
            logger.info("=" * 60)

            selector = FeatureSelector(config, logger, runner=runner)
            rfe_result = selector.execute(dataset, assignment)

            log_table(logger, "Elimination steps:", rfe_result.history_frame())
            log_table(logger, "Feature ranking:", rfe_result.ranking.table)
            logger.info(
                f"Best subset ({rfe_result.metric_name}={rfe_result.best_metric:.4f}): "
                f"{rfe_result.best_features}"
            )

        # ---------------------------------------------------------------
        # COMPLETION
        # ---------------------------------------------------------------
        logger.info("\n" + "-" * 60)
        logger.info(f"PIPELINE COMPLETED (cross-validation status: {results.status})")
        logger.info("-" * 60 + "\n")

        print("\n[SUCCESS] Pipeline completed.")
        return 0

    except WineMLException as e:
        msg = f"Pipeline Error: {str(e)}"
        print(f"\n[ERROR] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1

    except KeyboardInterrupt:
        print("\n[INTERRUPTED] Pipeline interrupted by user.")
        if logger:
            logger.warning("Pipeline interrupted by user (Ctrl+C)")
        return 130

    except Exception as e:
        msg = f"Unexpected Error: {str(e)}"
        print(f"\n[CRITICAL] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
