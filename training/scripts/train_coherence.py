"""Train the salary coherence regression model offline.

Trains on a held-out split to report quality, then trains on the full
population and saves the weights where the backend warm-starts from.

Usage:
    python training/scripts/train_coherence.py [--config training/configs/coherence.yaml]
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import yaml
from scipy.stats import spearmanr
from sklearn.metrics import mean_absolute_error, r2_score
from sklearn.model_selection import train_test_split

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "backend"))


def load_config(path: str) -> dict:
    with open(path) as f:
        return yaml.safe_load(f)


def main(config_path: str = "training/configs/coherence.yaml") -> None:
    from services.pipeline.regression_model import TrainingConfig, train_snapshot
    from services.pipeline.similarity_engine import coherence_score
    from services.pipeline.snapshot_store import SnapshotStore
    from services.population import records_from_frame

    config = load_config(config_path)
    logger.info("Training coherence model with config: %s", config["model"]["name"])

    # --- 1. Load data ---
    records = records_from_frame(pd.read_csv(config["data"]["population_csv"]))
    logger.info("Loaded %d records.", len(records))

    t = config["training"]
    train_config = TrainingConfig(
        min_records=t["min_records"],
        hidden_units=tuple(config["model"]["hidden_units"]),
        learning_rate=t["learning_rate"],
        batch_size=t["batch_size"],
        max_epochs=t["max_epochs"],
        patience=t["patience"],
        min_delta=t["min_delta"],
        validation_split=t["validation_split"],
        restore_best_weights=t["restore_best_weights"],
        seed=config["data"]["seed"],
    )

    if len(records) < train_config.min_records:
        logger.error("Need at least %d records, got %d -- aborting.", train_config.min_records, len(records))
        return

    # --- 2. Evaluate on a held-out split ---
    train_records, test_records = train_test_split(
        records,
        test_size=config["data"]["test_size"],
        random_state=config["data"]["seed"],
    )
    snapshot = train_snapshot(train_records, train_config)
    y_true = np.array([r.compensation for r in test_records])
    y_pred = snapshot.predict_many([(r.location, r.total_xp) for r in test_records])

    mae = mean_absolute_error(y_true, y_pred)
    r2 = r2_score(y_true, y_pred)
    rho, pval = spearmanr(y_true, y_pred)
    coherence = [coherence_score(a, p) for a, p in zip(y_true, y_pred)]
    mae_ratio = mae / max(1.0, float(np.mean(y_true)))

    logger.info("Test MAE: %.0f (%.1f%% of mean)", mae, mae_ratio * 100)
    logger.info("Test R2: %.4f", r2)
    logger.info("Spearman correlation: %.4f (p=%.6f)", rho, pval)
    logger.info("Mean coherence on held-out records: %.3f", float(np.mean(coherence)))

    targets = config["evaluation"]["targets"]
    if mae_ratio <= targets["mae_ratio"]:
        logger.info("MAE ratio target %.2f ACHIEVED", targets["mae_ratio"])
    else:
        logger.warning("MAE ratio target %.2f NOT MET (got %.4f)", targets["mae_ratio"], mae_ratio)
    if rho >= targets["spearman"]:
        logger.info("Spearman target %.2f ACHIEVED", targets["spearman"])
    else:
        logger.warning("Spearman target %.2f NOT MET (got %.4f)", targets["spearman"], rho)

    # --- 3. Train on the full population and save ---
    final = train_snapshot(records, train_config)
    store = SnapshotStore(config["output"]["model_dir"])
    if not store.save(final):
        logger.error("Model could not be saved.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Train salary coherence model")
    parser.add_argument("--config", default="training/configs/coherence.yaml")
    args = parser.parse_args()
    main(args.config)
