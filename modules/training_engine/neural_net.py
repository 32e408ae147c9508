"""
Feed-forward neural network adapter (PyTorch).

Small MLP (Linear -> ReLU -> Dropout blocks) trained with Adam on minibatches.
A seeded slice of the training fold is held back for validation; training
stops once validation loss has not improved for `patience` epochs and the
best-seen weights are restored.
"""
import copy
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
import torch
import torch.nn as nn
from torch.utils.data import DataLoader, TensorDataset

from modules.model_factory import ModelSpec
from modules.training_engine.model_adapter import ModelAdapter, TrainedModel

DEFAULT_PARAMS = {
    'hidden_layer_sizes': [32],
    'dropout': 0.0,
    'epochs': 100,
    'batch_size': 32,
    'patience': 10,
    'learning_rate': 1e-3,
    'weight_decay': 0.0,
    'validation_fraction': 0.2,
}


class MLP(nn.Module):
    """Multi-layer perceptron for tabular inputs."""
    def __init__(self, input_size: int, hidden_sizes: Sequence[int], output_size: int, dropout: float = 0.0):
        super().__init__()
        layers = []
        prev_size = input_size
        for hidden_size in hidden_sizes:
            layers.append(nn.Linear(prev_size, hidden_size))
            layers.append(nn.ReLU())
            if dropout > 0:
                layers.append(nn.Dropout(dropout))
            prev_size = hidden_size
        layers.append(nn.Linear(prev_size, output_size))
        self.network = nn.Sequential(*layers)

    def forward(self, x):
        return self.network(x)


@dataclass
class TrainingHistory:
    """Epoch-level curves. Accuracy curves stay empty for regression."""
    train_loss: List[float] = field(default_factory=list)
    val_loss: List[float] = field(default_factory=list)
    train_accuracy: List[float] = field(default_factory=list)
    val_accuracy: List[float] = field(default_factory=list)
    best_epoch: Optional[int] = None
    stopped_early: bool = False

    @property
    def epochs_run(self) -> int:
        return len(self.train_loss)

    def to_frame(self) -> pd.DataFrame:
        n = self.epochs_run

        def pad(seq):
            return list(seq) + [np.nan] * (n - len(seq))

        return pd.DataFrame({
            'epoch': range(1, n + 1),
            'train_loss': self.train_loss,
            'val_loss': pad(self.val_loss),
            'train_accuracy': pad(self.train_accuracy),
            'val_accuracy': pad(self.val_accuracy),
        })


class EarlyStopping:
    """Patience counter over a validation-loss sequence."""

    def __init__(self, patience: Optional[int]):
        self.patience = patience
        self.best_loss = float('inf')
        self.best_epoch: Optional[int] = None
        self.best_state = None
        self.counter = 0

    def step(self, epoch: int, val_loss: float, model: nn.Module) -> bool:
        """Record one epoch; return True when training should stop."""
        if val_loss < self.best_loss:
            self.best_loss = val_loss
            self.best_epoch = epoch
            self.best_state = copy.deepcopy(model.state_dict())
            self.counter = 0
            return False
        self.counter += 1
        return bool(self.patience) and self.counter >= self.patience


class NeuralNetAdapter(ModelAdapter):
    """Adapter for the neural-net family."""

    def __init__(self, config: dict, logger):
        super().__init__(config, logger)
        self.nn_seed = config.get('_internal_seeds', {}).get('nn', self.seed if self.seed is not None else 0)

    def _fit_estimator(self, X: pd.DataFrame, y: pd.Series, spec: ModelSpec):
        params = {**DEFAULT_PARAMS, **dict(spec.params)}
        torch.manual_seed(self.nn_seed)
        rng = np.random.RandomState(self.nn_seed)

        X_np = X.to_numpy(dtype=np.float32)
        x_mean = X_np.mean(axis=0)
        x_std = X_np.std(axis=0)
        x_std[x_std == 0] = 1.0
        X_np = (X_np - x_mean) / x_std

        extras = {'x_mean': x_mean, 'x_std': x_std}
        if spec.is_classification:
            classes = np.array(sorted(pd.unique(y).tolist()))
            targets = torch.as_tensor(np.searchsorted(classes, y.to_numpy()), dtype=torch.long)
            output_size = len(classes)
            criterion = nn.CrossEntropyLoss()
            extras['classes'] = classes
        else:
            y_np = y.to_numpy(dtype=np.float32)
            y_mean, y_std = float(y_np.mean()), float(y_np.std()) or 1.0
            targets = torch.as_tensor(((y_np - y_mean) / y_std).reshape(-1, 1))
            output_size = 1
            criterion = nn.MSELoss()
            extras.update({'y_mean': y_mean, 'y_std': y_std})

        inputs = torch.as_tensor(X_np)
        train_idx, val_idx = self._validation_split(len(X_np), params['validation_fraction'], rng)

        model = MLP(X_np.shape[1], params['hidden_layer_sizes'], output_size, params['dropout'])
        optimizer = torch.optim.Adam(model.parameters(), lr=params['learning_rate'],
                                     weight_decay=params['weight_decay'])
        generator = torch.Generator().manual_seed(self.nn_seed)
        loader = DataLoader(
            TensorDataset(inputs[train_idx], targets[train_idx]),
            batch_size=params['batch_size'],
            shuffle=True,
            generator=generator,
        )

        history = TrainingHistory()
        stopper = EarlyStopping(params['patience'])
        for epoch in range(params['epochs']):
            model.train()
            epoch_loss = 0.0
            for xb, yb in loader:
                optimizer.zero_grad()
                loss = criterion(model(xb), yb)
                loss.backward()
                optimizer.step()
                epoch_loss += loss.item() * len(xb)
            history.train_loss.append(epoch_loss / len(train_idx))

            model.eval()
            with torch.no_grad():
                if spec.is_classification:
                    history.train_accuracy.append(self._accuracy(model, inputs[train_idx], targets[train_idx]))
                if len(val_idx) == 0:
                    continue
                val_out = model(inputs[val_idx])
                val_loss = criterion(val_out, targets[val_idx]).item()
                history.val_loss.append(val_loss)
                if spec.is_classification:
                    history.val_accuracy.append(self._accuracy(model, inputs[val_idx], targets[val_idx]))

            if stopper.step(epoch + 1, val_loss, model):
                history.stopped_early = True
                self.logger.debug(f"{spec.name}: early stop at epoch {epoch + 1} (best epoch {stopper.best_epoch}).")
                break

        if stopper.best_state is not None:
            model.load_state_dict(stopper.best_state)
            history.best_epoch = stopper.best_epoch
        else:
            history.best_epoch = history.epochs_run
        model.eval()
        return model, history, extras

    def _predict_estimator(self, trained_model: TrainedModel, X: pd.DataFrame) -> np.ndarray:
        extras = trained_model.extras
        X_np = (X.to_numpy(dtype=np.float32) - extras['x_mean']) / extras['x_std']
        model = trained_model.estimator
        model.eval()
        with torch.no_grad():
            out = model(torch.as_tensor(X_np.astype(np.float32)))
        if trained_model.spec.is_classification:
            return extras['classes'][out.argmax(dim=1).numpy()]
        return out.numpy().ravel() * extras['y_std'] + extras['y_mean']

    @staticmethod
    def _validation_split(n: int, fraction: float, rng: np.random.RandomState):
        order = rng.permutation(n)
        n_val = int(round(n * fraction)) if fraction else 0
        # Keep at least one training row
        n_val = min(n_val, n - 1)
        return torch.as_tensor(np.sort(order[n_val:])), torch.as_tensor(np.sort(order[:n_val]))

    @staticmethod
    def _accuracy(model: nn.Module, inputs: torch.Tensor, targets: torch.Tensor) -> float:
        preds = model(inputs).argmax(dim=1)
        return float((preds == targets).float().mean().item())
