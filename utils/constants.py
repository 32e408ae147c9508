# utils/constants.py

# --- Model Families ---
LINEAR_REGRESSION = "linear-regression"
RANDOM_FOREST = "random-forest"
GRADIENT_BOOSTING = "gradient-boosting"
SVM_RADIAL = "svm-radial"
KNN = "knn"
DECISION_TREE = "decision-tree"
NEURAL_NET = "neural-net"
REGRESSION_SPLINE = "regression-spline"

MODEL_FAMILIES = [
    LINEAR_REGRESSION,
    RANDOM_FOREST,
    GRADIENT_BOOSTING,
    SVM_RADIAL,
    KNN,
    DECISION_TREE,
    NEURAL_NET,
    REGRESSION_SPLINE,
]

# --- Tasks ---
REGRESSION = "regression"
CLASSIFICATION = "classification"
TASKS = [REGRESSION, CLASSIFICATION]

# --- Metric Names ---
RMSE = "rmse"
R2 = "r2"
ACCURACY = "accuracy"

# Lower is better for errors, higher for everything else.
MINIMIZE_METRICS = {RMSE}
MAXIMIZE_METRICS = {R2, ACCURACY}

# Primary metric used to rank subsets and models per task.
PRIMARY_METRIC = {
    REGRESSION: RMSE,
    CLASSIFICATION: ACCURACY,
}

# --- Fold Result Status ---
STATUS_OK = "ok"
STATUS_FAILED = "failed"

# --- Dataset Columns ---
DEFAULT_TARGET_COLUMN = "quality"
TYPE_COLUMN = "type"
RED_WINE = 0
WHITE_WINE = 1

# --- Run Status ---
RUN_COMPLETE = "complete"
RUN_PARTIAL = "partial"
RUN_FAILED = "failed"
