import numpy as np
from scipy import stats
from typing import Dict, Any


def compare_paired(
    baseline_scores: np.ndarray,
    candidate_scores: np.ndarray,
    alpha: float = 0.05,
) -> Dict[str, Any]:
    """
    Perform paired statistical significance tests between two per-fold score arrays.
    Returns p-values and effect sizes.
    """
    baseline_scores = np.asarray(baseline_scores, dtype=float)
    candidate_scores = np.asarray(candidate_scores, dtype=float)

    # Drop NaNs
    mask = ~np.isnan(baseline_scores) & ~np.isnan(candidate_scores)
    if mask.sum() < 2:
        return {"n_pairs": int(mask.sum()), "p_value_ttest": np.nan, "p_value_wilcoxon": np.nan,
                "cohens_d": np.nan, "mean_difference": np.nan, "significant": False}

    base = baseline_scores[mask]
    cand = candidate_scores[mask]

    diff = cand - base
    # If identical (or all zero diff), skip tests to avoid warnings
    if np.allclose(diff, 0):
        return {
            "n_pairs": int(mask.sum()),
            "p_value_ttest": np.nan,
            "p_value_wilcoxon": np.nan,
            "cohens_d": 0.0,
            "mean_difference": 0.0,
            "significant": False,
        }

    # Paired t-test
    _, p_ttest = stats.ttest_rel(base, cand)

    # Wilcoxon signed-rank (requires non-zero differences)
    try:
        p_wilcoxon = stats.wilcoxon(base, cand, zero_method="wilcox", correction=False).pvalue
    except ValueError:
        p_wilcoxon = np.nan

    # Effect size (Cohen's d for paired)
    sd = diff.std(ddof=1)
    d = diff.mean() / sd if sd != 0 else np.nan

    significant = (not np.isnan(p_wilcoxon) and p_wilcoxon < alpha) or (not np.isnan(p_ttest) and p_ttest < alpha)

    return {
        "n_pairs": int(mask.sum()),
        "p_value_ttest": float(p_ttest) if not np.isnan(p_ttest) else np.nan,
        "p_value_wilcoxon": float(p_wilcoxon) if not np.isnan(p_wilcoxon) else np.nan,
        "cohens_d": float(d) if not np.isnan(d) else np.nan,
        "mean_difference": float(diff.mean()),
        "significant": bool(significant),
    }
