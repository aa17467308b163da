"""
Calculation audit: diff engine results against an independent oracle run.

Each audit case carries both player histories and the result an
independent implementation produced for them. The engine is run on the
same histories and every model probability is compared within a tolerance
(in percentage points). Results are also checked for internal invariants.

Usage:
    audit = CalculationAudit(tolerance=1.0)
    summary = audit.run(HistoryLoader().load_audit_cases('cases.json'))
    print(format_audit_summary(summary))
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from .comparison import COMPARISON_METRICS_MISSING
from .config import (
    AUDIT_TOLERANCE_PP, AUDIT_TOP_DIVERGENCES, NEUTRAL_PROBABILITY, CONFIDENCE_MIN, CONFIDENCE_MAX
)
from .ensemble import EnsembleCombiner, EnsembleResult, run_models
from .weights import MODEL_IDS

AUDIT_MODELS = MODEL_IDS + ('final',)

WEIGHT_SUM_TOLERANCE = 1e-9
# Diff recorded when only one side produced a probability
AVAILABILITY_MISMATCH_PENALTY = 100


def _value(result: EnsembleResult, name: str) -> Optional[float]:
    if name == 'final':
        return result.final_p1
    return result.probability(name)


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _value_or_dash(value: Optional[float]) -> str:
    return f"{value:.3f}" if _finite(value) else "-"


@dataclass
class CaseComparison:
    """Outcome of comparing one engine result with its oracle."""

    max_abs_diff: float = 0.0
    diffs: Dict[str, float] = field(default_factory=dict)
    mismatches: List[str] = field(default_factory=list)
    failing_models: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)


def compare_results(
    prod: EnsembleResult,
    oracle: EnsembleResult,
    tolerance: float = AUDIT_TOLERANCE_PP
) -> CaseComparison:
    """
    Compare model by model, plus the fused probability.

    Both sides unavailable counts as agreement. Only one side available
    is an availability mismatch and weighs in as tolerance + 100.
    """
    comparison = CaseComparison()

    for name in AUDIT_MODELS:
        prod_value = _value(prod, name)
        oracle_value = _value(oracle, name)

        if not _finite(prod_value) and not _finite(oracle_value):
            continue

        if not _finite(prod_value) or not _finite(oracle_value):
            comparison.mismatches.append(name)
            comparison.failing_models.append(name)
            comparison.issues.append(
                f"{name}: availability mismatch "
                f"(prod={_value_or_dash(prod_value)} oracle={_value_or_dash(oracle_value)})"
            )
            comparison.max_abs_diff = max(
                comparison.max_abs_diff, tolerance + AVAILABILITY_MISMATCH_PENALTY
            )
            continue

        diff = abs(prod_value - oracle_value)
        comparison.diffs[name] = diff
        comparison.max_abs_diff = max(comparison.max_abs_diff, diff)
        if diff > tolerance:
            comparison.failing_models.append(name)
            comparison.issues.append(
                f"{name}: abs_diff={diff:.3f} (prod={prod_value:.3f} oracle={oracle_value:.3f})"
            )

    return comparison


def validate_invariants(result: EnsembleResult, confidence: Optional[float] = None) -> List[str]:
    """
    Check an engine result for internal consistency.

    Returns:
        List of violation messages (empty when everything holds)
    """
    issues = []

    for name in AUDIT_MODELS:
        value = _value(result, name)
        if _finite(value) and not 0 <= value <= 100:
            issues.append(f"{name}_p1 out of range: {value:.6f}")

    weights = result.weights
    if abs(weights.total - 1) > WEIGHT_SUM_TOLERANCE:
        issues.append(f"weights_sum={weights.total:.12f} (expected 1)")
    if any(weights.get(model_id) < 0 for model_id in MODEL_IDS):
        issues.append("weights contain negative value")

    available = [model_id for model_id in MODEL_IDS if _finite(result.probability(model_id))]
    if not available and result.final_p1 != NEUTRAL_PROBABILITY:
        issues.append(f"all models unavailable but final_p1={result.final_p1:.6f}")
    if result.active_models != len(available):
        issues.append(f"active_models={result.active_models} but {len(available)} models available")

    score = result.comparison
    if abs(score.wins_a + score.wins_b - score.compared) > WEIGHT_SUM_TOLERANCE:
        issues.append(f"wins_a + wins_b={score.wins_a + score.wins_b} != compared={score.compared}")

    for model_id in MODEL_IDS:
        tagged = f"{model_id}_unavailable" in result.warnings
        if tagged == (model_id in available):
            issues.append(f"warning {model_id}_unavailable inconsistent with availability")
    if (COMPARISON_METRICS_MISSING in result.warnings) != (result.comparison_count == 0):
        issues.append(f"warning {COMPARISON_METRICS_MISSING} inconsistent with comparison_count")

    if confidence is not None and not CONFIDENCE_MIN <= confidence <= CONFIDENCE_MAX:
        issues.append(f"confidence={confidence:.6f} out of [{CONFIDENCE_MIN}, {CONFIDENCE_MAX}]")

    return issues


def nearest_rank_p95(values: pd.Series) -> float:
    """95th percentile by nearest rank."""
    ordered = np.sort(values.to_numpy())
    if ordered.size == 0:
        return 0.0
    index = min(ordered.size - 1, max(0, math.ceil(ordered.size * 0.95) - 1))
    return float(ordered[index])


@dataclass
class AuditSummary:
    """Accumulated audit outcome over all cases."""

    started_at: str
    tolerance: float
    finished_at: str = ''
    requested_cases: int = 0
    verified_cases: int = 0
    passed_cases: int = 0
    failed_cases: int = 0
    invariant_violations: int = 0
    diff_records: List[Dict[str, Any]] = field(default_factory=list)
    records: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.failed_cases == 0

    def diff_stats(self) -> pd.DataFrame:
        """
        Per-model diff statistics.

        Returns:
            DataFrame indexed by model with count, mean, p95, max and mismatches
        """
        df = pd.DataFrame(self.diff_records, columns=['model', 'diff', 'mismatch'])
        mismatch = df['mismatch'].astype(bool)
        diffs = df.loc[~mismatch, ['model', 'diff']].astype({'diff': float})
        stats = diffs.groupby('model')['diff'].agg(
            count='count',
            mean='mean',
            p95=nearest_rank_p95,
            max='max',
        )
        stats = stats.reindex(list(AUDIT_MODELS)).fillna(0)
        stats['count'] = stats['count'].astype(int)
        stats['mismatches'] = (
            df[mismatch].groupby('model').size()
            .reindex(list(AUDIT_MODELS)).fillna(0).astype(int)
        )
        return stats

    def top_divergences(self, limit: int = AUDIT_TOP_DIVERGENCES) -> List[Dict[str, Any]]:
        return sorted(self.records, key=lambda r: r['max_abs_diff'], reverse=True)[:limit]


def _audit_case(case: Dict[str, Any], tolerance: float, combiner: Optional[EnsembleCombiner]) -> Dict[str, Any]:
    """Run and check a single case."""
    prod = run_models(case['home'], case['away'], combiner)
    oracle = EnsembleResult.from_dict(case['oracle'])
    comparison = compare_results(prod, oracle, tolerance)
    invariant_issues = validate_invariants(prod)

    return {
        'label': case['label'],
        'max_abs_diff': comparison.max_abs_diff,
        'diffs': comparison.diffs,
        'mismatches': comparison.mismatches,
        'failing_models': comparison.failing_models,
        'invariant_issues': invariant_issues,
        'notes': comparison.issues + [f"invariant: {issue}" for issue in invariant_issues],
    }


class CalculationAudit:
    """
    Runs audit cases and accumulates an AuditSummary.

    Cases are independent, so they can be spread over joblib workers.
    """

    def __init__(
        self,
        tolerance: float = AUDIT_TOLERANCE_PP,
        combiner: Optional[EnsembleCombiner] = None,
        n_jobs: int = 1,
        verbose: bool = True
    ):
        """
        Initialize audit.

        Args:
            tolerance: Allowed absolute difference in percentage points
            combiner: Ensemble under audit (default: all four models)
            n_jobs: Number of joblib workers
            verbose: Whether to show a progress bar
        """
        self.tolerance = tolerance
        self.combiner = combiner
        self.n_jobs = n_jobs
        self.verbose = verbose

    def run(self, cases: List[Dict[str, Any]]) -> AuditSummary:
        """
        Audit all cases.

        Args:
            cases: Parsed cases from HistoryLoader.load_audit_cases

        Returns:
            AuditSummary
        """
        summary = AuditSummary(
            started_at=datetime.now().isoformat(timespec='seconds'),
            tolerance=self.tolerance,
            requested_cases=len(cases),
        )

        with tqdm(total=len(cases), desc="Audit", ncols=60, disable=not self.verbose) as pbar:
            for record in Parallel(n_jobs=self.n_jobs, return_as='generator')(
                delayed(_audit_case)(case, self.tolerance, self.combiner) for case in cases
            ):
                self._accumulate(summary, record)
                pbar.update(1)

        summary.finished_at = datetime.now().isoformat(timespec='seconds')
        return summary

    @staticmethod
    def _accumulate(summary: AuditSummary, record: Dict[str, Any]):
        summary.verified_cases += 1
        summary.invariant_violations += len(record['invariant_issues'])

        for name, diff in record['diffs'].items():
            summary.diff_records.append({'model': name, 'diff': diff, 'mismatch': False})
        for name in record['mismatches']:
            summary.diff_records.append({'model': name, 'diff': np.nan, 'mismatch': True})

        if record['failing_models'] or record['invariant_issues']:
            summary.failed_cases += 1
        else:
            summary.passed_cases += 1

        summary.records.append(record)


def format_audit_summary(summary: AuditSummary) -> str:
    """Render the audit report as plain text."""
    lines = [
        "=== Calculation Audit Report ===",
        f"Started: {summary.started_at}",
        f"Finished: {summary.finished_at}",
        f"Tolerance: ±{summary.tolerance:.1f} pp",
        f"Cases: requested={summary.requested_cases} verified={summary.verified_cases} "
        f"passed={summary.passed_cases} failed={summary.failed_cases}",
        f"Invariant violations: {summary.invariant_violations}",
        "",
        "Model diff stats (prod vs oracle):",
    ]

    for name, row in summary.diff_stats().iterrows():
        status = "FAIL" if row['max'] > summary.tolerance or row['mismatches'] > 0 else "PASS"
        lines.append(
            f"- {name}: {status} count={int(row['count'])} mean={row['mean']:.3f} "
            f"p95={row['p95']:.3f} max={row['max']:.3f} mismatches={int(row['mismatches'])}"
        )
    lines.append("")

    top = summary.top_divergences()
    if not top:
        lines.append("Top divergences: n/a")
    else:
        lines.append("Top divergences:")
        for item in top:
            failing = ",".join(item['failing_models']) or "-"
            notes = " | ".join(item['notes'][:3]) or "-"
            lines.append(
                f"- {item['label']} max_diff={item['max_abs_diff']:.3f} "
                f"failing_models={failing} notes={notes}"
            )

    lines.append("")
    lines.append(
        f"PASS/FAIL: {'PASS' if summary.passed else 'FAIL'} "
        f"(failed_cases={summary.failed_cases}, invariant_violations={summary.invariant_violations})"
    )
    return "\n".join(lines)
