from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from relay_api.core.domain.record import Sample

DEFAULT_SLOUCH_DEG = 15.0


@dataclass(frozen=True)
class PitchStats:
    """Estadísticos de pitch sobre una ventana de samples.

    ``slouch_percent`` es el % de samples con pitch >= umbral de slouch.
    """

    count: int
    min: Optional[float]
    max: Optional[float]
    mean: Optional[float]
    slouch_percent: float


def _finite_pitches(samples: Sequence[Sample]) -> List[float]:
    return [
        float(s.pitch)
        for s in samples
        if isinstance(s.pitch, (int, float)) and math.isfinite(s.pitch)
    ]


def compute_pitch_stats(samples: Sequence[Sample], slouch_deg: float = DEFAULT_SLOUCH_DEG) -> PitchStats:
    pitches = _finite_pitches(samples)
    n = len(pitches)
    if n == 0:
        return PitchStats(count=0, min=None, max=None, mean=None, slouch_percent=0.0)

    slouch_count = sum(1 for p in pitches if p >= slouch_deg)
    return PitchStats(
        count=n,
        min=min(pitches),
        max=max(pitches),
        mean=sum(pitches) / n,
        slouch_percent=slouch_count / n * 100,
    )


def build_telemetry_summary(samples: Sequence[Sample], slouch_deg: float = DEFAULT_SLOUCH_DEG) -> str:
    """Texto compacto listo para el LLM a partir de los samples de la ventana."""
    if not samples:
        return "No samples available."

    stats = compute_pitch_stats(samples, slouch_deg)
    if stats.count == 0:
        return "No numeric pitch samples available."

    last = samples[-1]
    return "\n".join([
        f"Samples: {stats.count}",
        f"Pitch(deg): min={stats.min:.2f} avg={stats.mean:.2f} max={stats.max:.2f}",
        f"Heuristic: slouch>={slouch_deg:g}deg for {stats.slouch_percent:.1f}% of samples",
        f"Latest: pitch={float(last.pitch):.2f} ts={last.ts}",
    ])


def _round_or_none(value: Optional[float], digits: int) -> Optional[float]:
    return None if value is None else round(value, digits)


def build_fallback_report(samples: Sequence[Sample], slouch_deg: float = DEFAULT_SLOUCH_DEG) -> Dict[str, Any]:
    """Informe local cuando la respuesta del LLM no es JSON válido."""
    stats = compute_pitch_stats(samples, slouch_deg)
    n = stats.count
    pct = stats.slouch_percent

    if pct >= 60:
        overall = "bad"
    elif pct >= 25:
        overall = "okay"
    else:
        overall = "good"

    if n >= 120:
        confidence = "high"
    elif n >= 40:
        confidence = "medium"
    else:
        confidence = "low"

    finding = (
        f"Slouching (>={slouch_deg:g}°) for ~{pct:.1f}% of samples."
        if n else "No valid samples yet."
    )

    return {
        "overall": overall,
        "key_findings": [finding],
        "metrics": {
            "samples": n,
            "pitch_min_deg": _round_or_none(stats.min, 2),
            "pitch_avg_deg": _round_or_none(stats.mean, 2),
            "pitch_max_deg": _round_or_none(stats.max, 2),
            "slouch_threshold_deg": slouch_deg,
            "slouch_percent": round(pct, 1),
        },
        "recommendations": [
            "Try a 20-30s posture reset: shoulders back, chin neutral, sit tall.",
            "If you're slouching often, raise your screen to eye level or use lumbar support.",
        ],
        "confidence": confidence,
    }
