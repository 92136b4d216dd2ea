"""Statistical evaluation of the dice RNG.

Draws samples from CryptoRandomSource and prints a
pass/fail table:
- chi-square uniformity for d6 and d20
- mean and variance of d6
- lag-1 autocorrelation of d20
- positional bias of random_sequence
- mean of an infinite-exploding d6 under the per-die draw cap

Usage:
  python scripts/evaluate_rng.py
  python scripts/evaluate_rng.py --samples 50000
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
import sys

import numpy as np

# 添加项目根目录到 python path
sys.path.append(str(Path(__file__).parent.parent))
from src.dice.constants import MAX_DRAWS_PER_DIE
from src.dice.models import DiceGroup
from src.dice.rng import CryptoRandomSource, random_sequence
from src.dice.roller import DiceRoller

# 显著性水平 0.05 下的卡方临界值，键为自由度
CHI_SQUARE_CRITICAL_005 = {
    4: 9.488,
    5: 11.07,
    16: 26.296,
    19: 30.144,
}


@dataclass
class Check:
    name: str
    statistic: float
    threshold: float
    passed: bool


def draw_faces(rng: CryptoRandomSource, sides: int, samples: int) -> np.ndarray:
    return np.array([rng.random_int(1, sides) for _ in range(samples)], dtype=np.int64)


def chi_square(observed: np.ndarray, expected: np.ndarray) -> float:
    return float(np.sum((observed - expected) ** 2 / expected))


def check_uniformity(rng: CryptoRandomSource, sides: int, samples: int) -> Check:
    faces = draw_faces(rng, sides, samples)
    observed = np.bincount(faces, minlength=sides + 1)[1:]
    expected = np.full(sides, samples / sides)
    statistic = chi_square(observed, expected)
    threshold = CHI_SQUARE_CRITICAL_005[sides - 1]
    return Check(f"chi-square d{sides}", statistic, threshold, statistic < threshold)


def check_moments(rng: CryptoRandomSource, samples: int) -> list[Check]:
    faces = draw_faces(rng, 6, samples)
    mean_error = abs(float(faces.mean()) - 3.5)
    var_error = abs(float(faces.var()) - 35 / 12)
    return [
        Check("d6 mean |x-3.5|", mean_error, 0.05, mean_error < 0.05),
        Check("d6 variance |s2-35/12|", var_error, 0.1, var_error < 0.1),
    ]


def check_autocorrelation(rng: CryptoRandomSource, samples: int) -> Check:
    faces = draw_faces(rng, 20, samples).astype(np.float64)
    r = abs(float(np.corrcoef(faces[:-1], faces[1:])[0, 1]))
    return Check("d20 lag-1 autocorrelation", r, 0.05, r < 0.05)


def check_sequence_bias(rng: CryptoRandomSource, size: int, trials: int) -> Check:
    # counts[position, value - 1]
    counts = np.zeros((size, size), dtype=np.int64)
    for _ in range(trials):
        for position, value in enumerate(random_sequence(size, rng)):
            counts[position, value - 1] += 1
    expected = np.full((size, size), trials / size)
    statistic = chi_square(counts, expected)
    threshold = CHI_SQUARE_CRITICAL_005[(size - 1) ** 2]
    return Check(f"random_sequence({size}) positional bias", statistic, threshold, statistic < threshold)


def check_exploding_mean(rng: CryptoRandomSource, samples: int) -> Check:
    roller = DiceRoller(rng)
    die = DiceGroup(quantity=1, sides=6, exploding=True, exploding_number=6, infinite=True)
    totals = np.array([roller.roll(die).total for _ in range(samples)], dtype=np.float64)
    # E = 3.5 * (1 + 1/6 + ... + (1/6)^(cap-1))
    expected = 3.5 * sum((1 / 6) ** k for k in range(MAX_DRAWS_PER_DIE))
    error = abs(float(totals.mean()) - expected)
    return Check(f"exploding d6 mean |x-{expected:.3f}|", error, 0.1, error < 0.1)


def _print_table(checks: list[Check]) -> None:
    title = "RNG statistical evaluation"
    print(f"\n{title}")
    print("-" * len(title))
    width = max(len(check.name) for check in checks)
    for check in checks:
        status = "PASS" if check.passed else "FAIL"
        print(f"{check.name:<{width}} : {check.statistic:>10.4f} < {check.threshold:<8} {status}")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--samples", type=int, default=20000, help="samples per check")
    parser.add_argument("--sequence-size", type=int, default=5, choices=(5,), help="random_sequence size")
    args = parser.parse_args()

    rng = CryptoRandomSource()
    checks = [
        check_uniformity(rng, 6, args.samples),
        check_uniformity(rng, 20, args.samples),
        *check_moments(rng, args.samples),
        check_autocorrelation(rng, args.samples),
        check_sequence_bias(rng, args.sequence_size, args.samples),
        check_exploding_mean(rng, args.samples),
    ]
    _print_table(checks)

    failed = [check.name for check in checks if not check.passed]
    if failed:
        print(f"\nfailed: {', '.join(failed)}")
        return 1
    print("\nall checks passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
