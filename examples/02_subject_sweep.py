"""
Subject Sweep Example
=====================

This example runs a sensitivity sweep over the number of subjects and
reports how power to detect the distractor effect grows with sample size.
"""

from lmepower import ResultsProcessor, run_sweep

# Example: Planning a visual search study
# Research question: How many subjects do we need for 80% power?

print("=" * 60)
print("SUBJECT SWEEP EXAMPLE")
print("=" * 60)

# 1. Grid: sequences are swept, scalars are held fixed
grid = {
    "n_subj": [2, 5, 10, 15],
    "beta_1": 30.0,
}

# 2. Run the sweep
# The results file is reused on later runs; delete it to recompute.
rows = run_sweep(
    grid,
    n_reps=100,
    sink="results/subject_sweep.csv",
    seed=2137,
    parallel=True,         # Spread replications over worker processes
    print_progress=True,
)

# 3. Summarize power per grid value and term
processor = ResultsProcessor(alpha=0.05, target_power=0.8)
summary = processor.summarize(rows)

print("\n" + "=" * 60)
print("POWER BY NUMBER OF SUBJECTS")
print("=" * 60)
slope = summary[summary["term"] == "distractor"]
print(slope[["n_subj", "power", "power_ci_lower", "power_ci_upper", "n_warnings"]].to_string(index=False))

needed = processor.first_achieved(summary, "n_subj", "distractor")
if needed is None:
    print("\nNo grid value reached 80% power; extend the grid.")
else:
    print(f"\nSmallest tested n_subj with at least 80% power: {needed}")
