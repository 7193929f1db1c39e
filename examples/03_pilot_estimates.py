"""
Pilot Data Example
==================

This example estimates generating parameters from pilot data and then
sweeps the distractor effect around the pilot estimate.
"""

import pandas as pd

from lmepower import estimate_parameters, run_sweep, simulate, summarize_power

# Example: Pilot visual search experiment
# Research question: Given the pilot, how small an effect could we detect?

print("=" * 60)
print("PILOT DATA EXAMPLE")
print("=" * 60)

# 1. Load pilot trials
# Replace this block with your own data, e.g. pd.read_csv("pilot.csv").
# Needed columns: subj_id, distractor (present/absent), rt, acc, set_size
pilot = simulate({"n_subj": 12, "n_present": 60, "n_absent": 60}, seed=7)
pilot = pilot[["subj_id", "distractor", "rt"]].assign(acc=1, set_size=4)
pilot = pd.concat([pilot, pilot.assign(set_size=8, rt=pilot["rt"] + 40)], ignore_index=True)

# 2. Estimate parameters from correct trials at set size 4
params, fit = estimate_parameters(pilot, set_size=4)

print("\nPilot estimates:")
for name, value in params.to_dict().items():
    print(f"  {name:>10}: {value:.2f}" if isinstance(value, float) else f"  {name:>10}: {value}")
if fit.convergence_warning:
    print(f"\nWarning: {fit.convergence_warning}")

# 3. Sweep the effect size with everything else at the pilot values
grid = params.to_dict()
grid["beta_1"] = [10.0, 20.0, 30.0]
grid["n_subj"] = 20

rows = run_sweep(grid, n_reps=100, sink="results/pilot_sweep.csv", seed=2137, print_progress=True)

print("\n" + "=" * 60)
print("POWER BY EFFECT SIZE (20 subjects)")
print("=" * 60)
summary = summarize_power(rows)
print(summary[summary["term"] == "distractor"][["beta_1", "power", "mean_estimate"]].to_string(index=False))
