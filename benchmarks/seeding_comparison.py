"""Compare uniform vs farthest-point seeding for discrete and continuous k-median."""

import sys
sys.stdout.reconfigure(line_buffering=True)

import random
import time

from stationplan import KMedianConfig, KMedianProblem, KMedianSolver
from stationplan.bounds import HIGHS_AVAILABLE, compute_lower_bound

# Build instance: weighted ore patches scattered around a few deposits
rng = random.Random(2024)
deposits = [(rng.uniform(0, 2000), rng.uniform(0, 2000)) for _ in range(12)]
pairs = []
for dx, dy in deposits:
    for _ in range(25):
        point = (rng.gauss(dx, 60.0), rng.gauss(dy, 60.0))
        pairs.append((point, rng.choice([1.0, 1.0, 2.0, 4.0])))

problem = KMedianProblem.from_pairs(pairs, k=12, name='deposits_300')

print('='*70)
print('k-median: uniform vs farthest-point seeding')
print(f'Instance: {problem.name}')
print(f'  Nodes: {problem.num_nodes}')
print(f'  Stations: {problem.k}')
print('='*70)


def run_solver(problem, name, **options):
    """Solve with the given options and collect statistics."""
    print(f'\nRunning {name}...', flush=True)

    config = KMedianConfig(restarts=10, random_seed=7, **options)
    start = time.time()
    solution = KMedianSolver(problem, config).solve()
    elapsed = time.time() - start

    iterations = [run.iterations for run in solution.runs]
    costs = solution.restart_costs()
    print(f'  Best cost: {solution.cost:.1f} (restart {solution.best_restart})', flush=True)

    return {
        'name': name,
        'best': solution.cost,
        'worst': max(costs),
        'mean': sum(costs) / len(costs),
        'iterations': sum(iterations) / len(iterations),
        'time': elapsed,
    }


results = [
    run_solver(problem, 'Discrete / uniform', seeding='uniform'),
    run_solver(problem, 'Discrete / farthest', seeding='farthest-point'),
    run_solver(problem, 'Continuous / uniform', candidate_policy='continuous', seeding='uniform'),
    run_solver(problem, 'Continuous / farthest', candidate_policy='continuous', seeding='farthest-point'),
]

# Lower bound on the discrete optimum (LP relaxation)
bound = None
if HIGHS_AVAILABLE:
    print('\nComputing LP lower bound...', flush=True)
    bound = compute_lower_bound(problem)
    print(f'  {bound.status.name} in {bound.solve_time:.2f}s', flush=True)

# Print comparison
print()
print('='*70)
print('COMPARISON RESULTS')
print('='*70)
print(f"{'Run':<24} {'Best':>10} {'Mean':>10} {'Worst':>10} {'Iter':>6} {'Time':>7}")
print('-'*70)
for r in results:
    print(
        f"{r['name']:<24} {r['best']:>10.1f} {r['mean']:>10.1f} {r['worst']:>10.1f} "
        f"{r['iterations']:>6.1f} {r['time']:>6.2f}s"
    )
if bound is not None and bound.has_value:
    print('-'*70)
    print(f"{'LP lower bound':<24} {bound.value:>10.1f}")
print('='*70)
