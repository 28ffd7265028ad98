"""
Local-search controller for the k-median problem.

This module implements the alternating local search that places k
stations: assign every node to its nearest center, move every center to
the median of its cluster, and repeat until the cost stops improving.

Algorithm Overview:
------------------
1. Seeding: pick k initial centers (uniform, farthest-point, bounding box)
2. Assign nodes to their nearest center
3. Resolve empty clusters per the configured policy
4. Update each non-empty cluster's center (discrete or continuous median)
5. Reassign; if the cost improved by more than min_improvement, go to 3
6. Stop as CONVERGED, or ITERATION_LIMIT when the cap is hit first

The whole cycle is repeated for R restarts from independent seeds and the
cheapest run is kept. Each restart owns all of its state, so restarts can
run in a thread pool; the only shared objects are the stop event and the
final best-of reduction.

Monotonicity:
------------
Within a run the cost never increases. Center updates keep the incumbent
unless a strictly cheaper position exists, an empty center serves no node
so moving it cannot hurt, and reassignment only ever picks a nearer
center.

References:
----------
- Kaufman, L., & Rousseeuw, P. J. (1990). Finding Groups in Data.
- Arya, V. et al. (2004). Local search heuristics for k-median and
  facility location problems. SIAM J. Computing 33(3).
"""

import random
import threading
import time
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from stationplan.assignment import Assignment, assign
from stationplan.config import config as global_config
from stationplan.core.errors import DegenerateClusterWarning, InvalidInputError
from stationplan.core.metric import Metric, euclidean
from stationplan.core.point import Point, PointLike, as_point
from stationplan.core.problem import KMedianProblem
from stationplan.seeding import Seeder, SeedingMethod, make_seeder
from stationplan.solver.solution import (
    RunResult,
    SearchIteration,
    Solution,
    TerminationReason,
)
from stationplan.update import (
    CandidatePolicy,
    CandidateScope,
    CenterUpdate,
    ContinuousMethod,
    make_center_update,
)


class EmptyClusterPolicy(Enum):
    """What to do with a center that has no assigned node."""
    RETAIN = "retain"                     # Keep the previous position
    RESEED_FARTHEST = "reseed-farthest"   # Move to the costliest node
    RESEED_RANDOM = "reseed-random"       # Move to a random unused node position


def _coerce(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(repr(m.value) for m in enum_cls)
        raise InvalidInputError(f"Invalid {name} {value!r}; expected one of {choices}") from None


@dataclass
class KMedianConfig:
    """
    Configuration for the k-median local search.

    Enum-valued options also accept their string values
    (e.g. candidate_policy="continuous", seeding="farthest-point").

    Attributes:
        candidate_policy: DISCRETE (centers on node positions) or CONTINUOUS
        candidate_scope: Discrete candidates from the CLUSTER or ALL nodes
        continuous_method: AUTO, WEISZFELD or PATTERN refinement
        refinement_steps: Weiszfeld steps / pattern polls per center update
        refinement_tolerance: Movement at which refinement stops
            (None = global "refinement" tolerance)
        seeding: UNIFORM, FARTHEST_POINT or BOUNDING_BOX (continuous only)
        empty_cluster_policy: RETAIN, RESEED_FARTHEST or RESEED_RANDOM
        max_iterations: Iteration cap per run (hard stop)
        min_improvement: Converged when the cost decreases by no more than
            this (None = global "improvement" tolerance)
        restarts: Number of independent runs; the cheapest is kept
        random_seed: Seed for reproducible solves (None = fresh entropy)
        max_time: Wall-clock limit in seconds for the whole solve (0 = unlimited)
        num_workers: Parallel restart workers (None = global default)
        verbose: Print progress information
        compute_lower_bound: Attach an LP lower bound and gap (needs HiGHS)
    """
    candidate_policy: CandidatePolicy = CandidatePolicy.DISCRETE
    candidate_scope: CandidateScope = CandidateScope.CLUSTER
    continuous_method: ContinuousMethod = ContinuousMethod.AUTO
    refinement_steps: int = 100
    refinement_tolerance: Optional[float] = None
    seeding: SeedingMethod = SeedingMethod.UNIFORM
    empty_cluster_policy: EmptyClusterPolicy = EmptyClusterPolicy.RESEED_FARTHEST
    max_iterations: int = 100
    min_improvement: Optional[float] = None
    restarts: int = 1
    random_seed: Optional[int] = None
    max_time: float = 0.0
    num_workers: Optional[int] = None
    verbose: bool = False
    compute_lower_bound: bool = False

    def __post_init__(self):
        self.candidate_policy = _coerce(CandidatePolicy, self.candidate_policy, "candidate_policy")
        self.candidate_scope = _coerce(CandidateScope, self.candidate_scope, "candidate_scope")
        self.continuous_method = _coerce(ContinuousMethod, self.continuous_method, "continuous_method")
        self.seeding = _coerce(SeedingMethod, self.seeding, "seeding")
        self.empty_cluster_policy = _coerce(
            EmptyClusterPolicy, self.empty_cluster_policy, "empty_cluster_policy"
        )

        if self.refinement_tolerance is None:
            self.refinement_tolerance = global_config.get_tolerance("refinement")
        if self.min_improvement is None:
            self.min_improvement = global_config.get_tolerance("improvement")
        if self.num_workers is None:
            self.num_workers = global_config.num_workers

        for name in ("max_iterations", "restarts", "refinement_steps", "num_workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidInputError(f"{name} must be a positive integer, got {value!r}")

        for name in ("min_improvement", "max_time", "refinement_tolerance"):
            value = getattr(self, name)
            if not value >= 0:
                raise InvalidInputError(f"{name} must be non-negative, got {value!r}")

        if (self.candidate_policy == CandidatePolicy.DISCRETE
                and self.seeding == SeedingMethod.BOUNDING_BOX):
            raise InvalidInputError(
                "Bounding-box seeding places centers off node positions; "
                "it requires candidate_policy='continuous'"
            )

    @property
    def is_discrete(self) -> bool:
        return self.candidate_policy == CandidatePolicy.DISCRETE


# Type alias for callback functions
SearchCallback = Callable[['LocalSearch', SearchIteration], bool]


class LocalSearch:
    """
    One Seeding -> Iterating -> Converged run.

    Example:
        >>> run = LocalSearch(problem, KMedianConfig(max_iterations=50), seed=7)
        >>> result = run.run()
        >>> print(result.reason.name, result.cost)

    Customization:
        >>> run = LocalSearch(problem)
        >>> run.set_seeder(FarthestPointSeeder())
        >>> run.set_update(PatternSearchUpdate(problem.distance))
        >>> run.set_initial_centers([(0, 0), (10, 10)])

    Callbacks:
        Called after every iteration with the LocalSearch and the
        SearchIteration; return False to stop the run (CANCELLED).
    """

    def __init__(
        self,
        problem: KMedianProblem,
        config: Optional[KMedianConfig] = None,
        seed: Optional[int] = None,
        restart: int = 0,
    ):
        """
        Initialize the run.

        Args:
            problem: The problem to solve
            config: Configuration (uses defaults if not provided)
            seed: Seed for this run's random source
            restart: Restart index reported on the result
        """
        self._problem = problem
        self._config = config or KMedianConfig()
        self._seed = seed
        self._restart = restart

        # Components (created lazily or set externally)
        self._seeder: Optional[Seeder] = None
        self._update: Optional[CenterUpdate] = None
        self._initial_centers: Optional[List[Point]] = None

        self._callbacks: List[SearchCallback] = []

        self._result: Optional[RunResult] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def problem(self) -> KMedianProblem:
        return self._problem

    @property
    def config(self) -> KMedianConfig:
        return self._config

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    @property
    def restart(self) -> int:
        return self._restart

    @property
    def update(self) -> Optional[CenterUpdate]:
        """The center update in use (None before the run starts)."""
        return self._update

    @property
    def is_solved(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> Optional[RunResult]:
        return self._result

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_seeder(self, seeder: Seeder) -> None:
        """Use a custom seeding policy."""
        self._seeder = seeder

    def set_update(self, update: CenterUpdate) -> None:
        """Use a custom center update."""
        self._update = update

    def set_initial_centers(self, centers: Iterable[PointLike]) -> None:
        """
        Start from given centers instead of seeding (warm start).

        Args:
            centers: Exactly k positions; node positions under the
                discrete policy

        Raises:
            InvalidInputError: On wrong count, dimension or positions
        """
        points = [as_point(c) for c in centers]
        if len(points) != self._problem.k:
            raise InvalidInputError(
                f"Expected {self._problem.k} initial centers, got {len(points)}"
            )
        for p in points:
            if p.dim != self._problem.dimension:
                raise InvalidInputError(
                    f"Initial center {p!r} has dimension {p.dim}, "
                    f"problem has {self._problem.dimension}"
                )
        if self._config.is_discrete:
            allowed = set(self._problem.distinct_positions)
            outside = [p for p in points if p not in allowed]
            if outside:
                raise InvalidInputError(
                    f"Discrete policy requires centers on node positions; got {outside[0]!r}"
                )
        self._initial_centers = points

    def add_callback(self, callback: SearchCallback) -> None:
        """
        Add a callback function.

        Args:
            callback: Function taking (LocalSearch, SearchIteration) -> bool
        """
        self._callbacks.append(callback)

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def run(
        self,
        deadline: Optional[float] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> RunResult:
        """
        Run the local search.

        Args:
            deadline: Absolute time.time() at which to stop (TIME_LIMIT)
            stop_event: Shared event; once set the run stops (CANCELLED)

        Returns:
            RunResult with the final centers, assignment and history
        """
        start_time = time.time()
        self._initialize()

        rng = random.Random(self._seed)
        problem = self._problem
        nodes = problem.nodes

        # Seeding
        if self._initial_centers is not None:
            centers = list(self._initial_centers)
        else:
            centers = self._seeder.seed(problem, rng)

        assignment = assign(nodes, centers, problem.distance)
        initial_cost = assignment.cost

        best_centers, best_assignment = list(centers), assignment
        history: List[SearchIteration] = []
        reason = TerminationReason.ITERATION_LIMIT
        empty_events = 0

        # Iterating
        for iteration in range(1, self._config.max_iterations + 1):
            if stop_event is not None and stop_event.is_set():
                reason = TerminationReason.CANCELLED
                break
            if deadline is not None and time.time() >= deadline:
                reason = TerminationReason.TIME_LIMIT
                break

            clusters = assignment.clusters()
            empty = [i for i, members in enumerate(clusters) if not members]

            new_centers = list(centers)
            if empty:
                empty_events += len(empty)
                new_centers = self._resolve_empty(new_centers, empty, assignment, rng)
                if self._config.verbose:
                    print(
                        f"[restart {self._restart}] Iteration {iteration}: "
                        f"{len(empty)} empty cluster(s) "
                        f"({self._config.empty_cluster_policy.value})"
                    )

            for i, members in enumerate(clusters):
                if members:
                    new_centers[i] = self._update.update(
                        [nodes[j] for j in members], centers[i]
                    )

            new_assignment = assign(nodes, new_centers, problem.distance)
            improvement = assignment.cost - new_assignment.cost
            moved = sum(1 for old, new in zip(centers, new_centers) if old != new)

            iter_info = SearchIteration(
                iteration=iteration,
                cost=new_assignment.cost,
                improvement=improvement,
                centers_moved=moved,
                empty_clusters=len(empty),
                elapsed=time.time() - start_time,
            )
            history.append(iter_info)

            centers, assignment = new_centers, new_assignment
            if assignment.cost <= best_assignment.cost:
                best_centers, best_assignment = list(centers), assignment

            if self._config.verbose:
                print(
                    f"[restart {self._restart}] Iteration {iteration}: "
                    f"cost={assignment.cost:.4f}, "
                    f"improvement={improvement:.4g}, "
                    f"moved={moved}"
                )

            if not self._invoke_callbacks(iter_info):
                reason = TerminationReason.CANCELLED
                break

            # Converged
            if moved == 0 or improvement <= self._config.min_improvement:
                reason = TerminationReason.CONVERGED
                break

        if empty_events:
            warnings.warn(
                f"Restart {self._restart}: resolved {empty_events} empty cluster(s) "
                f"with policy '{self._config.empty_cluster_policy.value}'",
                DegenerateClusterWarning,
                stacklevel=2,
            )

        result = RunResult(
            restart=self._restart,
            seed=self._seed,
            centers=best_centers,
            assignment=best_assignment,
            cost=best_assignment.cost,
            initial_cost=initial_cost,
            iterations=len(history),
            reason=reason,
            history=history,
            empty_cluster_events=empty_events,
            solve_time=time.time() - start_time,
        )

        if self._config.verbose:
            print(f"[restart {self._restart}] {reason.name}: cost={result.cost:.4f}")

        self._result = result
        return result

    def _initialize(self) -> None:
        """Validate the problem against the policy and build components."""
        if self._config.is_discrete:
            self._problem.validate_discrete()

        if self._seeder is None:
            self._seeder = make_seeder(self._config.seeding)
        if self._config.is_discrete and not self._seeder.discrete and self._initial_centers is None:
            raise InvalidInputError(
                f"{type(self._seeder).__name__} cannot seed the discrete policy"
            )

        if self._update is None:
            self._update = make_center_update(self._problem, self._config)

    def _resolve_empty(
        self,
        centers: List[Point],
        empty: Sequence[int],
        assignment: Assignment,
        rng: random.Random,
    ) -> List[Point]:
        """
        Apply the empty-cluster policy.

        Args:
            centers: Current centers (copied, modified in place)
            empty: Indices of centers with no assigned node
            assignment: Assignment the clusters came from
            rng: The run's random source

        Returns:
            Centers with empty ones moved (or retained)
        """
        policy = self._config.empty_cluster_policy
        if policy == EmptyClusterPolicy.RETAIN:
            return centers

        problem = self._problem
        nodes = problem.nodes
        occupied = set(centers)

        if policy == EmptyClusterPolicy.RESEED_RANDOM:
            for index in empty:
                unused = [p for p in problem.distinct_positions if p not in occupied]
                if not unused:
                    break
                centers[index] = rng.choice(unused)
                occupied.add(centers[index])
            return centers

        # Reseed on the node that currently costs the most
        nearest = list(assignment.distances)
        for index in empty:
            best_node = -1
            best_score = 0.0
            for i, node in enumerate(nodes):
                score = node.weight * nearest[i]
                if score > best_score and node.point not in occupied:
                    best_score = score
                    best_node = i
            if best_node < 0:
                break

            center = nodes[best_node].point
            centers[index] = center
            occupied.add(center)
            for i, node in enumerate(nodes):
                d = problem.distance(node.point, center)
                if d < nearest[i]:
                    nearest[i] = d

        return centers

    def _invoke_callbacks(self, iteration: SearchIteration) -> bool:
        """
        Invoke all callbacks.

        Returns:
            True to continue, False to stop
        """
        for callback in self._callbacks:
            if not callback(self, iteration):
                return False
        return True

    def __repr__(self) -> str:
        status = "solved" if self.is_solved else "not solved"
        return f"LocalSearch(restart={self._restart}, seed={self._seed}, {status})"


class KMedianSolver:
    """
    Multi-restart k-median solver.

    Runs config.restarts independent LocalSearch runs and keeps the
    cheapest. Seeds for the runs are drawn from config.random_seed, so a
    seeded solve is reproducible regardless of num_workers.

    Example:
        >>> problem = KMedianProblem.from_coordinates(coords, k=3)
        >>> solver = KMedianSolver(problem, KMedianConfig(restarts=10, random_seed=1))
        >>> solution = solver.solve()
        >>> print(solution.summary())

    Callbacks:
        Callbacks are attached to every run and may be called from worker
        threads when num_workers > 1. Returning False stops the current
        run and every restart that has not finished yet; the best solution
        found so far is returned.
    """

    def __init__(
        self,
        problem: KMedianProblem,
        config: Optional[KMedianConfig] = None,
    ):
        """
        Initialize the solver.

        Args:
            problem: The problem to solve
            config: Configuration options (uses defaults if not provided)
        """
        self._problem = problem
        self._config = config or KMedianConfig()

        self._callbacks: List[SearchCallback] = []
        self._initial_centers: Optional[List[PointLike]] = None

        self._solution: Optional[Solution] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def problem(self) -> KMedianProblem:
        return self._problem

    @property
    def config(self) -> KMedianConfig:
        return self._config

    @property
    def is_solved(self) -> bool:
        return self._solution is not None

    @property
    def solution(self) -> Optional[Solution]:
        return self._solution

    # =========================================================================
    # Configuration
    # =========================================================================

    def add_callback(self, callback: SearchCallback) -> None:
        """Add a per-iteration callback to every run."""
        self._callbacks.append(callback)

    def set_initial_centers(self, centers: Iterable[PointLike]) -> None:
        """Warm start the first restart from given centers."""
        self._initial_centers = list(centers)

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def solve(self) -> Solution:
        """
        Run every restart and keep the best.

        Returns:
            Solution with the best run and all run results

        Raises:
            InvalidInputError: If the problem cannot be solved under the
                configured policy
        """
        start_time = time.time()
        config = self._config

        # Fail before any run starts
        if config.is_discrete:
            self._problem.validate_discrete()
        make_center_update(self._problem, config)

        seeds = self.restart_seeds()
        deadline = start_time + config.max_time if config.max_time > 0 else None
        stop_event = threading.Event()
        searches = [self._make_search(r, seed, stop_event) for r, seed in enumerate(seeds)]

        if config.num_workers > 1 and len(searches) > 1:
            runs = self._run_parallel(searches, deadline, stop_event)
        else:
            runs = self._run_sequential(searches, deadline, stop_event)

        solution = Solution.from_runs(runs)
        solution.metadata.update({
            "candidate_policy": config.candidate_policy.value,
            "seeding": config.seeding.value,
            "empty_cluster_policy": config.empty_cluster_policy.value,
            "restarts_requested": config.restarts,
            "restarts_completed": len(runs),
            "seeds": seeds,
            "stopped_early": stop_event.is_set() or len(runs) < config.restarts,
        })

        if config.compute_lower_bound and solution.is_solved:
            self._attach_lower_bound(solution)

        solution.total_time = time.time() - start_time

        if config.verbose:
            print(solution.summary())

        self._solution = solution
        return solution

    def restart_seeds(self) -> List[int]:
        """
        Seeds for each restart, derived from config.random_seed.

        Returns:
            One 32-bit seed per restart
        """
        master = random.Random(self._config.random_seed)
        return [master.randrange(2 ** 32) for _ in range(self._config.restarts)]

    def _make_search(
        self,
        restart: int,
        seed: int,
        stop_event: threading.Event,
    ) -> LocalSearch:
        search = LocalSearch(self._problem, self._config, seed=seed, restart=restart)
        if restart == 0 and self._initial_centers is not None:
            search.set_initial_centers(self._initial_centers)

        def stop_all(run: LocalSearch, iteration: SearchIteration) -> bool:
            for callback in self._callbacks:
                if not callback(run, iteration):
                    stop_event.set()
                    return False
            return True

        if self._callbacks:
            search.add_callback(stop_all)
        return search

    def _run_sequential(
        self,
        searches: List[LocalSearch],
        deadline: Optional[float],
        stop_event: threading.Event,
    ) -> List[RunResult]:
        runs = []
        for search in searches:
            if runs and (stop_event.is_set() or self._past(deadline)):
                break
            runs.append(search.run(deadline=deadline, stop_event=stop_event))
        return runs

    def _run_parallel(
        self,
        searches: List[LocalSearch],
        deadline: Optional[float],
        stop_event: threading.Event,
    ) -> List[RunResult]:
        def task(search: LocalSearch) -> Optional[RunResult]:
            # Restarts that have not begun when the solve is stopped are skipped
            if search.restart > 0 and (stop_event.is_set() or self._past(deadline)):
                return None
            return search.run(deadline=deadline, stop_event=stop_event)

        with ThreadPoolExecutor(max_workers=self._config.num_workers) as executor:
            futures = [executor.submit(task, s) for s in searches]
            results = [f.result() for f in futures]

        return [r for r in results if r is not None]

    @staticmethod
    def _past(deadline: Optional[float]) -> bool:
        return deadline is not None and time.time() >= deadline

    def _attach_lower_bound(self, solution: Solution) -> None:
        from stationplan.bounds import compute_lower_bound

        bound = compute_lower_bound(
            self._problem,
            self._config.candidate_policy,
            verbosity=1 if self._config.verbose else 0,
        )
        solution.metadata["lower_bound_status"] = bound.status.name
        if bound.value is not None:
            solution.lower_bound = bound.value
            solution.gap = (solution.cost - bound.value) / max(abs(solution.cost), 1e-6)

    def summary(self) -> str:
        """
        Return a human-readable summary.
        """
        lines = [
            f"KMedianSolver: {self._problem!r}",
            "  Config:",
            f"    Candidate policy: {self._config.candidate_policy.value}",
            f"    Seeding: {self._config.seeding.value}",
            f"    Max iterations: {self._config.max_iterations}",
            f"    Restarts: {self._config.restarts}",
        ]

        if self._solution is not None:
            lines.extend(["", self._solution.summary()])
        else:
            lines.append("\n  Status: Not yet solved")

        return "\n".join(lines)

    def __repr__(self) -> str:
        status = "solved" if self.is_solved else "not solved"
        return f"KMedianSolver(problem={self._problem!r}, {status})"


def solve_k_median(
    pairs: Iterable[Tuple[PointLike, float]],
    k: int,
    metric: Metric = euclidean,
    **options,
) -> Solution:
    """
    Solve a k-median instance in one call.

    Args:
        pairs: (point, weight) pairs
        k: Number of stations
        metric: Distance function
        **options: Any KMedianConfig field

    Returns:
        The best Solution over all restarts

    Example:
        >>> solution = solve_k_median(
        ...     [((0, 0), 1), ((0, 10), 1), ((10, 0), 1), ((10, 10), 1)],
        ...     k=1,
        ...     candidate_policy="continuous",
        ... )
        >>> round(solution.cost, 2)
        28.28
    """
    problem = KMedianProblem.from_pairs(pairs, k, metric=metric)
    return KMedianSolver(problem, KMedianConfig(**options)).solve()
