"""
Weighted farthest-point seeding.

The first center is a node drawn with probability proportional to its
weight. Each further center is placed on the node with the largest
weight * distance to its nearest chosen center, i.e. the node that
currently contributes most to the cost. This spreads the seeds over the
heavy parts of the demand and avoids starting two centers in one cluster.

Ties go to the lowest node index, so after the first draw the procedure
is deterministic. Nodes sitting on an already chosen position score 0 and
are never picked while any other node scores above 0.
"""

import random
from typing import List

from stationplan.core.point import Point
from stationplan.core.problem import KMedianProblem
from stationplan.seeding.base import Seeder


class FarthestPointSeeder(Seeder):
    """Weighted farthest-point heuristic."""

    def _seed_impl(self, problem: KMedianProblem, rng: random.Random) -> List[Point]:
        nodes = problem.nodes
        weights = [n.weight for n in nodes]

        if sum(weights) > 0:
            first = rng.choices(range(len(nodes)), weights=weights, k=1)[0]
        else:
            first = rng.randrange(len(nodes))

        centers = [nodes[first].point]
        chosen = {nodes[first].point}
        nearest = [problem.distance(n.point, centers[0]) for n in nodes]

        while len(centers) < problem.k:
            best_index = -1
            best_score = 0.0
            for i, node in enumerate(nodes):
                score = node.weight * nearest[i]
                if score > best_score and node.point not in chosen:
                    best_score = score
                    best_index = i

            if best_index >= 0:
                center = nodes[best_index].point
            else:
                # Remaining nodes are weightless or already covered
                unused = [p for p in problem.distinct_positions if p not in chosen]
                center = unused[0] if unused else rng.choice(centers)

            centers.append(center)
            chosen.add(center)
            for i, node in enumerate(nodes):
                d = problem.distance(node.point, center)
                if d < nearest[i]:
                    nearest[i] = d

        return centers
