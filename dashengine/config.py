"""Configuration classes for dashengine solvers."""

from dataclasses import dataclass

from dashengine.types.base import MIN_FLOW


@dataclass(frozen=True)
class SolverConfig:
    """Sizing thresholds and numeric tolerances shared by the solvers."""

    # Largest tour (start included) handed to Held-Karp
    exact_tour_max_nodes: int = 12

    # Largest customer count handed to the set-partition routing DP
    exact_routing_max_customers: int = 10

    # Floor applied to every effective edge weight
    weight_epsilon: float = 0.1

    # Minimum gain for a 2-opt reversal to count as an improvement
    two_opt_tolerance: float = 1e-6

    # Quantities closer than this are considered equal in flow problems
    flow_tolerance: float = MIN_FLOW

    # Routing defaults when a scenario leaves them unset
    default_vehicle_capacity: float = 8
    default_customer_demand: float = 1

    def use_exact_tour(self, num_nodes: int) -> bool:
        """Whether a tour over ``num_nodes`` (start included) runs Held-Karp."""
        return num_nodes <= self.exact_tour_max_nodes

    def use_exact_routing(self, num_customers: int) -> bool:
        """Whether a routing instance runs the set-partition DP."""
        return num_customers <= self.exact_routing_max_customers


# Global configuration instance
DEFAULT_CONFIG = SolverConfig()
