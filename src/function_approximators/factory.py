from .base_function_approximator import FunctionApproximator
from .lwr import FunctionApproximatorLWR
from .rbfn import FunctionApproximatorRBFN

FUNCTION_APPROXIMATOR_TYPES = {
    "rbfn": FunctionApproximatorRBFN,
    "lwr": FunctionApproximatorLWR,
}


def create_function_approximator(
    kind: str,
    n_basis_functions: int = 10,
    intersection_height: float = 0.5,
    regularization: float = 0.0,
) -> FunctionApproximator:
    """Factory method to create an untrained function approximator by name."""
    try:
        cls = FUNCTION_APPROXIMATOR_TYPES[kind.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown function approximator type: {kind}. "
            f"Choose from {sorted(FUNCTION_APPROXIMATOR_TYPES)}"
        ) from None
    return cls(
        n_basis_functions=n_basis_functions,
        intersection_height=intersection_height,
        regularization=regularization,
    )
