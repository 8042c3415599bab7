"""Function approximators mapping a phase signal to a scalar output.

Usage:
    from dmp_bbo.function_approximators import FunctionApproximatorRBFN

    fa = FunctionApproximatorRBFN(n_basis_functions=10)
    fa.train(inputs, targets)
    fa.set_selected_parameters({"weights"})
    w = fa.get_parameter_vector_selected()
    fa.set_parameter_vector_selected(w + 0.1)
"""

from .base_function_approximator import FunctionApproximator
from .factory import FUNCTION_APPROXIMATOR_TYPES, create_function_approximator
from .least_squares import batch_least_squares, weighted_least_squares
from .lwr import FunctionApproximatorLWR
from .rbfn import FunctionApproximatorRBFN

__all__ = [
    "FunctionApproximator",
    "FunctionApproximatorLWR",
    "FunctionApproximatorRBFN",
    "FUNCTION_APPROXIMATOR_TYPES",
    "create_function_approximator",
    "batch_least_squares",
    "weighted_least_squares",
]
