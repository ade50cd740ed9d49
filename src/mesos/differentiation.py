"""
Automatic differentiation of the generic physics formulas.

The mean-element rates and the short-period corrections are written once,
generically over the numeric type they receive.  Plain ``float`` inputs give
plain values; ``torch`` tensors recording autograd give tensors from which
:func:`jacobian` extracts first-order partial derivatives with respect to a
fixed set of free variables (the six mean equinoctial elements followed by
the selected force-model parameters).

The module level functions (``sqrt``, ``sin``, ``atan2``, ...) dispatch on the
argument type so the same physics code serves both cases.

Examples
--------
>>> from mesos.differentiation import independent_variables, jacobian, sqrt, value_of
>>> variables = independent_variables([4.0, 3.0])
>>> x, y = variables
>>> r = sqrt(x * x + y * y)
>>> value_of(r), jacobian([r], variables)
(5.0, array([[0.8, 0.6]]))
"""

import math

import numpy as np
import torch

DTYPE = torch.float64


# ========== DISPATCH HELPERS ==========
def is_differentiable(x):
    """True if ``x`` records operations for automatic differentiation."""
    return torch.is_tensor(x)


def value_of(x):
    """Plain float value of a float or tensor."""
    return x.item() if torch.is_tensor(x) else float(x)


def sqrt(x):
    return torch.sqrt(x) if torch.is_tensor(x) else math.sqrt(x)


def exp(x):
    return torch.exp(x) if torch.is_tensor(x) else math.exp(x)


def log(x):
    return torch.log(x) if torch.is_tensor(x) else math.log(x)


def sin(x):
    return torch.sin(x) if torch.is_tensor(x) else math.sin(x)


def cos(x):
    return torch.cos(x) if torch.is_tensor(x) else math.cos(x)


def tan(x):
    return torch.tan(x) if torch.is_tensor(x) else math.tan(x)


def atan(x):
    return torch.atan(x) if torch.is_tensor(x) else math.atan(x)


def asin(x):
    return torch.asin(x) if torch.is_tensor(x) else math.asin(x)


def acos(x):
    return torch.acos(x) if torch.is_tensor(x) else math.acos(x)


def atan2(y, x):
    if torch.is_tensor(y) or torch.is_tensor(x):
        return torch.atan2(torch.as_tensor(y, dtype=DTYPE), torch.as_tensor(x, dtype=DTYPE))
    return math.atan2(y, x)


def power(x, exponent):
    """
    ``x ** exponent`` with IEEE semantics for a zero base.

    A zero base raised to a negative exponent yields a signed infinity
    instead of raising ``ZeroDivisionError``.
    """
    if torch.is_tensor(x):
        if exponent == 0:
            return x * 0.0 + 1.0
        return torch.pow(x, exponent)
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.float64(x) ** exponent)


def dot(u, v):
    """Scalar product of two 3-sequences of generic numbers."""
    return u[0] * v[0] + u[1] * v[1] + u[2] * v[2]


def norm(u):
    """Euclidean norm of a 3-sequence of generic numbers."""
    return sqrt(dot(u, u))


def cross(u, v):
    """Vector product of two 3-sequences of generic numbers."""
    return (u[1] * v[2] - u[2] * v[1],
            u[2] * v[0] - u[0] * v[2],
            u[0] * v[1] - u[1] * v[0])


def scale(factor, u):
    """Product of a scalar and a 3-sequence."""
    return (factor * u[0], factor * u[1], factor * u[2])


def combine(*terms):
    """Linear combination ``Σ c_i u_i`` of (coefficient, 3-sequence) pairs."""
    x = y = z = 0.0
    for c, u in terms:
        x = x + c * u[0]
        y = y + c * u[1]
        z = z + c * u[2]
    return (x, y, z)


# ========== FREE VARIABLES ==========
def independent_variables(values):
    """
    Leaf tensor of free variables.

    Iterating or indexing the result gives scalar tensors that feed the
    generic formulas; :func:`jacobian` differentiates with respect to it.

    Parameters
    ----------
    values : sequence of float
        Values of the free variables, in index order

    Returns
    -------
    torch.Tensor, shape (N,)
    """
    return torch.tensor([float(v) for v in values], dtype=DTYPE, requires_grad=True)


def jacobian(outputs, variables):
    """
    Partial derivatives of generic outputs with respect to free variables.

    Parameters
    ----------
    outputs : sequence
        Floats or tensors computed from ``variables``; floats and tensors that
        do not depend on them give zero rows
    variables : torch.Tensor, shape (N,)
        Leaf tensor from :func:`independent_variables`

    Returns
    -------
    numpy.ndarray, shape (len(outputs), N)
    """
    rows = np.zeros((len(outputs), variables.numel()))
    for i, output in enumerate(outputs):
        if torch.is_tensor(output) and output.requires_grad:
            (grad,) = torch.autograd.grad(output, variables, retain_graph=True,
                                          allow_unused=True)
            if grad is not None:
                rows[i] = grad.detach().numpy()
    return rows
