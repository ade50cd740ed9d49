"""
Estimable force-model parameters.

A :class:`ParameterDriver` owns the current value of one physical parameter
(drag coefficient, gravitational parameter, ...).  Force models read drivers
fresh on every evaluation; selection and value changes belong to the caller.
"""

import bisect
import logging

import numpy as np

from .utils import validation_error

logger = logging.getLogger(__name__)

# driver names shared between force models
CENTRAL_ATTRACTION_COEFFICIENT = "central attraction coefficient"
DRAG_COEFFICIENT = "drag coefficient"
REFLECTION_COEFFICIENT = "reflection coefficient"
ATTRACTION_COEFFICIENT_SUFFIX = " attraction coefficient"


class ParameterDriver:
    """
    Value holder for one estimable parameter.

    Parameters
    ----------
    name : str
        Parameter name; drivers with the same name share one Jacobian column
    reference_value : float
        Reference (initial) value
    scale : float
        Typical variation, also the finite-difference step
    min_value, max_value : float, optional
        Allowed range (default: unbounded)

    Notes
    -----
    Values may change over time: :meth:`add_span` registers a value valid
    from a given epoch onward and :meth:`value_at` returns the value in force
    at an epoch.

    Examples
    --------
    >>> cd = ParameterDriver("drag coefficient", 2.2, 0.1, 0.0)
    >>> cd.add_span(3600.0, 2.4)
    >>> cd.value_at(0.0), cd.value_at(7200.0)
    (2.2, 2.4)
    """

    def __init__(self, name, reference_value, scale, min_value=-np.inf, max_value=np.inf):
        if scale <= 0:
            raise ValueError(f"Parameter scale must be positive, got {scale}")
        if min_value > max_value:
            raise ValueError(f"Invalid range [{min_value}, {max_value}] for '{name}'")
        self._name = name
        self._reference_value = float(reference_value)
        self._scale = float(scale)
        self._min = float(min_value)
        self._max = float(max_value)
        self._selected = False
        self._value = self._clip(reference_value)
        self._span_epochs = []
        self._span_values = []

    # ========== PROPERTY ACCESS ==========
    @property
    def name(self):
        return self._name

    @property
    def reference_value(self):
        return self._reference_value

    @property
    def scale(self):
        return self._scale

    @property
    def min_value(self):
        return self._min

    @property
    def max_value(self):
        return self._max

    @property
    def selected(self):
        """Whether the parameter is estimated (gets a Jacobian column)."""
        return self._selected

    @selected.setter
    def selected(self, flag):
        self._selected = bool(flag)

    @property
    def value(self):
        """Value before the first span."""
        return self._value

    @value.setter
    def value(self, new_value):
        self._value = self._clip(new_value)

    @property
    def normalized_value(self):
        return (self._value - self._reference_value) / self._scale

    # ========== TIME SPANS ==========
    def add_span(self, epoch, value):
        """Make ``value`` the parameter value from ``epoch`` onward."""
        epoch = float(epoch)
        i = bisect.bisect_left(self._span_epochs, epoch)
        if i < len(self._span_epochs) and self._span_epochs[i] == epoch:
            self._span_values[i] = self._clip(value)
        else:
            self._span_epochs.insert(i, epoch)
            self._span_values.insert(i, self._clip(value))
        logger.debug("Parameter '%s' set to %s from t = %s", self._name, value, epoch)

    @property
    def spans(self):
        """List of ``(start epoch, value)``, the first entry starting at -inf."""
        return [(-np.inf, self._value)] + list(zip(self._span_epochs, self._span_values))

    def value_at(self, epoch=None):
        """Value in force at ``epoch`` (the base value when ``epoch`` is None)."""
        if epoch is None or not self._span_epochs:
            return self._value
        i = bisect.bisect_right(self._span_epochs, float(epoch))
        return self._value if i == 0 else self._span_values[i - 1]

    def _clip(self, value):
        value = float(value)
        if value < self._min or value > self._max:
            validation_error(
                f"Value {value} of '{self._name}' outside [{self._min}, {self._max}]")
            value = min(max(value, self._min), self._max)
        return value

    def __repr__(self):
        flag = ", selected" if self._selected else ""
        return f"ParameterDriver('{self._name}', value={self._value}{flag})"


def merge_selected_drivers(force_models):
    """
    Selected drivers of several force models, one per distinct name.

    Order is the registration order of the force models, then the driver
    order within each model.

    Returns
    -------
    list of str
        Distinct names of the selected drivers
    """
    names = []
    for model in force_models:
        for driver in model.get_parameters_drivers():
            if driver.selected and driver.name not in names:
                names.append(driver.name)
    return names
