"""
Short-period corrections.

The osculating orbit is the mean orbit plus a sum of periodic terms

    η_i = Σ_k c_ik cos φ_k + s_ik sin φ_k,    φ_k = j_k λ - m_k Θ

over frequency pairs ``(j, m)`` of the mean longitude λ and of the central
body rotation angle Θ (``m = 0`` for terms that depend on λ alone).  The
amplitudes ``c_ik, s_ik`` change slowly with the mean orbit, so a
:class:`ShortPeriodTerms` object stores them in time-keyed slots filled
along a propagation and interpolates between stored epochs.
"""

import bisect
import logging

import numpy as np

from .differentiation import sin, cos
from .state import PropagationType
from .utils import ConfigurationError

logger = logging.getLogger(__name__)


def series_value(frequencies, cos_amplitudes, sin_amplitudes, lm, theta=0.0):
    """
    Evaluate a short-period series.

    Parameters
    ----------
    frequencies : sequence of (int, int)
        Pairs ``(j, m)``
    cos_amplitudes, sin_amplitudes : 6 x K nested sequences
        Amplitudes per element and frequency (floats or tensors)
    lm : float or tensor
        Mean longitude
    theta : float or tensor, optional
        Central body rotation angle (unused when every ``m`` is 0)

    Returns
    -------
    list
        Six corrections ``[da, dex, dey, dhx, dhy, dlm]``
    """
    eta = [0.0] * 6
    for k, (j, m) in enumerate(frequencies):
        phi = j * lm - m * theta if m else j * lm
        c_phi = cos(phi)
        s_phi = sin(phi)
        for i in range(6):
            eta[i] = eta[i] + cos_amplitudes[i][k] * c_phi + sin_amplitudes[i][k] * s_phi
    return eta


class ShortPeriodTerms:
    """
    Short-period correction of one force model.

    Parameters
    ----------
    name : str
        Name of the owning force model
    propagation_type : PropagationType or str
        Mode fixed at construction
    frequencies : sequence of (int, int)
        Frequency pairs ``(j, m)`` of the series
    angle_function : callable, optional
        ``epoch -> Θ``; required when some ``m`` differs from 0

    Notes
    -----
    Coefficients are stored in slots, each covering the epochs of one
    :meth:`add_slot` call.  A query is answered by the slot with the latest
    start epoch not after the query epoch, by linear interpolation between
    its stored epochs (clamped at both ends).  Adding a slot never alters
    the existing ones.
    """

    def __init__(self, name, propagation_type, frequencies, angle_function=None):
        self._name = name
        self._type = PropagationType.parse(propagation_type)
        self._frequencies = [tuple(int(x) for x in pair) for pair in frequencies]
        if angle_function is None and any(m != 0 for _, m in self._frequencies):
            raise ConfigurationError(
                f"Short-period terms of '{name}' depend on the body rotation angle "
                f"but no angle function was given")
        self._angle_function = angle_function
        self._starts = []
        self._slots = []

    # ========== PROPERTY ACCESS ==========
    @property
    def name(self):
        return self._name

    @property
    def propagation_type(self):
        return self._type

    @property
    def frequencies(self):
        return list(self._frequencies)

    @property
    def slot_count(self):
        return len(self._slots)

    @property
    def slot_spans(self):
        """List of ``(first epoch, last epoch)`` per slot, sorted by start."""
        return [(float(epochs[0]), float(epochs[-1])) for epochs, _ in self._slots]

    # ========== SLOTS ==========
    def clear(self):
        """Drop every stored slot."""
        self._starts = []
        self._slots = []

    def add_slot(self, epochs, amplitudes):
        """
        Store the amplitudes computed at a batch of epochs.

        Parameters
        ----------
        epochs : array-like, shape (N,)
            Increasing epochs [s]
        amplitudes : array-like, shape (N, 2, 6, K)
            Cosine (index 0) and sine (index 1) amplitudes at each epoch
        """
        epochs = np.array(epochs, dtype=float)
        amplitudes = np.array(amplitudes, dtype=float)
        if epochs.ndim != 1 or epochs.size == 0:
            raise ValueError("A short-period slot needs a non-empty 1-D epoch array")
        if amplitudes.shape != (epochs.size, 2, 6, len(self._frequencies)):
            raise ValueError(
                f"Amplitude array shape {amplitudes.shape} does not match "
                f"({epochs.size}, 2, 6, {len(self._frequencies)})")
        order = np.argsort(epochs, kind='stable')
        epochs = epochs[order]
        amplitudes = amplitudes[order]
        epochs.flags.writeable = False
        amplitudes.flags.writeable = False
        i = bisect.bisect_right(self._starts, epochs[0])
        self._starts.insert(i, float(epochs[0]))
        self._slots.insert(i, (epochs, amplitudes))
        logger.debug("Short-period slot added to '%s': %d epochs from t = %s",
                     self._name, epochs.size, epochs[0])

    def get_amplitudes(self, epoch):
        """Interpolated ``(2, 6, K)`` amplitude array at ``epoch``."""
        self._check_mode()
        if not self._slots:
            raise ConfigurationError(
                f"Short-period terms of '{self._name}' hold no coefficients yet")
        i = max(bisect.bisect_right(self._starts, epoch) - 1, 0)
        epochs, amplitudes = self._slots[i]
        if epochs.size == 1 or epoch <= epochs[0]:
            return amplitudes[0]
        if epoch >= epochs[-1]:
            return amplitudes[-1]
        k = int(np.searchsorted(epochs, epoch)) - 1
        w = (epoch - epochs[k]) / (epochs[k + 1] - epochs[k])
        return (1.0 - w) * amplitudes[k] + w * amplitudes[k + 1]

    def value(self, epoch, mean_elements):
        """
        Osculating minus mean elements at ``epoch``.

        Raises
        ------
        ConfigurationError
            If the terms were built for a MEAN propagation
        """
        amplitudes = self.get_amplitudes(epoch)
        theta = self._angle_function(epoch) if self._angle_function is not None else 0.0
        eta = series_value(self._frequencies, amplitudes[0], amplitudes[1],
                           float(mean_elements[5]), theta)
        return np.array(eta, dtype=float)

    def _check_mode(self):
        if self._type is not PropagationType.OSCULATING:
            raise ConfigurationError(
                f"Short-period terms of '{self._name}' were built for a "
                f"{self._type.value} propagation and cannot be evaluated")

    def __repr__(self):
        return (f"ShortPeriodTerms('{self._name}', {self._type.value}, "
                f"{len(self._frequencies)} frequencies, {len(self._slots)} slots)")
