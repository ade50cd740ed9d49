"""
Keplerian (point-mass) contribution.
"""

from .force_model import ForceModel, central_attraction_driver


class NewtonianAttraction(ForceModel):
    """
    Point-mass attraction of the central body.

    The only nonzero mean-element rate is the Keplerian mean motion
    ``dλ/dt = sqrt(μ/a³)``.  There are no short-period terms.

    Parameters
    ----------
    mu : float
        Central body gravitational parameter [km³/s²]
    """

    def __init__(self, mu):
        super().__init__("Newtonian attraction")
        if mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {mu}")
        self._mu_driver = central_attraction_driver(mu)

    @property
    def mu(self):
        return self._mu_driver.value

    def get_parameters_drivers(self):
        return [self._mu_driver]

    def get_mean_element_rate(self, state, aux, parameters):
        _, n = self.radicals(aux, self.central_mu(parameters))
        return [0.0, 0.0, 0.0, 0.0, 0.0, n]
