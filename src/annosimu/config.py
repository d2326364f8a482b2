"""
Simulation configuration.

Defines the immutable SimulationConfig bundle that drives the random
perturbation of a disease's annotation set.
"""

from dataclasses import dataclass

# Upper bound on the number of draws the noise stage may spend per call.
DEFAULT_MAX_NOISE_DRAWS = 100_000


class ConfigurationError(ValueError):
    """Raised when a SimulationConfig violates its constraints."""


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters of the query modification.

    Attributes:
        seed: Seed for the random number generator of the modifier.
        min_query_size: Smallest number of terms in a simulated query.
        max_query_size: Largest number of terms in a simulated query.
        noise_fraction: Fraction of noise terms to add, in [0.0, 1.0].
        map_up_probability: Chance of a term being mapped up, in [0.0, 1.0].
        max_noise_draws: Number of random draws the noise stage may spend
            before giving up with a NoiseSaturationError.
    """

    seed: int = 1
    min_query_size: int = 1
    max_query_size: int = 5
    noise_fraction: float = 0.05
    map_up_probability: float = 0.05
    max_noise_draws: int = DEFAULT_MAX_NOISE_DRAWS

    def __post_init__(self):
        if self.min_query_size > self.max_query_size:
            raise ConfigurationError(
                f"min_query_size <= max_query_size expected, got {self.min_query_size} > {self.max_query_size}"
            )

        if not 0.0 <= self.noise_fraction <= 1.0:
            raise ConfigurationError(
                f"Noise fraction must be between 0.0 and 1.0, but got: {self.noise_fraction}"
            )

        if not 0.0 <= self.map_up_probability <= 1.0:
            raise ConfigurationError(
                f"Probability for mapping up must be between 0.0 and 1.0, but got: {self.map_up_probability}"
            )

        if self.max_noise_draws < 1:
            raise ConfigurationError(
                f"max_noise_draws must be positive, but got: {self.max_noise_draws}"
            )
