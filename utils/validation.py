"""
Custom validation utilities for simulation parameters.

The engine itself accepts any numerically typed parameters. These checks
apply the ranges a host form allows and are switched on in the worker with
``settings.strict_parameter_validation``.
"""

from typing import List

from schemas.simulation import SimulationParameters


def validate_initial_population(value: int) -> int:
    """
    Validate initial population is within acceptable limits.

    Args:
        value: Initial population to validate

    Returns:
        Validated initial population

    Raises:
        ValueError: If initial population is invalid
    """
    if value < 1:
        raise ValueError("Population must be at least 1")
    if value > 1000:
        raise ValueError("Population cannot exceed 1000")
    return value


def validate_growth_rate(value: float) -> float:
    """
    Validate growth rate is a positive fraction.

    Raises:
        ValueError: If growth rate is invalid
    """
    if value < 0.001:
        raise ValueError("Growth rate must be positive")
    if value > 1.0:
        raise ValueError("Growth rate cannot exceed 100%")
    return value


def validate_antibiotic_concentration(value: float) -> float:
    """
    Validate antibiotic concentration is within [0, 1].

    Raises:
        ValueError: If concentration is invalid
    """
    if value < 0.0:
        raise ValueError("Concentration cannot be negative")
    if value > 1.0:
        raise ValueError("Concentration cannot exceed 100%")
    return value


def validate_mutation_rate(value: float) -> float:
    """
    Validate mutation rate is within [0, 0.1].

    Raises:
        ValueError: If mutation rate is invalid
    """
    if value < 0.0:
        raise ValueError("Mutation rate cannot be negative")
    if value > 0.1:
        raise ValueError("Mutation rate cannot exceed 10%")
    return value


def validate_duration(value: int) -> int:
    """
    Validate duration is within acceptable limits.

    Raises:
        ValueError: If duration is invalid
    """
    if value < 1:
        raise ValueError("Duration must be at least 1 generation")
    if value > 1000:
        raise ValueError("Duration cannot exceed 1000 generations")
    return value


def validate_petri_dish_size(value: float) -> float:
    """
    Validate dish diameter is a whole number within [100, 800].

    Raises:
        ValueError: If dish size is invalid
    """
    if not float(value).is_integer():
        raise ValueError("Petri dish size must be a whole number")
    if value < 100:
        raise ValueError("Petri dish size must be at least 100px")
    if value > 800:
        raise ValueError("Petri dish size cannot exceed 800px")
    return value


_FIELD_VALIDATORS = (
    ("initialPopulation", "initial_population", validate_initial_population),
    ("growthRate", "growth_rate", validate_growth_rate),
    ("antibioticConcentration", "antibiotic_concentration", validate_antibiotic_concentration),
    ("mutationRate", "mutation_rate", validate_mutation_rate),
    ("duration", "duration", validate_duration),
    ("petriDishSize", "petri_dish_size", validate_petri_dish_size),
)


def validate_simulation_parameters(parameters: SimulationParameters) -> List[str]:
    """
    Validate a complete set of simulation parameters.

    Args:
        parameters: Parsed simulation parameters

    Returns:
        List of "<field>: <problem>" messages, empty when all values are valid
    """
    problems = []
    for wire_name, attribute, validator_func in _FIELD_VALIDATORS:
        try:
            validator_func(getattr(parameters, attribute))
        except ValueError as e:
            problems.append(f"{wire_name}: {e}")
    return problems


def ensure_valid_parameters(parameters: SimulationParameters) -> SimulationParameters:
    """
    Raise if any parameter is out of range.

    Raises:
        ValueError: Listing every invalid parameter
    """
    problems = validate_simulation_parameters(parameters)
    if problems:
        raise ValueError("Invalid simulation parameters: " + "; ".join(problems))
    return parameters
