# common/errors.py
from typing import Optional


class ConfigurationError(ValueError):
    """A solver parameter is outside its allowed range or unknown."""


class ContractViolation(AssertionError):
    """Internal invariant broken (bad move, drifting cost, ...). Never recoverable."""


def parse_number(name: str, value) -> float:
    """Accept numbers or numeric strings, the way solver parameters are passed around."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name}: expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise ConfigurationError(f"{name}: cannot parse {value!r} as a number") from None
    raise ConfigurationError(f"{name}: expected a number, got {type(value).__name__}")


def require_range(
    name: str,
    value: float,
    low: Optional[float] = None,
    high: Optional[float] = None,
    low_inclusive: bool = True,
    high_inclusive: bool = True,
) -> float:
    """Raise ConfigurationError unless low <= value <= high (bounds optionally strict)."""
    if value != value:  # NaN
        raise ConfigurationError(f"{name} must be a number, got NaN")
    if low is not None:
        if value < low or (not low_inclusive and value == low):
            op = ">=" if low_inclusive else ">"
            raise ConfigurationError(f"{name} must be {op} {low}, got {value}")
    if high is not None:
        if value > high or (not high_inclusive and value == high):
            op = "<=" if high_inclusive else "<"
            raise ConfigurationError(f"{name} must be {op} {high}, got {value}")
    return value
