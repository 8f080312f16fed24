"""Unit dimensions and conversion between units of the same dimension."""

from enum import Enum

from core.exceptions import UnitMismatchError
from core.models import Quantity


class UnitType(str, Enum):
    MASS = "mass"
    VOLUME = "volume"
    PIECE = "piece"
    UNKNOWN = "unknown"


# Mass: base unit is grams
MASS_TO_GRAMS = {
    "g": 1.0,
    "kg": 1000.0,
    "mg": 0.001,
    "oz": 28.3495,
    "lb": 453.592,
}

# Volume: base unit is millilitres
VOLUME_TO_ML = {
    "ml": 1.0,
    "l": 1000.0,
    "cup": 236.588,
    "tbsp": 15.0,
    "tsp": 5.0,
    "gallon": 3785.41,
}

PIECE_UNITS = {"piece"}


def get_unit_type(unit: str) -> UnitType:
    if unit in MASS_TO_GRAMS:
        return UnitType.MASS
    if unit in VOLUME_TO_ML:
        return UnitType.VOLUME
    if unit in PIECE_UNITS:
        return UnitType.PIECE
    return UnitType.UNKNOWN


def convert_unit(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert `value` from one unit to another of the same dimension.

    Raises UnitMismatchError when the dimensions differ, or when either unit is
    unknown or a piece unit paired with anything but itself.
    """
    if from_unit == to_unit:
        return value

    from_type = get_unit_type(from_unit)
    to_type = get_unit_type(to_unit)

    if from_type == UnitType.MASS and to_type == UnitType.MASS:
        return value * MASS_TO_GRAMS[from_unit] / MASS_TO_GRAMS[to_unit]
    if from_type == UnitType.VOLUME and to_type == UnitType.VOLUME:
        return value * VOLUME_TO_ML[from_unit] / VOLUME_TO_ML[to_unit]

    raise UnitMismatchError(from_unit, to_unit, from_type.value, to_type.value)


def convert_quantity(quantity: Quantity, to_unit: str) -> Quantity:
    return Quantity(convert_unit(quantity.value, quantity.unit, to_unit), to_unit)
