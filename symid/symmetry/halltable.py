"""
The static table of the 530 Hall settings of the 230 space groups.

The table is read from the spglib database on first access and then kept as
a read-only, process wide tuple.
"""
import functools

import numpy as np
import spglib

from symid.data import constants
from symid.symmetry.operations import SymmetryOperationSet
from symid.symmetry.pointgroup import PointGroup
import symid.geometry

N_HALL_NUMBERS = 530


class HallEntry(object):
    """A tabulated space group setting.

    Attributes:
        hall_number (int): Serial number of the setting, 1-530.
        number (int): The space group number, 1-230.
        international_short (str): Short Hermann-Mauguin symbol.
        international_full (str): Full Hermann-Mauguin symbol.
        hall_symbol (str): The Hall symbol.
        choice (str): The setting choice, e.g. origin choice or unique axis.
        centering (str): The centering letter of the conventional cell.
        operations (SymmetryOperationSet): All the operations of the
            conventional cell, centering translations included.
    """
    def __init__(
            self,
            hall_number,
            number,
            international_short,
            international_full,
            hall_symbol,
            choice,
            operations):
        self.hall_number = hall_number
        self.number = number
        self.international_short = international_short
        self.international_full = international_full
        self.hall_symbol = hall_symbol
        self.choice = choice
        self.operations = operations
        self.centering = hall_symbol.lstrip("-")[0]
        self.rotation_keys = frozenset(operations.get_rotation_keys())
        self.centering_vectors = operations.get_pure_translations()
        self.centering_vectors.setflags(write=False)
        rotations = [np.reshape(key, (3, 3)) for key in operations.get_rotation_keys()]
        self.point_group = PointGroup.from_rotations(rotations)

    def get_signature(self):
        """Order of the point group and its sorted (determinant, trace)
        pairs. Comparable with GroupTable.get_signature of a primitive set
        of operations.
        """
        pairs = []
        for key in self.operations.get_rotation_keys():
            rotation = np.reshape(key, (3, 3))
            pairs.append((symid.geometry.get_integer_determinant(rotation), int(np.trace(rotation))))
        return len(pairs), tuple(sorted(pairs))

    def __repr__(self):
        return "HallEntry({}, {} {})".format(self.hall_number, self.number, self.international_short)


def _load_entry(hall_number):
    spacegroup_type = spglib.get_spacegroup_type(hall_number)
    symmetry = spglib.get_symmetry_from_database(hall_number)
    translations = symid.geometry.get_wrapped_positions(
        symmetry["translations"], constants.RATIONAL_TOL)
    operations = SymmetryOperationSet.from_arrays(symmetry["rotations"], translations)
    return HallEntry(
        hall_number=hall_number,
        number=spacegroup_type.number,
        international_short=spacegroup_type.international_short,
        international_full=spacegroup_type.international_full,
        hall_symbol=spacegroup_type.hall_symbol,
        choice=spacegroup_type.choice,
        operations=operations,
    )


@functools.lru_cache(maxsize=None)
def get_hall_table():
    """Returns the table of all the Hall settings ordered by the Hall number.
    The table is built on the first call.

    Returns:
        tuple of HallEntry: The 530 settings.
    """
    return tuple(_load_entry(hall_number) for hall_number in range(1, N_HALL_NUMBERS + 1))


def get_hall_entry(hall_number):
    """Returns the setting with the given Hall number.

    Raises:
        ValueError: If the Hall number is not within 1-530.
    """
    if not 1 <= hall_number <= N_HALL_NUMBERS:
        raise ValueError("Hall number must be within 1-{}.".format(N_HALL_NUMBERS))
    return get_hall_table()[hall_number - 1]


def get_hall_numbers_for_space_group(number):
    """The Hall numbers of all the settings of a space group.
    """
    return [entry.hall_number for entry in get_hall_table() if entry.number == number]
