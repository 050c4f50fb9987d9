"""Partitioning of the atoms into symmetry orbits."""
import numpy as np

from symid.data import constants
import symid.geometry


def get_equivalent_atoms(
        structure,
        operations,
        precision,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Finds for every atom the first atom of its orbit.

    Args:
        structure (Structure): The atoms, given in the same basis as the
            operations.
        operations (SymmetryOperationSet): A group of symmetry operations.
        precision (float): The symmetry precision.
        allow_partial_occupancies (bool): Whether to ignore occupancies.
        occupancy_tol (float): Allowed occupancy difference.

    Returns:
        np.ndarray: For each atom the index of the first atom in the same
        orbit, i.e. the same convention as in spglib.
    """
    if occupancy_tol is None:
        occupancy_tol = constants.OCCUPANCY_TOLERANCE
    positions = structure.scaled_positions
    cell = structure.cell.matrix
    n_atoms = len(structure)
    equivalent = np.full(n_atoms, -1, dtype=int)

    for index in range(n_atoms):
        if equivalent[index] != -1:
            continue
        equivalent[index] = index
        mask = structure.get_matching_mask(index, allow_partial_occupancies, occupancy_tol)
        mask &= equivalent == -1
        if not np.any(mask):
            continue
        for operation in operations:
            image = operation.apply(positions[index])
            match = symid.geometry.search_periodic_position(
                image, positions, cell, precision, mask=mask)
            if match is not None:
                equivalent[match] = index
                mask[match] = False

    return equivalent


def get_orbits(
        structure,
        operations,
        precision,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Partitions the atoms into orbits.

    Returns:
        list of list of int: The atom indices of each orbit. The orbits are
        ordered by their first atom and together contain every atom exactly
        once.
    """
    equivalent = get_equivalent_atoms(
        structure,
        operations,
        precision,
        allow_partial_occupancies,
        occupancy_tol)
    orbits = {}
    for index, first in enumerate(equivalent):
        orbits.setdefault(first, []).append(index)
    return [orbits[key] for key in sorted(orbits)]


def get_asymmetric_unit(
        structure,
        operations,
        precision,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Selects one representative atom per orbit.

    The representative is the orbit member with the lexicographically
    smallest fractional position after wrapping to [0, 1). Its species and
    occupancy are kept as they are.

    Returns:
        (Structure, np.ndarray): The asymmetric unit and the indices of the
        chosen atoms in the given structure.
    """
    equivalent = get_equivalent_atoms(
        structure,
        operations,
        precision,
        allow_partial_occupancies,
        occupancy_tol)
    return select_representatives(structure, equivalent)


def select_representatives(structure, equivalent_atoms):
    """Picks the atom with the lexicographically smallest wrapped position
    from each orbit.

    Args:
        structure (Structure): The atoms.
        equivalent_atoms (np.ndarray): For each atom the index of the first
            atom of its orbit.

    Returns:
        (Structure, np.ndarray): The representatives, wrapped, and their
        indices in the given structure.
    """
    wrapped = structure.get_wrapped()
    # Rounded keys keep the ordering stable against numerical noise
    keys = np.round(wrapped.scaled_positions, 6)

    indices = []
    for first in np.unique(equivalent_atoms):
        orbit = np.where(equivalent_atoms == first)[0]
        indices.append(min(orbit, key=lambda i: tuple(keys[i])))
    indices = np.array(indices, dtype=int)

    return wrapped.subset(indices), indices
