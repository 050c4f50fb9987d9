"""Detection of hidden translational symmetry and the construction of a
primitive cell.
"""
import logging

import numpy as np

from symid.core.reduction import delaunay_reduce
from symid.core.system import Structure
from symid.data import constants
from symid.exceptions import GroupNotClosed, NoAtomsMatched
from symid.symmetry.search import find_overlap, get_anchor_indices
import symid.geometry

logger = logging.getLogger(__name__)


class PrimitiveCell(object):
    """The result of a primitive cell search.

    Attributes:
        structure (Structure): The atoms in the Delaunay reduced primitive
            cell, wrapped and without duplicates.
        transformation (np.ndarray): The matrix P from the original cell to
            the primitive cell, (a', b', c') = (a, b, c) P. Its determinant
            is 1/n_lattice_points.
        translations (np.ndarray): The pure translations of the original
            cell, including the zero translation.
    """
    def __init__(self, structure, transformation, translations):
        self.structure = structure
        self.transformation = transformation
        self.translations = translations

    @property
    def n_lattice_points(self):
        """Number of lattice points in the original cell."""
        return len(self.translations)


def get_pure_translations(
        structure,
        precision,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Finds the translations that map the structure onto itself.

    The candidates are the differences between the first atom of the least
    frequent species and the other atoms of the same species.

    Args:
        structure (Structure): The structure to inspect.
        precision (float): The symmetry precision.
        allow_partial_occupancies (bool): Whether to ignore occupancies.
        occupancy_tol (float): Allowed occupancy difference.

    Returns:
        np.ndarray: The accepted translations as rows in [0, 1), the zero
        translation first.
    """
    positions = structure.scaled_positions
    cell = structure.cell.matrix
    anchors = get_anchor_indices(structure)
    identity = np.identity(3, dtype=np.int64)

    translations = [np.zeros(3)]
    for anchor in anchors[1:]:
        translation = symid.geometry.get_wrapped_positions(
            positions[anchor] - positions[anchors[0]])
        distances = symid.geometry.get_periodic_distances(
            np.array(translations), translation, cell)
        if np.min(distances) <= precision:
            continue
        refined = find_overlap(
            structure,
            identity,
            translation,
            precision,
            allow_partial_occupancies,
            occupancy_tol)
        if refined is not None:
            translations.append(refined)

    return np.array(translations)


def find_primitive_cell(
        structure,
        precision=None,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Finds a Delaunay reduced primitive cell for the given structure.

    The pure translations together with the lattice vectors generate the
    lattice of the structure. Its basis is found exactly with an integer
    Hermite normal form and then Delaunay reduced.

    Args:
        structure (Structure): The structure to inspect.
        precision (float): The symmetry precision.
        allow_partial_occupancies (bool): Whether to ignore occupancies.
        occupancy_tol (float): Allowed occupancy difference.

    Returns:
        PrimitiveCell: The primitive cell.

    Raises:
        NoAtomsMatched: If the structure has no atoms.
        GroupNotClosed: If the found translations are not consistent with a
            lattice.
        LatticeDegenerate: If the cell can not be reduced.
    """
    if precision is None:
        precision = constants.SYMMETRY_PRECISION
    if occupancy_tol is None:
        occupancy_tol = constants.OCCUPANCY_TOLERANCE
    if len(structure) == 0:
        raise NoAtomsMatched("The structure does not contain any atoms.")

    wrapped = structure.get_wrapped()
    translations = get_pure_translations(
        wrapped, precision, allow_partial_occupancies, occupancy_tol)
    n_points = len(translations)

    if n_points == 1:
        primitive_transformation = np.identity(3)
    else:
        numerator = symid.geometry.get_lattice_basis(translations[1:], n_points)
        volume_ratio = n_points**3 // abs(symid.geometry.get_integer_determinant(numerator))
        if volume_ratio != n_points:
            raise GroupNotClosed(
                "The {} found pure translations do not form a lattice.".format(n_points - 1),
                value=translations
            )
        primitive_transformation = numerator.T/n_points

    primitive_cell = structure.cell.change_basis(primitive_transformation)
    reduced_cell, reduction = delaunay_reduce(primitive_cell, precision)
    transformation = np.dot(primitive_transformation, reduction)

    reduced = wrapped.change_basis(transformation).get_wrapped()
    reduced = _remove_duplicates(reduced, precision, allow_partial_occupancies, occupancy_tol)
    if len(reduced)*n_points != len(structure):
        raise GroupNotClosed(
            "The atoms are not evenly distributed between the {} lattice "
            "points of the cell.".format(n_points),
            value=len(reduced)
        )

    logger.debug(
        "Found %d lattice points in the original cell, primitive cell has %d atoms",
        n_points, len(reduced))
    return PrimitiveCell(reduced, transformation, translations)


def _remove_duplicates(structure, precision, allow_partial_occupancies, occupancy_tol):
    """Keeps the first of the atoms that overlap within the precision. The
    kept atom gets the smallest occupancy of the atoms merged into it.
    """
    positions = structure.scaled_positions
    occupancies = structure.occupancies
    cell = structure.cell.matrix
    kept = []
    for index in range(len(structure)):
        if kept:
            mask = structure.get_matching_mask(index, allow_partial_occupancies, occupancy_tol)[kept]
            distances = symid.geometry.get_periodic_distances(
                positions[kept], positions[index], cell)
            overlapping = np.array(kept)[mask & (distances <= precision)]
            if len(overlapping):
                first = overlapping[0]
                occupancies[first] = min(occupancies[first], occupancies[index])
                continue
        kept.append(index)
    return Structure(
        structure.cell,
        positions[kept],
        structure.species[kept],
        occupancies[kept],
    )
