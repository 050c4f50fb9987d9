"""Search for the symmetry operations of a structure.

The candidate rotations are the integer matrices that leave the metric of a
reduced cell invariant. For every candidate rotation the translations are
hypothesized from an anchor atom of the least frequent species and accepted
only if the whole structure is mapped onto itself.
"""
import itertools
import logging

import numpy as np

from symid.data import constants
from symid.exceptions import NoAtomsMatched
from symid.symmetry.operations import SymmetryOperation, SymmetryOperationSet
import symid.geometry

logger = logging.getLogger(__name__)

_UNIT_VECTORS = np.array(
    [v for v in itertools.product((-1, 0, 1), repeat=3) if any(v)],
    dtype=np.int64
)


def get_lattice_rotations(cell, precision):
    """Finds the rotations that map the lattice onto itself.

    All the integer matrices whose columns have components in {-1, 0, 1} and
    whose determinant is +1 or -1 are tested. For a Delaunay reduced cell
    these contain the complete holohedry of the lattice.

    Args:
        cell (UnitCell): A Delaunay reduced cell.
        precision (float): The symmetry precision.

    Returns:
        list of np.ndarray: The rotations, identity first.
    """
    n = len(_UNIT_VECTORS)
    indices = np.array(list(itertools.product(range(n), repeat=3)))
    # rotations[k, :, j] is the j:th column of the k:th matrix
    rotations = np.transpose(_UNIT_VECTORS[indices], (0, 2, 1))

    dets = np.rint(np.linalg.det(rotations)).astype(int)
    rotations = rotations[np.abs(dets) == 1]

    metric = cell.metric
    rotated_metrics = np.einsum("nji,jk,nkl->nil", rotations, metric, rotations)
    lengths = np.sqrt(np.diag(metric))
    rotated_lengths = np.sqrt(np.einsum("nii->ni", rotated_metrics))
    candidates = np.all(np.abs(rotated_lengths - lengths) <= precision, axis=1)

    identity = np.identity(3, dtype=np.int64)
    result = [identity]
    for rotation, rotated_metric in zip(rotations[candidates], rotated_metrics[candidates]):
        if np.array_equal(rotation, identity):
            continue
        if symid.geometry.is_identity_metric(rotated_metric, metric, precision):
            result.append(rotation)

    logger.debug("Found %d lattice rotations", len(result))
    return result


def find_overlap(
        structure,
        rotation,
        translation,
        precision,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Tests whether the operation (rotation, translation) maps every atom
    onto an equivalent atom.

    Two atoms are equivalent if they have the same species, their periodic
    cartesian distance is within the precision and, unless partial
    occupancies are allowed, their occupancies agree within the occupancy
    tolerance.

    Args:
        structure (Structure): The structure to test.
        rotation (np.ndarray): Integer rotation matrix.
        translation (np.ndarray): Fractional translation.
        precision (float): The symmetry precision.
        allow_partial_occupancies (bool): Whether to ignore occupancies.
        occupancy_tol (float): Allowed occupancy difference.

    Returns:
        np.ndarray or None: The translation refined by the average mismatch
        of the atoms, wrapped to [0, 1), or None if the operation is not a
        symmetry of the structure.
    """
    if occupancy_tol is None:
        occupancy_tol = constants.OCCUPANCY_TOLERANCE
    positions = structure.scaled_positions
    types = structure.types
    occupancies = structure.occupancies
    cell = structure.cell.matrix
    transformed = np.dot(positions, np.asarray(rotation).T) + translation

    residuals = np.zeros(positions.shape)
    for atom_type in np.unique(types):
        indices = np.where(types == atom_type)[0]
        displacements = symid.geometry.wrap(
            transformed[indices][:, None, :] - positions[indices][None, :, :])
        distances = np.linalg.norm(np.dot(displacements, cell), axis=2)
        if not allow_partial_occupancies:
            occ = occupancies[indices]
            mismatch = np.abs(occ[:, None] - occ[None, :]) > occupancy_tol
            distances[mismatch] = np.inf
        matches = np.argmin(distances, axis=1)
        rows = np.arange(len(indices))
        if np.any(distances[rows, matches] > precision):
            return None
        residuals[indices] = displacements[rows, matches]

    refined = translation - np.mean(residuals, axis=0)
    return symid.geometry.get_wrapped_positions(refined, 1e-10)


def get_anchor_indices(structure):
    """Indices of the atoms of the least frequent species. Ties are broken by
    the smaller species code.
    """
    types = structure.types
    values, counts = np.unique(types, return_counts=True)
    anchor_type = values[np.argmin(counts)]
    return np.where(types == anchor_type)[0]


def iter_symmetry_operations(
        structure,
        rotations,
        precision,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Lazily generates the symmetry operations of a structure.

    For each rotation R the translations t = x_b - R x_a are tried, where a
    is the first anchor atom and b runs over all the anchor atoms.

    Args:
        structure (Structure): The structure, typically a reduced primitive
            cell.
        rotations (list of np.ndarray): The candidate rotations.
        precision (float): The symmetry precision.
        allow_partial_occupancies (bool): Whether to ignore occupancies.
        occupancy_tol (float): Allowed occupancy difference.

    Yields:
        SymmetryOperation: The accepted operations.
    """
    if len(structure) == 0:
        return
    positions = structure.scaled_positions
    cell = structure.cell.matrix
    anchors = get_anchor_indices(structure)
    first = positions[anchors[0]]

    for rotation in rotations:
        origin = np.dot(rotation, first)
        found = []
        for anchor in anchors:
            translation = positions[anchor] - origin
            if found and np.min(symid.geometry.get_periodic_distances(
                    np.array(found), translation, cell)) <= precision:
                continue
            refined = find_overlap(
                structure,
                rotation,
                translation,
                precision,
                allow_partial_occupancies,
                occupancy_tol)
            if refined is not None:
                found.append(refined)
                yield SymmetryOperation(rotation, refined)


def is_identity_operation(operation, cell, precision):
    """Whether the operation is the identity within the symmetry precision.
    The translation is measured as a cartesian distance in the given cell.
    """
    if not np.array_equal(operation.rotation, np.identity(3)):
        return False
    distance = symid.geometry.get_periodic_distances(
        operation.translation, np.zeros(3), cell)[0]
    return distance <= precision


def search_symmetry_operations(
        structure,
        rotations,
        precision,
        allow_partial_occupancies=False,
        occupancy_tol=None):
    """Collects all the symmetry operations of a structure.

    Returns:
        SymmetryOperationSet: The operations, identity first.

    Raises:
        NoAtomsMatched: If the structure has no atoms or not even the
            identity maps the atoms onto themselves.
    """
    if len(structure) == 0:
        raise NoAtomsMatched("The structure does not contain any atoms.")

    operations = list(iter_symmetry_operations(
        structure,
        rotations,
        precision,
        allow_partial_occupancies,
        occupancy_tol))

    cell = structure.cell.matrix
    if not any(is_identity_operation(op, cell, precision) for op in operations):
        raise NoAtomsMatched(
            "The identity operation could not be verified. Please check the "
            "given positions, species and occupancies.",
            value=len(structure)
        )
    logger.debug("Found %d symmetry operations", len(operations))
    return SymmetryOperationSet(operations)
