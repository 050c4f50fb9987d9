"""Matching of a group of symmetry operations against the tabulated Hall
settings.
"""
import logging

import numpy as np

from symid.data import constants
from symid.data import symmetry_data
from symid.exceptions import SpaceGroupNotFound
from symid.symmetry.halltable import get_hall_table
from symid.symmetry.operations import ChangeOfBasis
import symid.geometry

logger = logging.getLogger(__name__)

_CHANGES_OF_BASIS = {
    "monoclinic": symmetry_data.MONOCLINIC_CHANGES_OF_BASIS,
    "orthorhombic": symmetry_data.ORTHORHOMBIC_CHANGES_OF_BASIS,
    "cubic": symmetry_data.CUBIC_CHANGES_OF_BASIS,
}


class SpaceGroupMatch(object):
    """A successful match of the operations of a structure against a Hall
    setting.

    The coordinates in the tabulated setting are x' = R x + s where x are the
    coordinates in the conventional cell of the structure, R the rotation
    of the change of basis and s the origin shift.

    Attributes:
        entry (HallEntry): The matched setting.
        change_of_basis (ChangeOfBasis): The change of basis R.
        origin_shift (np.ndarray): The origin shift s.
        operations (SymmetryOperationSet): The operations of the structure
            in the tabulated setting.
    """
    def __init__(self, entry, change_of_basis, origin_shift, operations):
        self.entry = entry
        self.change_of_basis = change_of_basis
        self.origin_shift = origin_shift
        self.operations = operations


def smith_normal_form(matrix):
    """Diagonalizes an integer matrix with unimodular row and column
    operations.

    Args:
        matrix (np.ndarray): Integer matrix of shape (m, n).

    Returns:
        (np.ndarray, np.ndarray, np.ndarray): The diagonal matrix D and the
        unimodular matrices U and V for which U A V = D.
    """
    A = np.array(matrix, dtype=np.int64)
    m, n = A.shape
    U = np.identity(m, dtype=np.int64)
    V = np.identity(n, dtype=np.int64)

    for k in range(min(m, n)):
        while True:
            nonzero = np.argwhere(A[k:, k:] != 0)
            if len(nonzero) == 0:
                return A, U, V
            values = np.abs(A[k:, k:][nonzero[:, 0], nonzero[:, 1]])
            i, j = nonzero[np.argmin(values)] + k

            A[[k, i]] = A[[i, k]]
            U[[k, i]] = U[[i, k]]
            A[:, [k, j]] = A[:, [j, k]]
            V[:, [k, j]] = V[:, [j, k]]

            done = True
            for row in range(k + 1, m):
                q = A[row, k] // A[k, k]
                if q != 0:
                    A[row] -= q*A[k]
                    U[row] -= q*U[k]
                if A[row, k] != 0:
                    done = False
            for col in range(k + 1, n):
                q = A[k, col] // A[k, k]
                if q != 0:
                    A[:, col] -= q*A[:, k]
                    V[:, col] -= q*V[:, k]
                if A[k, col] != 0:
                    done = False
            if done:
                break

        if A[k, k] < 0:
            A[k] *= -1
            U[k] *= -1

    return A, U, V


def solve_modular_system(matrix, rhs):
    """Finds a real vector s with matrix s = rhs modulo integers.

    Args:
        matrix (np.ndarray): Integer matrix of shape (m, 3).
        rhs (np.ndarray): Real vector of length m.

    Returns:
        np.ndarray: A solution. Its validity is not checked, rows with no
        solution are ignored.
    """
    D, U, V = smith_normal_form(matrix)
    transformed = np.dot(U, rhs)
    q = np.zeros(3)
    for i in range(min(3, D.shape[0])):
        if D[i, i] != 0:
            q[i] = transformed[i]/D[i, i]
    return np.dot(V, q)


def get_centering_to_primitive(centering_vectors):
    """The integer matrix Q that maps the lattice spanned by the unit vectors
    and the given centering vectors onto the integer lattice.
    """
    n_points = len(centering_vectors)
    if n_points == 1:
        return np.identity(3, dtype=np.int64)
    numerator = symid.geometry.get_lattice_basis(centering_vectors, n_points)
    primitive = numerator.T/n_points
    return np.rint(np.linalg.inv(primitive)).astype(np.int64)


def get_origin_shift(operations, entry, cell, precision):
    """Finds the origin shift s for which the operations become the
    tabulated ones.

    For every rotation W with our translation t and the tabulated translation
    w, s must satisfy (W - I) s = t - w modulo the centering lattice. The
    system is made integral with the matrix that maps the centering lattice
    onto the integer lattice and solved with the Smith normal form.

    Args:
        operations (SymmetryOperationSet): Our operations in the setting of
            the entry.
        entry (HallEntry): The tabulated setting.
        cell (UnitCell): Our conventional cell in the setting of the entry.
        precision (float): The symmetry precision.

    Returns:
        (np.ndarray, SymmetryOperationSet) or None: The origin shift and the
        shifted operations if every operation matches a tabulated one.
    """
    to_primitive = get_centering_to_primitive(entry.centering_vectors)
    identity = np.identity(3, dtype=np.int64)
    rows = []
    rhs = []
    for key in entry.operations.get_rotation_keys():
        ours = operations.get_indices_with_rotation(key)
        theirs = entry.operations.get_indices_with_rotation(key)
        if not ours:
            return None
        rotation = np.reshape(key, (3, 3))
        t = operations[ours[0]].translation
        w = entry.operations[theirs[0]].translation
        rows.append(np.dot(to_primitive, rotation - identity))
        rhs.append(np.dot(to_primitive, symid.geometry.wrap(t - w)))

    shift = solve_modular_system(np.vstack(rows), np.concatenate(rhs))
    shift = symid.geometry.get_wrapped_positions(shift, constants.RATIONAL_TOL)
    shifted = operations.change_basis(identity, shift)

    if len(shifted) != len(entry.operations):
        return None
    matrix = cell.matrix
    for operation in shifted:
        if entry.operations.find(operation, matrix, precision) is None:
            return None
    return shift, shifted


def _same_vectors(first, second):
    if len(first) != len(second):
        return False
    for vector in first:
        differences = np.abs(symid.geometry.wrap(second - vector))
        if not np.any(np.all(differences < constants.RATIONAL_TOL, axis=1)):
            return False
    return True


def match_space_group(
        operations,
        centering_vectors,
        cell,
        point_group,
        precision,
        signature=None):
    """Finds the first Hall setting that reproduces the operations.

    The settings are tried in the order of the space group number and then
    the Hall number. For each setting with the same point group the
    candidate changes of basis of the crystal system are tried and the origin
    shift is solved.

    Args:
        operations (SymmetryOperationSet): All the operations of the structure
            in its conventional cell, centering translations included.
        centering_vectors (np.ndarray): The exact centering vectors of the
            conventional cell.
        cell (UnitCell): The conventional cell.
        point_group (PointGroup): The point group of the operations.
        precision (float): The symmetry precision.
        signature (tuple): Optional invariant of the group used to shortlist
            the settings, see GroupTable.get_signature.

    Returns:
        SpaceGroupMatch: The match.

    Raises:
        SpaceGroupNotFound: If no setting matches.
    """
    changes = _CHANGES_OF_BASIS.get(point_group.holohedry, symmetry_data.IDENTITY_CHANGES_OF_BASIS)
    changes = [ChangeOfBasis(np.array(columns).T) for columns in changes]
    n_centering = len(centering_vectors)

    entries = sorted(get_hall_table(), key=lambda entry: (entry.number, entry.hall_number))
    for entry in entries:
        if entry.point_group != point_group:
            continue
        if len(entry.centering_vectors) != n_centering:
            continue
        if signature is not None and entry.get_signature() != signature:
            continue
        for change in changes:
            rotated_centering = symid.geometry.get_wrapped_positions(
                np.dot(centering_vectors, change.rotation.T), constants.RATIONAL_TOL)
            if not _same_vectors(rotated_centering, entry.centering_vectors):
                continue
            changed = operations.change_basis(change.transformation)
            if set(changed.get_rotation_keys()) != entry.rotation_keys:
                continue
            changed_cell = cell.change_basis(change.transformation)
            solution = get_origin_shift(changed, entry, changed_cell, precision)
            if solution is not None:
                shift, shifted = solution
                logger.debug(
                    "Matched Hall number %d (space group %d) with change of basis %s",
                    entry.hall_number, entry.number, change.rotation.tolist())
                return SpaceGroupMatch(entry, change, shift, shifted)

    raise SpaceGroupNotFound(
        "No tabulated space group setting matches the symmetry operations.",
        value=point_group.symbol
    )
