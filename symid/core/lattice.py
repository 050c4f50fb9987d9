import numpy as np


class UnitCell(object):
    """
    An immutable unit cell. Essentially a matrix of lattice vectors with
    cached derived quantities. In general, it is assumed that length units are
    in Angstroms and angles are in degrees unless otherwise stated.

    Changing the basis never modifies a cell, a new UnitCell is returned
    instead.
    """
    def __init__(self, matrix):
        """
        Create a unit cell from any sequence of 9 numbers. Note that the
        sequence is assumed to be read one row at a time. Each row represents
        one lattice vector.

        Args:
            matrix: Sequence of numbers in any form. Examples of acceptable
                input.
                i) An actual numpy array.
                ii) [[1, 0, 0], [0, 1, 0], [0, 0, 1]]
                iii) [1, 0, 0 , 0, 1, 0, 0, 0, 1]
                Each row should correspond to a lattice vector.
        """
        m = np.array(matrix, dtype=np.float64).reshape((3, 3))
        m.setflags(write=False)
        self._matrix = m
        self._lengths = None
        self._angles = None
        self._metric = None
        self._inv_matrix = None

    @staticmethod
    def from_parameters(a, b, c, alpha, beta, gamma):
        """Creates a cell in the standard orientation: a along x and b in the
        xy-plane.

        Args:
            a, b, c (float): Lattice vector lengths.
            alpha, beta, gamma (float): Lattice angles in degrees.
        """
        alpha, beta, gamma = np.radians([alpha, beta, gamma])
        ca, cb, cg = np.cos(alpha), np.cos(beta), np.cos(gamma)
        sg = np.sin(gamma)
        volume_factor = np.sqrt(max(1.0 - ca*ca - cb*cb - cg*cg + 2.0*ca*cb*cg, 0.0))
        matrix = np.array([
            [a, 0.0, 0.0],
            [b*cg, b*sg, 0.0],
            [c*cb, c*(ca - cb*cg)/sg, c*volume_factor/sg],
        ])
        return UnitCell(matrix)

    @property
    def matrix(self):
        """Copy of matrix representing the cell"""
        return np.array(self._matrix)

    @property
    def inv_matrix(self):
        """
        Inverse of the cell matrix.
        """
        if self._inv_matrix is None:
            self._inv_matrix = np.linalg.inv(self._matrix)
        return self._inv_matrix

    @property
    def metric(self):
        """The metric tensor G = A A^T, where A has lattice vectors as rows.
        """
        if self._metric is None:
            self._metric = np.dot(self._matrix, self._matrix.T)
        return self._metric

    def get_cartesian_coords(self, fractional_coords):
        """
        Returns the cartesian coordinates given fractional coordinates.

        Args:
            fractional_coords (3x1 array): Fractional coords.

        Returns:
            Cartesian coordinates
        """
        return np.dot(fractional_coords, self._matrix)

    def get_fractional_coords(self, cart_coords):
        """
        Returns the fractional coordinates given cartesian coordinates.

        Args:
            cart_coords (3x1 array): Cartesian coords.

        Returns:
            Fractional coordinates.
        """
        return np.dot(cart_coords, self.inv_matrix)

    def change_basis(self, transformation):
        """Returns the cell spanned by the new basis (a', b', c') = (a, b, c) P.

        Args:
            transformation (np.ndarray): The 3x3 matrix P. Columns are the new
                basis vectors given in the current basis.

        Returns:
            UnitCell: A new cell.
        """
        transformation = np.asarray(transformation, dtype=np.float64)
        return UnitCell(np.dot(transformation.T, self._matrix))

    @property
    def lengths(self):
        if self._lengths is None:
            self._lengths = np.linalg.norm(self._matrix, axis=1)
        return self._lengths

    @property
    def angles(self):
        """
        Returns the angles (alpha, beta, gamma) of the cell.
        """
        if self._angles is None:
            angles = np.zeros(3)
            for i in range(3):
                j = (i + 1) % 3
                k = (i + 2) % 3
                angles[i] = np.dot(
                    self._matrix[j],
                    self._matrix[k]) / (self.lengths[j] * self.lengths[k])
            angles = np.clip(angles, -1.0, 1.0)
            self._angles = np.arccos(angles) * 180. / np.pi
        return self._angles

    @property
    def abc(self):
        """
        Lengths of the lattice vectors, i.e. (a, b, c)
        """
        return tuple(self.lengths)

    @property
    def determinant(self):
        """Signed volume, negative for a left-handed basis."""
        return np.linalg.det(self._matrix)

    @property
    def volume(self):
        """
        Volume of the unit cell.
        """
        return abs(self.determinant)

    def __repr__(self):
        return "UnitCell({})".format(self._matrix.tolist())
