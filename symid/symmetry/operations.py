import numpy as np

import symid.geometry


class SymmetryOperation(object):
    """A space group operation x' = W x + t acting on fractional coordinates.

    The rotation part W is an integer matrix and the translation t is kept
    modulo one.
    """
    def __init__(self, rotation, translation):
        """
        Args:
            rotation (np.ndarray): Integer 3x3 rotation matrix.
            translation (np.ndarray): Fractional translation.
        """
        rotation = np.array(rotation, dtype=np.int64).reshape((3, 3))
        translation = np.array(translation, dtype=np.float64).reshape(3)
        rotation.setflags(write=False)
        translation.setflags(write=False)
        self._rotation = rotation
        self._translation = translation

    @property
    def rotation(self):
        return self._rotation

    @property
    def translation(self):
        return self._translation

    @property
    def rotation_key(self):
        """Hashable representation of the rotation part."""
        return tuple(self._rotation.flatten().tolist())

    def apply(self, scaled_positions):
        """Applies the operation to fractional positions given as rows.
        """
        return np.dot(scaled_positions, self._rotation.T) + self._translation

    def compose(self, other):
        """The operation that first applies other and then this operation.
        """
        rotation = np.dot(self._rotation, other.rotation)
        translation = np.dot(self._rotation, other.translation) + self._translation
        return SymmetryOperation(rotation, translation)

    def inverse(self):
        inverse_rotation = symid.geometry.get_integer_inverse(self._rotation)
        translation = -np.dot(inverse_rotation, self._translation)
        return SymmetryOperation(inverse_rotation, translation)

    def is_identity(self, tol=1e-8):
        return (
            np.array_equal(self._rotation, np.identity(3, dtype=np.int64))
            and np.all(np.abs(symid.geometry.wrap(self._translation)) < tol)
        )

    def change_basis(self, transformation, origin_shift=None):
        """Expresses the operation in the basis (a', b', c') = (a, b, c) P
        with coordinates x' = P^-1 x + s.

        Args:
            transformation (np.ndarray): The matrix P.
            origin_shift (np.ndarray): The origin shift s in the new basis.

        Returns:
            SymmetryOperation: The operation in the new basis.

        Raises:
            ValueError: If the rotation is not integral in the new basis.
        """
        transformation = np.asarray(transformation, dtype=np.float64)
        inverse = np.linalg.inv(transformation)
        rotation = np.dot(inverse, np.dot(self._rotation, transformation))
        integer_rotation = np.rint(rotation)
        if np.any(np.abs(rotation - integer_rotation) > 1e-6):
            raise ValueError(
                "The rotation is not compatible with the new basis."
            )
        translation = np.dot(inverse, self._translation)
        if origin_shift is not None:
            translation += origin_shift - np.dot(integer_rotation, origin_shift)
        return SymmetryOperation(integer_rotation, translation)

    def get_translation_distance(self, other_translation, cell):
        """Cartesian length of the periodic difference between the
        translation of this operation and the given one.
        """
        return symid.geometry.get_periodic_distances(
            self._translation, other_translation, cell)[0]

    @property
    def determinant(self):
        return symid.geometry.get_integer_determinant(self._rotation)

    @property
    def trace(self):
        return int(np.trace(self._rotation))

    def __repr__(self):
        return "SymmetryOperation(rotation={}, translation={})".format(
            self._rotation.tolist(), self._translation.tolist())


class SymmetryOperationSet(object):
    """An ordered collection of symmetry operations with a lookup of the
    operations by their rotation part.
    """
    def __init__(self, operations):
        self._operations = tuple(operations)
        self._by_rotation = {}
        for index, operation in enumerate(self._operations):
            self._by_rotation.setdefault(operation.rotation_key, []).append(index)

    @staticmethod
    def from_arrays(rotations, translations):
        return SymmetryOperationSet(
            SymmetryOperation(r, t) for r, t in zip(rotations, translations))

    def __len__(self):
        return len(self._operations)

    def __iter__(self):
        return iter(self._operations)

    def __getitem__(self, index):
        return self._operations[index]

    @property
    def rotations(self):
        return np.array([op.rotation for op in self._operations], dtype=np.int64).reshape((-1, 3, 3))

    @property
    def translations(self):
        return np.array([op.translation for op in self._operations], dtype=np.float64).reshape((-1, 3))

    def get_rotation_keys(self):
        """The distinct rotation parts, in order of first appearance."""
        return list(self._by_rotation.keys())

    def get_indices_with_rotation(self, rotation_key):
        return self._by_rotation.get(rotation_key, [])

    def find(self, operation, cell, precision):
        """Finds the index of an operation with the same rotation and a
        translation equal modulo one within the precision.

        Returns:
            int or None: The index of the match.
        """
        for index in self._by_rotation.get(operation.rotation_key, []):
            distance = self._operations[index].get_translation_distance(operation.translation, cell)
            if distance <= precision:
                return index
        return None

    def get_pure_translations(self):
        """The translations of the operations whose rotation is the identity,
        wrapped to [0, 1).
        """
        key = tuple(np.identity(3, dtype=np.int64).flatten().tolist())
        translations = [self._operations[i].translation for i in self._by_rotation.get(key, [])]
        return symid.geometry.get_wrapped_positions(np.array(translations).reshape((-1, 3)), 1e-6)

    def change_basis(self, transformation, origin_shift=None):
        """Expresses all the operations in a new basis, see
        SymmetryOperation.change_basis.
        """
        return SymmetryOperationSet(
            op.change_basis(transformation, origin_shift) for op in self._operations)

    def with_centering(self, centering_vectors):
        """Returns the set extended by every combination of an operation and
        a centering vector.
        """
        operations = []
        for vector in centering_vectors:
            for op in self._operations:
                translation = symid.geometry.get_wrapped_positions(
                    op.translation + vector, 1e-8)
                operations.append(SymmetryOperation(op.rotation, translation))
        return SymmetryOperationSet(operations)


class ChangeOfBasis(object):
    """A unimodular change of basis x' = R x given by its integer rotation
    part R and the inverse.
    """
    def __init__(self, rotation):
        rotation = np.array(rotation, dtype=np.int64).reshape((3, 3))
        rotation.setflags(write=False)
        self._rotation = rotation
        inverse = symid.geometry.get_integer_inverse(rotation)
        inverse.setflags(write=False)
        self._inverse_rotation = inverse

    @property
    def rotation(self):
        return self._rotation

    @property
    def inverse_rotation(self):
        return self._inverse_rotation

    @property
    def transformation(self):
        """The corresponding transformation matrix P = R^-1 for which
        (a', b', c') = (a, b, c) P.
        """
        return self._inverse_rotation

    def __repr__(self):
        return "ChangeOfBasis({})".format(self._rotation.tolist())
