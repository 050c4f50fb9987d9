from ase import Atoms
import numpy as np

import symid.geometry
from symid.core.lattice import UnitCell


class Structure(object):
    """A periodic arrangement of atoms: a unit cell and a list of atoms given
    by fractional positions, species and occupancies.

    The structure is treated as read-only. All methods that change the
    description return a new Structure.
    """
    def __init__(self, cell, scaled_positions, species, occupancies=None):
        """
        Args:
            cell (UnitCell or np.ndarray): The unit cell, lattice vectors as
                rows.
            scaled_positions (np.ndarray): Fractional positions as rows.
            species (sequence): One hashable species identifier per atom, e.g.
                atomic numbers or chemical symbols.
            occupancies (sequence): Optional occupancies in (0, 1]. Defaults
                to full occupation.
        """
        if not isinstance(cell, UnitCell):
            cell = UnitCell(cell)
        positions = np.array(scaled_positions, dtype=np.float64)
        if positions.size == 0:
            positions = positions.reshape((0, 3))
        if positions.ndim != 2 or positions.shape[1] != 3:
            raise ValueError(
                "The given positions are not compatible. Please provide positions "
                "as rows of a two-dimensional array."
            )
        n_atoms = len(positions)
        species = np.asarray(species)
        if len(species) != n_atoms:
            raise ValueError("Provide exactly one species per atom.")
        if occupancies is None:
            occupancies = np.ones(n_atoms)
        occupancies = np.array(occupancies, dtype=np.float64)
        if len(occupancies) != n_atoms:
            raise ValueError("Provide exactly one occupancy per atom.")
        if np.any(occupancies <= 0) or np.any(occupancies > 1):
            raise ValueError("Occupancies must be within the interval (0, 1].")

        self.cell = cell
        self._scaled_positions = positions
        self._species = species
        self._occupancies = occupancies
        self._types = None

    @staticmethod
    def from_atoms(atoms, occupancies=None):
        """Creates a Structure from an ASE.Atoms object.

        The atomic numbers are used as species. Occupancies are taken from the
        argument if given, then from a per-atom 'occupancy' array and
        otherwise from the 'occupancy' entry that the ASE CIF reader stores in
        atoms.info, keyed by the atom tags.
        """
        numbers = atoms.get_atomic_numbers()
        if occupancies is None and atoms.has("occupancy"):
            occupancies = atoms.get_array("occupancy")
        elif occupancies is None and "occupancy" in atoms.info:
            table = atoms.info["occupancy"]
            symbols = atoms.get_chemical_symbols()
            occupancies = [
                table.get(str(tag), {}).get(symbol, 1.0)
                for tag, symbol in zip(atoms.get_tags(), symbols)
            ]
        return Structure(
            atoms.get_cell()[:],
            atoms.get_scaled_positions(wrap=False),
            numbers,
            occupancies,
        )

    def to_atoms(self):
        """Transforms this structure into an ASE.Atoms object. Species must be
        atomic numbers or chemical symbols.
        """
        kwargs = {"numbers": self._species}
        if self._species.dtype.kind in ("U", "S", "O"):
            kwargs = {"symbols": list(self._species)}
        atoms = Atoms(
            cell=self.cell.matrix,
            scaled_positions=self._scaled_positions,
            pbc=True,
            **kwargs
        )
        if np.any(self._occupancies != 1):
            atoms.set_array("occupancy", np.array(self._occupancies))
        return atoms

    def __len__(self):
        return len(self._scaled_positions)

    @property
    def scaled_positions(self):
        return np.array(self._scaled_positions)

    @property
    def species(self):
        return np.array(self._species)

    @property
    def occupancies(self):
        return np.array(self._occupancies)

    @property
    def types(self):
        """Integer codes for the species. Equal species have equal codes and
        the codes follow the sorted order of the species identifiers.
        """
        if self._types is None:
            _, self._types = np.unique(self._species, return_inverse=True)
            self._types = self._types.reshape(-1)
        return self._types

    def get_cartesian_positions(self):
        return self.cell.get_cartesian_coords(self._scaled_positions)

    def get_wrapped(self, precision=1E-5):
        """Returns a copy where all positions are within [0, 1).
        """
        positions = symid.geometry.get_wrapped_positions(self._scaled_positions, precision)
        return Structure(self.cell, positions, self._species, self._occupancies)

    def translate(self, translation):
        """Returns a copy translated by a fractional vector.
        """
        positions = self._scaled_positions + np.asarray(translation, dtype=np.float64)
        return Structure(self.cell, positions, self._species, self._occupancies)

    def subset(self, indices):
        """Returns the structure formed by the atoms with the given indices.
        """
        indices = np.asarray(indices, dtype=int)
        return Structure(
            self.cell,
            self._scaled_positions[indices],
            self._species[indices],
            self._occupancies[indices],
        )

    def change_basis(self, transformation, origin_shift=None):
        """Describes the same atoms in the basis (a', b', c') = (a, b, c) P.

        The new coordinates are x' = P^-1 x + s, where s is the origin shift.
        The positions are not wrapped and no atoms are added or removed.

        Args:
            transformation (np.ndarray): The matrix P.
            origin_shift (np.ndarray): Optional origin shift s given in the
                new basis.

        Returns:
            Structure: The atoms in the new basis.
        """
        transformation = np.asarray(transformation, dtype=np.float64)
        inverse = np.linalg.inv(transformation)
        positions = np.dot(self._scaled_positions, inverse.T)
        if origin_shift is not None:
            positions += origin_shift
        return Structure(
            self.cell.change_basis(transformation),
            positions,
            self._species,
            self._occupancies,
        )

    def get_matching_mask(self, index, allow_partial_occupancies, occupancy_tol):
        """Which atoms may coincide with the atom at the given index: those
        with the same species and, unless partial occupancies are allowed,
        with an occupancy within the tolerance.
        """
        mask = self.types == self.types[index]
        if not allow_partial_occupancies:
            mask &= np.abs(self._occupancies - self._occupancies[index]) <= occupancy_tol
        return mask
