import unittest
from unittest.mock import patch

import numpy as np
from numpy.random import RandomState

from ase import Atoms

from symid import SpaceGroupFinder, Structure, find_space_group, find_space_group_from_atoms
from symid.data import constants
from symid.exceptions import GroupNotClosed, NoAtomsMatched, LatticeDegenerate
from symid.symmetry.closure import verify_closure

from conftest import create_si, create_fe, create_nacl, create_triclinic


class dotdict(dict):
    """dot.notation access to dictionary attributes"""
    __getattr__ = dict.get
    __setattr__ = dict.__setitem__
    __delattr__ = dict.__delitem__


class SpaceGroupFinder3DTests(unittest.TestCase):
    """Tests the analysis of bulk 3D materials.
    """
    def test_diamond(self):
        """Test that a silicon diamond lattice is characterized correctly.
        """
        # Create the system
        si = create_si()

        # Apply some noise
        si.rattle(stdev=0.005, seed=42)
        si.translate([1, 2, 1])

        # Get the data
        data = self.get_material3d_properties(si, symmetry_precision=0.05)

        # Check that the data is valid
        self.assertEqual(data.chiral, False)
        self.assertEqual(data.space_group_number, 227)
        self.assertEqual(data.space_group_int, "Fd-3m")
        self.assertEqual(data.hall_symbol, "F 4d 2 3 -1d")
        self.assertEqual(data.hall_number, 525)
        self.assertEqual(data.point_group, "m-3m")
        self.assertEqual(data.crystal_system, "cubic")
        self.assertEqual(data.bravais_lattice, "cF")
        self.assertEqual(data.choice, "1")
        self.assertEqual(len(data.operations), 192)
        self.assertEqual(len(data.prim_system), 2)
        self.assertTrue(np.array_equal(data.equivalent_conv, [0, 0, 0, 0, 0, 0, 0, 0]))
        self.assertEqual(len(data.asymmetric_system), 1)

    def test_distorted_diamond(self):
        """Test that a strained and rattled diamond lattice is recognized
        with a loose precision and not with a tight one.
        """
        # Create the system
        si = create_si()

        # Apply some noise
        si.rattle(stdev=0.05, seed=42)
        si.translate([1, 2, 1])
        cell = si.get_cell()
        a = cell[0, :]
        a *= 1.02
        cell[0, :] = a
        si.set_cell(cell)

        finder = SpaceGroupFinder(si, symmetry_precision=0.2)
        self.assertEqual(finder.get_space_group_number(), 227)
        self.assertEqual(finder.get_hall_number(), 525)
        self.assertEqual(finder.get_point_group().symbol, "m-3m")
        self.assertEqual(len(finder.get_symmetry_operations()), 192)

        finder = SpaceGroupFinder(si, symmetry_precision=0.1)
        self.assertEqual(finder.get_space_group_number(), 1)

    def test_fcc(self):
        """Test that a primitive NaCl fcc lattice is characterized correctly.
        """
        # Create the system
        cell = np.array(
            [
                [0, 2.8201, 2.8201],
                [2.8201, 0, 2.8201],
                [2.8201, 2.8201, 0]
            ]
        )
        nacl = Atoms(
            symbols=["Na", "Cl"],
            scaled_positions=np.array([
                [0, 0, 0],
                [0.5, 0.5, 0.5]
            ]),
            cell=cell,
            pbc=True
        )
        nacl = nacl.repeat([2, 1, 1])

        # Get the data
        data = self.get_material3d_properties(nacl)

        # Check that the data is valid
        self.assertEqual(data.space_group_number, 225)
        self.assertEqual(data.space_group_int, "Fm-3m")
        self.assertEqual(data.hall_symbol, "-F 4 2 3")
        self.assertEqual(data.hall_number, 523)
        self.assertEqual(data.point_group, "m-3m")
        self.assertEqual(data.crystal_system, "cubic")
        self.assertEqual(data.bravais_lattice, "cF")
        self.assertEqual(data.choice, "")
        self.assertEqual(data.chiral, False)
        self.assertTrue(np.array_equal(data.equivalent_conv, [0, 1, 0, 1, 0, 1, 0, 1]))
        self.assertEqual(len(data.asymmetric_system), 2)
        self.assertEqual(set(data.asymmetric_system.species), {11, 17})

    def test_bcc(self):
        """Test that a body centered cubic lattice for iron is characterized
        correctly.
        """
        system = create_fe(cubic=True)

        # Get the data
        data = self.get_material3d_properties(system)

        # Check that the data is valid
        self.assertEqual(data.space_group_number, 229)
        self.assertEqual(data.space_group_int, "Im-3m")
        self.assertEqual(data.hall_symbol, "-I 4 2 3")
        self.assertEqual(data.hall_number, 529)
        self.assertEqual(data.point_group, "m-3m")
        self.assertEqual(data.crystal_system, "cubic")
        self.assertEqual(data.bravais_lattice, "cI")
        self.assertEqual(data.choice, "")
        self.assertTrue(np.array_equal(data.equivalent_conv, [0, 0]))
        self.assertEqual(len(data.prim_system), 1)

    def test_unsymmetric(self):
        """Test that a random system is handled correctly.
        """
        rng = RandomState(42)
        positions = 10*rng.rand(10, 3)
        system = Atoms(
            positions=positions,
            symbols=["H", "C", "Na", "Fe", "Cu", "He", "Ne", "Mg", "Si", "Ti"],
            cell=[10, 10, 10],
            pbc=True
        )

        # Get the data
        data = self.get_material3d_properties(system)

        # Check that the data is valid
        self.assertEqual(data.space_group_number, 1)
        self.assertEqual(data.space_group_int, "P1")
        self.assertEqual(data.hall_number, 1)
        self.assertEqual(data.point_group, "1")
        self.assertEqual(data.crystal_system, "triclinic")
        self.assertEqual(data.bravais_lattice, "aP")
        self.assertEqual(data.chiral, True)
        self.assertEqual(len(data.operations), 1)
        self.assertEqual(len(data.asymmetric_system), 10)
        self.assertTrue(np.array_equal(data.equivalent_conv, np.arange(10)))

    def test_triclinic(self):
        """Test that a triclinic cell is brought to the Niggli reduced
        setting.
        """
        system = create_triclinic()
        data = self.get_material3d_properties(system)

        self.assertEqual(data.space_group_number, 2)
        self.assertEqual(data.hall_number, 2)
        self.assertEqual(data.point_group, "-1")
        self.assertEqual(data.bravais_lattice, "aP")
        self.assertTrue(np.allclose(
            data.transformation_matrix,
            [[1, 0, 0], [0, -1, 0], [0, 0, -1]]
        ))

    def get_material3d_properties(self, system, symmetry_precision=None):
        finder = SpaceGroupFinder(system, symmetry_precision=symmetry_precision)
        data = dotdict()

        data.space_group_number = finder.get_space_group_number()
        data.space_group_int = finder.get_space_group_international_short()
        data.hall_symbol = finder.get_hall_symbol()
        data.hall_number = finder.get_hall_number()
        data.conv_system = finder.get_conventional_structure()
        data.prim_system = finder.get_primitive_cell().structure
        data.operations = finder.get_symmetry_operations()
        data.origin_shift = finder.get_origin_shift()
        data.choice = finder.get_choice()
        data.point_group = finder.get_point_group().symbol
        data.crystal_system = finder.get_crystal_system()
        data.bravais_lattice = finder.get_bravais_lattice()
        data.transformation_matrix = finder.get_transformation_matrix()
        data.equivalent_conv = finder.get_equivalent_atoms_conventional()
        data.asymmetric_system = finder.get_asymmetric_unit()
        data.chiral = finder.get_is_chiral()

        return data


class EntryPointTests(unittest.TestCase):
    """Tests the functional entry points and the returned result record.
    """
    def test_find_space_group(self):
        si = create_si(cubic=False)
        result = find_space_group(
            si.get_cell()[:],
            si.get_scaled_positions(),
            si.get_atomic_numbers())
        self.assertEqual(result.space_group_number, 227)
        self.assertEqual(result.hall_number, 525)

    def test_chemical_symbols_as_species(self):
        nacl = create_nacl(cubic=True)
        result = find_space_group(
            nacl.get_cell()[:],
            nacl.get_scaled_positions(),
            nacl.get_chemical_symbols())
        self.assertEqual(result.space_group_number, 225)
        self.assertEqual(set(result.asymmetric_atoms.species), {"Na", "Cl"})

    def test_result_is_immutable(self):
        result = find_space_group_from_atoms(create_fe(cubic=False))
        with self.assertRaises(AttributeError):
            result.hall_number = 1
        with self.assertRaises(ValueError):
            result.transformation_matrix[0, 0] = 2

    def test_conventional_cell(self):
        result = find_space_group_from_atoms(create_fe(cubic=False))
        self.assertTrue(np.allclose(result.conventional_cell.lengths, [2.834]*3))
        self.assertTrue(np.allclose(result.conventional_cell.angles, [90]*3))
        self.assertEqual(len(result.atoms), 2)
        self.assertEqual(len(result.operations), 96)

    def test_cached_values(self):
        finder = SpaceGroupFinder(create_fe())
        first = finder.get_space_group_result()
        self.assertIs(first, finder.get_space_group_result())
        finder.set_structure(create_si())
        self.assertEqual(finder.get_space_group_result().space_group_number, 227)

    def test_empty(self):
        structure = Structure(np.identity(3)*5, np.zeros((0, 3)), [])
        with self.assertRaises(NoAtomsMatched):
            find_space_group(structure.cell.matrix, structure.scaled_positions, structure.species)

    def test_degenerate_cell(self):
        with self.assertRaises(LatticeDegenerate):
            find_space_group(
                [[1, 0, 0], [0, 1, 0], [1, 1, 0]],
                [[0, 0, 0]],
                [1])


class RelaxedPrecisionTests(unittest.TestCase):
    """Tests the single retry with a relaxed precision when the found
    operations do not form a group.
    """
    def test_retry_once(self):
        precisions = []

        def fail_first(operations, cell, precision):
            precisions.append(precision)
            if len(precisions) == 1:
                raise GroupNotClosed("Missing product.")
            return verify_closure(operations, cell, precision)

        finder = SpaceGroupFinder(create_fe(), symmetry_precision=0.01)
        with patch("symid.symmetry.spacegroupfinder.verify_closure", side_effect=fail_first):
            with self.assertLogs("symid.symmetry.spacegroupfinder", level="WARNING"):
                precision = finder.get_precision()
            self.assertEqual(finder.get_space_group_number(), 229)

        relaxed = constants.RELAXED_PRECISION_FACTOR*0.01
        self.assertEqual(precisions, [0.01, relaxed])
        self.assertEqual(precision, relaxed)
        self.assertEqual(finder.get_precision(), relaxed)

    def test_retry_fails(self):
        finder = SpaceGroupFinder(create_fe(), symmetry_precision=0.01)
        with patch(
                "symid.symmetry.spacegroupfinder.verify_closure",
                side_effect=GroupNotClosed("Missing product.")) as closure:
            with self.assertLogs("symid.symmetry.spacegroupfinder", level="WARNING"):
                with self.assertRaises(GroupNotClosed):
                    finder.get_space_group_number()
        self.assertEqual(closure.call_count, 2)

    def test_no_retry_needed(self):
        finder = SpaceGroupFinder(create_fe(), symmetry_precision=0.01)
        with patch(
                "symid.symmetry.spacegroupfinder.verify_closure",
                side_effect=verify_closure) as closure:
            self.assertEqual(finder.get_space_group_number(), 229)
        self.assertEqual(closure.call_count, 1)
        self.assertEqual(finder.get_precision(), 0.01)


if __name__ == '__main__':
    suites = []
    suites.append(unittest.TestLoader().loadTestsFromTestCase(SpaceGroupFinder3DTests))
    suites.append(unittest.TestLoader().loadTestsFromTestCase(EntryPointTests))
    suites.append(unittest.TestLoader().loadTestsFromTestCase(RelaxedPrecisionTests))

    alltests = unittest.TestSuite(suites)
    result = unittest.TextTestRunner(verbosity=0).run(alltests)
