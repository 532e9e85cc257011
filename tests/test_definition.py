"""
Tests for flag definitions and the ways a flag set can be declared.
"""

import pickle

import pytest
import flagbits
from flagbits import DefinitionError, FlagDefinition


Colors = flagbits.define("Colors", {"Red": 1, "Green": 2, "Blue": 4})


class TestFlagDefinition:
    """Test the FlagDefinition record itself."""

    def test_mask_and_max_bit(self):
        definition = FlagDefinition({"A": 1, "B": 2, "C": 8})
        assert definition.mask() == 11
        assert definition.max_bit() == 8

    def test_empty(self):
        definition = FlagDefinition({})
        assert definition.mask() == 0
        assert definition.max_bit() == 0
        assert definition.ordered() == ()
        assert len(definition) == 0

    def test_ordered_is_ascending_and_stable(self):
        """Test ordering by value, with ties kept in declaration order."""
        definition = FlagDefinition({"C": 4, "A": 1, "Also": 4, "B": 2})
        assert definition.ordered() == (("A", 1), ("B", 2), ("C", 4), ("Also", 4))

    def test_shared_and_multi_bit_values(self):
        """Test that duplicate and multi-bit values are accepted."""
        definition = FlagDefinition({"A": 1, "Alias": 1, "Both": 3, "Big": 1 << 100})
        assert definition.mask() == 3 | (1 << 100)
        assert definition.max_bit() == 1 << 100

    def test_mapping_is_copied(self):
        """Test that mutating the source dict does not change the definition."""
        source = {"A": 1}
        definition = FlagDefinition(source)
        source["B"] = 2
        assert "B" not in definition
        assert definition.mask() == 1

    def test_get(self):
        definition = FlagDefinition({"A": 1})
        assert definition.get("A") == 1
        assert definition.get("Z") == 0

    def test_equality_and_hash(self):
        first = FlagDefinition({"A": 1, "B": 2})
        second = FlagDefinition({"B": 2, "A": 1})
        assert first == second
        assert hash(first) == hash(second)
        assert first != FlagDefinition({"A": 1, "B": 2}, default_bit=1)

    def test_repr(self):
        definition = FlagDefinition({"A": 1}, default_bit=1, name="Demo")
        assert repr(definition) == "FlagDefinition({'A': 1}, default_bit=1, name='Demo')"


class TestValidation:
    """Test that invalid declarations fail at definition time."""

    def test_non_mapping(self):
        with pytest.raises(DefinitionError, match="must be a mapping"):
            FlagDefinition([("A", 1)])

    def test_non_string_name(self):
        with pytest.raises(DefinitionError, match="is not a str"):
            FlagDefinition({1: 1})

    def test_non_int_value(self):
        with pytest.raises(DefinitionError, match="must be an int"):
            FlagDefinition({"A": "1"})

    def test_bool_value(self):
        with pytest.raises(DefinitionError, match="must be an int"):
            FlagDefinition({"A": True})

    def test_float_value(self):
        with pytest.raises(DefinitionError, match="must be an int"):
            FlagDefinition({"A": 1.0})

    def test_negative_value(self):
        with pytest.raises(DefinitionError, match="non-negative"):
            FlagDefinition({"A": -1})

    def test_invalid_default_bit(self):
        with pytest.raises(DefinitionError, match="default bit"):
            FlagDefinition({"A": 1}, default_bit=-4)

    def test_error_carries_class_name(self):
        """Test that a bad class body reports the class being declared."""
        with pytest.raises(DefinitionError) as exc_info:

            class Broken(flagbits.FlaggedBitfield):
                Flags = {"A": -1}

        assert exc_info.value.name == "Broken"
        assert "Broken" in str(exc_info.value)

    def test_error_hierarchy(self):
        assert issubclass(DefinitionError, flagbits.BitfieldError)


class TestDeclaration:
    """Test the three ways to declare a flag set."""

    def test_class_attributes(self):
        class Perms(flagbits.FlaggedBitfield):
            Flags = {"Read": 1, "Write": 2}
            DefaultBit = 1

        assert Perms.get_mask() == 3
        assert Perms().value == 1

    def test_class_keywords(self):
        class Perms(flagbits.FlaggedBitfield, flags={"Read": 1, "Write": 2}, default_bit=2):
            pass

        assert Perms.get_mask() == 3
        assert Perms().to_array() == ["Write"]
        assert dict(Perms.Flags) == {"Read": 1, "Write": 2}
        assert Perms.DefaultBit == 2

    def test_class_keyword_with_definition(self):
        definition = FlagDefinition({"X": 1, "Y": 2}, default_bit=3)

        class XY(flagbits.FlaggedBitfield, flags=definition):
            pass

        assert XY().value == 3
        assert XY.get_definition() == definition

    def test_define(self):
        assert Colors.__name__ == "Colors"
        assert Colors.__module__ == __name__
        assert issubclass(Colors, flagbits.FlaggedBitfield)
        assert Colors(["Blue", "Red"]).to_array() == ["Red", "Blue"]

    def test_define_with_definition_and_default(self):
        definition = FlagDefinition({"On": 1}, default_bit=1)
        Switch = flagbits.define("Switch", definition)
        assert Switch().value == 1
        Off = flagbits.define("Off", definition, default_bit=0)
        assert Off().value == 0

    def test_define_with_base(self):
        """Test that define() can derive from an existing flag set."""

        class Base(flagbits.FlaggedBitfield):
            Flags = {"A": 1}

            def describe(self):
                return "+".join(self)

        Extended = flagbits.define("Extended", {"A": 1, "B": 2}, base=Base)
        assert Extended(3).describe() == "A+B"

    def test_define_rejects_invalid(self):
        with pytest.raises(DefinitionError):
            flagbits.define("Bad", {"A": "x"})

    def test_defined_class_pickles(self):
        colors = Colors(["Green"])
        restored = pickle.loads(pickle.dumps(colors))
        assert type(restored) is Colors
        assert restored.value == 2

    def test_subclass_inherits_flags(self):
        class Parent(flagbits.FlaggedBitfield):
            Flags = {"A": 1, "B": 2}
            DefaultBit = 2

        class Child(Parent):
            pass

        assert Child.get_mask() == 3
        assert Child().value == 2

    def test_subclass_can_replace_flags(self):
        class Parent(flagbits.FlaggedBitfield):
            Flags = {"A": 1, "B": 2}

        class Child(Parent):
            Flags = {"C": 4}

        assert Child.get_mask() == 4
        assert Parent.get_mask() == 3

    def test_class_flags_become_read_only(self):
        """Test that the declared dict is replaced with a read-only view."""
        source = {"A": 1}

        class Perms(flagbits.FlaggedBitfield):
            Flags = source

        source["B"] = 2
        assert Perms.get_mask() == 1
        with pytest.raises(TypeError):
            Perms.Flags["C"] = 4

    def test_definition_shared_between_instances(self):
        first = Colors("Red")
        second = Colors("Blue")
        assert first.get_flags() is second.get_flags()

    def test_declaration_is_logged(self, caplog):
        with caplog.at_level("DEBUG", logger="flagbits.bitfield"):

            class Logged(flagbits.FlaggedBitfield):
                Flags = {"A": 1, "B": 4}

        assert "Declared flag set Logged: 2 flags, mask=0x5" in caplog.text
