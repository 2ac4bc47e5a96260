"""
Tests for the racr grammar rules.
"""

import threading

import pytest

import racr
from racr import (
    Access,
    DeviceDefinition,
    EnumField,
    FieldInstance,
    FieldVariant,
    Module,
    NamedField,
    Options,
    Parser,
    Path,
    PeripheralDefinition,
    PeripheralInstance,
    RegisterArray,
    RegisterDefinition,
    RegisterInstance,
    ReservedField,
    SingleRegister,
    SingleSlot,
    UnionSlot,
    Use,
    UseIdent,
    UsePath,
    UseRename,
)


class TestAccess:
    """Test access qualifiers."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("ro", Access.READ_ONLY),
            ("wo", Access.WRITE_ONLY),
            ("rw", Access.READ_WRITE),
            ("raw", Access.READ_AS_WRITE),
        ],
    )
    def test_access_keywords(self, text, expected):
        assert racr.parse_access(text) == expected

    @pytest.mark.parametrize("text", ["foo", "read", "RO", "register", "0"])
    def test_other_text_is_rejected(self, text):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_access(text)

    def test_trailing_tokens_are_rejected(self):
        with pytest.raises(racr.RacrUnexpectedTokenError) as exc_info:
            racr.parse_access("ro rw")
        assert exc_info.value.found.kind == racr.TokenKind.RW


class TestPath:
    """Test paths."""

    def test_nested_path(self):
        path = racr.parse_path("foo::bar::baz")
        assert path.segments == ("foo", "bar", "baz")
        assert path == Path("foo", "bar", "baz")

    def test_single_segment(self):
        assert racr.parse_path("Foo").segments == ("Foo",)

    def test_crate_is_a_plain_segment(self):
        assert racr.parse_path("crate::uart::Config").segments == ("crate", "uart", "Config")

    def test_whitespace_between_segments(self):
        assert racr.parse_path("foo :: bar") == Path("foo::bar")

    def test_must_start_with_identifier(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_path("::foo")

    def test_dangling_separator(self):
        with pytest.raises(racr.RacrUnexpectedEndError):
            racr.parse_path("foo::")


class TestModule:
    """Test module declarations."""

    def test_forward_declaration(self):
        assert racr.parse_module("mod foo;") == Module(ident="foo", content=None)

    def test_nested_modules(self):
        expected = Module(
            "foo", [Module("bar", [Module("baz", None)])]
        )
        assert racr.parse_module("mod foo {mod bar {mod baz;}}") == expected

    def test_empty_body_differs_from_declaration(self):
        module = racr.parse_module("mod foo {}")
        assert module.content == ()
        assert module != racr.parse_module("mod foo;")

    def test_documentation(self):
        module = racr.parse_module('#[doc = "Timers"]\nmod timers;')
        assert module.documentation == "Timers"

    def test_items_in_module(self):
        module = racr.parse_module(
            """
            mod uart {
                use crate::common::Reg;
                rw register[8] Data { field[0..8] value }
                peripheral Uart { data: Data @ 0 }
            }
            """
        )
        assert [type(item) for item in module.content] == [
            Use,
            RegisterDefinition,
            PeripheralDefinition,
        ]


class TestUse:
    """Test use statements."""

    def test_single_ident(self):
        assert racr.parse_use("use Foo;") == Use(UseIdent("Foo"))

    def test_nested_path(self):
        expected = Use(UsePath("foo", UsePath("bar", UseIdent("Baz"))))
        assert racr.parse_use("use foo::bar::Baz;") == expected

    def test_rename(self):
        expected = Use(UsePath("foo", UseRename("Bar", "Baz")))
        assert racr.parse_use("use foo::Bar as Baz;") == expected

    def test_rename_without_path(self):
        assert racr.parse_use("use Foo as Bar;") == Use(UseRename("Foo", "Bar"))

    def test_crate_segment(self):
        expected = Use(UsePath("crate", UsePath("bar", UseIdent("Baz"))))
        assert racr.parse_use("use crate::bar::Baz;") == expected

    def test_missing_semicolon(self):
        with pytest.raises(racr.RacrUnexpectedEndError):
            racr.parse_use("use foo::Bar")

    def test_rename_must_end_tree(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_use("use foo as bar::Baz;")

    def test_invalid_continuation(self):
        with pytest.raises(racr.RacrUnexpectedTokenError) as exc_info:
            racr.parse_use("use foo bar;")
        assert exc_info.value.expected == ("'::'", "'as'", "';'")


class TestRegisterDefinition:
    """Test register definitions."""

    def test_full_definition(self, register_source):
        expected = RegisterDefinition(
            access=Access.WRITE_ONLY,
            ident="Foo",
            documentation="Some documentation",
            size=32,
            reset_value=0x00,
            fields=[
                FieldInstance(ty=NamedField("bar"), bit_range=range(0, 4)),
                FieldInstance(
                    ty=EnumField(
                        "barX",
                        [
                            FieldVariant("BarA", 0),
                            FieldVariant("BarB", 2, "some documentation"),
                            FieldVariant("BarC", 4),
                        ],
                    ),
                    bit_range=range(4, 8),
                ),
                FieldInstance(
                    ty=NamedField("baz"), bit_range=range(8, 9), access=Access.READ_ONLY
                ),
                FieldInstance(
                    ty=ReservedField(0),
                    bit_range=range(9, 10),
                    documentation="Some documentation",
                ),
                FieldInstance(ty=ReservedField(2), bit_range=range(10, 12)),
                FieldInstance(
                    ty=NamedField("bax"),
                    bit_range=range(12, 32),
                    documentation="Some documentation",
                ),
            ],
        )

        assert racr.parse_register_definition(register_source) == expected

    def test_field_order_and_ranges(self, register_source):
        register = racr.parse_register_definition(register_source)
        assert len(register.fields) == 6
        assert [f.bit_range for f in register.fields] == [
            range(0, 4),
            range(4, 8),
            range(8, 9),
            range(9, 10),
            range(10, 12),
            range(12, 32),
        ]

    def test_without_reset_value_or_fields(self):
        register = racr.parse_register_definition("raw register[16] Empty {}")
        assert register.reset_value is None
        assert register.fields == ()
        assert register.documentation is None
        assert register.access == Access.READ_AS_WRITE

    def test_without_trailing_comma(self):
        register = racr.parse_register_definition(
            "rw register[8] R { field[0] a, enum[1..3] b { X = 0, Y = 1 } }"
        )
        assert [f.ty for f in register.fields] == [
            NamedField("a"),
            EnumField("b", [FieldVariant("X", 0), FieldVariant("Y", 1)]),
        ]

    def test_documented_field_with_access(self):
        register = racr.parse_register_definition(
            'rw register[8] R { #[doc = "Flag"] wo field[7] flag }'
        )
        field = register.fields[0]
        assert field.documentation == "Flag"
        assert field.access == Access.WRITE_ONLY
        assert field.effective_access(register.access) == Access.WRITE_ONLY

    def test_missing_separator_between_fields(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_register_definition("rw register[8] R { field[0] a field[1] b }")

    def test_zero_size(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_register_definition("rw register[0] R {}")

    def test_field_exceeding_register_size(self):
        with pytest.raises(racr.RacrBitRangeError) as exc_info:
            racr.parse_register_definition("rw register[8] R { field[4..9] a }")
        assert (exc_info.value.start, exc_info.value.end) == (4, 9)

    def test_field_bounds_check_can_be_disabled(self):
        options = Options(check_field_bounds=False)
        register = racr.parse_register_definition(
            "rw register[8] R { field[4..9] a }", options
        )
        assert register.fields[0].bit_range == range(4, 9)

    def test_overlapping_fields_are_accepted(self):
        register = racr.parse_register_definition(
            "rw register[8] R { field[0..4] a, field[2..6] b }"
        )
        assert len(register.fields) == 2


class TestPeripheralDefinition:
    """Test peripheral definitions."""

    def test_full_definition(self, peripheral_source):
        expected = PeripheralDefinition(
            ident="Foo",
            documentation="Some documentation",
            registers=[
                SingleSlot(
                    RegisterInstance("bar", SingleRegister(racr.parse_path("bar::Bar"))),
                    offset=0x0,
                ),
                SingleSlot(
                    RegisterInstance("bax", RegisterArray(racr.parse_path("bax::Bax"), 2)),
                    offset=0x4,
                ),
                UnionSlot(
                    alternatives=[
                        RegisterInstance("baz1", SingleRegister(Path("baz::Baz1"))),
                        RegisterInstance("baz2", SingleRegister(Path("baz::Baz2"))),
                        RegisterInstance("baz3", SingleRegister(Path("baz::Baz3"))),
                    ],
                    offset=0x10,
                ),
            ],
        )

        assert racr.parse_peripheral_definition(peripheral_source) == expected

    def test_slot_kinds(self, peripheral_source):
        peripheral = racr.parse_peripheral_definition(peripheral_source)
        assert [type(s) for s in peripheral.registers] == [SingleSlot, SingleSlot, UnionSlot]
        assert len(peripheral.registers[2].alternatives) == 3

    def test_single_alternative_union_is_rejected(self):
        with pytest.raises(racr.RacrUnexpectedTokenError) as exc_info:
            racr.parse_peripheral_definition("peripheral P { (a: A) @ 0x0 }")
        assert exc_info.value.expected == ("'|'",)

    def test_single_alternative_union_option(self):
        options = Options(allow_single_alternative_union=True)
        peripheral = racr.parse_peripheral_definition("peripheral P { (a: A) @ 0x8 }", options)
        assert peripheral.registers == (
            UnionSlot([RegisterInstance("a", SingleRegister(Path("A")))], 0x8),
        )

    def test_union_alternatives_cannot_be_arrays(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_peripheral_definition("peripheral P { (a: [A; 2] | b: B) @ 0 }")

    def test_missing_offset(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_peripheral_definition("peripheral P { a: A, }")


class TestDeviceDefinition:
    """Test device definitions."""

    def test_full_definition(self, device_source):
        expected = DeviceDefinition(
            ident="Foo",
            documentation="Some documentation",
            peripherals=[
                PeripheralInstance("bar", Path("bar::Bar"), 0x0),
                PeripheralInstance("baz", Path("baz::Baz"), 0x4),
                PeripheralInstance("bax", Path("bax::Bax"), 0xC),
            ],
        )

        assert racr.parse_device_definition(device_source) == expected

    def test_large_addresses(self):
        device = racr.parse_device_definition(
            "device D { uart0: uart::Uart @ 0x4000_2000, gpio: Gpio @ 0x5000_0000 }"
        )
        assert [p.address for p in device.peripherals] == [0x40002000, 0x50000000]

    def test_arrays_are_not_allowed(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_device_definition("device D { p: [P; 2] @ 0 }")


class TestItemAndContent:
    """Test top-level items and whole source units."""

    def test_item_dispatch(self):
        assert isinstance(racr.parse_item("use Foo;"), Use)
        assert isinstance(racr.parse_item("mod foo;"), Module)
        assert isinstance(racr.parse_item("ro register[8] R {}"), RegisterDefinition)
        assert isinstance(racr.parse_item("peripheral P {}"), PeripheralDefinition)
        assert isinstance(racr.parse_item("device D {}"), DeviceDefinition)

    def test_documented_items(self):
        item = racr.parse_item('#[doc = "Status"]\nro register[8] Status {}')
        assert item.documentation == "Status"

    def test_content(self, content_source):
        content = racr.parse_content(content_source)
        assert len(content) == 3
        assert content[0] == Use(UseIdent("Foo"))
        assert content[1] == Use(UsePath("crate", UsePath("bar", UseIdent("Baz"))))

        module = content[2]
        assert isinstance(module, Module)
        assert module.ident == "module"
        assert len(module.content) == 1
        peripheral = module.content[0]
        assert isinstance(peripheral, PeripheralDefinition)
        assert not any(isinstance(item, PeripheralDefinition) for item in content)

    def test_empty_content(self):
        assert racr.parse_content("") == ()
        assert racr.parse_content("  // nothing here\n") == ()

    def test_invalid_item(self):
        with pytest.raises(racr.RacrUnexpectedTokenError):
            racr.parse_content("use Foo;\nregister[8] R {}")

    def test_parser_is_reusable_across_threads(self, content_source):
        parser = Parser()
        results = []

        def work():
            results.append(parser.content(content_source))

        threads = [threading.Thread(target=work) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 4
        assert all(r == results[0] for r in results)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
