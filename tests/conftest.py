"""
Pytest configuration and shared fixtures.
"""

import pytest

REGISTER_SOURCE = """
#[doc = "Some documentation"]
wo register[32] Foo = 0 {
    field[0..4] bar,
    enum[4..8] barX {
        BarA = 0,
        #[doc = "some documentation"]
        BarB = 0b10,
        BarC = 0x4,
    },
    ro field[8] baz,
    #[doc = "Some documentation"]
    reserved[9] = 0,
    reserved[10..12] = 2,
    #[doc = "Some documentation"]
    field[12..32] bax,
}"""

PERIPHERAL_SOURCE = """
#[doc = "Some documentation"]
peripheral Foo {
   bar: bar::Bar @ 0x00,
   bax: [bax::Bax; 2] @ 0x04,
   (baz1: baz::Baz1 | baz2: baz::Baz2 | baz3: baz::Baz3) @ 0x10,
}"""

DEVICE_SOURCE = """
#[doc = "Some documentation"]
device Foo {
   bar: bar::Bar @ 0x00,
   baz: baz::Baz @ 0x04,
   bax: bax::Bax @ 0x0c,
}"""

CONTENT_SOURCE = """
use Foo;
use crate::bar::Baz;

mod module {
    peripheral Peripheral {
        foo: Foo @ 0x00,
        nar: Baz @ 0x10,
    }
}
"""


@pytest.fixture
def register_source():
    return REGISTER_SOURCE


@pytest.fixture
def peripheral_source():
    return PERIPHERAL_SOURCE


@pytest.fixture
def device_source():
    return DEVICE_SOURCE


@pytest.fixture
def content_source():
    return CONTENT_SOURCE
