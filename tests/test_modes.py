import os

import pytest

from objectstore_sdk.fs.modes import MODES, OpenMode, mode_from_flags


@pytest.mark.parametrize("mode,read,write,truncate,append,create,fail_if_exists", [
    ("r", True, False, False, False, False, False),
    ("r+", True, True, False, False, False, False),
    ("w", False, True, True, False, True, False),
    ("w+", True, True, True, False, True, False),
    ("a", False, True, False, True, True, False),
    ("a+", True, True, False, True, True, False),
    ("x", False, True, False, False, True, True),
    ("x+", True, True, False, False, True, True),
    ("c", False, True, False, False, True, False),
    ("c+", True, True, False, False, True, False),
])
def test_mode_table(mode, read, write, truncate, append, create, fail_if_exists):
    parsed = OpenMode.parse(mode)
    assert (parsed.read, parsed.write, parsed.truncate, parsed.append, parsed.create,
            parsed.fail_if_exists) == (read, write, truncate, append, create, fail_if_exists)
    assert not parsed.never_write_remote


def test_binary_and_text_flags_are_ignored():
    assert OpenMode.parse("rb") is MODES["r"]
    assert OpenMode.parse("wb+") is MODES["w+"]
    assert OpenMode.parse("rt") is MODES["r"]


def test_nope_mode_never_writes_remote():
    mode = OpenMode.parse("nope")
    assert mode.never_write_remote
    assert mode.read and mode.write and mode.create


@pytest.mark.parametrize("mode", ["", "q", "rw", "r++", "rx"])
def test_invalid_modes(mode):
    with pytest.raises(ValueError):
        OpenMode.parse(mode)


def test_read_only_and_write_only():
    assert MODES["r"].read_only
    assert MODES["w"].write_only
    assert not MODES["r+"].read_only
    assert not MODES["r+"].write_only


@pytest.mark.parametrize("flags,mode", [
    (os.O_RDONLY, "r"),
    (os.O_RDWR, "r+"),
    (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, "w"),
    (os.O_RDWR | os.O_CREAT | os.O_TRUNC, "w+"),
    (os.O_WRONLY | os.O_APPEND, "a"),
    (os.O_RDWR | os.O_CREAT | os.O_APPEND, "a+"),
    (os.O_WRONLY | os.O_CREAT | os.O_EXCL, "x"),
    (os.O_RDWR | os.O_CREAT | os.O_EXCL, "x+"),
    (os.O_WRONLY, "c"),
    (os.O_RDWR | os.O_CREAT, "c+"),
])
def test_mode_from_flags(flags, mode):
    assert mode_from_flags(flags) == mode
