# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Open modes for stream sessions.

Mode strings follow ``fopen`` conventions; ``b`` and ``t`` are ignored since
sessions are always binary.

======  =====  =====  ========  ======  ======  ==============
mode    read   write  truncate  append  create  fail-if-exists
======  =====  =====  ========  ======  ======  ==============
r       yes    no     no        no      no      no
r+      yes    yes    no        no      no      no
w       no     yes    yes       no      yes     no
w+      yes    yes    yes       no      yes     no
a       no     yes    no        yes     yes     no
a+      yes    yes    no        yes     yes     no
x       no     yes    no        no      yes     yes
x+      yes    yes    no        no      yes     yes
c       no     yes    no        no      yes     no
c+      yes    yes    no        no      yes     no
nope    yes    yes    no        no      yes     no
======  =====  =====  ========  ======  ======  ==============

``nope`` is a debugging mode: the session behaves like ``c+`` but never
uploads anything.
"""
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class OpenMode:
    """Flags interpreted from a mode string."""
    mode: str
    read: bool = False
    write: bool = False
    truncate: bool = False
    append: bool = False
    create: bool = False
    fail_if_exists: bool = False
    never_write_remote: bool = False

    @classmethod
    def parse(cls, mode: str) -> 'OpenMode':
        """
        Interpret a mode string.

        Args:
            mode (str): e.g. ``'r'``, ``'w+'``, ``'ab'``

        Returns:
            OpenMode: The interpreted flags

        Raises:
            ValueError: If the mode is not recognized
        """
        key = mode.replace('b', '').replace('t', '') if mode != 'nope' else mode
        try:
            return MODES[key]
        except KeyError:
            raise ValueError(f"invalid mode: {mode!r}") from None

    @property
    def read_only(self) -> bool:
        return self.read and not self.write

    @property
    def write_only(self) -> bool:
        return self.write and not self.read


MODES = {
    'r': OpenMode('r', read=True),
    'r+': OpenMode('r+', read=True, write=True),
    'w': OpenMode('w', write=True, truncate=True, create=True),
    'w+': OpenMode('w+', read=True, write=True, truncate=True, create=True),
    'a': OpenMode('a', write=True, append=True, create=True),
    'a+': OpenMode('a+', read=True, write=True, append=True, create=True),
    'x': OpenMode('x', write=True, create=True, fail_if_exists=True),
    'x+': OpenMode('x+', read=True, write=True, create=True, fail_if_exists=True),
    'c': OpenMode('c', write=True, create=True),
    'c+': OpenMode('c+', read=True, write=True, create=True),
    'nope': OpenMode('nope', read=True, write=True, create=True, never_write_remote=True),
}


def mode_from_flags(flags: int) -> str:
    """
    Translate ``os.open`` flags into a mode string.

    Used for FUSE ``open``/``create`` calls, which pass POSIX flags.

    Args:
        flags (int): Bitmask of os.O_* flags

    Returns:
        str: The matching mode string
    """
    access = flags & os.O_ACCMODE
    if access == os.O_RDONLY:
        return 'r'

    plus = '+' if access == os.O_RDWR else ''
    if flags & os.O_CREAT and flags & os.O_EXCL:
        return 'x' + plus
    if flags & os.O_APPEND:
        return 'a' + plus
    if flags & os.O_TRUNC:
        return 'w' + plus
    if plus:
        return 'c+' if flags & os.O_CREAT else 'r+'
    return 'c'
