import logging
import unittest

__himmel__ = True  # we need something to know if we loaded himmel "test" module or something else (such as python "test" module)
logger = logging.getLogger('unittest')


class PrintableBytes(bytes):
    def __repr__(self) -> str:
        return 'bytes(' + self.hex() + ')'


class PrintableByteArray(bytearray):
    def __repr__(self) -> str:
        return 'bytearray(' + bytes(self).hex() + ')'


class HimmelUnitTest(unittest.TestCase):

    def assertEqual(self, v1, v2, *args, **kwargs):
        if isinstance(v1, bytes) and isinstance(v2, bytes):
            super().assertEqual(PrintableBytes(v1), PrintableBytes(v2), *args, **kwargs)
        elif isinstance(v1, bytearray) and isinstance(v2, bytearray):
            super().assertEqual(PrintableByteArray(v1), PrintableByteArray(v2), *args, **kwargs)
        else:
            super().assertEqual(v1, v2, *args, **kwargs)

    def assertNotEqual(self, v1, v2, *args, **kwargs):
        if isinstance(v1, bytes) and isinstance(v2, bytes):
            super().assertNotEqual(PrintableBytes(v1), PrintableBytes(v2), *args, **kwargs)
        elif isinstance(v1, bytearray) and isinstance(v2, bytearray):
            super().assertNotEqual(PrintableByteArray(v1), PrintableByteArray(v2), *args, **kwargs)
        else:
            super().assertNotEqual(v1, v2, *args, **kwargs)

    def assert_no_names(self, records, names):
        self.assertFalse(set([record.name for record in records]) & set(names))

    def get_by_name(self, records, name):
        found = [record for record in records if record.name == name]
        self.assertEqual(len(found), 1, f"Expected exactly one record named {name}. Found {len(found)}")
        return found[0]
