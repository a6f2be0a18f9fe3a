import unittest

from core.errors import ConfigurationError, ErrorCode, UnsupportedTypeError
from core.type_registry import SemanticType, TypeRegistry


class TestTypeRegistryMatrix(unittest.TestCase):

    def assertMapping(self, source_type, expected):
        semantic = TypeRegistry.map_to_semantic(source_type)
        self.assertEqual(semantic, expected, f"{source_type} -> {semantic} (Expected {expected})")

    def test_oledb_matrix(self):
        self.assertMapping('Char', SemanticType.TEXT)
        self.assertMapping('Integer', SemanticType.INTEGER)
        self.assertMapping('Numeric', SemanticType.NUMERIC)
        self.assertMapping('Boolean', SemanticType.BOOLEAN)
        self.assertMapping('DBDate', SemanticType.DATE)
        self.assertMapping('Binary', SemanticType.BINARY)

    def test_foxpro_matrix(self):
        self.assertMapping('memo', SemanticType.TEXT)
        self.assertMapping('L', SemanticType.BOOLEAN)
        self.assertMapping('datetime', SemanticType.DATE)
        self.assertMapping('general', SemanticType.BINARY)
        self.assertMapping(' N ', SemanticType.NUMERIC)

    def test_semantic_names_pass_through(self):
        self.assertMapping('Text', SemanticType.TEXT)
        self.assertMapping(SemanticType.DATE, SemanticType.DATE)

    def test_unknown_type_is_fatal(self):
        with self.assertRaises(UnsupportedTypeError) as ctx:
            TypeRegistry.map_to_semantic('Currency', column='family_$.fee')

        self.assertIsInstance(ctx.exception, ConfigurationError)
        self.assertEqual(ctx.exception.code, ErrorCode.UNSUPPORTED_TYPE)
        self.assertEqual(ctx.exception.details['column'], 'family_$.fee')
        self.assertIn('Currency', ctx.exception.message)

    def test_lookup_returns_none_for_unknown(self):
        self.assertIsNone(TypeRegistry.lookup('Currency'))
        self.assertIsNone(TypeRegistry.lookup(None))


if __name__ == '__main__':
    unittest.main()
