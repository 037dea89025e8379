from __future__ import annotations

import unittest

from datview.analytics import IdCount
from datview.assemble import assemble_responses, build_responses
from datview.config_schema import ParsingConfig
from datview.dat_parser import parse_dat

_LINE = "Alice<>alice@x<>2024/01/01 00:00 ID:abc123<>Hello"


class TestAssembleResponses(unittest.TestCase):
    def test_zips_by_position(self) -> None:
        parsed = parse_dat(_LINE + "\n" + _LINE)
        records = assemble_responses(parsed.posts, [IdCount(1, 2), IdCount(2, 2)])

        self.assertEqual([r.id for r in records], ["1", "2"])
        self.assertEqual(records[1].id_occurrence_count, 2)
        self.assertEqual(records[1].id_total_count, 2)
        self.assertEqual(records[0].created_at, "2024/01/01 00:00")
        self.assertEqual(records[0].user_id_info, "ID:abc123")
        self.assertEqual(records[0].content, "Hello")
        self.assertEqual(records[0].parsed_user_id, "abc123")

    def test_length_mismatch(self) -> None:
        parsed = parse_dat(_LINE)
        with self.assertRaises(ValueError):
            assemble_responses(parsed.posts, [])


class TestBuildResponses(unittest.TestCase):
    def test_end_to_end(self) -> None:
        text = "\n".join([_LINE, "bad<>line", _LINE, "Bob<><>2024/01/02<>No id", _LINE])
        result = build_responses(text)

        self.assertEqual([r.id for r in result.records], ["1", "2", "3", "4"])
        self.assertEqual(
            [(r.id_occurrence_count, r.id_total_count) for r in result.records],
            [(1, 3), (2, 3), (0, 0), (3, 3)],
        )
        self.assertIsNone(result.records[2].parsed_user_id)
        self.assertEqual(len(result.diagnostics), 1)
        self.assertEqual(result.diagnostics[0].line_no, 2)

    def test_to_dict_shape(self) -> None:
        (record,) = build_responses(_LINE).records
        self.assertEqual(
            record.to_dict(),
            {
                "id": "1",
                "author": "Alice",
                "mail": "alice@x",
                "created_at": "2024/01/01 00:00",
                "user_id_info": "ID:abc123",
                "content": "Hello",
                "parsed_user_id": "abc123",
                "id_occurrence_count": 1,
                "id_total_count": 1,
            },
        )

    def test_parsing_config(self) -> None:
        text = "a;;b;;2024/01/01 12:34:56 ID:x;;c"
        result = build_responses(text, parsing=ParsingConfig(delimiter=";;"))
        self.assertEqual(result.records[0].parsed_user_id, "x")

        legacy = build_responses(
            "a<>b<>2024/01/01 12:34:56 x<>c",
            parsing=ParsingConfig(legacy_space_split=True),
        )
        self.assertEqual(legacy.records[0].user_id_info, "x")
        self.assertEqual(legacy.records[0].created_at, "2024/01/01 12:34:56")


if __name__ == "__main__":
    unittest.main()
