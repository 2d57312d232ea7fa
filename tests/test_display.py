import unittest

from bookchat.context.display import format_display, trim_leading_empty_lines


class FormatDisplayTests(unittest.TestCase):
    def test_plain_text(self) -> None:
        info = format_display("普通の質問")
        self.assertEqual(info.display_text, "普通の質問")
        self.assertFalse(info.has_context)

    def test_none_and_empty(self) -> None:
        self.assertIsNone(format_display(None).display_text)
        self.assertEqual(format_display("").display_text, "")

    def test_context_is_rendered_with_header(self) -> None:
        text = '#context: {"problemId":"p1","category":"仕訳","question":"現金で売上"}\n\nなぜですか'
        info = format_display(text)
        self.assertTrue(info.has_context)
        self.assertEqual(info.display_text, "【問題ID: p1】【カテゴリ: 仕訳】\n現金で売上\n\nなぜですか")
        self.assertEqual(info.problem_id, "p1")
        self.assertEqual(info.problem_text, "現金で売上")
        self.assertEqual(info.user_question, "なぜですか")

    def test_header_without_category(self) -> None:
        info = format_display('#context: {"problemId":"p2"} 質問')
        self.assertEqual(info.display_text, "【問題ID: p2】\n質問")

    def test_recovered_context_is_flagged(self) -> None:
        info = format_display('#context: {"problemId":"p3" "category":"c"} 質問')
        self.assertTrue(info.has_parse_error)
        self.assertTrue(info.display_text.startswith("【問題ID: p3】【カテゴリ: c】\n"))
        self.assertTrue(info.display_text.endswith("質問"))

    def test_unrecoverable_context_shows_user_text(self) -> None:
        info = format_display('#context: {"category":"c" "x"} 質問だけ')
        self.assertFalse(info.has_context)
        self.assertEqual(info.display_text, "質問だけ")

    def test_already_formatted_text(self) -> None:
        text = "【問題ID: p9】【カテゴリ: 決算】\n本文"
        info = format_display(text)
        self.assertEqual(info.display_text, text)
        self.assertTrue(info.has_context)
        self.assertEqual(info.problem_id, "p9")
        self.assertEqual(info.category, "決算")

    def test_trim_leading_empty_lines(self) -> None:
        self.assertEqual(trim_leading_empty_lines("\n  \n\nabc\n"), "abc\n")
        self.assertEqual(trim_leading_empty_lines(""), "")
        self.assertIsNone(trim_leading_empty_lines(None))


if __name__ == "__main__":
    unittest.main()
