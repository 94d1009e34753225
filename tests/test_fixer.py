import unittest

from configmend.core.fixer import ReindentFixer, repair
from configmend.models import ErrorKind
from configmend.parsers.heuristics.indentation import (
    candidate_indents,
    candidate_lines,
    insert_list_marker,
    reindent_document,
)
from configmend.parsers.structural import parse_yaml

INGRESS_BACKEND_DEFECT = (
    "apiVersion: networking.k8s.io/v1beta1\n"
    "kind: Ingress\n"
    "metadata:\n"
    "  name: web\n"
    "spec:\n"
    "  rules:\n"
    "    - host: example.com\n"
    "      http:\n"
    "        paths:\n"
    "          - backend:\n"
    "          serviceName: web\n"
    "          servicePort: 80\n"
)


class TestReindentFixer(unittest.TestCase):
    def setUp(self):
        self.fixer = ReindentFixer()

    def test_valid_input_returned_untouched(self):
        outcome = self.fixer.repair("a: 1\nb:\n  c: 2\n")
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.step, "direct")
        self.assertEqual(outcome.text, "a: 1\nb:\n  c: 2\n")

    def test_children_pushed_under_colon_line(self):
        outcome = self.fixer.repair("a:\nb: 1\n  c: 2")
        self.assertTrue(outcome.ok, getattr(outcome, "message", ""))
        self.assertEqual(outcome.step, "reindent")
        self.assertEqual(outcome.structure, {"a": {"b": 1, "c": 2}})
        self.assertEqual(outcome.text, "a:\n  b: 1\n  c: 2")

    def test_odd_indent_rounded_down(self):
        outcome = self.fixer.repair("spec:\n   replicas: 2\n  selector: x\n")
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.structure, {"spec": {"replicas": 2, "selector": "x"}})

    def test_windowed_search_moves_single_line(self):
        outcome = self.fixer.repair("spec:\n  replicas: 2\n    image: x")
        self.assertTrue(outcome.ok, getattr(outcome, "message", ""))
        self.assertEqual(outcome.step, "search")
        self.assertEqual(outcome.structure, {"spec": {"replicas": 2, "image": "x"}})

    def test_list_marker_inserted_under_commented_key(self):
        # A trailing comment keeps the whole-document pass from flooring the child line
        text = (
            "containers:\n"
            "  - name: web\n"
            "    ports: # list\n"
            "  containerPort: 80\n"
        )
        self.assertEqual(parse_yaml(text).kind, ErrorKind.MISSING_LIST_INDICATOR)

        outcome = self.fixer.repair(text)

        self.assertTrue(outcome.ok, getattr(outcome, "message", ""))
        self.assertEqual(outcome.step, "list-marker")
        self.assertEqual(outcome.text.split("\n")[3], "      - containerPort: 80")
        self.assertEqual(outcome.structure, {"containers": [{"name": "web", "ports": [{"containerPort": 80}]}]})

    def test_unsafe_input_refused_before_parsing(self):
        outcome = self.fixer.repair("name: foo, port: 80")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.kind, ErrorKind.UNSAFE)
        self.assertEqual(outcome.line, 1)

    def test_unrecognized_error_is_reported(self):
        outcome = repair("key: [unclosed")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.kind, ErrorKind.OTHER)

    def test_backend_defect_is_not_auto_repaired(self):
        outcome = repair(INGRESS_BACKEND_DEFECT)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.kind, ErrorKind.MISSING_LIST_INDICATOR)

    def test_deterministic(self):
        text = "a:\nb: 1\n  c: 2"
        self.assertEqual(repair(text).text, repair(text).text)

    def test_repaired_text_reparses(self):
        outcome = repair("a:\nb: 1\n  c: 2")
        self.assertTrue(parse_yaml(outcome.text).ok)


class TestIndentationHeuristics(unittest.TestCase):
    def test_reindent_document_keeps_blank_lines(self):
        lines = ["a:", "", "b: 1", "   c: 2"]
        self.assertEqual(reindent_document(lines), ["a:", "", "  b: 1", "  c: 2"])

    def test_insert_list_marker(self):
        lines = ["items:", "  - one", "  two"]
        self.assertEqual(insert_list_marker(lines, 3), ["items:", "  - one", "    - two"])
        self.assertIsNone(insert_list_marker(lines, 2))
        self.assertIsNone(insert_list_marker(lines, 9))

    def test_candidate_lines_window(self):
        lines = ["a: 1"] * 10
        self.assertEqual(candidate_lines(lines, 5), [2, 3, 4, 5, 6])
        self.assertEqual(candidate_lines(lines, 1), [0, 1, 2])

    def test_candidate_lines_without_reported_line(self):
        lines = ["a:", "- x", "b: 1"]
        self.assertEqual(candidate_lines(lines, None), [0, 2])

    def test_candidate_indents_bounded_and_unique(self):
        lines = ["spec:", "  - name: x", "    image: y"]
        widths = candidate_indents(lines, 2)
        self.assertEqual(widths[:4], [0, 2, 4, 6])
        self.assertIn(6, widths)
        self.assertEqual(len(widths), len(set(widths)))
        self.assertTrue(all(0 <= w <= 40 for w in widths))


if __name__ == '__main__':
    unittest.main()
