import json
import unittest

from configmend.core.pipeline import HealingPipeline
from configmend.models import Confidence, Status, Suggestion

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


class FakeSuggester:
    def __init__(self, snippet="key: [closed]"):
        self.snippet = snippet
        self.calls = []

    def suggest(self, document_text):
        self.calls.append(document_text)
        return Suggestion("AI suggested fix (Gemini)", Confidence.LOW, self.snippet, 1, 1, strategy="external")


class TestPipelineCheck(unittest.TestCase):
    def setUp(self):
        self.pipeline = HealingPipeline()

    def test_valid_yaml(self):
        report = self.pipeline.check("a: 1\nb:\n  - x\n")
        self.assertEqual(report.status, Status.VALID)
        self.assertTrue(report.is_valid)
        self.assertEqual(report.issues, [])
        self.assertIsNone(report.fixed_content)

    def test_repairable_yaml_is_fixable(self):
        report = self.pipeline.check("a:\nb: 1\n  c: 2")
        self.assertEqual(report.status, Status.FIXABLE)
        self.assertFalse(report.is_valid)
        self.assertTrue(report.can_auto_fix)
        self.assertTrue(report.issues[0].message.startswith("YAML syntax error in document 1"))
        self.assertEqual(report.issues[0].line, 3)

    def test_backend_defect_gets_suggestion(self):
        report = self.pipeline.check(INGRESS_BACKEND_DEFECT)
        self.assertEqual(report.status, Status.SUGGESTED)
        self.assertFalse(report.can_auto_fix)
        self.assertEqual(report.suggestions[0].strategy, "list_item_backend")
        self.assertEqual(report.suggestions[0].document, 1)

    def test_unrecognized_error_needs_manual_review(self):
        report = self.pipeline.check("key: [unclosed")
        self.assertEqual(report.status, Status.MANUAL_REVIEW)
        self.assertEqual(report.explanation, "Manual review required")

    def test_unsafe_content_refused(self):
        report = self.pipeline.check("name: foo, port: 80\n")
        self.assertEqual(report.status, Status.REFUSED)
        autofix = [i for i in report.issues if i.type == "autofix"]
        self.assertEqual(len(autofix), 1)
        self.assertEqual(autofix[0].severity, "warning")
        self.assertIn("line 1", autofix[0].message)

    def test_template_markers(self):
        report = self.pipeline.check("name: {{ .Values.name }}\n")
        self.assertEqual(report.status, Status.REFUSED)
        self.assertFalse(report.is_valid)
        self.assertEqual(report.issues[0].type, "template")

        helm = self.pipeline.check("name: {{ .Values.name }}\n", schema="helm")
        self.assertEqual(helm.status, Status.VALID)
        self.assertFalse(helm.can_auto_fix)
        self.assertEqual(helm.issues[0].severity, "warning")

    def test_kubernetes_missing_metadata_is_fixable(self):
        report = self.pipeline.check("apiVersion: v1\nkind: ConfigMap\ndata:\n  k: v\n", schema="kubernetes")
        self.assertEqual(report.status, Status.FIXABLE)
        self.assertIn("missing required field: metadata", [i.message for i in report.issues])

    def test_kubernetes_missing_kind_needs_review(self):
        report = self.pipeline.check("apiVersion: v1\nmetadata:\n  name: x\n", schema="kubernetes")
        self.assertEqual(report.status, Status.MANUAL_REVIEW)
        self.assertEqual([i.message for i in report.issues], ["missing required field: kind"])

    def test_null_metadata_refused(self):
        report = self.pipeline.check("apiVersion: v1\nkind: Pod\nmetadata:\n")
        self.assertEqual(report.status, Status.REFUSED)
        self.assertTrue(report.issues[0].message.startswith("auto-fix refused: `metadata` is null"))

    def test_json_paths(self):
        self.assertEqual(self.pipeline.check('{"a": 1}').status, Status.VALID)
        self.assertEqual(self.pipeline.check('{"a": 1,}').status, Status.FIXABLE)
        broken = self.pipeline.check('{"a": }')
        self.assertEqual(broken.status, Status.MANUAL_REVIEW)
        self.assertTrue(broken.issues[0].message.startswith("JSON syntax error"))

    def test_every_document_inspected(self):
        report = self.pipeline.check("key: [unclosed\n---\nother: [broken\n")
        documents = [i.document for i in report.issues if i.type == "syntax"]
        self.assertEqual(documents, [1, 2])


class TestPipelineFix(unittest.TestCase):
    def setUp(self):
        self.pipeline = HealingPipeline()

    def test_valid_input_round_trips(self):
        report = self.pipeline.fix("a: 1\n")
        self.assertEqual(report.status, Status.VALID)
        self.assertEqual(report.fixed_content, "a: 1\n")

    def test_valid_document_keeps_source_formatting(self):
        text = "items:\n- a\n- b  # c\n"
        report = self.pipeline.fix(text)
        self.assertEqual(report.status, Status.VALID)
        self.assertEqual(report.fixed_content, text)

    def test_unicode_line_breaks_inside_scalars_preserved(self):
        text = 'a: "x\u2028y"\nc: 1\n'
        report = self.pipeline.fix(text)
        self.assertEqual(report.status, Status.VALID)
        self.assertEqual(report.fixed_content, text)

        rejected = self.pipeline.fix('b: "p\x0cq"\nc: 1\n')
        self.assertEqual(rejected.status, Status.MANUAL_REVIEW)
        self.assertIsNone(rejected.fixed_content)

    def test_indentation_repaired(self):
        report = self.pipeline.fix("a:\nb: 1\n  c: 2")
        self.assertEqual(report.status, Status.FIXED)
        self.assertEqual(report.fixed_content, "a:\n  b: 1\n  c: 2\n")
        self.assertEqual(report.explanation, "Applied YAML formatting fixes.")
        self.assertTrue(report.logic_logs[-1].startswith("=== FIX COMPLETE"))

    def test_multi_document_output(self):
        report = self.pipeline.fix("a: 1\n---\nx:\ny: 1\n  z: 2\n")
        self.assertEqual(report.status, Status.FIXED)
        self.assertEqual(report.fixed_content, "a: 1\n---\nx:\n  y: 1\n  z: 2\n")

    def test_stops_at_first_failing_document(self):
        report = self.pipeline.fix("a: 1\n---\nkey: [unclosed\n")
        self.assertEqual(report.status, Status.MANUAL_REVIEW)
        self.assertIsNone(report.fixed_content)
        self.assertIn("document 2", report.issues[0].message)
        self.assertTrue(report.needs_manual_review)

    def test_backend_defect_suggested_not_applied(self):
        report = self.pipeline.fix(INGRESS_BACKEND_DEFECT)
        self.assertEqual(report.status, Status.SUGGESTED)
        self.assertIsNone(report.fixed_content)
        self.assertEqual(report.suggestions[0].confidence, Confidence.HIGH)
        self.assertIn("Suggestions are provided for manual review", report.explanation)

    def test_unsafe_but_parseable_offered_as_suggestion(self):
        report = self.pipeline.fix("a: {b: 1, c: 2}\n")
        self.assertEqual(report.status, Status.SUGGESTED)
        self.assertIsNone(report.fixed_content)
        self.assertFalse(report.can_auto_fix)
        suggestion = report.suggestions[0]
        self.assertEqual(suggestion.confidence, Confidence.MEDIUM)
        self.assertEqual(suggestion.strategy, "unsafe_passthrough")
        self.assertIn("b: 1", suggestion.snippet)

    def test_unsafe_and_broken_refused(self):
        report = self.pipeline.fix("name: foo, port: 80\n")
        self.assertEqual(report.status, Status.REFUSED)
        self.assertIsNone(report.fixed_content)
        self.assertIn("auto-fix disabled: line 1 contains multiple key:value pairs",
                      [i.message for i in report.issues])

    def test_templates_refused(self):
        report = self.pipeline.fix("image: {{ .Values.image }}\n")
        self.assertEqual(report.status, Status.REFUSED)
        self.assertIsNone(report.fixed_content)
        self.assertEqual(report.explanation, "Helm templates cannot be auto-fixed.")

    def test_top_level_name_refused(self):
        report = self.pipeline.fix("name: web\nkind: Service\n")
        self.assertEqual(report.status, Status.REFUSED)
        self.assertIn("top-level `name`", report.explanation)

    def test_kubernetes_metadata_backfilled(self):
        report = self.pipeline.fix("apiVersion: v1\nkind: ConfigMap\ndata:\n  k: v\n", schema="kubernetes")
        self.assertEqual(report.status, Status.FIXED)
        self.assertTrue(report.fixed_content.startswith("apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: autofix-"))
        self.assertTrue(report.fixed_content.endswith("data:\n  k: v\n"))
        self.assertEqual(len(report.changes), 1)
        self.assertTrue(report.changes[0].description.startswith("added metadata.name: autofix-"))

    def test_kubernetes_null_name_backfilled(self):
        report = self.pipeline.fix("apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name:\n", schema="kubernetes")
        self.assertEqual(report.status, Status.FIXED)
        self.assertIn("metadata:\n  name: autofix-", report.fixed_content)

    def test_kubernetes_existing_name_untouched(self):
        text = "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: cfg\n"
        report = self.pipeline.fix(text, schema="kubernetes")
        self.assertEqual(report.status, Status.VALID)
        self.assertEqual(report.fixed_content, text)
        self.assertEqual(report.changes, [])

    def test_json_trailing_comma(self):
        report = self.pipeline.fix('{"a": 1,}')
        self.assertEqual(report.status, Status.FIXED)
        self.assertEqual(report.fixed_content, '{\n  "a": 1\n}\n')
        self.assertEqual(report.format, "json")

    def test_report_serializes(self):
        report = self.pipeline.fix(INGRESS_BACKEND_DEFECT)
        data = json.loads(json.dumps(report.to_dict()))
        self.assertEqual(data["status"], "SUGGESTED")
        self.assertEqual(data["suggestions"][0]["confidence"], "high")


class TestExternalSuggesterFallback(unittest.TestCase):
    def test_consulted_only_when_requested(self):
        suggester = FakeSuggester()
        pipeline = HealingPipeline(suggester=suggester)

        report = pipeline.fix("key: [unclosed")
        self.assertEqual(report.status, Status.MANUAL_REVIEW)
        self.assertEqual(suggester.calls, [])

        report = pipeline.fix("key: [unclosed", use_ai=True)
        self.assertEqual(report.status, Status.SUGGESTED)
        self.assertEqual(report.suggestions[0].confidence, Confidence.LOW)
        self.assertIn("AI suggestions", report.explanation)
        self.assertEqual(len(suggester.calls), 1)

    def test_external_snippet_that_does_not_reparse_is_discarded(self):
        suggester = FakeSuggester(snippet="a: [broken")
        report = HealingPipeline(suggester=suggester).fix("a: [1\n", use_ai=True)

        self.assertEqual(len(suggester.calls), 1)
        self.assertEqual(report.status, Status.MANUAL_REVIEW)
        self.assertEqual(report.suggestions, [])
        self.assertTrue(any("discarded" in line for line in report.logic_logs))

    def test_not_consulted_when_local_suggestion_exists(self):
        suggester = FakeSuggester()
        report = HealingPipeline(suggester=suggester).fix(INGRESS_BACKEND_DEFECT, use_ai=True)
        self.assertEqual(report.suggestions[0].strategy, "list_item_backend")
        self.assertEqual(suggester.calls, [])


if __name__ == '__main__':
    unittest.main()
