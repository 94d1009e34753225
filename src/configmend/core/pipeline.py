#!/usr/bin/env python3
"""
Configmend HEALING PIPELINE
---------------------------
Coordinates the core components over a whole input and returns a HealReport.

Stage order:
  0. Preprocess        - line endings, tabs, trailing whitespace
  1. Template guard    - `{{ }}` content is never auto-fixed
  2. Format detection  - json | yaml
  3. Safety gate       - computed once on the whole input
  4. Per document      - Fixer (or direct parse when unsafe), then refusals
                         and schema checks; on failure Suggestion Generator,
                         then the optional external suggester
  5. Serialization     - fixed content only on full success

Two entry points share the stages:
- check(): read-only. Every document is inspected; nothing is rewritten.
- fix():   stops at the first document that cannot be repaired.

Malformed input never raises; every outcome is a HealReport.
"""

import logging
from typing import Any, List, Optional, Tuple

from configmend.core import schema as schema_rules
from configmend.core.fixer import ReindentFixer
from configmend.core.safety import check_safety
from configmend.core.suggestions import SuggestionGenerator
from configmend.models import (
    Change,
    Confidence,
    Failed,
    HealReport,
    Issue,
    SafetyVerdict,
    Status,
    Suggestion,
)
from configmend.parsers.detector import JSON, contains_template_markers, detect_format
from configmend.parsers.json_repair import repair_json
from configmend.parsers.preprocessor import preprocess
from configmend.parsers.splitter import split_documents
from configmend.parsers.structural import dump_json, dump_yaml, parse_json, parse_yaml

logger = logging.getLogger("configmend.pipeline")

MANUAL_REVIEW_EXPLANATION = "Manual review required"


class HealingPipeline:
    """
    The orchestrator: runs the stages in strict order for one input.
    Holds no per-run state, so one instance can serve any number of inputs.
    """

    def __init__(self,
                 suggester: Optional[Any] = None,
                 fixer: Optional[ReindentFixer] = None,
                 generator: Optional[SuggestionGenerator] = None):
        """
        Args:
            suggester: Optional external suggester exposing `suggest(text) -> Optional[Suggestion]`.
            fixer: Deterministic Fixer (defaults to ReindentFixer).
            generator: Suggestion Generator (defaults to the built-in strategy order).
        """
        self.suggester = suggester
        self.fixer = fixer or ReindentFixer()
        self.generator = generator or SuggestionGenerator()

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def check(self, text: str, schema: Optional[str] = None, use_ai: bool = False) -> HealReport:
        """Read-only validation of every document in `text`."""
        text, report = self._begin(text)
        logs = report.logic_logs

        # --- STAGE 1: TEMPLATE GUARD ---
        if contains_template_markers(text):
            report.can_auto_fix = False
            report.explanation = "Content contains Helm template markers."
            if schema == schema_rules.HELM:
                report.add_issue(Issue("Detected Helm template markers - template rendering may be required",
                                       severity="warning", type="template"))
                report.status = Status.VALID
            else:
                report.add_issue(Issue("Detected Helm template markers - not supported for auto-fix.",
                                       severity="warning", type="template"))
                report.is_valid = False
                report.status = Status.REFUSED
            logs.append("Stage 1: Template markers detected, content not parsed")
            return report

        # --- STAGE 2: FORMAT ---
        if report.format == JSON:
            return self._check_json(text, report)

        # --- STAGE 3: SAFETY ---
        verdict = self._safety(text, report)

        # --- STAGE 4: DOCUMENTS ---
        failed_docs = 0
        blocking_schema = False
        documents = split_documents(text)
        logs.append(f"Stage 4: Split into {len(documents)} document(s)")

        for number, doc in enumerate(documents, start=1):
            if not doc.strip():
                continue

            outcome = parse_yaml(doc, step="direct")
            if not outcome.ok:
                report.add_issue(self._syntax_issue(number, outcome))
                logs.append(f"Stage 4: Document {number} failed to parse: {outcome.message}")

                if verdict.safe:
                    outcome = self.fixer.repair(doc)
                    if outcome.ok:
                        logs.append(f"Stage 4: Document {number} is repairable ({outcome.step})")

                if not outcome.ok:
                    failed_docs += 1
                    report.can_auto_fix = False
                    report.suggestions.extend(self._suggest(doc, outcome, number, use_ai, logs))
                    continue

            structure = outcome.structure

            reason = schema_rules.refusal_reason(structure)
            if reason:
                report.can_auto_fix = False
                report.is_valid = False
                report.add_issue(Issue(reason, severity="warning", type="autofix", document=number))
                logs.append(f"Stage 4: Document {number} refused for auto-fix")

            if schema == schema_rules.KUBERNETES:
                for message in schema_rules.missing_required_fields(structure):
                    report.add_issue(Issue(message, type="schema", document=number))
                    if message not in schema_rules.BACKFILLED:
                        blocking_schema = True

        # --- STAGE 5: VERDICT ---
        if report.is_valid:
            report.status = Status.VALID
            report.explanation = f"Validated as {report.format} format"
        elif failed_docs:
            if report.suggestions:
                report.status = Status.SUGGESTED
                report.explanation = "Suggestions are provided for manual review."
            elif not verdict.safe:
                report.status = Status.REFUSED
                report.explanation = "Auto-fix disabled for safety."
            else:
                report.status = Status.MANUAL_REVIEW
                report.explanation = MANUAL_REVIEW_EXPLANATION
        elif not report.can_auto_fix:
            report.status = Status.REFUSED
            report.explanation = "Auto-fix refused for this content."
        elif blocking_schema:
            report.status = Status.MANUAL_REVIEW
            report.explanation = MANUAL_REVIEW_EXPLANATION
        else:
            report.status = Status.FIXABLE
            report.explanation = "All issues can be repaired automatically."

        logs.append(f"=== CHECK COMPLETE | Status: {report.status} ===")
        return report

    def fix(self, text: str, schema: Optional[str] = None, use_ai: bool = False) -> HealReport:
        """Repairs `text`; `fixed_content` is set only when every document succeeded."""
        text, report = self._begin(text)
        logs = report.logic_logs

        # --- STAGE 1: TEMPLATE GUARD ---
        if contains_template_markers(text):
            report.add_issue(Issue("Helm templates not supported for auto-fix.", severity="warning", type="template"))
            return self._refuse(report, "Helm templates cannot be auto-fixed.")

        # --- STAGE 2: FORMAT ---
        if report.format == JSON:
            return self._fix_json(text, report)

        # --- STAGE 3: SAFETY ---
        verdict = self._safety(text, report, record_issue=False)

        # --- STAGE 4: DOCUMENTS ---
        documents = split_documents(text)
        logs.append(f"Stage 4: Split into {len(documents)} document(s)")

        rendered: List[str] = []
        repaired = False

        for number, doc in enumerate(documents, start=1):
            if not doc.strip():
                continue

            # Unsafe input never reaches the Fixer
            outcome = self.fixer.repair(doc) if verdict.safe else parse_yaml(doc, step="direct")

            if not outcome.ok:
                report.add_issue(self._syntax_issue(number, outcome))
                report.can_auto_fix = False
                logs.append(f"Stage 4: Document {number} could not be repaired: {outcome.message}")
                return self._settle_failure(report, doc, outcome, number, use_ai, verdict)

            if not verdict.safe:
                return self._offer_unsafe_snippet(report, doc, outcome.structure, number)

            structure = outcome.structure
            if outcome.step != "direct":
                repaired = True
                logs.append(f"Stage 4: Document {number} repaired by {outcome.step}")

            reason = schema_rules.refusal_reason(structure)
            if reason:
                report.add_issue(Issue(reason, severity="warning", type="autofix", document=number))
                return self._refuse(report, reason)

            name = None
            if schema == schema_rules.KUBERNETES:
                name = schema_rules.ensure_metadata_name(structure, number)
                if name:
                    report.changes.append(Change(line=1, description=f"added metadata.name: {name}"))

            # Untouched and comment-only documents keep their source text
            if structure is None or (outcome.step == "direct" and not name):
                rendered.append(doc)
            else:
                rendered.append(dump_yaml([structure]))

        # --- STAGE 5: SERIALIZATION ---
        report.fixed_content = self._join_documents(rendered)
        logs.append(f"Stage 5: Serialized {len(rendered)} document(s)")

        if report.changes:
            report.status = Status.FIXED
            report.explanation = "Applied YAML formatting fixes and added missing Kubernetes metadata."
        elif repaired:
            report.status = Status.FIXED
            report.explanation = "Applied YAML formatting fixes."
        else:
            report.status = Status.VALID
            report.explanation = f"Validated as {report.format} format"

        logs.append(f"=== FIX COMPLETE | Status: {report.status} ===")
        return report

    # -----------------------------------------------------------------------
    # JSON path
    # -----------------------------------------------------------------------

    def _check_json(self, text: str, report: HealReport) -> HealReport:
        outcome = parse_json(text)
        if outcome.ok:
            report.status = Status.VALID
            report.explanation = "Validated as json format"
            report.logic_logs.append("Stage 4: JSON parsed directly")
            return report

        report.add_issue(Issue(f"JSON syntax error: {outcome.message}", line=outcome.line or 0))
        if repair_json(text).ok:
            report.status = Status.FIXABLE
            report.explanation = "JSON can be repaired automatically."
            report.logic_logs.append("Stage 4: JSON is repairable")
        else:
            report.can_auto_fix = False
            report.status = Status.MANUAL_REVIEW
            report.explanation = MANUAL_REVIEW_EXPLANATION
            report.logic_logs.append("Stage 4: JSON repair failed")
        return report

    def _fix_json(self, text: str, report: HealReport) -> HealReport:
        outcome = repair_json(text)
        if not outcome.ok:
            report.add_issue(Issue(f"JSON syntax error: {outcome.message}", line=outcome.line or 0))
            report.can_auto_fix = False
            report.status = Status.MANUAL_REVIEW
            report.explanation = MANUAL_REVIEW_EXPLANATION
            report.logic_logs.append("Stage 4: JSON repair failed")
            return report

        report.fixed_content = dump_json(outcome.structure)
        if outcome.step == "direct":
            report.status = Status.VALID
            report.explanation = "Validated as json format"
        else:
            report.status = Status.FIXED
            report.explanation = "Applied JSON repairs."
        report.logic_logs.append(f"Stage 4: JSON parsed ({outcome.step})")
        return report

    # -----------------------------------------------------------------------
    # Internal Helpers
    # -----------------------------------------------------------------------

    def _begin(self, raw_text: str) -> Tuple[str, HealReport]:
        text = preprocess(raw_text)
        report = HealReport(format=detect_format(text))
        report.logic_logs.append(f"Stage 0: Input normalized ({len(text.splitlines())} lines)")
        report.logic_logs.append(f"Stage 2: Detected {report.format} format")
        return text, report

    def _safety(self, text: str, report: HealReport, record_issue: bool = True) -> SafetyVerdict:
        verdict = check_safety(text)
        if verdict.safe:
            report.logic_logs.append("Stage 3: Safety gate passed")
            return verdict

        report.can_auto_fix = False
        report.logic_logs.append(f"Stage 3: Auto-fix disabled ({verdict.reason})")
        if record_issue:
            report.add_issue(Issue(f"auto-fix disabled: {verdict.reason}", severity="warning",
                                   type="autofix", line=verdict.line or 0))
            report.is_valid = False
        return verdict

    def _syntax_issue(self, number: int, failure: Failed) -> Issue:
        return Issue(
            f"YAML syntax error in document {number}: {failure.message}",
            line=failure.line or 0,
            document=number,
        )

    def _suggest(self, doc: str, failure: Failed, number: int, use_ai: bool,
                 logs: List[str]) -> List[Suggestion]:
        suggestions = self.generator.suggest(doc, failure)

        if not suggestions and use_ai:
            if self.suggester is None:
                logs.append("Stage 4: External suggester requested but not configured")
            else:
                external = self.suggester.suggest(doc)
                if external is None:
                    logs.append(f"Stage 4: External suggester returned nothing for document {number}")
                elif parse_yaml(external.apply_to(doc), step="suggestion").ok:
                    suggestions = [external]
                    logs.append(f"Stage 4: External suggester proposed a snippet for document {number}")
                else:
                    logger.info(f"Pipeline: external snippet for document {number} does not reparse, discarded")
                    logs.append(f"Stage 4: External snippet for document {number} discarded (does not reparse)")

        for suggestion in suggestions:
            suggestion.document = number
        if suggestions:
            logs.append(f"Stage 4: {suggestions[0].strategy or 'suggestion'} "
                        f"({suggestions[0].confidence.value}) for document {number}")
        else:
            logs.append(f"Stage 4: No suggestion for document {number}")
        return suggestions

    def _settle_failure(self, report: HealReport, doc: str, failure: Failed, number: int,
                        use_ai: bool, verdict: SafetyVerdict) -> HealReport:
        suggestions = self._suggest(doc, failure, number, use_ai, report.logic_logs)
        report.suggestions.extend(suggestions)

        if suggestions:
            report.status = Status.SUGGESTED
            if suggestions[0].confidence == Confidence.LOW:
                report.explanation = ("Auto-fix could not be applied automatically. "
                                      "AI suggestions are provided for manual review.")
            else:
                report.explanation = ("Auto-fix could not be applied automatically. "
                                      "Suggestions are provided for manual review.")
        elif not verdict.safe:
            report.add_issue(Issue(f"auto-fix disabled: {verdict.reason}", severity="warning",
                                   type="autofix", line=verdict.line or 0))
            report.status = Status.REFUSED
            report.explanation = "Auto-fix disabled for safety."
        else:
            report.status = Status.MANUAL_REVIEW
            report.explanation = MANUAL_REVIEW_EXPLANATION

        logger.info(f"Pipeline: document {number} ended as {report.status}")
        return report

    def _offer_unsafe_snippet(self, report: HealReport, doc: str, structure: Any, number: int) -> HealReport:
        """The document parses, but the safety gate forbids applying it: offer it for review."""
        snippet = doc if structure is None else dump_yaml([structure]).rstrip("\n")
        report.suggestions.append(Suggestion(
            description="Suggested fixes (auto-fix disabled)",
            confidence=Confidence.MEDIUM,
            snippet=snippet,
            start_line=1,
            end_line=len(doc.split("\n")),
            strategy="unsafe_passthrough",
            document=number,
        ))
        report.add_issue(Issue("auto-fix disabled for this content. Suggestions provided.",
                               severity="warning", type="autofix", document=number))
        report.is_valid = False
        report.can_auto_fix = False
        report.status = Status.SUGGESTED
        report.explanation = "Auto-fix disabled for safety. Please review suggestions before applying."
        report.logic_logs.append(f"Stage 4: Document {number} offered as a suggestion (auto-fix disabled)")
        return report

    def _refuse(self, report: HealReport, explanation: str) -> HealReport:
        report.is_valid = False
        report.can_auto_fix = False
        report.status = Status.REFUSED
        report.explanation = explanation
        report.logic_logs.append(f"Stage 4: Refused ({explanation})")
        return report

    @staticmethod
    def _join_documents(rendered: List[str]) -> str:
        pieces = [piece if piece.endswith("\n") else piece + "\n" for piece in rendered]
        return "---\n".join(pieces)
