# plainweb/audit/rules.py
"""
Static accessibility knowledge: check id -> WCAG reference / severity /
human impact / auto-fix potential, check id -> remediation bucket, and
bucket -> plain-language impact sentence.

Tables are built once at import and exposed read-only.
"""
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from ..schemas import EnrichedIssue, FailedCheck, RuleMetadata

SEVERITY_RANK: Mapping[str, int] = MappingProxyType({
    "critical": 4,
    "serious": 3,
    "moderate": 2,
    "minor": 1,
})

DEFAULT_METADATA = RuleMetadata(
    guideline_reference="unmapped",
    severity="moderate",
    impact="May create barriers for people with disabilities using assistive technologies.",
    auto_fix_potential="medium",
)

OTHER_BUCKET = "Other accessibility issues"

# ── Bucket names ────────────────────────────────────────────────────────────
TEXT_ALTERNATIVES = "Missing text alternatives"
CONTRAST = "Color contrast"
FORMS = "Form labels and inputs"
CONTROL_NAMES = "Unnamed buttons and links"
ARIA = "ARIA misuse"
KEYBOARD = "Keyboard and focus"
STRUCTURE = "Page structure and navigation"
LANGUAGE = "Page language and metadata"
TABLES_LISTS = "Tables and lists"
MEDIA = "Audio and video"


def _r(ref: str, severity: str, fix: str, impact: str) -> RuleMetadata:
    return RuleMetadata(guideline_reference=ref, severity=severity, impact=impact, auto_fix_potential=fix)


_RULES: Dict[str, RuleMetadata] = {
    # Perceivable
    "image-alt": _r("WCAG 2.1 1.1.1 (A)", "critical", "medium",
                    "Screen reader users cannot tell what images show or do."),
    "input-image-alt": _r("WCAG 2.1 1.1.1 (A)", "critical", "medium",
                          "Image buttons are announced without a purpose, so forms cannot be submitted confidently."),
    "object-alt": _r("WCAG 2.1 1.1.1 (A)", "serious", "medium",
                     "Embedded objects carry no description for non-visual users."),
    "role-img-alt": _r("WCAG 2.1 1.1.1 (A)", "serious", "medium",
                       "Elements presented as images have no text equivalent."),
    "svg-img-alt": _r("WCAG 2.1 1.1.1 (A)", "serious", "medium",
                      "Informative SVG graphics are silent to screen readers."),
    "image-redundant-alt": _r("WCAG 2.1 1.1.1 (A)", "minor", "high",
                              "Screen readers repeat the same text twice, adding noise."),
    "color-contrast": _r("WCAG 2.1 1.4.3 (AA)", "serious", "low",
                         "Low-vision and color-blind users struggle to read text."),
    "link-in-text-block": _r("WCAG 2.1 1.4.1 (A)", "serious", "low",
                             "Links are distinguishable only by color, so some users cannot find them."),
    "meta-viewport": _r("WCAG 2.1 1.4.4 (AA)", "critical", "high",
                        "Users who need to zoom on mobile are blocked from enlarging text."),
    "video-caption": _r("WCAG 2.1 1.2.2 (A)", "critical", "low",
                        "Deaf and hard-of-hearing users miss spoken video content."),
    "audio-caption": _r("WCAG 2.1 1.2.1 (A)", "critical", "low",
                        "Audio content has no text alternative for deaf users."),
    # Forms
    "label": _r("WCAG 2.1 4.1.2 (A)", "critical", "medium",
                "Form fields are announced without a label, so users do not know what to enter."),
    "select-name": _r("WCAG 2.1 4.1.2 (A)", "critical", "medium",
                      "Dropdowns have no accessible name and cannot be identified."),
    "form-field-multiple-labels": _r("WCAG 2.1 3.3.2 (A)", "moderate", "medium",
                                     "Fields with several labels are announced inconsistently."),
    "label-content-name-mismatch": _r("WCAG 2.1 2.5.3 (A)", "serious", "medium",
                                      "Voice-control users cannot activate controls by their visible label."),
    # Names and roles
    "button-name": _r("WCAG 2.1 4.1.2 (A)", "critical", "medium",
                      "Buttons are announced as just 'button', hiding what they do."),
    "input-button-name": _r("WCAG 2.1 4.1.2 (A)", "critical", "medium",
                            "Input buttons have no discernible text."),
    "link-name": _r("WCAG 2.1 2.4.4 (A)", "serious", "medium",
                    "Links have no discernible text, so their destination is unknown."),
    "frame-title": _r("WCAG 2.1 4.1.2 (A)", "serious", "high",
                      "Embedded frames are announced without a title."),
    "identical-links-same-purpose": _r("WCAG 2.1 2.4.9 (AAA)", "minor", "low",
                                       "Links with the same text go to different places, which confuses users."),
    # ARIA
    "aria-allowed-attr": _r("WCAG 2.1 4.1.2 (A)", "critical", "high",
                            "Invalid ARIA attributes give assistive technology wrong information."),
    "aria-allowed-role": _r("WCAG 2.1 4.1.2 (A)", "minor", "medium",
                            "Roles conflict with the element's native semantics."),
    "aria-command-name": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                            "Custom buttons and links have no accessible name."),
    "aria-conditional-attr": _r("WCAG 2.1 4.1.2 (A)", "serious", "high",
                                "ARIA attributes are used where the role does not support them."),
    "aria-deprecated-role": _r("WCAG 2.1 4.1.2 (A)", "minor", "high",
                               "Deprecated roles may be ignored by newer assistive technologies."),
    "aria-dialog-name": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                           "Dialogs open without announcing what they are about."),
    "aria-hidden-body": _r("WCAG 2.1 4.1.2 (A)", "critical", "high",
                           "The whole page is hidden from screen readers."),
    "aria-hidden-focus": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                            "Keyboard focus lands on elements screen readers cannot perceive."),
    "aria-input-field-name": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                                "Custom input fields have no accessible name."),
    "aria-meter-name": _r("WCAG 2.1 1.1.1 (A)", "serious", "medium",
                          "Meters are announced without context."),
    "aria-progressbar-name": _r("WCAG 2.1 1.1.1 (A)", "serious", "medium",
                                "Progress bars are announced without context."),
    "aria-prohibited-attr": _r("WCAG 2.1 4.1.2 (A)", "serious", "high",
                               "Prohibited ARIA attributes are silently ignored or misread."),
    "aria-required-attr": _r("WCAG 2.1 4.1.2 (A)", "critical", "medium",
                             "Widgets are missing state information screen readers rely on."),
    "aria-required-children": _r("WCAG 2.1 1.3.1 (A)", "critical", "low",
                                 "Composite widgets lack the child roles that make them operable."),
    "aria-required-parent": _r("WCAG 2.1 1.3.1 (A)", "critical", "low",
                               "Widget parts appear outside the container that gives them meaning."),
    "aria-roles": _r("WCAG 2.1 4.1.2 (A)", "critical", "high",
                     "Invalid role values leave elements without usable semantics."),
    "aria-text": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                    "Focusable content is flattened into text and becomes unreachable."),
    "aria-toggle-field-name": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                                 "Toggle controls have no accessible name."),
    "aria-tooltip-name": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                            "Tooltips are announced without content."),
    "aria-treeitem-name": _r("WCAG 2.1 4.1.2 (A)", "serious", "medium",
                             "Tree items have no accessible name."),
    "aria-valid-attr": _r("WCAG 2.1 4.1.2 (A)", "critical", "high",
                          "Misspelled ARIA attributes are ignored by assistive technology."),
    "aria-valid-attr-value": _r("WCAG 2.1 4.1.2 (A)", "critical", "high",
                                "ARIA attributes hold invalid values and convey wrong state."),
    "duplicate-id-aria": _r("WCAG 2.1 4.1.1 (A)", "critical", "high",
                            "Duplicate ids break label and description references."),
    # Keyboard
    "accesskeys": _r("WCAG 2.1 2.1.1 (A)", "serious", "high",
                     "Duplicate access keys make keyboard shortcuts unpredictable."),
    "tabindex": _r("WCAG 2.1 2.4.3 (A)", "serious", "high",
                   "A positive tabindex scrambles the keyboard navigation order."),
    "bypass": _r("WCAG 2.1 2.4.1 (A)", "serious", "medium",
                 "Keyboard users must tab through every repeated block to reach content."),
    "skip-link": _r("WCAG 2.1 2.4.1 (A)", "moderate", "high",
                    "Skip links point nowhere, trapping keyboard users in navigation."),
    "focus-traps": _r("WCAG 2.1 2.1.2 (A)", "critical", "low",
                      "Keyboard focus gets stuck and users cannot leave a component."),
    "target-size": _r("WCAG 2.2 2.5.8 (AA)", "serious", "low",
                      "Touch targets are too small or too close for users with limited dexterity."),
    # Structure
    "document-title": _r("WCAG 2.1 2.4.2 (A)", "serious", "high",
                         "Users cannot identify the page from tabs, history or screen readers."),
    "heading-order": _r("WCAG 2.1 1.3.1 (A)", "moderate", "low",
                        "Skipped heading levels make the page outline confusing to navigate."),
    "empty-heading": _r("WCAG 2.1 2.4.6 (AA)", "minor", "medium",
                        "Empty headings add stops that announce nothing."),
    "landmark-one-main": _r("WCAG 2.1 1.3.1 (A)", "moderate", "medium",
                            "Screen reader users cannot jump to the main content."),
    "meta-refresh": _r("WCAG 2.1 2.2.1 (A)", "critical", "high",
                       "The page reloads or redirects before users finish reading."),
    # Language
    "html-has-lang": _r("WCAG 2.1 3.1.1 (A)", "serious", "high",
                        "Screen readers may pronounce the whole page in the wrong language."),
    "html-lang-valid": _r("WCAG 2.1 3.1.1 (A)", "serious", "high",
                          "An invalid language code leads to wrong pronunciation."),
    "html-xml-lang-mismatch": _r("WCAG 2.1 3.1.1 (A)", "moderate", "high",
                                 "Conflicting language declarations confuse assistive technology."),
    "valid-lang": _r("WCAG 2.1 3.1.2 (AA)", "serious", "high",
                     "Passages in other languages are read with the wrong voice."),
    # Tables and lists
    "definition-list": _r("WCAG 2.1 1.3.1 (A)", "serious", "medium",
                          "Definition lists are malformed and lose their structure."),
    "dlitem": _r("WCAG 2.1 1.3.1 (A)", "serious", "medium",
                 "Definition items appear outside a definition list."),
    "list": _r("WCAG 2.1 1.3.1 (A)", "serious", "medium",
               "Lists contain invalid children, so item counts are announced wrongly."),
    "listitem": _r("WCAG 2.1 1.3.1 (A)", "serious", "medium",
                   "List items appear outside a list and lose their grouping."),
    "td-headers-attr": _r("WCAG 2.1 1.3.1 (A)", "serious", "low",
                          "Table cells reference headers that do not exist."),
    "th-has-data-cells": _r("WCAG 2.1 1.3.1 (A)", "serious", "low",
                            "Table headers describe no data, so tables are hard to follow."),
    "td-has-header": _r("WCAG 2.1 1.3.1 (A)", "critical", "low",
                        "Data cells in large tables have no header, so values lose meaning."),
    "table-duplicate-name": _r("WCAG 2.1 1.3.1 (A)", "minor", "high",
                               "Table caption and summary repeat the same text."),
    "table-fake-caption": _r("WCAG 2.1 1.3.1 (A)", "serious", "medium",
                             "Captions are faked with cells instead of a real caption."),
}

RULE_METADATA: Mapping[str, RuleMetadata] = MappingProxyType(_RULES)


def _bucket_entries() -> Dict[str, str]:
    groups = {
        TEXT_ALTERNATIVES: ("image-alt", "input-image-alt", "object-alt", "role-img-alt",
                            "svg-img-alt", "image-redundant-alt", "aria-meter-name",
                            "aria-progressbar-name"),
        CONTRAST: ("color-contrast", "link-in-text-block"),
        FORMS: ("label", "select-name", "form-field-multiple-labels", "aria-input-field-name",
                "aria-toggle-field-name", "label-content-name-mismatch"),
        CONTROL_NAMES: ("button-name", "input-button-name", "link-name", "aria-command-name",
                        "frame-title", "identical-links-same-purpose"),
        ARIA: ("aria-allowed-attr", "aria-allowed-role", "aria-conditional-attr",
               "aria-deprecated-role", "aria-dialog-name", "aria-hidden-body",
               "aria-prohibited-attr", "aria-required-attr", "aria-required-children",
               "aria-required-parent", "aria-roles", "aria-text", "aria-tooltip-name",
               "aria-treeitem-name", "aria-valid-attr", "aria-valid-attr-value",
               "duplicate-id-aria"),
        KEYBOARD: ("accesskeys", "tabindex", "bypass", "skip-link", "focus-traps",
                   "aria-hidden-focus", "target-size"),
        STRUCTURE: ("document-title", "heading-order", "empty-heading", "landmark-one-main",
                    "meta-refresh", "meta-viewport"),
        LANGUAGE: ("html-has-lang", "html-lang-valid", "html-xml-lang-mismatch", "valid-lang"),
        TABLES_LISTS: ("definition-list", "dlitem", "list", "listitem", "td-headers-attr",
                       "th-has-data-cells", "td-has-header", "table-duplicate-name",
                       "table-fake-caption"),
        MEDIA: ("video-caption", "audio-caption"),
    }
    return {check_id: bucket for bucket, ids in groups.items() for check_id in ids}


BUCKET_MAP: Mapping[str, str] = MappingProxyType(_bucket_entries())

BUCKET_IMPACT: Mapping[str, str] = MappingProxyType({
    TEXT_ALTERNATIVES: "Blind visitors hear nothing useful where your images and icons should be.",
    CONTRAST: "Visitors with low vision or color blindness may not be able to read parts of your text.",
    FORMS: "Visitors using screen readers may not know what to type into your forms, which can block sign-ups and purchases.",
    CONTROL_NAMES: "Screen reader users hear buttons and links without knowing what they do or where they go.",
    ARIA: "Assistive technology receives contradictory instructions, so interactive parts may be unusable.",
    KEYBOARD: "Visitors who cannot use a mouse may get lost or stuck while moving through the page.",
    STRUCTURE: "Visitors relying on headings and landmarks find the page hard to navigate and understand.",
    LANGUAGE: "Screen readers may read your content with the wrong pronunciation.",
    TABLES_LISTS: "Tables and lists lose their meaning when read aloud, making information hard to follow.",
    MEDIA: "Deaf and hard-of-hearing visitors miss the spoken content of your media.",
})
DEFAULT_BUCKET_IMPACT = "Some visitors with disabilities may have difficulty using this part of your site."


def severity_rank(severity: str) -> int:
    return SEVERITY_RANK.get(severity, 0)


def lookup_rule(check_id: str) -> RuleMetadata:
    """Rule metadata for ``check_id``, falling back to DEFAULT_METADATA."""
    return RULE_METADATA.get(check_id, DEFAULT_METADATA)


def bucket_for(check_id: str) -> str:
    return BUCKET_MAP.get(check_id, OTHER_BUCKET)


def bucket_impact(bucket_name: str) -> str:
    return BUCKET_IMPACT.get(bucket_name, DEFAULT_BUCKET_IMPACT)


def classify_issue(check: FailedCheck) -> EnrichedIssue:
    meta = lookup_rule(check.check_id)
    return EnrichedIssue(
        rule=check.title,
        guideline_reference=meta.guideline_reference,
        severity=meta.severity,
        failed_elements=check.fail_count,
        impact=meta.impact,
        auto_fix_potential=meta.auto_fix_potential,
    )


def classify_issues(checks: Iterable[FailedCheck]) -> List[EnrichedIssue]:
    return [classify_issue(c) for c in checks]
