#!/usr/bin/env python3
"""
Cross-Reference Validator for Domain Knowledge Packs

Checks the referential integrity of a loaded DomainModel: shared item
namespace per context, context registration, ADR references in both
directions, intra-context relations (raised_by, handled_by, actor,
handles, emits, triggers, subscribes_to, used_by) and flow steps.

All findings are accumulated and returned; nothing is raised.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from ..model.identifiers import scoped_id
from ..model.types import (
    Aggregate,
    Command,
    DomainEvent,
    DomainItem,
    DomainModel,
    Policy,
    ReadModel,
)
from ..model.visitor import ITEM_KINDS, ItemKind, for_each_item, item_adr_refs, iter_items

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity of a validation finding."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single validation finding."""
    severity: Severity
    message: str
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "path": self.path}

    def __str__(self) -> str:
        location = f" ({self.path})" if self.path else ""
        return f"{self.message}{location}"


@dataclass
class ValidationResult:
    """Result of cross-reference validation."""
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """True when there are zero errors; warnings never count."""
        return len(self.errors) == 0

    @property
    def issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings

    @classmethod
    def from_issues(cls, issues: List[ValidationIssue]) -> 'ValidationResult':
        return cls(
            errors=[i for i in issues if i.severity == Severity.ERROR],
            warnings=[i for i in issues if i.severity == Severity.WARNING]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings]
        }


@dataclass
class ValidatorOptions:
    """Options controlling validator behaviour."""
    # Warn about events and commands with an absent or empty field list
    warn_missing_fields: bool = False


@dataclass
class _Lookups:
    """Resolution sets built once per validation run."""
    adr_ids: Set[str]
    context_names: Set[str]
    actor_names: Set[str]
    item_ids: Set[str]
    per_context: Dict[str, Dict[ItemKind, Set[str]]]


def _item_path(ctx_name: str, kind: ItemKind, name: str) -> str:
    return f"context:{ctx_name}.{kind.value}:{name}"


class CrossReferenceValidator:
    """Validates every declared reference in a domain model."""

    def __init__(self, options: Optional[ValidatorOptions] = None):
        """Initialize validator with options."""
        self.options = options or ValidatorOptions()

        self._relation_checks: Dict[ItemKind, Callable[..., None]] = {
            ItemKind.EVENT: self._check_event,
            ItemKind.COMMAND: self._check_command,
            ItemKind.POLICY: self._check_policy,
            ItemKind.AGGREGATE: self._check_aggregate,
            ItemKind.READ_MODEL: self._check_read_model,
            ItemKind.GLOSSARY: self._check_glossary,
        }

    def validate(self, model: DomainModel) -> ValidationResult:
        """Run every cross-reference check and return the collected findings."""
        logger.debug("Starting cross-reference validation")

        issues: List[ValidationIssue] = []
        lookups = self._build_lookups(model)

        self._check_unique_names(model, issues)
        self._check_context_registration(model, lookups, issues)
        self._check_adr_refs(model, lookups, issues)
        self._check_adr_outbound(model, lookups, issues)
        self._check_intra_context(model, lookups, issues)
        self._check_flow_steps(model, lookups, issues)

        if self.options.warn_missing_fields:
            self._check_missing_fields(model, issues)

        result = ValidationResult.from_issues(issues)
        logger.info(f"Validation complete: {'PASSED' if result.valid else 'FAILED'} "
                    f"({len(result.errors)} errors, {len(result.warnings)} warnings)")
        return result

    # ── Lookups ───────────────────────────────────────────────────────

    def _build_lookups(self, model: DomainModel) -> _Lookups:
        item_ids: Set[str] = set()
        per_context: Dict[str, Dict[ItemKind, Set[str]]] = {}

        for ctx_name, ctx in model.contexts.items():
            sets: Dict[ItemKind, Set[str]] = {kind: set() for kind in ITEM_KINDS}
            for kind, name, _item in iter_items(ctx):
                sets[kind].add(name)
                item_ids.add(scoped_id(ctx_name, name))
            per_context[ctx_name] = sets

        return _Lookups(
            adr_ids=set(model.adrs),
            context_names=set(model.contexts),
            actor_names={a.name for a in model.actors},
            item_ids=item_ids,
            per_context=per_context
        )

    # ── Checks ────────────────────────────────────────────────────────

    def _check_unique_names(self, model: DomainModel, issues: List[ValidationIssue]):
        """All six collections of a context share one identifier namespace."""
        for ctx_name, ctx in model.contexts.items():
            seen: Dict[str, ItemKind] = {}

            def visit(kind: ItemKind, name: str, _item: DomainItem, ctx_name=ctx_name, seen=seen):
                if name in seen:
                    issues.append(ValidationIssue(
                        Severity.ERROR,
                        f'Duplicate name "{name}" in context "{ctx_name}" '
                        f'(first seen as {seen[name].value}, duplicate as {kind.value})',
                        f"context:{ctx_name}"
                    ))
                else:
                    seen[name] = kind

            for_each_item(ctx, visit)

    def _check_context_registration(self, model: DomainModel, lookups: _Lookups,
                                    issues: List[ValidationIssue]):
        for entry in model.index.contexts:
            if entry.name not in lookups.context_names:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'Index references context "{entry.name}" but no context file was loaded',
                    "index"
                ))

    def _check_adr_refs(self, model: DomainModel, lookups: _Lookups, issues: List[ValidationIssue]):
        """Every adr_refs entry on actors and items must name an existing ADR."""
        def check(refs: List[str], path: str):
            for ref in refs or []:
                if ref not in lookups.adr_ids:
                    issues.append(ValidationIssue(
                        Severity.ERROR, f'adr_ref "{ref}" does not resolve to any ADR', path
                    ))

        for actor in model.actors:
            check(actor.adr_refs, f"actor:{actor.name}")

        for ctx_name, ctx in model.contexts.items():
            for kind, name, item in iter_items(ctx):
                check(item_adr_refs(item), _item_path(ctx_name, kind, name))

    def _check_adr_outbound(self, model: DomainModel, lookups: _Lookups, issues: List[ValidationIssue]):
        """domain_refs and superseded_by declared on ADRs."""
        for adr_id, adr in model.adrs.items():
            for ref in adr.domain_refs or []:
                if ref not in lookups.item_ids:
                    issues.append(ValidationIssue(
                        Severity.ERROR,
                        f'ADR domain_ref "{ref}" does not resolve to any domain item',
                        f"adr:{adr_id}"
                    ))
            if adr.superseded_by and adr.superseded_by not in lookups.adr_ids:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'ADR superseded_by "{adr.superseded_by}" does not resolve to any ADR',
                    f"adr:{adr_id}"
                ))

    def _check_intra_context(self, model: DomainModel, lookups: _Lookups, issues: List[ValidationIssue]):
        for ctx_name, ctx in model.contexts.items():
            sets = lookups.per_context[ctx_name]
            for kind, name, item in iter_items(ctx):
                self._relation_checks[kind](ctx_name, name, item, sets, lookups, issues)

    def _check_flow_steps(self, model: DomainModel, lookups: _Lookups, issues: List[ValidationIssue]):
        for flow in model.index.flows or []:
            for step in flow.steps:
                if step.ref not in lookups.item_ids:
                    issues.append(ValidationIssue(
                        Severity.ERROR,
                        f'Flow "{flow.name}" step ref "{step.ref}" does not resolve to any domain item',
                        f"flow:{flow.name}"
                    ))

    def _check_missing_fields(self, model: DomainModel, issues: List[ValidationIssue]):
        """Advisory: events and commands without payload fields."""
        for ctx_name, ctx in model.contexts.items():
            for kind, name, item in iter_items(ctx):
                if kind not in (ItemKind.EVENT, ItemKind.COMMAND):
                    continue
                if not item.fields:
                    label = "Event" if kind == ItemKind.EVENT else "Command"
                    issues.append(ValidationIssue(
                        Severity.WARNING,
                        f'{label} "{name}" has no fields defined',
                        _item_path(ctx_name, kind, name)
                    ))

    # ── Per-kind relation checks ──────────────────────────────────────

    def _check_event(self, ctx_name: str, name: str, event: DomainEvent,
                     sets: Dict[ItemKind, Set[str]], lookups: _Lookups, issues: List[ValidationIssue]):
        path = _item_path(ctx_name, ItemKind.EVENT, name)
        if event.raised_by and event.raised_by not in sets[ItemKind.AGGREGATE]:
            issues.append(ValidationIssue(
                Severity.ERROR,
                f'Event "{name}" raised_by "{event.raised_by}" does not match any aggregate '
                f'in context "{ctx_name}"',
                path
            ))

    def _check_command(self, ctx_name: str, name: str, command: Command,
                       sets: Dict[ItemKind, Set[str]], lookups: _Lookups, issues: List[ValidationIssue]):
        path = _item_path(ctx_name, ItemKind.COMMAND, name)
        if command.handled_by and command.handled_by not in sets[ItemKind.AGGREGATE]:
            issues.append(ValidationIssue(
                Severity.ERROR,
                f'Command "{name}" handled_by "{command.handled_by}" does not match any aggregate '
                f'in context "{ctx_name}"',
                path
            ))
        if command.actor and command.actor not in lookups.actor_names:
            issues.append(ValidationIssue(
                Severity.ERROR,
                f'Command "{name}" actor "{command.actor}" does not match any actor',
                path
            ))

    def _check_policy(self, ctx_name: str, name: str, policy: Policy,
                      sets: Dict[ItemKind, Set[str]], lookups: _Lookups, issues: List[ValidationIssue]):
        path = _item_path(ctx_name, ItemKind.POLICY, name)
        for trigger in policy.triggers or []:
            if trigger not in sets[ItemKind.EVENT]:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'Policy "{name}" triggers on "{trigger}" but no such event in context "{ctx_name}"',
                    path
                ))
        for emitted in policy.emits or []:
            if emitted not in sets[ItemKind.COMMAND]:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'Policy "{name}" emits "{emitted}" but no such command in context "{ctx_name}"',
                    path
                ))

    def _check_aggregate(self, ctx_name: str, name: str, aggregate: Aggregate,
                         sets: Dict[ItemKind, Set[str]], lookups: _Lookups, issues: List[ValidationIssue]):
        path = _item_path(ctx_name, ItemKind.AGGREGATE, name)
        for handled in aggregate.handles or []:
            if handled not in sets[ItemKind.COMMAND]:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'Aggregate "{name}" handles "{handled}" but no such command in context "{ctx_name}"',
                    path
                ))
        for emitted in aggregate.emits or []:
            if emitted not in sets[ItemKind.EVENT]:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'Aggregate "{name}" emits "{emitted}" but no such event in context "{ctx_name}"',
                    path
                ))

    def _check_read_model(self, ctx_name: str, name: str, read_model: ReadModel,
                          sets: Dict[ItemKind, Set[str]], lookups: _Lookups, issues: List[ValidationIssue]):
        path = _item_path(ctx_name, ItemKind.READ_MODEL, name)
        for subscribed in read_model.subscribes_to or []:
            if subscribed not in sets[ItemKind.EVENT]:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'ReadModel "{name}" subscribes_to "{subscribed}" but no such event '
                    f'in context "{ctx_name}"',
                    path
                ))
        for user in read_model.used_by or []:
            if user not in lookups.actor_names:
                issues.append(ValidationIssue(
                    Severity.ERROR,
                    f'ReadModel "{name}" used_by "{user}" but no such actor',
                    path
                ))

    def _check_glossary(self, ctx_name: str, name: str, entry: Any,
                        sets: Dict[ItemKind, Set[str]], lookups: _Lookups, issues: List[ValidationIssue]):
        # Glossary entries declare no intra-context relations
        pass


def validate(model: DomainModel, options: Optional[ValidatorOptions] = None) -> ValidationResult:
    """Validate all cross-references of ``model``."""
    return CrossReferenceValidator(options).validate(model)
