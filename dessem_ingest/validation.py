"""
Cross-reference validation over every frozen collection of a run.

The validator runs only once every file of the case has been parsed. It never
mutates or drops entities and never stops early: each check runs on its own
and every finding lands in one batch of diagnostics.

Checks:
- references: every non-null reference resolves to a key of its target key
  domain, pooled across all collections of the run;
- cascades: self-reference graphs (plant -> downstream plant) are acyclic and
  every downstream target exists;
- keys: primary and composite keys are unique per kind within a file;
- bounds: declared (minimum, maximum) pairs hold, sub-entities included.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from dessem_ingest.domain.builder import EntityCollection
from dessem_ingest.domain.diagnostics import Diagnostic, DiagnosticCode, DiagnosticCollector
from dessem_ingest.domain.models import Entity
from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)


def _walk(entity: Entity) -> Iterator[Entity]:
    """The entity followed by its attached sub-entities."""
    yield entity
    for child in entity.children():
        yield from _walk(child)


def key_domains(collections: Sequence[EntityCollection]) -> Dict[str, Set[Any]]:
    """Pool the keys of every key domain across collections."""
    pool: Dict[str, Set[Any]] = {}
    for collection in collections:
        for entity in collection:
            if entity.key_domain is None:
                continue
            value = entity.domain_key()
            if value is not None:
                pool.setdefault(entity.key_domain, set()).add(value)
    return pool


def check_references(
    collections: Sequence[EntityCollection], diagnostics: DiagnosticCollector
) -> None:
    pool = key_domains(collections)
    skipped: Set[str] = set()
    for collection in collections:
        for top in collection:
            for entity in _walk(top):
                for field_name, domain in entity.references.items():
                    value = getattr(entity, field_name, None)
                    if value is None:
                        continue
                    if domain not in pool:
                        if domain not in skipped:
                            skipped.add(domain)
                            log.debug(
                                "[VALIDATION] Key domain absent from run, references skipped",
                                extra={"domain": domain},
                            )
                        continue
                    if value not in pool[domain]:
                        diagnostics.error(
                            DiagnosticCode.REFERENTIAL_INTEGRITY,
                            f"{entity.tag}.{field_name}={value!r} does not resolve in {domain}",
                            file_id=collection.file_id,
                            line=entity.source_line,
                            expected=f"existing {domain} key",
                        )


def _cascade_arena(
    entities: Sequence[Entity],
) -> Tuple[List[Any], List[Entity], List[Optional[int]], List[Tuple[int, Any]]]:
    """
    Index the entities of one cascade kind.

    Returns the key and entity of every arena slot, the successor slot of each
    one and the (slot, target) pairs whose target is not in the arena.
    """
    slots: Dict[Any, int] = {}
    keys: List[Any] = []
    members: List[Entity] = []
    for entity in entities:
        key = entity.domain_key() if entity.key_domain else entity.key()
        if key is None or key in slots:
            continue
        slots[key] = len(keys)
        keys.append(key)
        members.append(entity)

    successors: List[Optional[int]] = []
    dangling: List[Tuple[int, Any]] = []
    for index, entity in enumerate(members):
        target = getattr(entity, entity.cascade_field)  # type: ignore[arg-type]
        if target is None:
            successors.append(None)
        elif target in slots:
            successors.append(slots[target])
        else:
            successors.append(None)
            dangling.append((index, target))
    return keys, members, successors, dangling


def find_cycles(successors: Sequence[Optional[int]]) -> List[List[int]]:
    """
    Cycles of a functional graph, each listed once in path order.

    Iterative path-following: every slot is walked at most once, and a walk
    that reaches a slot on its own path closes a cycle.
    """
    UNSEEN, ON_PATH, DONE = 0, 1, 2
    state = [UNSEEN] * len(successors)
    cycles: List[List[int]] = []
    for root in range(len(successors)):
        if state[root] != UNSEEN:
            continue
        path: List[int] = []
        position: Dict[int, int] = {}
        node: Optional[int] = root
        while node is not None and state[node] == UNSEEN:
            state[node] = ON_PATH
            position[node] = len(path)
            path.append(node)
            node = successors[node]
        if node is not None and state[node] == ON_PATH:
            cycles.append(path[position[node] :])
        for visited in path:
            state[visited] = DONE
    return cycles


def check_cascades(
    collections: Sequence[EntityCollection], diagnostics: DiagnosticCollector
) -> None:
    for collection in collections:
        for tag, entities in collection.by_kind.items():
            field_name = entities[0].cascade_field
            if field_name is None:
                continue
            keys, members, successors, dangling = _cascade_arena(entities)

            for index, target in dangling:
                diagnostics.error(
                    DiagnosticCode.REFERENTIAL_INTEGRITY,
                    f"{tag} {keys[index]!r}: {field_name} {target!r} is not a known {tag}",
                    file_id=collection.file_id,
                    line=members[index].source_line,
                    expected=f"existing {tag} key or blank",
                )
            for cycle in find_cycles(successors):
                chain = [keys[i] for i in cycle]
                diagnostics.error(
                    DiagnosticCode.CYCLE_DETECTED,
                    f"{tag} cascade cycle through {len(chain)} entities: "
                    + ", ".join(str(k) for k in chain),
                    file_id=collection.file_id,
                    line=members[cycle[0]].source_line,
                    expected="acyclic downstream chain",
                    excerpt=" -> ".join(str(k) for k in chain + chain[:1]),
                )


def check_unique_keys(
    collections: Sequence[EntityCollection], diagnostics: DiagnosticCollector
) -> None:
    for collection in collections:
        for tag, entities in collection.by_kind.items():
            seen: Dict[Tuple[Any, ...], Optional[int]] = {}
            for entity in entities:
                key = entity.key()
                if key is None or any(part is None for part in key):
                    continue
                if key in seen:
                    diagnostics.error(
                        DiagnosticCode.DUPLICATE_KEY,
                        f"{tag} key {key!r} already defined at line {seen[key]}",
                        file_id=collection.file_id,
                        line=entity.source_line,
                        expected=f"unique ({', '.join(entity.key_fields)})",
                    )
                else:
                    seen[key] = entity.source_line


def check_bounds(collections: Sequence[EntityCollection], diagnostics: DiagnosticCollector) -> None:
    for collection in collections:
        for top in collection:
            for entity in _walk(top):
                for low_name, high_name in entity.bounds:
                    low = getattr(entity, low_name)
                    high = getattr(entity, high_name)
                    if low is None or high is None or low <= high:
                        continue
                    diagnostics.warn(
                        DiagnosticCode.RANGE_VIOLATION,
                        f"{entity.tag}: {low_name}={low} exceeds {high_name}={high}",
                        file_id=collection.file_id,
                        line=entity.source_line,
                        expected=f"{low_name} <= {high_name}",
                    )


def validate(collections: Iterable[EntityCollection]) -> List[Diagnostic]:
    """
    Run every cross-reference check over the frozen collections of a run.

    Parameters
    ----------
    collections : iterable[EntityCollection]
        Complete results of every successfully parsed file.

    Returns
    -------
    list[Diagnostic]
        All findings, grouped by check in the order listed above.
    """
    frozen = tuple(collections)
    diagnostics = DiagnosticCollector()
    for check in (check_references, check_cascades, check_unique_keys, check_bounds):
        check(frozen, diagnostics)

    found = list(diagnostics.snapshot())
    log.info(
        "[VALIDATION] Completed",
        extra={
            "collections": len(frozen),
            "diagnostics": len(found),
            "errors": sum(1 for d in found if d.is_error),
        },
    )
    return found


__all__ = [
    "check_bounds",
    "check_cascades",
    "check_references",
    "check_unique_keys",
    "find_cycles",
    "key_domains",
    "validate",
]
