"""
Missing-key audit: translation lookups whose key is not in the source catalog.

A component binds a lookup function to a namespace:

    const t = useTranslations('AdminSettings');
    const t = await getTranslations('AdminSettings');

Every ``t('key')`` (or ``t.rich('key', ...)``) call through such a binding
is checked against the source-language catalog. Calls with a computed key
are ignored, as are calls through functions the file never binds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from lokma_i18n.catalog import TranslationCatalog, TranslationKey
from lokma_i18n.errors import SourceParseError
from lokma_i18n.scanner import SourceScanner, callee_name, decode_js_escapes

logger = logging.getLogger(__name__)

HOOK_FUNCTIONS = ("useTranslations", "getTranslations")


@dataclass
class MissingKey:
    """A lookup in ``path`` whose key does not exist in the catalog."""
    path: Path
    line: int
    namespace: str
    key: str

    @property
    def tkey(self) -> TranslationKey:
        return TranslationKey.from_path(tuple(f"{self.namespace}.{self.key}".strip(".").split(".")))


def _string_argument(call) -> Optional[str]:
    """The first argument of a call when it is a plain string literal."""
    args = call.child_by_field_name("arguments")
    if args is None or not args.named_children:
        return None
    first = args.named_children[0]
    if first.type != "string":
        return None
    return decode_js_escapes(first.text.decode("utf-8")[1:-1])


def _walk(node):
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def namespace_bindings(tree) -> Dict[str, str]:
    """Map local lookup-function names to the namespace they were bound to."""
    bindings: Dict[str, str] = {}
    for node in _walk(tree.root_node):
        if node.type != "variable_declarator":
            continue
        value = node.child_by_field_name("value")
        if value is not None and value.type == "await_expression" and value.named_children:
            value = value.named_children[0]
        if value is None or value.type != "call_expression" or callee_name(value) not in HOOK_FUNCTIONS:
            continue
        namespace = _string_argument(value)
        if namespace is None:
            continue
        name = node.child_by_field_name("name")
        if name is None:
            continue
        if name.type == "identifier":
            bindings[name.text.decode("utf-8")] = namespace
        elif name.type == "object_pattern":
            for child in name.named_children:
                if child.type == "shorthand_property_identifier_pattern":
                    bindings[child.text.decode("utf-8")] = namespace
    return bindings


def _bound_name(call) -> str:
    fn = call.child_by_field_name("function")
    if fn is not None and fn.type == "member_expression":
        obj = fn.child_by_field_name("object")
        return obj.text.decode("utf-8") if obj is not None and obj.type == "identifier" else ""
    return callee_name(call)


def find_missing_keys(path: Path, tree, catalog: TranslationCatalog) -> List[MissingKey]:
    """Lookups in one parsed file whose key is absent from ``catalog``."""
    bindings = namespace_bindings(tree)
    if not bindings:
        return []
    missing: List[MissingKey] = []
    for node in _walk(tree.root_node):
        if node.type != "call_expression":
            continue
        namespace = bindings.get(_bound_name(node))
        key = _string_argument(node) if namespace is not None else None
        if not key:
            continue
        entry = MissingKey(path=path, line=node.start_point[0] + 1, namespace=namespace, key=key)
        if catalog.get(entry.tkey) is None:
            missing.append(entry)
    return missing


def audit_sources(
    scanner: SourceScanner,
    roots: Iterable[Path],
    catalog: TranslationCatalog,
) -> List[MissingKey]:
    """Audit every source file under ``roots``; unparsable files are skipped."""
    missing: List[MissingKey] = []
    for root in roots:
        for path in scanner.iter_files(Path(root)):
            try:
                source = path.read_bytes()
                tree = scanner.parse(path, source)
            except (OSError, SourceParseError) as e:
                logger.warning("Error parsing %s, skipped: %s", path, e)
                scanner.skipped_files.append(path)
                continue
            found = find_missing_keys(path, tree, catalog)
            for item in found:
                logger.debug("%s:%d missing %s", item.path, item.line, item.tkey)
            missing.extend(found)
    return missing
