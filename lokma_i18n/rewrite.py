"""
Source rewriting: replace extracted literals with translation lookups.

After ``extract`` has assigned keys, every literal whose text maps to a key
in its namespace is replaced in place:

    "Kaydet"            ->  t('kaydet')
    title="Kaydet"      ->  title={t('kaydet')}
    <b>Kaydet</b>       ->  <b>{t('kaydet')}</b>
    `${n} ürün`         ->  `${n} ${t('urun')}`

The import line is added after the last import when missing. The hook
statement (``const t = useTranslations('Ns');``) is only inserted where an
InjectionPoint in the config says so; component functions are not guessed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from lokma_i18n.catalog import TranslationCatalog
from lokma_i18n.config import DEFAULT_IMPORT_LINE, InjectionPoint
from lokma_i18n.keygen import normalize_text
from lokma_i18n.scanner import SourceOccurrence, SourceScanner

logger = logging.getLogger(__name__)

# (start, end, replacement) edits on the original bytes
Edit = Tuple[int, int, str]

_TEMPLATES = {
    "string": "t('{key}')",
    "jsx_attribute": "{{t('{key}')}}",
    "jsx_text": "{{t('{key}')}}",
    "template": "${{t('{key}')}}",
}


def reverse_index(values: Mapping) -> Dict[str, str]:
    """Map normalized text -> key for the string leaves of one namespace."""
    index: Dict[str, str] = {}
    for key in sorted(values):
        value = values[key]
        if isinstance(value, str):
            index.setdefault(normalize_text(value), key)
    return index


def replacement_for(occurrence: SourceOccurrence, key: str) -> str:
    return _TEMPLATES[occurrence.context].format(key=key)


def literal_edits(occurrences: Iterable[SourceOccurrence], keys: Mapping[str, str]) -> List[Edit]:
    edits: List[Edit] = []
    seen = set()
    for occ in occurrences:
        key = keys.get(occ.text)
        if key is None or occ.start_byte in seen:
            continue
        seen.add(occ.start_byte)
        edits.append((occ.start_byte, occ.end_byte, replacement_for(occ, key)))
    return edits


def import_edit(tree, source: bytes, import_line: str) -> Optional[Edit]:
    """Insert ``import_line`` after the last top-level import (or directive)."""
    if import_line.encode("utf-8") in source:
        return None
    anchor = None
    for child in tree.root_node.children:
        if child.type == "import_statement":
            anchor = child
        elif anchor is None and child.type == "expression_statement" and child.text.strip(b"'\";") in (
            b"use client", b"use server"
        ):
            anchor = child
    if anchor is None:
        return (0, 0, import_line + "\n")
    return (anchor.end_byte, anchor.end_byte, "\n" + import_line)


def hook_edit(source: bytes, point: InjectionPoint) -> Optional[Edit]:
    """Insert the hook statement after the first line containing the anchor."""
    text = source.decode("utf-8")
    if point.statement in text:
        return None
    lines = text.splitlines(keepends=True)
    offset = 0
    for i, line in enumerate(lines):
        if point.anchor in line:
            indent = "  "
            for following in lines[i + 1:]:
                if following.strip():
                    indent = following[: len(following) - len(following.lstrip())]
                    break
            end = len(text[: offset + len(line.rstrip("\r\n"))].encode("utf-8"))
            return (end, end, "\n" + indent + point.statement)
        offset += len(line)
    logger.warning("Anchor %r not found in %s, hook not inserted", point.anchor, point.file)
    return None


def apply_edits(source: bytes, edits: Iterable[Edit]) -> bytes:
    """Apply edits from the end of the file backwards so offsets stay valid."""
    result = source
    for start, end, text in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
        result = result[:start] + text.encode("utf-8") + result[end:]
    return result


def rewrite_file(
    path: Path,
    namespace: str,
    source_catalog: TranslationCatalog,
    scanner: SourceScanner,
    injection_point: Optional[InjectionPoint] = None,
    import_line: str = DEFAULT_IMPORT_LINE,
) -> int:
    """Rewrite one file in place.

    Returns:
        Number of literals replaced (0 means the file was not written)

    Raises:
        SourceParseError: the file cannot be parsed
    """
    path = Path(path)
    source = path.read_bytes()
    tree = scanner.parse(path, source)
    occurrences = scanner.extract(path, source, tree, namespace)
    keys = reverse_index(source_catalog.namespace(namespace))

    literals = literal_edits(occurrences, keys)
    if not literals:
        return 0

    edits = list(literals)
    if (edit := import_edit(tree, source, import_line)) is not None:
        edits.append(edit)
    if injection_point is not None and (edit := hook_edit(source, injection_point)) is not None:
        edits.append(edit)

    path.write_bytes(apply_edits(source, edits))
    logger.info("Rewrote %s: %d strings", path, len(literals))
    return len(literals)
