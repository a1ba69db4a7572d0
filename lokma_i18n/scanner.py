"""
Source scanner: finds untranslated Turkish UI text in TSX/TS/JSX/JS files.

Each file is parsed into a syntax tree with tree-sitter (TSX grammar for
.tsx/.jsx/.js, TypeScript grammar for .ts). Three kinds of literal are
candidates:
- string literals ("Kaydet", 'Sipariş Ver')
- JSX text (<button>Kaydet</button>)
- literal fragments of template strings (`${n} ürün seçildi`)

Candidates are dropped when their syntactic position says they are not UI
text (imports, property keys, translation calls, className and other
non-text attributes, type literals, comparisons) or when the value looks
like a CSS class list, colour, SVG path, URL or bare identifier. What is
left must contain a Turkish letter or a common Turkish UI word.

A file that does not parse cleanly is logged and skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from lokma_i18n.config import DEFAULT_EXTENSIONS, DEFAULT_TRANSLATION_FUNCTIONS, SourceBinding
from lokma_i18n.errors import ConfigError, SourceParseError
from lokma_i18n.keygen import TR_CHARS, normalize_text

logger = logging.getLogger(__name__)

# Common Turkish UI words without special characters
COMMON_WORDS = [
    "ve", "veya", "ile", "gibi", "kadar", "fakat", "ama", "ancak", "belki",
    "iyi", "yeni", "eski", "var", "yok", "evet", "merhaba", "iptal", "onayla",
    "bekleyen", "kurye", "restoran", "hesap", "fatura", "tarih", "saat",
    "toplam", "tutar", "adet", "kategori", "ekle", "sil", "kaydet", "kapat",
    "durum", "aktif", "pasif", "hata", "bilgi", "masa", "ara", "tamam",
    "kapali", "acik", "ayarlar", "tumu", "teslimat", "adres", "fiyat",
]

# JSX attributes whose values are never user-facing text
NON_TEXT_ATTRIBUTES = {
    "className", "class", "id", "key", "href", "src", "d", "style", "type",
    "name", "htmlFor", "variant", "size", "color", "fill", "stroke", "viewBox",
    "xmlns", "role", "target", "rel", "method", "action", "as", "lang",
    "autoComplete", "inputMode", "pattern", "accept", "data-testid", "ref",
    "strokeLinecap", "strokeLinejoin", "strokeWidth", "fillRule", "clipRule",
}

# Directories never worth parsing
SKIP_DIRS = {"node_modules", ".next", ".git", "dist", "build", "out", "coverage"}

CONTEXTS = ("string", "jsx_attribute", "jsx_text", "template")

_URL_RE = re.compile(r"^(?:https?:|mailto:|tel:|data:|www\.|/|\./|\.\./)", re.IGNORECASE)
_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{3,8}$")
_SVG_PATH_RE = re.compile(r"^[Mm][MmLlHhVvCcSsQqTtAaZz0-9.,\s-]*$")
_CSS_HINT_RE = re.compile(
    r"^(?:[a-z0-9]+:)*-?(?:flex|grid|block|inline|hidden|text|bg|border|rounded|"
    r"p[xytrbl]?|m[xytrbl]?|w|h|gap|space|items|justify|self|font|shadow|"
    r"transition|duration|ease|opacity|z|min|max|overflow|cursor|ring|divide|"
    r"leading|tracking|inset|top|left|right|bottom|absolute|relative|fixed|"
    r"sticky|truncate|animate|col|row|order|grow|shrink|basis|object|"
    r"pointer|select|whitespace|break|outline|aspect|container|sr)(?:-|$)"
)
_CLASS_TOKEN_RE = re.compile(r"^[a-z0-9:\-/.\[\]#%!_]+$")
_BARE_IDENTIFIER_RE = re.compile(r"^(?:[a-z][A-Za-z0-9]*|[a-z0-9]+(?:_[a-z0-9]+)+)$")
_TRANSLATION_FN_RE = re.compile(r"^t[A-Z]\w*$")
_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}

_COMPARISON_OPS = {"===", "!==", "==", "!="}
_FUNCTION_BOUNDARIES = {
    "function_declaration", "function_expression", "arrow_function",
    "method_definition", "class_body", "program", "statement_block",
}
_JSX_BOUNDARIES = {
    "jsx_element", "jsx_self_closing_element", "jsx_opening_element", "jsx_fragment",
}


@dataclass
class SourceOccurrence:
    """One candidate literal found in a source file.

    Attributes:
        path: File the literal was found in
        line: 1-based line of the replaced span
        column: 1-based character column of the replaced span
        text: Normalized literal text (the future catalog value)
        context: 'string', 'jsx_attribute', 'jsx_text' or 'template'
        start_byte: Start of the span a rewrite would replace
        end_byte: End of that span
        namespace: Catalog namespace from the source binding, if any
    """
    path: Path
    line: int
    column: int
    text: str
    context: str
    start_byte: int
    end_byte: int
    namespace: Optional[str] = None


def _word_pattern(words: Iterable[str]) -> re.Pattern:
    alternation = "|".join(re.escape(w) for w in sorted(set(words), key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


def looks_like_css_classes(value: str) -> bool:
    tokens = value.split()
    if not tokens or not all(_CLASS_TOKEN_RE.match(t) for t in tokens):
        return False
    return any(_CSS_HINT_RE.match(t) for t in tokens)


def is_non_text_value(value: str) -> bool:
    """Values that are never UI text regardless of where they appear."""
    stripped = value.strip()
    if len(stripped) < 2:
        return True
    if not any(ch.isalpha() for ch in stripped):
        return True  # numbers, punctuation, emoji
    if _URL_RE.match(stripped) or _HEX_COLOR_RE.match(stripped):
        return True
    if _SVG_PATH_RE.match(stripped) and any(ch.isdigit() for ch in stripped):
        return True
    return looks_like_css_classes(stripped)


def _decode_escape(match: re.Match) -> str:
    seq = match.group(1)
    if seq.startswith("u{"):
        code = int(seq[2:-1], 16)
        return chr(code) if code <= 0x10FFFF else match.group(0)
    if seq[0] in "ux" and len(seq) > 1:
        return chr(int(seq[1:], 16))
    if seq in ("\n", "\r\n", "\r", "\u2028", "\u2029"):
        return ""  # line continuation
    return _SIMPLE_ESCAPES.get(seq, seq)


def decode_js_escapes(text: str) -> str:
    """Decode backslash escapes of a JS string or template literal body.

    ``Lokma\\'da`` -> ``Lokma'da``, ``\\u00e7`` -> ``ç``, ``\\n`` -> newline.
    """
    if "\\" not in text:
        return text
    return _ESCAPE_RE.sub(_decode_escape, text)


def callee_name(call) -> str:
    """Name a call_expression calls: ``t`` for ``t(...)``, ``rich`` for ``t.rich(...)``."""
    fn = call.child_by_field_name("function")
    if fn is None:
        return ""
    if fn.type == "member_expression":
        prop = fn.child_by_field_name("property")
        return prop.text.decode("utf-8") if prop is not None else ""
    return fn.text.decode("utf-8")


class SourceScanner:
    """Walks source trees and extracts translatable literals.

    Usage:
        scanner = SourceScanner()
        for occ in scanner.scan([Path("src/components")]):
            print(occ.path, occ.line, occ.text)
    """

    def __init__(
        self,
        extensions: Sequence[str] = tuple(DEFAULT_EXTENSIONS),
        translation_functions: Sequence[str] = tuple(DEFAULT_TRANSLATION_FUNCTIONS),
        strict_identifiers: bool = True,
        extra_words: Sequence[str] = (),
    ):
        self.extensions = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
        self.translation_functions = set(translation_functions)
        self.strict_identifiers = strict_identifiers
        self._words_re = _word_pattern(list(COMMON_WORDS) + list(extra_words))
        self._parsers: dict = {}
        self.skipped_files: List[Path] = []

    # ---- parsing -------------------------------------------------------

    def _get_parser(self, suffix: str):
        """Lazy initialization of tree-sitter parsers, one per grammar."""
        grammar = "typescript" if suffix == ".ts" else "tsx"
        if grammar not in self._parsers:
            try:
                import tree_sitter_typescript as tsts
                from tree_sitter import Language, Parser
            except ImportError:
                raise ImportError(
                    "tree-sitter and tree-sitter-typescript required. Install with: "
                    "pip install tree-sitter tree-sitter-typescript"
                )
            lang_fn = tsts.language_typescript if grammar == "typescript" else tsts.language_tsx
            self._parsers[grammar] = Parser(Language(lang_fn()))
        return self._parsers[grammar]

    def parse(self, path: Path, source: bytes):
        """Parse source bytes into a tree.

        Raises:
            SourceParseError: the tree contains syntax errors
        """
        tree = self._get_parser(path.suffix.lower()).parse(source)
        if tree.root_node.has_error:
            raise SourceParseError(f"Syntax errors in {path}")
        return tree

    # ---- classification -----------------------------------------------

    def is_translatable(self, value: str) -> bool:
        """Heuristic: does this literal look like Turkish UI text?"""
        text = normalize_text(value)
        if is_non_text_value(text):
            return False
        if self.strict_identifiers and _BARE_IDENTIFIER_RE.match(text):
            return False
        if any(ch in TR_CHARS for ch in text):
            return True
        return bool(self._words_re.search(text))

    def _is_translation_callee(self, call) -> bool:
        name = callee_name(call)
        if name in ("require", "import"):
            return True
        return name in self.translation_functions or bool(_TRANSLATION_FN_RE.match(name))

    def _jsx_attribute_name(self, attr) -> str:
        for child in attr.children:
            if child.type in ("property_identifier", "jsx_namespace_name", "identifier"):
                return child.text.decode("utf-8")
        return ""

    def skip_reason(self, node) -> Optional[str]:
        """Why a literal node is not UI text, based on its position."""
        parent = node.parent
        if parent is None:
            return None

        if parent.type in ("import_statement", "export_statement", "import_require_clause"):
            return "import"
        if parent.type == "literal_type":
            return "type"
        if parent.type == "pair":
            key = parent.child_by_field_name("key")
            if key is not None and (key.start_byte, key.end_byte) == (node.start_byte, node.end_byte):
                return "property-key"
        if parent.type == "binary_expression":
            op = parent.child_by_field_name("operator")
            if op is not None and op.type in _COMPARISON_OPS:
                return "comparison"
        if parent.type == "switch_case":
            return "comparison"

        current = node
        while current.parent is not None:
            current = current.parent
            if current.type == "arguments" and current.parent is not None:
                if current.parent.type == "call_expression" and self._is_translation_callee(current.parent):
                    return "translation-call"
            if current.type == "jsx_attribute":
                if self._jsx_attribute_name(current) in NON_TEXT_ATTRIBUTES:
                    return "attribute"
                break
            if current.type in _FUNCTION_BOUNDARIES or current.type in _JSX_BOUNDARIES:
                break
        return None

    # ---- extraction ---------------------------------------------------

    def _spans(self, node, source: bytes) -> Iterator[Tuple[int, int, str]]:
        """(start, end, context) spans a literal node contributes."""
        if node.type == "string":
            context = "jsx_attribute" if node.parent is not None and node.parent.type == "jsx_attribute" else "string"
            yield node.start_byte, node.end_byte, context
        elif node.type == "jsx_text":
            yield node.start_byte, node.end_byte, "jsx_text"
        elif node.type == "template_string":
            cursor = node.start_byte + 1
            for child in node.children:
                if child.type == "template_substitution":
                    yield cursor, child.start_byte, "template"
                    cursor = child.end_byte
            yield cursor, node.end_byte - 1, "template"

    def _value(self, source: bytes, start: int, end: int, context: str) -> str:
        """Literal text of a span; the span itself stays raw for rewrites."""
        raw = source[start:end]
        if context in ("string", "jsx_attribute"):
            raw = raw[1:-1]
        text = raw.decode("utf-8", errors="replace")
        # JSX attribute strings and JSX text take backslashes literally
        if context in ("string", "template"):
            text = decode_js_escapes(text)
        return text

    def _trimmed(self, source: bytes, start: int, end: int) -> Tuple[int, int]:
        raw = source[start:end]
        lead = len(raw) - len(raw.lstrip())
        trail = len(raw) - len(raw.rstrip())
        return start + lead, end - trail

    def _position(self, source: bytes, offset: int) -> Tuple[int, int]:
        line_start = source.rfind(b"\n", 0, offset) + 1
        line = source.count(b"\n", 0, offset) + 1
        column = len(source[line_start:offset].decode("utf-8", errors="replace")) + 1
        return line, column

    def extract(self, path: Path, source: bytes, tree, namespace: Optional[str] = None) -> List[SourceOccurrence]:
        """Collect occurrences from an already parsed tree, in source order."""
        found: List[SourceOccurrence] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type in ("string", "jsx_text", "template_string"):
                if self.skip_reason(node) is None:
                    for start, end, context in self._spans(node, source):
                        value = self._value(source, start, end, context)
                        if not self.is_translatable(value):
                            continue
                        if context in ("jsx_text", "template"):
                            start, end = self._trimmed(source, start, end)
                        line, column = self._position(source, start)
                        found.append(SourceOccurrence(
                            path=path,
                            line=line,
                            column=column,
                            text=normalize_text(value),
                            context=context,
                            start_byte=start,
                            end_byte=end,
                            namespace=namespace,
                        ))
                if node.type == "string":
                    continue
            stack.extend(reversed(node.children))
        found.sort(key=lambda o: o.start_byte)
        return found

    def scan_file(self, path: Path, namespace: Optional[str] = None) -> List[SourceOccurrence]:
        """Scan one file.

        Raises:
            SourceParseError: the file cannot be read or parsed
        """
        path = Path(path)
        try:
            source = path.read_bytes()
        except OSError as e:
            raise SourceParseError(f"Cannot read {path}: {e}") from e
        tree = self.parse(path, source)
        return self.extract(path, source, tree, namespace)

    def iter_files(self, root: Path) -> Iterator[Path]:
        if root.is_file():
            if root.suffix.lower() in self.extensions:
                yield root
            return
        for path in sorted(root.rglob("*")):
            if any(part in SKIP_DIRS for part in path.relative_to(root).parts):
                continue
            if path.is_file() and path.suffix.lower() in self.extensions:
                yield path

    def scan(self, root_dirs: Iterable[Path], namespace: Optional[str] = None) -> List[SourceOccurrence]:
        """Scan directory trees; unparsable files are logged and skipped.

        Raises:
            ConfigError: a root directory does not exist
        """
        occurrences: List[SourceOccurrence] = []
        for root in root_dirs:
            root = Path(root)
            if not root.exists():
                raise ConfigError(f"Source directory not found: {root}")
            for path in self.iter_files(root):
                try:
                    occurrences.extend(self.scan_file(path, namespace))
                except SourceParseError as e:
                    logger.warning("Error parsing %s, skipped: %s", path, e)
                    self.skipped_files.append(path)
        return occurrences

    def scan_bindings(self, bindings: Iterable[SourceBinding]) -> List[SourceOccurrence]:
        """Scan each bound directory, tagging occurrences with its namespace."""
        occurrences: List[SourceOccurrence] = []
        for binding in bindings:
            found = self.scan([binding.directory], namespace=binding.namespace)
            logger.info("%s: %d candidate strings", binding.namespace, len(found))
            occurrences.extend(found)
        return occurrences
