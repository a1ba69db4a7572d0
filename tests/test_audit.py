"""
Tests for the missing-key audit.

Run with: pytest tests/test_audit.py -v
"""

from pathlib import Path

import pytest

from lokma_i18n.audit import audit_sources, find_missing_keys, namespace_bindings
from lokma_i18n.catalog import TranslationCatalog
from lokma_i18n.scanner import SourceScanner

ORDERS_PAGE = """\
import { useTranslations } from 'next-intl';

export default function Orders({ id }) {
  const t = useTranslations('AdminOrders');
  const tCommon = useTranslations('Common');
  return (
    <div>
      <h1>{t('title')}</h1>
      <p>{t('emptyState')}</p>
      <p>{t.rich('notice', { b: (c) => <b>{c}</b> })}</p>
      <button>{tCommon('save')}</button>
      <span>{t(`status_${id}`)}</span>
      <span>{format('title')}</span>
    </div>
  );
}
"""


@pytest.fixture
def scanner():
    return SourceScanner()


@pytest.fixture
def catalog():
    return TranslationCatalog("tr", {
        "AdminOrders": {"title": "Siparişler"},
        "Common": {"save": "Kaydet"},
    })


def parse(scanner, path: Path, text: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return scanner.parse(path, path.read_bytes())


class TestNamespaceBindings:
    """Tests for namespace_bindings()."""

    def test_hook_bindings(self, scanner, tmp_path):
        """Every lookup function is mapped to its namespace."""
        tree = parse(scanner, tmp_path / "page.tsx", ORDERS_PAGE)
        assert namespace_bindings(tree) == {"t": "AdminOrders", "tCommon": "Common"}

    def test_awaited_server_binding(self, scanner, tmp_path):
        """await getTranslations('Ns') binds like the hook."""
        tree = parse(scanner, tmp_path / "page.tsx", (
            "export default async function Page() {\n"
            "  const t = await getTranslations('Dashboard');\n"
            "  return <h1>{t('welcome')}</h1>;\n"
            "}\n"
        ))
        assert namespace_bindings(tree) == {"t": "Dashboard"}


class TestFindMissingKeys:
    """Tests for find_missing_keys() and audit_sources()."""

    def test_missing_keys_reported(self, scanner, catalog, tmp_path):
        """Only literal keys absent from the bound namespace are reported."""
        path = tmp_path / "page.tsx"
        tree = parse(scanner, path, ORDERS_PAGE)
        found = find_missing_keys(path, tree, catalog)
        assert [(m.namespace, m.key, m.line) for m in found] == [
            ("AdminOrders", "emptyState", 9),
            ("AdminOrders", "notice", 10),
        ]
        assert str(found[0].tkey) == "AdminOrders.emptyState"

    def test_nested_keys(self, scanner, tmp_path):
        """Dotted keys resolve through nested namespaces."""
        path = tmp_path / "a.tsx"
        tree = parse(scanner, path, (
            "export function A() {\n"
            "  const t = useTranslations('Admin');\n"
            "  return <p>{t('form.title')}{t('form.hint')}</p>;\n"
            "}\n"
        ))
        catalog = TranslationCatalog("tr", {"Admin": {"form": {"title": "Form"}}})
        assert [m.key for m in find_missing_keys(path, tree, catalog)] == ["form.hint"]

    def test_file_without_bindings(self, scanner, catalog, tmp_path):
        """Files that never bind a namespace report nothing."""
        path = tmp_path / "b.tsx"
        tree = parse(scanner, path, "const a = t('anything');\n")
        assert find_missing_keys(path, tree, catalog) == []

    def test_audit_skips_broken_files(self, scanner, catalog, tmp_path):
        """Unparsable files are recorded and the rest are audited."""
        parse(scanner, tmp_path / "src" / "page.tsx", ORDERS_PAGE)
        broken = tmp_path / "src" / "broken.tsx"
        broken.write_text("<div>{t('x')", encoding="utf-8")

        found = audit_sources(scanner, [tmp_path / "src"], catalog)

        assert [m.key for m in found] == ["emptyState", "notice"]
        assert scanner.skipped_files == [broken]
