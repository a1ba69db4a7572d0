"""
End-to-end tests for the pipeline stages and the CLI.

Each test builds a small project in a temporary directory: an i18n.json,
a messages directory and a TSX source tree.

Run with: pytest tests/test_pipeline.py -v
"""

import json

import pytest
from typer.testing import CliRunner

from lokma_i18n.cli import app
from lokma_i18n.config import SyncConfig
from lokma_i18n.errors import ConfigError
from lokma_i18n.pipeline import SyncPipeline
from lokma_i18n.remote import JsonDirStore
from lokma_i18n.translate import DummyTranslator

SETTINGS_PAGE = """\
export default function Settings() {
  return (
    <form>
      <h1>Ayarlar</h1>
      <label>İşletme Aktif (Lokma'da Görünsün)</label>
      <button>Kaydet</button>
    </form>
  );
}
"""


@pytest.fixture
def project(tmp_path):
    """A minimal project with one source binding."""
    src = tmp_path / "src" / "settings"
    src.mkdir(parents=True)
    (src / "page.tsx").write_text(SETTINGS_PAGE, encoding="utf-8")
    (tmp_path / "messages").mkdir()
    config_path = tmp_path / "i18n.json"
    config_path.write_text(json.dumps({
        "messages_dir": "messages",
        "target_langs": ["en", "de"],
        "sources": [{"directory": "src/settings", "namespace": "AdminSettings"}],
        "request_delay": 0,
    }), encoding="utf-8")
    return tmp_path


@pytest.fixture
def pipeline(project):
    return SyncPipeline(SyncConfig.load(project / "i18n.json"), translator=DummyTranslator("upper"))


def read(project, lang):
    return json.loads((project / "messages" / f"{lang}.json").read_text(encoding="utf-8"))


class TestSyncPipeline:
    """Tests for SyncPipeline stages."""

    def test_extract_adds_keys(self, pipeline, project):
        """New strings get keys in the source catalog."""
        result = pipeline.extract()
        assert result.success
        assert result.stats["added"] == 3
        assert read(project, "tr") == {"AdminSettings": {
            "ayarlar": "Ayarlar",
            "isletmeAktifLokmadaGorunsun": "İşletme Aktif (Lokma'da Görünsün)",
            "kaydet": "Kaydet",
        }}

    def test_extract_is_idempotent(self, pipeline, project):
        """A second extract adds nothing and keeps the file byte-identical."""
        pipeline.extract()
        before = (project / "messages" / "tr.json").read_bytes()
        assert pipeline.extract().stats["added"] == 0
        assert (project / "messages" / "tr.json").read_bytes() == before

    def test_inject_then_translate(self, pipeline, project):
        """Placeholders are fanned out and then translated."""
        pipeline.extract()
        pipeline.inject()
        assert read(project, "en")["AdminSettings"]["kaydet"] == "[EN] Kaydet"
        assert read(project, "tr")["AdminSettings"]["kaydet"] == "Kaydet"

        result = pipeline.translate()
        assert result.success
        assert read(project, "de")["AdminSettings"]["kaydet"] == "KAYDET"

    def test_translate_failures_are_partial(self, project):
        """Endpoint failures make the stage a partial failure."""
        from lokma_i18n.errors import TranslationEndpointError
        from lokma_i18n.translate import Translator

        class DownTranslator(Translator):
            name = "down"

            def translate(self, text, source_lang, target_lang):
                raise TranslationEndpointError("503")

        pipeline = SyncPipeline(SyncConfig.load(project / "i18n.json"), translator=DownTranslator())
        pipeline.extract()
        result = pipeline.translate()
        assert not result.success
        assert read(project, "en")["AdminSettings"]["kaydet"] == "[EN] Kaydet"

    def test_translate_skips_broken_catalog(self, pipeline, project):
        """A corrupt target catalog fails only its own language."""
        pipeline.extract()
        (project / "messages" / "de.json").write_text("{broken", encoding="utf-8")
        result = pipeline.translate()
        assert not result.success
        assert result.stats["de"] == "skipped"
        assert read(project, "en")["AdminSettings"]["kaydet"] == "KAYDET"

    def test_missing_keys(self, pipeline, project):
        """Lookups of keys absent from the source catalog are reported."""
        pipeline.extract()
        (project / "src" / "settings" / "header.tsx").write_text(
            "export function Header() {\n"
            "  const t = useTranslations('AdminSettings');\n"
            "  return <h2>{t('kaydet')}{t('yeniBaslik')}</h2>;\n"
            "}\n",
            encoding="utf-8",
        )
        result = pipeline.missing()
        assert not result.success
        assert [str(m.tkey) for m in result.missing] == ["AdminSettings.yeniBaslik"]

    def test_sync_with_directory_remote(self, pipeline, project):
        """sync merges every local catalog with the remote."""
        pipeline.extract()
        remote = JsonDirStore(project / "remote")
        remote.push("tr", {"PushNotifications": {"newOrder": "Yeni sipariş"}})

        result = pipeline.sync(remote=remote)

        assert result.success
        assert read(project, "tr")["PushNotifications"] == {"newOrder": "Yeni sipariş"}
        assert "AdminSettings" in remote.fetch("tr")

    def test_sync_without_remote(self, pipeline):
        """sync needs a remote store."""
        with pytest.raises(ValueError):
            pipeline.sync()

    def test_clean(self, pipeline, project):
        """clean removes placeholders from target catalogs."""
        pipeline.extract()
        pipeline.inject()
        result = pipeline.clean()
        assert result.stats == {"en": 3, "de": 3}
        assert read(project, "en") == {}

    def test_rewrite(self, pipeline, project):
        """rewrite replaces literals with lookups."""
        pipeline.extract()
        result = pipeline.rewrite()
        assert result.stats == {"files": 1, "strings": 3}
        text = (project / "src" / "settings" / "page.tsx").read_text(encoding="utf-8")
        assert "<button>{t('kaydet')}</button>" in text

    def test_missing_sources_is_config_error(self, project):
        """A configured source directory that does not exist aborts the stage."""
        config = SyncConfig.load(project / "i18n.json")
        config.sources[0].directory = project / "missing"
        with pytest.raises(ConfigError):
            SyncPipeline(config).scan()


class TestCLI:
    """Tests for the lokma-i18n command line."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def invoke(self, runner, project, *args):
        return runner.invoke(app, ["-c", str(project / "i18n.json"), *args])

    def test_version(self, runner):
        """--version prints the version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "lokma-i18n v" in result.stdout

    def test_missing_config_exits_2(self, runner, tmp_path):
        """A missing config file is fatal."""
        result = runner.invoke(app, ["-c", str(tmp_path / "nope.json"), "extract"])
        assert result.exit_code == 2

    def test_extract_inject_translate(self, runner, project):
        """The stages run in sequence and exit 0."""
        assert self.invoke(runner, project, "extract").exit_code == 0
        assert self.invoke(runner, project, "inject").exit_code == 0
        result = self.invoke(runner, project, "translate", "--backend", "dummy", "--lang", "en")
        assert result.exit_code == 0
        assert read(project, "en")["AdminSettings"]["kaydet"] == "Kaydet"
        assert read(project, "de")["AdminSettings"]["kaydet"] == "[DE] Kaydet"

    def test_unknown_backend_exits_2(self, runner, project):
        """An unknown backend is a configuration error."""
        result = self.invoke(runner, project, "translate", "--backend", "babelfish")
        assert result.exit_code == 2

    def test_scan_with_broken_file_exits_1(self, runner, project):
        """A skipped file makes scan a partial failure."""
        (project / "src" / "settings" / "broken.tsx").write_text("<div>Merhaba", encoding="utf-8")
        result = self.invoke(runner, project, "scan")
        assert result.exit_code == 1
        assert "Kaydet" in result.stdout

    def test_sync_remote_dir(self, runner, project):
        """sync --remote-dir writes the remote documents."""
        self.invoke(runner, project, "extract")
        result = self.invoke(runner, project, "sync", "--remote-dir", str(project / "remote"))
        assert result.exit_code == 0
        assert (project / "remote" / "tr.json").exists()

    def test_sync_without_credentials_exits_2(self, runner, project, monkeypatch):
        """Firestore sync without credentials aborts before touching anything."""
        monkeypatch.delenv("LOKMA_I18N_CREDENTIALS", raising=False)
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        result = self.invoke(runner, project, "sync")
        assert result.exit_code == 2

    def test_lookup(self, runner, project):
        """lookup prints a namespace from the remote."""
        JsonDirStore(project / "remote").push("tr", {"PushNotifications": {"newOrder": "Yeni sipariş"}})
        result = self.invoke(runner, project, "lookup", "en", "PushNotifications",
                             "--remote-dir", str(project / "remote"))
        assert result.exit_code == 0
        assert "Yeni sipariş" in result.stdout

    def test_malformed_catalog_exits_2(self, runner, project):
        """A corrupt catalog aborts the stage."""
        (project / "messages" / "tr.json").write_text("{", encoding="utf-8")
        assert self.invoke(runner, project, "inject").exit_code == 2

    def test_missing_exits_1(self, runner, project):
        """missing lists unknown keys and exits 1."""
        self.invoke(runner, project, "extract")
        assert self.invoke(runner, project, "missing").exit_code == 0
        (project / "src" / "settings" / "header.tsx").write_text(
            "export function Header() {\n"
            "  const t = useTranslations('AdminSettings');\n"
            "  return <h2>{t('yeniBaslik')}</h2>;\n"
            "}\n",
            encoding="utf-8",
        )
        result = self.invoke(runner, project, "missing")
        assert result.exit_code == 1
        assert "yeniBaslik" in result.stdout

    def test_translate_with_broken_catalog_exits_1(self, runner, project):
        """One corrupt target catalog is a partial failure, not a fatal one."""
        self.invoke(runner, project, "extract")
        (project / "messages" / "de.json").write_text("{", encoding="utf-8")
        result = self.invoke(runner, project, "translate", "--backend", "dummy")
        assert result.exit_code == 1
        assert read(project, "en")["AdminSettings"]["kaydet"] == "Kaydet"

    def test_doctor(self, runner, project):
        """doctor reports on the project."""
        result = self.invoke(runner, project, "doctor")
        assert result.exit_code == 0
        assert "checks" in result.stdout
