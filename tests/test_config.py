import pytest
from pydantic import ValidationError

from gdv_pipeline.config import CONFIG_ENV_VAR, PipelineConfig, load_config


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        CONFIG_ENV_VAR,
        "GDV_SEGMENT_WIDTH",
        "GDV_END_MARKER",
        "GDV_ENCODING",
        "GDV_DUMMY_VU_NUMMER",
        "GDV_URL_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()

    assert config == PipelineConfig()
    assert config.segment_width == 256
    assert config.end_marker == ""
    assert config.encoding == "latin-1"
    assert config.dummy_vu_nummer == "DUMMY"


def test_toml_file_in_working_directory(tmp_path):
    (tmp_path / "gdv_pipeline.toml").write_text(
        '[gdv]\nend_marker = "\\r\\n"\nurl_timeout = 5\n',
        encoding="utf-8",
    )

    config = load_config()

    assert config.end_marker == "\r\n"
    assert config.url_timeout == 5.0


def test_explicit_file_without_table(tmp_path):
    path = tmp_path / "other.toml"
    path.write_text('encoding = "cp1252"\n', encoding="utf-8")

    assert load_config(path).encoding == "cp1252"


def test_config_file_from_environment(monkeypatch, tmp_path):
    path = tmp_path / "env.toml"
    path.write_text('[gdv]\ndummy_vu_nummer = "XXXXX"\n', encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_config().dummy_vu_nummer == "XXXXX"


def test_environment_overrides_file(monkeypatch, tmp_path):
    (tmp_path / "gdv_pipeline.toml").write_text("[gdv]\nsegment_width = 128\n", encoding="utf-8")
    monkeypatch.setenv("GDV_SEGMENT_WIDTH", "512")

    assert load_config().segment_width == 512


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.toml")


def test_invalid_values(monkeypatch):
    monkeypatch.setenv("GDV_SEGMENT_WIDTH", "4")

    with pytest.raises(ValidationError):
        load_config()
    with pytest.raises(ValidationError):
        PipelineConfig(dummy_vu_nummer="TOOLONG")
