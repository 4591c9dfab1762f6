import pytest

from case_transcriber.config import Settings, _split_labels, is_configured


@pytest.mark.parametrize(
    "value",
    ["", "   ", None, "your_api_key_here", "your-openai-key", "changeme", "sk-xxxxxxxx", "<api key>"],
)
def test_placeholder_credentials_are_not_configured(value):
    assert not is_configured(value)


def test_real_looking_credential_is_configured():
    assert is_configured("sk-proj-3fA9b")


def test_settings_thresholds_in_bytes(tmp_path):
    config = Settings(work_dir=tmp_path / "w", max_chunk_mb=20, max_upload_mb=100)
    assert config.max_chunk_bytes == 20 * 1024 * 1024
    assert config.max_upload_bytes == 100 * 1024 * 1024
    assert (tmp_path / "w").is_dir()


def test_llm_enabled_needs_credential_and_strategy(tmp_path):
    assert not Settings(work_dir=tmp_path, attribution_strategy="auto", llm_api_key="").llm_enabled
    assert Settings(work_dir=tmp_path, attribution_strategy="AUTO", llm_api_key="key-123").llm_enabled
    assert not Settings(work_dir=tmp_path, attribution_strategy="heuristic", llm_api_key="key-123").llm_enabled


def test_speaker_labels_parsing():
    assert _split_labels(" Atendente , Cliente ") == ("Atendente", "Cliente")
    with pytest.raises(ValueError):
        _split_labels("Solo")
