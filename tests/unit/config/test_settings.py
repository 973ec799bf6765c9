from lineage_engine.config.settings import (
    OpenRouterSettings,
    PipelineSettings,
    RetrySettings,
    Settings,
    get_settings,
)


def test_defaults(monkeypatch):
    for name in ("MODEL_RETRY_MAX_RETRIES", "PIPELINE_CONFIDENCE_THRESHOLD", "OPENROUTER_MODEL"):
        monkeypatch.delenv(name, raising=False)

    retry = RetrySettings()
    pipeline = PipelineSettings()

    assert retry.max_retries == 5
    assert retry.base_delay_ms == 1000
    assert retry.jitter_ratio == 0.2
    assert pipeline.confidence_threshold == 0.7
    assert pipeline.domain == "domain"
    assert pipeline.system == "llm"
    assert OpenRouterSettings().model == "anthropic/claude-3-haiku"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MODEL_RETRY_MAX_RETRIES", "2")
    monkeypatch.setenv("MODEL_RETRY_JITTER_RATIO", "0")
    monkeypatch.setenv("PIPELINE_CONFIDENCE_THRESHOLD", "0.85")
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")

    settings = Settings()

    assert settings.retry.max_retries == 2
    assert settings.retry.jitter_ratio == 0.0
    assert settings.pipeline.confidence_threshold == 0.85
    assert settings.openrouter.api_key == "sk-test"


def test_get_settings_is_cached():
    get_settings.cache_clear()

    assert get_settings() is get_settings()
