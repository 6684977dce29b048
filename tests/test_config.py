from realty_crm.config import Settings


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("STORAGE_PUBLIC_URL", "https://cdn.example.com/files")
    monkeypatch.setenv("DURATION_REFRESH_SECONDS", "30")

    configured = Settings()

    assert configured.STORAGE_PUBLIC_URL == "https://cdn.example.com/files"
    assert configured.DURATION_REFRESH_SECONDS == 30


def test_only_used_urls_are_configurable():
    urls = {name for name in Settings.model_fields if name.endswith("_URL")}
    assert urls == {"FRONTEND_URL", "DATABASE_URL", "STORAGE_PUBLIC_URL"}
