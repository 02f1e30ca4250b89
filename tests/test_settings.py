from pathlib import Path

from service_pricing.config.settings import Settings, get_settings, reset_settings


def test_defaults_follow_project_root(tmp_path, monkeypatch):
    for name in ('DATA_DIR', 'PRICES_CSV', 'CURRENCY', 'LOG_LEVEL', 'PAGE_LIMIT', 'HOST', 'PORT'):
        monkeypatch.delenv(f'SERVICE_PRICING_{name}', raising=False)

    settings = Settings.load(project_root=tmp_path)

    assert settings.data_dir == tmp_path / 'data'
    assert settings.prices_csv == tmp_path / 'data' / 'prices.csv'
    assert settings.default_currency == 'EUR'
    assert settings.page_limit == 20
    assert settings.port == 8000


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv('SERVICE_PRICING_DATA_DIR', str(tmp_path / 'shared'))
    monkeypatch.setenv('SERVICE_PRICING_CURRENCY', 'usd')
    monkeypatch.setenv('SERVICE_PRICING_LOG_LEVEL', 'debug')
    monkeypatch.setenv('SERVICE_PRICING_PAGE_LIMIT', '50')
    monkeypatch.setenv('SERVICE_PRICING_PRICES_CSV', '')

    settings = Settings.load(project_root=tmp_path)

    assert settings.prices_csv == Path(tmp_path / 'shared' / 'prices.csv')
    assert settings.default_currency == 'USD'
    assert settings.log_level == 'DEBUG'
    assert settings.page_limit == 50


def test_get_settings_is_cached(monkeypatch):
    reset_settings()
    first = get_settings()
    monkeypatch.setenv('SERVICE_PRICING_PAGE_LIMIT', '7')

    assert get_settings() is first

    reset_settings()
    assert get_settings().page_limit == 7
    reset_settings()


def test_api_state_follows_settings(tmp_path, monkeypatch):
    from service_pricing.api.state import get_store, reset_state

    monkeypatch.setenv('SERVICE_PRICING_PRICES_CSV', str(tmp_path / 'prices.csv'))
    reset_settings()
    reset_state()

    store = get_store()
    assert store.csv_path == tmp_path / 'prices.csv'
    assert get_store() is store

    reset_state()
    assert get_store() is not store

    reset_state()
    reset_settings()
