from filetgrid.config import DEBOUNCE, HISTORY, Settings, load_settings


def test_defaults(monkeypatch):
    for name in ('FILETGRID_DEBOUNCE_MS', 'FILETGRID_HISTORY_LIMIT', 'FILETGRID_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    assert load_settings() == Settings(
        debounce_ms=DEBOUNCE['regenerate_ms'],
        history_limit=HISTORY['max_states'],
        log_level='INFO',
    )


def test_overrides(monkeypatch):
    monkeypatch.setenv('FILETGRID_DEBOUNCE_MS', '50')
    monkeypatch.setenv('FILETGRID_HISTORY_LIMIT', '10')
    monkeypatch.setenv('FILETGRID_LOG_LEVEL', 'debug')
    settings = load_settings()
    assert settings.debounce_ms == 50
    assert settings.history_limit == 10
    assert settings.log_level == 'DEBUG'


def test_bad_values_fall_back(monkeypatch, caplog):
    monkeypatch.setenv('FILETGRID_DEBOUNCE_MS', 'soon')
    monkeypatch.setenv('FILETGRID_HISTORY_LIMIT', '0')
    monkeypatch.setenv('FILETGRID_LOG_LEVEL', 'chatty')
    settings = load_settings()
    assert settings.debounce_ms == 300
    assert settings.history_limit == 50
    assert settings.log_level == 'INFO'
    assert 'FILETGRID_DEBOUNCE_MS' in caplog.text
