import pytest

from runcore.achievements.definitions import Period, RequirementType, ResetPolicy
from runcore.config.catalog import load_catalog
from runcore.config.settings import DEFAULT_CATALOG_PATH, Settings

ACHIEVEMENT = '''
  - id: {id}
    name: Test
    category: distance
    tier: bronze
    requirement: {requirement}
    threshold: {threshold}
    points: 10
'''


def _write(tmp_path, body):
    path = tmp_path / 'catalog.yml'
    path.write_text(f'version: 2\nachievements:\n{body}', encoding='utf-8')
    return path


def test_default_catalog_loads():
    catalog = load_catalog(DEFAULT_CATALOG_PATH)
    assert len(catalog.achievements) == 20
    assert len(catalog.challenges) == 6

    every = catalog.achievement('every_100k')
    assert every.repeatable
    assert every.reset_policy is ResetPolicy.MILESTONE

    monthly = catalog.achievement('monthly_100k')
    assert monthly.reset_policy is ResetPolicy.PERIOD
    assert monthly.reset_period is Period.MONTH

    assert catalog.achievement('speed_demon').requirement is RequirementType.PACE_BELOW_THRESHOLD
    assert catalog.achievement('nope') is None


def test_repeatable_defaults_to_milestone(tmp_path):
    path = _write(tmp_path, ACHIEVEMENT.format(id='a', requirement='total_runs', threshold=10)
                  + '    repeatable: true\n')
    catalog = load_catalog(path)
    assert catalog.version == 2
    assert catalog.achievements[0].reset_policy is ResetPolicy.MILESTONE
    assert catalog.challenges == ()


@pytest.mark.parametrize(
    'body',
    [
        ACHIEVEMENT.format(id='a', requirement='total_runs', threshold=0),
        ACHIEVEMENT.format(id='a', requirement='lap_count', threshold=5),
        ACHIEVEMENT.format(id='a', requirement='total_runs', threshold=5) + '    reset_policy: period\n',
        ACHIEVEMENT.format(id='a', requirement='pace_below_threshold', threshold=300)
        + '    repeatable: true\n',
        ACHIEVEMENT.format(id='a', requirement='total_runs', threshold=5)
        + ACHIEVEMENT.format(id='a', requirement='total_runs', threshold=10),
    ],
    ids=['zero-threshold', 'unknown-requirement', 'period-without-length', 'pace-milestone', 'duplicate-id'],
)
def test_invalid_catalogs_are_rejected(tmp_path, body):
    with pytest.raises(ValueError):
        load_catalog(_write(tmp_path, body))


def test_missing_catalog_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / 'missing.yml')


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv('RUNCORE_TREND_DEADBAND_PCT', '5')
    monkeypatch.setenv('RUNCORE_LOG_LEVEL', 'debug')
    settings = Settings()
    assert settings.trend_deadband_pct == 5.0
    assert settings.log_level == 'DEBUG'


def test_settings_fall_back_on_unknown_log_level(monkeypatch):
    monkeypatch.setenv('RUNCORE_LOG_LEVEL', 'chatty')
    assert Settings().log_level == 'INFO'
