from generate_env import EnvGenerator, render_env


def _parse(text):
    pairs = {}
    for line in text.splitlines():
        if line and not line.startswith('#'):
            key, _, value = line.partition('=')
            pairs[key] = value
    return pairs


def test_render_includes_defaults_read_by_create_app():
    values = _parse(render_env("k" * 8))

    assert values['SECRET_KEY'] == "k" * 8
    assert values['ORDER_TRANSACTION_TIMEOUT_SECONDS'] == "5"
    assert values['RESTOCK_MAX_RETRIES'] == "3"
    assert values['ORDER_RATE_LIMIT'] == "30 per minute"
    assert 'DATABASE_URL' not in values


def test_dev_mode_turns_debug_on(tmp_path):
    generator = EnvGenerator(target=tmp_path / '.env', dev_mode=True)

    assert generator.write(force=True)
    values = _parse((tmp_path / '.env').read_text())
    assert values['FLASK_DEBUG'] == "True"


def test_force_keeps_a_backup(tmp_path):
    target = tmp_path / '.env'
    target.write_text("SECRET_KEY=old\n")

    EnvGenerator(target=target).write(force=True)

    backups = list(tmp_path.glob('.env.backup.*'))
    assert len(backups) == 1
    assert backups[0].read_text() == "SECRET_KEY=old\n"
    assert _parse(target.read_text())['SECRET_KEY'] != "old"
