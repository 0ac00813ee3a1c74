from bhishak.models.admin_models import Admin
from bhishak.models.system_models import SystemSetting


def test_init_db_seeds_default_settings(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['init-db'])
    assert result.exit_code == 0
    assert SystemSetting.query.filter_by(key='ENABLE_PATIENT_SIGNUP').one().value == 'false'

    again = runner.invoke(args=['init-db'])
    assert 'already exists' in again.output
    assert SystemSetting.query.count() == 3


def test_create_admin(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['create-admin', 'Boss@Bhishak.test', 'Big Boss', '--super',
                                 '--password', 'long-enough-pw'])
    assert result.exit_code == 0

    admin = Admin.query.filter_by(email='boss@bhishak.test').one()
    assert admin.role == 'SUPER_ADMIN'
    assert admin.check_password('long-enough-pw')

    duplicate = runner.invoke(args=['create-admin', 'boss@bhishak.test', 'Big Boss', '--password', 'another-pw'])
    assert duplicate.exit_code != 0


def test_create_admin_rejects_short_password(app):
    result = app.test_cli_runner().invoke(args=['create-admin', 'a@b.test', 'A', '--password', 'short'])
    assert result.exit_code != 0
    assert Admin.query.count() == 0


def test_health(client):
    assert client.get('/health').get_json() == {'success': True, 'status': 'ok'}


def test_unknown_route_uses_json_envelope(client):
    response = client.get('/api/nope')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'message': 'Resource not found', 'code': 'NOT_FOUND'}
