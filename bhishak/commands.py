import click
from flask.cli import with_appcontext
from bhishak.extensions import db
from bhishak.models.admin_models import Admin
from bhishak.models.system_models import SystemSetting

DEFAULT_SETTINGS = [
    {
        'key': 'ENABLE_PATIENT_SIGNUP',
        'value': 'false',
        'type': 'BOOLEAN',
        'category': 'FEATURES',
        'label': 'Patient self-signup',
        'description': 'Allow patients to register themselves with OTP verification.',
    },
    {
        'key': 'MAINTENANCE_MESSAGE',
        'value': '',
        'type': 'STRING',
        'category': 'GENERAL',
        'label': 'Maintenance banner',
        'description': 'Shown on the web app when non-empty.',
    },
    {
        'key': 'DOCTOR_TRIAL_DAYS',
        'value': '14',
        'type': 'NUMBER',
        'category': 'SUBSCRIPTIONS',
        'label': 'Doctor trial length (days)',
        'description': None,
    },
]


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables and seed the default system settings."""
    db.create_all()

    for setting_data in DEFAULT_SETTINGS:
        if not SystemSetting.query.filter_by(key=setting_data['key']).first():
            db.session.add(SystemSetting(updated_by='system', **setting_data))
            click.echo(f"Added setting: {setting_data['key']}")
        else:
            click.echo(f"Setting already exists: {setting_data['key']}")
    db.session.commit()

    click.echo("Database initialized successfully with default settings!")


@click.command('create-admin')
@click.argument('email')
@click.argument('full_name')
@click.password_option()
@click.option('--super', 'is_super', is_flag=True, help='Create a SUPER_ADMIN.')
@with_appcontext
def create_admin_command(email, full_name, password, is_super):
    """Create an admin account."""
    if Admin.query.filter_by(email=email.lower()).first():
        raise click.ClickException(f"Admin {email} already exists")

    admin = Admin(email=email.lower(), full_name=full_name,
                  role='SUPER_ADMIN' if is_super else 'ADMIN')
    try:
        admin.set_password(password)
    except ValueError as e:
        raise click.ClickException(str(e))

    db.session.add(admin)
    db.session.commit()
    click.echo(f"Created {admin.role} {admin.email}")


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_admin_command)
