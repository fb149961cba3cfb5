import click
from flask.cli import with_appcontext

from backoffice.extensions import db
from backoffice.models import Location, MeetingRoom, Package, User
from backoffice.bookings.limits import complete_elapsed_bookings


def init_cli(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_locations_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(complete_bookings_command)


@click.command("init-db")
@click.option('--drop', is_flag=True, help='Drop existing tables first')
@with_appcontext
def init_db_command(drop):
    """Initialize database tables"""
    if drop:
        db.drop_all()
    db.create_all()
    click.echo("Database tables created.")


@click.command("seed-locations")
@with_appcontext
def seed_locations_command():
    """Seed predefined locations, a meeting room per branch and a default package"""
    locations = Location.get_predefined_locations()
    for location in locations:
        click.echo(f"Location ready: {location.code} - {location.name}")

    for location in locations:
        if location.location_type != 'branch_room':
            continue
        room_name = f"{location.name} Meeting Room"
        if not MeetingRoom.query.filter_by(name=room_name).first():
            db.session.add(MeetingRoom(name=room_name, branch_id=location.id, capacity=6))
            click.echo(f"Added meeting room: {room_name}")

    if not Package.query.filter_by(name='Standard').first():
        db.session.add(Package(name='Standard', monthly_hours_limit=20))
        click.echo("Added package: Standard")

    try:
        db.session.commit()
        click.echo("Locations have been seeded successfully!")
    except Exception as e:
        db.session.rollback()
        click.echo(f"Error seeding locations: {str(e)}", err=True)
        raise


@click.command("create-admin")
@click.option('--username', default='admin', help='Admin username')
@click.option('--password', prompt=True, hide_input=True, help='Admin password')
@click.option('--email', default='admin@example.com', help='Admin email')
@with_appcontext
def create_admin_command(username, password, email):
    """Create an admin user"""
    if User.query.filter_by(username=username).first():
        click.echo(f"Admin '{username}' already exists")
        return

    admin = User(username=username, email=email, role='admin')
    admin.set_password(password)
    db.session.add(admin)
    try:
        db.session.commit()
        click.echo(f"Admin '{username}' has been created")
    except Exception as e:
        db.session.rollback()
        click.echo(f"Error creating admin: {str(e)}", err=True)
        raise


@click.command("complete-bookings")
@with_appcontext
def complete_bookings_command():
    """Mark confirmed bookings whose time has passed as completed"""
    count = complete_elapsed_bookings()
    click.echo(f"{count} booking(s) marked completed")
