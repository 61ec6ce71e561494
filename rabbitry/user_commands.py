"""User commands for the rabbitry CLI."""

from cyclopts import App

from rabbitry.models import USER_ROLES

user_app = App(name="user", help="Manage farm users")


@user_app.command
def add(username: str, full_name: str, password: str, role: str = "worker", assign: str = "") -> None:
    """Add a user.

    Args:
        username: Login name, unique per user
        full_name: Display name
        password: Login password
        role: admin, manager or worker
        assign: Comma-separated rabbit tag ids visible to a worker
    """
    from rabbitry.cli import get_farm

    if role not in USER_ROLES:
        raise ValueError(f"Unknown role: {role}")
    assigned = [tag.strip() for tag in assign.split(",") if tag.strip()]
    user = get_farm().add_user(
        username=username, full_name=full_name, password=password, role=role, assigned_rabbits=assigned
    )
    print(f"Added user {user.id}: {user.username} ({user.role})")


@user_app.command(name="list")
def list_users() -> None:
    """List users."""
    from rabbitry.cli import get_farm

    users = get_farm().users.all()
    print(f"Found {len(users)} user(s):\n")
    for user in users:
        marker = "●" if user.is_active else "○"
        print(f"{marker} {user.id}: {user.username} - {user.full_name} [{user.role}]")


@user_app.command
def deactivate(username: str) -> None:
    """Deactivate a user so they can no longer log in."""
    from rabbitry.cli import get_farm

    farm = get_farm()
    user = farm.user_by_username(username)
    if user is None:
        raise ValueError(f"No user named {username}")
    farm.update_user(user.id, is_active=False)
    print(f"Deactivated {username}")


@user_app.command
def login(username: str, password: str) -> None:
    """Check a user's credentials and record the login."""
    from rabbitry.cli import get_farm

    user = get_farm().authenticate(username, password)
    print(f"Logged in as {user.full_name} ({user.role})")
