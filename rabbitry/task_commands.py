"""Task commands for the rabbitry CLI."""

from cyclopts import App

from rabbitry.models import TASK_STATUSES

task_app = App(name="task", help="Manage farm tasks")


@task_app.command
def add(title: str, description: str | None = None, due: str | None = None, assign: int | None = None) -> None:
    """Add a task, optionally assigned to a user id."""
    from rabbitry.cli import get_farm

    task = get_farm().add_task(title=title, description=description, due_date=due, assigned_to=assign)
    print(f"Added task {task.id}: {task.title}")


@task_app.command(name="list")
def list_tasks(assignee: int | None = None, status: str | None = None) -> None:
    """List the tasks the acting user may see, optionally only those assigned to a user id."""
    from rabbitry.cli import get_farm

    tasks = get_farm().visible_tasks()
    if assignee is not None:
        tasks = [t for t in tasks if t.assigned_to == assignee]
    if status:
        tasks = [t for t in tasks if t.status == status]

    print(f"Found {len(tasks)} task(s):\n")
    for task in tasks:
        marker = "○" if task.status in ("completed", "canceled") else "●"
        due = f" (due {task.due_date.date().isoformat()})" if task.due_date else ""
        print(f"{marker} {task.id}: {task.title} [{task.status}]{due}")


@task_app.command
def complete(task_id: int) -> None:
    """Mark a task as completed."""
    from rabbitry.cli import get_farm

    task = get_farm().complete_task(task_id)
    print(f"Completed task {task.id}: {task.title}")


@task_app.command
def status(task_id: int, value: str) -> None:
    """Set a task's status: pending, in_progress, completed or canceled."""
    from rabbitry.cli import get_farm

    if value not in TASK_STATUSES:
        raise ValueError(f"Unknown task status: {value}")
    task = get_farm().update_task(task_id, status=value)
    print(f"Task {task.id} is now {task.status}")
