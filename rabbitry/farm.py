"""Farm operations over the record collections."""

from datetime import datetime, timezone
from typing import Any

import structlog

from rabbitry.errors import AuthenticationError, PermissionDeniedError, RabbitryError
from rabbitry.models import (
    Activity,
    BreedingRecord,
    Collection,
    FeedConsumption,
    FeedInventory,
    HealthRecord,
    Rabbit,
    Task,
    User,
)
from rabbitry.repository import Repository
from rabbitry.storage import Storage

logger = structlog.get_logger()

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"

MANAGING_ROLES = ("admin", "manager")


class Farm:
    """All farm collections over one storage, acting as one user.

    Every create and update is recorded in the activity log under the acting user.
    Operations limited to some roles check the acting user's role first.
    """

    def __init__(self, storage: Storage, acting_user_id: int = 1) -> None:
        """Initialize the farm.

        Args:
            storage: Storage backend holding every collection
            acting_user_id: User id stamped as ``created_by`` and on activities
        """
        self.storage = storage
        self.acting_user_id = acting_user_id
        self.rabbits: Repository[Rabbit] = Repository(storage, Collection.RABBITS)
        self.breeding_records: Repository[BreedingRecord] = Repository(storage, Collection.BREEDING_RECORDS)
        self.health_records: Repository[HealthRecord] = Repository(storage, Collection.HEALTH_RECORDS)
        self.feed_inventory: Repository[FeedInventory] = Repository(storage, Collection.FEED_INVENTORY)
        self.feed_consumption: Repository[FeedConsumption] = Repository(storage, Collection.FEED_CONSUMPTION)
        self.tasks: Repository[Task] = Repository(storage, Collection.TASKS)
        self.activities: Repository[Activity] = Repository(storage, Collection.ACTIVITIES)
        self.users: Repository[User] = Repository(storage, Collection.USERS)

    # Access

    def acting_user(self) -> User:
        """Return the acting user, who must exist and be active."""
        user = self.users.first(id=self.acting_user_id)
        if user is None:
            raise AuthenticationError(f"Acting user {self.acting_user_id} does not exist")
        if not user.is_active:
            raise AuthenticationError(f"Acting user {user.username} is inactive")
        return user

    def _require_role(self, roles: tuple[str, ...], action: str) -> User:
        user = self.acting_user()
        if user.role not in roles:
            logger.warning("Permission denied", user_id=user.id, role=user.role, action=action)
            raise PermissionDeniedError(f"Role {user.role} may not {action}")
        return user

    # Activities

    def log_activity(
        self,
        activity_type: str,
        description: str,
        entity_type: str | None = None,
        entity_id: int | str | None = None,
        user_id: int | None = None,
    ) -> Activity:
        return self.activities.create(
            user_id=user_id if user_id is not None else self.acting_user_id,
            activity_type=activity_type,
            description=description,
            related_entity_type=entity_type,
            related_entity_id=str(entity_id) if entity_id is not None else None,
        )

    def recent_activities(self, limit: int = 10) -> list[Activity]:
        """Return the newest activities first. Admins and managers only."""
        self._require_role(MANAGING_ROLES, "view activities")
        epoch = datetime.min.replace(tzinfo=timezone.utc)

        def sort_key(activity: Activity) -> tuple[datetime, int]:
            stamp = activity.timestamp
            if stamp is None:
                stamp = epoch
            elif stamp.tzinfo is None:
                stamp = stamp.replace(tzinfo=timezone.utc)
            return stamp, activity.id

        return sorted(self.activities.all(), key=sort_key, reverse=True)[:limit]

    # Rabbits

    def add_rabbit(self, **fields: Any) -> Rabbit:
        if self.rabbit_by_tag(fields.get("tag_id", "")) is not None:
            raise RabbitryError(f"Rabbit with tag id {fields['tag_id']} already exists")
        fields.setdefault("created_by", self.acting_user_id)
        rabbit = self.rabbits.create(**fields)
        self.log_activity("create", f"Added rabbit {rabbit.tag_id}", "rabbit", rabbit.id)
        return rabbit

    def update_rabbit(self, rabbit_id: int, **changes: Any) -> Rabbit:
        rabbit = self.rabbits.update(rabbit_id, **changes)
        self.log_activity("update", f"Updated rabbit {rabbit.tag_id}", "rabbit", rabbit.id)
        return rabbit

    def rabbit_by_tag(self, tag_id: str) -> Rabbit | None:
        return self.rabbits.first(tag_id=tag_id)

    def mark_deceased(self, rabbit_id: int) -> Rabbit:
        """Retire a rabbit. Records are never deleted, only marked."""
        return self.update_rabbit(rabbit_id, status="deceased")

    def rabbits_visible_to(self, user: User) -> list[Rabbit]:
        """Workers only see the rabbits assigned to them by tag id."""
        rabbits = self.rabbits.all()
        if user.role == "worker":
            assigned = set(user.assigned_rabbits)
            return [rabbit for rabbit in rabbits if rabbit.tag_id in assigned]
        return rabbits

    # Breeding

    def add_breeding_record(self, **fields: Any) -> BreedingRecord:
        fields.setdefault("created_by", self.acting_user_id)
        record = self.breeding_records.create(**fields)
        self.log_activity(
            "create", f"Added breeding record {record.male_id} x {record.female_id}", "breeding", record.id
        )
        return record

    def update_breeding_record(self, record_id: int, **changes: Any) -> BreedingRecord:
        record = self.breeding_records.update(record_id, **changes)
        self.log_activity("update", f"Updated breeding record {record.id}", "breeding", record.id)
        return record

    # Health

    def add_health_record(self, **fields: Any) -> HealthRecord:
        fields.setdefault("created_by", self.acting_user_id)
        record = self.health_records.create(**fields)
        self.log_activity("create", f"Added {record.record_type} record for {record.rabbit_id}", "health", record.id)
        return record

    def update_health_record(self, record_id: int, **changes: Any) -> HealthRecord:
        record = self.health_records.update(record_id, **changes)
        self.log_activity("update", f"Updated health record {record.id}", "health", record.id)
        return record

    def health_records_for(self, tag_id: str) -> list[HealthRecord]:
        return self.health_records.find(rabbit_id=tag_id)

    # Feed

    def add_feed(self, **fields: Any) -> FeedInventory:
        self._require_role(MANAGING_ROLES, "add feed inventory")
        fields.setdefault("created_by", self.acting_user_id)
        item = self.feed_inventory.create(**fields)
        self.log_activity("create", f"Added {item.quantity} g of {item.feed_type}", "feed", item.id)
        return item

    def update_feed(self, feed_id: int, **changes: Any) -> FeedInventory:
        item = self.feed_inventory.update(feed_id, **changes)
        self.log_activity("update", f"Updated feed {item.feed_type}", "feed", item.id)
        return item

    def record_consumption(self, **fields: Any) -> FeedConsumption:
        """Record feed use and take it out of the feed's stock.

        Raises:
            RecordNotFoundError: No inventory entry has the given feed id
            RabbitryError: The entry holds less than the consumed quantity
        """
        feed = self.feed_inventory.get(fields.get("feed_id"))
        quantity = fields.get("quantity")
        if quantity is not None and feed.quantity < quantity:
            logger.error("Insufficient feed", feed_id=feed.id, stock=feed.quantity, requested=quantity)
            raise RabbitryError(f"Insufficient feed quantity: {feed.quantity} g of {feed.feed_type} left")

        fields.setdefault("created_by", self.acting_user_id)
        consumption = self.feed_consumption.create(**fields)
        self.feed_inventory.update(feed.id, quantity=feed.quantity - consumption.quantity)
        self.log_activity(
            "create", f"Recorded {consumption.quantity} g consumed from feed {consumption.feed_id}", "feed", consumption.id
        )
        return consumption

    # Tasks

    def add_task(self, **fields: Any) -> Task:
        self._require_role(MANAGING_ROLES, "add tasks")
        fields.setdefault("created_by", self.acting_user_id)
        fields.pop("completed_at", None)
        task = self.tasks.create(**fields)
        self.log_activity("create", f"Added task {task.title}", "task", task.id)
        return task

    def update_task(self, task_id: int, **changes: Any) -> Task:
        """Update a task, stamping ``completed_at`` when it first becomes completed.

        Workers may only change the status of tasks assigned to them.
        """
        user = self.acting_user()
        current = self.tasks.get(task_id)
        if user.role == "worker":
            if current.assigned_to != user.id:
                raise PermissionDeniedError(f"Task {task_id} is not assigned to {user.username}")
            if set(changes) - {"status"}:
                raise PermissionDeniedError("Workers may only change a task's status")

        if changes.get("status") == "completed" and current.status != "completed":
            changes["completed_at"] = datetime.now(timezone.utc)
        task = self.tasks.update(task_id, **changes)
        self.log_activity("update", f"Updated task {task.title}", "task", task.id)
        return task

    def complete_task(self, task_id: int) -> Task:
        return self.update_task(task_id, status="completed")

    def tasks_for(self, user_id: int) -> list[Task]:
        return self.tasks.find(assigned_to=user_id)

    def visible_tasks(self) -> list[Task]:
        """Workers see their own tasks. Admins and managers see every task."""
        user = self.acting_user()
        if user.role == "worker":
            return self.tasks_for(user.id)
        return self.tasks.all()

    # Users

    def add_user(self, **fields: Any) -> User:
        self._require_role(("admin",), "create users")
        if self.user_by_username(fields.get("username", "")) is not None:
            raise RabbitryError(f"Username {fields['username']} already exists")
        fields.pop("last_login", None)
        user = self.users.create(**fields)
        self.log_activity("create", f"Created new user: {user.full_name}", "user", user.id)
        return user

    def update_user(self, user_id: int, **changes: Any) -> User:
        self._require_role(("admin",), "update users")
        user = self.users.update(user_id, **changes)
        self.log_activity("update", f"Updated user: {user.full_name}", "user", user.id)
        return user

    def user_by_username(self, username: str) -> User | None:
        return self.users.first(username=username)

    def authenticate(self, username: str, password: str) -> User:
        """Check plaintext credentials, stamp the login and log it."""
        user = self.user_by_username(username)
        if user is None or user.password != password:
            logger.warning("Login failed", username=username)
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            logger.warning("Login refused for inactive user", username=username)
            raise AuthenticationError("User account is inactive")

        user = self.users.update(user.id, last_login=datetime.now(timezone.utc))
        self.log_activity("login", f"{user.full_name} logged in", "user", user.id, user_id=user.id)
        logger.info("User logged in", user_id=user.id)
        return user

    def ensure_default_admin(self) -> User | None:
        """Seed the default admin account when there are no users.

        Returns:
            The created admin, or None when users already exist
        """
        if self.users.all():
            return None
        admin = self.users.create(
            username=DEFAULT_ADMIN_USERNAME,
            password=DEFAULT_ADMIN_PASSWORD,
            full_name="System Administrator",
            role="admin",
            is_active=True,
            assigned_rabbits=[],
        )
        logger.info("Default admin created", user_id=admin.id)
        return admin
