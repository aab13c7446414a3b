"""
Seed Data Script - Creates a sample two-version workflow, users and tasks
Run: python -m scripts.seed_data
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import List

from spaceflow.repositories.mongo_client import get_collection, create_indexes
from spaceflow.repositories.workflow_repo import WorkflowRepository
from spaceflow.repositories.task_repo import TaskRepository
from spaceflow.repositories.membership_repo import MembershipRepository
from spaceflow.repositories.identity_repo import IdentityRepository
from spaceflow.domain.models import TaskSnapshot, Workflow, WorkflowVersion
from spaceflow.domain.errors import AlreadyExistsError
from spaceflow.utils.idgen import generate_workflow_id, generate_task_id
from spaceflow.utils.time import utc_now

SPACE_ID = "SPACE-demo"

USERS = [
    ("USR-admin", "admin@example.com", "System Admin", "ADMIN"),
    ("USR-lead", "lead@example.com", "Team Lead", "USER"),
    ("USR-dev", "dev@example.com", "Developer", "USER"),
]

MEMBERS = [
    ("USR-lead", "OWNER"),
    ("USR-dev", "MEMBER"),
]


def _statuses(include_qa: bool) -> List[dict]:
    statuses = [
        {"status_id": "st-todo", "key": "todo", "name": "To Do", "category": "TODO",
         "color": "#94a3b8", "is_initial": True, "order": 0, "status_ref_id": "TODO"},
        {"status_id": "st-progress", "key": "in-progress", "name": "In Progress", "category": "IN_PROGRESS",
         "color": "#3b82f6", "order": 1, "status_ref_id": "IN_PROGRESS"},
        {"status_id": "st-review", "key": "review", "name": "Review", "category": "IN_PROGRESS",
         "color": "#a855f7", "order": 2, "status_ref_id": "IN_PROGRESS"},
        {"status_id": "st-done", "key": "done", "name": "Done", "category": "DONE",
         "color": "#22c55e", "is_final": True, "order": 4, "status_ref_id": "DONE"},
    ]
    if include_qa:
        statuses.append(
            {"status_id": "st-qa", "key": "qa", "name": "QA", "category": "IN_PROGRESS",
             "color": "#f59e0b", "order": 3, "status_ref_id": "IN_PROGRESS"}
        )
    return statuses


def build_sample_versions(workflow_id: str) -> List[WorkflowVersion]:
    """Version 1: To Do -> In Progress -> Review -> Done. Version 2 inserts QA before Done."""
    v1 = WorkflowVersion.model_validate({
        "workflow_id": workflow_id,
        "space_id": SPACE_ID,
        "version": 1,
        "name": "Delivery",
        "statuses": _statuses(include_qa=False),
        "transitions": [
            {"transition_id": "v1-start", "key": "start", "name": "Start work",
             "from_status_id": "st-todo", "to_status_id": "st-progress",
             "post_functions": [{"type": "NOTIFY", "recipients": ["ASSIGNEE"]}]},
            {"transition_id": "v1-review", "key": "send-to-review", "name": "Send to review",
             "from_status_id": "st-progress", "to_status_id": "st-review",
             "conditions": {"requiredFields": ["dueDate"]}},
            {"transition_id": "v1-approve", "key": "approve", "name": "Approve",
             "from_status_id": "st-review", "to_status_id": "st-done",
             "conditions": {"roles": ["OWNER"]},
             "validators": {"preventOpenSubtasks": True}},
            {"transition_id": "v1-reopen", "key": "reopen", "name": "Reopen",
             "from_status_id": "st-done", "to_status_id": "st-todo", "ui_trigger": "MENU",
             "conditions": {"roles": ["SYSTEM_ADMIN"]}},
        ],
        "published_by": "USR-admin",
    })

    v2 = WorkflowVersion.model_validate({
        "workflow_id": workflow_id,
        "space_id": SPACE_ID,
        "version": 2,
        "name": "Delivery",
        "statuses": _statuses(include_qa=True),
        "transitions": [
            {"transition_id": "v2-start", "key": "start", "name": "Start work",
             "from_status_id": "st-todo", "to_status_id": "st-progress"},
            {"transition_id": "v2-review", "key": "send-to-review", "name": "Send to review",
             "from_status_id": "st-progress", "to_status_id": "st-review",
             "conditions": {"requiredFields": ["dueDate"]}},
            {"transition_id": "v2-qa", "key": "send-to-qa", "name": "Send to QA",
             "from_status_id": "st-review", "to_status_id": "st-qa"},
            {"transition_id": "v2-approve", "key": "approve", "name": "Approve",
             "from_status_id": "st-qa", "to_status_id": "st-done",
             "conditions": {"roles": ["OWNER"]},
             "validators": [{"type": "NO_OPEN_SUBTASKS"}],
             "post_functions": {"actions": [
                 {"type": "SET_FIELD", "field": "priority", "value": "LOW"},
                 {"type": "NOTIFY", "recipients": ["ASSIGNEE", "USR-lead"]},
             ]}},
        ],
        "published_by": "USR-admin",
    })
    return [v1, v2]


def create_sample_data():
    """Create the sample workflow, its users and two tasks"""
    if get_collection("workflows").count_documents({"space_id": SPACE_ID}) > 0:
        print("Database already has data. Skipping seed.")
        return

    identities = IdentityRepository()
    for user_id, email, name, role in USERS:
        identities.upsert_user(user_id, email, name, role)

    memberships = MembershipRepository()
    for user_id, role in MEMBERS:
        memberships.add_member(SPACE_ID, user_id, role)

    workflows = WorkflowRepository()
    workflow_id = generate_workflow_id()
    workflows.save_workflow(Workflow(
        workflow_id=workflow_id,
        space_id=SPACE_ID,
        name="Delivery",
        description="Sample delivery workflow",
        current_version=1,
        is_default=True,
        created_at=utc_now(),
    ))
    for version in build_sample_versions(workflow_id):
        try:
            workflows.publish_version(version)
            print(f"Published {workflow_id} v{version.version}")
        except AlreadyExistsError:
            print(f"{workflow_id} v{version.version} already published")

    tasks = TaskRepository()
    for title, version, tags in (("Legacy task on v1", 1, []), ("New task on v2", 2, ["qa"])):
        task = TaskSnapshot(
            task_id=generate_task_id(),
            space_id=SPACE_ID,
            title=title,
            priority="HIGH",
            tags=tags,
            assignee_id="USR-dev",
            workflow_id=workflow_id,
            workflow_version=version,
            workflow_status_id="st-todo",
            status_id="TODO",
        )
        tasks.create_task(task)
        print(f"Created task {task.task_id} ({title})")

    print("\n[OK] Seed data created successfully!")


def main():
    print("=== Seeding database ===")
    print("-" * 40)

    create_indexes()
    create_sample_data()

    print("-" * 40)
    print("Done!")


if __name__ == "__main__":
    main()
