"""
Validate a stored workflow version and print its graph

Run: python -m scripts.validate_workflow WF-xxxx [--version N]
"""
import argparse
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import List

from spaceflow.domain.models import WorkflowVersion
from spaceflow.domain.errors import WorkflowValidationError
from spaceflow.domain.enums import UiTrigger, PostFunctionType, ValidatorType


def find_problems(version: WorkflowVersion) -> List[str]:
    """Warnings a decodable version can still carry"""
    warnings = []
    initial = [s for s in version.statuses if s.is_initial]
    if len(initial) != 1:
        warnings.append(f"Expected exactly one initial status, found {len(initial)}")
    if not any(s.is_final for s in version.statuses):
        warnings.append("No final status")

    targets = {t.to_status_id for t in version.transitions}
    for status in version.statuses:
        if not status.is_initial and status.status_id not in targets:
            warnings.append(f"Status '{status.key}' is unreachable")
        if not status.is_final and not version.transitions_from(status.status_id):
            warnings.append(f"Status '{status.key}' has no way out and is not final")

    for transition in version.transitions:
        for validator in transition.validators:
            if validator.type == ValidatorType.UNKNOWN.value:
                warnings.append(f"Transition '{transition.key}' has unknown validator '{validator.raw_type}'")
        for action in transition.post_functions:
            if action.type == PostFunctionType.UNKNOWN.value:
                warnings.append(f"Transition '{transition.key}' has unknown action '{action.raw_type}'")
    return warnings


def print_graph(version: WorkflowVersion) -> None:
    print(f"Workflow {version.workflow_id} v{version.version}: {version.name}")
    print("=" * 60)
    for status in sorted(version.statuses, key=lambda s: s.order):
        flags = []
        if status.is_initial:
            flags.append("initial")
        if status.is_final:
            flags.append("final")
        suffix = f" ({', '.join(flags)})" if flags else ""
        print(f"[{status.category.value}] {status.key} - {status.name}{suffix}")
        for transition in version.transitions_from(status.status_id):
            target = version.get_status(transition.to_status_id)
            notes = []
            if transition.conditions.roles:
                notes.append(f"roles={transition.conditions.roles}")
            if transition.conditions.required_fields:
                notes.append(f"requires={transition.conditions.required_fields}")
            if transition.validators:
                notes.append(f"validators={[v.type for v in transition.validators]}")
            if transition.post_functions:
                notes.append(f"actions={[a.type for a in transition.post_functions]}")
            if transition.ui_trigger != UiTrigger.NORMAL:
                notes.append(transition.ui_trigger.value.lower())
            if transition.disabled:
                notes.append("disabled")
            print(f"    --{transition.key}--> {target.key}  {' '.join(notes)}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate a stored workflow version")
    parser.add_argument("workflow_id")
    parser.add_argument("--version", type=int, default=None, help="Defaults to the latest published version")
    args = parser.parse_args()

    from spaceflow.repositories.workflow_repo import WorkflowRepository
    repo = WorkflowRepository()

    try:
        if args.version:
            version = repo.get_version(args.workflow_id, args.version)
        else:
            version = repo.get_latest_version(args.workflow_id)
    except WorkflowValidationError as e:
        print(f"INVALID: {e.message}")
        for error in e.details.get("errors", []):
            print(f"   - {error}")
        return 1

    if version is None:
        print(f"Workflow {args.workflow_id} not found")
        return 1

    print_graph(version)

    warnings = find_problems(version)
    if warnings:
        print("\nWARNINGS:")
        for warning in warnings:
            print(f"   - {warning}")
    else:
        print("\nWORKFLOW IS VALID")
    return 0


if __name__ == "__main__":
    sys.exit(main())
