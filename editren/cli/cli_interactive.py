"""
cli_interactive.py - Terminal Prompts and Rendering

Plan preview, confirmation and the retry prompt
"""

import sys

from ..core import Aborted, ExecutionPlan, ExecutionResult, EditrenError, StepAction

MAX_PREVIEW_STEPS = 20


def input_bool(prompt: str, default: bool = False) -> bool:
    """Input boolean value"""
    default_str = "Y/n" if default else "y/N"
    value = input(f"{prompt} ({default_str}): ").strip().lower()
    if not value:
        return default
    return value in ('y', 'yes')


def print_plan(plan: ExecutionPlan) -> None:
    """Show preview"""
    if plan.is_empty:
        print("No changes.")
        return

    print()
    print(f"Will perform {len(plan.steps)} operations:")
    print("-" * 80)
    for step in plan.steps[:MAX_PREVIEW_STEPS]:
        note = f" ({step.note})" if step.note else ""
        if step.action is StepAction.DELETE:
            print(f"  {'delete':<8} {step.source}")
        else:
            print(f"  {'rename':<8} {step.source:<40} -> {step.target}{note}")
    if len(plan.steps) > MAX_PREVIEW_STEPS:
        print(f"  ... and {len(plan.steps) - MAX_PREVIEW_STEPS} more operations")
    print("-" * 80)

    if plan.rejected:
        print("Rejected:")
        for op, reason in plan.rejected:
            print(f"  - {op.entry.name}: {reason}")

    if plan.warnings:
        print("Warnings:")
        for warn in plan.warnings:
            print(f"  - {warn}")


def confirm_plan(plan: ExecutionPlan) -> bool:
    """Show the plan and ask; declining re-opens the editor"""
    print_plan(plan)
    try:
        return input_bool("\nApply these changes?", default=True)
    except EOFError:
        print()
        raise Aborted("No answer to the confirmation prompt") from None


def print_failure(failure) -> None:
    """Print an error or a failed execution result to stderr"""
    if isinstance(failure, EditrenError):
        print(f"Error: {failure}", file=sys.stderr)
    elif isinstance(failure, ExecutionResult):
        print(failure.summary(), file=sys.stderr)


def wait_for_retry(failure) -> bool:
    """Report the failure and wait before re-opening the editor"""
    print_failure(failure)
    try:
        input("Press Enter to re-open the editor (Ctrl-D to give up)...")
    except EOFError:
        print()
        return False
    return True
