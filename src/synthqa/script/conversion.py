"""
Recording -> Step conversion.

A recording runs on the server path by turning each action into one step.
Selectors are converted to driver selector strings; the primary strategy
becomes the step selector and the rest become its fallbacks.
"""

from typing import List

from synthqa.locators.playwright import selector_strings
from synthqa.models.actions import Action, ActionType, Recording
from synthqa.models.steps import Step, StepAction

ACTION_TO_STEP = {
    ActionType.NAVIGATE: StepAction.NAVIGATE,
    ActionType.CLICK: StepAction.CLICK,
    # Recorded typing is the final field value, so replay replaces it
    ActionType.TYPE: StepAction.FILL,
    ActionType.CHECK: StepAction.CHECK,
    ActionType.UNCHECK: StepAction.UNCHECK,
    ActionType.SELECT: StepAction.SELECT,
    ActionType.WAIT: StepAction.WAIT,
    ActionType.SCREENSHOT: StepAction.SCREENSHOT,
    ActionType.ASSERT: StepAction.EXPECT,
    ActionType.CUSTOM: StepAction.CUSTOM,
}


def quote_js(value: str) -> str:
    """Render ``value`` as a single-quoted script literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def describe_action(action: Action) -> str:
    """Human-readable description of a recorded action."""
    target = ""
    if action.selector is not None:
        info = action.selector.element_info
        label = info.text or info.placeholder if info else None
        target = f"'{' '.join(label.split())}'" if label else action.selector.describe()

    if action.type == ActionType.NAVIGATE:
        return f"Navigate to {action.value or ''}".strip()
    if action.type == ActionType.CLICK:
        return f"Click {target}"
    if action.type == ActionType.TYPE:
        return f"Fill {target}"
    if action.type == ActionType.CHECK:
        return f"Check {target}"
    if action.type == ActionType.UNCHECK:
        return f"Uncheck {target}"
    if action.type == ActionType.SELECT:
        return f"Select option in {target}"
    if action.type == ActionType.WAIT:
        return f"Wait for {target}"
    if action.type == ActionType.SCREENSHOT:
        return "Take screenshot"
    if action.type == ActionType.ASSERT:
        return f"Verify {target} is visible"
    return "Execute command"


def step_from_action(action: Action) -> Step:
    """Convert one recorded action into an executable step."""
    candidates = selector_strings(action.selector) if action.selector else []
    selector = candidates[0] if candidates else None
    step_action = ACTION_TO_STEP[action.type]

    command = None
    if step_action == StepAction.EXPECT and selector is not None:
        command = f"await expect(page.locator({quote_js(selector)})).toBeVisible();"
    elif step_action == StepAction.CUSTOM:
        command = action.value

    return Step(
        description=describe_action(action),
        action=step_action,
        selector=selector,
        fallback_selectors=candidates[1:],
        value=None if step_action == StepAction.CUSTOM else action.value,
        command=command,
    )


def steps_from_recording(recording: Recording) -> List[Step]:
    """One step per recorded action, in order."""
    return [step_from_action(action) for action in recording.actions]
