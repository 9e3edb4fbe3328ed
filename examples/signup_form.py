"""
Signup Form Example

This example demonstrates the core fieldstate workflow:
1. Define fields with input transforms and sync/async validation
2. Group them into one form state
3. Watch state changes as a user would type
4. Reset the whole form in one step
"""

import asyncio

from fieldstate import Field, FieldObjectGroup

TAKEN_USERNAMES = {"admin", "root"}


async def check_username(username: str) -> str | None:
    """Pretend to ask a server whether the username is free."""
    await asyncio.sleep(0.05)
    return "taken" if username in TAKEN_USERNAMES else None


def parse_age(raw: str) -> int | None:
    raw = raw.strip()
    return int(raw) if raw.isdigit() else None


def print_state(state, _previous) -> None:
    print(
        f"  value={state.value} error={state.error} "
        f"valid={state.valid} validating={state.validating}"
    )


async def main() -> None:
    """Simulate a user filling in and then clearing a signup form."""

    username = Field(
        initial_value="",
        to_input=lambda v: v,
        format_input=str.lstrip,
        from_input=str.strip,
        required=True,
        validate=lambda v: "too short" if len(v) < 3 else None,
        validate_async=check_username,
        name="username",
    )
    age = Field(
        initial_value=None,
        to_input=lambda v: "" if v is None else str(v),
        from_input=parse_age,
        required=True,
        validate=lambda n: "must be 18+" if n < 18 else None,
        name="age",
    )

    print("[1] Initial form state")
    form = FieldObjectGroup(
        fields={"username": username, "age": age},
        on_change_state=print_state,
        name="signup",
    )

    print("[2] Typing a taken username")
    username.set_input_value("admin")
    await form.settle()

    print("[3] Fixing the username and entering an age")
    username.set_input_value("alice")
    age.set_input_value("17")
    age.set_input_value("21")
    await form.settle()

    print("[4] Resetting the form")
    form.reset()
    assert form.get_state().changed is False


if __name__ == "__main__":
    asyncio.run(main())
