"""Interaction state machine for one autocomplete field.

Replaces a loose set of "showing"/"typing"/"blurring" booleans with one
explicit state, so combinations like "list open while resolving a blur"
cannot be represented.

Like the rest of the package's FSM usage, the machine only validates and
records transitions; the reconciler performs the actual state mutations.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class FieldInteractionSM(StateMachine):
    """Four-state interaction lifecycle of an autocomplete field.

    States:
        idle             -- Not being edited; displayed text agrees with
                            the committed value.
        typing           -- Text diverges from the committed label; a
                            search may be pending or in flight.
        suggestions_open -- The candidate list (or its loading row) is shown.
        blurring         -- Focus left; waiting out the grace period before
                            resolving the typed text.
    """

    idle = State("idle", initial=True, value="idle")
    typing = State("typing", value="typing")
    suggestions_open = State("suggestions_open", value="suggestions_open")
    blurring = State("blurring", value="blurring")

    # Focus with enough text re-opens the list; focus on an empty field
    # whose parent holds a value refills the text first.
    open_list = (
        idle.to(suggestions_open)
        | typing.to(suggestions_open)
        | blurring.to(suggestions_open)
        | suggestions_open.to.itself()
    )
    rehydrate = idle.to(typing) | blurring.to(typing)
    refocus = (
        blurring.to(typing)
        | idle.to.itself()
        | typing.to.itself()
        | suggestions_open.to.itself()
    )
    close_list = suggestions_open.to(typing) | typing.to.itself()

    keystroke = (
        idle.to(typing)
        | typing.to.itself()
        | suggestions_open.to(typing)
        | blurring.to(typing)
    )
    select = (
        typing.to(idle)
        | suggestions_open.to(idle)
        | blurring.to(idle)
        | idle.to.itself()
    )
    dismiss = (
        suggestions_open.to(typing)
        | typing.to.itself()
        | idle.to.itself()
    )

    blur = (
        idle.to(blurring)
        | typing.to(blurring)
        | suggestions_open.to(blurring)
        | blurring.to.itself()
    )
    resolve = blurring.to(idle) | idle.to.itself()

    external_change = (
        idle.to.itself()
        | typing.to(idle)
        | suggestions_open.to(idle)
        | blurring.to(idle)
    )


def create_fsm(current_state: str = "idle") -> FieldInteractionSM:
    """Create a machine positioned at *current_state*.

    Args:
        current_state: One of 'idle', 'typing', 'suggestions_open',
            'blurring'.
    """
    return FieldInteractionSM(start_value=current_state)
