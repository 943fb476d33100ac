"""Behavioral tests for AutocompleteController.

Drives the controller the way a rendered field would (focus, keystrokes,
selection, blur, parent value changes) against a ControlledSource whose
searches stay pending until the test settles them, so every interleaving
of keystrokes and responses is explicit.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import JFK, LGA, LHR, LON, WAIT, settle

from skybook.exceptions import SuggestionSourceError
from skybook.models import Suggestion


# ---------------------------------------------------------------------------
# Keystrokes, debounce and the minimum-length gate
# ---------------------------------------------------------------------------


class TestTyping:
    async def test_burst_of_keystrokes_searches_last_value_once(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_focus()
        for text in ("N", "NY", "NYC"):
            ctl.on_input(text)
        await asyncio.sleep(WAIT)
        assert source.calls == ["NYC"]

    async def test_every_keystroke_reports_empty_commitment(self, make_controller):
        ctl, commits = make_controller()
        ctl.on_input("N")
        ctl.on_input("NY")
        assert commits == ["", ""]
        assert ctl.state.committed_key == ""

    async def test_short_text_never_searches(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("N")
        await asyncio.sleep(WAIT)
        assert source.calls == []
        assert ctl.state.suggestions == []
        assert ctl.list_visible is False

    async def test_shortening_below_gate_drops_pending_answer(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("Lo")
        await asyncio.sleep(WAIT)
        ctl.on_input("L")
        await asyncio.sleep(WAIT)

        source.resolve(0, [LHR])
        await settle()
        assert source.calls == ["Lo"]
        assert ctl.state.suggestions == []
        assert ctl.list_visible is False

    async def test_loading_row_shown_while_in_flight(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)
        assert ctl.state.loading is True
        assert ctl.list_visible is True

        source.resolve(0, [JFK, LGA])
        await settle()
        assert ctl.state.loading is False
        assert ctl.state.suggestions == [JFK, LGA]

    async def test_results_deduplicated_by_key(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)
        source.resolve(0, [JFK, Suggestion("JFK", "Kennedy again"), LGA])
        await settle()
        assert [s.key for s in ctl.state.suggestions] == ["JFK", "LGA"]


# ---------------------------------------------------------------------------
# Out-of-order responses
# ---------------------------------------------------------------------------


class TestStaleResponses:
    async def test_older_response_arriving_late_is_discarded(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("Lo")
        await asyncio.sleep(WAIT)
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)
        assert source.calls == ["Lo", "Lon"]

        source.resolve(1, [LHR, LON])
        await settle()
        source.resolve(0, [JFK])
        await settle()

        assert ctl.state.suggestions == [LHR, LON]

    async def test_older_response_arriving_first_is_discarded(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("Lo")
        await asyncio.sleep(WAIT)
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)

        source.resolve(0, [JFK])
        await settle()
        assert ctl.state.suggestions == []
        assert ctl.state.loading is True

        source.resolve(1, [LHR])
        await settle()
        assert ctl.state.suggestions == [LHR]

    async def test_response_after_selection_is_ignored(self, make_controller, source):
        ctl, commits = make_controller()
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)
        source.resolve(0, [JFK, LGA])
        await settle()

        ctl.on_input("NYC")
        await asyncio.sleep(WAIT)
        ctl.select_key("LGA")
        source.resolve(1, [JFK])
        await settle()

        assert ctl.state.raw_text == "LaGuardia (LGA)"
        assert ctl.state.suggestions == []
        assert ctl.list_visible is False
        assert commits[-1] == "LGA"


# ---------------------------------------------------------------------------
# Search failures
# ---------------------------------------------------------------------------


class TestSearchFailure:
    async def test_failure_closes_list_and_keeps_text(self, make_controller, source):
        errors: list[tuple[str, BaseException]] = []
        ctl, _ = make_controller(on_error=lambda kw, exc: errors.append((kw, exc)))
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)

        exc = SuggestionSourceError("backend down", status_code=502)
        source.fail(0, exc)
        await settle()

        assert ctl.state.raw_text == "NY"
        assert ctl.state.suggestions == []
        assert ctl.state.loading is False
        assert ctl.list_visible is False
        assert errors == [("NY", exc)]

    async def test_stale_failure_does_not_clear_fresh_results(self, make_controller, source):
        errors: list[str] = []
        ctl, _ = make_controller(on_error=lambda kw, exc: errors.append(kw))
        ctl.on_input("Lo")
        await asyncio.sleep(WAIT)
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)

        source.resolve(1, [LHR])
        await settle()
        source.fail(0, SuggestionSourceError("timeout"))
        await settle()

        assert ctl.state.suggestions == [LHR]
        assert errors == ["Lo"]


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelection:
    async def test_select_commits_key_and_label(self, make_controller, source):
        ctl, commits = make_controller()
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)
        source.resolve(0, [JFK, LGA])
        await settle()

        assert ctl.select_key("LGA") is True
        assert ctl.state.raw_text == "LaGuardia (LGA)"
        assert ctl.state.committed_key == "LGA"
        assert ctl.state.committed_label == "LaGuardia (LGA)"
        assert ctl.list_visible is False
        assert commits == ["", "LGA"]

    async def test_select_unknown_key(self, make_controller):
        ctl, commits = make_controller()
        assert ctl.select_key("ZZZ") is False
        assert commits == []

    async def test_editing_after_selection_clears_commitment(self, make_controller):
        ctl, commits = make_controller()
        ctl.on_select(LGA)
        ctl.on_input("LaGuardia (LGA)x")
        assert ctl.state.committed_key == ""
        assert commits == ["LGA", ""]

    async def test_clear_empties_field_and_notifies(self, make_controller):
        ctl, commits = make_controller()
        ctl.on_select(JFK)
        ctl.clear()
        assert ctl.state.raw_text == ""
        assert ctl.state.committed_key == ""
        assert commits == ["JFK", ""]


# ---------------------------------------------------------------------------
# Blur resolution
# ---------------------------------------------------------------------------


class TestBlur:
    async def test_blur_keeps_matching_selection(self, make_controller):
        ctl, commits = make_controller()
        ctl.on_focus()
        ctl.on_select(LGA)
        ctl.on_blur()
        await asyncio.sleep(WAIT)

        assert ctl.state.raw_text == "LaGuardia (LGA)"
        assert ctl.state.committed_key == "LGA"
        assert commits == ["LGA"]

    async def test_blur_clears_unmatched_text(self, make_controller, source):
        ctl, commits = make_controller()
        ctl.on_focus()
        ctl.on_input("Lagos airport")
        ctl.on_blur()
        await asyncio.sleep(WAIT)

        assert ctl.state.raw_text == ""
        assert ctl.state.committed_key == ""
        assert commits[-1] == ""
        assert ctl.list_visible is False

    async def test_blur_on_empty_text_clears_commitment(self, make_controller):
        ctl, commits = make_controller()
        ctl.on_select(JFK)
        ctl.on_input("")
        ctl.on_blur()
        await asyncio.sleep(WAIT)

        assert ctl.state.committed_key == ""
        assert commits[-1] == ""

    async def test_resolution_waits_for_grace_period(self, make_controller):
        ctl, _ = make_controller()
        ctl.on_input("Lagos airport")
        ctl.on_blur()
        assert ctl.state.raw_text == "Lagos airport"
        assert ctl.interaction_state == "blurring"
        await asyncio.sleep(WAIT)
        assert ctl.state.raw_text == ""

    async def test_selection_during_grace_survives_blur(self, make_controller, source):
        ctl, commits = make_controller()
        ctl.on_focus()
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)
        source.resolve(0, [LHR, LON])
        await settle()

        # pointer-down on the list blurs the input before the click lands
        ctl.on_blur()
        ctl.select_key("LHR")
        await asyncio.sleep(WAIT)

        assert ctl.state.raw_text == LHR.label
        assert ctl.state.committed_key == "LHR"
        assert commits[-1] == "LHR"

    async def test_refocus_during_grace_cancels_resolution(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_focus()
        ctl.on_input("Lon")
        ctl.on_blur()
        ctl.on_focus()
        await asyncio.sleep(WAIT)

        assert ctl.state.raw_text == "Lon"
        assert ctl.reconciler.blur_pending is False

    async def test_late_response_after_blur_is_ignored(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)
        ctl.on_blur()
        await asyncio.sleep(WAIT)

        source.resolve(0, [LHR])
        await settle()
        assert ctl.state.suggestions == []
        assert ctl.list_visible is False


# ---------------------------------------------------------------------------
# Focus, outside clicks and parent-driven changes
# ---------------------------------------------------------------------------


class TestFocus:
    async def test_focus_with_text_reopens_and_searches(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_select(LGA)
        ctl.on_focus()
        await asyncio.sleep(WAIT)
        assert source.calls == ["LaGuardia (LGA)"]
        assert ctl.list_visible is True

    async def test_focus_on_emptied_field_rehydrates(self, make_controller, source):
        ctl, _ = make_controller(external_value="LOS")
        assert ctl.state.raw_text == "LOS"
        ctl.state.raw_text = ""

        ctl.on_focus()
        await asyncio.sleep(WAIT)
        assert ctl.state.raw_text == "LOS"
        assert ctl.state.committed_key == "LOS"
        assert source.calls == ["LOS"]

    async def test_focus_on_empty_field_without_value(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_focus()
        await asyncio.sleep(WAIT)
        assert ctl.state.raw_text == ""
        assert source.calls == []
        assert ctl.interaction_state == "idle"


class TestClickOutside:
    async def test_hides_list_without_touching_text(self, make_controller, source):
        ctl, commits = make_controller()
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)
        source.resolve(0, [LHR, LON])
        await settle()
        assert ctl.list_visible is True

        ctl.on_click_outside()
        assert ctl.list_visible is False
        assert ctl.state.raw_text == "Lon"
        assert commits == [""]

    async def test_noop_when_list_hidden(self, make_controller):
        ctl, _ = make_controller()
        ctl.on_click_outside()
        assert ctl.interaction_state == "idle"

    async def test_next_keystroke_shows_list_again(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)
        source.resolve(0, [LHR])
        await settle()
        ctl.on_click_outside()

        ctl.on_input("Lond")
        assert ctl.state.visible is True


class TestExternalValue:
    async def test_mount_prefills_from_parent(self, make_controller):
        ctl, commits = make_controller(external_value="JFK")
        assert ctl.state.raw_text == "JFK"
        assert ctl.state.committed_key == "JFK"
        assert commits == []

    async def test_label_taken_from_current_suggestions(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)
        source.resolve(0, [JFK, LGA])
        await settle()

        ctl.set_external_value("JFK")
        assert ctl.state.raw_text == JFK.label
        assert ctl.list_visible is False

    async def test_reset_mid_typing_discards_in_flight(self, make_controller, source):
        ctl, commits = make_controller(external_value="LOS")
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)

        ctl.set_external_value("")
        source.resolve(0, [LHR])
        await settle()

        assert ctl.state.raw_text == ""
        assert ctl.state.committed_key == ""
        assert ctl.state.suggestions == []
        assert ctl.list_visible is False
        assert commits == [""]

    async def test_same_key_keeps_display(self, make_controller):
        ctl, _ = make_controller()
        ctl.on_select(LGA)
        ctl.set_external_value("LGA")
        assert ctl.state.raw_text == "LaGuardia (LGA)"

    async def test_reset_cancels_pending_debounce(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("Lon")
        ctl.set_external_value("")
        await asyncio.sleep(WAIT)
        assert source.calls == []


# ---------------------------------------------------------------------------
# Interaction state machine and lifecycle
# ---------------------------------------------------------------------------


class TestInteractionStates:
    async def test_full_flow(self, make_controller, source):
        ctl, _ = make_controller()
        assert ctl.interaction_state == "idle"

        ctl.on_focus()
        ctl.on_input("NY")
        assert ctl.interaction_state == "typing"

        await asyncio.sleep(WAIT)
        assert ctl.interaction_state == "suggestions_open"

        source.resolve(0, [JFK, LGA])
        await settle()
        assert ctl.interaction_state == "suggestions_open"

        ctl.select_key("LGA")
        assert ctl.interaction_state == "idle"

        ctl.on_blur()
        assert ctl.interaction_state == "blurring"
        await asyncio.sleep(WAIT)
        assert ctl.interaction_state == "idle"

    async def test_dismiss_returns_to_typing(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("Lon")
        await asyncio.sleep(WAIT)
        source.resolve(0, [LHR])
        await settle()
        ctl.on_click_outside()
        assert ctl.interaction_state == "typing"


class TestLifecycle:
    async def test_events_ignored_after_unmount(self, make_controller, source):
        ctl, commits = make_controller()
        ctl.unmount()
        ctl.on_input("NY")
        ctl.on_focus()
        ctl.set_external_value("JFK")
        await asyncio.sleep(WAIT)

        assert ctl.mounted is False
        assert ctl.state.raw_text == ""
        assert commits == []
        assert source.calls == []

    async def test_mount_after_unmount_rejected(self, make_controller):
        ctl, _ = make_controller()
        ctl.unmount()
        with pytest.raises(RuntimeError, match="cannot be mounted again"):
            ctl.mount()
        assert ctl.mounted is False

    async def test_unmount_cancels_in_flight_search(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)
        ctl.unmount()
        await settle()
        assert source.futures[0].cancelled()
        assert ctl.quiescent

    async def test_unmount_drops_pending_blur(self, make_controller):
        ctl, commits = make_controller()
        ctl.on_input("Lagos airport")
        ctl.on_blur()
        ctl.unmount()
        await asyncio.sleep(WAIT)
        assert ctl.state.raw_text == "Lagos airport"
        assert commits == [""]

    async def test_quiescent_after_settling(self, make_controller, source):
        ctl, _ = make_controller()
        ctl.on_input("NY")
        assert not ctl.quiescent
        await asyncio.sleep(WAIT)
        source.resolve(0, [JFK])
        await settle()
        assert ctl.quiescent


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------


async def test_new_york_pick_edit_and_blur(make_controller, source, telemetry_pair):
    """Type NY, pick LaGuardia, append a character, blur: everything clears."""
    _, exporter = telemetry_pair
    ctl, commits = make_controller()

    ctl.on_focus()
    ctl.on_input("N")
    ctl.on_input("NY")
    await asyncio.sleep(WAIT)
    assert source.calls == ["NY"]

    source.resolve(0, [JFK, LGA])
    await settle()
    ctl.select_key("LGA")
    assert commits[-1] == "LGA"

    ctl.on_input("LaGuardia (LGA)x")
    assert commits[-1] == ""
    ctl.on_blur()
    await asyncio.sleep(WAIT)

    # a search for the edited text may have started; its answer is dropped
    for index in range(1, len(source.calls)):
        source.resolve(index, [LGA])
    await settle()

    assert ctl.state.raw_text == ""
    assert ctl.state.committed_key == ""
    assert ctl.state.suggestions == []
    assert commits[-1] == ""

    spans = [s for s in exporter.get_finished_spans() if s.name == "autocomplete.search"]
    assert spans[0].attributes["search.keyword"] == "NY"
    assert spans[0].attributes["search.result_count"] == 2


class TestCollaborators:
    async def test_search_awaited_with_final_keyword(self, make_controller):
        search = AsyncMock(return_value=[JFK, LGA])
        ctl, _ = make_controller(search=search)
        ctl.on_input("N")
        ctl.on_input("NY")
        await asyncio.sleep(WAIT)
        await settle()

        search.assert_awaited_once_with("NY")
        assert ctl.state.suggestions == [JFK, LGA]

    async def test_render_hook_called_on_every_change(self, make_controller, source):
        on_change = MagicMock()
        ctl, _ = make_controller(on_change=on_change)
        ctl.on_input("NY")
        assert on_change.call_count == 1

        await asyncio.sleep(WAIT)
        assert on_change.call_count == 2

        source.resolve(0, [JFK])
        await settle()
        assert on_change.call_count == 3
