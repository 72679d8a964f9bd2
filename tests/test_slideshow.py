import pytest

from tvslide.core.errors import EmptyCatalogError
from tvslide.core.slideshow import SlideState


def test_start_shows_first_image(make_controller, surfaces, caption_view, debug_view):
    ctl = make_controller()
    assert ctl.state is SlideState.IDLE

    ctl.start()

    assert ctl.state is SlideState.SHOWING
    assert ctl.current_index == 0
    assert ctl.current_entry.filename == "A"
    assert surfaces.created == ["A"]
    assert ctl.current_surface.opacity == 1.0
    assert caption_view.calls == [("show", "Alpha", "first", "Ann • 2020"), ("fade_in",)]
    assert debug_view.text == "Index: 0\nFile: A\nEffect: (initial)"


def test_start_twice_is_noop(make_controller, surfaces):
    ctl = make_controller()
    ctl.start()
    ctl.start()
    assert surfaces.created == ["A"]


def test_advance_before_start_is_dropped(make_controller, surfaces):
    ctl = make_controller()
    assert ctl.advance(1) is False
    assert surfaces.created == []


def test_scenario_three_images_no_shuffle(make_controller, manual_fade, surfaces, debug_view):
    ctl = make_controller(sources=("A", "B", "C"))
    ctl.start()

    assert ctl.advance(1)
    assert ctl.state is SlideState.TRANSITIONING
    manual_fade.complete_last()
    assert ctl.current_entry.filename == "B"
    assert ctl.last_effect == "fade"
    assert debug_view.text.endswith("Effect: fade")

    ctl.advance(1)
    manual_fade.complete_last()
    assert ctl.current_entry.filename == "C"
    assert ctl.catalog.shuffle_count == 0

    ctl.advance(1)
    manual_fade.complete_last()
    assert ctl.catalog.shuffle_count == 1
    assert ctl.current_index == 0
    assert ctl.current_entry == ctl.catalog[0]
    assert ctl.state is SlideState.SHOWING


def test_advance_while_transitioning_is_noop(make_controller, manual_fade, surfaces):
    ctl = make_controller()
    ctl.start()
    ctl.advance(1)
    index, created = ctl.current_index, list(surfaces.created)

    assert ctl.advance(1) is False
    assert ctl.advance(-1) is False
    assert ctl.current_index == index
    assert surfaces.created == created
    assert len(manual_fade.jobs) == 1


def test_completion_fires_exactly_once(make_controller, manual_fade):
    ctl = make_controller()
    finished = []
    ctl.transition_finished.connect(lambda i: finished.append(i))
    ctl.start()

    ctl.advance(1)
    job = manual_fade.jobs[-1]
    job.finish()
    job.finish()
    job.finished.emit()

    assert finished == [1]


def test_stale_job_is_ignored(make_controller, manual_fade):
    ctl = make_controller()
    ctl.start()
    ctl.advance(1)
    first = manual_fade.jobs[-1]
    first.finish()
    ctl.advance(1)

    first.finished.emit()
    assert ctl.state is SlideState.TRANSITIONING


@pytest.mark.parametrize("n", [1, 2, 3, 7])
def test_full_loop_returns_to_start(make_controller, manual_fade, n):
    ctl = make_controller(sources=[f"img{i}" for i in range(n)])
    ctl.start()
    start_index = ctl.current_index

    for step in range(n):
        ctl.advance(1)
        manual_fade.complete_last()
        if step < n - 1:
            assert ctl.catalog.shuffle_count == 0

    assert ctl.current_index == start_index
    assert ctl.catalog.shuffle_count == 1


def test_previous_moves_back_without_reshuffle(make_controller, manual_fade):
    ctl = make_controller()
    ctl.start()
    ctl.previous()
    manual_fade.complete_last()
    assert ctl.current_entry.filename == "C"
    assert ctl.current_index == 2
    assert ctl.catalog.shuffle_count == 0


def test_surfaces_are_swapped_and_destroyed(make_controller, manual_fade, surfaces):
    ctl = make_controller()
    ctl.start()
    for _ in range(4):
        ctl.advance(1)
        assert len(surfaces.live) == 2
        manual_fade.complete_last()
        assert len(surfaces.live) == 1
    assert surfaces.destroyed == ["A", "B", "C", surfaces.created[3]]
    assert ctl.current_surface is surfaces.live[0]


def test_unreadable_image_is_skipped(make_controller, surfaces, manual_fade):
    surfaces.broken.add("B")
    ctl = make_controller()
    ctl.start()

    assert ctl.advance(1) is True
    manual_fade.complete_last()
    assert ctl.current_entry.filename == "C"
    assert ctl.current_index == 2


def test_previous_skips_unreadable_image(make_controller, surfaces, manual_fade):
    surfaces.broken.add("C")
    ctl = make_controller()
    ctl.start()

    ctl.previous()
    manual_fade.complete_last()
    assert ctl.current_entry.filename == "B"
    assert ctl.catalog.shuffle_count == 0


def test_abort_when_no_other_image_loads(make_controller, surfaces, manual_fade):
    surfaces.broken.update({"B", "C"})
    ctl = make_controller()
    aborted = []
    ctl.transition_aborted.connect(lambda i: aborted.append(i))
    ctl.start()
    old_surface = ctl.current_surface

    assert ctl.advance(1) is False

    assert aborted == [0]
    assert ctl.state is SlideState.SHOWING
    assert ctl.current_surface is old_surface
    assert ctl.current_entry.filename == "A"
    assert ctl.current_index == 0
    assert manual_fade.jobs == []


def test_previous_after_abort_goes_before_shown_image(make_controller, surfaces, manual_fade):
    surfaces.broken.update({"B", "C"})
    ctl = make_controller(sources=("A", "B", "C", "D"))
    ctl.start()
    surfaces.broken.add("D")
    assert ctl.advance(1) is False
    assert ctl.current_index == ctl.catalog.position_of(ctl.current_entry)

    surfaces.broken.clear()
    ctl.previous()
    manual_fade.complete_last()
    assert ctl.current_entry.filename == "D"
    assert ctl.current_index == 3


def test_start_skips_unreadable_first_image(make_controller, surfaces):
    surfaces.broken.add("A")
    ctl = make_controller()
    ctl.start()
    assert ctl.current_entry.filename == "B"
    assert ctl.current_index == 1


def test_start_fails_when_nothing_loads(make_controller, surfaces):
    surfaces.broken.update({"A", "B", "C"})
    ctl = make_controller()
    with pytest.raises(EmptyCatalogError):
        ctl.start()
    assert ctl.state is SlideState.IDLE


def test_unknown_transition_name_uses_default(make_controller, manual_fade):
    ctl = make_controller(transitions=["does-not-exist"])
    ctl.start()
    ctl.advance(1)
    assert len(manual_fade.jobs) == 1
    manual_fade.complete_last()
    assert ctl.last_effect == "fade"


def test_missing_caption_clears_fields(make_controller, manual_fade, caption_view):
    ctl = make_controller()
    ctl.start()
    ctl.advance(1)
    manual_fade.complete_last()
    assert caption_view.calls[-1] == ("clear",)


def test_shutdown_finishes_running_transition(make_controller, manual_fade, surfaces):
    ctl = make_controller()
    ctl.start()
    ctl.advance(1)
    ctl.shutdown()
    assert manual_fade.jobs[-1].done
    assert surfaces.live == []
    assert ctl.state is SlideState.IDLE


def test_real_effect_drives_controller(qtbot, make_controller):
    from tvslide.core.effects import build_default_registry

    ctl = make_controller(transitions=["crossfade"])
    ctl.registry = build_default_registry(30)
    ctl.start()

    with qtbot.waitSignal(ctl.transition_finished, timeout=2000) as blocker:
        ctl.advance(1)
    assert blocker.args == [1]
    assert ctl.current_entry.filename == "B"
    assert ctl.current_surface.opacity == 1.0


def test_neighbours_are_prefetched(make_controller, manual_fade, surfaces):
    ctl = make_controller()
    ctl.start()
    assert surfaces.prefetched == ["B", "C"]

    ctl.advance(1)
    manual_fade.complete_last()
    assert surfaces.prefetched[2:] == ["C", "A"]

    ctl.advance(1)
    manual_fade.complete_last()
    # the next forward step reshuffles, so only the previous image is fetched
    assert surfaces.prefetched[4:] == ["B"]
