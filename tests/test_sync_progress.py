"""
Tests for SyncProgress counters.
"""
import pytest

from steam_library.controllers.sync_progress_tracker import SyncProgress


def test_initial_state():
    progress = SyncProgress()
    data = progress.to_dict()
    assert data['status'] == 'idle'
    assert data['progress_percent'] == 0
    assert data['images'] == (0, 0, True)


@pytest.mark.asyncio
async def test_increment_counters():
    progress = SyncProgress()
    progress.seed(total=4, images_done=1, descriptions_done=0)

    assert await progress.increment_images("Foo") == 2
    assert await progress.increment_descriptions("Foo") == 1
    assert progress.phase_counters('images') == (2, 4, False)
    assert progress.current_game['values']['game_title'] == "Foo"


def test_progress_percent_within_phase():
    progress = SyncProgress()
    progress.seed(total=4, images_done=2, descriptions_done=0)
    progress.status = 'images'
    assert progress.to_dict()['progress_percent'] == 27

    progress.status = 'descriptions'
    progress.description_completed = 2
    assert progress.to_dict()['progress_percent'] == 75


def test_unknown_phase_rejected():
    with pytest.raises(ValueError):
        SyncProgress().phase_counters('sizes')


def test_reset():
    progress = SyncProgress()
    progress.seed(3, 3, 3)
    progress.status = 'complete'
    progress.reset()
    assert progress.to_dict()['images'] == (0, 0, True)
    assert progress.status == 'idle'
