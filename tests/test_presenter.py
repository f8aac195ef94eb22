"""Result rendering and optimistic update tests."""

import json

from homehq.core.presenter import OptimisticList, ViewState, render_result
from homehq.core.results import err, ok
from homehq.modules.tasks import actions
from tests.conftest import join_family


def test_render_ok():
    response = render_result(ok({"id": "1"}), 201)
    assert response.status_code == 201
    assert json.loads(response.body) == {"success": True, "data": {"id": "1"}}


def test_render_err_uses_code_status():
    response = render_result(err("EVENT_NOT_FOUND", "Event not found or has been archived"))
    assert response.status_code == 404
    assert json.loads(response.body) == {
        "success": False,
        "error": {"code": "EVENT_NOT_FOUND", "message": "Event not found or has been archived"},
    }


def test_unknown_error_code_is_500():
    assert render_result(err("SOMETHING_ELSE", "boom")).status_code == 500


def test_view_state_retry():
    calls = []

    def flaky():
        calls.append(1)
        return err("DATABASE_ERROR", "try again") if len(calls) == 1 else ok("done")

    state = ViewState()
    state.run(flaky)
    assert state.phase == "error"
    assert state.error.code == "DATABASE_ERROR"

    state.retry()
    assert state.phase == "success"
    assert state.data == "done"
    assert state.error is None


def test_optimistic_toggle_reconciles_with_server(store, family):
    task = actions.create_task(store, family.token, {"title": "Bins", "is_private": False}).data
    tasks = OptimisticList([task.model_dump()])

    tasks.toggle(task.id, "is_completed",
                 lambda value: actions.update_task_completion(store, family.token, task.id, {"is_completed": value}))

    assert tasks.get(task.id)["is_completed"] is True
    assert tasks.get(task.id)["completed_by"] == family.id


def test_optimistic_toggle_rolls_back_on_error(store, family):
    kim = join_family(store, family.family_id, name="Kim")
    sam = join_family(store, family.family_id, name="Sam")
    task = actions.create_task(store, kim.token, {"title": "Bins", "is_private": False}).data
    tasks = OptimisticList([task.model_dump()])

    result = tasks.toggle(task.id, "is_completed",
                          lambda value: actions.update_task_completion(store, sam.token, task.id,
                                                                       {"is_completed": value}))

    assert result.error.code == "FORBIDDEN"
    assert tasks.get(task.id)["is_completed"] is False
    assert tasks.as_list() == [task.model_dump()]
