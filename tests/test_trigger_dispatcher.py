import pytest

from questscript.domain.defs import TriggerNode
from questscript.domain.run_state import RunState
from questscript.services.errors import UnknownTriggerEvent
from questscript.services.flag_store import FlagStore
from questscript.services.trigger_dispatcher import KNOWN_TRIGGER_EVENTS, TriggerDispatcher, is_known_event
from tests.helpers.recording_host import RecordingHost


def _dispatch(event: str, params: dict, host: RecordingHost | None = None, flags: FlagStore | None = None):
    host = host or RecordingHost()
    flags = flags or FlagStore()
    state = RunState(script_id="s")
    TriggerDispatcher(host, flags).dispatch(TriggerNode(id="t", event=event, params=params), state)
    return host, flags, state


def test_world_events_reach_the_host() -> None:
    host = RecordingHost()
    _dispatch("playMusic", {"trackPath": "music/town.ogg"}, host)
    _dispatch("stopMusic", {}, host)
    _dispatch("showStatus", {"message": "Quest updated"}, host)
    _dispatch("teleport", {"x": 1, "y": 2.5, "z": -3}, host)
    _dispatch("setTime", {"hour": 18}, host)
    _dispatch("setWeather", {"weather": "rain"}, host)

    assert host.calls == [
        ("play_music", "music/town.ogg"),
        ("stop_music", None),
        ("show_status", ("Quest updated", "info")),
        ("teleport", (1.0, 2.5, -3.0)),
        ("set_time", 18.0),
        ("set_weather", "rain"),
    ]


def test_set_flag_defaults_to_true() -> None:
    _, flags, _ = _dispatch("setFlag", {"flag": "metKing"})
    assert flags.get("metKing") is True

    _, flags, _ = _dispatch("setFlag", {"flag": "rank", "value": "silver"})
    assert flags.get("rank") == "silver"


def test_spawn_and_remove_track_npc_ids() -> None:
    host = RecordingHost()
    state = RunState(script_id="s")
    dispatcher = TriggerDispatcher(host, FlagStore())

    dispatcher.dispatch(TriggerNode(id="a", event="spawnNPC", params={"npcId": "goblin", "emoji": "G", "x": 4}), state)
    assert state.active_npc_ids == {"goblin"}
    assert host.spawned[0].x == 4.0

    dispatcher.dispatch(TriggerNode(id="b", event="removeNPC", params={"npcId": "goblin"}), state)
    assert state.active_npc_ids == set()
    assert host.removed == ["goblin"]


def test_unknown_event_raises() -> None:
    with pytest.raises(UnknownTriggerEvent) as excinfo:
        _dispatch("summonDragon", {})
    assert excinfo.value.event == "summonDragon"
    assert not is_known_event("summonDragon")
    assert all(is_known_event(event) for event in KNOWN_TRIGGER_EVENTS)


def test_bad_params_raise_value_error() -> None:
    with pytest.raises(ValueError):
        _dispatch("setTime", {"hour": 25})
    with pytest.raises(ValueError):
        _dispatch("teleport", {"x": 1, "y": "up", "z": 0})
    with pytest.raises(ValueError):
        _dispatch("spawnNPC", {})
