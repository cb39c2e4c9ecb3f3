from __future__ import annotations

import asyncio

import pytest

from roombot.core.config import RoomConfig
from roombot.corrector import AutoJoinCorrector
from roombot.registry import ManualMoveRegistry
from roombot.session.mock_room import MockRoom
from roombot.session.models import PlayerRecord, Team


class _RosterRoom(MockRoom):
    """MockRoom with a roster seeded directly (no join events)."""

    def __init__(self, players: list[PlayerRecord]) -> None:
        super().__init__(RoomConfig(room_name="r"))
        self.team_calls: list[tuple[int, int]] = []
        for p in players:
            self._players[p.id] = p

    async def set_player_team(self, player_id: int, team: int) -> None:
        self.team_calls.append((player_id, int(team)))
        await super().set_player_team(player_id, team)


def _corrector(room: MockRoom | None, registry: ManualMoveRegistry | None = None) -> AutoJoinCorrector:
    return AutoJoinCorrector(room=lambda: room, registry=registry or ManualMoveRegistry())


@pytest.mark.asyncio
async def test_self_joined_player_is_moved_to_spectators_and_warned() -> None:
    room = _RosterRoom([PlayerRecord(id=1, name="alice", team=Team.red, admin=False)])

    moved = await _corrector(room).tick()

    assert moved == [1]
    assert room.team_calls == [(1, 0)]
    assert len(room.announcements) == 1
    message, target = room.announcements[0]
    assert target == 1
    assert "alice moved to spectators" in message


@pytest.mark.asyncio
async def test_second_tick_without_roster_change_does_nothing() -> None:
    room = _RosterRoom([PlayerRecord(id=1, name="alice", team=Team.red)])
    corrector = _corrector(room)

    await corrector.tick()
    await corrector.tick()

    assert room.team_calls == [(1, 0)]
    assert len(room.announcements) == 1


@pytest.mark.asyncio
async def test_admin_is_never_corrected() -> None:
    room = _RosterRoom([PlayerRecord(id=2, name="boss", team=Team.blue, admin=True)])

    assert await _corrector(room).tick() == []
    assert room.team_calls == []
    assert room.announcements == []


@pytest.mark.asyncio
async def test_manually_moved_player_is_exempt_on_any_team() -> None:
    registry = ManualMoveRegistry()
    registry.mark_manually_moved(3)
    room = _RosterRoom([PlayerRecord(id=3, name="carol", team=Team.red)])
    corrector = _corrector(room, registry)

    for team in (Team.red, Team.blue, Team.red):
        room._players[3] = room._players[3].model_copy(update={"team": int(team)})
        await corrector.tick()

    assert room.team_calls == []


@pytest.mark.asyncio
async def test_rejoin_after_leave_is_not_exempt_until_marked_again() -> None:
    registry = ManualMoveRegistry()
    registry.mark_manually_moved(4)
    registry.clear_tracking(4)

    room = _RosterRoom([PlayerRecord(id=4, name="dave", team=Team.blue)])
    assert await _corrector(room, registry).tick() == [4]


@pytest.mark.asyncio
async def test_spectators_are_left_alone() -> None:
    room = _RosterRoom([PlayerRecord(id=5, name="erin", team=Team.spectators)])
    assert await _corrector(room).tick() == []


@pytest.mark.asyncio
async def test_no_room_is_a_noop() -> None:
    assert await _corrector(None).tick() == []


@pytest.mark.asyncio
async def test_errors_are_swallowed_and_next_tick_still_runs() -> None:
    class _Flaky(_RosterRoom):
        fail = True

        async def get_player_list(self):  # type: ignore[no-untyped-def]
            if self.fail:
                self.fail = False
                raise RuntimeError("host hiccup")
            return await super().get_player_list()

    room = _Flaky([PlayerRecord(id=6, name="frank", team=Team.red)])
    corrector = _corrector(room)

    assert await corrector.tick() == []
    assert await corrector.tick() == [6]


def test_registry_operations_are_idempotent() -> None:
    registry = ManualMoveRegistry()
    registry.mark_manually_moved(7)
    registry.mark_manually_moved(7)
    assert 7 in registry
    assert len(registry) == 1

    registry.clear_tracking(7)
    registry.clear_tracking(7)
    registry.clear_tracking(99)
    assert 7 not in registry
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_overlapping_ticks_warn_a_player_only_once() -> None:
    gate = asyncio.Event()

    class _SlowRoster(_RosterRoom):
        async def get_player_list(self):  # type: ignore[no-untyped-def]
            await gate.wait()
            return await super().get_player_list()

    room = _SlowRoster([PlayerRecord(id=8, name="gina", team=Team.red)])
    corrector = _corrector(room)

    first = asyncio.create_task(corrector.tick())
    await asyncio.sleep(0)
    assert await corrector.tick() == []

    gate.set()
    assert await first == [8]
    assert room.team_calls == [(8, 0)]
    assert len(room.announcements) == 1

    # The guard is released once the pass finishes.
    room._players[8] = room._players[8].model_copy(update={"team": int(Team.blue)})
    assert await corrector.tick() == [8]
