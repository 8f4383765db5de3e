import threading

import pytest

from core.match import (
    CountryInfo,
    MatchFormat,
    MatchQueue,
    MatchState,
    OverlayMetadata,
    PlayerInfo,
    TournamentState,
)


# ---------- FORMAT ----------

@pytest.mark.parametrize("fmt, wins", [
    (MatchFormat.FT2, 2),
    (MatchFormat.FT3, 3),
    (MatchFormat.BO5, 3),
    (MatchFormat.BO7, 4),
])
def test_wins_required(fmt, wins):
    assert fmt.wins_required == wins
    assert MatchState(format=fmt).wins_required == wins


def test_format_from_value():
    assert MatchFormat.from_value(" bo7 ") is MatchFormat.BO7
    assert MatchFormat.from_value("??", default=MatchFormat.FT2) is MatchFormat.FT2
    with pytest.raises(ValueError):
        MatchFormat.from_value("FT10")


# ---------- MATCH STATE ----------

def test_match_state_is_immutable():
    match = MatchState()

    with pytest.raises(Exception):
        match.round_label = "Grand Finals"


def test_swapped_and_with_scores():
    match = MatchState(
        player1=PlayerInfo(name="A", score=1),
        player2=PlayerInfo(name="B", score=2),
    )

    swapped = match.swapped()
    reset = match.with_scores(0, 0)

    assert (swapped.player1.name, swapped.player2.name) == ("B", "A")
    assert (reset.player1.score, reset.player2.score) == (0, 0)
    assert match.player1.score == 1


def test_match_point_and_over():
    match = MatchState(format=MatchFormat.FT3).with_scores(2, 1)

    assert match.is_match_point_p1 is True
    assert match.is_match_point_p2 is False
    assert match.is_match_over is False
    assert match.with_scores(3, 1).is_match_over is True


def test_with_identity_keeps_score():
    current = PlayerInfo(name="A", score=2)
    replacement = PlayerInfo(name="B", team="T", score=0)

    merged = current.with_identity(replacement)

    assert merged.name == "B"
    assert merged.team == "T"
    assert merged.score == 2


def test_characters_stored_as_tuple():
    player = PlayerInfo(characters=["Ragna", "Jin"])

    assert player.characters == ("Ragna", "Jin")


# ---------- METADATA ----------

def test_resolve_country_by_acronym_or_flag():
    metadata = OverlayMetadata([
        CountryInfo("ARG", "ARG", "Argentina", "flags/Argentina.png"),
    ])

    assert metadata.resolve_country("arg") == "ARG"
    assert metadata.resolve_country("", "FLAGS/argentina.png") == "ARG"
    assert metadata.resolve_country("XYZ") == ""
    assert metadata.get_country("nope").acronym == ""


# ---------- QUEUE ----------

def test_queue_is_fifo_with_push_front():
    queue = MatchQueue()
    a, b, c = (MatchState(round_label=x) for x in "abc")

    queue.enqueue(a)
    queue.enqueue(b)
    head = queue.try_dequeue()
    queue.push_front(c)

    assert head is a
    assert queue.snapshot() == [c, b]
    assert len(queue) == 2


def test_queue_empty_and_clear():
    queue = MatchQueue()

    assert queue.try_dequeue() is None
    queue.enqueue(MatchState())
    queue.clear()
    assert len(queue) == 0


def test_queue_rejects_non_match():
    queue = MatchQueue()

    with pytest.raises(TypeError):
        queue.enqueue(None)


def test_queue_concurrent_enqueue():
    queue = MatchQueue()

    def worker():
        for _ in range(200):
            queue.enqueue(MatchState())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(queue) == 800


# ---------- TOURNAMENT STATE ----------

def test_tournament_state_rejects_none():
    state = TournamentState(MatchState(), current_scene="Break")

    with pytest.raises(TypeError):
        state.set_current_match(None)

    assert state.current_scene == "Break"


def test_tournament_state_requires_initial_match():
    with pytest.raises(TypeError):
        TournamentState(None)
