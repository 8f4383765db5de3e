import pytest

from conftest import FakeObs, make_config, run
from core.match.models import MatchFormat, MatchState, PlayerInfo
from services.obs.gateway import ObsGateway, ObsGatewayError
from services.overlay.sync import OverlaySync
from shared.config.automation import OverlayMapping
from shared.runtime.result import ResultCode


def create_sync(obs, *, mapping=None, strict=False):
    config = make_config()
    gateway = ObsGateway(obs, strict_mode=strict)
    return OverlaySync(gateway, mapping or config.overlay, config.metadata)


def sample_match(**kwargs):
    defaults = dict(
        round_label="Winners Finals",
        format=MatchFormat.FT3,
        player1=PlayerInfo(name="Heythan", team="LG", country="ARG", score=1),
        player2=PlayerInfo(name="Guaripolo", team="PK", country="CHL", score=2),
    )
    defaults.update(kwargs)
    return MatchState(**defaults)


# ---------------------------------------------------------
# Apply
# ---------------------------------------------------------

def test_apply_match_writes_every_field(obs):
    sync = create_sync(obs)

    result = run(sync.apply_match(sample_match()))

    assert result.ok is True
    assert obs.text("Round Label") == "Winners Finals"
    assert obs.text("Best Of") == "FT3"
    assert obs.text("P1 Player Name") == "Heythan"
    assert obs.text("P2 Team Name") == "PK"
    assert obs.text("P1 Country Name") == "ARG"
    assert obs.inputs["P1 Flag"][1]["file"] == "assets/flags/Argentina.png"
    assert obs.text("P1 Score") == "1"
    assert obs.text("P2 Score") == "2"


def test_failed_write_does_not_stop_the_batch(obs):
    obs.fail_writes.add("P1 Player Name")
    sync = create_sync(obs)

    result = run(sync.apply_players(sample_match()))

    assert result.ok is False
    assert result.code == ResultCode.OBS_ERROR
    assert "P1 Player Name" in result.message
    written = obs.written_names()
    assert "P1 Team Name" in written
    assert "P2 Player Name" in written
    assert "P2 Flag" in written


def test_apply_match_reports_failure_but_pushes_scores(obs):
    obs.fail_writes.add("Round Label")
    sync = create_sync(obs)

    result = run(sync.apply_match(sample_match()))

    assert result.ok is False
    assert obs.text("P2 Score") == "2"


def test_unmapped_slot_is_skipped(obs):
    sync = create_sync(obs, mapping=OverlayMapping(p1_team=""))

    result = run(sync.apply_players(sample_match()))

    assert result.ok is True
    assert "P1 Team Name" not in obs.written_names()


def test_custom_country_overrides_metadata(obs):
    sync = create_sync(obs)
    player = PlayerInfo(
        name="Kam", country="ARG", custom_country_code="LAT", custom_flag_path="flags/latam.png"
    )

    run(sync.apply_players(sample_match(player1=player)))

    assert obs.text("P1 Country Name") == "LAT"
    assert obs.inputs["P1 Flag"][1]["file"] == "flags/latam.png"


def test_flag_skipped_when_no_path_known(obs):
    sync = create_sync(obs)
    # USA has no flag asset configured
    player = PlayerInfo(name="Justin", country="USA")

    result = run(sync.apply_players(sample_match(player1=player)))

    assert result.ok is True
    assert "P1 Flag" not in obs.written_names()
    assert obs.text("P1 Country Name") == "USA"


def test_strict_mode_stops_at_first_fault(obs):
    del obs.inputs["P1 Player Name"]
    sync = create_sync(obs, strict=True)

    with pytest.raises(ObsGatewayError) as exc:
        run(sync.apply_players(sample_match()))

    assert exc.value.code == ResultCode.NOT_FOUND
    assert obs.writes == []


# ---------------------------------------------------------
# Read-back
# ---------------------------------------------------------

def test_read_match_rebuilds_players_from_overlay(obs):
    sync = create_sync(obs)
    current = sample_match()

    async def scenario():
        await sync.apply_match(current)
        obs.set_text("P1 Player Name", "Edited")
        obs.set_text("P2 Country Name", "arg")
        return await sync.read_match(current)

    match = run(scenario())

    assert match.player1.name == "Edited"
    assert match.player1.score == 1
    assert match.player2.country == "ARG"
    assert match.round_label == current.round_label


def test_read_match_clamps_scores(obs):
    sync = create_sync(obs)
    current = sample_match()

    async def scenario():
        await sync.apply_match(current)
        obs.set_text("P1 Score", "9")
        obs.set_text("P2 Score", "-3")
        return await sync.read_match(current, score_min=0, score_max=4)

    match = run(scenario())

    assert match.player1.score == 3  # FT3 caps at 3 wins
    assert match.player2.score == 0


def test_read_match_unknown_country_kept_as_custom(obs):
    sync = create_sync(obs)
    current = sample_match()

    async def scenario():
        await sync.apply_match(current)
        obs.set_text("P1 Country Name", "XYZ")
        obs.inputs["P1 Flag"][1]["file"] = "flags/xyz.png"
        return await sync.read_match(current)

    match = run(scenario())

    assert match.player1.country == ""
    assert match.player1.custom_country_code == "XYZ"
    assert match.player1.custom_flag_path == "flags/xyz.png"


def test_read_match_returns_none_on_unparseable_score(obs):
    sync = create_sync(obs)
    current = sample_match()

    async def scenario():
        await sync.apply_match(current)
        obs.set_text("P2 Score", "two")
        return await sync.read_match(current)

    assert run(scenario()) is None


def test_read_match_returns_none_when_slot_unmapped():
    obs = FakeObs()
    sync = create_sync(obs, mapping=OverlayMapping(p2_flag=""))

    assert run(sync.read_match(sample_match())) is None
