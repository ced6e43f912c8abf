"""
Tests for dropper motion, cuts, landing and the death clock.
"""

from dataclasses import replace

import pytest

from drop_game.drop_core.config_loader import load_config
from drop_game.drop_core.dropper import Dropper
from drop_game.drop_core.presenter import RecordingPresenter, SoundCue, VisualState
from drop_game.drop_core.rng import RandomSource
from drop_game.drop_core.sprite_sheet import SpriteSheetLayout
from drop_game.drop_core.target import Target


FRAME_MS = 16.667


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def target(config, presenter):
    sheet = SpriteSheetLayout.from_config(config.sprites.target)
    return Target(presenter, sheet, x=500, y=config.viewport.height - 0.75 * sheet.frame_height)


@pytest.fixture
def results():
    return []


@pytest.fixture
def dropper(config, presenter, target, results):
    return Dropper(target, "alice", presenter, RandomSource(42), config, on_result=results.append)


def with_rules(config, **changes):
    return replace(config, rules=replace(config.rules, **changes))


def place_for_landing(dropper, hitbox_x):
    """Put the hitbox one step above the landing plane at hitbox_x."""
    dropper.set_pos(hitbox_x - dropper.emote.x, dropper.landing_y - dropper.emote.y - 1)
    dropper.x_speed = 0.0
    dropper.y_speed = 2.0


class TestSpawn:
    """Test the randomized starting state."""

    def test_emote_hangs_under_chute(self, dropper):
        """Emote is centered under the chute, overlapping by a quarter."""
        assert dropper.emote.x == 32
        assert dropper.emote.y == 106
        assert dropper.hitbox_width == 56
        assert dropper.hitbox_height == 56

    def test_dimensions(self, dropper):
        """Dropper box size comes from config."""
        assert dropper.width == 120
        assert dropper.height == 162

    def test_starts_above_viewport(self, dropper, config):
        """Spawn is just above the top, away from the side edges."""
        assert dropper.y == config.dropper.spawn_y
        assert 548 <= dropper.x <= 1372

    def test_speed_ranges(self, config, presenter, target):
        """Spawn speeds, brake height and cut delay stay in range."""
        for seed in range(30):
            d = Dropper(target, "p", presenter, RandomSource(seed), config)
            assert 3 <= abs(d.x_speed) < 5
            assert 8 <= d.y_speed < 10
            assert 1 <= d.brake_height <= 8
            assert 750 <= d.cut_clock <= 1500

    def test_both_directions_occur(self, config, presenter, target):
        """Horizontal direction is randomized."""
        signs = {
            Dropper(target, "p", presenter, RandomSource(seed), config).x_speed > 0
            for seed in range(30)
        }
        assert signs == {True, False}

    def test_flags_clear(self, dropper):
        """A fresh dropper has no phase flags set."""
        assert not dropper.landed
        assert not dropper.deployed
        assert not dropper.cut_requested
        assert not dropper.cut_triggered
        assert not dropper.winner
        assert dropper.drop_score == 0
        assert dropper.falling

    def test_chute_hidden_until_deploy(self, dropper, presenter):
        """Chute is ghosted before deployment."""
        assert presenter.has_state(dropper.parachute, VisualState.GHOST)

    def test_custom_emote_uses_first_frame(self, dropper, presenter):
        """Custom emotes use frame 0."""
        dropper.choose_emote("Kappa")
        assert dropper.emote.frame == 0
        assert dropper.custom_emote == "Kappa"
        assert any(c.method == "set_custom_emote" and c.args == ("Kappa",) for c in presenter.calls)

    def test_stock_emote_frame_in_range(self, dropper):
        """Stock emotes pick a valid random frame."""
        dropper.choose_emote(None)
        assert 0 <= dropper.emote.frame < 20
        assert dropper.custom_emote is None


class TestMotion:
    """Test falling, braking, deployment and edge bounces."""

    def test_no_braking_above_brake_height(self, dropper):
        """Speed is untouched above the brake height."""
        dropper.set_pos(800, -100)
        dropper.brake_height = 8
        dropper.y_speed = 9.0
        dropper.update(FRAME_MS)
        assert dropper.y == -91
        assert dropper.y_speed == 9.0

    def test_braking_settles_at_floor_speed(self, dropper):
        """Braking stops at the minimum descent speed."""
        dropper.set_pos(800, 100)
        dropper.x_speed = 0.0
        dropper.y_speed = 10.0
        dropper.brake_height = 1

        for _ in range(200):
            dropper.update(FRAME_MS)

        assert not dropper.landed
        assert dropper.y_speed <= 0.5
        assert dropper.y_speed > 0.5 / 1.05 - 1e-9

    def test_deploys_on_entering_viewport(self, dropper, presenter):
        """Chute opens once the dropper enters the viewport."""
        dropper.set_pos(800, -5)
        dropper.y_speed = 9.0
        dropper.update(FRAME_MS)

        assert dropper.deployed
        assert SoundCue.PARACHUTE in presenter.sounds()
        assert not presenter.has_state(dropper.parachute, VisualState.GHOST)
        assert presenter.has_state(dropper.parachute, VisualState.DEPLOY_CHUTE)
        assert presenter.has_state(dropper, VisualState.SWAY)

    def test_not_deployed_above_viewport(self, dropper):
        """Chute stays closed above the viewport."""
        dropper.set_pos(800, -162)
        dropper.y_speed = 9.0
        dropper.update(FRAME_MS)
        assert not dropper.deployed

    def test_bounce_off_left_edge(self, dropper):
        """Hitting the left edge reverses direction."""
        dropper.set_pos(-40, 100)
        dropper.x_speed = -3.0
        dropper.update(FRAME_MS)
        assert dropper.x_speed == 3.0

    def test_bounce_off_right_edge(self, dropper):
        """Hitting the right edge reverses direction."""
        dropper.set_pos(1835, 100)
        dropper.x_speed = 3.0
        dropper.update(FRAME_MS)
        assert dropper.x_speed == -3.0

    def test_children_follow_parent(self, dropper, presenter):
        """Chute and emote are repositioned with the dropper."""
        dropper.set_pos(800, 100)
        dropper.update(FRAME_MS)
        assert presenter.positions[id(dropper)] == (dropper.x, dropper.y)
        assert presenter.positions[id(dropper.emote)] == (dropper.x + 32, dropper.y + 106)
        assert presenter.positions[id(dropper.parachute)] == (dropper.x, dropper.y)


class TestCut:
    """Test cut requests, delay, lockout and terminal velocity."""

    def test_cut_delay_in_range(self, dropper, presenter):
        """A requested cut releases within the cut range."""
        dropper.set_pos(800, 100)
        dropper.x_speed = 0.0

        assert dropper.cut_chute()
        assert dropper.cut_requested
        assert not dropper.cut_triggered
        assert presenter.sounds()[-1] == SoundCue.SNIP
        assert presenter.has_state(dropper.emote, VisualState.CUT)

        frames = 0
        while not dropper.cut_triggered and frames < 20:
            dropper.update(100)
            frames += 1

        assert 8 <= frames <= 15
        assert presenter.has_state(dropper.parachute, VisualState.RELEASE_CHUTE)
        assert presenter.has_state(dropper.parachute, VisualState.GHOST)
        assert not presenter.has_state(dropper, VisualState.SWAY)

    def test_instant_cut_without_range(self, config, presenter, target):
        """With no cut range the cut is immediate."""
        d = Dropper(target, "bob", presenter, RandomSource(1), with_rules(config, cut_range=None))
        d.set_pos(800, 100)
        assert d.cut_clock == 0
        assert d.cut_chute()
        assert d.cut_triggered

    def test_terminal_velocity_cap(self, config, presenter, target):
        """Free fall after a cut never exceeds terminal velocity."""
        d = Dropper(target, "bob", presenter, RandomSource(1), with_rules(config, cut_range=None))
        d.set_pos(800, 0)
        d.x_speed = 0.0
        d.y_speed = 11.0
        d.cut_chute()

        for _ in range(10):
            d.update(FRAME_MS)
            assert d.y_speed <= 12

        assert d.y_speed == 12

    def test_second_cut_buzzes(self, dropper, presenter):
        """A second cut request is refused with a buzz."""
        dropper.set_pos(800, 100)
        assert dropper.cut_chute()
        assert not dropper.cut_chute()
        assert presenter.sounds()[-2:] == [SoundCue.SNIP, SoundCue.BUZZ]

    def test_cut_below_lockout_refused(self, config, presenter, target):
        """Cuts below the lockout line are refused."""
        d = Dropper(target, "bob", presenter, RandomSource(1), with_rules(config, cut_lockout=500))
        d.set_pos(800, 600)
        assert not d.cut_chute()
        assert not d.cut_requested
        assert presenter.sounds()[-1] == SoundCue.BUZZ

    def test_cut_after_landing_refused(self, dropper, presenter):
        """Landed droppers cannot cut."""
        place_for_landing(dropper, 100)
        dropper.update(FRAME_MS)
        assert dropper.landed

        assert not dropper.cut_chute()
        assert presenter.sounds()[-1] == SoundCue.BUZZ


class TestLanding:
    """Test win/lose landings and scoring."""

    def test_centered_landing_wins_with_100(self, dropper, target, results, presenter):
        """A dead-center landing wins with a perfect score."""
        place_for_landing(dropper, 667)
        dropper.update(FRAME_MS)

        assert dropper.landed
        assert dropper.winner
        assert dropper.drop_score == pytest.approx(100.0)
        assert target.droppers == [dropper]
        assert len(results) == 1
        assert results[0].on_target and results[0].winner
        assert results[0].score == pytest.approx(100.0)
        assert presenter.has_state(dropper, VisualState.SCORE_VISIBLE)
        assert SoundCue.LAND in presenter.sounds()
        assert SoundCue.WINNER in presenter.sounds()

    def test_miss_loses(self, dropper, target, results, presenter):
        """Landing off the target loses."""
        place_for_landing(dropper, 100)
        dropper.update(FRAME_MS)

        assert dropper.landed
        assert not dropper.winner
        assert target.droppers == []
        assert len(results) == 1
        assert not results[0].on_target and not results[0].winner
        assert presenter.has_state(dropper, VisualState.LOSER)

    def test_landing_stops_motion(self, dropper):
        """Landing zeroes both speeds."""
        place_for_landing(dropper, 100)
        dropper.x_speed = 4.0
        dropper.update(FRAME_MS)
        assert dropper.x_speed == 0
        assert dropper.y_speed == 0

    def test_landing_releases_uncut_chute(self, dropper, presenter):
        """The chute is released on landing."""
        place_for_landing(dropper, 100)
        dropper.update(FRAME_MS)
        assert presenter.has_state(dropper.parachute, VisualState.RELEASE_CHUTE)

    def test_landed_dropper_stays_put(self, dropper):
        """Landed droppers no longer move."""
        place_for_landing(dropper, 667)
        dropper.update(FRAME_MS)
        x, y = dropper.x, dropper.y
        for _ in range(10):
            dropper.update(FRAME_MS)
        assert (dropper.x, dropper.y) == (x, y)


class TestDeathClock:
    """Test retirement of landed losers."""

    def test_loser_reaped_after_death_time(self, dropper, presenter):
        """Losers fade after the death time and die after the fade."""
        place_for_landing(dropper, 100)
        dropper.update(FRAME_MS)

        for _ in range(4):
            dropper.update(1000)
        assert not dropper.drop_complete

        dropper.update(1000)
        assert dropper.drop_complete
        assert not dropper.dead
        assert presenter.has_state(dropper, VisualState.REAP)
        assert presenter.has_state(dropper, VisualState.GHOST)

        dropper.update(1000)
        assert dropper.dead
        assert any(c.method == "hide" and c.entity is dropper for c in presenter.calls)

    def test_fade_complete_kills_early(self, dropper):
        """A finished fade ends a completed drop early."""
        place_for_landing(dropper, 100)
        dropper.update(FRAME_MS)

        dropper.fade_complete()
        assert not dropper.dead

        dropper.update(5000)
        dropper.fade_complete()
        assert dropper.dead

    def test_winner_never_reaped(self, dropper):
        """The winner stays on the target."""
        place_for_landing(dropper, 667)
        dropper.update(FRAME_MS)

        for _ in range(20):
            dropper.update(1000)
        assert not dropper.drop_complete
        assert not dropper.dead


class TestRecycle:
    """Test that a reused dropper starts clean."""

    def test_randomize_resets_everything(self, dropper, presenter, config):
        """A recycled winner starts its next drop clean."""
        place_for_landing(dropper, 667)
        dropper.update(FRAME_MS)
        dropper.kill()

        dropper.randomize("bob")

        assert dropper.name == "bob"
        assert not dropper.dead
        assert not dropper.landed
        assert not dropper.winner
        assert not dropper.deployed
        assert not dropper.cut_requested
        assert dropper.drop_score == 0
        assert dropper.death_clock == 0
        assert dropper.y == config.dropper.spawn_y
        assert 8 <= dropper.y_speed < 10
        assert not presenter.has_state(dropper, VisualState.SCORE_VISIBLE)
        assert not presenter.has_state(dropper, VisualState.LOSER)
        assert presenter.has_state(dropper.parachute, VisualState.GHOST)
        assert not presenter.has_state(dropper.parachute, VisualState.RELEASE_CHUTE)
